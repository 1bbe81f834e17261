# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{mpitrial.worker}, running suites in process.
"""

import os

from twisted.python.filepath import FilePath
from twisted.python.usage import UsageError
from twisted.trial.unittest import SynchronousTestCase, TestSuite

from mpitrial.aggregate import ResultAggregator
from mpitrial.artifact import artifactName, readArtifact
from mpitrial.description import Description
from mpitrial.events import EventKind, EventLog
from mpitrial.launch import RunRequest
from mpitrial.worker import ParameterizedWorkerOptions, WorkerOptions
from mpitrial.worker import currentWorker, runWorker


SCENARIO = "mpitrial.test.sample.ScenarioSuite"
PARAMETERIZED = "mpitrial.test.sample.ParameterizedSuite"



class CurrentWorkerTests(SynchronousTestCase):
    """
    Tests for L{currentWorker}.
    """

    def test_default(self):
        """
        A process started without a parallel runtime is worker 0 of 1.
        """
        self.assertEqual(currentWorker({}), (0, 1))


    def test_multicore(self):
        self.assertEqual(currentWorker({'MPITRIAL_WORKER_INDEX': '2',
                                        'MPITRIAL_WORKER_COUNT': '4'}),
                         (2, 4))


    def test_runtimes(self):
        """
        The rank given by MPI implementations or Slurm is the worker index.
        """
        self.assertEqual(currentWorker({'OMPI_COMM_WORLD_RANK': '3',
                                        'OMPI_COMM_WORLD_SIZE': '8'}),
                         (3, 8))
        self.assertEqual(currentWorker({'PMI_RANK': '1'}).index, 1)
        self.assertEqual(currentWorker({'PMIX_RANK': '5'}).index, 5)
        self.assertEqual(currentWorker({'SLURM_PROCID': '6',
                                        'SLURM_NTASKS': '7'}), (6, 7))
        self.assertEqual(currentWorker({'MV2_COMM_WORLD_RANK': '4'}).index, 4)


    def test_environment(self):
        self.patch(os, 'environ', {'PMI_RANK': '2'})
        self.assertEqual(currentWorker().index, 2)



class WorkerOptionsTests(SynchronousTestCase):
    """
    Tests for the options of the worker entry points.
    """

    def test_suite(self):
        options = WorkerOptions()
        options.parseOptions([SCENARIO])
        self.assertEqual(options['suite'], SCENARIO)
        self.assertIdentical(options['directory'], None)
        self.assertIdentical(options['configuration'], None)


    def test_directory(self):
        options = WorkerOptions()
        options.parseOptions([SCENARIO, "results"])
        self.assertEqual(options['directory'], "results")


    def test_configuration(self):
        options = ParameterizedWorkerOptions()
        options.parseOptions([PARAMETERIZED, "1", "results"])
        self.assertEqual(options['configuration'], 1)
        self.assertEqual(options['directory'], "results")


    def test_invalidConfiguration(self):
        self.assertRaises(UsageError,
                          ParameterizedWorkerOptions().parseOptions,
                          [PARAMETERIZED, "large"])



class RunWorkerTests(SynchronousTestCase):
    """
    Tests for L{runWorker}.
    """

    def setUp(self):
        self.directory = FilePath(self.mktemp())
        self.environ = dict(os.environ)
        self.patch(os, 'environ', self.environ)


    def runAs(self, workerIndex, suiteName, configurationIndex=None):
        self.environ['MPITRIAL_WORKER_INDEX'] = str(workerIndex)
        return runWorker(suiteName, workerIndex, self.directory.path,
                         configurationIndex, suiteFactory=TestSuite)


    def test_artifact(self):
        """
        A worker records the suite boundaries around its test results.
        """
        path = self.runAs(1, SCENARIO)
        self.assertEqual(path, self.directory.child(artifactName(SCENARIO, 1)))
        events = readArtifact(path)
        self.assertEqual(
            [event.kind for event in events],
            [EventKind.SUITE_STARTED,
             EventKind.TEST_STARTED, EventKind.TEST_FINISHED,
             EventKind.TEST_STARTED, EventKind.TEST_FINISHED,
             EventKind.SUITE_FINISHED])
        self.assertEqual(events[0].description, Description(SCENARIO))
        self.assertEqual(events[1].description,
                         Description(SCENARIO, "test_alwaysPasses"))


    def test_scenarioA(self):
        """
        On four workers, C{test_alwaysPasses} passes on every worker and
        C{test_failsOnZero} fails on worker 0 only.
        """
        for k in range(4):
            self.runAs(k, SCENARIO)
        log = EventLog()
        ResultAggregator(self.directory).collect(
            RunRequest(SCENARIO, 4), log,
            ["test_alwaysPasses", "test_failsOnZero"])
        finished = [event.description for event in log.events
                    if event.kind is EventKind.TEST_FINISHED]
        self.assertEqual(
            sorted((d.methodName, d.workerIndex) for d in finished),
            sorted((methodName, k) for k in range(4)
                   for methodName in ["test_alwaysPasses",
                                      "test_failsOnZero"]))
        failed = [event.description for event in log.events
                  if event.kind is EventKind.TEST_FAILED]
        self.assertEqual(failed,
                         [Description(SCENARIO, "test_failsOnZero", None, 0)])
        self.assertEqual(self.directory.children(), [])


    def test_scenarioC(self):
        """
        Two configurations on two workers leave four artifacts named with
        both indexes, and results carry the configuration name.
        """
        for configurationIndex in range(2):
            for k in range(2):
                self.runAs(k, PARAMETERIZED, configurationIndex)
        self.assertEqual(
            sorted(child.basename() for child in self.directory.children()),
            [artifactName(PARAMETERIZED, k, c)
             for c in range(2) for k in range(2)])

        log = EventLog()
        aggregator = ResultAggregator(self.directory)
        for index, configuration in enumerate(["small", "large"]):
            aggregator.collect(
                RunRequest(PARAMETERIZED, 2, configurationIndex=index), log,
                ["test_positive", "test_small"], configuration)
        finished = [event.description for event in log.events
                    if event.kind is EventKind.TEST_FINISHED]
        self.assertEqual(
            [(d.configuration, d.methodName, d.workerIndex)
             for d in finished],
            [(configuration, methodName, k)
             for configuration in ["small", "large"]
             for k in range(2)
             for methodName in ["test_positive", "test_small"]])
        failed = [event.description for event in log.events
                  if event.kind is EventKind.TEST_FAILED]
        self.assertEqual(
            failed,
            [Description(PARAMETERIZED, "test_small", "large", k)
             for k in range(2)])


    def test_workingDirectory(self):
        """
        Without a directory, the artifact is written in the working
        directory.
        """
        workingDirectory = FilePath(self.mktemp())
        workingDirectory.makedirs()
        self.addCleanup(os.chdir, os.getcwd())
        os.chdir(workingDirectory.path)
        path = runWorker(SCENARIO, 0, suiteFactory=TestSuite)
        self.assertTrue(workingDirectory.child(artifactName(SCENARIO, 0))
                        .isfile())
        self.assertEqual(path.basename(), artifactName(SCENARIO, 0))
