# -*- test-case-name: mpitrial.test.test_worker -*-
#
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Default worker entry point: run a suite with trial in this process and
record its results in the artifact of this worker.

Usage::

    python -m mpitrial.worker SUITE [DIRECTORY]

The index of the worker is read from the environment variables set by the
parallel runtime which launched it.
"""

import os
import sys
from collections import namedtuple

from twisted.python.filepath import FilePath
from twisted.python.usage import Options, UsageError
from twisted.trial.runner import TestLoader, TrialSuite

from mpitrial.artifact import artifactPath
from mpitrial.description import Description
from mpitrial.recorder import EventRecorder, RecorderReporter
from mpitrial.topology import _iterateTests, loadSuiteClass


INDEX_VARIABLES = ('MPITRIAL_WORKER_INDEX', 'OMPI_COMM_WORLD_RANK',
                   'PMI_RANK', 'PMIX_RANK', 'SLURM_PROCID',
                   'MV2_COMM_WORLD_RANK')
COUNT_VARIABLES = ('MPITRIAL_WORKER_COUNT', 'OMPI_COMM_WORLD_SIZE',
                   'PMI_SIZE', 'SLURM_NTASKS', 'MV2_COMM_WORLD_SIZE')



class WorkerIdentity(namedtuple('WorkerIdentity', ['index', 'count'])):
    """
    Position of this process in the worker group.
    """



def _firstSet(environ, names, default):
    for name in names:
        if environ.get(name):
            return int(environ[name])
    return default



def currentWorker(environ=None):
    """
    Return the L{WorkerIdentity} of this process, as given by the parallel
    runtime.  A process started without one is worker 0 of 1.
    """
    if environ is None:
        environ = os.environ
    return WorkerIdentity(_firstSet(environ, INDEX_VARIABLES, 0),
                          _firstSet(environ, COUNT_VARIABLES, 1))



class WorkerOptions(Options):
    """
    Arguments of the worker entry point.
    """

    synopsis = "python -m mpitrial.worker suite [directory]"

    def parseArgs(self, suite, directory=None):
        self['suite'] = suite
        self['configuration'] = None
        self['directory'] = directory



class ParameterizedWorkerOptions(Options):
    """
    Arguments of the worker entry point of parameterized suites.
    """

    synopsis = "python -m mpitrial.paramworker suite configuration [directory]"

    def parseArgs(self, suite, configuration, directory=None):
        try:
            configuration = int(configuration)
        except ValueError:
            raise UsageError("configuration must be an integer index, not %r"
                             % (configuration,))
        self['suite'] = suite
        self['configuration'] = configuration
        self['directory'] = directory



def applyScenario(suite, attributes):
    """
    Set C{attributes} on every test case of C{suite}.
    """
    for test in _iterateTests(suite):
        for name, value in attributes.items():
            setattr(test, name, value)



def runWorker(suiteName, workerIndex, directory=None, configurationIndex=None,
              suiteFactory=TrialSuite, loader=None):
    """
    Run a suite, or one configuration of a parameterized suite, and record
    its results in the artifact of worker C{workerIndex}.

    @param suiteName: fully qualified name of the test case class.
    @param directory: path of the artifact directory, or C{None} for the
        working directory.
    @param suiteFactory: callable wrapping the list of tests to run.

    @return: the L{FilePath} of the artifact written.
    """
    if loader is None:
        loader = TestLoader()
    suiteClass = loadSuiteClass(suiteName)
    suite = loader.loadClass(suiteClass)
    configuration = None
    if configurationIndex is not None:
        configuration, attributes = suiteClass.scenarios[configurationIndex]
        applyScenario(suite, attributes)

    if directory is not None:
        directory = FilePath(directory)
        if not directory.isdir():
            directory.makedirs(ignoreExistingDirectory=True)
    path = artifactPath(directory, suiteName, workerIndex, configurationIndex)

    recorder = EventRecorder(path)
    reporter = RecorderReporter(recorder, configuration)
    description = Description(suiteName, configuration=configuration)
    recorder.suiteStarted(description)
    suiteFactory([suite]).run(reporter)
    recorder.suiteFinished(description)
    recorder.close()
    return path



def main(argv=None, parameterized=False, environ=None):
    """
    Main function to be run if __name__ == "__main__".
    """
    if argv is None:
        argv = sys.argv[1:]
    if parameterized:
        options = ParameterizedWorkerOptions()
    else:
        options = WorkerOptions()
    try:
        options.parseOptions(argv)
    except UsageError as ue:
        raise SystemExit("%s: %s" % (options.synopsis, ue))
    identity = currentWorker(environ)
    runWorker(options['suite'], identity.index, options['directory'],
              options['configuration'])
    sys.exit(0)



if __name__ == '__main__':
    main()
