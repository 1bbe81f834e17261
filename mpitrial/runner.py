# -*- test-case-name: mpitrial.test.test_runner -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
This module contains the mpitrial runner, responsible for coordinating a run
at the highest level: launching the workers of every suite, collecting their
artifacts and reporting the merged results.  It also contains a L{run}
function to provide a simple interface to that class for the command line
tool.
"""

import sys

from twisted.internet.defer import fail, succeed
from twisted.python import log
from twisted.python.usage import UsageError
from twisted.trial.reporter import TreeReporter
from twisted.trial.runner import TestLoader

from mpitrial.aggregate import ResultAggregator
from mpitrial.degrade import DegradationPolicy
from mpitrial.error import LaunchFailure, WorkerGroupFailed
from mpitrial.launch import LaunchCommandBuilder, RunRequest
from mpitrial.notifier import ReporterNotifier
from mpitrial.options import RunConfiguration, RunOptions
from mpitrial.supervisor import ProcessSupervisor, runUntilFired
from mpitrial.topology import (
    buildTopology, declaredConfigurations, declaredMethods, loadSuiteClass,
    suiteIdentifier)



class MpiTrialRunner(object):
    """
    A runner launching every suite on a group of worker processes, one
    suite and one configuration at a time.

    @ivar suiteNames: fully qualified names of the test case classes to run.
    @ivar workerCount: the number of workers of each launch.
    @type workerCount: C{int}

    @ivar configuration: the L{RunConfiguration} of the run.

    @ivar entryPoint: module run by the workers, or C{None} for the default
        one.

    @ivar stream: stream which the reporter will use.

    @ivar reporterFactory: the reporter class to be used.

    @ivar loaderFactory: a class loader for test, to be customized in tests.

    @ivar supervisorFactory: the class supervising worker groups, to be
        customized in tests.
    """

    loaderFactory = TestLoader
    supervisorFactory = ProcessSupervisor

    def __init__(self, reporterFactory, suiteNames, workerCount=4,
                 configuration=None, entryPoint=None, stream=sys.__stdout__):
        if configuration is None:
            configuration = RunConfiguration()
        self.reporterFactory = reporterFactory
        self.suiteNames = suiteNames
        self.workerCount = workerCount
        self.configuration = configuration
        self.entryPoint = entryPoint
        self.stream = stream
        self.builder = LaunchCommandBuilder(
            artifactDirectory=self._directoryArgument(),
            libraryPath=configuration.libraryPath)
        self.aggregator = ResultAggregator(
            configuration.artifactDirectory,
            configuration.retainArtifacts,
            DegradationPolicy(configuration.action))


    def _directoryArgument(self):
        directory = self.configuration.artifactDirectory
        if directory is None:
            return None
        return directory.path


    def _makeResult(self):
        """
        Make reporter factory, and wrap it with a notifier.
        """
        return ReporterNotifier(self.reporterFactory(self.stream), self.stream)


    def writeResults(self, result):
        """
        write test run final outcome to result

        @param result: a L{ReporterNotifier} which will print errors and the
            summary
        """
        result.done()


    def request(self, suiteName, configurationIndex=None):
        """
        Return the L{RunRequest} of a suite, or of one of its configurations.
        """
        return RunRequest(suiteName, self.workerCount,
                          backend=self.configuration.backend,
                          entryPoint=self.entryPoint,
                          configurationIndex=configurationIndex,
                          timeout=self.configuration.timeout,
                          backendOptions=self.configuration.backendOptions)


    def launch(self, request, supervisor):
        """
        Launch the workers of C{request}, unless this is a dry run.

        @return: a L{Deferred} firing once the workers are done, or failing
            with L{LaunchFailure}.
        """
        if self.configuration.dryRun:
            return succeed(None)
        try:
            command = self.builder.build(request)
        except LaunchFailure as e:
            return fail(e)
        log.msg(format="Launching command: %(command)s",
                command=command.commandLine())
        if self.configuration.verbose:
            self.stream.write("[mpitrial] Launching command: %s\n" % (
                command.commandLine(),))
        return supervisor.launch(command, request.timeout)


    def runRequest(self, request, result, supervisor, methods,
                   configuration=None):
        """
        Launch the workers of C{request} and replay their results on
        C{result}.

        A group which ran but did not exit cleanly may still have left the
        artifacts of some workers: they are collected, and only the missing
        ones are replaced.  A group which could not be launched at all is
        reported for the whole suite.
        """
        def collect(ignored):
            self.aggregator.collect(request, result, methods, configuration,
                                    self.configuration.parseWorker)

        def groupFailed(failure):
            failure.trap(WorkerGroupFailed)
            log.msg(format="Results of %(suite)s may be incomplete: "
                           "%(reason)s",
                    suite=request.suiteName, reason=failure.value)
            if self.configuration.verbose:
                self.stream.write("[mpitrial] %s\n" % (failure.value,))

        def launchFailed(failure):
            failure.trap(LaunchFailure)
            self.aggregator.policy.launchFailed(
                result, request.suiteName, methods, failure.value,
                configuration)

        d = self.launch(request, supervisor)
        d.addErrback(groupFailed)
        d.addCallbacks(collect, launchFailed)
        return d


    def plan(self, suiteName, result):
        """
        Load a suite and announce its topology on C{result}.

        @return: the suite identifier, its method names and its configuration
            names, or C{None} for a suite without configurations.
        """
        suiteClass = loadSuiteClass(suiteName)
        suiteName = suiteIdentifier(suiteClass)
        methods = declaredMethods(suiteClass, self.loaderFactory())
        configurations = declaredConfigurations(suiteClass)
        topology = buildTopology(suiteName, methods, self.workerCount,
                                 configurations,
                                 self.configuration.parseWorker)
        self.stream.write("Running %d tests.\n" % (topology.countLeaves(),))
        result.testRunPlanned(topology)
        return suiteName, methods, configurations


    def runSuite(self, suiteName, result, supervisor):
        """
        Run every configuration of a suite in turn.

        @return: a L{Deferred} firing once all of them were reported.
        """
        suiteName, methods, configurations = self.plan(suiteName, result)
        if configurations is None:
            return self.runRequest(self.request(suiteName), result,
                                   supervisor, methods)
        d = succeed(None)
        for index, configuration in enumerate(configurations):
            d.addCallback(
                lambda ignored, index=index, configuration=configuration:
                    self.runRequest(self.request(suiteName, index), result,
                                    supervisor, methods, configuration))
        return d


    def prepare(self):
        """
        Create the artifact directory if needed.
        """
        directory = self.configuration.artifactDirectory
        if directory is not None and not self.configuration.dryRun:
            directory.makedirs(ignoreExistingDirectory=True)


    def run(self, reactor):
        """
        Run every suite, one after the other, then report the results.

        @param reactor: the reactor to use, to be customized in tests.
        @type reactor: a provider of
            L{twisted.internet.interfaces.IReactorProcess} and
            L{twisted.internet.interfaces.IReactorTime}

        @return: the L{ReporterNotifier} holding the results.
        """
        result = self._makeResult()
        supervisor = self.supervisorFactory(reactor)
        self.prepare()

        def start():
            d = succeed(None)
            for suiteName in self.suiteNames:
                d.addCallback(
                    lambda ignored, suiteName=suiteName:
                        self.runSuite(suiteName, result, supervisor))
            return d

        runUntilFired(reactor, start)
        self.writeResults(result)
        return result


    def getConfig(argv=None):
        """
        Get configuration from sys.argv

        @return: a L{RunOptions} instance generated from command-line options

        @raise SystemExit: raise this if the command-line options are not
            parseable
        """
        if argv is None:
            argv = sys.argv[1:]
        if not argv:
            argv = ["--help"]
        config = RunOptions()
        try:
            config.parseOptions(argv)
        except UsageError as ue:
            raise SystemExit("%s: %s" % (sys.argv[0], ue))
        return config

    getConfig = staticmethod(getConfig)


    def getTrialRunner(cls, config):
        """
        Generate a runner from the config.
        """
        return cls(TreeReporter, config['suites'], int(config['workers']),
                   configuration=config['configuration'],
                   entryPoint=config['entry-point'])

    getTrialRunner = classmethod(getTrialRunner)


    def _run(self, reactor=None):
        """
        Run the suites of this runner.

        @return: 0 if the test run was successful, 1 otherwise
        @rtype: C{int}
        """
        if reactor is None:
            from twisted.internet import reactor
        result = self.run(reactor)
        return int(not result.wasSuccessful())



def run():
    """
    Main run function to fire mpitrial.
    """
    config = MpiTrialRunner.getConfig()
    if config['configuration'].verbose:
        log.startLogging(sys.stderr)
    trialRunner = MpiTrialRunner.getTrialRunner(config)
    status = trialRunner._run()
    sys.exit(status)



if __name__ == '__main__':
    run()
