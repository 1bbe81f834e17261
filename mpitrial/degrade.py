# -*- test-case-name: mpitrial.test.test_degrade -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Substitute results reported when the real results of a run, or of one
worker, cannot be collected.
"""

from constantly import NamedConstant, Names

from twisted.python import log

from mpitrial.description import Description
from mpitrial.error import ResultsUnavailable



class FailureAction(Names):
    """
    What to report for tests whose results could not be produced.
    """
    ERROR = NamedConstant()
    SKIP = NamedConstant()
    SILENT = NamedConstant()



class DegradationPolicy(object):
    """
    Report substitute results on an L{IRunNotifier}.

    @ivar action: a L{FailureAction}.  C{ERROR} reports every test as
        started, failed with a L{ResultsUnavailable} error chained to the
        cause of the problem, and finished.  C{SKIP} reports every test as
        ignored.  C{SILENT} reports nothing.
    """

    def __init__(self, action=FailureAction.ERROR):
        self.action = action


    def _synthesize(self, sink, descriptions, reason):
        for description in descriptions:
            if self.action is FailureAction.ERROR:
                sink.testStarted(description)
                sink.testFailed(description, ResultsUnavailable(reason))
                sink.testFinished(description)
            else:
                sink.testIgnored(description)


    def launchFailed(self, sink, suiteName, methods, reason,
                     configuration=None):
        """
        Report substitute results for a run which produced no usable result
        at all.  The tests are not attributed to any worker.

        @param methods: names of the test methods of the suite.
        @param reason: the exception which made the run fail.
        @param configuration: the configuration name, for parameterized
            suites.
        """
        log.msg(format="Results of %(suite)s unavailable (%(reason)s), "
                       "reporting %(action)s",
                suite=suiteName, reason=reason, action=self.action.name)
        if self.action is FailureAction.SILENT:
            return
        suite = Description(suiteName, configuration=configuration)
        sink.suiteStarted(suite)
        self._synthesize(
            sink,
            [Description(suiteName, methodName, configuration)
             for methodName in methods],
            reason)
        sink.suiteFinished(suite)


    def artifactUnavailable(self, sink, suiteName, methods, workerIndex,
                            reason, configuration=None, tag=True):
        """
        Report substitute results for the tests of one worker whose artifact
        could not be read.

        @param tag: whether to attribute the results to C{workerIndex}.
        """
        log.msg(format="Results of %(suite)s on worker %(worker)d "
                       "unavailable (%(reason)s), reporting %(action)s",
                suite=suiteName, worker=workerIndex, reason=reason,
                action=self.action.name)
        if self.action is FailureAction.SILENT:
            return
        descriptions = [Description(suiteName, methodName, configuration)
                        for methodName in methods]
        if tag:
            descriptions = [description.tagged(workerIndex)
                            for description in descriptions]
        self._synthesize(sink, descriptions, reason)
