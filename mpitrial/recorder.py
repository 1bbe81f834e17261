# -*- test-case-name: mpitrial.test.test_recorder -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The worker side of result collection: L{EventRecorder} keeps the events of
one worker and writes them to its artifact, L{RecorderReporter} turns the
reporting calls of trial into events.
"""

from twisted.python.failure import Failure
from twisted.trial.reporter import TestResult

from mpitrial.artifact import serialize
from mpitrial.description import Description
from mpitrial.error import RecordedError, RecorderClosed
from mpitrial.events import EventLog



class EventRecorder(EventLog):
    """
    An L{EventLog} backed by an artifact.  The artifact file is created when
    the recorder is, and written in full by L{close}.

    @ivar path: the L{FilePath} of the artifact.
    """

    def __init__(self, path):
        EventLog.__init__(self)
        self.path = path
        self._file = path.open("w")


    def record(self, event):
        """
        Append C{event} to the log.

        @raise RecorderClosed: if L{close} was called.
        """
        if self._file is None:
            raise RecorderClosed("%r recorded after close" % (event,))
        EventLog.record(self, event)


    def close(self):
        """
        Write the recorded events to the artifact, flush it and close it.
        Errors while writing propagate once the file is closed.  Closing a
        closed recorder does nothing.
        """
        artifact, self._file = self._file, None
        if artifact is None:
            return
        try:
            artifact.write(serialize(self.events))
            artifact.flush()
        finally:
            artifact.close()



def _declaredSkip(test):
    """
    Return C{True} if C{test} was skipped by declaration (a C{skip}
    attribute or L{unittest.skip}) rather than by raising C{SkipTest}.
    """
    method = getattr(test, getattr(test, '_testMethodName', ''), None)
    for holder in (method, test):
        if getattr(holder, 'skip', None) is not None:
            return True
        if getattr(holder, '__unittest_skip__', False):
            return True
    return False



class RecorderReporter(TestResult):
    """
    Reporter for the test runs of workers.  Results are not written to a
    stream but sent to an L{IRunNotifier}, usually an L{EventRecorder}.

    The calls concerning one test are held until the test stops, so that a
    declared skip can be reported as an ignored test instead of a started
    one.

    @ivar notifier: the L{IRunNotifier} receiving the events.
    @ivar configuration: the scenario name tests run with, or C{None}.
    """

    def __init__(self, notifier, configuration=None):
        super(RecorderReporter, self).__init__()
        self.notifier = notifier
        self.configuration = configuration
        self.running = {}


    def describe(self, test):
        """
        Return the L{Description} of C{test}.
        """
        suiteName, _, methodName = test.id().rpartition('.')
        return Description(suiteName, methodName, self.configuration)


    def _getFailure(self, error):
        """
        Convert a C{sys.exc_info()}-style tuple to a L{Failure}, if necessary.
        """
        if isinstance(error, tuple):
            return Failure(error[1], error[0], error[2])
        return error


    def _queue(self, test, outcome, error=None):
        self.running[test.id()].append((outcome, error))


    def startTest(self, test):
        """
        Queue the start of a test.
        """
        super(RecorderReporter, self).startTest(test)
        self.running[test.id()] = []


    def addFailure(self, test, fail):
        """
        Queue a failure.
        """
        super(RecorderReporter, self).addFailure(test, fail)
        failure = self._getFailure(fail)
        self._queue(test, 'failed', RecordedError(failure.getTraceback()))


    def addError(self, test, error):
        """
        Queue an error, reported as a failure.
        """
        super(RecorderReporter, self).addError(test, error)
        failure = self._getFailure(error)
        self._queue(test, 'failed', RecordedError(failure.getTraceback()))


    def addSkip(self, test, reason):
        """
        Queue a skip.
        """
        super(RecorderReporter, self).addSkip(test, reason)
        if _declaredSkip(test):
            self._queue(test, 'ignored')
        else:
            self._queue(test, 'skipped', RecordedError(str(reason)))


    def stopTest(self, test):
        """
        Send the events of the test to the notifier, then forget it.
        """
        super(RecorderReporter, self).stopTest(test)
        outcomes = self.running.pop(test.id(), [])
        description = self.describe(test)
        if [outcome for (outcome, error) in outcomes] == ['ignored']:
            self.notifier.testIgnored(description)
            return
        self.notifier.testStarted(description)
        for outcome, error in outcomes:
            if outcome == 'failed':
                self.notifier.testFailed(description, error)
            elif outcome == 'skipped':
                self.notifier.testAssumptionFailed(description, error)
        self.notifier.testFinished(description)