# -*- test-case-name: mpitrial.test.test_events -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Events captured from the reporting calls of a test run, and their replay
onto an L{IRunNotifier}.
"""

from constantly import NamedConstant, Names
from zope.interface import implementer

from twisted.python.util import FancyEqMixin

from mpitrial.interfaces import IRunNotifier



class EventKind(Names):
    """
    The closed set of reporting calls an L{Event} can stand for.
    """
    SUITE_STARTED = NamedConstant()
    SUITE_FINISHED = NamedConstant()
    TEST_STARTED = NamedConstant()
    TEST_FINISHED = NamedConstant()
    TEST_IGNORED = NamedConstant()
    TEST_FAILED = NamedConstant()
    ASSUMPTION_FAILED = NamedConstant()



FAILURE_KINDS = frozenset([EventKind.TEST_FAILED, EventKind.ASSUMPTION_FAILED])



class Event(FancyEqMixin, object):
    """
    One reporting call.

    @ivar kind: an L{EventKind} constant.
    @ivar description: the L{Description} the call was made with.
    @ivar error: a L{RecordedError} for failure kinds, C{None} otherwise.
    """

    compareAttributes = ('kind', 'description', 'detail')

    def __init__(self, kind, description, error=None):
        if (kind in FAILURE_KINDS) != (error is not None):
            raise ValueError("%s events carry an error if and only if they "
                             "report a failure" % (kind.name,))
        self.kind = kind
        self.description = description
        self.error = error


    @property
    def detail(self):
        """
        The text of the error carried by this event, if any.
        """
        if self.error is None:
            return None
        return self.error.detail


    def __repr__(self):
        if self.error is None:
            return "<Event %s %s>" % (self.kind.name, self.description.id())
        return "<Event %s %s %r>" % (self.kind.name, self.description.id(),
                                     self.detail)


    def tagged(self, workerIndex):
        """
        Return this event with its description attributed to
        C{workerIndex}.  The error is kept as is.
        """
        return Event(self.kind, self.description.tagged(workerIndex),
                     self.error)



_replayers = {
    EventKind.SUITE_STARTED:
        lambda sink, event: sink.suiteStarted(event.description),
    EventKind.SUITE_FINISHED:
        lambda sink, event: sink.suiteFinished(event.description),
    EventKind.TEST_STARTED:
        lambda sink, event: sink.testStarted(event.description),
    EventKind.TEST_FINISHED:
        lambda sink, event: sink.testFinished(event.description),
    EventKind.TEST_IGNORED:
        lambda sink, event: sink.testIgnored(event.description),
    EventKind.TEST_FAILED:
        lambda sink, event: sink.testFailed(event.description, event.error),
    EventKind.ASSUMPTION_FAILED:
        lambda sink, event: sink.testAssumptionFailed(event.description,
                                                      event.error),
    }



def replay(events, sink):
    """
    Make the reporting calls C{events} stand for on C{sink}, in order.

    @param events: an iterable of L{Event}.
    @param sink: an L{IRunNotifier} provider.
    """
    for event in events:
        _replayers[event.kind](sink, event)



@implementer(IRunNotifier)
class EventLog(object):
    """
    An L{IRunNotifier} which keeps every call it receives as an L{Event}.

    @ivar events: the recorded events, in the order of the calls.
    @ivar topology: the last topology announced, if any.
    """

    def __init__(self):
        self.events = []
        self.topology = None


    def record(self, event):
        """
        Append C{event} to the log.
        """
        self.events.append(event)


    def testRunPlanned(self, topology):
        self.topology = topology


    def suiteStarted(self, description):
        self.record(Event(EventKind.SUITE_STARTED, description))


    def suiteFinished(self, description):
        self.record(Event(EventKind.SUITE_FINISHED, description))


    def testStarted(self, description):
        self.record(Event(EventKind.TEST_STARTED, description))


    def testFinished(self, description):
        self.record(Event(EventKind.TEST_FINISHED, description))


    def testIgnored(self, description):
        self.record(Event(EventKind.TEST_IGNORED, description))


    def testFailed(self, description, error):
        self.record(Event(EventKind.TEST_FAILED, description, error))


    def testAssumptionFailed(self, description, error):
        self.record(Event(EventKind.ASSUMPTION_FAILED, description, error))
