# -*- test-case-name: mpitrial.test.test_notifier -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Report sink showing the merged results of a run on a trial reporter.

Trial reporters expect test case objects and one outcome per test; this
module adapts the L{IRunNotifier} calls to them.
"""

from zope.interface import implementer

from twisted.python import log
from twisted.python.failure import Failure

from mpitrial.interfaces import IRunNotifier



class DescribedTest(object):
    """
    Stand-in for a test case, given to the reporter for a L{Description}.
    """

    def __init__(self, description):
        self.description = description


    def id(self):
        return self.description.id()


    def shortDescription(self):
        return self.description.displayName()


    def countTestCases(self):
        return 1


    def __str__(self):
        return self.description.id()


    def __repr__(self):
        return "<DescribedTest %s>" % (self.description.id(),)



@implementer(IRunNotifier)
class ReporterNotifier(object):
    """
    Forward events to a trial reporter.

    Suite boundaries are folded: every worker reports the start and the end
    of the same suite, only the outermost pair matters and the reporter has
    no use for it.

    Tests announced by L{testRunPlanned} which never report are listed when
    the run is L{done}, since the reporter only counts the tests it saw.

    @ivar original: the trial L{IReporter}.
    @ivar stream: stream on which unreported tests are listed, or C{None}.
    @ivar topology: the last topology announced.
    @ivar planned: the leaves of every topology announced, in order.
    @ivar depth: how many suites are currently started.
    """

    def __init__(self, original, stream=None):
        self.original = original
        self.stream = stream
        self.topology = None
        self.planned = []
        self.depth = 0
        self._running = {}
        self._reported = set()


    def testRunPlanned(self, topology):
        self.topology = topology
        self.planned.extend(leaf.description for leaf in topology.leaves())


    def suiteStarted(self, description):
        self.depth += 1


    def suiteFinished(self, description):
        self.depth = max(0, self.depth - 1)


    def testStarted(self, description):
        self._reported.add(description)
        test = DescribedTest(description)
        self._running[description] = [test, False]
        self.original.startTest(test)


    def _outcome(self, description):
        if description not in self._running:
            self.testStarted(description)
        running = self._running[description]
        running[1] = True
        return running[0]


    def testFailed(self, description, error):
        test = self._outcome(description)
        self.original.addFailure(test, Failure(error))


    def testAssumptionFailed(self, description, error):
        test = self._outcome(description)
        self.original.addSkip(test, error.detail)


    def testFinished(self, description):
        self._reported.add(description)
        test, reported = self._running.pop(description, [None, False])
        if test is None:
            test = DescribedTest(description)
            self.original.startTest(test)
        if not reported:
            self.original.addSuccess(test)
        self.original.stopTest(test)


    def testIgnored(self, description):
        self._reported.add(description)
        test = DescribedTest(description)
        self.original.startTest(test)
        self.original.addSkip(test, "ignored")
        self.original.stopTest(test)


    def wasSuccessful(self):
        """
        Return whether the reporter saw no failure.
        """
        return self.original.wasSuccessful()


    def unreported(self):
        """
        Return the descriptions of the planned tests which reported nothing.
        Results reported for a whole suite, without worker, stand for every
        worker.
        """
        return [description for description in self.planned
                if description not in self._reported and
                description.untagged() not in self._reported]


    def done(self):
        """
        List the planned tests which reported nothing, then let the reporter
        print its summary.
        """
        missing = self.unreported()
        if missing:
            log.msg(format="%(count)d planned tests reported no result",
                    count=len(missing))
            if self.stream is not None:
                self.stream.write(
                    "%d planned tests reported no result:\n" % (len(missing),))
                for description in missing:
                    self.stream.write("  %s\n" % (description.id(),))
        self.original.done()
