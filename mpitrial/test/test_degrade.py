# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{mpitrial.degrade}.
"""

from twisted.trial.unittest import SynchronousTestCase

from mpitrial.degrade import DegradationPolicy, FailureAction
from mpitrial.description import Description
from mpitrial.error import LaunchFailure, ResultsUnavailable
from mpitrial.events import EventKind, EventLog



class DegradationPolicyTests(SynchronousTestCase):
    """
    Tests for L{DegradationPolicy}.
    """

    def setUp(self):
        self.log = EventLog()
        self.reason = LaunchFailure("mpirun was not found")
        self.methods = ["test_a", "test_b"]


    def kinds(self):
        return [event.kind for event in self.log.events]


    def test_launchFailedError(self):
        """
        With C{ERROR}, every method of a failed run is started, failed with
        L{ResultsUnavailable} chained to the reason, and finished, inside
        the suite.
        """
        DegradationPolicy().launchFailed(self.log, "pkg.Suite", self.methods,
                                         self.reason)
        self.assertEqual(
            self.kinds(),
            [EventKind.SUITE_STARTED] +
            [EventKind.TEST_STARTED, EventKind.TEST_FAILED,
             EventKind.TEST_FINISHED] * 2 +
            [EventKind.SUITE_FINISHED])
        failed = self.log.events[2]
        self.assertEqual(failed.description,
                         Description("pkg.Suite", "test_a"))
        self.assertIsInstance(failed.error, ResultsUnavailable)
        self.assertIdentical(failed.error.__cause__, self.reason)
        self.assertIn("Unable to produce results for this test",
                      failed.detail)


    def test_launchFailedSkip(self):
        DegradationPolicy(FailureAction.SKIP).launchFailed(
            self.log, "pkg.Suite", self.methods, self.reason, "small")
        self.assertEqual(
            self.kinds(),
            [EventKind.SUITE_STARTED, EventKind.TEST_IGNORED,
             EventKind.TEST_IGNORED, EventKind.SUITE_FINISHED])
        self.assertEqual(self.log.events[1].description,
                         Description("pkg.Suite", "test_a", "small"))


    def test_launchFailedSilent(self):
        DegradationPolicy(FailureAction.SILENT).launchFailed(
            self.log, "pkg.Suite", self.methods, self.reason)
        self.assertEqual(self.log.events, [])


    def test_artifactUnavailable(self):
        """
        Substitute results for one worker are tagged with its index and not
        wrapped in a suite.
        """
        DegradationPolicy().artifactUnavailable(
            self.log, "pkg.Suite", self.methods, 1, self.reason)
        self.assertEqual(
            [event.description for event in self.log.events
             if event.kind is EventKind.TEST_FAILED],
            [Description("pkg.Suite", "test_a", None, 1),
             Description("pkg.Suite", "test_b", None, 1)])
        self.assertEqual(len(self.log.events), 6)


    def test_artifactUnavailableUntagged(self):
        DegradationPolicy(FailureAction.SKIP).artifactUnavailable(
            self.log, "pkg.Suite", self.methods, 1, self.reason, tag=False)
        self.assertEqual(
            [event.description for event in self.log.events],
            [Description("pkg.Suite", "test_a"),
             Description("pkg.Suite", "test_b")])
