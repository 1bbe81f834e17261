# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{mpitrial.aggregate}.
"""

from twisted.protocols.amp import COMMAND, AmpBox
from twisted.python.filepath import FilePath
from twisted.trial.unittest import SynchronousTestCase

from mpitrial import artifact
from mpitrial.aggregate import ResultAggregator
from mpitrial.degrade import DegradationPolicy, FailureAction
from mpitrial.description import Description
from mpitrial.error import ArtifactMissing, ReplayError, ResultsUnavailable
from mpitrial.error import RecordedError
from mpitrial.events import Event, EventKind, EventLog
from mpitrial.launch import RunRequest



def workerEvents(suiteName, methods, failOn=()):
    """
    Return the events a worker records for C{methods}, failing those in
    C{failOn}.
    """
    suite = Description(suiteName)
    events = [Event(EventKind.SUITE_STARTED, suite)]
    for methodName in methods:
        test = Description(suiteName, methodName)
        events.append(Event(EventKind.TEST_STARTED, test))
        if methodName in failOn:
            events.append(Event(EventKind.TEST_FAILED, test,
                                RecordedError("failed")))
        events.append(Event(EventKind.TEST_FINISHED, test))
    events.append(Event(EventKind.SUITE_FINISHED, suite))
    return events



class ResultAggregatorTests(SynchronousTestCase):
    """
    Tests for L{ResultAggregator}.
    """

    def setUp(self):
        self.directory = FilePath(self.mktemp())
        self.directory.makedirs()
        self.methods = ["test_a", "test_b"]
        self.log = EventLog()


    def write(self, workerIndex, events, configurationIndex=None):
        path = artifact.artifactPath(self.directory, "pkg.Suite", workerIndex,
                                     configurationIndex)
        path.setContent(artifact.serialize(events))
        return path


    def collect(self, request, **kwargs):
        aggregator = ResultAggregator(self.directory, **kwargs)
        aggregator.collect(request, self.log, self.methods)
        return aggregator


    def resultEvents(self, kind=None):
        return [event for event in self.log.events
                if not event.description.isSuite() and
                (kind is None or event.kind is kind)]


    def test_tagsByWorker(self):
        """
        Every worker's results are replayed in worker order, tagged with the
        worker index, suite events and errors untouched.
        """
        for k in range(3):
            self.write(k, workerEvents("pkg.Suite", self.methods,
                                       failOn=["test_b"] if k == 0 else []))
        self.collect(RunRequest("pkg.Suite", 3))
        finished = self.resultEvents(EventKind.TEST_FINISHED)
        self.assertEqual(
            [event.description for event in finished],
            [Description("pkg.Suite", methodName, None, k)
             for k in range(3) for methodName in self.methods])
        [failed] = self.resultEvents(EventKind.TEST_FAILED)
        self.assertEqual(failed.description,
                         Description("pkg.Suite", "test_b", None, 0))
        self.assertEqual(failed.detail, "failed")
        suites = [event.description for event in self.log.events
                  if event.description.isSuite()]
        self.assertEqual(suites, [Description("pkg.Suite")] * 6)


    def test_startedBeforeFinished(self):
        """
        Each tagged test is started before it is finished.
        """
        for k in range(2):
            self.write(k, workerEvents("pkg.Suite", self.methods))
        self.collect(RunRequest("pkg.Suite", 2))
        events = self.resultEvents()
        for index, event in enumerate(events):
            if event.kind is EventKind.TEST_FINISHED:
                started = [e for e in events[:index]
                           if e.kind is EventKind.TEST_STARTED and
                           e.description == event.description]
                self.assertEqual(len(started), 1)


    def test_deletesArtifacts(self):
        path = self.write(0, workerEvents("pkg.Suite", self.methods))
        self.collect(RunRequest("pkg.Suite", 1))
        self.assertFalse(path.exists())


    def test_retainsArtifacts(self):
        path = self.write(0, workerEvents("pkg.Suite", self.methods))
        self.collect(RunRequest("pkg.Suite", 1), retainArtifacts=True)
        self.assertTrue(path.exists())


    def test_missingArtifactError(self):
        """
        A missing artifact yields one failed and finished pair per method
        for that worker only, each error chained to the missing artifact.
        """
        self.write(0, workerEvents("pkg.Suite", self.methods))
        self.collect(RunRequest("pkg.Suite", 2))
        failed = self.resultEvents(EventKind.TEST_FAILED)
        self.assertEqual(
            [event.description for event in failed],
            [Description("pkg.Suite", methodName, None, 1)
             for methodName in self.methods])
        for event in failed:
            self.assertIsInstance(event.error, ResultsUnavailable)
            self.assertIsInstance(event.error.__cause__, ArtifactMissing)
        self.assertEqual(
            [event.description for event
             in self.resultEvents(EventKind.TEST_FINISHED)
             if event.description.workerIndex == 1],
            [Description("pkg.Suite", methodName, None, 1)
             for methodName in self.methods])


    def test_missingArtifactSkip(self):
        """
        With C{SKIP}, worker 0 keeps its real results and the missing worker
        1 gets one ignored leaf per method.
        """
        self.write(0, workerEvents("pkg.Suite", self.methods))
        self.collect(RunRequest("pkg.Suite", 2),
                     policy=DegradationPolicy(FailureAction.SKIP))
        self.assertEqual(
            [event.description
             for event in self.resultEvents(EventKind.TEST_FINISHED)],
            [Description("pkg.Suite", methodName, None, 0)
             for methodName in self.methods])
        self.assertEqual(
            [event.description
             for event in self.resultEvents(EventKind.TEST_IGNORED)],
            [Description("pkg.Suite", methodName, None, 1)
             for methodName in self.methods])


    def test_corruptArtifact(self):
        """
        A corrupt artifact degrades its worker only and is left in place.
        """
        path = self.write(0, workerEvents("pkg.Suite", self.methods))
        path.setContent(path.getContent()[:-10])
        self.write(1, workerEvents("pkg.Suite", self.methods))
        self.collect(RunRequest("pkg.Suite", 2),
                     policy=DegradationPolicy(FailureAction.SILENT))
        self.assertEqual(
            set(event.description.workerIndex
                for event in self.resultEvents()), set([1]))
        self.assertTrue(path.exists())


    def test_unknownKind(self):
        """
        An artifact recording an unknown event kind fails the collection.
        """
        unknown = AmpBox()
        unknown[COMMAND] = b"TestExploded"
        path = artifact.artifactPath(self.directory, "pkg.Suite", 0)
        path.setContent(
            artifact._box(artifact.eventcommands.LogHeader,
                          version=artifact.FORMAT_VERSION).serialize() +
            unknown.serialize() +
            artifact._box(artifact.eventcommands.LogTrailer,
                          count=1).serialize())
        self.assertRaises(ReplayError, self.collect,
                          RunRequest("pkg.Suite", 1))


    def test_onlyWorker(self):
        """
        Restricted to one worker, only its artifact is read and its results
        are not tagged.
        """
        self.write(1, workerEvents("pkg.Suite", self.methods))
        aggregator = ResultAggregator(self.directory)
        aggregator.collect(RunRequest("pkg.Suite", 4), self.log, self.methods,
                           onlyWorker=1)
        self.assertEqual(
            [event.description
             for event in self.resultEvents(EventKind.TEST_FINISHED)],
            [Description("pkg.Suite", methodName)
             for methodName in self.methods])


    def test_configuration(self):
        """
        Artifacts of a configuration are looked up with its index.
        """
        self.write(0, workerEvents("pkg.Suite", self.methods), 1)
        aggregator = ResultAggregator(self.directory)
        aggregator.collect(RunRequest("pkg.Suite", 1, configurationIndex=1),
                           self.log, self.methods, "large")
        self.assertEqual(len(self.resultEvents(EventKind.TEST_FINISHED)), 2)
