# -*- test-case-name: mpitrial.test.test_aggregate -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Exceptions raised while launching workers and collecting their results.
"""



class LaunchFailure(Exception):
    """
    The worker group could not be launched, or did not terminate cleanly.
    Results of the whole run are replaced according to the degradation
    policy.
    """



class UnknownBackend(LaunchFailure):
    """
    The backend selector does not name a known backend.
    """



class WorkerGroupFailed(LaunchFailure):
    """
    The worker group was spawned but did not exit cleanly.  Workers may have
    written their artifacts before, so results are still collected and only
    the missing ones are replaced.
    """



class WorkerTimeout(WorkerGroupFailed):
    """
    The worker group did not terminate before the deadline and was killed.
    """



class ArtifactUnavailable(Exception):
    """
    The artifact of one worker could not be used.

    @ivar path: the L{FilePath} of the artifact.
    """

    def __init__(self, path, message):
        Exception.__init__(self, "%s: %s" % (path.path, message))
        self.path = path



class ArtifactMissing(ArtifactUnavailable):
    """
    The expected artifact does not exist.
    """



class ArtifactCorrupt(ArtifactUnavailable):
    """
    The artifact exists but could not be decoded.
    """



class ReplayError(Exception):
    """
    A recorded event kind is not part of the event vocabulary.  This is a
    protocol mismatch between the worker and the orchestrator, never
    degraded.
    """



class RecorderClosed(Exception):
    """
    An event was recorded after the recorder was closed.
    """



class RecordedError(Exception):
    """
    An error reported by a worker, carried as the text the worker rendered.

    @ivar detail: the rendered traceback or reason.
    @type detail: C{str}
    """

    def __init__(self, detail):
        Exception.__init__(self, detail)
        self.detail = detail



class ResultsUnavailable(RecordedError):
    """
    Substitute error reported for a test whose real result could not be
    produced.  The underlying problem is chained as C{__cause__}.
    """

    message = "Unable to produce results for this test"

    def __init__(self, reason):
        RecordedError.__init__(self, "%s: %s" % (self.message, reason))
        self.__cause__ = reason
