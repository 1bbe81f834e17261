# -*- test-case-name: mpitrial.test.test_aggregate -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Collection of the artifacts left by the workers of a run and replay of their
events, in a fixed order, onto a single L{IRunNotifier}.
"""

from twisted.python import log

from mpitrial.artifact import artifactPath, readArtifact
from mpitrial.degrade import DegradationPolicy
from mpitrial.error import ArtifactUnavailable
from mpitrial.events import replay



class ResultAggregator(object):
    """
    Read back the artifacts of a run and replay them.

    Workers are processed in ascending index order and the events of each
    worker in the order they were recorded.  Nothing is reordered, merged or
    filtered: test descriptions are only tagged with the index of the worker
    which produced them.

    @ivar directory: the L{FilePath} of the directory holding artifacts, or
        C{None} for the working directory.
    @ivar retainArtifacts: if C{False}, artifacts are deleted once read.
    @ivar policy: the L{DegradationPolicy} applied to unreadable artifacts.
    """

    def __init__(self, directory=None, retainArtifacts=False, policy=None):
        if policy is None:
            policy = DegradationPolicy()
        self.directory = directory
        self.retainArtifacts = retainArtifacts
        self.policy = policy


    def workerIndexes(self, request, onlyWorker=None):
        """
        Return the indexes of the workers to collect, in processing order.
        """
        if onlyWorker is not None:
            return [onlyWorker]
        return list(range(request.workerCount))


    def read(self, request, workerIndex):
        """
        Return the events recorded by worker C{workerIndex}, deleting its
        artifact unless artifacts are retained.

        @raise ArtifactUnavailable: if the artifact is missing or corrupt.
        """
        path = artifactPath(self.directory, request.suiteName, workerIndex,
                            request.configurationIndex)
        events = readArtifact(path)
        if not self.retainArtifacts:
            path.remove()
        return events


    def collect(self, request, sink, methods, configuration=None,
                onlyWorker=None):
        """
        Replay the results of every worker of C{request} onto C{sink}.

        @param request: the L{RunRequest} the workers ran.
        @param sink: an L{IRunNotifier} provider.
        @param methods: names of the test methods of the suite, for the
            substitute results of unreadable artifacts.
        @param configuration: the configuration name, for parameterized
            suites.
        @param onlyWorker: if not C{None}, only collect this worker, and do
            not tag its results.

        @raise ReplayError: if an artifact records an unknown event kind.
        """
        tag = onlyWorker is None
        for workerIndex in self.workerIndexes(request, onlyWorker):
            try:
                events = self.read(request, workerIndex)
            except ArtifactUnavailable as e:
                self.policy.artifactUnavailable(
                    sink, request.suiteName, methods, workerIndex, e,
                    configuration, tag)
                continue
            log.msg(format="Replaying %(count)d events of worker %(worker)d",
                    count=len(events), worker=workerIndex)
            if tag:
                events = [event.tagged(workerIndex) for event in events]
            replay(events, sink)
