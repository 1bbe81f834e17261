# -*- test-case-name: mpitrial.test.test_supervisor -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Supervision of the process group running the workers of a run.
"""

import psutil

from twisted.internet.defer import Deferred, fail, maybeDeferred
from twisted.internet.error import ProcessDone
from twisted.internet.protocol import ProcessProtocol
from twisted.python import log
from twisted.python.failure import Failure

from mpitrial.error import LaunchFailure, WorkerGroupFailed, WorkerTimeout



class WorkerGroupProtocol(ProcessProtocol):
    """
    Process protocol of a launched worker group.  Output is not captured:
    the group writes directly to the standard streams of this process.

    @ivar ended: a L{Deferred} fired with the exit code of the process.
    """

    def __init__(self):
        self.ended = Deferred()


    def processEnded(self, reason):
        """
        Fire L{ended} with the exit code, or C{None} if the process was
        killed by a signal.
        """
        if reason.check(ProcessDone):
            self.ended.callback(0)
        else:
            self.ended.callback(reason.value.exitCode)



def killProcessTree(pid):
    """
    Kill the process C{pid} and all its descendants, children first.  The
    end of the process is reported by its protocol, so this does not wait.
    """
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    processes = parent.children(recursive=True) + [parent]
    for process in processes:
        try:
            process.kill()
        except psutil.NoSuchProcess:
            pass



class ProcessSupervisor(object):
    """
    Launch a worker group and wait for its termination, within an optional
    deadline.

    @ivar reactor: a provider of L{IReactorProcess} and L{IReactorTime}.
    """

    killProcessTree = staticmethod(killProcessTree)

    def __init__(self, reactor):
        self.reactor = reactor


    def launch(self, command, timeout=0):
        """
        Spawn C{command} with the standard streams of this process.

        @param command: a L{LaunchCommand}.
        @param timeout: seconds after which the whole process tree is
            killed; C{0} or less waits forever.

        @return: a L{Deferred} firing with C{None} once the group exited with
            status 0.  It fails with L{LaunchFailure} if the command could
            not be spawned, with L{WorkerTimeout} if the group was killed at
            the deadline, and with L{WorkerGroupFailed} if it exited with
            another status.
        """
        protocol = WorkerGroupProtocol()
        try:
            transport = self.reactor.spawnProcess(
                protocol, command.executable, command.args, env=command.env,
                path=command.path, childFDs={0: 0, 1: 1, 2: 2})
        except Exception as e:
            failure = LaunchFailure("Could not spawn %s: %s" % (
                command.executable, e))
            failure.__cause__ = e
            return fail(failure)

        expired = []
        deadline = None
        if timeout > 0:
            deadline = self.reactor.callLater(
                timeout, self._expire, transport, timeout, expired)

        def ended(exitCode):
            if deadline is not None and deadline.active():
                deadline.cancel()
            if expired:
                raise WorkerTimeout(
                    "Spawned worker group did not terminate within the %s "
                    "seconds allocated" % (timeout,))
            if exitCode != 0:
                raise WorkerGroupFailed(
                    "Worker group exited with status %r" % (exitCode,))
            log.msg("Worker group terminated")

        return protocol.ended.addCallback(ended)


    def _expire(self, transport, timeout, expired):
        log.msg(format="Spawned worker group did not terminate within the "
                       "%(timeout)s seconds allocated, killing it",
                timeout=timeout)
        expired.append(True)
        self.killProcessTree(transport.pid)



def runUntilFired(reactor, start):
    """
    Run C{reactor} until the L{Deferred} returned by C{start} fires, then
    stop it.

    @param start: a callable returning a L{Deferred}, called once the
        reactor runs.

    @return: the result of the L{Deferred}.
    @raise: the exception it failed with, if it failed.
    """
    outcome = []

    def begin():
        d = maybeDeferred(start)
        d.addBoth(outcome.append)
        d.addBoth(lambda ignored: reactor.stop())

    reactor.callWhenRunning(begin)
    reactor.run()
    result = outcome[0]
    if isinstance(result, Failure):
        result.raiseException()
    return result
