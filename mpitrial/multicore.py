# -*- test-case-name: mpitrial.test.test_multicore -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Backend running all workers from a single process on the local machine.

Usage::

    python -m mpitrial.multicore --workers N ENTRY [ARGUMENTS ...]

Each worker runs C{python -m ENTRY ARGUMENTS} with its index and the size of
the group in C{MPITRIAL_WORKER_INDEX} and C{MPITRIAL_WORKER_COUNT}.  The
launcher exits with status 0 if every worker did.
"""

import os
import sys

from twisted.internet.defer import gatherResults
from twisted.python import log
from twisted.python.usage import Options, UsageError

from mpitrial.launch import interpreterFlags
from mpitrial.supervisor import WorkerGroupProtocol, runUntilFired



class MulticoreOptions(Options):
    """
    Options of the multicore launcher.
    """

    synopsis = "python -m mpitrial.multicore [--workers N] entry [args ...]"

    optParameters = [
        ['workers', 'n', 1, 'Number of workers to start'],
        ]

    def opt_workers(self, number):
        """
        Parse the argument to the workers option, expecting a strictly
        positive integer.
        """
        try:
            number = int(number)
        except ValueError:
            raise UsageError(
                "argument to --workers must be a strictly positive integer")
        if number <= 0:
            raise UsageError(
                "argument to --workers must be a strictly positive integer")
        self['workers'] = number


    def parseArgs(self, entryPoint, *arguments):
        self['entry-point'] = entryPoint
        self['arguments'] = list(arguments)



class MulticoreLauncher(object):
    """
    Spawn the workers of a group and wait for all of them.

    @ivar reactor: a provider of L{IReactorProcess}.
    @ivar executable: the Python interpreter of the workers.
    @ivar environ: the environment the workers inherit.
    @ivar flags: interpreter flags of the workers.
    """

    def __init__(self, reactor, executable=None, environ=None, flags=None):
        if executable is None:
            executable = sys.executable
        if environ is None:
            environ = os.environ
        if flags is None:
            flags = interpreterFlags()
        self.reactor = reactor
        self.executable = executable
        self.environ = environ
        self.flags = flags


    def workerEnvironment(self, workerIndex, workerCount):
        """
        Return the environment of worker C{workerIndex}.
        """
        env = dict(self.environ)
        env['MPITRIAL_WORKER_INDEX'] = str(workerIndex)
        env['MPITRIAL_WORKER_COUNT'] = str(workerCount)
        return env


    def spawn(self, workerIndex, workerCount, entryPoint, arguments):
        """
        Spawn one worker.

        @return: a L{Deferred} firing with its exit code.
        """
        protocol = WorkerGroupProtocol()
        args = ([self.executable] + self.flags + ['-m', entryPoint] +
                list(arguments))
        self.reactor.spawnProcess(
            protocol, self.executable, args,
            env=self.workerEnvironment(workerIndex, workerCount),
            path=os.getcwd(), childFDs={0: 0, 1: 1, 2: 2})
        return protocol.ended


    def launch(self, workerCount, entryPoint, arguments):
        """
        Spawn C{workerCount} workers running C{entryPoint}.

        @return: a L{Deferred} firing with the number of workers which exited
            with a non-zero status.
        """
        ended = [self.spawn(workerIndex, workerCount, entryPoint, arguments)
                 for workerIndex in range(workerCount)]

        def count(exitCodes):
            failed = 0
            for workerIndex, exitCode in enumerate(exitCodes):
                if exitCode != 0:
                    log.msg(format="Worker %(worker)d exited with status "
                                   "%(status)r",
                            worker=workerIndex, status=exitCode)
                    failed += 1
            return failed

        return gatherResults(ended).addCallback(count)



def main(argv=None, reactor=None):
    """
    Main function to be run if __name__ == "__main__".
    """
    if argv is None:
        argv = sys.argv[1:]
    config = MulticoreOptions()
    try:
        config.parseOptions(argv)
    except UsageError as ue:
        raise SystemExit("%s: %s" % (config.synopsis, ue))
    if reactor is None:
        from twisted.internet import reactor
    launcher = MulticoreLauncher(reactor)
    failed = runUntilFired(
        reactor,
        lambda: launcher.launch(int(config['workers']), config['entry-point'],
                                config['arguments']))
    sys.exit(int(failed > 0))



if __name__ == '__main__':
    main()
