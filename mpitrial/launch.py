# -*- test-case-name: mpitrial.test.test_launch -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Translation of a run request into the command launching its workers.

Every backend starts the workers with the interpreter of this process, the
instrumentation flags it was started with and its module search path, so
that coverage or profiling set up for the orchestrator follows the tests
into the workers.
"""

import os
import shlex
import sys
from collections import namedtuple

from twisted.python.procutils import which

from mpitrial.error import LaunchFailure, UnknownBackend


DEFAULT_ENTRY_POINT = 'mpitrial.worker'
PARAMETERIZED_ENTRY_POINT = 'mpitrial.paramworker'
MULTICORE_LAUNCHER = 'mpitrial.multicore'



class RunRequest(namedtuple('RunRequest', [
        'suiteName', 'workerCount', 'backend', 'entryPoint',
        'configurationIndex', 'timeout', 'backendOptions'])):
    """
    What to run: one suite, or one configuration of a parameterized suite,
    on C{workerCount} workers.

    @ivar suiteName: fully qualified name of the test case class.
    @ivar workerCount: number of workers, at least 1.
    @ivar backend: name of the backend launching the workers.
    @ivar entryPoint: module each worker runs.
    @ivar configurationIndex: index of the configuration to run, or C{None}.
    @ivar timeout: seconds before the workers are killed, C{0} to wait
        forever.
    @ivar backendOptions: options for the backend launcher, or C{None}.
    """

    def __new__(cls, suiteName, workerCount, backend='multicore',
                entryPoint=None, configurationIndex=None, timeout=0,
                backendOptions=None):
        if workerCount < 1:
            raise ValueError("A run needs at least one worker, not %d" % (
                workerCount,))
        if entryPoint is None:
            if configurationIndex is None:
                entryPoint = DEFAULT_ENTRY_POINT
            else:
                entryPoint = PARAMETERIZED_ENTRY_POINT
        return super(RunRequest, cls).__new__(
            cls, suiteName, workerCount, backend, entryPoint,
            configurationIndex, timeout, backendOptions)



class LaunchCommand(namedtuple('LaunchCommand', [
        'executable', 'args', 'env', 'path'])):
    """
    A process to spawn, in the terms of L{IReactorProcess.spawnProcess}.

    @ivar executable: the program to run.
    @ivar args: the argument vector, program name included.
    @ivar env: the environment of the process.
    @ivar path: its working directory.
    """

    def commandLine(self):
        """
        Return the argument vector quoted as a shell command line.
        """
        return " ".join(shlex.quote(arg) for arg in self.args)



def interpreterFlags():
    """
    Return the command line flags of this interpreter which should apply to
    workers as well: C{-X} options, C{-W} warning filters and C{-O}.
    """
    flags = []
    for name, value in sorted(getattr(sys, '_xoptions', {}).items()):
        if value is True:
            flags.extend(['-X', name])
        else:
            flags.extend(['-X', '%s=%s' % (name, value)])
    for option in sys.warnoptions:
        flags.extend(['-W', option])
    if sys.flags.optimize:
        flags.append('-' + 'O' * sys.flags.optimize)
    return flags



class LaunchCommandBuilder(object):
    """
    Build the L{LaunchCommand} of a L{RunRequest}.

    Backends:

      - C{native}: C{mpirun} starts one process per worker.

      - C{slurm}: C{srun} starts one process per worker, inside the Slurm
        allocation of the orchestrator.

      - C{multicore}: a single process, L{mpitrial.multicore}, starts the
        workers itself.

    @ivar artifactDirectory: path of the artifact directory passed to
        workers, or C{None}.
    @ivar libraryPath: native library directory added to the library search
        path of workers, or C{None}.
    @ivar executable: the Python interpreter of the workers.
    @ivar environ: the environment of this process.
    @ivar pythonPath: the module search path of this process.
    @ivar workingDirectory: the working directory of the workers.
    @ivar flags: interpreter flags of the workers.
    """

    which = staticmethod(which)

    def __init__(self, artifactDirectory=None, libraryPath=None,
                 executable=None, environ=None, pythonPath=None,
                 workingDirectory=None, flags=None):
        if executable is None:
            executable = sys.executable
        if environ is None:
            environ = os.environ
        if pythonPath is None:
            pythonPath = sys.path
        if workingDirectory is None:
            workingDirectory = os.getcwd()
        if flags is None:
            flags = interpreterFlags()
        self.artifactDirectory = artifactDirectory
        self.libraryPath = libraryPath
        self.executable = executable
        self.environ = environ
        self.pythonPath = pythonPath
        self.workingDirectory = workingDirectory
        self.flags = flags


    def build(self, request):
        """
        Return the L{LaunchCommand} starting the workers of C{request}.

        @raise UnknownBackend: if the backend of C{request} is not known.
        @raise LaunchFailure: if the backend cannot be used here.
        """
        builder = getattr(self, 'build_%s' % (request.backend,), None)
        if builder is None:
            raise UnknownBackend("Unknown backend <%s>" % (request.backend,))
        return builder(request)


    def environment(self):
        """
        Return the environment of workers: this one, with the module search
        path of this process and the native library directory.
        """
        env = dict(self.environ)
        paths = [os.path.abspath(entry) for entry in self.pythonPath if entry]
        env['PYTHONPATH'] = os.pathsep.join(paths)
        if self.libraryPath is not None:
            existing = env.get('LD_LIBRARY_PATH')
            if existing:
                env['LD_LIBRARY_PATH'] = os.pathsep.join(
                    [self.libraryPath, existing])
            else:
                env['LD_LIBRARY_PATH'] = self.libraryPath
        return env


    def workerArguments(self, request):
        """
        Return the arguments common to all backends, in order: suite,
        configuration index if any, artifact directory if any.
        """
        args = [request.suiteName]
        if request.configurationIndex is not None:
            args.append(str(request.configurationIndex))
        if self.artifactDirectory is not None:
            args.append(self.artifactDirectory)
        return args


    def _launcher(self, name):
        found = self.which(name)
        if not found:
            raise LaunchFailure(
                "%s was not found on the PATH. Cannot run the tests" % (name,))
        return found[0]


    def _options(self, request):
        if not request.backendOptions:
            return []
        return shlex.split(request.backendOptions)


    def _interpreter(self, request):
        return ([self.executable] + self.flags +
                ['-m', request.entryPoint] + self.workerArguments(request))


    def build_native(self, request):
        launcher = self._launcher('mpirun')
        args = ([launcher] + self._options(request) +
                ['-np', str(request.workerCount),
                 '-wdir', self.workingDirectory] +
                self._interpreter(request))
        return LaunchCommand(launcher, args, self.environment(),
                             self.workingDirectory)


    def build_slurm(self, request):
        if 'SLURM_JOB_ID' not in self.environ:
            raise LaunchFailure(
                "SLURM_JOB_ID was not set. Cannot run the tests outside of "
                "a Slurm allocation")
        launcher = self._launcher('srun')
        args = ([launcher] + self._options(request) +
                ['--ntasks', str(request.workerCount),
                 '--chdir', self.workingDirectory] +
                self._interpreter(request))
        return LaunchCommand(launcher, args, self.environment(),
                             self.workingDirectory)


    def build_multicore(self, request):
        args = ([self.executable] + self.flags +
                ['-m', MULTICORE_LAUNCHER,
                 '--workers', str(request.workerCount),
                 request.entryPoint] +
                self.workerArguments(request))
        return LaunchCommand(self.executable, args, self.environment(),
                             self.workingDirectory)
