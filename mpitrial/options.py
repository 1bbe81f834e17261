# -*- test-case-name: mpitrial.test.test_options -*-
#
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Configuration of a run: command line options of C{mpitrial}, their
environment variable fallbacks, and the validated L{RunConfiguration} handed
to every component.
"""

import os

from twisted.python.filepath import FilePath
from twisted.python.usage import Options, UsageError

from mpitrial.degrade import FailureAction


BACKENDS = ('native', 'slurm', 'multicore')
DEFAULT_BACKEND = 'multicore'

TIME_UNITS = {
    'milliseconds': 0.001,
    'seconds': 1,
    'minutes': 60,
    'hours': 3600,
    }

ENVIRONMENT = {
    'action-on-error': 'MPITRIAL_ACTION_ON_ERROR',
    'dry-run': 'MPITRIAL_DRY_RUN',
    'library-path': 'MPITRIAL_LIBRARY_PATH',
    'backend': 'MPITRIAL_BACKEND',
    'backend-options': 'MPITRIAL_BACKEND_OPTIONS',
    'artifact-directory': 'MPITRIAL_ARTIFACT_DIRECTORY',
    'keep-artifacts': 'MPITRIAL_KEEP_ARTIFACTS',
    'parse-worker': 'MPITRIAL_PARSE_WORKER',
    'verbose': 'MPITRIAL_VERBOSE',
    'timeout': 'MPITRIAL_TIMEOUT',
    'time-unit': 'MPITRIAL_TIME_UNIT',
    }



def _parseBoolean(name, value):
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('', '0', 'false', 'no', 'off'):
        return False
    raise UsageError("%s must be true or false, not %r" % (name, value))



def _parseIndex(name, value):
    try:
        index = int(value)
    except ValueError:
        raise UsageError("%s must be an integer, not %r" % (name, value))
    if index < 0:
        raise UsageError("%s must not be negative" % (name,))
    return index



class RunConfiguration(object):
    """
    Settings of a run, validated once and then only read.

    @ivar action: the L{FailureAction} for unavailable results.
    @ivar dryRun: if C{True}, no process is launched and existing artifacts
        are collected.
    @ivar libraryPath: native library directory for the workers, or C{None}.
    @ivar backend: name of the backend launching workers.
    @ivar backendOptions: options passed to the backend launcher, as a
        string, or C{None}.
    @ivar artifactDirectory: L{FilePath} of the artifact directory, or
        C{None} for the working directory.
    @ivar keepArtifacts: if C{True}, artifacts are not deleted once read.
    @ivar parseWorker: if not C{None}, only this worker is collected.
    @ivar verbose: if C{True}, launch commands are echoed.
    @ivar timeout: seconds before the worker group is killed; C{0} waits
        forever.
    """

    def __init__(self, action=FailureAction.ERROR, dryRun=False,
                 libraryPath=None, backend=DEFAULT_BACKEND,
                 backendOptions=None, artifactDirectory=None,
                 keepArtifacts=False, parseWorker=None, verbose=False,
                 timeout=0):
        if backend not in BACKENDS:
            raise UsageError("Unknown backend %r, expected one of %s" % (
                backend, ", ".join(BACKENDS)))
        if parseWorker is not None and parseWorker < 0:
            raise UsageError("parse-worker must not be negative")
        if artifactDirectory is not None and not isinstance(
                artifactDirectory, FilePath):
            artifactDirectory = FilePath(artifactDirectory)
        self.action = action
        self.dryRun = dryRun
        self.libraryPath = libraryPath
        self.backend = backend
        self.backendOptions = backendOptions
        self.artifactDirectory = artifactDirectory
        self.keepArtifacts = keepArtifacts
        self.parseWorker = parseWorker
        self.verbose = verbose
        self.timeout = max(0, timeout)


    @property
    def retainArtifacts(self):
        """
        Whether artifacts survive collection.  Dry runs always keep them,
        since they may be the only copy of results produced elsewhere.
        """
        return self.keepArtifacts or self.dryRun


    @classmethod
    def fromOptions(cls, options, environ=None):
        """
        Build a configuration from parsed L{RunOptions}, falling back to
        environment variables for options left unset.

        @raise UsageError: if a value is invalid.
        """
        if environ is None:
            environ = os.environ

        def setting(name):
            value = options.get(name)
            if not value:
                value = environ.get(ENVIRONMENT[name], value)
            return value

        action = setting('action-on-error') or 'error'
        try:
            action = FailureAction.lookupByName(action.upper())
        except ValueError:
            raise UsageError(
                "action-on-error must be error, skip or silent, not %r" % (
                    action,))

        def flag(name):
            value = setting(name)
            if isinstance(value, str):
                return _parseBoolean(ENVIRONMENT[name], value)
            return bool(value)

        parseWorker = setting('parse-worker')
        if parseWorker is not None:
            parseWorker = _parseIndex('parse-worker', parseWorker)

        timeUnit = setting('time-unit') or 'seconds'
        if timeUnit not in TIME_UNITS:
            raise UsageError("time-unit must be one of %s, not %r" % (
                ", ".join(sorted(TIME_UNITS)), timeUnit))
        timeout = setting('timeout') or '0'
        try:
            timeout = float(timeout) * TIME_UNITS[timeUnit]
        except ValueError:
            raise UsageError("timeout must be a number, not %r" % (timeout,))

        return cls(action=action,
                   dryRun=flag('dry-run'),
                   libraryPath=setting('library-path'),
                   backend=setting('backend') or DEFAULT_BACKEND,
                   backendOptions=setting('backend-options'),
                   artifactDirectory=setting('artifact-directory'),
                   keepArtifacts=flag('keep-artifacts'),
                   parseWorker=parseWorker,
                   verbose=flag('verbose'),
                   timeout=timeout)



class RunOptions(Options):
    """
    Options of the C{mpitrial} command.
    """

    synopsis = "mpitrial [options] suite [suite ...]"

    longdesc = ("Run trial test case classes on several cooperating worker "
                "processes and report one result per test method per worker. "
                "Options left unset fall back to MPITRIAL_* environment "
                "variables.")

    optFlags = [
        ['dry-run', None,
         'Do not launch workers, collect existing artifacts (implies '
         '--keep-artifacts)'],
        ['keep-artifacts', None, 'Do not delete artifacts once read'],
        ['verbose', 'v', 'Echo launch commands and log to stderr'],
        ]

    optParameters = [
        ['workers', 'n', 4, 'Number of workers'],
        ['backend', 'b', None,
         'Backend launching the workers: %s (default: %s)' % (
             ", ".join(BACKENDS), DEFAULT_BACKEND)],
        ['backend-options', None, None,
         'Options passed to the backend launcher'],
        ['entry-point', None, None,
         'Module run by each worker (default: mpitrial.worker, or '
         'mpitrial.paramworker for suites with scenarios)'],
        ['artifact-directory', 'd', None,
         'Directory holding artifacts (default: working directory)'],
        ['library-path', None, None,
         'Native library directory for the workers'],
        ['action-on-error', None, None,
         'Results reported when none could be produced: error, skip or '
         'silent (default: error)'],
        ['parse-worker', None, None,
         'Only collect the results of this worker'],
        ['timeout', 't', None,
         'Kill the workers after this long, 0 to wait forever'],
        ['time-unit', None, None,
         'Unit of --timeout: %s (default: seconds)' % (
             ", ".join(sorted(TIME_UNITS)),)],
        ]

    def __init__(self):
        Options.__init__(self)
        self['suites'] = []


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


    def parseArgs(self, *suites):
        self['suites'].extend(suites)


    def postOptions(self):
        if not self['suites']:
            raise UsageError("At least one suite is required")
        self['configuration'] = RunConfiguration.fromOptions(self)
