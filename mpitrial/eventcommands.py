# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
AMP commands describing the records of an artifact.  They are never sent
over a connection: their argument lists give the schema each recorded event
is encoded with.
"""

from twisted.protocols.amp import Command, Unicode, Integer



_description = [(b'suiteName', Unicode()),
                (b'methodName', Unicode(optional=True)),
                (b'configuration', Unicode(optional=True)),
                (b'workerIndex', Integer(optional=True))]



class LogHeader(Command):
    """
    First record of an artifact.
    """
    arguments = [(b'version', Integer())]



class LogTrailer(Command):
    """
    Last record of an artifact, counting the events before it.
    """
    arguments = [(b'count', Integer())]



class SuiteStarted(Command):
    """
    A suite started.
    """
    arguments = _description



class SuiteFinished(Command):
    """
    A suite finished.
    """
    arguments = _description



class TestStarted(Command):
    """
    A test started.
    """
    arguments = _description



class TestFinished(Command):
    """
    A test finished.
    """
    arguments = _description



class TestIgnored(Command):
    """
    A test was ignored.
    """
    arguments = _description



class TestFailed(Command):
    """
    A test failed.
    """
    arguments = _description + [(b'error', Unicode())]



class TestAssumptionFailed(Command):
    """
    A test skipped itself while running.
    """
    arguments = _description + [(b'error', Unicode())]
