# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Interfaces of the objects which receive test events.
"""

from zope.interface import Interface



class IRunNotifier(Interface):
    """
    Receiver of the events of a test run.  The recorder used inside workers
    and the report sink of the orchestrator both provide this interface.

    Descriptions are L{mpitrial.description.Description} instances; errors
    are L{mpitrial.error.RecordedError} instances.
    """

    def testRunPlanned(topology):
        """
        Announce the tests which are expected to report results.

        @param topology: the root L{mpitrial.topology.TopologyNode}.
        """


    def suiteStarted(description):
        """
        A suite (or one configuration of a suite) started.
        """


    def suiteFinished(description):
        """
        A suite (or one configuration of a suite) finished.
        """


    def testStarted(description):
        """
        A test method started.
        """


    def testFinished(description):
        """
        A test method finished, whatever its outcome.
        """


    def testIgnored(description):
        """
        A test method was declared skipped and did not run.
        """


    def testFailed(description, error):
        """
        A started test method failed or raised an error.
        """


    def testAssumptionFailed(description, error):
        """
        A started test method skipped itself at run time.
        """
