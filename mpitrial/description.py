# -*- test-case-name: mpitrial.test.test_description -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Identifiers of suites and test methods, and their tagging with the index
of the worker which produced a result.
"""

from twisted.python.util import FancyEqMixin



class Description(FancyEqMixin, object):
    """
    Identify a suite or a test method of a suite.

    @ivar suiteName: fully qualified name of the test case class.
    @ivar methodName: name of the test method, or C{None} for the suite
        itself.
    @ivar configuration: name of the scenario the test ran with, or C{None}.
    @ivar workerIndex: index of the worker the result comes from, or
        C{None} when the description is not tagged.
    """

    compareAttributes = ('suiteName', 'methodName', 'configuration',
                         'workerIndex')

    def __init__(self, suiteName, methodName=None, configuration=None,
                 workerIndex=None):
        self.suiteName = suiteName
        self.methodName = methodName
        self.configuration = configuration
        self.workerIndex = workerIndex


    def __hash__(self):
        return hash((self.suiteName, self.methodName, self.configuration,
                     self.workerIndex))


    def __repr__(self):
        return "<Description %s>" % (self.id(),)


    def isSuite(self):
        """
        Return C{True} if this describes a suite rather than a method.
        """
        return self.methodName is None


    def tagged(self, workerIndex):
        """
        Return a copy of this description attributed to C{workerIndex}.
        Suite descriptions are shared by all workers and returned as is.
        """
        if self.isSuite():
            return self
        return Description(self.suiteName, self.methodName,
                           self.configuration, workerIndex)


    def untagged(self):
        """
        Return a copy of this description without worker attribution.
        """
        return Description(self.suiteName, self.methodName,
                           self.configuration)


    def displayName(self):
        """
        Return the name shown for this description: C{[k] method} when
        tagged with worker C{k}.
        """
        if self.isSuite():
            name = self.configuration or self.suiteName
        else:
            name = self.methodName
        if self.workerIndex is not None:
            return "[%d] %s" % (self.workerIndex, name)
        return name


    def id(self):
        """
        Return a dotted identifier nesting suite, configuration, method and
        worker, in this order.
        """
        segments = [self.suiteName]
        if self.configuration is not None:
            segments.append(self.configuration)
        if self.methodName is not None:
            segments.append(self.methodName)
            if self.workerIndex is not None:
                segments.append("[%d]" % (self.workerIndex,))
        return ".".join(segments)
