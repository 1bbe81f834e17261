# -*- test-case-name: mpitrial.test.test_topology -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Description of the tests a run is expected to report, built before anything
runs.
"""

from twisted.python.reflect import namedAny, qual
from twisted.trial.runner import TestLoader

from mpitrial.description import Description



class TopologyNode(object):
    """
    A node of the tree of expected results.

    @ivar name: the name displayed for the node.
    @ivar description: the L{Description} of the test this node stands for,
        set on leaves only.
    @ivar children: the child nodes, in order.
    """

    def __init__(self, name, description=None):
        self.name = name
        self.description = description
        self.children = []


    def __repr__(self):
        return "<TopologyNode %s (%d children)>" % (self.name,
                                                   len(self.children))


    def addChild(self, child):
        """
        Append C{child} to the children of this node and return it.
        """
        self.children.append(child)
        return child


    def leaves(self):
        """
        Iterate over the leaves below this node, depth first: the nodes
        standing for a test result.
        """
        if self.description is not None:
            yield self
        for child in self.children:
            for leaf in child.leaves():
                yield leaf


    def countLeaves(self):
        """
        Return the number of leaves below this node.
        """
        return len(list(self.leaves()))



def _methodNodes(parent, suiteName, methods, workerCount, configuration,
                 onlyWorker):
    for methodName in methods:
        description = Description(suiteName, methodName, configuration)
        if onlyWorker is not None:
            parent.addChild(TopologyNode(methodName, description))
            continue
        methodNode = parent.addChild(TopologyNode(methodName))
        for workerIndex in range(workerCount):
            leaf = description.tagged(workerIndex)
            methodNode.addChild(TopologyNode(leaf.displayName(), leaf))



def buildTopology(suiteName, methods, workerCount, configurations=None,
                  onlyWorker=None):
    """
    Build the tree of results expected from running a suite on
    C{workerCount} workers: suite, then configuration for parameterized
    suites, then method, then one leaf per worker.

    @param methods: names of the test methods of the suite.
    @param configurations: names of the configurations of a parameterized
        suite, or C{None}.
    @param onlyWorker: if not C{None}, only the results of this worker are
        expected and they are not tagged, so methods are leaves.

    @rtype: L{TopologyNode}
    """
    root = TopologyNode(suiteName, None)
    if configurations is None:
        _methodNodes(root, suiteName, methods, workerCount, None, onlyWorker)
    else:
        for configuration in configurations:
            node = root.addChild(TopologyNode(configuration))
            _methodNodes(node, suiteName, methods, workerCount, configuration,
                         onlyWorker)
    return root



def loadSuiteClass(suiteName):
    """
    Return the test case class named C{suiteName}.
    """
    return namedAny(suiteName)



def declaredMethods(suiteClass, loader=None):
    """
    Return the names of the test methods of C{suiteClass}, in the order
    trial runs them.
    """
    if loader is None:
        loader = TestLoader()
    return [test._testMethodName
            for test in _iterateTests(loader.loadClass(suiteClass))]



def declaredConfigurations(suiteClass):
    """
    Return the names of the scenarios of a parameterized suite, or C{None}
    if C{suiteClass} has no C{scenarios} attribute.

    Scenarios are declared as a list of C{(name, attributes)} pairs; each
    configuration runs every test method with C{attributes} set on the test
    case.
    """
    scenarios = getattr(suiteClass, 'scenarios', None)
    if scenarios is None:
        return None
    return [name for (name, attributes) in scenarios]



def suiteIdentifier(suiteClass):
    """
    Return the identifier of C{suiteClass}.
    """
    return qual(suiteClass)



def _iterateTests(suite):
    """
    Iterate over the test cases of a possibly nested suite.
    """
    try:
        tests = iter(suite)
    except TypeError:
        yield suite
    else:
        for test in tests:
            for case in _iterateTests(test):
                yield case
