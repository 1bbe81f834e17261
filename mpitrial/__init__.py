# -*- test-case-name: mpitrial.test -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
This package implements mpitrial, a trial runner which hands each suite to a
group of cooperating worker processes and reports one result per test method
per worker:

  - The L{mpitrial.runner} module implements the orchestrator which launches
    the workers of every suite and reports the merged results, and the
    C{mpitrial} command.

  - The L{mpitrial.options} module defines the command line options and the
    validated configuration of a run.

  - The L{mpitrial.topology} module builds the tree of results a run is
    expected to report, before anything runs.

  - The L{mpitrial.launch} module translates a run request into the command
    of a backend, and L{mpitrial.supervisor} spawns it and enforces its
    deadline.

  - The L{mpitrial.worker} module is the main point of worker processes.  It
    runs a suite with a L{mpitrial.recorder.RecorderReporter}, which records
    every result into an artifact.

  - The L{mpitrial.artifact} module reads and writes artifacts, made of the
    AMP boxes of the commands defined in L{mpitrial.eventcommands}.

  - The L{mpitrial.aggregate} module replays the artifacts of a run, and
    L{mpitrial.degrade} reports substitute results when they are unavailable.

  - The L{mpitrial.notifier} module adapts the replayed events to any
    L{twisted.trial.itrial.IReporter}.

  - The L{mpitrial.multicore} module is a backend running all workers from a
    single local process.
"""
