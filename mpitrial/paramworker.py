# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Worker entry point for one configuration of a parameterized suite.

Usage::

    python -m mpitrial.paramworker SUITE CONFIGURATION-INDEX [DIRECTORY]
"""

from mpitrial.worker import main


if __name__ == '__main__':
    main(parameterized=True)
