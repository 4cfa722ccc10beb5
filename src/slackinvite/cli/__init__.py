"""
This subpackage contains the Command-Line Interface of Slackinvite,
which is installed as the ``slackinvite`` command (see
:py:mod:`slackinvite.cli.__main__`).
"""

__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"
