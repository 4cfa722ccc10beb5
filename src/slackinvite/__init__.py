
"""
Slackinvite is a Python Command-Line Interface to bulk-invite users
to (or remove users from) the channels of a Slack workspace, using
their email addresses and the human-readable names of the channels.
"""

__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

from slackinvite.__version__ import __version__, version_info
