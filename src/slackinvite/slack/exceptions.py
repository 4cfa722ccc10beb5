"""
This submodule contains the exceptions raised by the remote calls to the
Slack API (see :py:mod:`slackinvite.slack.methods`) and by the membership
pipeline (see :py:mod:`slackinvite.macros.membership`). All of them derive
from :py:exc:`SlackInviteException`, and are distinguished only by the
stage of the pipeline that produced them.
"""

import typing


__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "SlackInviteException",
    "LookupFailed",
    "DirectoryFetchFailed",
    "MutationFailed",
    "NoUsersResolved",
]


class SlackInviteException(Exception):

    def __init__(
            self,
            message: str = "",
            error: typing.Optional[str] = None,
            *args,
            **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self._message = message
        self._error = error

    def __str__(self):
        if self._error is not None:
            return "{} ({})".format(self.message, self._error)
        return self.message

    @property
    def message(self) -> str:
        return self._message if self._message is not None else ""

    @property
    def error(self) -> typing.Optional[str]:
        """
        The error code reported by the Slack API in the ``error`` field of
        its payload (such as ``users_not_found``), if any.
        """
        return self._error


class LookupFailed(SlackInviteException):
    """Raised when an email could not be resolved to a Slack user ID."""

    def __init__(self, email: str, message: str = "", error: typing.Optional[str] = None):
        super().__init__(message=message, error=error)
        self.email = email


class DirectoryFetchFailed(SlackInviteException):
    """Raised when any page of the list of channels could not be retrieved."""
    pass


class MutationFailed(SlackInviteException):
    """Raised when users could not be invited to, or removed from, a channel."""

    def __init__(
            self,
            channel_id: str,
            user_id: typing.Optional[str] = None,
            message: str = "",
            error: typing.Optional[str] = None,
    ):
        super().__init__(message=message, error=error)
        self.channel_id = channel_id
        self.user_id = user_id


class NoUsersResolved(SlackInviteException):
    """Raised when none of the provided emails could be resolved."""
    pass
