"""
This submodule creates the Slack API client that is passed explicitly
to every remote call of :py:mod:`slackinvite.slack.methods`.
"""

import os
import typing

import loguru
import slack_sdk


__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "SLACK_TOKEN_VARIABLE",
    "get_token",
    "login",
]


try:
    import dotenv

    if not dotenv.load_dotenv():
        dotenv.load_dotenv(dotenv.find_dotenv())

except ImportError:
    raise


SLACK_TOKEN_VARIABLE = "SLACK_TOKEN"
"""
Name of the environment variable containing the "OAuth Access Token"
of the Slack app. To manage public channels, the token needs the scopes
``users:read``, ``users:read.email``, ``channels:read`` and
``channels:manage``; to manage private channels, it needs ``groups:read``
and ``groups:write`` instead of the last two.

The easiest way to obtain such a token is to:

1. Create `a new app for your workspace <https://api.slack.com/apps?new_app=1>`_.
2. Add the scopes above to the "User Token Scopes" section (or the
   "Bot Token Scopes" section, in which case the bot can only manage
   the private channels it is a member of).
3. Install the app to your workspace, and use the generated token
   from the "OAuth & Permissions" tab.
"""


logger = loguru.logger


def get_token(token: typing.Optional[str] = None) -> typing.Optional[str]:
    """
    Returns the provided :py:data:`token` if there is one, otherwise the
    token found in the environment (or in a ``.env`` file).
    """
    if token is not None:
        return token
    return os.getenv(SLACK_TOKEN_VARIABLE)


def login(
        token: typing.Optional[str] = None,
        silent_error: bool = False,
) -> typing.Optional[slack_sdk.WebClient]:
    """
    Returns a Slack API client authenticated (with a bearer token) by
    the provided token. The client never retries a failed request.

    :param token: A valid Slack OAuth token (if none is provided,
         will try to obtain it from the environment)

    :param silent_error: Flag whether to silently return :py:data:`None`
        when no valid token is available, instead of raising

    :raises PermissionError: If no token is available and
        :py:data:`silent_error` is :py:data:`False`

    :return: A Slack API client
    """

    token = get_token(token=token)

    if token is None or token == "":
        if silent_error:
            return
        raise PermissionError(
            "The `{}` variable is unset, and no `token` was provided. "
            "Cannot initialize Slack API client.".format(SLACK_TOKEN_VARIABLE))

    logger.debug("Creating Slack API client")

    # slack_sdk retries on connection errors unless given an empty list
    return slack_sdk.WebClient(token=token, retry_handlers=[])
