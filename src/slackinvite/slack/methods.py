"""
This submodule provides a thin abstraction layer over the four methods of
the Slack API that this package needs: looking up a user by email, listing
the channels of the workspace, inviting users to a channel and removing a
user from a channel.

Every method takes the Slack API client explicitly, and reports any failure
(transport error, non-success HTTP status, or a payload with ``ok=false``)
by raising the exception of its stage, as defined in
:py:mod:`slackinvite.slack.exceptions`. There is deliberately no retry.
"""

import typing

import loguru
import slack_sdk
import slack_sdk.errors
import slack_sdk.web.slack_response

import slackinvite.slack.exceptions


__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "MAX_PAGE_SIZE",
    "CHANNEL_TYPE_PUBLIC",
    "CHANNEL_TYPE_PRIVATE",

    "users_lookup_by_email",
    "conversations_list_pages",
    "conversations_invite",
    "conversations_kick",
]


MAX_PAGE_SIZE: int = 200
"""
Page size requested when listing channels (see
`here <https://api.slack.com/methods/conversations.list#arg_limit>`_,
Slack recommends no more than 200 results at a time).
"""

CHANNEL_TYPE_PUBLIC = "public_channel"
CHANNEL_TYPE_PRIVATE = "private_channel"

HTTP_STATUS_OK = 200


logger = loguru.logger


_ExceptionFactory = typing.Callable[..., slackinvite.slack.exceptions.SlackInviteException]


def _response_body(response: typing.Any) -> typing.Any:
    # SlackResponse keeps the (decoded) body in `data`
    return getattr(response, "data", response)


def _response_error(response: typing.Any) -> typing.Optional[str]:
    body = _response_body(response)
    if isinstance(body, dict):
        return body.get("error")


def _api_call(
        client: slack_sdk.WebClient,
        method: str,
        make_exception: _ExceptionFactory,
        description: str,
        **kwargs
) -> slack_sdk.web.slack_response.SlackResponse:
    """
    Calls the method :py:data:`method` of the Slack API :py:data:`client`
    and returns the response if it is successful; otherwise, logs the
    response (the raw body, for a non-success HTTP status) and raises the
    exception built by :py:data:`make_exception`.
    """

    try:
        response = getattr(client, method)(**kwargs)

    except slack_sdk.errors.SlackApiError as exc:
        status_code = getattr(exc.response, "status_code", None)
        if status_code is not None and status_code != HTTP_STATUS_OK:
            logger.error(
                "{method}: non-200 status code ({status}): {body}",
                method=method,
                status=status_code,
                body=_response_body(exc.response),
            )
            raise make_exception(
                message="Non-200 status code ({}) while {}".format(status_code, description),
                error=_response_error(exc.response),
            ) from exc

        logger.debug("{method} response: {body}", method=method, body=_response_body(exc.response))
        raise make_exception(
            message="Non-ok response while {}".format(description),
            error=_response_error(exc.response),
        ) from exc

    except (slack_sdk.errors.SlackClientError, OSError) as exc:
        raise make_exception(
            message="Request failed while {}: {}".format(description, exc),
        ) from exc

    # clients configured not to raise on errors
    if not response.get("ok", False):
        logger.debug("{method} response: {body}", method=method, body=_response_body(response))
        raise make_exception(
            message="Non-ok response while {}".format(description),
            error=_response_error(response),
        )

    return response


def users_lookup_by_email(client: slack_sdk.WebClient, email: str) -> str:
    """
    Returns the Slack user ID of the account that owns the email address
    :py:data:`email`, using the
    `users.lookupByEmail <https://api.slack.com/methods/users.lookupByEmail>`_
    method (which requires the ``users:read.email`` scope).

    :param client: A logged-in Slack API client
    :param email: An email address

    :raises slackinvite.slack.exceptions.LookupFailed: If the lookup fails
        for any reason, including when no user owns that email

    :return: The Slack user ID (such as ``U0G9QF9C6``)
    """

    response = _api_call(
        client=client,
        method="users_lookupByEmail",
        make_exception=lambda **kwargs: slackinvite.slack.exceptions.LookupFailed(email=email, **kwargs),
        description="looking up user by email",
        email=email,
    )

    user_id = (response.get("user") or dict()).get("id")
    if user_id is None or user_id == "":
        raise slackinvite.slack.exceptions.LookupFailed(
            email=email,
            message="No user ID in response while looking up user by email",
        )

    return user_id


def conversations_list_pages(
        client: slack_sdk.WebClient,
        private: bool = False,
        page_size: int = MAX_PAGE_SIZE,
) -> typing.Iterator[typing.List[typing.Dict[str, typing.Any]]]:
    """
    Lazily yields the pages of non-archived channels of the workspace, of
    either public or private visibility (never both), using the
    `conversations.list <https://api.slack.com/methods/conversations.list>`_
    method. The cursor returned with each page is used to request the next
    one, until Slack returns an empty cursor.

    :param client: A logged-in Slack API client
    :param private: Flag to list private channels instead of public ones
        (requires the ``groups:read`` scope)
    :param page_size: Number of channels to request per page

    :raises slackinvite.slack.exceptions.DirectoryFetchFailed: As soon as
        a page cannot be retrieved

    :return: An iterator over the pages, each a list of channel objects
        (with at least the keys ``id`` and ``name``)
    """

    channel_type = CHANNEL_TYPE_PRIVATE if private else CHANNEL_TYPE_PUBLIC

    cursor = None
    while True:
        response = _api_call(
            client=client,
            method="conversations_list",
            make_exception=slackinvite.slack.exceptions.DirectoryFetchFailed,
            description="querying list of channels",
            cursor=cursor,
            exclude_archived=True,
            limit=page_size,
            types=channel_type,
        )

        yield response.get("channels") or []

        # paginate if necessary
        cursor = (response.get("response_metadata") or dict()).get("next_cursor")
        if cursor is None or cursor == "":
            break


def conversations_invite(
        client: slack_sdk.WebClient,
        channel_id: str,
        user_ids: typing.List[str],
) -> None:
    """
    Invites all the users :py:data:`user_ids` to the channel
    :py:data:`channel_id` in a single call to
    `conversations.invite <https://api.slack.com/methods/conversations.invite>`_,
    which succeeds or fails as a whole.

    :raises slackinvite.slack.exceptions.MutationFailed: If the call fails
    """

    _api_call(
        client=client,
        method="conversations_invite",
        make_exception=lambda **kwargs: slackinvite.slack.exceptions.MutationFailed(
            channel_id=channel_id, **kwargs),
        description="inviting users to channel",
        channel=channel_id,
        users=",".join(user_ids),
    )


def conversations_kick(
        client: slack_sdk.WebClient,
        channel_id: str,
        user_id: str,
) -> None:
    """
    Removes the user :py:data:`user_id` from the channel :py:data:`channel_id`
    with `conversations.kick <https://api.slack.com/methods/conversations.kick>`_
    (the API only supports removing users one at a time).

    :raises slackinvite.slack.exceptions.MutationFailed: If the call fails
    """

    _api_call(
        client=client,
        method="conversations_kick",
        make_exception=lambda **kwargs: slackinvite.slack.exceptions.MutationFailed(
            channel_id=channel_id, user_id=user_id, **kwargs),
        description="removing user from channel",
        channel=channel_id,
        user=user_id,
    )
