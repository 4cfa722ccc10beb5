"""
This submodule contains the macros to bulk-invite users to, or remove users
from, Slack channels, given the users' emails and the channels' names.

Because the Slack API only deals in user and channel IDs, this is done in
three sequential stages:

1. look up the Slack user ID of each email (:py:func:`resolve_users`);
2. retrieve all the channels (public or private) of the workspace, to map
   their names to their IDs (:py:func:`fetch_channel_directory`);
3. for each requested channel, invite or remove the users
   (:py:func:`apply_membership`).

:py:func:`bulk_membership` chains the three stages.
"""

import contextlib
import enum
import typing

import loguru
import slack_sdk

import slackinvite.helpers.collections
import slackinvite.slack.exceptions
import slackinvite.slack.methods


__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "Action",
    "ChannelState",
    "Identity",
    "MembershipMutation",
    "MembershipReport",

    "resolve_users",
    "resolved_user_ids",
    "fetch_channel_directory",
    "mutate_membership",
    "apply_membership",
    "bulk_membership",
]


DRY_RUN_BY_DEFAULT = False
"""
Global flag to indicate whether operations in this module should be
dry-runs by default or not. In a dry-run, users and channels are resolved
but no channel membership is modified.
"""


# Logger
logger = loguru.logger


class Action(enum.Enum):
    ADD = "add"
    REMOVE = "remove"


class ChannelState(enum.Enum):
    """
    State of the processing of one requested channel: a channel starts
    ``PENDING``, then is either ``RESOLVED`` (its ID is known) or
    ``NOT_FOUND``; a resolved channel then ends up ``MUTATED`` or
    ``FAILED``, except in a dry-run where it stays ``RESOLVED``.
    """
    PENDING = "pending"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    MUTATED = "mutated"
    FAILED = "failed"


class Identity:
    """
    The outcome of the lookup of one email address: either a Slack user
    ID, or the error explaining why the lookup failed.
    """

    def __init__(
            self,
            email: str,
            user_id: typing.Optional[str] = None,
            error: typing.Optional[slackinvite.slack.exceptions.SlackInviteException] = None,
    ):
        self.email = email
        self.user_id = user_id
        self.error = error

    @property
    def ok(self) -> bool:
        return self.user_id is not None

    def __repr__(self):
        if self.ok:
            return "Identity(email={!r}, user_id={!r})".format(self.email, self.user_id)
        return "Identity(email={!r}, error={!r})".format(self.email, str(self.error))


class MembershipMutation:
    """
    A request to invite users to (or remove users from) one channel,
    along with the progress made on it.
    """

    def __init__(
            self,
            channel_name: str,
            user_ids: typing.List[str],
            action: Action,
            channel_id: typing.Optional[str] = None,
    ):
        self.channel_name = channel_name
        self.channel_id = channel_id
        self.user_ids = list(user_ids)
        self.action = action
        self.state = ChannelState.PENDING
        self.error: typing.Optional[slackinvite.slack.exceptions.SlackInviteException] = None

        # user IDs for which the remote call succeeded
        self.processed_user_ids: typing.List[str] = []

    def __repr__(self):
        return "MembershipMutation(channel_name={!r}, channel_id={!r}, action={}, state={})".format(
            self.channel_name,
            self.channel_id,
            self.action.value,
            self.state.value,
        )


class MembershipReport:

    def __init__(
            self,
            identities: typing.List[Identity],
            directory_size: int = 0,
            mutations: typing.Optional[typing.List[MembershipMutation]] = None,
            dry_run: bool = False,
    ):
        self.identities = identities
        self.directory_size = directory_size
        self.mutations = mutations if mutations is not None else []
        self.dry_run = dry_run

    @property
    def user_ids(self) -> typing.List[str]:
        return resolved_user_ids(self.identities)

    @property
    def unresolved_emails(self) -> typing.List[str]:
        return [identity.email for identity in self.identities if not identity.ok]

    def channels_in_state(self, state: ChannelState) -> typing.List[MembershipMutation]:
        return [mutation for mutation in self.mutations if mutation.state == state]

    def count(self, state: ChannelState) -> int:
        return len(self.channels_in_state(state))


# =============================================================================
# Stage 1: users


def resolve_users(
        client: slack_sdk.WebClient,
        emails: typing.Iterable[str],
) -> typing.List[Identity]:
    """
    Looks up the Slack user ID of each of the :py:data:`emails`, one
    email at a time and exactly once per email. A failed lookup is logged
    and does not prevent the lookup of the remaining emails.

    :param client: A logged-in Slack API client
    :param emails: The email addresses to look up

    :return: One :py:class:`Identity` per email, in the same order
    """

    identities = []

    for email in emails:
        try:
            user_id = slackinvite.slack.methods.users_lookup_by_email(
                client=client,
                email=email,
            )
        except slackinvite.slack.exceptions.LookupFailed as exc:
            logger.error("Error while looking up user with email {}: {}", email, exc)
            identities.append(Identity(email=email, error=exc))
            continue

        logger.info("Valid user (ID: {}) found for '{}'", user_id, email)
        identities.append(Identity(email=email, user_id=user_id))

    return identities


def resolved_user_ids(identities: typing.Iterable[Identity]) -> typing.List[str]:
    """
    Returns the user IDs of the successfully resolved identities,
    preserving their order.
    """
    return [identity.user_id for identity in identities if identity.ok]


# =============================================================================
# Stage 2: channels


def fetch_channel_directory(
        client: slack_sdk.WebClient,
        private: bool = False,
        page_size: int = slackinvite.slack.methods.MAX_PAGE_SIZE,
) -> typing.Dict[str, str]:
    """
    Returns a dictionary mapping the name of every non-archived channel of
    the workspace, either all public or all private, to its ID. All pages
    are retrieved before returning.

    .. note::
        Channel names are only unique among non-archived channels of the
        same type, so should two channels share a name, the last one
        listed by Slack wins.

    :param client: A logged-in Slack API client
    :param private: Flag to retrieve private channels instead of public ones
    :param page_size: Number of channels to request per page

    :raises slackinvite.slack.exceptions.DirectoryFetchFailed: If any page
        cannot be retrieved (no partial directory is ever returned)

    :return: The dictionary mapping channel names to channel IDs
    """

    name_to_id = dict()

    pages = slackinvite.slack.methods.conversations_list_pages(
        client=client,
        private=private,
        page_size=page_size,
    )

    for page in pages:
        logger.debug("# of channels returned in page: {}", len(page))

        for channel in page:
            name_to_id[channel["name"]] = channel["id"]

    logger.debug("Total # of channels retrieved: {}", len(name_to_id))

    return name_to_id


# =============================================================================
# Stage 3: memberships


def _invite_users(
        client: slack_sdk.WebClient,
        mutation: MembershipMutation,
) -> None:
    slackinvite.slack.methods.conversations_invite(
        client=client,
        channel_id=mutation.channel_id,
        user_ids=mutation.user_ids,
    )
    mutation.processed_user_ids = list(mutation.user_ids)


def _remove_users(
        client: slack_sdk.WebClient,
        mutation: MembershipMutation,
) -> None:
    # API only supports removing users one at a time; stop at the first failure
    for user_id in mutation.user_ids:
        try:
            slackinvite.slack.methods.conversations_kick(
                client=client,
                channel_id=mutation.channel_id,
                user_id=user_id,
            )
        except slackinvite.slack.exceptions.MutationFailed as exc:
            logger.debug(
                "Error while removing user {} from channel {}: {}",
                user_id, mutation.channel_id, exc,
            )
            raise
        mutation.processed_user_ids.append(user_id)


def mutate_membership(
        client: slack_sdk.WebClient,
        mutation: MembershipMutation,
        dry_run: typing.Optional[bool] = None,
) -> MembershipMutation:
    """
    Carries out one resolved :py:class:`MembershipMutation`: either invites
    all its users in a single call, or removes its users one at a time,
    stopping at the first failure. The outcome is recorded in the
    ``state`` (and ``error``) of the mutation, which is also returned.

    :param client: A logged-in Slack API client
    :param mutation: A mutation whose ``channel_id`` is known
    :param dry_run: Flag to only log what would be done

    :return: The updated mutation
    """

    if dry_run is None:
        dry_run = DRY_RUN_BY_DEFAULT

    if mutation.channel_id is None:
        raise ValueError("cannot modify the membership of an unresolved channel")

    mutation.state = ChannelState.RESOLVED

    if dry_run:
        logger.info(
            "Dry-run: would {} {} user(s) {} '{}' ({})",
            "invite" if mutation.action == Action.ADD else "remove",
            len(mutation.user_ids),
            "to" if mutation.action == Action.ADD else "from",
            mutation.channel_name,
            mutation.channel_id,
        )
        return mutation

    try:
        if mutation.action == Action.ADD:
            _invite_users(client=client, mutation=mutation)
        else:
            _remove_users(client=client, mutation=mutation)

    except slackinvite.slack.exceptions.MutationFailed as exc:
        mutation.state = ChannelState.FAILED
        mutation.error = exc
        logger.error(
            "Error while {} users {} {} ({}){}: {}",
            "inviting" if mutation.action == Action.ADD else "removing",
            "to" if mutation.action == Action.ADD else "from",
            mutation.channel_name,
            mutation.channel_id,
            "" if exc.user_id is None else " at user {}".format(exc.user_id),
            exc,
        )
        return mutation

    mutation.state = ChannelState.MUTATED
    logger.info(
        "Users {} '{}'",
        "invited to" if mutation.action == Action.ADD else "removed from",
        mutation.channel_name,
    )
    return mutation


def apply_membership(
        client: slack_sdk.WebClient,
        channel_names: typing.Iterable[str],
        user_ids: typing.List[str],
        directory: typing.Dict[str, str],
        action: typing.Union[Action, str] = Action.ADD,
        dry_run: typing.Optional[bool] = None,
) -> typing.List[MembershipMutation]:
    """
    Invites the users :py:data:`user_ids` to (or removes them from) each of
    the channels :py:data:`channel_names`, in order. A channel missing from
    the :py:data:`directory` is skipped, and a failure on one channel does
    not prevent processing the next ones.

    :param client: A logged-in Slack API client
    :param channel_names: The names of the channels to modify
    :param user_ids: A non-empty list of Slack user IDs
    :param directory: A complete mapping of channel names to IDs, as
        returned by :py:func:`fetch_channel_directory`
    :param action: Whether to add or remove the users
    :param dry_run: Flag to only log what would be done

    :return: One :py:class:`MembershipMutation` per requested channel
    """

    action = Action(action)

    if len(user_ids) == 0:
        raise ValueError("`user_ids` is not supposed to be empty")

    mutations = []

    for channel_name in channel_names:
        channel_name = slackinvite.helpers.collections.normalize_channel_name(channel_name)

        mutation = MembershipMutation(
            channel_name=channel_name,
            user_ids=user_ids,
            action=action,
            channel_id=directory.get(channel_name),
        )
        mutations.append(mutation)

        if mutation.channel_id is None or mutation.channel_id == "":
            mutation.channel_id = None
            mutation.state = ChannelState.NOT_FOUND
            logger.warning("Channel '{}' not found -- skipping", channel_name)
            continue

        mutate_membership(client=client, mutation=mutation, dry_run=dry_run)

    return mutations


# =============================================================================


def _no_stage(name: str) -> typing.ContextManager:
    return contextlib.nullcontext(name)


def bulk_membership(
        client: slack_sdk.WebClient,
        emails: typing.Iterable[str],
        channel_names: typing.Iterable[str],
        action: typing.Union[Action, str] = Action.ADD,
        private: bool = False,
        dry_run: typing.Optional[bool] = None,
        stage: typing.Optional[typing.Callable[[str], typing.ContextManager]] = None,
) -> MembershipReport:
    """
    Invites the users owning the :py:data:`emails` to (or removes them
    from) the channels :py:data:`channel_names`: resolves the users, then
    retrieves the full directory of channels, then modifies each channel.

    :param client: A logged-in Slack API client
    :param emails: The email addresses of the users
    :param channel_names: The names of the channels
    :param action: Whether to add or remove the users
    :param private: Flag to operate on private channels instead of
        public ones
    :param dry_run: Flag to only log what would be done
    :param stage: Optional factory of a context manager wrapping each
        stage, called with the name of the stage (``"users"``,
        ``"channels"`` or ``"membership"``)

    :raises slackinvite.slack.exceptions.NoUsersResolved: If none of the
        emails could be resolved (no channel is retrieved or modified)

    :raises slackinvite.slack.exceptions.DirectoryFetchFailed: If the list
        of channels could not be fully retrieved (no channel is modified)

    :return: A :py:class:`MembershipReport` of the whole operation
    """

    action = Action(action)

    if dry_run is None:
        dry_run = DRY_RUN_BY_DEFAULT

    if stage is None:
        stage = _no_stage

    # lookup users by email
    with stage("users"):
        identities = resolve_users(client=client, emails=emails)

    user_ids = resolved_user_ids(identities)
    if len(user_ids) == 0:
        raise slackinvite.slack.exceptions.NoUsersResolved(
            message="No users found - aborting",
        )

    # get all channels
    with stage("channels"):
        directory = fetch_channel_directory(client=client, private=private)

    # invite/remove users to each channel
    with stage("membership"):
        mutations = apply_membership(
            client=client,
            channel_names=channel_names,
            user_ids=user_ids,
            directory=directory,
            action=action,
            dry_run=dry_run,
        )

    return MembershipReport(
        identities=identities,
        directory_size=len(directory),
        mutations=mutations,
        dry_run=dry_run,
    )
