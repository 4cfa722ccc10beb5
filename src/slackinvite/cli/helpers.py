
import contextlib
import sys
import typing

import click
import click_help_colors
import click_spinner
import loguru
import slack_sdk

import slackinvite.__version__
import slackinvite.macros.membership
import slackinvite.slack.clients


__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "chain_functions",
    "configure_logging",
    "stage_printer",

    "SlackinviteCliContextObject",
    "AbstractSlackinviteCliContext",

    "cli_root_command_green",
    "cli_opt_token",
    "cli_opt_emails",
    "cli_opt_channels",
    "cli_opt_action",
    "cli_opt_private",
    "cli_opt_debug",
    "cli_opt_dry_run",

    "cli_root",
]


logger = loguru.logger


# From: https://stackoverflow.com/a/58005342/408734
def chain_functions(*funcs: typing.List[typing.Callable]) -> typing.Callable:

    def _chain(*args, **kwargs):
        cur_args, cur_kwargs = args, kwargs
        ret = None
        for f in reversed(funcs):
            f = typing.cast(typing.Callable, f)
            cur_args, cur_kwargs = (f(*cur_args, **cur_kwargs), ), {}
            ret = cur_args[0]
        return ret

    return _chain


def _echo_err(message: str) -> None:
    # resolve stderr at call time, so that redirections (and tests) apply
    click.echo(message, err=True, nl=False)


def configure_logging(debug: bool = False) -> None:
    """
    Replaces the default :py:mod:`loguru` handler with one that writes plain
    diagnostic lines to stderr, at ``DEBUG`` level when :py:data:`debug` is
    set and at ``INFO`` level otherwise.
    """
    logger.remove()
    logger.add(
        _echo_err,
        level="DEBUG" if debug else "INFO",
        format="{message}" if not debug else "<level>{level: <8}</level> {message}",
        colorize=False,
    )


_STAGE_HEADERS = {
    "users": "Looking up users ...",
    "channels": "Retrieving {visibility} channels ...",
    "membership": {
        slackinvite.macros.membership.Action.ADD: "Inviting users to channels ...",
        slackinvite.macros.membership.Action.REMOVE: "Removing users from channels ...",
    },
}


def stage_printer(
        action: slackinvite.macros.membership.Action,
        private: bool = False,
        spinner: bool = True,
) -> typing.Callable[[str], typing.ContextManager]:
    """
    Returns a factory of context managers, to be passed to
    :py:func:`slackinvite.macros.membership.bulk_membership`, that prints
    a header when each stage starts, and displays a spinner while the
    channels are being retrieved.
    """

    @contextlib.contextmanager
    def _stage(name: str):
        header = _STAGE_HEADERS.get(name, name)
        if isinstance(header, dict):
            header = header[action]
        header = header.format(visibility="private" if private else "public")

        click.secho("\n" + header, err=True, bold=True)

        if name == "channels" and spinner:
            with click_spinner.spinner(stream=sys.stderr):
                yield
        else:
            yield

    return _stage


class SlackinviteCliContextObject:

    _debug: bool = False
    _dry_run: bool = False
    _slack_token: typing.Optional[str] = None
    _client: typing.Optional[slack_sdk.WebClient] = None

    def __init__(
            self,
            dry_run: typing.Optional[bool] = None,
            debug: typing.Optional[bool] = None,
            slack_token: typing.Optional[str] = None,
    ):
        if dry_run is not None:
            self._dry_run = dry_run

        if debug is not None:
            self._debug = debug

        # slack API token
        self._slack_token = slack_token

    def login(self) -> slack_sdk.WebClient:
        logger.debug("CLI: entering login() method")

        if self._client is None:
            self._client = slackinvite.slack.clients.login(
                token=self._slack_token,
                silent_error=False,
            )

        return self._client

    @property
    def debug(self) -> bool:
        return False if self._debug is None else self._debug

    @property
    def dry_run(self) -> bool:
        return False if self._dry_run is None else self._dry_run

    @property
    def slack_token(self) -> typing.Optional[str]:
        return self._slack_token


class AbstractSlackinviteCliContext:

    def __init__(self, ctx_obj):
        self._ctx_obj = ctx_obj

    @property
    def obj(self) -> SlackinviteCliContextObject:
        return self._ctx_obj

    @obj.setter
    def obj(
            self,
            value: typing.Optional[SlackinviteCliContextObject]
    ) -> typing.NoReturn:
        self._ctx_obj = value


cli_root_command_green = click.command(
    cls=click_help_colors.HelpColorsCommand,
    help_headers_color='bright_green',
    help_options_color='green'
)

cli_opt_token = click.option(
    "--token",
    envvar=slackinvite.slack.clients.SLACK_TOKEN_VARIABLE, metavar="$SLACK_TOKEN",
    required=True,
    help="Slack OAuth Access Token."
)

cli_opt_emails = click.option(
    "--emails",
    envvar="SLACKINVITE_EMAILS", metavar="EMAILS",
    required=True,
    help="Comma separated list of Slack user emails to invite (or remove)."
)

cli_opt_channels = click.option(
    "--channels",
    envvar="SLACKINVITE_CHANNELS", metavar="CHANNELS",
    required=True,
    help="Comma separated list of channels to invite users to (or remove users from)."
)

cli_opt_action = click.option(
    "--action",
    type=click.Choice([action.value for action in slackinvite.macros.membership.Action]),
    default=slackinvite.macros.membership.Action.ADD.value,
    envvar="SLACKINVITE_ACTION", show_default=True,
    help="'add' to invite users, 'remove' to remove users."
)

cli_opt_private = click.option(
    "--private/--public",
    default=False, envvar="SLACKINVITE_PRIVATE",
    help="Operate on private channels (requires OAuth scopes 'groups:read' "
         "and 'groups:write') instead of public channels."
)

cli_opt_debug = click.option(
    "--debug/--no-debug",
    default=False, envvar="SLACKINVITE_DEBUG",
    help="Enables debug logging."
)

cli_opt_dry_run = click.option(
    "-y", "--dry-run",
    is_flag=True, envvar="SLACKINVITE_DRY_RUN", default=False,
    help="Do not actually modify any channel."
)

cli_opt_version = click.version_option(version=slackinvite.__version__)


cli_root = chain_functions(*[
    cli_root_command_green,
    cli_opt_token, cli_opt_emails, cli_opt_channels, cli_opt_action,
    cli_opt_private, cli_opt_debug, cli_opt_dry_run, cli_opt_version,
    click.pass_context,
])
