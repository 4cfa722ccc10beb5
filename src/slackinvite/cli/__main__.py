import sys
import textwrap

import click
import jinja2

import slackinvite.cli.helpers
import slackinvite.helpers.collections
import slackinvite.macros.membership
import slackinvite.slack.exceptions


SUMMARY_TEMPLATE = jinja2.Template(textwrap.dedent("""
    {% if report.dry_run %}Dry-run: no channel was modified.
    {% endif %}
    Users found: {{ report.user_ids|length }} (out of {{ report.identities|length }})
    {% for email in report.unresolved_emails %}
      - not found: {{ email }}
    {% endfor %}
    Channels retrieved: {{ report.directory_size }}
    {% if report.dry_run %}
    Channels that would be modified: {{ report.count(State.RESOLVED) }}
    {% else %}
    Channels {{ verb }}: {{ report.count(State.MUTATED) }}
    {% endif %}
    {% for mutation in report.channels_in_state(State.NOT_FOUND) %}
      - not found: {{ mutation.channel_name }}
    {% endfor %}
    {% for mutation in report.channels_in_state(State.FAILED) %}
      - failed: {{ mutation.channel_name }} ({{ mutation.channel_id }}): {{ mutation.error }}
    {% endfor %}

    All done! You're welcome =)
    """)[1:], trim_blocks=True, lstrip_blocks=True)


def render_summary(report: slackinvite.macros.membership.MembershipReport) -> str:
    action = None
    if len(report.mutations) > 0:
        action = report.mutations[0].action

    verb = "modified"
    if action == slackinvite.macros.membership.Action.ADD:
        verb = "invited to"
    elif action == slackinvite.macros.membership.Action.REMOVE:
        verb = "removed from"

    return SUMMARY_TEMPLATE.render(
        report=report,
        verb=verb,
        State=slackinvite.macros.membership.ChannelState,
    )


@slackinvite.cli.helpers.cli_root
def cli(
        ctx: slackinvite.cli.helpers.AbstractSlackinviteCliContext,
        token,
        emails,
        channels,
        action,
        private,
        debug,
        dry_run,
):
    """
    Invites the users with the given EMAILS to (or removes them from) the
    given Slack CHANNELS.

    Due to the oddness of the Slack API, this is accomplished in three
    steps: the Slack user IDs are looked up by email; all the public (or
    private, with --private) channels of the workspace are retrieved to map
    their names to their IDs; and finally the users are invited to (or
    removed from) each of the channels.
    """

    slackinvite.cli.helpers.configure_logging(debug=debug)

    if token.strip() == "":
        raise click.BadParameter("empty Slack token", param_hint="--token")

    email_list = slackinvite.helpers.collections.split_list(emails)
    if len(email_list) == 0:
        raise click.BadParameter("no email address provided", param_hint="--emails")

    channel_list = slackinvite.helpers.collections.split_list(channels)
    if len(channel_list) == 0:
        raise click.BadParameter("no channel provided", param_hint="--channels")

    ctx.obj = slackinvite.cli.helpers.SlackinviteCliContextObject(
        dry_run=dry_run,
        debug=debug,
        slack_token=token,
    )

    client = ctx.obj.login()

    action = slackinvite.macros.membership.Action(action)

    try:
        report = slackinvite.macros.membership.bulk_membership(
            client=client,
            emails=email_list,
            channel_names=channel_list,
            action=action,
            private=private,
            dry_run=ctx.obj.dry_run,
            stage=slackinvite.cli.helpers.stage_printer(
                action=action,
                private=private,
                spinner=not ctx.obj.debug,
            ),
        )

    except slackinvite.slack.exceptions.NoUsersResolved as exc:
        click.secho("\n" + exc.message, err=True, fg="red", bold=True)
        sys.exit(1)

    except slackinvite.slack.exceptions.DirectoryFetchFailed as exc:
        click.secho("\nERROR: ", nl=False, err=True, fg="red", bold=True)
        click.secho("{}".format(exc), err=True, fg="red")
        sys.exit(1)

    click.echo()
    click.echo(render_summary(report), nl=False)


def main():
    return sys.exit(cli())


if __name__ == "__main__":
    main()
