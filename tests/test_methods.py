import urllib.error

import pytest

import slackinvite.slack.exceptions
import slackinvite.slack.methods

from conftest import make_api_error, make_channels_page, make_response


def test_users_lookup_by_email(client, lookup):
    client.users_lookupByEmail.side_effect = lookup

    user_id = slackinvite.slack.methods.users_lookup_by_email(client=client, email="a@x.com")

    assert user_id == "UA"
    client.users_lookupByEmail.assert_called_once_with(email="a@x.com")


def test_users_lookup_by_email_not_found(client, lookup):
    client.users_lookupByEmail.side_effect = lookup

    with pytest.raises(slackinvite.slack.exceptions.LookupFailed) as exc_info:
        slackinvite.slack.methods.users_lookup_by_email(client=client, email="nobody@x.com")

    assert exc_info.value.email == "nobody@x.com"
    assert exc_info.value.error == "users_not_found"
    assert "users_not_found" in str(exc_info.value)


def test_non_ok_response_without_exception_is_a_failure(client):
    client.users_lookupByEmail.return_value = make_response({"ok": False, "error": "invalid_auth"})

    with pytest.raises(slackinvite.slack.exceptions.LookupFailed) as exc_info:
        slackinvite.slack.methods.users_lookup_by_email(client=client, email="a@x.com")

    assert exc_info.value.error == "invalid_auth"


def test_non_200_status_logs_raw_body(client, log_messages):
    client.users_lookupByEmail.side_effect = make_api_error(
        status_code=500,
        data={"ok": False, "error": "internal_error", "detail": "try later"},
    )

    with pytest.raises(slackinvite.slack.exceptions.LookupFailed) as exc_info:
        slackinvite.slack.methods.users_lookup_by_email(client=client, email="a@x.com")

    assert "500" in exc_info.value.message
    assert any("try later" in message for message in log_messages)


def test_transport_error(client):
    client.users_lookupByEmail.side_effect = urllib.error.URLError("connection refused")

    with pytest.raises(slackinvite.slack.exceptions.LookupFailed) as exc_info:
        slackinvite.slack.methods.users_lookup_by_email(client=client, email="a@x.com")

    assert "connection refused" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, urllib.error.URLError)


def test_conversations_list_pages_follows_cursor(client):
    client.conversations_list.side_effect = [
        make_channels_page([("general", "C1")], next_cursor="dXNlcjpVMDYxTkZUVDI="),
        make_channels_page([("random", "C2")], next_cursor=""),
    ]

    pages = list(slackinvite.slack.methods.conversations_list_pages(client=client))

    assert pages == [
        [{"id": "C1", "name": "general"}],
        [{"id": "C2", "name": "random"}],
    ]
    assert client.conversations_list.call_count == 2

    first_call, second_call = client.conversations_list.call_args_list
    assert first_call.kwargs["cursor"] is None
    assert second_call.kwargs["cursor"] == "dXNlcjpVMDYxTkZUVDI="
    assert first_call.kwargs["exclude_archived"] is True
    assert first_call.kwargs["limit"] == slackinvite.slack.methods.MAX_PAGE_SIZE
    assert first_call.kwargs["types"] == slackinvite.slack.methods.CHANNEL_TYPE_PUBLIC


def test_conversations_list_pages_stops_without_metadata(client):
    client.conversations_list.return_value = make_response({
        "ok": True,
        "channels": [{"id": "C1", "name": "general"}],
    })

    pages = list(slackinvite.slack.methods.conversations_list_pages(client=client))

    assert len(pages) == 1
    assert client.conversations_list.call_count == 1


def test_conversations_list_pages_private(client):
    client.conversations_list.return_value = make_channels_page([("secret", "G1")])

    list(slackinvite.slack.methods.conversations_list_pages(client=client, private=True))

    assert client.conversations_list.call_args.kwargs["types"] == "private_channel"


def test_conversations_list_pages_is_lazy(client):
    client.conversations_list.return_value = make_channels_page([("general", "C1")])

    pages = slackinvite.slack.methods.conversations_list_pages(client=client)

    assert client.conversations_list.call_count == 0
    next(pages)
    assert client.conversations_list.call_count == 1


def test_conversations_list_pages_failure(client):
    client.conversations_list.side_effect = make_api_error("missing_scope")

    with pytest.raises(slackinvite.slack.exceptions.DirectoryFetchFailed) as exc_info:
        list(slackinvite.slack.methods.conversations_list_pages(client=client))

    assert exc_info.value.error == "missing_scope"


def test_conversations_invite_joins_user_ids(client):
    client.conversations_invite.return_value = make_response({"ok": True})

    slackinvite.slack.methods.conversations_invite(
        client=client,
        channel_id="C1",
        user_ids=["UB", "UA", "UC"],
    )

    client.conversations_invite.assert_called_once_with(channel="C1", users="UB,UA,UC")


def test_conversations_invite_failure(client):
    client.conversations_invite.side_effect = make_api_error("not_in_channel")

    with pytest.raises(slackinvite.slack.exceptions.MutationFailed) as exc_info:
        slackinvite.slack.methods.conversations_invite(client=client, channel_id="C1", user_ids=["UA"])

    assert exc_info.value.channel_id == "C1"
    assert exc_info.value.user_id is None


def test_conversations_kick_failure(client):
    client.conversations_kick.return_value = make_response({"ok": False, "error": "cant_kick_self"})

    with pytest.raises(slackinvite.slack.exceptions.MutationFailed) as exc_info:
        slackinvite.slack.methods.conversations_kick(client=client, channel_id="C1", user_id="UA")

    client.conversations_kick.assert_called_once_with(channel="C1", user="UA")
    assert exc_info.value.user_id == "UA"
    assert exc_info.value.error == "cant_kick_self"
