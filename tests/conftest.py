import unittest.mock

import loguru
import pytest
import slack_sdk
import slack_sdk.errors
import slack_sdk.web.slack_response


def make_response(data, status_code=200):
    return slack_sdk.web.slack_response.SlackResponse(
        client=None,
        http_verb="POST",
        api_url="https://slack.com/api/test",
        req_args={},
        data=data,
        headers={},
        status_code=status_code,
    )


def make_api_error(error="fatal_error", status_code=200, data=None):
    if data is None:
        data = {"ok": False, "error": error}
    return slack_sdk.errors.SlackApiError(
        message="The request to the Slack API failed.",
        response=make_response(data, status_code=status_code),
    )


def make_channels_page(channels, next_cursor=""):
    return make_response({
        "ok": True,
        "channels": [{"id": cid, "name": name} for (name, cid) in channels],
        "response_metadata": {"next_cursor": next_cursor},
    })


@pytest.fixture
def client():
    return unittest.mock.MagicMock(spec=slack_sdk.WebClient)


@pytest.fixture
def users():
    """Emails known to the fake workspace."""
    return {
        "a@x.com": "UA",
        "b@x.com": "UB",
        "c@x.com": "UC",
    }


@pytest.fixture
def lookup(users):

    def _lookup(email, **kwargs):
        if email in users:
            return make_response({
                "ok": True,
                "user": {"id": users[email], "name": email.split("@")[0]},
            })
        raise make_api_error("users_not_found")

    return _lookup


@pytest.fixture
def log_messages():
    messages = []
    handler_id = loguru.logger.add(messages.append, format="{message}", level="DEBUG")
    yield messages
    loguru.logger.remove(handler_id)
