import pytest
import slack_sdk

import slackinvite.slack.clients


def test_login_returns_client_without_retries():
    client = slackinvite.slack.clients.login(token="xoxp-test")

    assert isinstance(client, slack_sdk.WebClient)
    assert client.token == "xoxp-test"
    assert client.retry_handlers == []


def test_login_uses_environment_token(monkeypatch):
    monkeypatch.setenv(slackinvite.slack.clients.SLACK_TOKEN_VARIABLE, "xoxp-env")

    client = slackinvite.slack.clients.login()

    assert client.token == "xoxp-env"
    assert client.retry_handlers == []


def test_login_without_token(monkeypatch):
    monkeypatch.delenv(slackinvite.slack.clients.SLACK_TOKEN_VARIABLE, raising=False)

    with pytest.raises(PermissionError):
        slackinvite.slack.clients.login()

    with pytest.raises(PermissionError):
        slackinvite.slack.clients.login(token="")


def test_login_without_token_silent(monkeypatch):
    monkeypatch.delenv(slackinvite.slack.clients.SLACK_TOKEN_VARIABLE, raising=False)

    assert slackinvite.slack.clients.login(silent_error=True) is None


@pytest.fixture
def closing_server():
    """A local HTTP endpoint that closes every connection without replying."""
    import socketserver
    import threading

    paths = []

    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            request_line = self.request.makefile("rb").readline().decode("latin-1")
            paths.append(request_line.split(" ")[1] if " " in request_line else request_line)

    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), Handler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield "http://127.0.0.1:{}/api/".format(server.server_address[1]), paths

    server.shutdown()
    server.server_close()


def test_connection_error_sends_request_once(closing_server):
    import slackinvite.slack.exceptions
    import slackinvite.slack.methods

    base_url, paths = closing_server
    client = slackinvite.slack.clients.login(token="xoxp-test")
    client.base_url = base_url

    with pytest.raises(slackinvite.slack.exceptions.MutationFailed):
        slackinvite.slack.methods.conversations_invite(client=client, channel_id="C1", user_ids=["UA"])

    assert paths == ["/api/conversations.invite"]
