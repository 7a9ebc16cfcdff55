"""Tests for the device flow authenticator."""

import httpx
import pytest

from conftest import run
from gitskills.auth import AuthenticationError, DeviceFlowAuthenticator

DEVICE_CODES = {
    "device_code": "dev-123",
    "user_code": "ABCD-1234",
    "verification_uri": "https://github.com/login/device",
    "interval": 5,
    "expires_in": 900,
}


class FakeTime:
    """Clock that advances only when sleeping."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class OAuthServer:
    def __init__(self, token_responses, device_codes=None):
        self.token_responses = list(token_responses)
        self.device_codes = device_codes or DEVICE_CODES
        self.token_polls = 0

    def __call__(self, request):
        if request.url.path == "/login/device/code":
            return httpx.Response(200, json=self.device_codes)
        self.token_polls += 1
        response = self.token_responses.pop(0) if self.token_responses else {"error": "authorization_pending"}
        if isinstance(response, int):
            return httpx.Response(response)
        return httpx.Response(200, json=response)


def make_authenticator(server, fake_time, prompts=None, client_id="Iv1.test"):
    return DeviceFlowAuthenticator(
        client_id,
        client=httpx.AsyncClient(transport=httpx.MockTransport(server)),
        on_prompt=(lambda uri, code: prompts.append((uri, code))) if prompts is not None else None,
        sleep=fake_time.sleep,
        clock=fake_time.clock,
    )


def test_supplied_token_skips_flow():
    server = OAuthServer([])
    auth = make_authenticator(server, FakeTime())

    assert run(auth.authenticate("  ghp_abc \n")) == "ghp_abc"
    assert server.token_polls == 0


def test_successful_flow_honors_slow_down():
    server = OAuthServer([
        {"error": "authorization_pending"},
        {"error": "slow_down"},
        {"access_token": "gho_new", "token_type": "bearer"},
    ])
    fake_time = FakeTime()
    prompts = []

    token = run(make_authenticator(server, fake_time, prompts).authenticate())

    assert token == "gho_new"
    assert prompts == [("https://github.com/login/device", "ABCD-1234")]
    assert fake_time.sleeps == [5, 5, 10]


@pytest.mark.parametrize("error", ["expired_token", "access_denied"])
def test_terminal_errors(error):
    server = OAuthServer([{"error": error}])
    with pytest.raises(AuthenticationError, match=error):
        run(make_authenticator(server, FakeTime()).authenticate())


def test_times_out_at_expiry():
    server = OAuthServer([], device_codes={**DEVICE_CODES, "expires_in": 12})
    fake_time = FakeTime()

    with pytest.raises(AuthenticationError, match="timed out"):
        run(make_authenticator(server, fake_time).authenticate())
    assert server.token_polls == 3


def test_http_errors_while_polling_are_retried():
    server = OAuthServer([500, {"access_token": "gho_ok"}])
    assert run(make_authenticator(server, FakeTime()).authenticate()) == "gho_ok"


def test_missing_client_id():
    with pytest.raises(AuthenticationError, match="GITHUB_CLIENT_ID"):
        run(make_authenticator(OAuthServer([]), FakeTime(), client_id=None).authenticate())


def test_rejected_device_code_request():
    server = OAuthServer([], device_codes={"error": "unauthorized_client", "error_description": "bad app"})
    with pytest.raises(AuthenticationError, match="bad app"):
        run(make_authenticator(server, FakeTime()).authenticate())
