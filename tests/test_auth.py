import pytest

from automate_core.auth import Authenticator, first_cookie
from automate_core.client import AutomateClient
from automate_core.errors import ErrorCode, FlowError
from automate_core.versions import ApiVersion

from conftest import ENDPOINT, api, make_response, script_login


def _auth(http, version):
    return Authenticator(AutomateClient(ENDPOINT, ApiVersion(version), http=http))


@pytest.mark.parametrize("version", ["v2", "v3"])
def test_login_two_phase_handshake(http, version):
    script_login(http, version)
    session = _auth(http, version).login("a@b.com", "pw")

    token_name = "X-XSRF-TOKEN" if version == "v3" else "RequestVerificationToken"
    assert session["cookie"] == "af=fresh;auth=secret"
    assert session[token_name] == "fresh-token"
    assert len(session) == 2

    anon_xsrf, login, fresh_xsrf = http.calls
    assert anon_xsrf.method == "GET" and anon_xsrf.header("cookie") is None

    assert login.method == "POST"
    assert login.json() == {"email": "a@b.com", "password": "pw"}
    assert login.header("cookie") == "af=anon"
    assert login.header(token_name) == "anon-token"
    assert login.header("content-type") == "application/json"

    # los tokens nuevos se piden con la cookie autenticada
    assert fresh_xsrf.header("cookie") == "auth=secret"


def test_login_endpoints_per_version(http):
    script_login(http, "v2")
    _auth(http, "v2").login("a@b.com", "pw")
    urls = [c.url for c in http.calls]
    assert urls == [
        f"{api('v2')}/xsrf/get/",
        f"{api('v2')}/Authentication/Login",
        f"{api('v2')}/xsrf/get/",
    ]


def test_rejected_credentials_abort_before_anything_else(http):
    script_login(http, "v3")
    http.routes[("POST", f"{api('v3')}/Login")] = [make_response(401)]

    with pytest.raises(FlowError) as exc:
        _auth(http, "v3").login("a@b.com", "wrong")

    assert exc.value.code is ErrorCode.LOGIN_FAILED
    assert exc.value.status_code == 401
    assert "a@b.com" in str(exc.value)
    assert len(http.calls) == 2


def test_token_fetch_failure_names_step(http):
    http.add("GET", f"{api('v3')}/xsrf/", make_response(503))
    with pytest.raises(FlowError) as exc:
        _auth(http, "v3").fetch_tokens()
    assert exc.value.code is ErrorCode.TOKEN_FETCH_FAILED
    assert "[503]" in str(exc.value)


def test_token_fetch_requires_verification_fields(http):
    http.add(
        "GET",
        f"{api('v3')}/xsrf/",
        # campos de v2 contra la API v3
        make_response(json_body={"tokenName": "x", "token": "y"}, set_cookie="af=1"),
    )
    with pytest.raises(FlowError) as exc:
        _auth(http, "v3").fetch_tokens()
    assert exc.value.code is ErrorCode.TOKEN_FETCH_FAILED


def test_first_cookie_requires_set_cookie():
    with pytest.raises(FlowError) as exc:
        first_cookie(make_response(200), ErrorCode.LOGIN_FAILED)
    assert exc.value.code is ErrorCode.LOGIN_FAILED


def test_first_cookie_takes_first_pair():
    resp = make_response(set_cookie=".AspNetCore.Auth=abc; path=/; secure")
    assert first_cookie(resp, ErrorCode.LOGIN_FAILED) == ".AspNetCore.Auth=abc"
