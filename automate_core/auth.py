# automate_core/auth.py
from __future__ import annotations

import logging
from typing import Optional, Tuple

import requests

from automate_core.client import AutomateClient
from automate_core.errors import ErrorCode, FlowError
from automate_core.headers import JSON_HEADER, HeaderSet, cookie_header

log = logging.getLogger("automate.integrator.auth")

Tokens = Tuple[str, Tuple[str, str]]


def first_cookie(resp: requests.Response, code: ErrorCode) -> str:
    """Primer par `nombre=valor` del header Set-Cookie."""
    raw = resp.headers.get("set-cookie") or ""
    pair = raw.split(";")[0].strip()
    if not pair:
        raise FlowError(code, "La respuesta no trae cookie (Set-Cookie vacío)")
    return pair


class Authenticator:
    """
    Handshake de login contra Automate:
      1) tokens antiforgery anónimos
      2) POST de credenciales con esos tokens
      3) cookie de autenticación de la respuesta
      4) tokens nuevos emitidos para la cookie autenticada
      5) sesión = {cookie antiforgery + auth, header de verificación}

    Los tokens quedan atados a la cookie con la que se emitieron, por eso
    los anónimos no sirven después del login.
    """

    def __init__(self, client: AutomateClient) -> None:
        self.client = client

    def fetch_tokens(self, headers: Optional[HeaderSet] = None) -> Tokens:
        routes = self.client.routes
        resp = self.client.request(
            "GET", routes.xsrf, code=ErrorCode.TOKEN_FETCH_FAILED, headers=headers
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.TOKEN_FETCH_FAILED,
                f"No se pudo obtener el token antiforgery [{resp.status_code}]",
                status_code=resp.status_code,
            )

        antiforgery = first_cookie(resp, ErrorCode.TOKEN_FETCH_FAILED)
        try:
            content = resp.json()
        except ValueError as ex:
            raise FlowError(
                ErrorCode.TOKEN_FETCH_FAILED, f"Respuesta xsrf no es JSON: {ex}"
            ) from ex

        name = content.get(routes.token_name_field)
        value = content.get(routes.token_value_field)
        if not name or value is None:
            raise FlowError(
                ErrorCode.TOKEN_FETCH_FAILED,
                f"Respuesta xsrf sin '{routes.token_name_field}'/'{routes.token_value_field}'",
            )
        return antiforgery, (str(name), str(value))

    def login(self, email: str, password: str) -> HeaderSet:
        anon_cookie, anon_verification = self.fetch_tokens()
        login_headers = HeaderSet(
            [("cookie", anon_cookie), anon_verification, JSON_HEADER]
        )

        resp = self.client.request(
            "POST",
            self.client.routes.login,
            code=ErrorCode.LOGIN_FAILED,
            headers=login_headers,
            json_body={"email": email, "password": password},
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.LOGIN_FAILED,
                f"No se pudo iniciar sesión como {email} [{resp.status_code}]",
                status_code=resp.status_code,
            )

        auth_cookie = first_cookie(resp, ErrorCode.LOGIN_FAILED)
        antiforgery, verification = self.fetch_tokens(
            HeaderSet([cookie_header(auth_cookie)])
        )
        session = HeaderSet([cookie_header(antiforgery, auth_cookie), verification])

        log.info("Sesión iniciada como %s.", email)
        return session
