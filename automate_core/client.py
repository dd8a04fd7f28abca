# automate_core/client.py
from __future__ import annotations

import json
import logging
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from automate_core.errors import ErrorCode, FlowError
from automate_core.headers import HeaderSet
from automate_core.utils.endpoint import api_root
from automate_core.versions import ApiRoutes, ApiVersion

log = logging.getLogger("automate.integrator.client")


def _build_session(timeout_s: float = 30.0) -> requests.Session:
    s = requests.Session()
    # Sin reintentos de transporte: cualquier fallo es fatal para la corrida
    adapter = HTTPAdapter(max_retries=Retry(total=0, raise_on_status=False))
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    # Las cookies viajan explícitas en la sesión autenticada, nunca en el jar
    s.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
    s.request = _with_timeout(s.request, timeout_s)  # type: ignore
    return s


def _with_timeout(func, timeout_s: float):
    def wrapped(method, url, **kwargs):
        if "timeout" not in kwargs:
            kwargs["timeout"] = timeout_s
        return func(method, url, **kwargs)

    return wrapped


class AutomateClient:
    """
    Transporte HTTP hacia una versión concreta de la API de Automate.

    No decide nada sobre el resultado: devuelve la respuesta y cada paso
    del flujo valida el status con su propio mensaje. Solo convierte los
    errores de red (`requests.RequestException`) en `FlowError`.
    """

    def __init__(
        self,
        endpoint: str,
        version: ApiVersion,
        timeout: float = 30.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = endpoint
        self.version = version
        self.api_root = api_root(endpoint, version.value)
        self.http = http or _build_session(timeout)

    @property
    def routes(self) -> ApiRoutes:
        return self.version.routes

    def check_endpoint(self) -> None:
        resp = self._send("GET", f"{self.endpoint}/", ErrorCode.ENDPOINT_UNAVAILABLE)
        if not resp.ok:
            raise FlowError(
                ErrorCode.ENDPOINT_UNAVAILABLE,
                f"Problemas en el endpoint {self.endpoint} [{resp.status_code}]",
                status_code=resp.status_code,
            )
        log.info("Endpoint %s disponible.", self.endpoint)

    def request(
        self,
        method: str,
        path: str,
        *,
        code: ErrorCode,
        headers: Optional[HeaderSet] = None,
        json_body: Any = None,
        data: Optional[bytes] = None,
    ) -> requests.Response:
        body = json.dumps(json_body) if json_body is not None else data
        return self._send(
            method, f"{self.api_root}{path}", code, headers=headers, data=body
        )

    def _send(
        self,
        method: str,
        url: str,
        code: ErrorCode,
        headers: Optional[HeaderSet] = None,
        data: Any = None,
    ) -> requests.Response:
        log.debug("%s %s headers=%r", method, url, headers)
        try:
            resp = self.http.request(
                method,
                url,
                headers=headers.as_dict() if headers else {},
                data=data,
            )
        except requests.RequestException as ex:
            raise FlowError(code, f"Error de red en {method} {url}: {ex}") from ex
        log.debug("Resp HTTP %s - %s", resp.status_code, url)
        return resp
