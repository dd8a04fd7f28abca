"""
Fixtures compartidos: un servidor Automate falso a nivel de `requests.Session`.

FakeHttp responde con objetos `requests.Response` reales, encolados por
(método, URL). Cuando queda una sola respuesta en la cola se repite.
"""

import io
import json
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
import requests

ENDPOINT = "https://automate.example.com"


def make_response(
    status: int = 200,
    json_body: Any = None,
    content: bytes = b"",
    set_cookie: Optional[str] = None,
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    if json_body is not None:
        content = json.dumps(json_body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    if set_cookie:
        resp.headers["Set-Cookie"] = set_cookie
    resp._content = content
    resp.encoding = "utf-8"
    return resp


@dataclass
class Call:
    method: str
    url: str
    headers: Dict[str, str]
    data: Any

    def json(self) -> Any:
        return json.loads(self.data)

    def header(self, name: str) -> Optional[str]:
        for k, v in self.headers.items():
            if k.lower() == name.lower():
                return v
        return None


@dataclass
class FakeHttp:
    routes: Dict[tuple, List[requests.Response]] = field(default_factory=dict)
    calls: List[Call] = field(default_factory=list)

    def add(self, method: str, url: str, *responses: requests.Response) -> "FakeHttp":
        self.routes.setdefault((method, url), []).extend(responses)
        return self

    def request(self, method, url, headers=None, data=None, **kwargs):
        self.calls.append(Call(method, url, dict(headers or {}), data))
        queue = self.routes.get((method, url))
        if not queue:
            raise AssertionError(f"Request inesperado: {method} {url}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def calls_to(self, method: str, url: str) -> List[Call]:
        return [c for c in self.calls if c.method == method and c.url == url]


def api(version: str) -> str:
    return f"{ENDPOINT}/api/{version}"


def script_login(http: FakeHttp, version: str) -> None:
    """Handshake completo: xsrf anónimo, login, xsrf autenticado."""
    root = api(version)
    if version == "v3":
        xsrf, login = f"{root}/xsrf/", f"{root}/Login"
        anon = {"headerName": "X-XSRF-TOKEN", "requestToken": "anon-token"}
        fresh = {"headerName": "X-XSRF-TOKEN", "requestToken": "fresh-token"}
    else:
        xsrf, login = f"{root}/xsrf/get/", f"{root}/Authentication/Login"
        anon = {"tokenName": "RequestVerificationToken", "token": "anon-token"}
        fresh = {"tokenName": "RequestVerificationToken", "token": "fresh-token"}

    http.add(
        "GET",
        xsrf,
        make_response(json_body=anon, set_cookie="af=anon; path=/; samesite=strict"),
        make_response(json_body=fresh, set_cookie="af=fresh; path=/; samesite=strict"),
    )
    http.add("POST", login, make_response(set_cookie="auth=secret; path=/; httponly"))


def extract_upload_archive(call: Call) -> zipfile.ZipFile:
    """Saca el zip del cuerpo multipart generado por urllib3."""
    content_type = call.header("Content-Type")
    boundary = content_type.split("boundary=", 1)[1].encode("ascii")
    part = call.data.split(b"\r\n\r\n", 1)[1]
    payload = part[: part.rindex(b"\r\n--" + boundary)]
    return zipfile.ZipFile(io.BytesIO(payload))


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def scans(tmp_path):
    upper = tmp_path / "scans" / "upper.stl"
    lower = tmp_path / "scans" / "lower.stl"
    upper.parent.mkdir()
    upper.write_bytes(b"solid upper\n" + bytes(range(256)))
    lower.write_bytes(b"solid lower\n" + bytes(reversed(range(256))))
    return upper, lower
