# automate_core/versions.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ApiRoutes:
    """Rutas (relativas a /api/<version>) y nombres de campos propios de cada versión."""

    xsrf: str
    token_name_field: str
    token_value_field: str
    login: str
    status: str
    download: str
    upload: str
    create_order: Optional[str] = None  # v3
    qualify: Optional[str] = None  # v2
    review: Optional[str] = None  # v3
    accept: Optional[str] = None  # v2

    @staticmethod
    def fill(template: str, order_id: str) -> str:
        return template.format(order_id=order_id)


_V2 = ApiRoutes(
    xsrf="/xsrf/get/",
    token_name_field="tokenName",
    token_value_field="token",
    login="/Authentication/Login",
    qualify="/Qualification/QualifyOrderInfo",
    upload="/Streaming/Upload/{order_id}",
    status="/Orders/Status/{order_id}",
    accept="/Results/Accept",
    download="/Results/Download/{order_id}",
)

_V3 = ApiRoutes(
    xsrf="/xsrf/",
    token_name_field="headerName",
    token_value_field="requestToken",
    login="/Login",
    create_order="/Orders/Crown",
    upload="/Orders/{order_id}/Submit",
    status="/Orders/{order_id}/Status",
    review="/Orders/{order_id}/Review",
    download="/Orders/{order_id}/Download",
)


class ApiVersion(str, Enum):
    V2 = "v2"
    V3 = "v3"

    @property
    def routes(self) -> ApiRoutes:
        return _V2 if self is ApiVersion.V2 else _V3

    @classmethod
    def parse(cls, raw: str) -> "ApiVersion":
        value = str(raw or "").strip().lower()
        if value and not value.startswith("v"):
            value = f"v{value}"
        return cls(value)
