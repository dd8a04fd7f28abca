# automate_core/utils/endpoint.py
from __future__ import annotations

DEFAULT_ENDPOINT = "https://automate.3shape.com"
_SCHEMES = ("http://", "https://")


def normalize_endpoint(raw: str | None) -> str:
    """
    Normaliza la URL base:
      - quita el `/` final
      - antepone `https://` si no trae esquema
    Aplicarla dos veces da lo mismo que una.
    """
    # quita todas las `/` finales, no solo una: "a.com//" -> "a.com"
    endpoint = str(raw or DEFAULT_ENDPOINT).strip().rstrip("/")
    if not endpoint.lower().startswith(_SCHEMES):
        endpoint = f"https://{endpoint}"
    return endpoint


def api_root(endpoint: str, version: str) -> str:
    return f"{endpoint}/api/{version}"
