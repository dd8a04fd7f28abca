# automate_core/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from automate_core.errors import ErrorCode, FlowError
from automate_core.orders import OrderDescriptor
from automate_core.results import ReviewAction
from automate_core.status import DEFAULT_POLL_INTERVAL_S
from automate_core.utils.endpoint import DEFAULT_ENDPOINT, normalize_endpoint
from automate_core.utils.paths import scan_name
from automate_core.versions import ApiVersion


# ---------- secciones del settings.yaml (todas opcionales) ----------


@dataclass
class ApiCfg:
    base_url: str = DEFAULT_ENDPOINT
    version: str = "v3"
    timeout: float = 30.0
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S


@dataclass
class CredentialsCfg:
    email: str = ""
    password: str = ""


@dataclass
class OrderCfg:
    name: str = "Order"
    material: str = "Zirconia"
    order_code: str = "SC"
    source: str = "3rdParty"
    review: str = "accept"


@dataclass
class PathsCfg:
    output: str = ""


@dataclass
class Settings:
    api: ApiCfg = field(default_factory=ApiCfg)
    credentials: CredentialsCfg = field(default_factory=CredentialsCfg)
    order: OrderCfg = field(default_factory=OrderCfg)
    paths: PathsCfg = field(default_factory=PathsCfg)


# ---------- loader ----------


def _read_yaml(path: Path) -> dict:
    txt = path.read_text(encoding="utf-8")
    data = yaml.safe_load(txt)
    return data or {}


def _section(data: dict, name: str, p: Path) -> dict:
    sec = data.get(name) or {}
    if not isinstance(sec, dict):
        raise FlowError(
            ErrorCode.INVALID_CONFIG, f"{p}: la sección '{name}' debe ser un mapeo"
        )
    return sec


def _positive_float(raw: Any, name: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as ex:
        raise FlowError(
            ErrorCode.INVALID_CONFIG, f"'{name}' debe ser un número, no '{raw}'"
        ) from ex
    if value <= 0:
        raise FlowError(ErrorCode.INVALID_CONFIG, f"'{name}' debe ser mayor que 0")
    return value


def load_settings(path: str | Path = "configs/settings.yaml") -> Settings:
    p = Path(path)
    try:
        data = _read_yaml(p)
    except (OSError, yaml.YAMLError) as ex:
        raise FlowError(
            ErrorCode.INVALID_CONFIG, f"No se pudo leer la configuración {p}: {ex}"
        ) from ex
    if not isinstance(data, dict):
        raise FlowError(ErrorCode.INVALID_CONFIG, f"{p} no es un mapeo YAML")

    dft = Settings()

    api_d = _section(data, "api", p)
    api = ApiCfg(
        base_url=str(api_d.get("base_url", dft.api.base_url)),
        version=str(api_d.get("version", dft.api.version)),
        timeout=_positive_float(api_d.get("timeout", dft.api.timeout), "api.timeout"),
        poll_interval_s=_positive_float(
            api_d.get("poll_interval_s", dft.api.poll_interval_s), "api.poll_interval_s"
        ),
    )

    cred_d = _section(data, "credentials", p)
    credentials = CredentialsCfg(
        email=str(cred_d.get("email", "") or ""),
        password=str(cred_d.get("password", "") or ""),
    )

    order_d = _section(data, "order", p)
    order = OrderCfg(
        name=str(order_d.get("name", dft.order.name)),
        material=str(order_d.get("material", dft.order.material)),
        order_code=str(order_d.get("order_code", dft.order.order_code)),
        source=str(order_d.get("source", dft.order.source)),
        review=str(order_d.get("review", dft.order.review)),
    )

    paths_d = _section(data, "paths", p)
    paths = PathsCfg(output=str(paths_d.get("output", "") or ""))

    return Settings(api=api, credentials=credentials, order=order, paths=paths)


# ---------- configuración explícita de una corrida ----------


def parse_unns(raw: Any) -> Tuple[int, ...]:
    """'11,21' -> (11, 21). También acepta una lista ya separada."""
    if raw is None or raw == "":
        return ()
    parts = raw if isinstance(raw, (list, tuple)) else str(raw).split(",")
    try:
        return tuple(int(str(p).strip()) for p in parts if str(p).strip())
    except ValueError as ex:
        raise FlowError(
            ErrorCode.INVALID_CONFIG, f"unns inválidos '{raw}': se esperan enteros"
        ) from ex


@dataclass(frozen=True)
class RunConfig:
    email: str
    password: str
    output_dir: Path
    endpoint: str = DEFAULT_ENDPOINT
    api_version: ApiVersion = ApiVersion.V3
    upper_jaw: Optional[Path] = None
    lower_jaw: Optional[Path] = None
    unns: Tuple[int, ...] = ()
    order_id: Optional[str] = None
    review_action: ReviewAction = ReviewAction.ACCEPT
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    timeout: float = 30.0
    order_name: str = "Order"
    material: str = "Zirconia"
    order_code: str = "SC"
    source: str = "3rdParty"

    def __repr__(self) -> str:
        return (
            f"RunConfig(email={self.email!r}, endpoint={self.endpoint!r}, "
            f"api_version={self.api_version.value!r}, order_id={self.order_id!r})"
        )

    def descriptor(self) -> OrderDescriptor:
        return OrderDescriptor(
            upper_jaw_scan_name=scan_name(self.upper_jaw),
            lower_jaw_scan_name=scan_name(self.lower_jaw),
            unns=self.unns,
            name=self.order_name,
            material=self.material,
            order_code=self.order_code,
            source=self.source,
        )


def _pick(cli_value: Any, cfg_value: Any) -> Any:
    return cli_value if cli_value not in (None, "") else cfg_value


def build_run_config(args: Any, settings: Optional[Settings] = None) -> RunConfig:
    """
    Combina argumentos de CLI (prioridad) con el settings.yaml y valida.
    `args` es cualquier objeto con los atributos del parser (argparse.Namespace).
    """
    s = settings or Settings()

    def g(name: str) -> Any:
        return getattr(args, name, None)

    email = _pick(g("email"), s.credentials.email)
    password = _pick(g("password"), s.credentials.password)
    if not email or not password:
        raise FlowError(ErrorCode.INVALID_CONFIG, "Falta email y/o password")

    output = _pick(g("output"), s.paths.output)
    if not output:
        raise FlowError(ErrorCode.INVALID_CONFIG, "Falta la carpeta de salida (--output)")

    try:
        version = ApiVersion.parse(_pick(g("api_version"), s.api.version))
        action = ReviewAction(str(_pick(g("review"), s.order.review)).lower())
    except ValueError as ex:
        raise FlowError(ErrorCode.INVALID_CONFIG, str(ex)) from ex

    order_id = g("orderid")
    order_id = str(order_id).strip() if order_id not in (None, "") else None
    upper = g("upperjaw")
    lower = g("lowerjaw")
    unns = parse_unns(g("unns"))

    if not order_id:
        if not upper or not lower or not unns:
            raise FlowError(
                ErrorCode.INVALID_CONFIG,
                "Indique rutas de maxilar superior e inferior y los unns, "
                "o bien un ID de orden existente",
            )
        upper_name, lower_name = scan_name(upper), scan_name(lower)
        if not upper_name or not lower_name:
            raise FlowError(ErrorCode.INVALID_CONFIG, "Rutas de escaneo incorrectas")
        if upper_name == lower_name:
            raise FlowError(
                ErrorCode.INVALID_CONFIG,
                f"Ambos escaneos se llaman '{upper_name}'; deben diferir",
            )

    if version is ApiVersion.V2 and action is ReviewAction.REJECT:
        raise FlowError(
            ErrorCode.INVALID_CONFIG, "La API v2 solo permite aceptar resultados"
        )

    poll_interval_s = _positive_float(
        _pick(g("poll_interval"), s.api.poll_interval_s), "poll_interval"
    )
    timeout = _positive_float(_pick(g("timeout"), s.api.timeout), "timeout")

    return RunConfig(
        email=str(email),
        password=str(password),
        output_dir=Path(output),
        endpoint=normalize_endpoint(_pick(g("endpoint"), s.api.base_url)),
        api_version=version,
        upper_jaw=Path(upper) if upper else None,
        lower_jaw=Path(lower) if lower else None,
        unns=unns,
        order_id=order_id,
        review_action=action,
        poll_interval_s=poll_interval_s,
        timeout=timeout,
        order_name=str(_pick(g("name"), s.order.name)),
        material=str(_pick(g("material"), s.order.material)),
        order_code=str(_pick(g("order_code"), s.order.order_code)),
        source=str(_pick(g("source"), s.order.source)),
    )
