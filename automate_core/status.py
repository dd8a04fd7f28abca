# automate_core/status.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict

from automate_core.client import AutomateClient
from automate_core.errors import ErrorCode, FlowError
from automate_core.headers import JSON_HEADER, HeaderSet

log = logging.getLogger("automate.integrator.status")

DEFAULT_POLL_INTERVAL_S = 30.0


def _as_bool(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes")
    return bool(x)


class OrderState(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class OrderStatus:
    processing: bool = False
    failed: bool = False
    reviewable: bool = False
    accepted: bool = False
    message: str = ""

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "OrderStatus":
        # el servidor responde {"status": {...}}
        if not isinstance(payload, dict):
            raise FlowError(ErrorCode.STATUS_FAILED, "El estado de la orden no es un objeto JSON")
        data = payload.get("status", payload) or {}
        if not isinstance(data, dict):
            raise FlowError(ErrorCode.STATUS_FAILED, "El estado de la orden no es un objeto JSON")
        return cls(
            processing=_as_bool(data.get("processing")),
            failed=_as_bool(data.get("failed")),
            reviewable=_as_bool(data.get("reviewable")),
            accepted=_as_bool(data.get("accepted")),
            message=str(data.get("message") or ""),
        )

    @property
    def state(self) -> OrderState:
        if self.processing:
            return OrderState.PROCESSING
        if self.failed:
            return OrderState.FAILED
        return OrderState.READY


class StatusPoller:
    def __init__(
        self,
        client: AutomateClient,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.poll_interval_s = poll_interval_s
        self.sleep = sleep

    def get_status(self, session: HeaderSet, order_id: str) -> OrderStatus:
        routes = self.client.routes
        resp = self.client.request(
            "GET",
            routes.fill(routes.status, order_id),
            code=ErrorCode.STATUS_FAILED,
            headers=session.merged([JSON_HEADER]),
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.STATUS_FAILED,
                f"No se pudo consultar el estado de la orden {order_id} [{resp.status_code}]",
                status_code=resp.status_code,
            )
        try:
            payload = resp.json()
        except ValueError as ex:
            raise FlowError(
                ErrorCode.STATUS_FAILED, f"Estado de la orden {order_id} no es JSON"
            ) from ex
        status = OrderStatus.from_json(payload)
        log.info("Orden %s: %s.", order_id, status.message or status.state.value)
        return status

    def wait_for_ready(self, session: HeaderSet, order_id: str) -> OrderStatus:
        """
        Consulta hasta que la orden deja de estar en proceso. Sin tope de
        intentos: solo termina cuando el servidor llega a un estado final.
        """
        status = self.get_status(session, order_id)
        while status.state is OrderState.PROCESSING:
            self.sleep(self.poll_interval_s)
            status = self.get_status(session, order_id)

        if status.state is OrderState.FAILED:
            msg = f"Falló el procesamiento de la orden {order_id}"
            if status.message:
                msg += f": {status.message}"
            raise FlowError(ErrorCode.PROCESSING_FAILED, msg)

        log.info("Orden %s terminó de procesarse.", order_id)
        return status
