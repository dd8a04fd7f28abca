# automate_core/results.py
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from automate_core.client import AutomateClient
from automate_core.errors import ErrorCode, FlowError
from automate_core.headers import JSON_HEADER, HeaderSet
from automate_core.status import OrderStatus
from automate_core.versions import ApiVersion

log = logging.getLogger("automate.integrator.results")


class ReviewAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


_PAST = {ReviewAction.ACCEPT: "aceptada", ReviewAction.REJECT: "rechazada"}


class ResultFinalizer:
    """
    Revisión y descarga del diseño terminado.

    Las políticas difieren por versión y se mantienen separadas:
      - v3: se revisa solo si el estado viene `reviewable`
      - v2: se acepta solo si el estado NO viene `accepted`
    """

    def __init__(self, client: AutomateClient, output_dir: str | Path) -> None:
        self.client = client
        self.output_dir = Path(output_dir)

    def review(
        self,
        session: HeaderSet,
        order_id: str,
        action: ReviewAction = ReviewAction.ACCEPT,
    ) -> None:
        routes = self.client.routes
        if routes.review is None:
            raise FlowError(
                ErrorCode.REVIEW_FAILED,
                f"La API {self.client.version.value} no soporta revisión",
            )
        resp = self.client.request(
            "POST",
            routes.fill(routes.review, order_id),
            code=ErrorCode.REVIEW_FAILED,
            headers=session.merged([JSON_HEADER]),
            json_body={"action": action.value},
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.REVIEW_FAILED,
                f"No se pudo {action.value} la orden {order_id} [{resp.status_code}]",
                status_code=resp.status_code,
            )
        log.info("Orden %s %s.", order_id, _PAST[action])

    def accept(self, session: HeaderSet, order_id: str) -> None:
        routes = self.client.routes
        if routes.accept is None:
            raise FlowError(
                ErrorCode.REVIEW_FAILED,
                f"La API {self.client.version.value} no soporta Results/Accept",
            )
        resp = self.client.request(
            "POST",
            routes.accept,
            code=ErrorCode.REVIEW_FAILED,
            headers=session.merged([JSON_HEADER]),
            json_body={"id": order_id},  # el id va en el body en esta llamada
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.REVIEW_FAILED,
                f"No se pudo aceptar la orden {order_id} [{resp.status_code}]",
                status_code=resp.status_code,
            )
        log.info("Orden %s aceptada.", order_id)

    def download(self, session: HeaderSet, order_id: str) -> Path:
        routes = self.client.routes
        resp = self.client.request(
            "GET",
            routes.fill(routes.download, order_id),
            code=ErrorCode.DOWNLOAD_FAILED,
            headers=session.merged([JSON_HEADER]),
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.DOWNLOAD_FAILED,
                f"No se pudo descargar la orden {order_id} [{resp.status_code}]",
                status_code=resp.status_code,
            )

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / f"{order_id}.zip"
            path.write_bytes(resp.content)
        except OSError as ex:
            raise FlowError(
                ErrorCode.DOWNLOAD_FAILED,
                f"No se pudo escribir el resultado en {self.output_dir}: {ex}",
            ) from ex

        log.info("Orden %s descargada en %s.", order_id, self.output_dir)
        return path

    def finalize(
        self,
        session: HeaderSet,
        order_id: str,
        status: OrderStatus,
        action: ReviewAction = ReviewAction.ACCEPT,
    ) -> Path:
        if self.client.version is ApiVersion.V3:
            if status.reviewable:
                self.review(session, order_id, action)
        elif not status.accepted:
            self.accept(session, order_id)
        return self.download(session, order_id)
