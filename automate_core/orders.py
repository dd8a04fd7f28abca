# automate_core/orders.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import requests

from automate_core.archive import build_scan_archive, encode_upload, read_scans
from automate_core.client import AutomateClient
from automate_core.errors import ErrorCode, FlowError
from automate_core.headers import JSON_HEADER, HeaderSet
from automate_core.versions import ApiVersion

log = logging.getLogger("automate.integrator.orders")


@dataclass(frozen=True)
class OrderDescriptor:
    upper_jaw_scan_name: str
    lower_jaw_scan_name: str
    unns: Tuple[int, ...]
    name: str = "Order"
    material: str = "Zirconia"  # debe coincidir (más o menos) con un material de la plataforma
    tooth_numbering_system: str = "unn"
    order_code: str = "SC"  # v2: SC corona unitaria, NG placa de descarga
    source: str = "3rdParty"  # v2: organización que envía

    def to_payload(self, version: ApiVersion) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name}
        if version is ApiVersion.V2:
            payload["orderCode"] = self.order_code
            payload["source"] = self.source
        payload.update(
            {
                "unns": list(self.unns),
                "toothNumberingSystem": self.tooth_numbering_system,
                "upperJawScanName": self.upper_jaw_scan_name,
                "lowerJawScanName": self.lower_jaw_scan_name,
                "designPreferences": {"material": self.material},
            }
        )
        return payload


@dataclass(frozen=True)
class OrderFile:
    """Archivo de orden que genera la calificación v2; viaja dentro del zip."""

    name: str
    content: bytes

    @classmethod
    def from_json(cls, data: Any) -> "OrderFile":
        data = data or {}
        name = str(data.get("name") or "").strip()
        if not name:
            raise FlowError(
                ErrorCode.QUALIFICATION_FAILED, "La calificación no devolvió orderFile"
            )
        content = data.get("content") or ""
        if isinstance(content, list):
            # arreglo de bytes serializado
            raw = bytes(content)
        else:
            raw = str(content).encode("utf-8")
        return cls(name=name, content=raw)


def _json_or_fail(resp: requests.Response, code: ErrorCode, what: str) -> Dict[str, Any]:
    try:
        return resp.json() or {}
    except ValueError as ex:
        raise FlowError(
            code,
            f"{what}: respuesta no es JSON [{resp.status_code}]",
            status_code=resp.status_code,
        ) from ex


class OrderSubmitter:
    """
    Crea la orden y sube los escaneos.

    v3: POST /Orders/Crown → id, luego POST multipart /Orders/{id}/Submit
    v2: POST /Qualification/QualifyOrderInfo → (id, orderFile), luego
        POST multipart /Streaming/Upload/{id} con escaneos + orderFile
    """

    def __init__(self, client: AutomateClient) -> None:
        self.client = client

    # ------------------- v3 -------------------
    def create_order(self, session: HeaderSet, descriptor: OrderDescriptor) -> str:
        resp = self.client.request(
            "POST",
            self.client.routes.create_order,
            code=ErrorCode.ORDER_CREATE_FAILED,
            headers=session.merged([JSON_HEADER]),
            json_body=descriptor.to_payload(ApiVersion.V3),
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.ORDER_CREATE_FAILED,
                f"No se pudo crear la orden [{resp.status_code}]: {resp.text[:500]}",
                status_code=resp.status_code,
            )

        order = _json_or_fail(resp, ErrorCode.ORDER_CREATE_FAILED, "Crear orden")
        if order.get("id") is None:
            raise FlowError(
                ErrorCode.ORDER_CREATE_FAILED, "La respuesta de la orden no trae 'id'"
            )
        order_id = str(order["id"])
        log.info("Nueva orden creada con ID %s.", order_id)
        return order_id

    def submit_order(self, session: HeaderSet, order_id: str, archive: bytes) -> None:
        self._post_archive(session, order_id, archive)
        log.info("Orden %s enviada a diseño.", order_id)

    # ------------------- v2 -------------------
    def qualify(
        self, session: HeaderSet, descriptor: OrderDescriptor
    ) -> Tuple[str, OrderFile]:
        resp = self.client.request(
            "POST",
            self.client.routes.qualify,
            code=ErrorCode.QUALIFICATION_FAILED,
            headers=session.merged([JSON_HEADER]),
            json_body=descriptor.to_payload(ApiVersion.V2),
        )
        message = _json_or_fail(resp, ErrorCode.QUALIFICATION_FAILED, "Calificación")

        # errorMessage vacío = la orden puede diseñarse
        error_message = str(message.get("errorMessage") or "")
        if error_message:
            raise FlowError(
                ErrorCode.QUALIFICATION_FAILED,
                error_message,
                status_code=resp.status_code,
            )
        if not resp.ok:
            raise FlowError(
                ErrorCode.QUALIFICATION_FAILED,
                f"Calificación rechazada [{resp.status_code}]",
                status_code=resp.status_code,
            )
        if message.get("orderId") is None:
            raise FlowError(
                ErrorCode.QUALIFICATION_FAILED, "La calificación no devolvió 'orderId'"
            )

        order_id = str(message["orderId"])
        order_file = OrderFile.from_json(message.get("orderFile"))
        log.info("Nueva orden creada con ID %s.", order_id)
        return order_id, order_file

    def upload(self, session: HeaderSet, order_id: str, archive: bytes) -> None:
        self._post_archive(session, order_id, archive)
        log.info("Escaneos de la orden %s subidos.", order_id)

    # ------------------- común -------------------
    def send(
        self,
        session: HeaderSet,
        descriptor: OrderDescriptor,
        upper_jaw: str | Path,
        lower_jaw: str | Path,
    ) -> str:
        if self.client.version is ApiVersion.V3:
            order_id = self.create_order(session, descriptor)
            archive = build_scan_archive(read_scans(upper_jaw, lower_jaw))
            self.submit_order(session, order_id, archive)
            return order_id

        order_id, order_file = self.qualify(session, descriptor)
        entries = read_scans(upper_jaw, lower_jaw)
        entries.append((order_file.name, order_file.content))
        self.upload(session, order_id, build_scan_archive(entries))
        return order_id

    def _post_archive(self, session: HeaderSet, order_id: str, archive: bytes) -> None:
        body, content_type = encode_upload(order_id, archive)
        resp = self.client.request(
            "POST",
            self.client.routes.fill(self.client.routes.upload, order_id),
            code=ErrorCode.UPLOAD_FAILED,
            headers=session.with_header("Content-Type", content_type),
            data=body,
        )
        if not resp.ok:
            raise FlowError(
                ErrorCode.UPLOAD_FAILED,
                f"Falló la subida de la orden {order_id} [{resp.status_code}]",
                status_code=resp.status_code,
            )
