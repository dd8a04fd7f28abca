# automate_core/archive.py
from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable
from pathlib import Path
from typing import Tuple

from urllib3.filepost import encode_multipart_formdata

from automate_core.errors import ErrorCode, FlowError
from automate_core.utils.paths import scan_name

ZIP_CONTENT_TYPE = "application/zip"
COMPRESS_LEVEL = 5

Entry = Tuple[str, bytes]


def read_scans(upper_jaw: str | Path, lower_jaw: str | Path) -> list[Entry]:
    """Lee los dos escaneos y los devuelve como (nombre, bytes)."""
    entries: list[Entry] = []
    for path in (upper_jaw, lower_jaw):
        try:
            content = Path(path).read_bytes()
        except OSError as ex:
            raise FlowError(
                ErrorCode.INVALID_CONFIG, f"No se pudo leer el escaneo {path}: {ex}"
            ) from ex
        entries.append((scan_name(path), content))
    return entries


def build_scan_archive(entries: Iterable[Entry]) -> bytes:
    """Zip en memoria (deflate) con una entrada por archivo; nunca toca disco."""
    buf = io.BytesIO()
    seen: set[str] = set()
    with zipfile.ZipFile(
        buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL
    ) as zf:
        for name, content in entries:
            if name in seen:
                raise FlowError(
                    ErrorCode.INVALID_CONFIG, f"Entrada duplicada en el zip: {name}"
                )
            seen.add(name)
            zf.writestr(name, content)
    return buf.getvalue()


def encode_upload(order_id: str, archive: bytes) -> Tuple[bytes, str]:
    """
    Cuerpo multipart con un único campo `file` (`<order_id>.zip`).
    Retorna (body, content_type); el content-type lleva el boundary.
    """
    return encode_multipart_formdata(
        {"file": (f"{order_id}.zip", archive, ZIP_CONTENT_TYPE)}
    )
