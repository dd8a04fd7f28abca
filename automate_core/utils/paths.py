# automate_core/utils/paths.py
from __future__ import annotations

import re
from pathlib import Path

_SEPARATORS = re.compile(r"[\\/]")


def scan_name(path: str | Path | None) -> str:
    """Último componente de la ruta, aceptando `/` y `\\` como separadores."""
    if not path:
        return ""
    return _SEPARATORS.split(str(path))[-1].strip()
