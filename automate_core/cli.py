#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from automate_core.config import Settings, build_run_config, load_settings
from automate_core.errors import FlowError
from automate_core.workflow import run_order

log = logging.getLogger("automate.integrator.cli")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="automate-order",
        description="Crear, esperar, aceptar y descargar una orden en 3Shape Automate.",
    )
    ap.add_argument(
        "endpoint",
        nargs="?",
        help="URL base (default: https://automate.3shape.com o api.base_url del YAML)",
    )
    ap.add_argument("--email", help="Usuario de Automate")
    ap.add_argument("--password", help="Contraseña de Automate")
    ap.add_argument("--upperjaw", help="Ruta del escaneo del maxilar superior")
    ap.add_argument("--lowerjaw", help="Ruta del escaneo del maxilar inferior")
    ap.add_argument("--unns", help="Dientes en notación UNN, separados por coma (ej: 11,21)")
    ap.add_argument("--output", help="Carpeta donde se escribe <orderId>.zip")
    ap.add_argument("--orderid", help="Reusar una orden existente en vez de crear otra")
    ap.add_argument("--api-version", choices=["v2", "v3"], help="Versión de la API (default: v3)")
    ap.add_argument("--review", choices=["accept", "reject"], help="Acción de revisión v3 (default: accept)")
    ap.add_argument("--poll-interval", type=float, help="Segundos entre consultas de estado (default: 30)")
    ap.add_argument("--timeout", type=float, help="Timeout HTTP en segundos (default: 30)")
    ap.add_argument("--name", help="Nombre de la orden")
    ap.add_argument("--material", help="Material del diseño (ej: Zirconia)")
    ap.add_argument("--order-code", help="Solo v2: SC corona unitaria, NG placa de descarga")
    ap.add_argument("--source", help="Solo v2: nombre de la organización")
    ap.add_argument("--config", help="Ruta a settings.yaml con valores por defecto")
    ap.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Nivel de log (default: INFO)",
    )
    return ap.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        settings = load_settings(args.config) if args.config else Settings()
        config = build_run_config(args, settings)
        outcome = run_order(config)
    except FlowError as fe:
        log.error("[%s] %s", fe.code.value, fe)
        return 1

    log.info("Orden %s lista: %s", outcome.order_id, outcome.output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
