# -*- coding: utf-8 -*-
"""
Flujo completo de una orden en Automate (una corrida por proceso).

Cómo usar:
    from automate_core.config import build_run_config
    from automate_core.workflow import OrderWorkflow

    config = build_run_config(args, settings)
    outcome = OrderWorkflow(config).run()
    print(outcome.output_path)

Pasos, estrictamente en orden:
    1) chequeo del endpoint (GET /)
    2) login (handshake antiforgery en dos fases)
    3) crear/calificar orden y subir escaneos (se omite con order_id existente)
    4) esperar a que termine el procesamiento
    5) revisar/aceptar según la política de la versión y descargar

Cualquier fallo levanta `FlowError` y corta la corrida: una orden a medio
enviar o a medio revisar no tiene remedio automático.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests

from automate_core.auth import Authenticator
from automate_core.client import AutomateClient
from automate_core.config import RunConfig
from automate_core.orders import OrderSubmitter
from automate_core.results import ResultFinalizer
from automate_core.status import OrderStatus, StatusPoller

log = logging.getLogger("automate.integrator.workflow")


@dataclass
class WorkflowOutcome:
    order_id: str
    status: OrderStatus
    output_path: Path


class OrderWorkflow:
    def __init__(
        self,
        config: RunConfig,
        http: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.client = AutomateClient(
            config.endpoint, config.api_version, timeout=config.timeout, http=http
        )
        self.authenticator = Authenticator(self.client)
        self.submitter = OrderSubmitter(self.client)
        self.poller = StatusPoller(
            self.client, poll_interval_s=config.poll_interval_s, sleep=sleep
        )
        self.finalizer = ResultFinalizer(self.client, config.output_dir)

    def run(self) -> WorkflowOutcome:
        cfg = self.config
        log.info(
            "Iniciando flujo API %s contra %s", cfg.api_version.value, cfg.endpoint
        )

        self.client.check_endpoint()
        session = self.authenticator.login(cfg.email, cfg.password)

        if cfg.order_id:
            order_id = cfg.order_id
            log.info("Usando orden existente %s.", order_id)
        else:
            order_id = self.submitter.send(
                session, cfg.descriptor(), cfg.upper_jaw, cfg.lower_jaw
            )

        status = self.poller.wait_for_ready(session, order_id)
        path = self.finalizer.finalize(session, order_id, status, cfg.review_action)
        return WorkflowOutcome(order_id=order_id, status=status, output_path=path)


def run_order(config: RunConfig, **kwargs) -> WorkflowOutcome:
    return OrderWorkflow(config, **kwargs).run()
