# automate_core/errors.py
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    INVALID_CONFIG = "INVALID_CONFIG"
    ENDPOINT_UNAVAILABLE = "ENDPOINT_UNAVAILABLE"
    TOKEN_FETCH_FAILED = "TOKEN_FETCH_FAILED"
    LOGIN_FAILED = "LOGIN_FAILED"
    ORDER_CREATE_FAILED = "ORDER_CREATE_FAILED"
    QUALIFICATION_FAILED = "QUALIFICATION_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    STATUS_FAILED = "STATUS_FAILED"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    REVIEW_FAILED = "REVIEW_FAILED"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"


class FlowError(Exception):
    """Error fatal de un paso del flujo. Nada se reintenta: la corrida termina."""

    def __init__(
        self, code: ErrorCode, message: str, status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
