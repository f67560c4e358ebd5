"""Structured JSON logging"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from fiscops.domain.models import SyncResult


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service name"""

    def __init__(self, *args: Any, service: str = "fiscops", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(level: str = "INFO", service: str = "fiscops") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service=service))
    logger.addHandler(handler)


def log_sync(result: SyncResult, center_id: str) -> None:
    """Log the outcome of a persisted write"""
    extra = {
        "step": "sync",
        "backend": result.backend,
        "center_id": center_id,
        "written": result.written,
        "failed_chunks": result.failed_chunks,
    }
    if result.ok:
        logging.getLogger("fiscops.sync").info("Sync completed", extra=extra)
    else:
        logging.getLogger("fiscops.sync").error(f"Sync failed: {result.error}", extra=extra)


def log_load(source: str, center_id: str, taxpayer_count: int) -> None:
    logging.getLogger("fiscops.load").info(
        "Records loaded",
        extra={"step": "load", "source": source, "center_id": center_id, "taxpayers": taxpayer_count},
    )
