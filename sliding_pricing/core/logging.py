"""Logging setup shared by the API process and scripts."""

from __future__ import annotations

import logging
import sys

from asgi_correlation_id import CorrelationIdFilter

from sliding_pricing.core.config import get_settings

_LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a stdout handler tagged with the request correlation id."""
    settings = get_settings()
    root = logging.getLogger()
    if any(getattr(handler, "_sliding_pricing", False) for handler in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter(uuid_length=32, default_value="-"))
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._sliding_pricing = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
