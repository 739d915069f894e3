# path: monitoring/logger.py
from __future__ import annotations

import json
import os
import sys

import loguru
from dotenv import load_dotenv
from fastapi import Request
from loguru import logger

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logger(level: str | None = None) -> None:
    """
    Configura loguru con un único sink a stdout.
    Se llama una vez al levantar la app (ver app.py).
    """
    logger.remove()  # saca el handler por defecto

    logger.add(
        sink=sys.stdout,
        level=level or LOG_LEVEL,
        diagnose=False,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<bold>{message}</bold> | <dim>{extra}</dim>"
        ),
        filter=process_log_record,
    )


def process_log_record(record: "loguru.Record") -> bool:
    # "extra" como JSON para que se lea en una sola línea
    extra = record["extra"]
    if extra:
        record["extra"] = json.dumps(extra, default=str)
    return True


async def log_requests(request: Request, call_next):
    log = logger.bind(method=request.method, path=request.url.path)
    log.debug("Request received")
    response = await call_next(request)
    log.bind(status_code=response.status_code).debug("Response sent")
    return response
