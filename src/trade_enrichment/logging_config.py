"""
Centralized logging configuration for the enrichment service.

setup_logging configures the root logger once per process with:
- Console output on stdout
- Optional file output to logs/{service_name}.log (fresh file on each start)
- Noisy third-party loggers held at WARNING
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional

from trade_enrichment.config import env_bool, env_str

_config_lock = threading.Lock()
_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("asyncio", "aiohttp", "aiohttp.access", "redis", "redis.asyncio", "redis.connection")


def _resolve_level(level: Optional[str]) -> int:
    name = (level or env_str("LOG_LEVEL", or_value="INFO") or "INFO").upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {name}")
    return resolved


def _build_console_handler() -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    return console_handler


def _build_file_handler(service_name: str, log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    file_mode = "a" if env_bool("LOG_APPEND", or_value=False) else "w"
    file_handler = logging.FileHandler(log_dir / f"{service_name}.log", mode=file_mode)
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    return file_handler


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(
    service_name: Optional[str] = None,
    level: Optional[str] = None,
    *,
    log_to_file: bool = False,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the root logger; repeated calls replace the previous handlers."""

    with _config_lock:
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        root_logger.setLevel(_resolve_level(level))
        root_logger.addHandler(_build_console_handler())

        if service_name and log_to_file:
            target_dir = log_dir or Path(env_str("LOG_DIR", or_value=os.path.join(os.getcwd(), "logs")) or "logs")
            root_logger.addHandler(_build_file_handler(service_name, target_dir))

        _suppress_noisy_third_parties()

    return logging.getLogger(service_name) if service_name else root_logger


__all__ = ["setup_logging"]
