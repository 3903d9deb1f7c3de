"""
Centralized Logging Configuration

One setup call wires the root logger for the delivery client:
- level, directory and retention come from config (overridable per call)
- midnight rotation of <LOG_DIR>/lmd_client.log plus console output
- SecretMaskingFilter on both handlers, so bearer tokens and customer
  contact data never reach a log line
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Any, Pattern

import config

LOG_FILE_NAME = "lmd_client.log"
LOG_FORMAT = '%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Transport loggers that report every connection below WARNING
NOISY_LOGGERS = ('aiohttp.client', 'aiohttp.access', 'aiohttp.internal')


class SecretMaskingFilter(logging.Filter):
    """
    Rewrites log records so secrets and contact data are replaced by [REDACTED_*].

    Covers the message, string arguments, and string values of dict arguments
    (request payloads are often logged as dicts).
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{20,})(["\']?)', re.IGNORECASE),
         r'\1[REDACTED_API_KEY]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-\.:]{20,})(["\']?)', re.IGNORECASE),
         r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE),
         r'\1[REDACTED_PASSWORD]\3'),
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),
        # Only numbers written with a country code, so ids and amounts stay readable
        (re.compile(r'\+\d{1,3}[-.\s]?\(?\d{2,4}\)?[-.\s]?\d{3,4}[-.\s]?\d{3,4}\b'), '[REDACTED_PHONE]'),
    ]

    SENSITIVE_KEYS = frozenset({'token', 'password', 'authorization', 'email', 'phone'})

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    @classmethod
    def _mask_value(cls, key: Any, value: Any) -> Any:
        if isinstance(key, str) and key.lower() in cls.SENSITIVE_KEYS and value:
            return f'[REDACTED_{key.upper()}]'
        if isinstance(value, str):
            return cls.mask(value)
        return value

    @classmethod
    def _mask_arg(cls, arg: Any) -> Any:
        if isinstance(arg, str):
            return cls.mask(arg)
        if isinstance(arg, dict):
            return {key: cls._mask_value(key, value) for key, value in arg.items()}
        return arg

    def filter(self, record: logging.LogRecord) -> bool:
        """Always keeps the record; only its content is rewritten."""
        if record.msg:
            record.msg = self.mask(str(record.msg))

        if isinstance(record.args, dict):
            record.args = self._mask_arg(record.args)
        elif record.args:
            record.args = tuple(self._mask_arg(arg) for arg in record.args)

        return True


def _file_handler(log_dir: Path, retention_days: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    return logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8"
    )


def setup_logging(level: str | None = None, log_dir: str | Path | None = None) -> logging.Logger:
    """
    Initialize logging once at application startup.

    Args:
        level: Overrides config.LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
        log_dir: Overrides config.LOG_DIR

    Returns:
        The configured root logger. Handlers from an earlier call are replaced.
    """
    level_name = (level or getattr(config, "LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    retention_days = getattr(config, "LOG_RETENTION_DAYS", 7)
    mask_secrets = getattr(config, "LOG_MASK_SECRETS", True)
    directory = Path(log_dir or getattr(config, "LOG_DIR", "logs"))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers = [_file_handler(directory, retention_days), logging.StreamHandler()]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized: level={level_name}, dir={directory}, "
                     f"retention={retention_days}d, masking={'on' if mask_secrets else 'off'}")
    return root_logger
