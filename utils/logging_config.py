"""
Centralized Logging Configuration

Provides secure, production-ready logging with:
- Configurable log levels
- Automatic log rotation
- Secret masking to prevent credential leaks
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log records.

    Replaces API keys, bearer tokens, passwords, webhook signatures and
    e-mail addresses with [REDACTED_*] markers.
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # API Keys (various formats)
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{20,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_API_KEY]\3'),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{16,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_SECRET]\3'),

        # Tokens
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:.]{20,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Webhook signatures
        (re.compile(r'(signature["\']?\s*[:=]\s*["\']?)((?:sha256=)?[a-fA-F0-9]{32,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_SIGNATURE]\3'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),
    ]

    def mask(self, value: str) -> str:
        for pattern, replacement in self.PATTERNS:
            value = pattern.sub(replacement, value)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        # Records are rewritten, never dropped
        if record.msg:
            record.msg = self.mask(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self.mask(v) if isinstance(v, str) else v for k, v in record.args.items()}
            else:
                record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)

        return True


def silence_sql_loggers() -> None:
    for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def setup_logging(log_dir: Path | str = "logs") -> None:
    """
    Initialize centralized logging configuration.

    Call this function once at application startup (in run.py).

    Configuration:
    - Log level from config.LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
    - Automatic rotation every midnight
    - Keeps logs for config.LOG_RETENTION_DAYS days
    - Masks secrets if config.LOG_MASK_SECRETS is True
    - Writes to logs/shop.log
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True)

    log_level_str = getattr(config, "LOG_LEVEL", "INFO")
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    retention_days = getattr(config, "LOG_RETENTION_DAYS", 7)
    mask_secrets = getattr(config, "LOG_MASK_SECRETS", True)

    formatter = logging.Formatter(
        fmt='%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / "shop.log",
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8"
    )
    console_handler = logging.StreamHandler()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())
        root_logger.addHandler(handler)

    silence_sql_loggers()

    logging.info("=" * 80)
    logging.info(f"Logging initialized: Level={log_level_str}, Retention={retention_days} days, Masking={'ENABLED' if mask_secrets else 'DISABLED'}")
    logging.info("=" * 80)
