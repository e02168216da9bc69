"""Logging setup for the CLI, with GitHub credentials masked."""

from __future__ import annotations

import logging
import re

from .github.client import TOKEN_PREFIXES

REDACTED = "[REDACTED]"

_TOKEN_PATTERN = re.compile(
    "(?:" + "|".join(re.escape(prefix) for prefix in TOKEN_PREFIXES) + r")[A-Za-z0-9_]+"
)
_BEARER_PATTERN = re.compile(r"Bearer\s+[A-Za-z0-9_.\-]+")


def redact(text: str) -> str:
    """Mask token-shaped strings and bearer credentials."""
    text = _TOKEN_PATTERN.sub(REDACTED, text)
    return _BEARER_PATTERN.sub(f"Bearer {REDACTED}", text)


class SecretRedactingFilter(logging.Filter):
    """Masks credentials in the fully formatted message.

    Arguments are merged into the message first, so a token passed inside
    an exception or a mapping is caught as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging; debug output with ``verbose``."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    redacting = SecretRedactingFilter()
    for handler in logging.getLogger().handlers:
        handler.addFilter(redacting)

    # Request lines from the HTTP stack are noise below WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
