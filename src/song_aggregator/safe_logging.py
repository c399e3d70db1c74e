"""Secret-safe logging utilities for song-aggregator.

Provider calls carry credentials in headers and query strings (Spotify bearer
tokens, the YouTube API key). These helpers keep them out of log output:
- Sensitive field redaction
- Credential scrubbing in messages and URLs
- Rich console logging setup
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Fields that should be redacted in logs
REDACT_FIELDS = frozenset(
    {
        "secret",
        "token",
        "api_key",
        "apikey",
        "key",
        "authorization",
        "access_token",
        "client_secret",
    }
)

# Regex patterns for credentials embedded in free text
PATTERNS = {
    "bearer": re.compile(r"\b(Bearer|Basic)\s+[A-Za-z0-9._~+/=-]+", re.I),
    "query_key": re.compile(r"([?&](?:key|access_token)=)[^&\s'\"]+", re.I),
}


def redact_value(value: str, visible_chars: int = 4) -> str:
    """Redact a sensitive value, showing only first few characters.

    Args:
        value: Value to redact
        visible_chars: Number of characters to show

    Returns:
        Redacted string (e.g., "sk-a***")
    """
    if len(value) <= visible_chars:
        return "***"
    return f"{value[:visible_chars]}***"


def redact_dict(
    data: dict[str, Any],
    redact_fields: frozenset[str] | None = None,
) -> dict[str, Any]:
    """Recursively redact sensitive fields in a dictionary.

    Args:
        data: Dictionary to redact
        redact_fields: Set of field names to redact (case-insensitive)

    Returns:
        New dictionary with sensitive fields redacted
    """
    if redact_fields is None:
        redact_fields = REDACT_FIELDS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        should_redact = key_lower in redact_fields or any(
            field in key_lower for field in redact_fields if field != "key"
        )

        if should_redact and isinstance(value, str):
            result[key] = redact_value(value)
        elif isinstance(value, dict):
            result[key] = redact_dict(value, redact_fields)
        elif isinstance(value, list):
            result[key] = [
                redact_dict(item, redact_fields) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def sanitize_message(message: str) -> str:
    """Scrub credentials from a log message.

    Args:
        message: Log message to sanitize

    Returns:
        Message with authorization values and key query parameters masked
    """
    result = PATTERNS["bearer"].sub(lambda m: f"{m.group(1)} ***", message)
    result = PATTERNS["query_key"].sub(lambda m: f"{m.group(1)}***", result)
    return result


class SafeLogFormatter(logging.Formatter):
    """Log formatter that scrubs credentials.

    Sanitizes the message and any string or mapping arguments.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        sanitize_messages: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.sanitize_messages = sanitize_messages

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers see the original record
        record = logging.makeLogRecord(record.__dict__)

        if self.sanitize_messages:
            record.msg = sanitize_message(str(record.msg))

        if record.args:
            record.args = self._sanitize_args(record.args)

        return super().format(record)

    def _sanitize_args(
        self, args: tuple[Any, ...] | Mapping[str, Any]
    ) -> tuple[Any, ...] | dict[str, Any]:
        """Sanitize formatting arguments, keeping mappings as mappings."""
        if isinstance(args, Mapping):
            redacted = redact_dict(dict(args))
            return {key: self._sanitize_value(value) for key, value in redacted.items()}
        return tuple(self._sanitize_value(arg) for arg in args)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return sanitize_message(value)
        if isinstance(value, dict):
            return redact_dict(value)
        # httpx passes URL objects when logging requests
        if value.__class__.__name__ == "URL":
            return sanitize_message(str(value))
        return value


def configure_rich_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    show_time: bool = True,
    show_path: bool = False,
) -> Console:
    """Configure logging through Rich with credential-safe formatting.

    Args:
        level: Logging level
        format_string: Optional custom format string
        show_time: Show timestamps in the Rich handler
        show_path: Show source locations in the Rich handler

    Returns:
        The stderr Console used by the handler, for CLI output
    """
    console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(SafeLogFormatter(fmt=format_string or "%(name)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in list(root_logger.handlers):
        if isinstance(existing, RichHandler):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    return console


## Tests


def test_redact_value():
    """Test value redaction."""
    assert redact_value("sk-secret-key-12345") == "sk-s***"
    assert redact_value("abc") == "***"
    assert redact_value("abcdef", 3) == "abc***"


def test_redact_dict():
    """Test dictionary redaction."""
    data = {
        "client_secret": "abcdef123456",
        "query": "daft punk",
        "nested": {"access_token": "BQD-token", "token_type": "Bearer"},
    }

    redacted = redact_dict(data)

    assert redacted["client_secret"] == "abcd***"
    assert redacted["query"] == "daft punk"
    assert redacted["nested"]["access_token"] == "BQD-***"


def test_sanitize_message():
    """Test credential scrubbing."""
    msg = (
        "GET https://www.googleapis.com/youtube/v3/search?q=x&key=AIzaSecret "
        "Authorization: Bearer BQDabc.def"
    )
    sanitized = sanitize_message(msg)

    assert "AIzaSecret" not in sanitized
    assert "BQDabc.def" not in sanitized
    assert "key=***" in sanitized
    assert "q=x" in sanitized


def test_safe_log_formatter():
    """Test SafeLogFormatter."""
    formatter = SafeLogFormatter(fmt="%(message)s")

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="HTTP Request: %s %s",
        args=("GET", "https://example.test/videos?id=abc&key=secret123"),
        exc_info=None,
    )

    formatted = formatter.format(record)
    assert "secret123" not in formatted
    assert "id=abc" in formatted


def test_safe_log_formatter_mapping_args():
    """Test that mapping arguments still format by name."""
    formatter = SafeLogFormatter(fmt="%(message)s")

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="%(provider)s answered %(url)s with token %(access_token)s",
        args=(
            {
                "provider": "youtube",
                "url": "https://example.test/search?q=x&key=secret123",
                "access_token": "BQD-token",
            },
        ),
        exc_info=None,
    )

    formatted = formatter.format(record)
    assert formatted.startswith("youtube answered https://example.test/search?q=x&key=***")
    assert "secret123" not in formatted
    assert "BQD-***" in formatted
