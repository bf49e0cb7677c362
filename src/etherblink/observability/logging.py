"""Structured logging for EtherBlink.

Modules log through the standard library (``logging.getLogger(__name__)``)
and pass structured fields with ``extra={...}``. ``configure_logging``
routes those records through a structlog processor chain, so the fields
appear in the rendered JSON or console line next to the request id.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars, unbind_contextvars

REDACTED = "[REDACTED]"

# Matched case-insensitively against field names, including nested dicts.
# "token" is not listed: link tokens are public.
REDACTED_FIELDS = frozenset(
    {
        "private_key",
        "private_key_file",
        "mnemonic",
        "seed_phrase",
        "secret",
        "password",
        "api_key",
        "auth_token",
        "access_token",
        "raw_transaction",
    }
)

QUIET_LOGGERS = ("web3", "urllib3", "aiohttp.access")

_HANDLER_NAME = "etherblink"


def redact_sensitive(
    _logger: Any,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Replace the values of sensitive fields with a placeholder."""
    return _redact(event_dict)


def _redact(fields: dict[str, Any]) -> dict[str, Any]:
    for key, value in fields.items():
        if key.lower() in REDACTED_FIELDS:
            fields[key] = REDACTED
        elif isinstance(value, dict):
            fields[key] = _redact(dict(value))
    return fields


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(
            f"Invalid log level: {level!r}. "
            "Valid levels are: DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    return value


def _renderer(log_format: str) -> list[structlog.typing.Processor]:
    if log_format.lower() == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Install the EtherBlink log handler on the root logger.

    Calling it again replaces the previous EtherBlink handler, so the
    level and format can be changed at runtime. Handlers installed by
    other code are left in place.

    Parameters
    ----------
    level : str
        DEBUG, INFO, WARNING, ERROR or CRITICAL.
    log_format : str
        ``json`` for one JSON object per line, anything else for
        console output.

    Raises
    ------
    ValueError
        If ``level`` is not a known level name.
    """
    log_level = _parse_level(level)

    shared: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive,
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer(log_format),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def set_request_id(request_id: str) -> None:
    """Attach ``request_id`` to every record logged in this context."""
    bind_contextvars(request_id=request_id)


def clear_request_id() -> None:
    unbind_contextvars("request_id")


def current_request_id() -> str | None:
    return get_contextvars().get("request_id")
