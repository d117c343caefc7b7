from types import MappingProxyType
from typing import Any, Callable, Optional

import structlog

# Default global registry for semantic context extractors
_DEFAULT_EXTRACTORS: dict[str, Callable[[Any], dict[str, Any]]] = {}


def _register_default_extractor(
    context_key: str, extractor_function: Callable[[Any], dict[str, Any]]
):
    _DEFAULT_EXTRACTORS[context_key] = extractor_function


_register_default_extractor(
    "tracking",
    lambda tracking: {
        "tracking_id": getattr(tracking, "pk", None),
        "identifier": getattr(tracking, "identifier", None) or None,
        "owner": getattr(tracking, "owner", None) or None,
    },
)

_register_default_extractor(
    "version",
    lambda version: {
        "identifier": getattr(version, "identifier", None),
        "previous_identifier": getattr(version, "previous_version_id", None),
    },
)

# Freeze default extractors to prevent mutation
_DEFAULT_EXTRACTORS = MappingProxyType(_DEFAULT_EXTRACTORS)


class ArchiveLogger:
    """
    A structured logging wrapper around structlog used for the events of the
    ingest pipeline that operators need to find again later (saga steps,
    compensation, failed notifications).

    Every log call needs a human readable message and a machine readable
    ``event_code``; warnings and errors additionally need ``reason`` and
    ``reason_code``.

    Usage::

        structured_logger = ArchiveLogger.get_logger(__name__)
        structured_logger.info(
            "Package stored.",
            event_code="ingest_package_stored",
            tracking=tracking_record,
            online_copy_id=result.online_copy_id,
        )

    Context objects passed under a registered key are expanded at log time:

    - ``tracking`` -> ``tracking_id``, ``identifier``, ``owner``
    - ``version`` -> ``identifier``, ``previous_identifier``

    Explicit values override extracted ones and ``None`` values are dropped.
    ``bind()`` returns a logger with context attached to every later call.
    """

    def __init__(self, logger, context: Optional[dict[str, Any]] = None):
        self._logger = logger
        self._context = context or {}
        self._extractors = _DEFAULT_EXTRACTORS

    @classmethod
    def get_logger(cls, name: str) -> "ArchiveLogger":
        """
        Factory method to create an ArchiveLogger from a given logger name.

        Args:
            name (str): Module name; the structlog logger is named
                ``structlog.<name>``.

        Returns:
            ArchiveLogger: A logger instance with enriched behavior.
        """
        return cls(structlog.get_logger(f"structlog.{name}"))

    def log(
        self,
        level: str,
        message: str,
        *,
        event_code: str,
        reason: Optional[str] = None,
        reason_code: Optional[str] = None,
        **context: Any,
    ) -> None:
        """
        Emit a structured log entry. Use the level methods instead of calling
        this directly.

        Raises:
            ValueError: If required fields are missing for the given log level.
        """
        if not message:
            raise ValueError("Log message is required.")
        if not event_code:
            raise ValueError("Structured logs must include an 'event_code' field.")
        if level in ("warning", "error") and (not reason or not reason_code):
            raise ValueError(
                "Warnings and errors must include both 'reason' and 'reason_code'."
            )

        context_data = {"event_code": event_code}
        if reason:
            context_data["reason"] = reason
        if reason_code:
            context_data["reason_code"] = reason_code

        bound_context = self._context

        for context_key, extractor_function in self._extractors.items():
            context_object = context.pop(context_key, bound_context.get(context_key))
            if context_object:
                extracted_fields = extractor_function(context_object)
                for key, value in extracted_fields.items():
                    if value is not None:
                        context_data.setdefault(key, value)

        for key, value in bound_context.items():
            if key not in self._extractors and key not in context and value is not None:
                context_data[key] = value

        # Explicit values win over extracted and bound ones
        for key, value in context.items():
            if value is not None:
                context_data[key] = value

        getattr(self._logger, level)(message, **context_data)

    def debug(self, message: str, *, event_code: str, **kwargs):
        self.log("debug", message, event_code=event_code, **kwargs)

    def info(self, message: str, *, event_code: str, **kwargs):
        self.log("info", message, event_code=event_code, **kwargs)

    def warning(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        self.log(
            "warning",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def error(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        self.log(
            "error",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def bind(self, **kwargs: Any) -> "ArchiveLogger":
        """
        Return a new ArchiveLogger with additional context permanently bound.
        """
        # Our own bound context instead of structlog's .bind so the extractors
        # can see it
        new_context = self._context.copy()
        new_context.update(kwargs)
        return ArchiveLogger(self._logger, context=new_context)
