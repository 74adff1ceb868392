"""
Logging configuration for the GitHub owners interceptor.

Every record carries the id of the delivery being processed (Tekton's
``context.event_id``), so one webhook can be followed from receipt to
verdict. Audit records add structured fields on top of the message.
Token values never reach a log record.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

request_id_var: ContextVar[str] = ContextVar('request_id', default='')

AUDIT_LOGGER = "github_owners.audit"


class RequestIdFilter(logging.Filter):
    """Stamps the current request id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, with audit fields merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            entry["request_id"] = request_id
        entry.update(getattr(record, "audit", {}))
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class AuditLogger:
    """
    Audit trail for interceptor deliveries.

    Each delivery produces an event_received record followed by exactly one
    of authorization_decision or evaluation_failed.
    """

    def __init__(self, name: str = AUDIT_LOGGER):
        self._logger = logging.getLogger(name)

    def _emit(self, level: int, event: str, message: str, **fields) -> None:
        self._logger.log(level, message, extra={"audit": {"event": event, **fields}})

    def event_received(
        self,
        github_event: str,
        trigger_id: Optional[str] = None,
        enterprise_host: Optional[str] = None
    ) -> None:
        self._emit(
            logging.INFO,
            "event_received",
            f"received {github_event or 'unknown'} delivery",
            github_event=github_event,
            trigger_id=trigger_id,
            enterprise_host=enterprise_host,
        )

    def authorization_decision(
        self,
        repository: str,
        pr_number: int,
        sender: str,
        decision: str,
        granted_by: Optional[str] = None,
        trail: Optional[List[str]] = None
    ) -> None:
        """Record an ALLOW or DENY; denials are logged at WARNING."""
        self._emit(
            logging.INFO if decision == "ALLOW" else logging.WARNING,
            "authorization_decision",
            f"{decision} {sender or '<none>'} on {repository}#{pr_number}",
            repository=repository,
            pr_number=pr_number,
            sender=sender,
            decision=decision,
            granted_by=granted_by,
            trail=trail,
        )

    def evaluation_failed(self, code: str, reason: str, trail: Optional[List[str]] = None) -> None:
        self._emit(
            logging.ERROR,
            "evaluation_failed",
            f"evaluation failed with {code}: {reason}",
            code=code,
            reason=reason,
            trail=trail,
        )


def configure_logging(level: str = "INFO", json_format: bool = True, log_file: Optional[str] = None) -> None:
    """
    Install handlers on the root logger, replacing any already present.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: StructuredFormatter when true, a plain text line otherwise
        log_file: Optional file that receives the same records as stdout
    """
    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s')

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.setLevel(level.upper())
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        root.addHandler(handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind ``request_id`` (or a fresh uuid4) to the current context and return it."""
    request_id = request_id or str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


audit_log = AuditLogger()
