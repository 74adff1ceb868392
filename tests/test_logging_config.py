import json
import logging

from app.logging_config import AuditLogger, RequestIdFilter, StructuredFormatter, set_request_id


class ListHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.lines = []
        self.setFormatter(StructuredFormatter())
        self.addFilter(RequestIdFilter())

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


def test_audit_decision_record():
    handler = ListHandler()
    logger = logging.getLogger("tests.audit")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        set_request_id("evt-1")
        AuditLogger("tests.audit").authorization_decision(
            repository="acme/widgets",
            pr_number=7,
            sender="mallory",
            decision="DENY",
            trail=["RECEIVED", "DENIED"],
        )
    finally:
        logger.removeHandler(handler)

    [entry] = handler.lines
    assert entry["level"] == "warning"
    assert entry["request_id"] == "evt-1"
    assert entry["event"] == "authorization_decision"
    assert entry["sender"] == "mallory"
    assert entry["msg"] == "DENY mallory on acme/widgets#7"


def test_generated_request_id():
    assert set_request_id("") != ""
    assert set_request_id(None) != set_request_id(None)
