"""ID Generation - Prefixed, human-readable entity ids"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Random 12-hex-digit id, optionally prefixed

    >>> generate_id("TKT")    # doctest: +SKIP
    'TKT-3f9c0a1b7d2e'
    """
    unique_part = uuid.uuid4().hex[:12]
    return f"{prefix}-{unique_part}" if prefix else unique_part


def generate_ticket_id() -> str:
    return generate_id("TKT")


def generate_approval_request_id() -> str:
    return generate_id("APR")


def generate_stage_id() -> str:
    return generate_id("STG")


def generate_rule_id() -> str:
    return generate_id("RULE")


def generate_team_id() -> str:
    return generate_id("TEAM")


def generate_member_id() -> str:
    return generate_id("MEM")


def generate_notification_id() -> str:
    return generate_id("NTF")


def generate_history_id() -> str:
    return generate_id("HIST")


def generate_correlation_id() -> str:
    """Correlation id for request tracing: COR-<utc yyyymmddHHMMSS>-<8 hex>"""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"COR-{timestamp}-{uuid.uuid4().hex[:8]}"
