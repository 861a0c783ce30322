"""Audit event recording shared by the ledger and payroll services."""

from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.models import AuditEvent


def _json_safe(details: dict[str, Any]) -> dict[str, Any]:
    # Decimals, UUIDs and dates are stored as strings
    return json.loads(json.dumps(details, default=str))


def record_audit(
    session: AsyncSession,
    organization_id: UUID,
    entity_type: str,
    entity_id: UUID,
    action: str,
    details: dict[str, Any] | None = None,
) -> AuditEvent:
    """Add an audit event to the current transaction."""
    event = AuditEvent(
        organization_id=organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        details_json=_json_safe(details) if details else None,
    )
    session.add(event)
    return event
