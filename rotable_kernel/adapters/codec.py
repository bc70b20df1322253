r"""
Row codec for spreadsheet-backed persistence.

Converts the frozen domain objects to flat rows of cell values and back.
Cells only hold strings and integers: dates, timestamps, decimals and UUIDs
are written as ISO / canonical strings, nested collections (checklists,
approval decisions) as JSON text.

Blank cells read back as None.  Required text columns decode None as "".

Some text does not survive a save and reload as-is: control characters
are refused by openpyxl, ``\r`` is normalized away by the XML parser,
the shared-string reader deletes every ``x005F_``, and a leading ``=``
makes a formula.  ``cell_out`` stores such text as ``json:`` plus a JSON
string literal with every ``_`` written as ``\u005f``; ``cell_in``
reverses it.  Text that already starts with ``json:`` is wrapped too.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from rotable_kernel.domain.component import Component, ComponentStatus, ComponentType
from rotable_kernel.domain.fabrication import (
    ApprovalDecision,
    ApprovalDecisionRecord,
    ApproverRole,
    FabricationReason,
    FabricationRequest,
    FabricationStatus,
)
from rotable_kernel.domain.inspection import QAChecklistItem, QARecord, QAStatus
from rotable_kernel.domain.installation import InstallRecord
from rotable_kernel.domain.timeline import TimelineEvent, TimelineEventType

Row = dict[str, Any]

COMPONENT_COLUMNS = (
    "id", "type", "status", "serial_number", "date_received", "from_unit_id",
    "condition_notes", "oem_part_number", "model_compatibility",
    "vendor_reference", "total_lifetime", "cycles", "version",
)
QA_RECORD_COLUMNS = (
    "id", "component_id", "stage", "status", "checklist", "mechanic_name",
    "date_updated", "notes",
)
FABRICATION_COLUMNS = (
    "id", "component_id", "component_type", "reason", "vendor_name",
    "estimated_cost", "created_by", "created_at", "status", "attachment",
    "decisions",
)
INSTALL_COLUMNS = (
    "id", "component_id", "component_type", "unit_id", "install_date",
    "hm_start", "remove_date", "hm_end", "removal_reason",
)
TIMELINE_COLUMNS = (
    "id", "component_id", "date", "type", "title", "description", "actor",
)


# ---------------------------------------------------------------------------
# Scalar cells
# ---------------------------------------------------------------------------

WRAPPED_PREFIX = "json:"


def _needs_wrapping(value: str) -> bool:
    return (
        ILLEGAL_CHARACTERS_RE.search(value) is not None
        or "\r" in value
        or "x005F_" in value
        or value.startswith(("=", WRAPPED_PREFIX))
    )


def cell_out(value: Any) -> Any:
    """Make a value safe to store in a worksheet cell."""
    if not isinstance(value, str) or not _needs_wrapping(value):
        return value
    return WRAPPED_PREFIX + json.dumps(value).replace("_", "\\u005f")


def cell_in(value: Any) -> Any:
    """Inverse of ``cell_out``."""
    if isinstance(value, str) and value.startswith(WRAPPED_PREFIX):
        return json.loads(value[len(WRAPPED_PREFIX):])
    return value


def _date_out(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _date_in(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _datetime_out(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _datetime_in(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _int_in(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _text_in(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text_in(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def component_to_row(component: Component) -> Row:
    return {
        "id": component.id,
        "type": component.type.value,
        "status": component.status.value,
        "serial_number": component.serial_number,
        "date_received": _date_out(component.date_received),
        "from_unit_id": component.from_unit_id,
        "condition_notes": component.condition_notes,
        "oem_part_number": component.oem_part_number,
        "model_compatibility": component.model_compatibility,
        "vendor_reference": component.vendor_reference,
        "total_lifetime": component.total_lifetime,
        "cycles": component.cycles,
        "version": component.version,
    }


def component_from_row(row: Row) -> Component:
    return Component(
        id=str(row["id"]),
        type=ComponentType(row["type"]),
        status=ComponentStatus(row["status"]),
        serial_number=_text_in(row["serial_number"]),
        date_received=_date_in(row["date_received"]),
        from_unit_id=_optional_text_in(row["from_unit_id"]),
        condition_notes=_optional_text_in(row["condition_notes"]),
        oem_part_number=_optional_text_in(row["oem_part_number"]),
        model_compatibility=_optional_text_in(row["model_compatibility"]),
        vendor_reference=_optional_text_in(row["vendor_reference"]),
        total_lifetime=_int_in(row["total_lifetime"]) or 0,
        cycles=_int_in(row["cycles"]) or 0,
        version=_int_in(row["version"]) or 0,
    )


# ---------------------------------------------------------------------------
# QA records
# ---------------------------------------------------------------------------


def qa_record_to_row(record: QARecord) -> Row:
    return {
        "id": str(record.id),
        "component_id": record.component_id,
        "stage": record.stage,
        "status": record.status.value,
        "checklist": json.dumps([
            {"id": item.id, "label": item.label, "checked": item.checked}
            for item in record.checklist_items
        ]),
        "mechanic_name": record.mechanic_name,
        "date_updated": _datetime_out(record.date_updated),
        "notes": record.notes,
    }


def qa_record_from_row(row: Row) -> QARecord:
    items = json.loads(row["checklist"] or "[]")
    return QARecord(
        id=UUID(str(row["id"])),
        component_id=str(row["component_id"]),
        stage=int(row["stage"]),
        status=QAStatus(row["status"]),
        checklist_items=tuple(
            QAChecklistItem(id=item["id"], label=item["label"], checked=item["checked"])
            for item in items
        ),
        mechanic_name=_optional_text_in(row["mechanic_name"]),
        date_updated=_datetime_in(row["date_updated"]),
        notes=_text_in(row["notes"]),
    )


# ---------------------------------------------------------------------------
# Fabrication requests
# ---------------------------------------------------------------------------


def _decision_to_json(decision: ApprovalDecisionRecord) -> dict:
    return {
        "id": str(decision.id),
        "approver": decision.approver,
        "role": decision.role.value,
        "decision": decision.decision.value,
        "decided_at": decision.decided_at.isoformat(),
        "comment": decision.comment,
    }


def _decision_from_json(data: dict) -> ApprovalDecisionRecord:
    return ApprovalDecisionRecord(
        id=UUID(data["id"]),
        approver=data["approver"],
        role=ApproverRole(data["role"]),
        decision=ApprovalDecision(data["decision"]),
        decided_at=datetime.fromisoformat(data["decided_at"]),
        comment=data["comment"],
    )


def fabrication_to_row(request: FabricationRequest) -> Row:
    return {
        "id": str(request.id),
        "component_id": request.component_id,
        "component_type": request.component_type.value,
        "reason": request.reason.value,
        "vendor_name": request.vendor_name,
        "estimated_cost": str(request.estimated_cost),
        "created_by": request.created_by,
        "created_at": _datetime_out(request.created_at),
        "status": request.status.value,
        "attachment": request.attachment,
        "decisions": json.dumps([_decision_to_json(d) for d in request.decisions]),
    }


def fabrication_from_row(row: Row) -> FabricationRequest:
    return FabricationRequest(
        id=UUID(str(row["id"])),
        component_id=str(row["component_id"]),
        component_type=ComponentType(row["component_type"]),
        reason=FabricationReason(row["reason"]),
        vendor_name=_text_in(row["vendor_name"]),
        estimated_cost=Decimal(str(row["estimated_cost"])),
        created_by=_text_in(row["created_by"]),
        created_at=_datetime_in(row["created_at"]),
        status=FabricationStatus(row["status"]),
        attachment=_optional_text_in(row["attachment"]),
        decisions=tuple(
            _decision_from_json(d) for d in json.loads(row["decisions"] or "[]")
        ),
    )


# ---------------------------------------------------------------------------
# Install records
# ---------------------------------------------------------------------------


def install_to_row(record: InstallRecord) -> Row:
    return {
        "id": str(record.id),
        "component_id": record.component_id,
        "component_type": record.component_type.value,
        "unit_id": record.unit_id,
        "install_date": _date_out(record.install_date),
        "hm_start": record.hm_start,
        "remove_date": _date_out(record.remove_date),
        "hm_end": record.hm_end,
        "removal_reason": record.removal_reason,
    }


def install_from_row(row: Row) -> InstallRecord:
    return InstallRecord(
        id=UUID(str(row["id"])),
        component_id=str(row["component_id"]),
        component_type=ComponentType(row["component_type"]),
        unit_id=str(row["unit_id"]),
        install_date=_date_in(row["install_date"]),
        hm_start=int(row["hm_start"]),
        remove_date=_date_in(row["remove_date"]),
        hm_end=_int_in(row["hm_end"]),
        removal_reason=_text_in(row["removal_reason"]),
    )


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


def timeline_to_row(event: TimelineEvent) -> Row:
    return {
        "id": str(event.id),
        "component_id": event.component_id,
        "date": _datetime_out(event.date),
        "type": event.type.value,
        "title": event.title,
        "description": event.description,
        "actor": event.actor,
    }


def timeline_from_row(row: Row) -> TimelineEvent:
    return TimelineEvent(
        id=UUID(str(row["id"])),
        component_id=str(row["component_id"]),
        date=_datetime_in(row["date"]),
        type=TimelineEventType(row["type"]),
        title=_text_in(row["title"]),
        description=_text_in(row["description"]),
        actor=_optional_text_in(row["actor"]),
    )
