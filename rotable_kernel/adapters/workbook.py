"""
Workbook persistence adapter.

Implements ``PersistencePort`` over an ``.xlsx`` workbook, one sheet per
entity with a header row, using openpyxl.  This is the spreadsheet-backed
store a workshop runs from a shared drive: every successful write call
saves the whole workbook before returning, so a call either lands in the
file or (on error) leaves the previous file untouched and the in-memory
copy reloaded from it.

Cell encoding lives in ``rotable_kernel.adapters.codec``.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Iterator
from uuid import UUID

import openpyxl
from openpyxl.worksheet.worksheet import Worksheet

from rotable_kernel.adapters import codec
from rotable_kernel.domain.component import Component
from rotable_kernel.domain.fabrication import FabricationRequest
from rotable_kernel.domain.inspection import QARecord
from rotable_kernel.domain.installation import InstallRecord
from rotable_kernel.domain.timeline import TimelineEvent
from rotable_kernel.exceptions import (
    ConcurrentModificationError,
    DuplicateComponentError,
    ImmutabilityViolationError,
    NotFoundError,
)
from rotable_kernel.logging_config import get_logger

logger = get_logger("adapters.workbook")

COMPONENTS = "components"
QA_RECORDS = "qa_records"
FABRICATION_REQUESTS = "fabrication_requests"
INSTALL_RECORDS = "install_records"
TIMELINE = "timeline"

SHEETS: dict[str, tuple[str, ...]] = {
    COMPONENTS: codec.COMPONENT_COLUMNS,
    QA_RECORDS: codec.QA_RECORD_COLUMNS,
    FABRICATION_REQUESTS: codec.FABRICATION_COLUMNS,
    INSTALL_RECORDS: codec.INSTALL_COLUMNS,
    TIMELINE: codec.TIMELINE_COLUMNS,
}


class WorkbookPersistence:
    """Spreadsheet store. One lock serializes all calls in this process."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()
        if self._path.exists():
            self._workbook = openpyxl.load_workbook(self._path)
            self._ensure_sheets()
        else:
            self._workbook = openpyxl.Workbook()
            self._workbook.remove(self._workbook.active)
            self._ensure_sheets()
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._flush()
            logger.info("workbook_created", extra={"path": str(self._path)})

    @property
    def path(self) -> Path:
        return self._path

    # -- Sheet helpers ------------------------------------------------------

    def _ensure_sheets(self) -> None:
        for name, columns in SHEETS.items():
            if name not in self._workbook.sheetnames:
                sheet = self._workbook.create_sheet(name)
                sheet.append(list(columns))
                continue
            header = [cell.value for cell in self._workbook[name][1]]
            if tuple(header[:len(columns)]) != columns:
                raise ValueError(
                    f"Sheet {name!r} in {self._path} has unexpected header {header}"
                )

    def _sheet(self, name: str) -> Worksheet:
        return self._workbook[name]

    def _rows(self, name: str) -> Iterator[tuple[int, dict[str, Any]]]:
        """Yield (row number, row dict) for every data row of a sheet."""
        columns = SHEETS[name]
        sheet = self._sheet(name)
        for index, values in enumerate(
            sheet.iter_rows(min_row=2, max_col=len(columns), values_only=True),
            start=2,
        ):
            if values[0] is None:
                continue
            yield index, {column: codec.cell_in(value) for column, value in zip(columns, values)}

    def _find(
        self, name: str, predicate: Callable[[dict[str, Any]], bool],
    ) -> tuple[int, dict[str, Any]] | None:
        for index, row in self._rows(name):
            if predicate(row):
                return index, row
        return None

    def _write(self, name: str, row: dict[str, Any], index: int | None = None) -> None:
        columns = SHEETS[name]
        sheet = self._sheet(name)
        if index is None:
            sheet.append([codec.cell_out(row[column]) for column in columns])
            return
        for offset, column in enumerate(columns, start=1):
            sheet.cell(row=index, column=offset, value=codec.cell_out(row[column]))

    def _flush(self) -> None:
        self._workbook.save(self._path)

    def _reload(self) -> None:
        self._workbook = openpyxl.load_workbook(self._path)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Apply sheet edits and save them.

        If an edit or the save raises, the in-memory workbook is replaced by
        the last saved file, so a half-written row never reaches a later save.
        """
        try:
            yield
            self._flush()
        except Exception:
            logger.warning("workbook_write_failed", extra={"path": str(self._path)})
            self._reload()
            raise

    # -- Components ---------------------------------------------------------

    def load(self, component_id: str) -> Component:
        with self._lock:
            found = self._find(COMPONENTS, lambda r: r["id"] == component_id)
            if found is None:
                raise NotFoundError("Component", component_id)
            return codec.component_from_row(found[1])

    def list_components(self) -> list[Component]:
        with self._lock:
            components = [codec.component_from_row(row) for _, row in self._rows(COMPONENTS)]
        return sorted(components, key=lambda c: c.id)

    def save(self, component: Component) -> Component:
        with self._lock:
            found = self._find(COMPONENTS, lambda r: r["id"] == component.id)
            if component.version == 0:
                if found is not None:
                    raise DuplicateComponentError(component.id)
                index = None
            elif found is None:
                raise NotFoundError("Component", component.id)
            else:
                index, row = found
                if int(row["version"]) != component.version:
                    logger.info(
                        "component_version_conflict",
                        extra={
                            "component_id": component.id,
                            "expected_version": component.version,
                            "stored_version": row["version"],
                        },
                    )
                    raise ConcurrentModificationError(
                        "Component", component.id, component.version,
                    )
            saved = replace(component, version=component.version + 1)
            with self._transaction():
                self._write(COMPONENTS, codec.component_to_row(saved), index)
            return saved

    # -- QA records ---------------------------------------------------------

    def _qa_row(self, component_id: str, stage: int):
        return self._find(
            QA_RECORDS,
            lambda r: r["component_id"] == component_id and int(r["stage"]) == stage,
        )

    def load_qa_record(self, component_id: str, stage: int) -> QARecord | None:
        with self._lock:
            found = self._qa_row(component_id, stage)
            return codec.qa_record_from_row(found[1]) if found is not None else None

    def save_qa_record(self, record: QARecord) -> None:
        with self._lock:
            found = self._qa_row(record.component_id, record.stage)
            index = found[0] if found is not None else None
            with self._transaction():
                self._write(QA_RECORDS, codec.qa_record_to_row(record), index)

    def list_qa_records(self, component_id: str) -> list[QARecord]:
        with self._lock:
            records = [
                codec.qa_record_from_row(row)
                for _, row in self._rows(QA_RECORDS)
                if row["component_id"] == component_id
            ]
        return sorted(records, key=lambda r: r.stage)

    # -- Fabrication requests -----------------------------------------------

    def load_fabrication_request(self, request_id: UUID) -> FabricationRequest:
        with self._lock:
            found = self._find(FABRICATION_REQUESTS, lambda r: r["id"] == str(request_id))
            if found is None:
                raise NotFoundError("FabricationRequest", str(request_id))
            return codec.fabrication_from_row(found[1])

    def load_open_fabrication_request(
        self, component_id: str,
    ) -> FabricationRequest | None:
        with self._lock:
            for _, row in self._rows(FABRICATION_REQUESTS):
                if row["component_id"] != component_id:
                    continue
                request = codec.fabrication_from_row(row)
                if request.is_open:
                    return request
            return None

    def save_fabrication_request(self, request: FabricationRequest) -> None:
        with self._lock:
            found = self._find(FABRICATION_REQUESTS, lambda r: r["id"] == str(request.id))
            index = found[0] if found is not None else None
            with self._transaction():
                self._write(FABRICATION_REQUESTS, codec.fabrication_to_row(request), index)

    def list_fabrication_requests(
        self, component_id: str | None = None,
    ) -> list[FabricationRequest]:
        with self._lock:
            return [
                codec.fabrication_from_row(row)
                for _, row in self._rows(FABRICATION_REQUESTS)
                if component_id is None or row["component_id"] == component_id
            ]

    # -- Install records ----------------------------------------------------

    def load_install_record(self, record_id: UUID) -> InstallRecord:
        with self._lock:
            found = self._find(INSTALL_RECORDS, lambda r: r["id"] == str(record_id))
            if found is None:
                raise NotFoundError("InstallRecord", str(record_id))
            return codec.install_from_row(found[1])

    def load_open_install_record(self, component_id: str) -> InstallRecord | None:
        with self._lock:
            found = self._find(
                INSTALL_RECORDS,
                lambda r: r["component_id"] == component_id and r["remove_date"] is None,
            )
            return codec.install_from_row(found[1]) if found is not None else None

    def save_install_record(self, record: InstallRecord) -> None:
        with self._lock:
            found = self._find(INSTALL_RECORDS, lambda r: r["id"] == str(record.id))
            index = found[0] if found is not None else None
            with self._transaction():
                self._write(INSTALL_RECORDS, codec.install_to_row(record), index)

    def list_install_records(self, component_id: str) -> list[InstallRecord]:
        with self._lock:
            return [
                codec.install_from_row(row)
                for _, row in self._rows(INSTALL_RECORDS)
                if row["component_id"] == component_id
            ]

    # -- Timeline -----------------------------------------------------------

    def append_timeline_event(self, event: TimelineEvent) -> None:
        with self._lock:
            if self._find(TIMELINE, lambda r: r["id"] == str(event.id)) is not None:
                raise ImmutabilityViolationError(
                    entity_type="TimelineEvent",
                    entity_id=str(event.id),
                    reason="Timeline entries are append-only -- cannot overwrite",
                )
            with self._transaction():
                self._write(TIMELINE, codec.timeline_to_row(event))

    def list_timeline(self, component_id: str) -> list[TimelineEvent]:
        with self._lock:
            return [
                codec.timeline_from_row(row)
                for _, row in self._rows(TIMELINE)
                if row["component_id"] == component_id
            ]
