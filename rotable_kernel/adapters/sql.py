"""
SQLAlchemy persistence adapter.

Implements ``PersistencePort`` over the ORM models in
``rotable_kernel.models``.  Every port call runs in its own transaction
(``session_scope``), so each call is atomic and a failure rolls back
everything that call wrote.

The component compare-and-swap is a single conditional UPDATE::

    UPDATE components SET ..., version = :expected + 1
    WHERE id = :id AND version = :expected

Zero affected rows means another writer got there first (or the id is
unknown).
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from rotable_kernel.db.engine import (
    create_engine_from_url,
    create_tables,
    make_session_factory,
    session_scope,
)
from rotable_kernel.domain.component import Component
from rotable_kernel.domain.fabrication import (
    TERMINAL_FABRICATION_STATUSES,
    FabricationRequest,
)
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
from rotable_kernel.models import (
    ComponentModel,
    FabricationDecisionModel,
    FabricationRequestModel,
    InstallRecordModel,
    QARecordModel,
    TimelineEventModel,
)

logger = get_logger("adapters.sql")

_TERMINAL_VALUES = tuple(status.value for status in TERMINAL_FABRICATION_STATUSES)


class SqlAlchemyPersistence:
    """Relational store. Safe to share between threads; sessions are per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: Engine, create_schema: bool = True) -> SqlAlchemyPersistence:
        if create_schema:
            create_tables(engine)
        return cls(make_session_factory(engine))

    @classmethod
    def from_url(cls, database_url: str, create_schema: bool = True) -> SqlAlchemyPersistence:
        return cls.from_engine(create_engine_from_url(database_url), create_schema)

    # -- Components ---------------------------------------------------------

    def load(self, component_id: str) -> Component:
        with session_scope(self._session_factory) as session:
            model = session.get(ComponentModel, component_id)
            if model is None:
                raise NotFoundError("Component", component_id)
            return model.to_dto()

    def list_components(self) -> list[Component]:
        with session_scope(self._session_factory) as session:
            models = session.scalars(select(ComponentModel).order_by(ComponentModel.id))
            return [m.to_dto() for m in models]

    def save(self, component: Component) -> Component:
        new_version = component.version + 1
        with session_scope(self._session_factory) as session:
            if component.version == 0:
                if session.get(ComponentModel, component.id) is not None:
                    raise DuplicateComponentError(component.id)
                session.add(ComponentModel.from_dto(component, version=new_version))
                try:
                    session.flush()
                except IntegrityError as exc:
                    raise DuplicateComponentError(component.id) from exc
            else:
                result = session.execute(
                    update(ComponentModel)
                    .where(
                        ComponentModel.id == component.id,
                        ComponentModel.version == component.version,
                    )
                    .values(
                        version=new_version,
                        **ComponentModel.column_values(component),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    if session.get(ComponentModel, component.id) is None:
                        raise NotFoundError("Component", component.id)
                    logger.info(
                        "component_version_conflict",
                        extra={
                            "component_id": component.id,
                            "expected_version": component.version,
                        },
                    )
                    raise ConcurrentModificationError(
                        "Component", component.id, component.version,
                    )
        return replace(component, version=new_version)

    # -- QA records ---------------------------------------------------------

    def load_qa_record(self, component_id: str, stage: int) -> QARecord | None:
        with session_scope(self._session_factory) as session:
            model = self._qa_model(session, component_id, stage)
            return model.to_dto() if model is not None else None

    def save_qa_record(self, record: QARecord) -> None:
        try:
            self._upsert_qa_record(record)
        except IntegrityError:
            # Concurrent insert for the same stage; its row now exists
            logger.info(
                "qa_record_insert_conflict",
                extra={"component_id": record.component_id, "stage": record.stage},
            )
            self._upsert_qa_record(record)

    def _upsert_qa_record(self, record: QARecord) -> None:
        with session_scope(self._session_factory) as session:
            model = self._qa_model(session, record.component_id, record.stage)
            if model is None:
                session.add(QARecordModel.from_dto(record))
            else:
                model.apply(record)

    def list_qa_records(self, component_id: str) -> list[QARecord]:
        with session_scope(self._session_factory) as session:
            models = session.scalars(
                select(QARecordModel)
                .where(QARecordModel.component_id == component_id)
                .order_by(QARecordModel.stage)
            )
            return [m.to_dto() for m in models]

    @staticmethod
    def _qa_model(session: Session, component_id: str, stage: int) -> QARecordModel | None:
        return session.scalars(
            select(QARecordModel).where(
                QARecordModel.component_id == component_id,
                QARecordModel.stage == stage,
            )
        ).first()

    # -- Fabrication requests -----------------------------------------------

    def load_fabrication_request(self, request_id: UUID) -> FabricationRequest:
        with session_scope(self._session_factory) as session:
            model = session.get(FabricationRequestModel, request_id)
            if model is None:
                raise NotFoundError("FabricationRequest", str(request_id))
            return model.to_dto()

    def load_open_fabrication_request(
        self, component_id: str,
    ) -> FabricationRequest | None:
        with session_scope(self._session_factory) as session:
            model = session.scalars(
                select(FabricationRequestModel).where(
                    FabricationRequestModel.component_id == component_id,
                    FabricationRequestModel.status.not_in(_TERMINAL_VALUES),
                )
            ).first()
            return model.to_dto() if model is not None else None

    def save_fabrication_request(self, request: FabricationRequest) -> None:
        with session_scope(self._session_factory) as session:
            model = session.get(FabricationRequestModel, request.id)
            if model is None:
                session.add(FabricationRequestModel.from_dto(request))
                session.flush()
                stored_ids: set[UUID] = set()
            else:
                model.status = request.status.value
                model.attachment = request.attachment
                stored_ids = {d.id for d in model.decisions}
            for position, decision in enumerate(request.decisions):
                if decision.id not in stored_ids:
                    session.add(
                        FabricationDecisionModel.from_dto(decision, request.id, position)
                    )

    def list_fabrication_requests(
        self, component_id: str | None = None,
    ) -> list[FabricationRequest]:
        with session_scope(self._session_factory) as session:
            stmt = select(FabricationRequestModel).order_by(
                FabricationRequestModel.created_at,
            )
            if component_id is not None:
                stmt = stmt.where(FabricationRequestModel.component_id == component_id)
            return [m.to_dto() for m in session.scalars(stmt)]

    # -- Install records ----------------------------------------------------

    def load_install_record(self, record_id: UUID) -> InstallRecord:
        with session_scope(self._session_factory) as session:
            model = session.get(InstallRecordModel, record_id)
            if model is None:
                raise NotFoundError("InstallRecord", str(record_id))
            return model.to_dto()

    def load_open_install_record(self, component_id: str) -> InstallRecord | None:
        with session_scope(self._session_factory) as session:
            model = session.scalars(
                select(InstallRecordModel).where(
                    InstallRecordModel.component_id == component_id,
                    InstallRecordModel.remove_date.is_(None),
                )
            ).first()
            return model.to_dto() if model is not None else None

    def save_install_record(self, record: InstallRecord) -> None:
        with session_scope(self._session_factory) as session:
            model = session.get(InstallRecordModel, record.id)
            if model is None:
                position = self._next_position(
                    session, InstallRecordModel, record.component_id,
                )
                session.add(InstallRecordModel.from_dto(record, position))
            else:
                model.apply(record)

    def list_install_records(self, component_id: str) -> list[InstallRecord]:
        with session_scope(self._session_factory) as session:
            models = session.scalars(
                select(InstallRecordModel)
                .where(InstallRecordModel.component_id == component_id)
                .order_by(InstallRecordModel.position)
            )
            return [m.to_dto() for m in models]

    # -- Timeline -----------------------------------------------------------

    def append_timeline_event(self, event: TimelineEvent) -> None:
        with session_scope(self._session_factory) as session:
            if session.get(TimelineEventModel, event.id) is not None:
                raise ImmutabilityViolationError(
                    entity_type="TimelineEvent",
                    entity_id=str(event.id),
                    reason="Timeline entries are append-only -- cannot overwrite",
                )
            position = self._next_position(session, TimelineEventModel, event.component_id)
            session.add(TimelineEventModel.from_dto(event, position))

    def list_timeline(self, component_id: str) -> list[TimelineEvent]:
        with session_scope(self._session_factory) as session:
            models = session.scalars(
                select(TimelineEventModel)
                .where(TimelineEventModel.component_id == component_id)
                .order_by(TimelineEventModel.position)
            )
            return [m.to_dto() for m in models]

    @staticmethod
    def _next_position(session: Session, model_cls, component_id: str) -> int:
        count = session.scalar(
            select(func.count()).select_from(model_cls).where(
                model_cls.component_id == component_id,
            )
        )
        return count or 0
