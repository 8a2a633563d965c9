"""
Dispatching of committed domain events to their handlers
"""
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Type

from sqlalchemy.orm import Session
import structlog

from talent.core.exceptions import FileStorageError
from talent.models.event_store import EVENT_STATUS_RETRY_PENDING, DomainEventRecord
from talent.resumes.events import (
    DomainEvent,
    ResumeDeleted,
    ResumeParsingFailed,
    ResumeUploaded,
    event_from_payload,
    utcnow,
)
from talent.resumes.ports import FileStoragePort

logger = structlog.get_logger()

EventHandler = Callable[[DomainEvent], None]
ParsingScheduler = Callable[[str], None]


def schedule_parsing(resume_id: str) -> None:
    """Queue background parsing of a resume"""
    from talent.tasks.resume_tasks import parse_resume_task

    parse_resume_task.delay(resume_id)
    logger.info("resume_parsing_scheduled", resume_id=resume_id)


class EventDispatcher:
    """
    Runs handlers for events drained from an aggregate after its transaction
    committed. A failing handler is logged and recorded in the event store;
    the remaining handlers still run.
    """

    def __init__(self, db: Optional[Session] = None):
        self.db = db
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)

    def register(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        handlers = []
        for event_type in type(event).__mro__:
            handlers.extend(self._handlers.get(event_type, []))
        return handlers

    def dispatch(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            errors = []
            for handler in self.handlers_for(event):
                try:
                    handler(event)
                except Exception as e:
                    logger.exception(
                        "event_handler_failed",
                        event_type=event.event_type,
                        event_id=event.event_id,
                        handler=getattr(handler, "__name__", repr(handler)),
                        error=str(e),
                    )
                    errors.append(str(e))
            self._record_outcome(event, errors)

    def redispatch_pending(self, limit: int = 100) -> int:
        """Run handlers again for stored events whose last delivery failed"""
        if self.db is None:
            return 0
        records = (
            self.db.query(DomainEventRecord)
            .filter(DomainEventRecord.status == EVENT_STATUS_RETRY_PENDING)
            .order_by(DomainEventRecord.occurred_on)
            .limit(limit)
            .all()
        )
        redispatched = 0
        for record in records:
            event = event_from_payload(record.event_type, record.payload)
            if event is None:
                logger.warning("stored_event_type_unknown", event_id=record.event_id, event_type=record.event_type)
                record.mark_skipped(f"Unknown event type {record.event_type}")
                self.db.commit()
                continue
            self.dispatch([event])
            redispatched += 1
        if redispatched:
            logger.info("stored_events_redispatched", count=redispatched)
        return redispatched

    def _record_outcome(self, event: DomainEvent, errors: List[str]) -> None:
        if self.db is None:
            return
        record = (
            self.db.query(DomainEventRecord)
            .filter(DomainEventRecord.event_id == event.event_id)
            .first()
        )
        if record is None:
            return
        if errors:
            record.mark_failed("; ".join(errors))
        else:
            record.mark_processed(utcnow())
        self.db.commit()


def log_event(event: DomainEvent) -> None:
    logger.info(
        "domain_event_published",
        event_type=event.event_type,
        event_id=event.event_id,
        aggregate_id=event.aggregate_id,
    )


def create_event_dispatcher(
    db: Optional[Session],
    storage: FileStoragePort,
    scheduler: ParsingScheduler = schedule_parsing,
) -> EventDispatcher:
    """Dispatcher wired with the standard resume workflow handlers"""
    dispatcher = EventDispatcher(db)
    dispatcher.register(DomainEvent, log_event)

    def on_uploaded(event: ResumeUploaded) -> None:
        scheduler(event.resume_id)

    def on_parsing_failed(event: ResumeParsingFailed) -> None:
        logger.warning(
            "resume_parsing_failed",
            resume_id=event.resume_id,
            retry_count=event.retry_count,
            can_retry=event.can_retry(),
            error=event.error_message,
        )

    def on_deleted(event: ResumeDeleted) -> None:
        try:
            storage.delete_file(event.storage_key)
        except FileStorageError as e:
            if storage.file_exists(event.storage_key):
                raise
            logger.info("resume_file_already_removed", resume_id=event.resume_id, error=e.message)

    dispatcher.register(ResumeUploaded, on_uploaded)
    dispatcher.register(ResumeParsingFailed, on_parsing_failed)
    dispatcher.register(ResumeDeleted, on_deleted)
    return dispatcher
