"""
Domain event store models
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from talent.core.database import Base

EVENT_STATUS_PENDING = "PENDING"
EVENT_STATUS_PROCESSED = "PROCESSED"
EVENT_STATUS_FAILED = "FAILED"
EVENT_STATUS_RETRY_PENDING = "RETRY_PENDING"
EVENT_STATUS_SKIPPED = "SKIPPED"

MAX_EVENT_RETRIES = 3


class DomainEventRecord(Base):
    """Durable copy of every domain event, written with the aggregate change"""
    
    __tablename__ = "domain_events"
    
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(36), nullable=False, unique=True, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    aggregate_type = Column(String(50), nullable=False, index=True)
    aggregate_id = Column(String(36), nullable=False, index=True)
    
    payload = Column(JSON, nullable=False)
    occurred_on = Column(DateTime(timezone=True), nullable=False, index=True)
    
    # Processing state
    status = Column(String(20), nullable=False, default=EVENT_STATUS_PENDING, index=True)
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)
    processed_at = Column(DateTime(timezone=True))
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    def mark_processed(self, when):
        self.status = EVENT_STATUS_PROCESSED
        self.processed_at = when
        self.error_message = None
    
    def mark_failed(self, error_message: str):
        self.retry_count = (self.retry_count or 0) + 1
        self.error_message = error_message
        self.status = EVENT_STATUS_RETRY_PENDING if self.can_retry() else EVENT_STATUS_FAILED
    
    def mark_skipped(self, reason: str):
        self.status = EVENT_STATUS_SKIPPED
        self.error_message = reason
    
    def can_retry(self) -> bool:
        return (self.retry_count or 0) < MAX_EVENT_RETRIES
