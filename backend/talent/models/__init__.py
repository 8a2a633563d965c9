"""
Database models
"""
from talent.models.resume import ResumeRecord
from talent.models.event_store import DomainEventRecord

__all__ = [
    "ResumeRecord",
    "DomainEventRecord",
]
