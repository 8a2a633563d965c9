"""
Resume models
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Index
from sqlalchemy.sql import func
from talent.core.database import Base


class ResumeRecord(Base):
    """Persisted state of a resume aggregate"""
    
    __tablename__ = "resumes"
    
    id = Column(String(36), primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)  # ResumeStatus value
    
    # File
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)  # in bytes
    file_type = Column(String(20), nullable=False)  # PDF, DOC, DOCX
    storage_key = Column(String(500), nullable=False)
    
    # Parsed profile
    candidate_name = Column(String(100))
    skills = Column(JSON, default=list)  # [{"name", "level", "years"}]
    experiences = Column(JSON, default=list)  # [{"company", "position", "start_date", "end_date", "description"}]
    educations = Column(JSON, default=list)  # [{"school", "degree", "major", "graduation_date", "gpa"}]
    contact_email = Column(String(255), index=True)
    contact_phone = Column(String(20), index=True)
    contact_address = Column(String(200))
    
    # Parsing metadata
    parsed_at = Column(DateTime(timezone=True))
    parse_error_message = Column(Text)
    parse_retry_count = Column(Integer, nullable=False, default=0)
    
    # Timestamps
    uploaded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True))
    
    # Optimistic lock; stale writers fail on flush
    version = Column(Integer, nullable=False, default=1)
    
    __table_args__ = (
        Index("ix_resumes_user_uploaded", "user_id", "uploaded_at"),
    )
    __mapper_args__ = {"version_id_col": version}
