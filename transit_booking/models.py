from sqlalchemy import Column, String, DateTime, JSON, Index
from sqlalchemy.sql import func
from transit_booking.database import Base

# ================================
# Stored entity records
# ================================
class StoredRecord(Base):
    """One persisted entity; the payload is the entity's JSON form"""
    __tablename__ = "stored_records"

    collection = Column(String(50), primary_key=True)
    key = Column(String(255), primary_key=True)
    kind = Column(String(50))
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_stored_records_collection_kind", "collection", "kind"),
    )
