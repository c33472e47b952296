from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
from lexilearn.database import Base

class CollectionDocument(Base):
    """One named collection stored as a single JSON document"""
    __tablename__ = "collections"

    name = Column(String, primary_key=True, index=True)
    document = Column(JSON, nullable=False)  # whole list or map, replaced on every write
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
