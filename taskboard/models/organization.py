import uuid
from sqlalchemy import Column, String, Uuid, DateTime, func
from taskboard.database import Base

class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
