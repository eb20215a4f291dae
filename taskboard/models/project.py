import uuid
from sqlalchemy import Column, String, Boolean, Uuid, ForeignKey
from taskboard.database import Base

class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    is_archived = Column(Boolean, nullable=False, default=False)  # archived projects drop out of project stats
