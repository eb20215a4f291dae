import uuid
from sqlalchemy import Column, String, Boolean, Uuid, ForeignKey
from taskboard.database import Base

class Employee(Base):
    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, default="employee")
    is_archived = Column(Boolean, nullable=False, default=False)
