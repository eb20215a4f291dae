import enum
import uuid
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Uuid, func
from taskboard.database import Base

# Compared against lower(status)
DONE_STATUSES = ("done", "completed")


class TaskType(str, enum.Enum):
    SINGLE = "SINGLE"          # one assignee, via Task.assigned_to_id
    SHARED = "SHARED"          # co-assignees in task_assignees, points split evenly
    SEQUENTIAL = "SEQUENTIAL"  # split evenly as well


SPLIT_TYPES = (TaskType.SHARED.value, TaskType.SEQUENTIAL.value)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="pending")  # free text: pending, in_progress, done, completed ...
    points = Column(Integer, nullable=False, default=0)
    type = Column(String, nullable=False, default=TaskType.SINGLE.value)
    assigned_to_id = Column(Uuid, ForeignKey("employees.id"), nullable=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)


class TaskAssignee(Base):
    __tablename__ = "task_assignees"

    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    employee_id = Column(Uuid, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True)
