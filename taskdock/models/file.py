"""File metadata model"""

import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from taskdock.core.database import Base


class File(Base):
    __tablename__ = "files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)

    filename = Column(String(255), nullable=False, unique=True)  # generated name
    original_name = Column(String(255), nullable=False)          # name the user uploaded
    mime_type = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)                       # bytes
    storage_locator = Column(String(512), nullable=False, unique=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="files")
    task = relationship("Task", back_populates="files")
