"""
Project Share Model
"""
import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tasktracker.database import Base


class ProjectRole(str, enum.Enum):
    VIEWER = "Viewer"
    EDITOR = "Editor"
    OWNER = "Owner"


class ProjectShare(Base):
    __tablename__ = "project_shares"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(ProjectRole), default=ProjectRole.VIEWER, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="shares")
    user = relationship("User", back_populates="project_shares")

    __table_args__ = (
        UniqueConstraint('project_id', 'user_id', name='unique_project_share'),
    )
