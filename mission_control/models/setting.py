"""
Per-workspace key/value settings.
"""

from __future__ import annotations

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mission_control.models.base import Base, TimestampMixin, UUIDMixin, WorkspaceScopedMixin

TASK_COUNTER_KEY = "taskCounter"


class Setting(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "settings"
    __table_args__ = (
        Index("ix_settings_workspace_key", "workspace_id", "key", unique=True),
    )

    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
