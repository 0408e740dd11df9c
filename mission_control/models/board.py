"""
Workspace-scoped board and operations records.

These tables are written by the agent-facing side of the platform. Here they
only matter as members of a workspace: the workspace cascade and the orphan
sweep remove them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mission_control.models.base import Base, TimestampMixin, UUIDMixin, WorkspaceScopedMixin


class Epic(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "epics"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="planning")


class Task(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "tasks"

    ticket_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="backlog")
    epic_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    assignee_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class Goal(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "goals"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Message(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "messages"

    task_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    from_id: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class Activity(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "activities"

    type: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)


class Document(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ThreadSubscription(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "thread_subscriptions"

    task_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    subscriber_id: Mapped[str] = mapped_column(String(255), nullable=False)


class ExecutionLog(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "execution_log"

    task_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    output: Mapped[str | None] = mapped_column(Text, nullable=True)


class Alert(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "alerts"

    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="info")
    message: Mapped[str] = mapped_column(Text, nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class AlertRule(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "alert_rules"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    condition: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class AlertEvent(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "alert_events"

    rule_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)


class Decision(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "decisions"

    summary: Mapped[str] = mapped_column(Text, nullable=False)
    rationale: Mapped[str | None] = mapped_column(Text, nullable=True)


class StrategicReport(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "strategic_reports"

    week: Mapped[str] = mapped_column(String(20), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")


class CalendarEvent(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "calendar_events"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class TaskComment(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "task_comments"

    task_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class Notification(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "notifications"

    recipient_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Mention(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "mentions"

    mentioned_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    mentioned_by: Mapped[str] = mapped_column(String(255), nullable=False)
    context: Mapped[str] = mapped_column(String(50), nullable=False)
    context_id: Mapped[str] = mapped_column(String(255), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TaskSubscription(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "task_subscriptions"

    task_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    subscriber_id: Mapped[str] = mapped_column(String(255), nullable=False)
    notify_on: Mapped[str] = mapped_column(String(20), nullable=False, default="all")


class PresenceIndicator(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "presence_indicators"

    subject_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="offline")
    current_activity: Mapped[str | None] = mapped_column(String(500), nullable=True)


class TaskPattern(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "task_patterns"

    pattern: Mapped[str] = mapped_column(String(500), nullable=False)
    occurrences: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Anomaly(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "anomalies"

    subject_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="low")
    message: Mapped[str] = mapped_column(Text, nullable=False)
