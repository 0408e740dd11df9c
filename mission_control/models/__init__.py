"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from mission_control.models.base import Base, TimestampMixin, UUIDMixin, WorkspaceScopedMixin
from mission_control.models.workspace import Workspace
from mission_control.models.member import ROLE_RANK, BoardAccess, OrganizationMember, OrgRole
from mission_control.models.invite import Invite, InviteBoardAccess
from mission_control.models.setting import Setting
from mission_control.models.wiki import PageType, WikiComment, WikiPage, WikiPageHistory
from mission_control.models.board import (
    Activity,
    Alert,
    AlertEvent,
    AlertRule,
    Anomaly,
    CalendarEvent,
    Decision,
    Document,
    Epic,
    ExecutionLog,
    Goal,
    Mention,
    Message,
    Notification,
    PresenceIndicator,
    StrategicReport,
    Task,
    TaskComment,
    TaskPattern,
    TaskSubscription,
    ThreadSubscription,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "WorkspaceScopedMixin",
    "Workspace",
    "OrganizationMember",
    "BoardAccess",
    "OrgRole",
    "ROLE_RANK",
    "Invite",
    "InviteBoardAccess",
    "Setting",
    "PageType",
    "WikiPage",
    "WikiPageHistory",
    "WikiComment",
    "Activity",
    "Alert",
    "AlertEvent",
    "AlertRule",
    "Anomaly",
    "CalendarEvent",
    "Decision",
    "Document",
    "Epic",
    "ExecutionLog",
    "Goal",
    "Mention",
    "Message",
    "Notification",
    "PresenceIndicator",
    "StrategicReport",
    "Task",
    "TaskComment",
    "TaskPattern",
    "TaskSubscription",
    "ThreadSubscription",
]
