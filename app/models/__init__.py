# app/models/__init__.py
"""Import all models here, if needed for Alembic migration."""
from .base import Base

# Shared models
from .shared.org import Org
from .shared.user import User, UserRole, Staff, STAFF_ROLES

# Org-scoped models
from .tenant_specific.class_model import ClassModel, ClassMembership
from .tenant_specific.student import Student, GuardianStudent
from .tenant_specific.announcement import Announcement
from .tenant_specific.event import Event

# Messaging
from .chat.message_thread import MessageThread, MessageParticipant
from .chat.message_item import MessageItem
