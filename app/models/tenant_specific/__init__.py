from .class_model import ClassModel, ClassMembership
from .student import Student, GuardianStudent
from .announcement import Announcement
from .event import Event
