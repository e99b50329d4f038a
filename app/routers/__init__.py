from . import (
    health, auth, classes, teacher_assignment, students, guardians,
    guardian_students, staff, principals, announcements, events, dashboard
)

__all__ = [
    "health",
    "auth",
    "classes",
    "teacher_assignment",
    "students",
    "guardians",
    "guardian_students",
    "staff",
    "principals",
    "announcements",
    "events",
    "dashboard"
]
