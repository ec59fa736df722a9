"""
Canonical contact event strings (object types and operations).
"""

OPERATION_ADD = "add"
OPERATION_UPDATE = "update"
OPERATION_DELETE = "delete"

OBJECT_CONTACT = "contact"
OBJECT_SIGNIFICANT_OTHER = "significantother"
OBJECT_KID = "kid"
OBJECT_PROGENITOR = "progenitor"
OBJECT_ACTIVITY = "activity"
OBJECT_REMINDER = "reminder"
OBJECT_GIFT = "gift"
OBJECT_TASK = "task"
OBJECT_DEBT = "debt"
OBJECT_CALL = "call"
OBJECT_NOTE = "note"
OBJECT_TAG = "tag"

__all__ = [
    "OPERATION_ADD",
    "OPERATION_UPDATE",
    "OPERATION_DELETE",
    "OBJECT_CONTACT",
    "OBJECT_SIGNIFICANT_OTHER",
    "OBJECT_KID",
    "OBJECT_PROGENITOR",
    "OBJECT_ACTIVITY",
    "OBJECT_REMINDER",
    "OBJECT_GIFT",
    "OBJECT_TASK",
    "OBJECT_DEBT",
    "OBJECT_CALL",
    "OBJECT_NOTE",
    "OBJECT_TAG",
]
