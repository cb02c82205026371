from enum import Enum, IntEnum


class UserRole(str, Enum):
    STUDENT = "student"
    COORDINATOR = "coordinator"


class AssignmentSource(IntEnum):
    SUPPLIED = 1
    DERIVED = 2
    PARTIAL = 3
    DEFAULTED = 4
