import enum


class SlipType(str, enum.Enum):
    TRANSPORT = "transport"
    FREIGHT = "freight"


class SlipStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    INVOICED = "invoiced"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EXPLOIT = "exploit"
    COMPTA = "compta"
    DIRECTION = "direction"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values (not member names) in SQLAlchemy Enum columns."""
    return [member.value for member in enum_cls]
