import enum


class UserRole(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    STORE_OWNER = "STORE_OWNER"
    ADMIN = "ADMIN"


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class StoreCategory(str, enum.Enum):
    BAKERY = "Bakery"
    SALAD = "Salad"
    LUNCHBOX = "Lunchbox"
    FRUIT = "Fruit"
    DESSERT = "Dessert"
    OTHER = "Other"


class NotificationType(str, enum.Enum):
    RESERVATION_REQUEST = "RESERVATION_REQUEST"
    RESERVATION_RESPONSE = "RESERVATION_RESPONSE"
    INVENTORY_ALERT = "INVENTORY_ALERT"
    SYSTEM_NOTICE = "SYSTEM_NOTICE"


class PushStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


# Spellings seen from older clients -> canonical status
_LEGACY_STATUS_ALIASES = {
    "ACCEPTED": ReservationStatus.CONFIRMED,
    "CANCELED": ReservationStatus.CANCELLED,
}


def parse_reservation_status(raw: str) -> ReservationStatus:
    """
    Map an external status string to the canonical enum.

    Accepts any case plus the legacy "ACCEPTED" / "CANCELED" spellings.
    Raises ValueError for anything else.
    """
    if isinstance(raw, ReservationStatus):
        return raw
    key = (raw or "").strip().upper()
    if key in _LEGACY_STATUS_ALIASES:
        return _LEGACY_STATUS_ALIASES[key]
    try:
        return ReservationStatus(key)
    except ValueError:
        raise ValueError(f"unknown reservation status: {raw!r}") from None
