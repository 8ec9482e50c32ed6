# surplus/db/models.py
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from surplus.db.core import Base
from surplus.domain.enums import (
    NotificationType,
    PushStatus,
    ReservationStatus,
    StoreCategory,
    UserRole,
    VerificationStatus,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------------------------------------------
# Users (profile mirror of the identity provider)
# ------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    role = Column(Enum(UserRole, name="user_role", native_enum=False), nullable=False, default=UserRole.CUSTOMER)
    name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    phone = Column(String(20), nullable=True)
    university = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    stores = relationship("Store", back_populates="owner")
    reservations = relationship("Reservation", back_populates="customer")


# ------------------------------------------------------
# Stores
# ------------------------------------------------------
class Store(Base):
    """A shop run by a store owner.

    Reservations are accepted only while the store is active and its
    verification status is APPROVED.
    """

    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    category = Column(
        Enum(StoreCategory, name="store_category", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=StoreCategory.OTHER,
    )
    latitude = Column(Numeric(10, 6), nullable=True)
    longitude = Column(Numeric(10, 6), nullable=True)
    pickup_hours = Column(String(100), nullable=True)

    verification_status = Column(
        Enum(VerificationStatus, name="verification_status", native_enum=False),
        nullable=False,
        default=VerificationStatus.PENDING,
    )
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="stores")
    items = relationship("InventoryItem", back_populates="store")

    @property
    def accepts_reservations(self) -> bool:
        return bool(self.is_active) and self.verification_status == VerificationStatus.APPROVED


# ------------------------------------------------------
# Inventory
# ------------------------------------------------------
class InventoryItem(Base):
    """Discounted stock offered by a store for a limited pickup window.

    reserved_quantity is the sum of live holds (PENDING / CONFIRMED
    reservations). It only moves through InventoryStore, never by
    assigning the attribute on a loaded object.
    """

    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    original_price = Column(Numeric(10, 2), nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False)

    total_quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)

    available_from = Column(DateTime(timezone=True), nullable=False)
    available_until = Column(DateTime(timezone=True), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    store = relationship("Store", back_populates="items")

    __table_args__ = (
        CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved_nonneg"),
        CheckConstraint("reserved_quantity <= total_quantity", name="ck_inventory_reserved_le_total"),
        CheckConstraint("unit_price >= 0", name="ck_inventory_price_nonneg"),
        Index("ix_inventory_items_window", "available_from", "available_until"),
    )

    @property
    def available_quantity(self) -> int:
        return int(self.total_quantity or 0) - int(self.reserved_quantity or 0)


# ------------------------------------------------------
# Reservations
# ------------------------------------------------------
class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    pickup_time = Column(DateTime(timezone=True), nullable=False)

    status = Column(
        Enum(ReservationStatus, name="reservation_status", native_enum=False),
        nullable=False,
        default=ReservationStatus.PENDING,
        index=True,
    )

    # contact snapshot at booking time
    customer_name = Column(String(100), nullable=True)
    customer_phone = Column(String(20), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    item = relationship("InventoryItem")
    store = relationship("Store")
    customer = relationship("User", back_populates="reservations")
    status_logs = relationship(
        "ReservationStatusLog",
        back_populates="reservation",
        order_by="ReservationStatusLog.id",
    )

    # UPDATE ... WHERE version = :loaded_version; a miss raises StaleDataError
    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_reservations_quantity_positive"),
        Index("ix_reservations_store_created", "store_id", "created_at"),
        Index("ix_reservations_customer_created", "customer_id", "created_at"),
    )


class ReservationStatusLog(Base):
    __tablename__ = "reservation_status_logs"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(Enum(ReservationStatus, name="reservation_status", native_enum=False), nullable=True)
    to_status = Column(Enum(ReservationStatus, name="reservation_status", native_enum=False), nullable=False)
    actor_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    reservation = relationship("Reservation", back_populates="status_logs")


# ------------------------------------------------------
# Notifications / subscriptions / notices
# ------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(NotificationType, name="notification_type", native_enum=False), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    related_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    # webhook outbox; NULL means no push was requested
    push_status = Column(Enum(PushStatus, name="push_status", native_enum=False), nullable=True, index=True)
    push_attempts = Column(Integer, nullable=False, default=0)
    push_error = Column(Text, nullable=True)
    pushed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class NotificationSetting(Base):
    """Per-user opt-outs. A user without a row receives everything."""

    __tablename__ = "notification_settings"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    reservation_updates = Column(Boolean, nullable=False, default=True)
    inventory_updates = Column(Boolean, nullable=False, default=True)
    system = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name="uq_subscriptions_user_store"),
    )


class Notice(Base):
    __tablename__ = "notices"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_pinned = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
