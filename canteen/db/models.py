"""Database models."""
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Profile(Base):
    """User profile mirrored from the identity provider."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String, default="user", nullable=False)  # user, admin
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class MenuItem(Base):
    """Menu item model."""

    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)  # whole currency units
    category = Column(String, nullable=False, index=True)
    is_veg = Column(Boolean, default=False, nullable=False)
    type = Column(String, default="immediate", nullable=False)  # immediate, made-to-order
    available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class TimeSlot(Base):
    """Pickup window with a shared made-to-order capacity."""

    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    time = Column(String, unique=True, nullable=False)  # e.g. "12:30"
    max_orders = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Order(Base):
    """Order model."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    total = Column(Integer, nullable=False)
    status = Column(String, default="placed", nullable=False)  # see OrderStatus
    time_slot = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    token = Column(String, index=True, nullable=False)
    otp = Column(String(6), nullable=False)
    otp_verified = Column(Boolean, default=False, nullable=False)
    placed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class OrderItem(Base):
    """Order line snapshotting the menu item at order time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    menu_item_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    type = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
