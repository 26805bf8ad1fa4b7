import enum
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..common.db import Base, isoformat, new_id, utcnow


class OrderStatus(str, enum.Enum):
    """Statuses the dashboard offers. The column itself accepts any text."""

    PENDING = "Pending"
    COOKING = "Cooking"
    READY = "Ready"
    SERVED = "Served"
    COMPLETED = "Completed"


KNOWN_STATUSES = frozenset(s.value for s in OrderStatus)


class Order(Base):
    __tablename__ = "orders"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False, default=new_id)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    # Snapshot of the food at order time; no foreign key to foods
    food_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    type: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Line total (unit price x quantity) as computed by the client
    price: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(64), nullable=False, default=OrderStatus.PENDING.value)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "tableNumber": self.table_number,
            "foodName": self.food_name,
            "category": self.category,
            "type": self.type,
            "quantity": self.quantity,
            "price": self.price,
            "status": self.status,
            "userEmail": self.user_email,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
