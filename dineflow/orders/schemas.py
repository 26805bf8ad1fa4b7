from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .model import OrderStatus


class OrderCreate(BaseModel):
    """One line-item order. The price is the client's line total and is stored as sent."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    tableNumber: int = Field(gt=0)
    foodName: str = Field(min_length=1, max_length=255)
    # Copied from the food, which may have neither
    category: Optional[str] = None
    type: Optional[str] = None
    quantity: int = Field(gt=0)
    price: float = Field(allow_inf_nan=False)
    status: str = OrderStatus.PENDING.value
    userEmail: str = Field(min_length=1, max_length=255)

    def to_row(self) -> Dict[str, Any]:
        return {
            "table_number": self.tableNumber,
            "food_name": self.foodName,
            "category": self.category or "",
            "type": self.type or "",
            "quantity": self.quantity,
            "price": self.price,
            "status": self.status,
            "user_email": self.userEmail,
        }


class StatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str = Field(max_length=64)
