import logging
from typing import Any, Dict, List

from ..common import database as db
from ..common.errors import NotFoundError, ValidationError
from ..common.validation import parse
from ..realtime.bus import ORDER_DELETED, ORDER_PLACED, ORDER_STATUS_CHANGED, NotificationBus
from .model import KNOWN_STATUSES
from .schemas import OrderCreate, StatusUpdate

_logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, bus: NotificationBus):
        self._bus = bus

    async def list_orders(self) -> List[Dict[str, Any]]:
        return await db.fetch_orders()

    async def create_order(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.create_orders([fields]))[0]

    async def create_orders(self, batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """All-or-nothing: validate every element, insert in one transaction, then announce."""
        if not isinstance(batch, list) or not batch:
            raise ValidationError("Orders must be a non-empty array")
        rows = []
        for index, fields in enumerate(batch):
            try:
                rows.append(parse(OrderCreate, fields).to_row())
            except ValidationError as e:
                if len(batch) == 1:
                    raise
                raise ValidationError(f"Order {index}: {e.message}") from e
        orders = await db.insert_orders(rows)
        for order in orders:
            _logger.info(
                "Order placed | id=%s table=%s food=%s qty=%s",
                order["_id"],
                order["tableNumber"],
                order["foodName"],
                order["quantity"],
            )
            await self._bus.publish(ORDER_PLACED, order)
        return orders

    async def update_order_status(self, order_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        status = parse(StatusUpdate, fields).status
        if status not in KNOWN_STATUSES:
            _logger.warning("Unrecognized order status stored as-is | id=%s status=%r", order_id, status)
        order = await db.update_order_status(order_id, status)
        if order is None:
            raise NotFoundError("Order not found")
        _logger.info("Order status changed | id=%s status=%s", order_id, status)
        await self._bus.publish(ORDER_STATUS_CHANGED, order)
        return order

    async def delete_order(self, order_id: str) -> None:
        # Only Completed orders are offered for deletion, but that rule lives in the client
        if not await db.delete_order_row(order_id):
            raise NotFoundError("Order not found")
        _logger.info("Order deleted | id=%s", order_id)
        await self._bus.publish(ORDER_DELETED, order_id)
