from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from ..realtime.bus import ORDER_DELETED, ORDER_PLACED, ORDER_STATUS_CHANGED, Connection
from .availability import COMPLETED, available_tables, booked_tables


class OrderBoard:
    """
    A client's local copy of the order list.

    Bus events are hints: applying the same event twice leaves the board
    unchanged, and ``load()`` with a fresh fetch is always the way back to
    ground truth after missed events.
    """

    def __init__(self, total_tables: int = 40):
        self.total_tables = total_tables
        self._orders: Dict[str, Dict[str, Any]] = {}

    def load(self, orders: Iterable[Mapping[str, Any]]) -> None:
        self._orders = {o["_id"]: dict(o) for o in orders}

    def attach(self, conn: Connection) -> None:
        for event in (ORDER_PLACED, ORDER_STATUS_CHANGED, ORDER_DELETED):
            conn.subscribe(event, self.apply)

    def apply(self, event: str, payload: Any) -> bool:
        """Fold one bus event into the board. Returns True if anything changed."""
        if event in (ORDER_PLACED, ORDER_STATUS_CHANGED):
            if not isinstance(payload, Mapping) or "_id" not in payload:
                return False
            current = self._orders.get(payload["_id"])
            incoming = dict(payload)
            if current == incoming:
                return False
            self._orders[payload["_id"]] = incoming
            return True
        if event == ORDER_DELETED:
            return self._orders.pop(str(payload), None) is not None
        return False

    @property
    def orders(self) -> List[Dict[str, Any]]:
        return sorted(self._orders.values(), key=lambda o: o.get("createdAt") or "", reverse=True)

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._orders.get(order_id)

    def booked(self) -> Set[int]:
        return booked_tables(self._orders.values())

    def available(self) -> List[int]:
        return available_tables(self._orders.values(), self.total_tables)

    def for_user(self, email: str) -> List[Dict[str, Any]]:
        return [o for o in self.orders if o.get("userEmail") == email]

    @staticmethod
    def can_delete(order: Mapping[str, Any]) -> bool:
        # Client-side policy only; the API deletes any order it is asked to
        return order.get("status") == COMPLETED
