from typing import Any, Iterable, List, Mapping, Set

from ..orders.model import OrderStatus

COMPLETED = OrderStatus.COMPLETED.value


def booked_tables(orders: Iterable[Mapping[str, Any]]) -> Set[int]:
    """Tables with at least one order that is not Completed."""
    return {int(o["tableNumber"]) for o in orders if o.get("status") != COMPLETED}


def available_tables(orders: Iterable[Mapping[str, Any]], total: int) -> List[int]:
    booked = booked_tables(orders)
    return [n for n in range(1, total + 1) if n not in booked]
