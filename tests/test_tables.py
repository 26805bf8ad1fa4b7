from conftest import order_fields

from dineflow.realtime.bus import FOOD_ADDED, ORDER_DELETED, ORDER_PLACED, ORDER_STATUS_CHANGED, NotificationBus
from dineflow.tables.availability import available_tables, booked_tables
from dineflow.tables.board import OrderBoard


def _order(order_id, table, status="Pending", email="a@x.com", created="2026-01-01T00:00:00+00:00"):
    return {"_id": order_id, "tableNumber": table, "status": status, "userEmail": email, "createdAt": created}


def test_table_with_any_open_order_is_booked():
    orders = [{"tableNumber": 3, "status": "Pending"}, {"tableNumber": 3, "status": "Completed"}]
    assert booked_tables(orders) == {3}
    assert available_tables(orders, 5) == [1, 2, 4, 5]


def test_completed_only_tables_are_free():
    orders = [{"tableNumber": 2, "status": "Completed"}, {"tableNumber": 4, "status": "Served"}]
    assert available_tables(orders, 5) == [1, 2, 3, 5]


def test_unknown_statuses_count_as_open():
    assert booked_tables([{"tableNumber": 1, "status": "Lost"}]) == {1}


def test_board_applies_duplicate_events_once():
    board = OrderBoard(total_tables=5)
    placed = _order("o1", 3)
    assert board.apply(ORDER_PLACED, placed) is True
    assert board.apply(ORDER_PLACED, placed) is False

    done = dict(placed, status="Completed")
    assert board.apply(ORDER_STATUS_CHANGED, done) is True
    assert board.apply(ORDER_STATUS_CHANGED, done) is False
    assert board.get("o1")["status"] == "Completed"
    assert board.available() == [1, 2, 3, 4, 5]


def test_board_recovers_missed_placement_from_status_change():
    board = OrderBoard(total_tables=5)
    board.apply(ORDER_STATUS_CHANGED, _order("o1", 2, status="Cooking"))
    assert board.booked() == {2}


def test_board_delete_and_unrelated_events():
    board = OrderBoard(total_tables=3)
    board.load([_order("o1", 1)])
    assert board.apply(FOOD_ADDED, {"_id": "f1"}) is False
    assert board.apply(ORDER_DELETED, "o1") is True
    assert board.apply(ORDER_DELETED, "o1") is False
    assert board.available() == [1, 2, 3]


def test_board_filters_by_user_newest_first():
    board = OrderBoard()
    board.load(
        [
            _order("o1", 1, email="a@x.com", created="2026-01-01T10:00:00+00:00"),
            _order("o2", 2, email="b@x.com", created="2026-01-01T11:00:00+00:00"),
            _order("o3", 3, email="a@x.com", created="2026-01-01T12:00:00+00:00"),
        ]
    )
    assert [o["_id"] for o in board.for_user("a@x.com")] == ["o3", "o1"]


def test_only_completed_orders_are_deletable():
    assert OrderBoard.can_delete({"status": "Completed"})
    assert not OrderBoard.can_delete({"status": "Served"})


async def test_board_follows_bus():
    bus = NotificationBus()
    board = OrderBoard(total_tables=4)
    board.attach(bus.connect())
    await bus.publish(ORDER_PLACED, _order("o1", 4))
    await bus.publish(ORDER_PLACED, _order("o1", 4))
    assert board.available() == [1, 2, 3]
    assert len(board.orders) == 1


async def test_tables_endpoint_derives_from_orders(client):
    await client.post("/api/orders/create", json=order_fields(tableNumber=3))
    done = await (await client.post("/api/orders/create", json=order_fields(tableNumber=5))).get_json()
    await client.put(f"/api/orders/{done['_id']}", json={"status": "Completed"})

    body = await (await client.get("/api/tables")).get_json()
    assert body["total"] == 40
    assert body["booked"] == [3]
    assert len(body["available"]) == 39
    assert 3 not in body["available"] and 5 in body["available"]
