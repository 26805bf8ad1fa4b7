import asyncio
import json

from conftest import order_fields

from dineflow.realtime.bus import ORDER_PLACED

ORIGIN = "http://localhost:5173"


async def _receive(ws):
    return json.loads(await asyncio.wait_for(ws.receive(), timeout=5))


async def test_websocket_receives_new_orders(client, bus):
    async with client.websocket("/ws") as ws:
        hello = await _receive(ws)
        assert hello["event"] == "connected"
        assert hello["data"]["sid"]

        created = await (await client.post("/api/orders/create", json=order_fields(tableNumber=9))).get_json()
        message = await _receive(ws)
        assert message["event"] == ORDER_PLACED
        assert message["data"]["_id"] == created["_id"]
        assert message["data"]["tableNumber"] == 9

    # Closing the socket tears down the sender task and the bus connection
    assert bus.connections == []


async def test_client_events_are_not_rebroadcast(client):
    async with client.websocket("/ws") as ws:
        await _receive(ws)
        await ws.send(json.dumps({"event": "orderUpdated", "data": {"_id": "x", "status": "Served"}}))
        await ws.send(json.dumps({"event": "ping"}))
        # The echo attempt produced nothing, so the next frame is the pong
        assert await _receive(ws) == {"event": "pong", "data": None}


async def test_sse_stream_announces_events(client, bus):
    async with client.request("/events", headers={"Origin": ORIGIN}) as connection:
        await connection.send_complete()
        received = ""
        while "event: connected" not in received:
            received += (await asyncio.wait_for(connection.receive(), timeout=5)).decode()
        assert connection.headers["Access-Control-Allow-Origin"] == ORIGIN

        await client.post("/api/orders/create", json=order_fields(tableNumber=11))
        while '"tableNumber": 11' not in received:
            received += (await asyncio.wait_for(connection.receive(), timeout=5)).decode()

        assert received.startswith("retry: 3000")
        assert f"event: {ORDER_PLACED}\n" in received
        await connection.disconnect()

    assert bus.connections == []
