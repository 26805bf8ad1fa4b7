import asyncio
import json
import logging
from typing import Any

from quart import Blueprint, Response, current_app, websocket
from quart_cors import route_cors

from .bus import NotificationBus

_logger = logging.getLogger(__name__)

bp = Blueprint("realtime", __name__)


def _bus() -> NotificationBus:
    return current_app.extensions["bus"]


def _frame(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data})


@bp.get("/events")
@route_cors()
async def sse_events():
    bus = _bus()

    async def gen():
        # Advise client on retry
        yield "retry: 3000\n\n"
        with bus.connection() as conn:
            queue = conn.listen()
            yield f"event: connected\ndata: {json.dumps({'sid': conn.sid})}\n\n"
            while True:
                try:
                    event, payload = await asyncio.wait_for(queue.get(), timeout=15.0)
                except asyncio.TimeoutError:
                    # Keep-alive to prevent closes by proxies
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: {event}\n"
                yield f"data: {json.dumps(payload)}\n\n"

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
        "Connection": "keep-alive",
    }
    response = Response(gen(), mimetype="text/event-stream", headers=headers)
    response.timeout = None
    return response


@bp.websocket("/ws")
async def ws_events():
    with _bus().connection() as conn:
        queue = conn.listen()
        await websocket.send(_frame("connected", {"sid": conn.sid}))

        async def forward():
            try:
                while True:
                    event, payload = await queue.get()
                    await websocket.send(_frame(event, payload))
            except Exception as e:
                # Stop listening so the queue does not keep filling for a dead socket
                _logger.warning("Websocket send failed, unsubscribing | sid=%s err=%s", conn.sid, e)
                conn.close()

        sender = asyncio.create_task(forward())
        try:
            while True:
                raw = await websocket.receive()
                await _client_message(conn.sid, raw)
        finally:
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)


async def _client_message(sid: str, raw: Any) -> None:
    try:
        message = json.loads(raw)
        event = message.get("event") if isinstance(message, dict) else None
    except (TypeError, ValueError):
        event = None
    if event == "ping":
        await websocket.send(_frame("pong", None))
        return
    # Only the server announces changes; client-sent events are never rebroadcast
    _logger.warning("Ignoring client message | sid=%s event=%s", sid, event)
