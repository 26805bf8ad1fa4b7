from quart import Blueprint, current_app, jsonify, request
from quart_cors import cors

from ..common.identity import admin_required
from .service import OrderService

bp = cors(Blueprint("orders", __name__, url_prefix="/api/orders"))


def _orders() -> OrderService:
    return current_app.extensions["orders"]


@bp.get("")
async def orders_list():
    return jsonify(await _orders().list_orders())


@bp.post("/create")
async def order_create():
    data = await request.get_json(force=True)
    order = await _orders().create_order(data)
    return jsonify(order), 201


@bp.post("/create-multiple")
async def orders_create_multiple():
    data = await request.get_json(force=True)
    orders = await _orders().create_orders(data)
    return jsonify(orders), 201


@bp.put("/<order_id>")
@admin_required
async def order_update_status(order_id: str):
    data = await request.get_json(force=True)
    order = await _orders().update_order_status(order_id, data)
    return jsonify(order)


@bp.delete("/<order_id>")
async def order_delete(order_id: str):
    await _orders().delete_order(order_id)
    return jsonify({"message": "Order deleted successfully"})
