from quart import Blueprint, current_app, jsonify
from quart_cors import cors

from ..common.identity import current_settings
from .availability import available_tables, booked_tables

bp = cors(Blueprint("tables", __name__, url_prefix="/api/tables"))


@bp.get("")
async def tables_view():
    # Derived on every request from the stored orders; nothing is persisted
    orders = await current_app.extensions["orders"].list_orders()
    total = current_settings().TOTAL_TABLES
    return jsonify(
        {
            "total": total,
            "booked": sorted(booked_tables(orders)),
            "available": available_tables(orders, total),
        }
    )
