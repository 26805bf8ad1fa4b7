from typing import Any, Dict, Optional, Tuple

from quart import Blueprint, current_app, jsonify, request
from quart_cors import cors

from ..common.identity import admin_required
from .service import CatalogService

bp = cors(Blueprint("foods", __name__, url_prefix="/api/foods"))


def _catalog() -> CatalogService:
    return current_app.extensions["catalog"]


async def _read_food_request() -> Tuple[Dict[str, Any], Optional[bytes]]:
    # Image-bearing writes are multipart; availability toggles arrive as JSON
    if request.is_json:
        return await request.get_json(), None
    form = await request.form
    files = await request.files
    upload = files.get("image")
    image = upload.read() if upload is not None and upload.filename else None
    return form.to_dict(), image or None


@bp.get("")
async def foods_list():
    return jsonify(await _catalog().list_foods())


@bp.post("")
@admin_required
async def food_create():
    fields, image = await _read_food_request()
    food = await _catalog().create_food(fields, image)
    return jsonify({"message": "Food added successfully", "food": food}), 201


@bp.put("/<food_id>")
@admin_required
async def food_update(food_id: str):
    fields, image = await _read_food_request()
    food = await _catalog().update_food(food_id, fields, image)
    return jsonify(food)


@bp.delete("/<food_id>")
@admin_required
async def food_delete(food_id: str):
    await _catalog().delete_food(food_id)
    return jsonify({"message": "Food deleted successfully"})
