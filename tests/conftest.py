import io

import pytest
from werkzeug.datastructures import FileStorage

from dineflow.app import create_app
from dineflow.common.config import Settings

ADMIN = "admin@example.com"


class FakeMediaHost:
    """Stands in for Cloudinary; records every call."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.fail = False
        self.fail_upload = False
        self.fail_destroy = False
        self._count = 0

    async def upload(self, data, options):
        if self.fail or self.fail_upload:
            raise RuntimeError("image host unavailable")
        self._count += 1
        public_id = f"{options['folder']}/img{self._count}"
        self.uploads.append({"public_id": public_id, "data": data, "options": options})
        return {"secure_url": f"https://res.example.com/{public_id}.jpg", "public_id": public_id}

    async def destroy(self, public_id):
        if self.fail or self.fail_destroy:
            raise RuntimeError("image host unavailable")
        self.destroyed.append(public_id)


def image_file(data=b"\x89PNG fake image bytes", filename="dish.png"):
    return FileStorage(io.BytesIO(data), filename=filename, content_type="image/png")


def order_fields(**overrides):
    fields = {
        "foodName": "Pizza",
        "category": "Main",
        "type": "Veg",
        "tableNumber": 7,
        "quantity": 2,
        "price": 400,
        "userEmail": "a@x.com",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        EVENTS_BACKEND="memory",
        ADMIN_EMAIL=ADMIN,
        ENFORCE_ADMIN=False,
        INSTANCE_ID="test",
        FRONTEND_URL="http://localhost:5173",
        TOTAL_TABLES=40,
    )


@pytest.fixture
def media():
    return FakeMediaHost()


@pytest.fixture
def app(settings, media):
    return create_app(settings, media=media)


@pytest.fixture
async def client(app):
    async with app.test_app() as test_app:
        yield test_app.test_client()


@pytest.fixture
def bus(app):
    return app.extensions["bus"]
