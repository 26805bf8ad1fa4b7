"""ASGI entry point: ``hypercorn dineflow.main:app`` or ``python -m dineflow.main``."""
from .app import create_app
from .common.config import settings

app = create_app(settings)

if __name__ == "__main__":
    app.run(host=settings.APP_HOST, port=settings.APP_PORT)
