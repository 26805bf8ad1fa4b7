import logging
import time
from typing import Optional

from quart import Quart, jsonify, request
from quart_cors import route_cors
from werkzeug.exceptions import HTTPException

from .common.config import Settings, settings
from .common.database import close_db, init_db
from .common.errors import ServiceError
from .common.identity import current_email, is_admin
from .foods.controller import bp as foods_bp
from .foods.service import CatalogService
from .media.cloudinary_host import CloudinaryHost
from .orders.controller import bp as orders_bp
from .orders.service import OrderService
from .realtime.bus import NotificationBus
from .realtime.controller import bp as realtime_bp
from .realtime.relay import RedisRelay
from .tables.controller import bp as tables_bp

# Prometheus metrics
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


log = logging.getLogger(__name__)

# Basic metrics with proper buckets for latency
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"])
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0, float("inf"))
)


def build_bus(cfg: Settings) -> NotificationBus:
    if cfg.EVENTS_BACKEND == "redis":
        return NotificationBus(relay=RedisRelay(cfg))
    return NotificationBus()


def create_app(config: Optional[Settings] = None, media=None) -> Quart:
    cfg = config or settings
    app = Quart(__name__)
    # Read by quart-cors on the REST blueprints and the cross-origin routes below
    app.config["QUART_CORS_ALLOW_ORIGIN"] = [cfg.FRONTEND_URL]
    app.config["QUART_CORS_ALLOW_METHODS"] = ["GET", "POST", "PUT", "DELETE"]

    bus = build_bus(cfg)
    app.extensions["settings"] = cfg
    app.extensions["bus"] = bus
    app.extensions["catalog"] = CatalogService(bus, media or CloudinaryHost(cfg), folder=cfg.MEDIA_FOLDER)
    app.extensions["orders"] = OrderService(bus)

    # Blueprints
    app.register_blueprint(foods_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(realtime_bp)

    @app.before_request
    async def before_request():
        request._start_time = time.time()
        log.info(f"[Instance {cfg.INSTANCE_ID}] {request.method} {request.path}")

    @app.after_request
    async def after_request(response):
        try:
            if hasattr(request, "_start_time"):
                duration = time.time() - request._start_time
                # Route rule keeps label cardinality bounded (/api/foods/<food_id>)
                endpoint = request.url_rule.rule if request.url_rule is not None else "unmatched"
                REQUEST_LATENCY.labels(endpoint=endpoint).observe(duration)
                REQUEST_COUNT.labels(
                    method=request.method,
                    endpoint=endpoint,
                    status=str(response.status_code)
                ).inc()
                response.headers["X-Instance-ID"] = cfg.INSTANCE_ID
        except Exception as e:
            log.error(f"Error recording metrics: {e}")
        return response

    @app.errorhandler(ServiceError)
    async def service_error(e: ServiceError):
        if e.status_code >= 500:
            log.error("%s %s failed | err=%s cause=%r", request.method, request.path, e.message, e.__cause__)
        else:
            log.info("%s %s rejected | status=%s err=%s", request.method, request.path, e.status_code, e.message)
        return jsonify({"message": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    async def http_error(e: HTTPException):
        return jsonify({"message": e.name}), e.code

    @app.errorhandler(Exception)
    async def unexpected_error(e: Exception):
        log.exception("Server Error | %s %s", request.method, request.path)
        return jsonify({"message": "Internal Server Error"}), 500

    @app.get("/metrics")
    async def metrics():
        data = generate_latest()
        return app.response_class(data, mimetype=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        return jsonify({"status": "ok"})

    @app.get("/api/session")
    @route_cors()
    async def session_info():
        email = current_email()
        return jsonify({"email": email, "isAdmin": is_admin(email, cfg)})

    @app.before_serving
    async def startup():
        logging.basicConfig(level=logging.INFO)
        log.info("Initializing database...")
        await init_db(cfg.DB_URL)
        log.info("Database ready.")
        await bus.start()

    @app.after_serving
    async def shutdown():
        await bus.stop()
        await close_db()
        log.info("Shutdown complete.")

    return app
