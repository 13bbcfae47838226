# backend/jaguar/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.from_mapping(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])
    logging.getLogger("jaguar").setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Memory backend: one store per application
    from .repositories import MEMORY_EXTENSION_KEY, InMemoryRepositories
    if app.config["STORAGE_BACKEND"] == "memory":
        app.extensions[MEMORY_EXTENSION_KEY] = InMemoryRepositories()
        if app.config["DEBUG_SEED_ENABLED"]:
            from .services.seed_service import seed_demo
            counts = seed_demo(app.extensions[MEMORY_EXTENSION_KEY])
            app.logger.info("Seeded demo data: %s", counts)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.suppliers import suppliers_bp
    from .routes.purchase_orders import purchase_orders_bp
    from .routes.bundles import bundles_bp
    from .routes.lists import lists_bp
    from .routes.quotations import quotations_bp
    from .routes.payments import payments_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(bundles_bp)
    app.register_blueprint(lists_bp)
    app.register_blueprint(quotations_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(reports_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
