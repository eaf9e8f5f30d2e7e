# backend/tradelink/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None, capabilities=None) -> Flask:
    """
    Application factory.

    config_overrides are applied on top of Config (tests pass an in-memory
    database here). capabilities replaces the default external collaborators
    (identity verifier, object storage, invoice renderer).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # External collaborators are built once per process and shared
    from .capabilities import build_capabilities
    app.extensions["capabilities"] = capabilities or build_capabilities(app.config)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.cart import cart_bp
    from .routes.orders import orders_bp
    from .routes.place_order import place_order_bp
    from .routes.notifications import notifications_bp
    from .routes.catalog import catalog_bp
    from .routes.invoices import invoices_bp
    from .routes.inventory import inventory_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(place_order_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(inventory_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", ()))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
