from flask import Flask, jsonify
from flask_cors import CORS

from .config import Config
from .errors import ServiceError
from .extensions import db, jwt, migrate
from .logging_setup import configure_logging


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json.ensure_ascii = False
    configure_logging(app)
    CORS(app)

    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    register_blueprints(app)
    register_error_handlers(app)
    register_commands(app)

    @app.get("/health")
    def health_check() -> tuple[dict[str, str], int]:
        from .services.database import database_is_ready

        if not database_is_ready():
            return {"status": "degraded", "database": "unavailable"}, 503
        return {"status": "ok", "database": "connected"}, 200

    @app.get("/")
    def landing_page() -> dict[str, str]:
        return {"message": "Catalog API is running", "version": "1.0.0"}

    return app


def register_blueprints(app: Flask) -> None:
    from .api.v1.auth_routes import auth_bp
    from .api.v1.product_routes import product_bp
    from .api.v1.product_type_routes import product_type_bp
    from .api.v1.user_routes import user_bp

    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(user_bp, url_prefix="/api/v1/users")
    app.register_blueprint(product_type_bp, url_prefix="/api/v1/product-types")
    app.register_blueprint(product_bp, url_prefix="/api/v1/products")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def handle_service_error(error: ServiceError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(_error):
        return jsonify({"message": "endpoint not found", "kind": "not_found"}), 404


def register_commands(app: Flask) -> None:
    from .cli import create_super_admin_command, seed_product_types_command, verify_catalog_command

    app.cli.add_command(create_super_admin_command)
    app.cli.add_command(seed_product_types_command)
    app.cli.add_command(verify_catalog_command)
