import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)

logger = logging.getLogger(__name__)

# Swagger 2.0 document at /swagger.json, UI at /apidocs/
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Session Authority API",
        "version": "1.0.0",
        "description": "Login, refresh-token rotation, logout, password reset, "
                       "email verification and user administration.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "tags": [
        {"name": "Auth", "description": "Sessions and single-use tokens"},
        {"name": "Users", "description": "Registration and account management"},
        {"name": "Health", "description": "Liveness"},
    ],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Access token with the `Bearer ` prefix, e.g. \"Bearer eyJhbGci...\".",
        },
        "Basic": {"type": "basic"},
    },
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: rule.rule.startswith("/api/"),
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(app: Flask) -> None:
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory. config_name is "dev", "test" or "prod"; when
    omitted APP_ENV decides.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    configure_logging(app)

    # Credentialed CORS so the auth cookies travel with cross-origin calls
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
        expose_headers=["Authorization"],
    )

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Session Authority API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    logger.info("Session authority app created (env=%s)", app.config.get("APP_ENV"))
    return app
