from flask import Flask
from flask_cors import CORS
from argon2 import PasswordHasher

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from services import AccountService, SessionController, SubscriptionGraph, ProfileAggregator, TweetService
from utils.security import PasswordManager, TokenService


def build_services(app: Flask) -> None:
    """Wire the services from config and park them on app.extensions."""
    passwords = PasswordManager(
        PasswordHasher(
            time_cost=app.config["ARGON2_TIME_COST"],
            memory_cost=app.config["ARGON2_MEMORY_COST"],
            parallelism=app.config["ARGON2_PARALLELISM"],
        )
    )
    tokens = TokenService.from_config(app.config)
    graph = SubscriptionGraph(storage)

    app.extensions["token_service"] = tokens
    app.extensions["accounts"] = AccountService(storage, passwords)
    app.extensions["sessions"] = SessionController(storage, tokens, passwords)
    app.extensions["subscriptions"] = graph
    app.extensions["profiles"] = ProfileAggregator(storage, graph)
    app.extensions["tweets"] = TweetService(storage)


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))

    # credentials=True so browsers send the session cookies cross-origin
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Register global error handlers that return the uniform envelope
    register_error_handlers(app)

    build_services(app)

    from .health import bp as health_bp
    from .users import bp as users_bp
    from .subscriptions import bp as subscriptions_bp
    from .tweets import bp as tweets_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")
    app.register_blueprint(subscriptions_bp, url_prefix="/api/v1/subscriptions")
    app.register_blueprint(tweets_bp, url_prefix="/api/v1/tweets")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to VideoTube API",
            "health": "/api/v1/healthcheck",
        }, 200

    return app
