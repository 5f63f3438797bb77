import os
import logging
import sqlite3
from flask import Flask, request, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager, verify_jwt_in_request
from flask_cors import CORS
from flask_compress import Compress
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from datetime import timedelta

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

db = SQLAlchemy(model_class=Base)
jwt = JWTManager()
compress = Compress()

# Endpoints reachable without a token when REQUIRE_API_AUTH is on
PUBLIC_PATHS = ('/api/auth/login', '/api/auth/refresh', '/health')


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app():
    # Create the app
    app = Flask(__name__)

    from utils.logging_config import setup_logging, register_request_logging
    setup_logging(app)

    # Enforce SESSION_SECRET requirement
    from utils.config_validator import require_session_secret
    app.secret_key = require_session_secret()

    # x_for/x_proto/x_host: trust one proxy hop for client IP, scheme and host
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # CORS Configuration (restricted origins)
    configured_origins = os.environ.get('ALLOWED_ORIGINS', '').split(',')
    allowed_origins = [origin.strip() for origin in configured_origins if origin.strip()]

    # Fallback to localhost for development only if no origins set
    if not allowed_origins:
        allowed_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    CORS(app, origins=allowed_origins,
         supports_credentials=False,
         allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"])

    app.config['COMPRESS_MIMETYPES'] = ['application/json', 'text/plain']
    app.config['COMPRESS_LEVEL'] = 6
    app.config['COMPRESS_MIN_SIZE'] = 500
    compress.init_app(app)

    # Configure the database - PostgreSQL in production, SQLite for development
    database_url = os.environ.get("DATABASE_URL") or "sqlite:///drayage_ops.db"

    if database_url.startswith(("postgresql://", "postgres://")):
        # Ensure psycopg2 driver is specified
        database_url = database_url.replace("postgres://", "postgresql://", 1)
        database_url = database_url.replace("postgresql://", "postgresql+psycopg2://", 1)

        from urllib.parse import urlparse
        parsed = urlparse(database_url)
        logger.info(f"Connecting to PostgreSQL: host={parsed.hostname}, db={parsed.path[1:]}, "
                    f"user={parsed.username}, password_present={bool(parsed.password)}")

        app.config["SQLALCHEMY_DATABASE_URI"] = database_url
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": 10,
            "pool_recycle": 280,  # Slightly less than 5 minutes to prevent stale connections
            "pool_pre_ping": True,
            "max_overflow": 15,
            "pool_timeout": 20,
            "connect_args": {
                "connect_timeout": 10,
                "application_name": "drayage_ops",
                "keepalives_idle": 600,
                "keepalives_interval": 30,
                "keepalives_count": 3
            }
        }
    else:
        # Fallback to SQLite for local development
        app.config["SQLALCHEMY_DATABASE_URI"] = database_url
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_recycle": 300,
            "pool_pre_ping": True,
        }

    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024
    app.json.sort_keys = False

    # JWT configuration
    app.config['JWT_SECRET_KEY'] = os.environ.get('JWT_SECRET_KEY') or app.secret_key
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(hours=1)
    app.config['JWT_REFRESH_TOKEN_EXPIRES'] = timedelta(days=30)
    app.config['JWT_ALGORITHM'] = 'HS256'
    app.config['JWT_TOKEN_LOCATION'] = ['headers']

    # Initialize extensions
    db.init_app(app)
    jwt.init_app(app)

    # JWT token blocklist checker
    from auth_routes import check_if_token_revoked as check_token_blocklist

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return check_token_blocklist(jwt_header, jwt_payload)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'error': 'Authentication required'}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'error': f'Invalid token: {reason}'}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'error': 'Token has expired'}), 401

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return jsonify({'error': 'Token has been revoked'}), 401

    # Register blueprints
    from auth_routes import auth_bp, user_bp
    from truck_routes import truck_bp
    from driver_routes import driver_bp
    from customer_routes import customer_bp
    from container_routes import container_bp, terminal_bp
    from charge_type_routes import charge_type_bp
    from delivery_order_routes import delivery_order_bp
    from trip_routes import trip_bp
    from invoice_routes import invoice_bp
    from report_routes import report_bp
    from admin_routes import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(truck_bp)
    app.register_blueprint(driver_bp)
    app.register_blueprint(customer_bp)
    app.register_blueprint(container_bp)
    app.register_blueprint(terminal_bp)
    app.register_blueprint(charge_type_bp)
    app.register_blueprint(delivery_order_bp)
    app.register_blueprint(trip_bp)
    app.register_blueprint(invoice_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(admin_bp)

    register_request_logging(app)

    @app.before_request
    def require_api_token():
        if os.environ.get('REQUIRE_API_AUTH', 'false').lower() != 'true':
            return None
        if request.method == 'OPTIONS' or not request.path.startswith('/api'):
            return None
        if request.path in PUBLIC_PATHS:
            return None
        verify_jwt_in_request()
        return None

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        # JSON errors for the API, default HTML pages elsewhere
        if request.path.startswith('/api'):
            return jsonify({'error': e.description}), e.code
        return e

    # Report configuration problems; only a missing SESSION_SECRET is fatal
    from utils.config_validator import check_production_readiness
    readiness = check_production_readiness()
    if not readiness['production_ready']:
        logger.warning(f"Configuration issues: {'; '.join(readiness['issues']) or 'debug mode enabled'}")

    # Create tables
    with app.app_context():
        import models  # noqa: F401
        db.create_all()

        # Only create demo data if explicitly enabled
        demo_mode = os.environ.get('DEMO_SEED', 'false').lower() == 'true'

        if demo_mode:
            from models import User
            if User.query.first() is None:
                from seed_data import seed_database
                seed_database()
            else:
                logger.info("DEMO_SEED set but database already has data, skipping seed")

    # Health check endpoint for deployment
    @app.route('/health')
    def health():
        """Health check including database connectivity"""
        from services.transaction_helper import TransactionHelper
        from timezone_utils import get_local_time_naive
        healthy, warnings = TransactionHelper.check_connection()
        for warning in warnings:
            logger.warning(f"Health check: {warning}")
        payload = {
            'status': 'ok' if healthy else 'degraded',
            'database': 'ok' if healthy else 'error',
            'timestamp': get_local_time_naive().isoformat()
        }
        return payload, 200 if healthy else 503

    return app

app = create_app()
