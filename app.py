import os
import logging
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

db = SQLAlchemy(model_class=Base)

def create_app(test_config=None):
    # Create the app
    app = Flask(__name__)

    # CORS Configuration for the dashboard frontend
    production_origins = os.environ.get('ALLOWED_ORIGINS', '').split(',')
    allowed_origins = [origin.strip() for origin in production_origins if origin.strip()]

    # Fallback to localhost for development only if no production origins set
    if not allowed_origins:
        allowed_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    CORS(app, origins=allowed_origins,
         supports_credentials=False,
         allow_headers=["Content-Type", "X-Requested-With"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"])

    # Configure the database - local SQLite file unless DATABASE_URL says otherwise
    database_url = os.environ.get("DATABASE_URL") or "sqlite:///navexa.db"
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    app.config["SQLALCHEMY_DATABASE_URI"] = database_url
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
        "pool_pre_ping": True,
    }

    # Business settings
    app.config["NAVEXA_TIMEZONE"] = os.environ.get("NAVEXA_TIMEZONE", "Asia/Kolkata")
    app.config["GEMINI_API_KEY"] = os.environ.get("GEMINI_API_KEY", "")
    app.config["GEMINI_MODEL"] = os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview")
    app.config["GEMINI_API_BASE"] = os.environ.get(
        "GEMINI_API_BASE", "https://generativelanguage.googleapis.com"
    )
    app.config["INSIGHT_TIMEOUT_SECONDS"] = float(os.environ.get("INSIGHT_TIMEOUT_SECONDS", "30"))

    if test_config:
        app.config.update(test_config)

    from utils.logging_config import setup_logging, log_request_start, log_request_end
    setup_logging(app)
    app.before_request(log_request_start)
    app.after_request(log_request_end)

    from utils.config_validator import check_production_readiness, require_valid_config
    readiness = check_production_readiness(app.config)
    for issue in readiness['issues']:
        app.logger.warning(f"Configuration issue: {issue}")
    require_valid_config(app.config)

    # Initialize extensions
    db.init_app(app)

    from timezone_utils import make_clock
    from services import (TripStore, VehicleStore, TripService, VehicleService,
                          ReportingService, MaintenanceService, InsightService)

    # Tests pin the clock through NAVEXA_CLOCK
    clock = app.config.get("NAVEXA_CLOCK") or make_clock(app.config["NAVEXA_TIMEZONE"])
    trip_store = TripStore()
    vehicle_store = VehicleStore()
    maintenance_service = MaintenanceService()

    app.extensions['navexa'] = {
        'clock': clock,
        'trip_store': trip_store,
        'vehicle_store': vehicle_store,
        'trip_service': TripService(trip_store, clock=clock),
        'vehicle_service': VehicleService(vehicle_store, maintenance_service, clock=clock),
        'maintenance_service': maintenance_service,
        'reporting_service': ReportingService(maintenance_service),
        'insight_service': InsightService(
            api_key=app.config["GEMINI_API_KEY"],
            model=app.config["GEMINI_MODEL"],
            base_url=app.config["GEMINI_API_BASE"],
            timeout=app.config["INSIGHT_TIMEOUT_SECONDS"],
        ),
    }

    with app.app_context():
        import models  # noqa: F401 - register tables
        db.create_all()
        trip_store.load()
        vehicle_store.load()

    # Register blueprints
    from trip_routes import trips_bp
    from vehicle_routes import vehicles_bp
    from dashboard_routes import dashboard_bp

    app.register_blueprint(trips_bp, url_prefix='/api/trips')
    app.register_blueprint(vehicles_bp, url_prefix='/api/vehicles')
    app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')

    @app.route('/health')
    def health():
        return jsonify({'success': True, 'status': 'ok'})

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'NOT_FOUND',
            'message': 'Resource not found'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'success': False,
            'error': 'METHOD_NOT_ALLOWED',
            'message': 'Method not allowed'
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        original = getattr(error, 'original_exception', None) or error
        logger.error(f"Unhandled error on {request.method} {request.path}: {str(original)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Internal server error'
        }), 500

    logger.info("Navexa application created")
    return app


def get_service(name):
    """Look up one of the services wired by create_app for the current app"""
    from flask import current_app
    return current_app.extensions['navexa'][name]
