import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from config import Config

db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()
socketio = SocketIO()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app.logger.setLevel(app.config['LOG_LEVEL'])

    origins = app.config['CORS_ORIGINS']
    if origins == ['*']:
        origins = '*'

    CORS(app, origins=origins, supports_credentials=True)
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, cors_allowed_origins=origins)

    os.makedirs(app.config['UPLOAD_DIR'], exist_ok=True)

    # Import models to ensure they are registered with SQLAlchemy
    from foodapp import models  # noqa: F401

    from foodapp.auth import register_jwt_callbacks
    from foodapp.errors import register_error_handlers
    register_jwt_callbacks(jwt)
    register_error_handlers(app)

    from foodapp.routes import catalog, dashboard, delivery, orders, payments
    app.register_blueprint(catalog.catalog_bp)
    app.register_blueprint(delivery.delivery_bp)
    app.register_blueprint(orders.orders_bp)
    app.register_blueprint(payments.payments_bp)
    app.register_blueprint(dashboard.dashboard_bp)

    # Real-time fanout used by the lifecycle engine and order service
    from foodapp.services.notifications import SocketIOPublisher
    app.extensions['event_publisher'] = SocketIOPublisher(socketio)

    from foodapp.sockets import register_socket_events
    register_socket_events(socketio)

    from foodapp.services.sweeper import AutoCompletionSweeper, register_sweeper_command
    sweeper = AutoCompletionSweeper(
        app,
        interval_seconds=app.config['SWEEPER_INTERVAL_SECONDS'],
        stale_minutes=app.config['SWEEPER_STALE_MINUTES'],
    )
    app.extensions['order_sweeper'] = sweeper
    register_sweeper_command(app)
    if app.config['SWEEPER_ENABLED']:
        sweeper.start(socketio)

    @app.route('/')
    def root():
        return jsonify({
            'message': 'Food Ordering API',
            'version': '1.0.0',
            'status': 'running'
        })

    @app.route('/health')
    def health_check():
        """Health check endpoint"""
        return jsonify({'status': 'healthy', 'service': 'foodapp'})

    return app
