from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
import logging
import os

db = SQLAlchemy()


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from config import config
    app.config.from_object(config[config_name])

    _configure_logging(app)

    # Initialize extensions
    from zone_dispatch.extensions import limiter, notification_dispatcher
    from zone_dispatch.middleware import RequestIdMiddleware

    db.init_app(app)
    limiter.init_app(app)
    notification_dispatcher.init_app(app)
    CORS(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}}, supports_credentials=True)
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    # Register blueprints
    from zone_dispatch.blueprints.service_area import service_area_bp

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(service_area_bp, url_prefix=f'{api_prefix}/locations')

    from zone_dispatch.cli import register_commands
    register_commands(app)

    _register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'zone-dispatch'}, 200

    return app


def _configure_logging(app):
    """Route zone_dispatch.* loggers through one handler that stamps the request id"""
    from zone_dispatch.middleware import RequestIdFilter

    logger = logging.getLogger('zone_dispatch')
    logger.setLevel(app.config['LOG_LEVEL'])

    if not any(isinstance(f, RequestIdFilter) for h in logger.handlers for f in h.filters):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s'
        ))
        handler.addFilter(RequestIdFilter())
        logger.addHandler(handler)


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def ratelimit_handler(e):
        # Retry-After header is set by Flask-Limiter; read it back.
        retry_after = e.get_headers().get('Retry-After') if hasattr(e, 'get_headers') else None
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            'error': 'Too many requests. Please try again later.',
            'retry_after': retry_after_seconds,
        }), 429

    @app.errorhandler(500)
    def internal_error(e):
        logging.getLogger('zone_dispatch').error('Unhandled server error: %s', e)
        return jsonify({'error': 'Internal server error'}), 500
