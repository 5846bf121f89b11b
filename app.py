from flask import Flask, request, jsonify
from flask_talisman import Talisman
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.security import generate_password_hash
from models import db
from config import config
from logging_config import setup_logging, log_security_event
from limiter import limiter
from services.comment_service import CommentService
from services.rate_limiter import rate_limiter
import click
import os

CORS_ALLOWED_METHODS = 'GET, POST, OPTIONS'
CORS_ALLOWED_HEADERS = 'Content-Type'
CORS_MAX_AGE = '600'

def create_app(config_name=None):
    """Application factory"""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Missing admin credentials stop startup here rather than disabling the check
    app.extensions['comment_service'] = CommentService.from_config(app.config)

    # Initialize extensions
    db.init_app(app)
    rate_limiter.init_app(app)

    # Setup logging
    setup_logging(app)

    # Setup request throttling
    limiter.init_app(app)

    # Client IP from the reverse proxy's X-Forwarded-For
    if app.config.get('TRUST_PROXY'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=app.config.get('PROXY_FIX_X_FOR', 1))

    from api.comments import comments_bp
    app.register_blueprint(comments_bp)

    # Enable HTTPS enforcement in production
    if config_name == 'production':
        Talisman(app,
                force_https=True,
                strict_transport_security=True,
                strict_transport_security_max_age=31536000,
                content_security_policy={'default-src': "'none'"})

    allowed_origins = set(app.config.get('CORS_ALLOWED_ORIGINS', []))

    @app.before_request
    def enforce_cors_origin():
        """Reject browsers calling from origins outside the allow-list"""
        origin = request.headers.get('Origin')
        if origin and origin not in allowed_origins:
            log_security_event('cors_rejected', ip_address=request.remote_addr, details=f'Origin: {origin}')
            return jsonify({'error': 'not allowed by CORS!'}), 403

    @app.after_request
    def set_cors_headers(response):
        """Echo allowed origins and answer preflight requests"""
        origin = request.headers.get('Origin')
        if origin and origin in allowed_origins:
            response.headers['Access-Control-Allow-Origin'] = origin
            response.vary.add('Origin')
            if request.method == 'OPTIONS':
                response.headers['Access-Control-Allow-Methods'] = CORS_ALLOWED_METHODS
                response.headers['Access-Control-Allow-Headers'] = CORS_ALLOWED_HEADERS
                response.headers['Access-Control-Max-Age'] = CORS_MAX_AGE
        return response

    # Error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        app.logger.warning(f'404 error: {request.url} from IP {request.remote_addr}')
        return jsonify({'error': 'not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'error': 'method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f'500 error: {str(error)}', exc_info=True)
        db.session.rollback()
        return jsonify({'error': 'internal server error'}), 500

    @app.errorhandler(429)
    def ratelimit_handler(error):
        """Handle request throttle errors from Flask-Limiter"""
        app.logger.warning(f'Rate limit exceeded: {request.url} from IP {request.remote_addr}')
        return jsonify({'error': 'too many requests, please try again later!'}), 429

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': error.description}), error.code

    # Add security headers
    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        # Only set HSTS if in production (with HTTPS)
        if config_name == 'production':
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    # Create tables on first run (development only)
    # In production, use the init-db CLI command instead
    if config_name == 'development':
        with app.app_context():
            db.create_all()

    register_commands(app)

    return app

def register_commands(app):
    """Operator CLI commands"""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the comments and rate_limits tables."""
        from database.init_db import init_db
        init_db(app)
        app.logger.info('Database initialized via CLI command')
        click.echo('Database initialized.')

    @app.cli.command('prune-rate-limits')
    def prune_rate_limits_command():
        """Delete rate limit records whose posting window has elapsed."""
        with app.app_context():
            removed = rate_limiter.prune_expired()
        click.echo(f'Removed {removed} expired rate limit records.')

    @app.cli.command('hash-password')
    @click.password_option()
    def hash_password_command(password):
        """Print a hash suitable for SERVER_PASSWORD_HASH."""
        click.echo(generate_password_hash(password))

if __name__ == '__main__':
    # For development only
    app = create_app()
    debug_mode = os.environ.get('FLASK_ENV') == 'development'
    app.run(debug=debug_mode, host='0.0.0.0', port=int(os.environ.get('PORT', 8100)))
