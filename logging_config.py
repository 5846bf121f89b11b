"""
Logging configuration for the comment board
Console logging with separate security and audit channels
"""
import logging
from datetime import datetime, timezone


def setup_logging(app):
    """
    Configure application logging
    All logs go to stdout/stderr for the host's log collection

    Args:
        app: Flask application instance
    """
    # Determine log level based on environment
    if app.config.get('DEBUG'):
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    detailed_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s [%(name)s] in %(module)s (%(pathname)s:%(lineno)d): %(message)s'
    )

    # Main console handler for all logs
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(detailed_formatter)
    console_handler.setLevel(log_level)

    # Error console handler (stderr)
    error_handler = logging.StreamHandler()
    error_handler.setFormatter(detailed_formatter)
    error_handler.setLevel(logging.ERROR)

    app.logger.setLevel(log_level)

    # Remove default handlers
    app.logger.handlers.clear()

    app.logger.addHandler(console_handler)
    app.logger.addHandler(error_handler)

    # Separate loggers for security decisions and the audit trail.
    # Handlers are replaced so repeated create_app calls don't duplicate output
    for name in ('security', 'audit', 'comment_board'):
        named_logger = logging.getLogger(name)
        named_logger.setLevel(logging.INFO)
        named_logger.handlers.clear()
        named_logger.addHandler(console_handler)

    app.logger.info('=' * 80)
    app.logger.info('Comment Board Application Starting')
    app.logger.info(f'Debug Mode: {app.config.get("DEBUG", False)}')
    app.logger.info(f'Database: {app.config.get("SQLALCHEMY_DATABASE_URI", "").split("://")[0] if app.config.get("SQLALCHEMY_DATABASE_URI") else "unknown"}')
    app.logger.info('=' * 80)

    security_logger = logging.getLogger('security')
    security_logger.info('Security configuration loaded')
    security_logger.info(f'Allowed origins: {", ".join(app.config.get("CORS_ALLOWED_ORIGINS", []))}')
    security_logger.info(f'Trust proxy: {app.config.get("TRUST_PROXY", False)}')
    security_logger.info(f'Posting window: {app.config.get("RATE_LIMIT_WINDOW_SECONDS")} seconds per IP')

    return app.logger


def log_security_event(event_type, username=None, ip_address=None, details=None):
    """
    Log security-related events (rate limit denials, reserved username refusals)

    Args:
        event_type: Type of security event
        username: Username if applicable
        ip_address: IP address of request
        details: Additional details about the event
    """
    security_logger = logging.getLogger('security')

    log_parts = [f'Event: {event_type}']
    if username:
        log_parts.append(f'User: {username}')
    if ip_address:
        log_parts.append(f'IP: {ip_address}')
    if details:
        log_parts.append(f'Details: {details}')

    security_logger.info(' | '.join(log_parts))


def log_audit_event(action, entity_type, entity_id, username=None,
                    new_value=None, ip_address=None):
    """
    Log audit trail for stored comments

    Args:
        action: Action performed (CREATE)
        entity_type: Type of entity (Comment)
        entity_id: ID of the entity
        username: Username attached to the entity
        new_value: New value
        ip_address: IP address of request
    """
    audit_logger = logging.getLogger('audit')

    log_data = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'action': action,
        'username': username,
        'entity_type': entity_type,
        'entity_id': entity_id,
        'ip_address': ip_address
    }

    if new_value:
        log_data['new_value'] = str(new_value)

    log_parts = [f'{k}={v}' for k, v in log_data.items() if v is not None]
    audit_logger.info(' | '.join(log_parts))


def log_error(error, context=None):
    """
    Log application errors with context

    Args:
        error: Exception or error message
        context: Additional context about where/why error occurred
    """
    logger = logging.getLogger('comment_board')

    error_msg = f'Error: {str(error)}'
    if context:
        error_msg += f' | Context: {context}'

    if isinstance(error, Exception):
        logger.error(error_msg, exc_info=error)
    else:
        logger.error(error_msg)
