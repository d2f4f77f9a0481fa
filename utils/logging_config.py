"""
Logging configuration for the dating app
"""
import logging
import os


def setup_logger(name, level=None):
    """Setup logger with consistent formatting"""
    if level is None:
        level = logging.DEBUG if os.environ.get('FLASK_ENV') == 'development' else logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


def log_audit(logger, user_id, action, details=None):
    """Log audit events with special formatting"""
    audit_msg = f"AUDIT: User {user_id} | Action: {action}"
    if details:
        audit_msg += f" | Details: {details}"
    logger.info(audit_msg)
