import jwt
from datetime import datetime, timedelta
from flask import current_app


def _secret():
    return current_app.config['SECRET_KEY']


def _algorithm():
    return current_app.config.get('JWT_ALGORITHM', 'HS256')


def generate_token(user_id, expires_in=None):
    """Generate JWT token for user"""
    if expires_in is None:
        expires_in = current_app.config.get('JWT_EXPIRATION_HOURS', 24)
    payload = {
        'user_id': user_id,
        'exp': datetime.utcnow() + timedelta(hours=expires_in),
        'iat': datetime.utcnow()
    }
    return jwt.encode(payload, _secret(), algorithm=_algorithm())


def verify_token(token):
    """Verify and decode JWT token"""
    try:
        return jwt.decode(token, _secret(), algorithms=[_algorithm()])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def refresh_token(token):
    """Refresh JWT token if valid"""
    payload = verify_token(token)
    if payload:
        return generate_token(payload['user_id'])
    return None
