from functools import wraps
from flask import request, jsonify, g
from auth.jwt_handler import verify_token
from extensions import db
from models.user import User


def _unauthorized(message):
    return jsonify({'success': False, 'message': message}), 401


def require_auth():
    """Authentication decorator; sets request.current_user"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Check for token in header
            auth_header = request.headers.get('Authorization', '')
            if not auth_header.startswith('Bearer '):
                return _unauthorized('Invalid authorization header')

            token = auth_header.replace('Bearer ', '', 1)
            payload = verify_token(token)

            if not payload or 'user_id' not in payload:
                return _unauthorized('Invalid or expired token')

            user = db.session.get(User, payload['user_id'])
            if not user or not user.is_active:
                return _unauthorized('User not found or inactive')

            # Add user to request context
            request.current_user = user
            g.user_id = user.id

            return f(*args, **kwargs)
        return decorated_function
    return decorator
