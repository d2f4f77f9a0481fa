"""
Dating App Backend
Profiles, nearby discovery, swipes and realtime match notifications.
"""
import os
import uuid
from datetime import datetime

from flask import Blueprint, Flask, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import Config
from extensions import bcrypt, cors, db, limiter, migrate

# === LOGGING CONFIGURATION ===
from utils.logging_config import setup_logger
logger = setup_logger('dating_app')

# === DATABASE MODELS ===
import models  # noqa: F401  registers every table with SQLAlchemy

# === AUTHENTICATION ===
from auth.decorators import require_auth
from auth.jwt_handler import refresh_token

# === SERVICES ===
from services.auth_service import AuthService
from services.connection_registry import create_registry
from services.discovery_service import DiscoveryService
from services.matching_service import MatchingService
from services.profile_service import ProfileService
from services.websocket_service import WebSocketService
from utils.errors import APIError

api = Blueprint('api', __name__, url_prefix='/api')


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _server_error(action, error):
    db.session.rollback()
    logger.error(f"{action} error: {str(error)}", exc_info=True)
    return jsonify({'success': False, 'message': str(error)}), 500


def _discovery_service():
    return DiscoveryService(db, logger, result_limit=current_app.config['DISCOVERY_RESULT_LIMIT'])


def _swipe_rate_limit():
    return current_app.config['SWIPE_RATE_LIMIT']


# === REQUEST HANDLERS ===
def before_request():
    g.request_id = str(uuid.uuid4())
    g.request_start_time = datetime.utcnow()

    logger.info('request_started', extra={
        'request_id': g.request_id,
        'method': request.method,
        'path': request.path,
        'remote_addr': request.remote_addr
    })


def after_request(response):
    if hasattr(g, 'request_start_time'):
        duration = (datetime.utcnow() - g.request_start_time).total_seconds()

        logger.info('request_completed', extra={
            'request_id': getattr(g, 'request_id', 'unknown'),
            'method': request.method,
            'path': request.path,
            'status_code': response.status_code,
            'duration_ms': round(duration * 1000, 2)
        })

    response.headers['X-Request-ID'] = getattr(g, 'request_id', 'unknown')
    return response


# === API ENDPOINTS ===

# Health check
@api.route('/health', methods=['GET'])
def health_check():
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat()
    })


# Authentication endpoints
@api.route('/auth/register', methods=['POST'])
@limiter.limit("10 per hour")
def register():
    """Register new user"""
    try:
        user, token = AuthService(db, bcrypt, logger).register(_json_body())
        return jsonify({
            'success': True,
            'token': token,
            'user': dict(user.to_dict(), profile=user.profile.to_dict())
        }), 201
    except APIError:
        raise
    except Exception as e:
        return _server_error('Registration', e)


@api.route('/auth/login', methods=['POST'])
@limiter.limit("20 per minute")
def login():
    """User login"""
    try:
        user, token = AuthService(db, bcrypt, logger).login(_json_body())
        return jsonify({'success': True, 'token': token, 'user': user.to_dict()})
    except APIError:
        raise
    except Exception as e:
        return _server_error('Login', e)


@api.route('/auth/refresh', methods=['POST'])
@require_auth()
def refresh():
    """Exchange a valid token for a fresh one"""
    token = request.headers.get('Authorization', '').replace('Bearer ', '', 1)
    return jsonify({'success': True, 'token': refresh_token(token)})


# Profile endpoints
@api.route('/profile', methods=['GET'])
@require_auth()
def get_profile():
    """Get own profile and preferences"""
    try:
        data = ProfileService(db, logger).get_profile(request.current_user.id)
        return jsonify(dict(data, success=True))
    except APIError:
        raise
    except Exception as e:
        return _server_error('Get profile', e)


@api.route('/profile', methods=['PUT'])
@require_auth()
def update_profile():
    """Update own profile, location and preferences"""
    try:
        data = ProfileService(db, logger).update_profile(request.current_user.id, _json_body())
        return jsonify(dict(data, success=True))
    except APIError:
        raise
    except Exception as e:
        return _server_error('Update profile', e)


# Discovery endpoints
@api.route('/discovery/potential', methods=['GET'])
@require_auth()
def get_potential_matches():
    """Candidates the current user has not swiped on yet"""
    try:
        candidates = _discovery_service().get_candidates(request.current_user.id)
        data = [candidate.to_dict() for candidate in candidates]
        return jsonify({
            'success': True,
            'count': len(data),
            'data': data
        })
    except APIError:
        raise
    except Exception as e:
        return _server_error('Get potential matches', e)


@api.route('/discovery/swipe', methods=['POST'])
@require_auth()
@limiter.limit(_swipe_rate_limit)
def record_swipe():
    """Record a like/dislike/superlike and report whether it made a match"""
    try:
        data = _json_body()
        swiper_id = request.current_user.id
        result = _discovery_service().record_swipe(swiper_id, data.get('swipeeId'), data.get('direction'))
    except APIError:
        raise
    except Exception as e:
        return _server_error('Record swipe', e)

    if result.match_created:
        # Notification problems never fail the swipe
        try:
            current_app.extensions['websocket_service'].notify_match(
                result.match, swiper_id, result.swipe.swipee_id
            )
        except Exception as e:
            logger.error(f"Match notification error: {str(e)}", exc_info=True)

    return jsonify({'success': True, 'data': result.to_dict()}), 201


# Matching endpoints
@api.route('/matches', methods=['GET'])
@require_auth()
def get_matches():
    """Get user's matches"""
    try:
        matches = MatchingService(db, logger).get_user_matches(request.current_user.id)
        return jsonify({'success': True, 'count': len(matches), 'data': matches})
    except APIError:
        raise
    except Exception as e:
        return _server_error('Get matches', e)


# === ERROR HANDLERS ===
def handle_api_error(error):
    logger.info(f"{error.status_code} {request.method} {request.path}: {error.message}")
    return jsonify(error.to_dict()), error.status_code


def handle_http_error(error):
    if error.code == 429:
        message = f"Rate limit exceeded: {error.description}"
    else:
        message = error.description or error.name
    return jsonify({
        'success': False,
        'message': message,
        'request_id': getattr(g, 'request_id', 'unknown')
    }), error.code


def internal_error(error):
    db.session.rollback()
    logger.error('internal_server_error', extra={
        'error': str(error),
        'request_id': getattr(g, 'request_id', 'unknown')
    }, exc_info=True)
    return jsonify({
        'success': False,
        'message': 'Internal server error',
        'request_id': getattr(g, 'request_id', 'unknown')
    }), 500


# === INITIALIZATION ===
def initialize_database(app, seed_demo_data=False):
    """Create tables, optionally with demo users"""
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

        if seed_demo_data:
            from utils.db_init import create_demo_users
            create_demo_users(db, bcrypt, logger)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # === INITIALIZE EXTENSIONS ===
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    cors.init_app(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)
    limiter.init_app(app)

    # === WEBSOCKET SETUP ===
    registry = create_registry(app.config, logger)
    app.extensions['connection_registry'] = registry
    app.extensions['websocket_service'] = WebSocketService(app, registry, logger)

    app.before_request(before_request)
    app.after_request(after_request)
    app.register_blueprint(api)

    app.register_error_handler(APIError, handle_api_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(500, internal_error)

    @app.cli.command('init-db')
    def init_db_command():
        """Create tables and, outside production, demo users"""
        initialize_database(app, seed_demo_data=not app.config['PRODUCTION'])

    return app


# === MAIN ENTRY POINT ===
if __name__ == '__main__':
    app = create_app()
    initialize_database(app, seed_demo_data=not app.config['PRODUCTION'])

    # Run with WebSocket support
    port = int(os.environ.get('PORT', 5000))
    app.extensions['websocket_service'].run(host='0.0.0.0', port=port,
                                            debug=not app.config['PRODUCTION'])
