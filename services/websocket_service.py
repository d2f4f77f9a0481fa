from flask_socketio import SocketIO, emit
from flask import request
from datetime import datetime

from services.notification_service import MatchNotifier


class WebSocketService:
    """Socket.IO endpoint: connection registration, chat relay and match events"""

    def __init__(self, app, registry, logger):
        self.app = app
        self.registry = registry
        self.logger = logger
        self.socketio = SocketIO(
            app,
            cors_allowed_origins=app.config.get('CORS_ORIGINS') or '*',
            async_mode='threading',
            message_queue=self._message_queue(app.config),
            ping_timeout=60,
            ping_interval=25
        )
        self.notifier = MatchNotifier(self.socketio, registry, logger)
        self.setup_handlers()

    @staticmethod
    def _message_queue(config):
        # A sid found in the shared registry may belong to another instance;
        # emits must go through Redis pub/sub to reach it
        if config.get('CONNECTION_REGISTRY') == 'redis':
            return config['REDIS_URL']
        return None

    @staticmethod
    def _user_id_from(payload):
        # Clients send either the bare id or {"userId": ...}
        if isinstance(payload, dict):
            payload = payload.get('userId')
        if payload is None or isinstance(payload, (bool, dict, list)):
            return None
        user_id = str(payload).strip()
        return user_id or None

    def setup_handlers(self):
        @self.socketio.on('connect')
        def handle_connect(auth=None):
            self.logger.info(f"WebSocket connected: {request.sid}")
            emit('connection_established', {'status': 'connected'})

        @self.socketio.on('register')
        def handle_register(payload):
            user_id = self._user_id_from(payload)
            if user_id is None:
                emit('socket_error', {'message': 'userId is required'})
                return
            self.registry.register(user_id, request.sid)
            self.logger.info(f"WebSocket {request.sid} registered for user {user_id}")
            emit('registered', {'userId': user_id})

        @self.socketio.on('sendMessage')
        def handle_send_message(message):
            # Relay only; chat history is stored elsewhere
            if not isinstance(message, dict) or message.get('to') is None:
                emit('socket_error', {'message': 'Message recipient is required'})
                return
            sid = self.registry.lookup(message['to'])
            if not sid:
                self.logger.debug(f"Recipient {message['to']} not connected, message not relayed")
                return
            message = dict(message, timestamp=message.get('timestamp') or datetime.utcnow().isoformat())
            emit('receiveMessage', message, to=sid)
            self.registry.touch(request.sid)

        @self.socketio.on('heartbeat')
        def handle_heartbeat(*args):
            """Keep this connection's registration from expiring"""
            alive = self.registry.touch(request.sid)
            emit('heartbeat_ack', {'registered': alive})

        @self.socketio.on('disconnect')
        def handle_disconnect(*args):
            user_id = self.registry.unregister_sid(request.sid)
            self.logger.info(f"WebSocket disconnected: {request.sid} (user {user_id})")

    def notify_match(self, match, user_a_id, user_b_id):
        return self.notifier.notify_match(match, user_a_id, user_b_id)

    def run(self, host='0.0.0.0', port=5000, debug=False):
        self.socketio.run(self.app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
