"""Socket.IO handlers: registration, chat relay, disconnect."""

from unittest.mock import MagicMock

from services.connection_registry import InMemoryConnectionRegistry
from services.websocket_service import WebSocketService


def events_named(received, name):
    return [event for event in received if event['name'] == name]


class TestRegister:

    def test_connect_is_acknowledged(self, app, socketio):
        socket = socketio.test_client(app)

        assert socket.is_connected()
        assert events_named(socket.get_received(), 'connection_established')
        socket.disconnect()

    def test_register_with_bare_id(self, app, socketio, registry):
        socket = socketio.test_client(app)
        socket.get_received()

        socket.emit('register', 42)

        registered = events_named(socket.get_received(), 'registered')
        assert registered[0]['args'][0] == {'userId': '42'}
        assert registry.lookup(42) is not None
        socket.disconnect()

    def test_register_with_object_payload(self, app, socketio, registry):
        socket = socketio.test_client(app)
        socket.emit('register', {'userId': 'abc'})

        assert registry.lookup('abc') is not None
        socket.disconnect()

    def test_register_without_user_id(self, app, socketio, registry):
        socket = socketio.test_client(app)
        socket.get_received()

        socket.emit('register', {})

        assert events_named(socket.get_received(), 'socket_error')
        assert len(registry) == 0
        socket.disconnect()

    def test_disconnect_unregisters(self, app, socketio, registry):
        socket = socketio.test_client(app)
        socket.emit('register', 7)
        assert registry.lookup(7) is not None

        socket.disconnect()

        assert registry.lookup(7) is None


class TestSendMessage:

    def test_message_relayed_to_recipient(self, app, socketio):
        sender = socketio.test_client(app)
        recipient = socketio.test_client(app)
        sender.emit('register', 1)
        recipient.emit('register', 2)
        recipient.get_received()

        sender.emit('sendMessage', {'to': 2, 'from': 1, 'text': 'hi'})

        relayed = events_named(recipient.get_received(), 'receiveMessage')
        assert len(relayed) == 1
        assert relayed[0]['args'][0]['text'] == 'hi'
        assert relayed[0]['args'][0]['timestamp']
        sender.disconnect()
        recipient.disconnect()

    def test_message_to_offline_user_is_dropped(self, app, socketio):
        sender = socketio.test_client(app)
        sender.emit('register', 1)
        sender.get_received()

        sender.emit('sendMessage', {'to': 99, 'text': 'anyone?'})

        assert events_named(sender.get_received(), 'receiveMessage') == []
        sender.disconnect()


class TestHeartbeat:

    def test_heartbeat_for_registered_connection(self, app, socketio):
        socket = socketio.test_client(app)
        socket.emit('register', 3)
        socket.get_received()

        socket.emit('heartbeat')

        acks = events_named(socket.get_received(), 'heartbeat_ack')
        assert acks[0]['args'][0] == {'registered': True}
        socket.disconnect()

    def test_heartbeat_before_register(self, app, socketio):
        socket = socketio.test_client(app)
        socket.get_received()

        socket.emit('heartbeat')

        acks = events_named(socket.get_received(), 'heartbeat_ack')
        assert acks[0]['args'][0] == {'registered': False}
        socket.disconnect()


class TestMessageQueue:

    def build_service(self, app, logger, monkeypatch):
        socketio_class = MagicMock()
        monkeypatch.setattr('services.websocket_service.SocketIO', socketio_class)
        WebSocketService(app, InMemoryConnectionRegistry(), logger)
        return socketio_class.call_args.kwargs

    def test_shared_registry_routes_emits_through_redis(self, app, logger, monkeypatch):
        app.config['CONNECTION_REGISTRY'] = 'redis'
        app.config['REDIS_URL'] = 'redis://cache.internal:6379/2'

        kwargs = self.build_service(app, logger, monkeypatch)

        assert kwargs['message_queue'] == 'redis://cache.internal:6379/2'

    def test_in_memory_registry_has_no_message_queue(self, app, logger, monkeypatch):
        app.config['CONNECTION_REGISTRY'] = 'memory'

        kwargs = self.build_service(app, logger, monkeypatch)

        assert kwargs['message_queue'] is None
