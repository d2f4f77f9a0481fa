"""MatchNotifier and the connection registries."""

from unittest.mock import MagicMock

import pytest

from services.connection_registry import (
    InMemoryConnectionRegistry,
    RedisConnectionRegistry,
    create_registry,
)
from services.matching_service import MatchingService
from services.notification_service import MatchNotifier


@pytest.fixture
def mock_socketio():
    return MagicMock()


@pytest.fixture
def memory_registry():
    return InMemoryConnectionRegistry()


@pytest.fixture
def matched_pair(db, logger, make_user):
    a = make_user(name='Ana', photos=['ana.jpg'])
    b = make_user(name='Ben', photos=['ben1.jpg', 'ben2.jpg'])
    match, _ = MatchingService(db, logger).create_match(a.id, b.id)
    db.session.commit()
    return match, a, b


class TestMatchNotifier:

    def test_both_connected_each_receives_the_other(self, mock_socketio, memory_registry, logger, matched_pair):
        match, a, b = matched_pair
        memory_registry.register(a.id, 'sid-a')
        memory_registry.register(b.id, 'sid-b')
        notifier = MatchNotifier(mock_socketio, memory_registry, logger)

        delivered = notifier.notify_match(match, a.id, b.id)

        assert delivered == 2
        mock_socketio.emit.assert_any_call(
            'new_match', {'matchId': match.id, 'user': {'name': 'Ben', 'photos': ['ben1.jpg', 'ben2.jpg']}},
            to='sid-a'
        )
        mock_socketio.emit.assert_any_call(
            'new_match', {'matchId': match.id, 'user': {'name': 'Ana', 'photos': ['ana.jpg']}},
            to='sid-b'
        )

    def test_unconnected_participant_is_silently_skipped(self, mock_socketio, memory_registry, logger, matched_pair):
        match, a, b = matched_pair
        memory_registry.register(b.id, 'sid-b')
        notifier = MatchNotifier(mock_socketio, memory_registry, logger)

        delivered = notifier.notify_match(match, a.id, b.id)

        assert delivered == 1
        mock_socketio.emit.assert_called_once()
        assert mock_socketio.emit.call_args.kwargs['to'] == 'sid-b'

    def test_nobody_connected(self, mock_socketio, memory_registry, logger, matched_pair):
        match, a, b = matched_pair
        notifier = MatchNotifier(mock_socketio, memory_registry, logger)

        assert notifier.notify_match(match, a.id, b.id) == 0
        mock_socketio.emit.assert_not_called()

    def test_emit_failure_does_not_raise(self, mock_socketio, memory_registry, logger, matched_pair):
        match, a, b = matched_pair
        memory_registry.register(a.id, 'sid-a')
        memory_registry.register(b.id, 'sid-b')
        mock_socketio.emit.side_effect = RuntimeError('socket closed')
        notifier = MatchNotifier(mock_socketio, memory_registry, logger)

        assert notifier.notify_match(match, a.id, b.id) == 0


class TestInMemoryConnectionRegistry:

    def test_register_and_lookup(self, memory_registry):
        memory_registry.register(1, 'sid-1')
        assert memory_registry.lookup(1) == 'sid-1'
        assert memory_registry.lookup('1') == 'sid-1'
        assert memory_registry.lookup(2) is None

    def test_reconnect_replaces_previous_sid(self, memory_registry):
        memory_registry.register(1, 'old')
        memory_registry.register(1, 'new')

        assert memory_registry.lookup(1) == 'new'
        # The stale socket disconnecting must not drop the new one
        assert memory_registry.unregister_sid('old') is None
        assert memory_registry.lookup(1) == 'new'

    def test_unregister_sid(self, memory_registry):
        memory_registry.register(1, 'sid-1')
        assert memory_registry.unregister_sid('sid-1') == '1'
        assert memory_registry.lookup(1) is None
        assert len(memory_registry) == 0

    def test_unregister_user(self, memory_registry):
        memory_registry.register(1, 'sid-1')
        assert memory_registry.unregister(1) == 'sid-1'
        assert memory_registry.lookup(1) is None
        assert memory_registry.unregister(1) is None

    def test_touch_reports_registration(self, memory_registry):
        memory_registry.register(1, 'sid-1')
        assert memory_registry.touch('sid-1') is True
        assert memory_registry.touch('sid-2') is False


class TestRedisConnectionRegistry:

    @pytest.fixture
    def pipe(self):
        return MagicMock()

    @pytest.fixture
    def redis_client(self, pipe):
        client = MagicMock()
        client.pipeline.return_value = pipe

        # WATCH/MULTI: run the callable against the pipeline once
        def run_transaction(func, *watches, value_from_callable=False):
            client.watched = watches
            value = func(pipe)
            return value if value_from_callable else []

        client.transaction.side_effect = run_transaction
        return client

    def test_register_sets_both_keys_with_ttl(self, redis_client, pipe):
        pipe.get.return_value = None
        registry = RedisConnectionRegistry(redis_client, ttl=120)

        registry.register(5, 'sid-5')

        assert redis_client.watched == ('connected_users:user:5',)
        pipe.multi.assert_called_once()
        pipe.set.assert_any_call('connected_users:user:5', 'sid-5', ex=120)
        pipe.set.assert_any_call('connected_users:sid:sid-5', '5', ex=120)
        pipe.delete.assert_not_called()

    def test_reconnect_drops_previous_reverse_entry_in_same_transaction(self, redis_client, pipe):
        pipe.get.return_value = b'sid-old'
        registry = RedisConnectionRegistry(redis_client)

        registry.register(5, 'sid-new')

        pipe.delete.assert_called_once_with('connected_users:sid:sid-old')
        # The delete is queued after MULTI together with the new keys
        method_names = [name for name, args, kwargs in pipe.method_calls]
        assert method_names.index('multi') < method_names.index('delete')

    def test_lookup_decodes_bytes(self, redis_client):
        redis_client.get.return_value = b'sid-5'
        registry = RedisConnectionRegistry(redis_client)

        assert registry.lookup(5) == 'sid-5'
        redis_client.get.assert_called_with('connected_users:user:5')

    def test_unregister_sid_keeps_newer_connection(self, redis_client, pipe):
        pipe.get.side_effect = [b'5', b'sid-newer']
        registry = RedisConnectionRegistry(redis_client)

        assert registry.unregister_sid('sid-old') == '5'
        pipe.watch.assert_called_once_with('connected_users:user:5')
        pipe.delete.assert_called_once_with('connected_users:sid:sid-old')

    def test_unregister_sid_removes_own_user_key(self, redis_client, pipe):
        pipe.get.side_effect = [b'5', b'sid-5']
        registry = RedisConnectionRegistry(redis_client)

        assert registry.unregister_sid('sid-5') == '5'
        pipe.delete.assert_any_call('connected_users:sid:sid-5')
        pipe.delete.assert_any_call('connected_users:user:5')

    def test_unregister_user(self, redis_client, pipe):
        pipe.get.return_value = b'sid-5'
        registry = RedisConnectionRegistry(redis_client)

        assert registry.unregister(5) == 'sid-5'
        pipe.delete.assert_any_call('connected_users:user:5')
        pipe.delete.assert_any_call('connected_users:sid:sid-5')

    def test_touch_refreshes_ttl(self, redis_client, pipe):
        redis_client.get.return_value = b'5'
        registry = RedisConnectionRegistry(redis_client, ttl=90)

        assert registry.touch('sid-5') is True
        pipe.expire.assert_any_call('connected_users:sid:sid-5', 90)
        pipe.expire.assert_any_call('connected_users:user:5', 90)
        pipe.execute.assert_called_once()

    def test_touch_unknown_sid(self, redis_client, pipe):
        redis_client.get.return_value = None
        registry = RedisConnectionRegistry(redis_client)

        assert registry.touch('sid-gone') is False
        pipe.expire.assert_not_called()


class TestCreateRegistry:

    def test_memory_by_default(self, logger):
        assert isinstance(create_registry({}, logger), InMemoryConnectionRegistry)

    def test_redis(self, logger, monkeypatch):
        fake_client = MagicMock()
        monkeypatch.setattr('services.connection_registry.redis.from_url', lambda url: fake_client)

        registry = create_registry({
            'CONNECTION_REGISTRY': 'redis',
            'REDIS_URL': 'redis://example:6379',
            'CONNECTION_TTL_SECONDS': 300
        }, logger)

        assert isinstance(registry, RedisConnectionRegistry)
        assert registry.redis is fake_client
        assert registry.ttl == 300

    def test_unknown_kind(self, logger):
        with pytest.raises(ValueError):
            create_registry({'CONNECTION_REGISTRY': 'carrier-pigeon'}, logger)
