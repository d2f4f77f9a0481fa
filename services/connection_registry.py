"""
Registries mapping a user id to the socket session of their live connection.

The notifier only depends on register/unregister/lookup, so the in-process
registry can be swapped for the Redis one when several instances serve
sockets.
"""
import threading

import redis

DEFAULT_TTL_SECONDS = 3600


class InMemoryConnectionRegistry:
    """Connections of the current process only"""

    def __init__(self):
        self._lock = threading.Lock()
        self._sid_by_user = {}
        self._user_by_sid = {}

    def register(self, user_id, sid):
        user_key = str(user_id)
        with self._lock:
            previous_sid = self._sid_by_user.get(user_key)
            if previous_sid is not None:
                self._user_by_sid.pop(previous_sid, None)
            self._sid_by_user[user_key] = sid
            self._user_by_sid[sid] = user_key

    def unregister(self, user_id):
        with self._lock:
            sid = self._sid_by_user.pop(str(user_id), None)
            if sid is not None:
                self._user_by_sid.pop(sid, None)
            return sid

    def unregister_sid(self, sid):
        """Drop whichever user is registered on sid; returns that user id"""
        with self._lock:
            user_key = self._user_by_sid.pop(sid, None)
            # A newer connection for the same user must survive
            if user_key is not None and self._sid_by_user.get(user_key) == sid:
                del self._sid_by_user[user_key]
            return user_key

    def touch(self, sid):
        """Entries live as long as the process; only reports registration"""
        with self._lock:
            return sid in self._user_by_sid

    def lookup(self, user_id):
        with self._lock:
            return self._sid_by_user.get(str(user_id))

    def __len__(self):
        with self._lock:
            return len(self._sid_by_user)


class RedisConnectionRegistry:
    """Connections shared by every instance through expiring Redis keys.

    Each connection is stored as two keys, ``{prefix}:user:<id>`` -> sid and
    ``{prefix}:sid:<sid>`` -> user id, both with a TTL. Registration and
    removal run as WATCH/MULTI transactions so concurrent registrations for
    one user cannot leave a stale reverse entry. Entries of an instance that
    died without disconnecting expire after ``ttl`` seconds unless the client
    heartbeats.
    """

    def __init__(self, redis_client, key_prefix='connected_users', ttl=DEFAULT_TTL_SECONDS):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.ttl = int(ttl)

    def _user_key(self, user_id):
        return f"{self.key_prefix}:user:{user_id}"

    def _sid_key(self, sid):
        return f"{self.key_prefix}:sid:{sid}"

    def register(self, user_id, sid):
        user_id = str(user_id)
        user_key = self._user_key(user_id)

        def _register(pipe):
            previous_sid = self._decode(pipe.get(user_key))
            pipe.multi()
            if previous_sid is not None and previous_sid != sid:
                pipe.delete(self._sid_key(previous_sid))
            pipe.set(user_key, sid, ex=self.ttl)
            pipe.set(self._sid_key(sid), user_id, ex=self.ttl)

        self.redis.transaction(_register, user_key)

    def unregister(self, user_id):
        user_key = self._user_key(user_id)

        def _unregister(pipe):
            sid = self._decode(pipe.get(user_key))
            pipe.multi()
            pipe.delete(user_key)
            if sid is not None:
                pipe.delete(self._sid_key(sid))
            return sid

        return self.redis.transaction(_unregister, user_key, value_from_callable=True)

    def unregister_sid(self, sid):
        """Drop whichever user is registered on sid; returns that user id"""
        sid_key = self._sid_key(sid)

        def _unregister_sid(pipe):
            user_id = self._decode(pipe.get(sid_key))
            owns_user_key = False
            if user_id is not None:
                user_key = self._user_key(user_id)
                pipe.watch(user_key)
                # A newer connection for the same user must survive
                owns_user_key = self._decode(pipe.get(user_key)) == sid
            pipe.multi()
            pipe.delete(sid_key)
            if owns_user_key:
                pipe.delete(self._user_key(user_id))
            return user_id

        return self.redis.transaction(_unregister_sid, sid_key, value_from_callable=True)

    def touch(self, sid):
        """Extend the TTL of sid's entries; False when sid is not registered"""
        user_id = self._decode(self.redis.get(self._sid_key(sid)))
        if user_id is None:
            return False
        pipe = self.redis.pipeline()
        pipe.expire(self._sid_key(sid), self.ttl)
        pipe.expire(self._user_key(user_id), self.ttl)
        pipe.execute()
        return True

    def lookup(self, user_id):
        return self._decode(self.redis.get(self._user_key(user_id)))

    @staticmethod
    def _decode(value):
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return value


def create_registry(config, logger):
    """Build the registry selected by CONNECTION_REGISTRY"""
    kind = config.get('CONNECTION_REGISTRY', 'memory')
    if kind == 'redis':
        logger.info("Using Redis connection registry")
        return RedisConnectionRegistry(
            redis.from_url(config['REDIS_URL']),
            ttl=config.get('CONNECTION_TTL_SECONDS', DEFAULT_TTL_SECONDS)
        )
    if kind != 'memory':
        raise ValueError(f"Unknown CONNECTION_REGISTRY: {kind}")
    return InMemoryConnectionRegistry()
