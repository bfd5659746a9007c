"""
Expiring key/value cache for report pages.

A ResultCache wraps one backing store. Every store keeps key -> (value,
expiry) and forgets entries once they expire; values must be JSON
serialisable so the file and Redis stores can hold them.
"""

import glob
import hashlib
import json
import logging
import os
import threading
import time

import redis

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


def make_key(prefix, *params):
    """Stable cache key for a prefix and its parameters."""
    raw = json.dumps([prefix] + [str(p) for p in params])
    return hashlib.md5(raw.encode('utf-8')).hexdigest()


class MemoryStore:
    """Per-process store. Each worker process has its own copy."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key, value, ttl):
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()


class FileStore:
    """One JSON file per key under cache_dir."""

    def __init__(self, cache_dir, clock=time.time):
        self.cache_dir = cache_dir
        self._clock = clock

    def _path(self, key):
        return os.path.join(self.cache_dir, f'{key}.cache')

    def _remove(self, path):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def get(self, key):
        path = self._path(key)
        try:
            with open(path, 'r', encoding='utf-8') as fh:
                payload = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable cache file %s: %s", path, exc)
            self._remove(path)
            return None
        if not isinstance(payload, dict) or float(payload.get('expires') or 0) <= self._clock():
            self._remove(path)
            return None
        return payload.get('data')

    def set(self, key, value, ttl):
        os.makedirs(self.cache_dir, exist_ok=True)
        path = self._path(key)
        tmp_path = f'{path}.{os.getpid()}.tmp'
        try:
            with open(tmp_path, 'w', encoding='utf-8') as fh:
                json.dump({'expires': self._clock() + ttl, 'data': value}, fh)
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.error("Cache write error for %s: %s", path, exc)
            self._remove(tmp_path)

    def delete(self, key):
        self._remove(self._path(key))

    def clear(self):
        for path in glob.glob(os.path.join(self.cache_dir, '*.cache')):
            self._remove(path)


class RedisStore:
    """Redis-backed store. Redis errors are logged and read as misses."""

    def __init__(self, client, namespace='perf'):
        self.client = client
        self.namespace = namespace

    def _name(self, key):
        return f'{self.namespace}:{key}'

    def get(self, key):
        try:
            raw = self.client.get(self._name(key))
        except redis.RedisError as exc:
            logger.warning("Redis get error for %s: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    def set(self, key, value, ttl):
        try:
            self.client.setex(self._name(key), int(max(1, ttl)), json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Redis set error for %s: %s", key, exc)

    def delete(self, key):
        try:
            self.client.delete(self._name(key))
        except redis.RedisError as exc:
            logger.warning("Redis delete error for %s: %s", key, exc)

    def clear(self):
        try:
            keys = list(self.client.scan_iter(match=f'{self.namespace}:*'))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as exc:
            logger.warning("Redis clear error: %s", exc)


class ResultCache:
    """get/set/invalidate over a pluggable store."""

    def __init__(self, store, default_ttl=DEFAULT_TTL):
        self.store = store
        self.default_ttl = default_ttl

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ttl=None):
        self.store.set(key, value, self.default_ttl if ttl is None else ttl)

    def delete(self, key):
        self.store.delete(key)

    invalidate = delete

    def clear(self):
        self.store.clear()

    def remember(self, key, callback, ttl=None):
        """Return the cached value for key, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = callback()
        if value is not None:
            self.set(key, value, ttl)
        return value


def build_cache(backend='memory', cache_dir='cache/performance', redis_url='', default_ttl=DEFAULT_TTL):
    """Create a ResultCache for the configured backend name."""
    backend = (backend or 'memory').strip().lower()
    if backend == 'memory':
        store = MemoryStore()
    elif backend == 'file':
        store = FileStore(cache_dir)
    elif backend == 'redis':
        if not redis_url:
            raise RuntimeError("REDIS_URL is required when CACHE_BACKEND=redis.")
        store = RedisStore(redis.Redis.from_url(redis_url, socket_timeout=2))
    else:
        raise RuntimeError(f"Unknown CACHE_BACKEND '{backend}'. Use memory, file or redis.")
    return ResultCache(store, default_ttl=default_ttl)
