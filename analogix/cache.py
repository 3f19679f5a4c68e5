"""Local cache tier: a key-value store of JSON strings that works offline."""

import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)


class LocalCache:
    """Interface of the local tier. Values are always strings."""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def remove(self, key):
        raise NotImplementedError


class MemoryCache(LocalCache):
    """Process-local cache; used by tests and when no cache file is configured."""

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def remove(self, key):
        self._data.pop(key, None)


class FileCache(LocalCache):
    """
    Cache backed by a single JSON object file on disk.

    The whole file is rewritten on every ``set`` through a temporary file and
    ``os.replace``, so a crash mid-write leaves the previous snapshot intact.
    A file that cannot be read is logged and treated as empty.
    """

    def __init__(self, path):
        self.path = path

    def _read(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            logger.warning("Local cache file %s is unreadable; starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Local cache file %s is not an object; starting empty", self.path)
            return {}
        return data

    def _write(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_path, self.path)
        except OSError:
            os.unlink(tmp_path)
            raise

    def get(self, key):
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key):
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class ScopedCache(LocalCache):
    """
    View of a shared cache restricted to one client.

    Every key is stored as ``"<scope>:<key>"``, so two scopes never see each
    other's entries.
    """

    def __init__(self, cache, scope):
        self.cache = cache
        self.scope = scope

    def _key(self, key):
        return f"{self.scope}:{key}"

    def get(self, key):
        return self.cache.get(self._key(key))

    def set(self, key, value):
        self.cache.set(self._key(key), value)

    def remove(self, key):
        self.cache.remove(self._key(key))
