from __future__ import annotations

from typing import Any

from redis import Redis


class RedisManager:
    """
    Redis-backed object store used as an opaque key/value blob service.

    Objects live inside logical containers. A container is registered once
    (create-if-absent) and each object is stored under a namespaced key as raw
    bytes. Writes are plain overwrites: there is no locking or versioning, so
    concurrent writers to the same key race with last-write-wins semantics.

    This class is designed for dependency injection: callers provide a configured
    Redis client (e.g., via Redis.from_url or Redis(host=..., ...)).

    Args:
        redis_client (Redis): A configured Redis client instance.
        namespace (str): Key namespace/prefix for generated keys.
    """

    def __init__(self, redis_client: Redis, *, namespace: str = "mcp:snippets") -> None:
        self._redis: Redis = redis_client
        self._namespace: str = namespace.rstrip(":")

    # -----------------------------
    # Key helpers
    # -----------------------------
    def containers_key(self) -> str:
        return f"{self._namespace}:containers"

    def object_key(self, container: str, key: str) -> str:
        """
        Build the namespaced Redis key for an object in a container.

        Args:
            container (str): Logical container name.
            key (str): Object key inside the container.

        Returns:
            str: The fully namespaced Redis key.
        """
        return f"{self._namespace}:blob:{container}:{key}"

    # -----------------------------
    # Container helpers
    # -----------------------------
    def ensure_container(self, container: str) -> bool:
        """
        Create the container if it does not exist yet. Safe to call repeatedly.

        Args:
            container (str): Logical container name.

        Returns:
            bool: True if the container was created by this call, False if it existed.
        """
        added = self._redis.sadd(self.containers_key(), container)
        return bool(added)

    def container_exists(self, container: str) -> bool:
        return bool(self._redis.sismember(self.containers_key(), container))

    # -----------------------------
    # Object helpers
    # -----------------------------
    def exists(self, container: str, key: str) -> bool:
        return self._redis.exists(self.object_key(container, key)) == 1

    def get(self, container: str, key: str) -> bytes | None:
        """
        Get the raw bytes of an object.

        Args:
            container (str): Logical container name.
            key (str): Object key inside the container.

        Returns:
            bytes | None: The object content, or None if the object does not exist.
        """
        raw: Any = self._redis.get(self.object_key(container, key))
        if raw is None:
            return None
        if isinstance(raw, str):
            return raw.encode("utf-8")
        return bytes(raw)

    def put(self, container: str, key: str, data: bytes) -> None:
        """
        Store raw bytes for an object, overwriting any previous value.

        Args:
            container (str): Logical container name.
            key (str): Object key inside the container.
            data (bytes): Content to store.
        """
        self._redis.set(self.object_key(container, key), data)


def build_redis_manager(
    redis_url: str | None = None,
    *,
    redis_client: Redis | None = None,
    namespace: str = "mcp:snippets",
) -> RedisManager:
    """
    Factory to create a RedisManager.

    You can provide either `redis_url` (preferred) and this function will initialize
    the client, or pass an existing `redis_client` (for tests/advanced use).

    Args:
        redis_url (str | None): Redis connection URL (e.g., "redis://:pwd@host:6379/0").
        redis_client (Redis | None): Pre-configured Redis client instance.
        namespace (str): Key namespace/prefix for generated keys.

    Returns:
        RedisManager: Configured manager instance.
    """
    if redis_client is None:
        if not redis_url:
            raise ValueError("Provide either redis_url or redis_client")
        # Objects are raw bytes, so responses are never decoded
        redis_client = Redis.from_url(redis_url, decode_responses=False)

    return RedisManager(redis_client, namespace=namespace)
