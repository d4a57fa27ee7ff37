"""Abstract interface (port) for the shared key/value cache."""

from abc import ABC, abstractmethod


class Cache(ABC):
    """Port for a TTL key/value store — values are JSON strings."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the cached value, or None when absent or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store a value, expiring after ``ttl`` seconds when given."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``. Returns the number removed."""
        ...
