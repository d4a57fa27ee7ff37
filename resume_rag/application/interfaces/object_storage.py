"""Abstract interface (port) for durable object storage and upload staging."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StagedFile:
    """A file written to the local staging area, awaiting ingestion."""

    path: str
    filename: str
    byte_size: int
    media_type: str


class ObjectStorage(ABC):
    """Port for durable storage of original documents."""

    @abstractmethod
    async def put_object(self, content: bytes, key: str, content_type: str) -> str:
        """Store ``content`` under ``key``. Returns the key."""
        ...

    @abstractmethod
    async def delete_object(self, key: str) -> None:
        ...

    @abstractmethod
    async def signed_url(self, key: str, ttl: int = 3600) -> str:
        """Return a time-limited URL for downloading the object."""
        ...

    @abstractmethod
    async def stage_upload(self, content: bytes, filename: str) -> StagedFile:
        """Write an incoming upload to the staging area for a worker to pick up."""
        ...

    @abstractmethod
    async def expand_archive(
        self, archive_path: str, allowed_extensions: frozenset[str]
    ) -> list[StagedFile]:
        """Stage each allowed member of a ZIP archive as its own file.

        ``StagedFile.filename`` carries the member's full path inside the archive.
        """
        ...
