"""Abstract interface (port) for text extraction from resume files."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class TextExtractionResult:
    """Result of extracting text from a file."""

    text: str
    page_count: int | None = None


class TextExtractor(ABC):
    """Port for text extraction — implemented in the infrastructure layer."""

    @abstractmethod
    async def extract(self, file_path: str, extension: str) -> TextExtractionResult:
        """Extract plain text from a file.

        Args:
            file_path: Path to the file on local disk.
            extension: Declared extension, including the dot (e.g. ".pdf").

        Raises:
            UnsupportedFormat: The extension cannot be handled.
            ExtractionFailed: The file could not be parsed. No partial text is returned.
        """
        ...

    @abstractmethod
    def supports(self, extension: str) -> bool:
        """Check if the extractor supports the given extension."""
        ...
