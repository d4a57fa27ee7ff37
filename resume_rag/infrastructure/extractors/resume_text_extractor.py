"""Resume text extractor — extracts plain text from PDF, DOCX and plain-text resumes."""

import asyncio
import logging
from pathlib import Path

from resume_rag.application.interfaces.text_extractor import TextExtractionResult, TextExtractor
from resume_rag.domain.exceptions import ExtractionFailed, UnsupportedFormat

logger = logging.getLogger(__name__)


class ResumeTextExtractor(TextExtractor):
    """Infrastructure adapter that extracts text from resume files.

    Implements the TextExtractor interface using format-specific libraries:
    - PDF: PyMuPDF (fitz)
    - DOCX: python-docx
    - TXT/MD: built-in

    Legacy ``.doc`` files are rejected outright. Parsing runs in a worker
    thread so the event loop stays responsive.
    """

    # Extension → handler method mapping
    _HANDLERS: dict[str, str] = {
        ".pdf": "_extract_pdf",
        ".docx": "_extract_docx",
        ".txt": "_extract_text",
        ".md": "_extract_text",
    }

    def supports(self, extension: str) -> bool:
        return extension.lower() in self._HANDLERS

    async def extract(self, file_path: str, extension: str) -> TextExtractionResult:
        extension = extension.lower()
        if extension == ".doc":
            raise UnsupportedFormat(extension, "Please convert to .docx or PDF")

        handler_name = self._HANDLERS.get(extension)
        if handler_name is None:
            raise UnsupportedFormat(extension)

        path = Path(file_path)
        if not path.is_file():
            raise ExtractionFailed(f"File not found: {path.name}")

        handler = getattr(self, handler_name)
        try:
            result = await asyncio.to_thread(handler, path)
        except Exception as exc:
            logger.error("Error extracting text from %s: %s", path.name, exc)
            raise ExtractionFailed(f"Failed to extract text from {path.name}: {exc}") from exc

        logger.info(
            "Extracted %d characters from %s (%s)",
            len(result.text),
            path.name,
            extension,
        )
        return result

    # ── Format-specific handlers (run in a worker thread) ────────────

    @staticmethod
    def _extract_pdf(path: Path) -> TextExtractionResult:
        """Extract text from PDF using PyMuPDF."""
        import fitz  # PyMuPDF

        with fitz.open(path) as doc:
            pages: list[str] = []
            for page_num, page in enumerate(doc):
                text = page.get_text("text")
                if text.strip():
                    pages.append(text)
                else:
                    logger.debug("Page %d has no text layer", page_num + 1)
            page_count = doc.page_count

        return TextExtractionResult(text="\n\n".join(pages), page_count=page_count)

    @staticmethod
    def _extract_docx(path: Path) -> TextExtractionResult:
        """Extract text from DOCX using python-docx."""
        from docx import Document

        doc = Document(str(path))
        parts: list[str] = []

        # Paragraphs
        for para in doc.paragraphs:
            if para.text.strip():
                parts.append(para.text)

        # Tables
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        return TextExtractionResult(text="\n\n".join(parts))

    @staticmethod
    def _extract_text(path: Path) -> TextExtractionResult:
        """Extract text from plain text files (TXT, MD)."""
        # Try UTF-8 first, then fall back to latin-1
        try:
            return TextExtractionResult(text=path.read_text(encoding="utf-8"))
        except UnicodeDecodeError:
            return TextExtractionResult(text=path.read_text(encoding="latin-1"))
