"""Colored pipeline logger — ANSI-colored console logging for resume ingestion.

Provides a PipelineLogger with color-coded output per pipeline stage,
making it easy to visually trace a resume through the terminal.

Color scheme:
    Green   — Upload / Storage / Complete
    Yellow  — Text extraction
    Magenta — PII redaction
    Blue    — Chunking
    Cyan    — Embedding / Indexing
    White   — Archive expansion
    Red     — Errors
    Gray    — Timing / Stats
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Pipeline Stage Definitions ───────────────────────────────────────

class PipelineStage:
    """Predefined pipeline stages as (label, color) pairs."""

    UPLOAD = ("UPLOAD", _Colors.GREEN)
    STORAGE = ("STORAGE", _Colors.GREEN)
    EXTRACT = ("EXTRACT", _Colors.YELLOW)
    REDACT = ("REDACT", _Colors.MAGENTA)
    CHUNK = ("CHUNK", _Colors.BLUE)
    EMBED = ("EMBED", _Colors.CYAN)
    INDEX = ("INDEX", _Colors.CYAN)
    ARCHIVE = ("ARCHIVE", _Colors.WHITE)
    ERROR = ("ERROR", _Colors.RED)
    COMPLETE = ("COMPLETE", _Colors.GREEN)


def _format_details(kwargs: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in kwargs.items())


# ── PipelineLogger ───────────────────────────────────────────────────

class PipelineLogger:
    """Color-coded logger for the ingestion pipeline.

    Usage:
        log = PipelineLogger("IngestionPipeline")
        log.step_start(PipelineStage.EXTRACT, "Extracting resume.pdf")
        log.detail("Pages: 2")
        log.step_complete(PipelineStage.EXTRACT, "3120 chars")

    Never pass raw PII (emails, phone numbers) as a message or detail.
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: tuple[str, str], message: str, **kwargs: Any) -> None:
        label, color = stage
        formatted = (
            f"{color}{_Colors.BOLD}[{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str], message: str, **kwargs: Any) -> None:
        label, color = stage
        formatted = (
            f"{color}[{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}ok {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_error(self, stage: tuple[str, str], message: str, error: Exception | None = None) -> None:
        """Log a pipeline step error in red."""
        label, _ = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}[{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}-> {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}|- {message}{_Colors.RESET}"
        if kwargs:
            formatted += f" {_Colors.DIM}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def separator(self, title: str = "") -> None:
        if title:
            self._logger.info(
                f"{_Colors.GRAY}{'-' * 10} {title} {'-' * max(50 - len(title), 0)}{_Colors.RESET}"
            )
        else:
            self._logger.info(f"{_Colors.GRAY}{'-' * 60}{_Colors.RESET}")

    @contextmanager
    def timed_step(self, stage: tuple[str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(PipelineStage.EMBED, "Embedding 12 chunks"):
                vectors = await embeddings.embed_many(texts)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} ({elapsed:.2f}s)")
