"""PII redaction — pattern-based removal of contact and financial identifiers.

Payment-card and national-ID-like numbers are always redacted. Email and phone
values can be kept, and the first match of each is reported as metadata before
it is replaced.
"""

import re
from dataclasses import dataclass

DEFAULT_REPLACEMENT = "[REDACTED]"

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"(\+\d{1,3}[\s.-])?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}")
SSN_PATTERN = re.compile(r"\b\d{3}[-.]?\d{2}[-.]?\d{4}\b")
CARD_PATTERN = re.compile(r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b")


@dataclass(frozen=True)
class RedactionOptions:
    keep_email: bool = False
    keep_phone: bool = False
    replacement: str = DEFAULT_REPLACEMENT


@dataclass(frozen=True)
class RedactionResult:
    """Redacted text plus the contact values captured before redaction."""

    redacted_text: str
    email: str | None = None
    phone: str | None = None


class PIIRedactor:
    """Regex-based redactor. Never raises; missing matches yield empty metadata."""

    def __init__(self, options: RedactionOptions | None = None):
        self._options = options or RedactionOptions()

    def redact(self, text: str, options: RedactionOptions | None = None) -> str:
        return self.extract_and_redact(text, options).redacted_text

    def extract_and_redact(
        self, text: str, options: RedactionOptions | None = None
    ) -> RedactionResult:
        """Capture the first email and phone, then redact.

        Card numbers go first so their digit groups are never mistaken for a
        phone number.
        """
        opts = options or self._options
        replacement = opts.replacement or DEFAULT_REPLACEMENT

        redacted = CARD_PATTERN.sub(replacement, text)
        redacted = SSN_PATTERN.sub(replacement, redacted)

        email_match = EMAIL_PATTERN.search(redacted)
        email = email_match.group(0) if email_match else None
        if not opts.keep_email:
            redacted = EMAIL_PATTERN.sub(replacement, redacted)

        phone_match = PHONE_PATTERN.search(redacted)
        phone = phone_match.group(0) if phone_match else None
        if not opts.keep_phone:
            redacted = PHONE_PATTERN.sub(replacement, redacted)

        return RedactionResult(redacted_text=redacted, email=email, phone=phone)
