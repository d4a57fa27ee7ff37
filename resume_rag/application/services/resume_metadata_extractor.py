"""Heuristic resume metadata extraction — skills, education, experience, location.

Lightweight keyword and regex matching over the raw resume text. Contact
fields (email, phone) are supplied by the PII redactor.
"""

import re

from resume_rag.domain.entities import EducationEntry, ResumeMetadata

KNOWN_SKILLS = (
    "javascript",
    "python",
    "java",
    "react",
    "node.js",
    "sql",
    "aws",
    "docker",
    "kubernetes",
    "machine learning",
    "ai",
    "typescript",
    "mongodb",
    "postgresql",
    "rest api",
)

_SKILL_PATTERNS = {
    skill: re.compile(rf"(?<!\w){re.escape(skill)}(?!\w)", re.IGNORECASE)
    for skill in KNOWN_SKILLS
}
_EDUCATION_SECTION = re.compile(
    r"education(.*?)(?:experience|skills|projects|$)", re.IGNORECASE | re.DOTALL
)
_EXPERIENCE_SECTION = re.compile(
    r"experience(.*?)(?:education|skills|projects|$)", re.IGNORECASE | re.DOTALL
)
_DEGREE = re.compile(
    r"(?:bachelor|master|phd|b\.?(?:tech|sc|a)|m\.?(?:tech|sc|ba)|doctorate).*?(?:20\d{2}|\d{2})",
    re.IGNORECASE | re.DOTALL,
)
_YEAR = re.compile(r"\d{4}|\d{2}")
_YEARS_OF_EXPERIENCE = re.compile(r"(\d+)(?:\s*-\s*\d+)?\s*years?", re.IGNORECASE)
_LOCATION = re.compile(
    r"^\s*(?:location|based in|address)\s*[:\-]\s*(?P<value>[^\n]+?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)


class ResumeMetadataExtractor:
    def extract(self, text: str) -> ResumeMetadata:
        return ResumeMetadata(
            location=self.extract_location(text),
            experience_years=self.estimate_experience(text),
            skills=self.extract_skills(text),
            education=self.extract_education(text),
        )

    def extract_skills(self, text: str) -> list[str]:
        """Known skills mentioned as whole words, in catalogue order."""
        return [skill for skill, pattern in _SKILL_PATTERNS.items() if pattern.search(text)]

    def extract_education(self, text: str) -> list[EducationEntry]:
        section = _EDUCATION_SECTION.search(text)
        if not section:
            return []

        entries = []
        for match in _DEGREE.finditer(section.group(1)):
            degree_text = match.group(0)
            year_match = _YEAR.search(degree_text)
            year = int(year_match.group(0)) if year_match else None
            if year is not None and year < 100:
                year += 2000
            entries.append(EducationEntry(degree=degree_text.split()[0], year=year))
        return entries

    def estimate_experience(self, text: str) -> int:
        """Sum every "N years" mention in the experience section."""
        section = _EXPERIENCE_SECTION.search(text)
        if not section:
            return 0
        return sum(int(m.group(1)) for m in _YEARS_OF_EXPERIENCE.finditer(section.group(1)))

    def extract_location(self, text: str) -> str | None:
        match = _LOCATION.search(text)
        return match.group("value") if match else None
