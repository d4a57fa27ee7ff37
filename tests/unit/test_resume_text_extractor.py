"""Unit tests for ResumeTextExtractor."""

import docx
import fitz
import pytest

from resume_rag.domain.exceptions import ExtractionFailed, UnsupportedFormat
from resume_rag.infrastructure.extractors.resume_text_extractor import ResumeTextExtractor


@pytest.fixture
def extractor():
    return ResumeTextExtractor()


@pytest.mark.asyncio
async def test_pdf_text_and_page_count(extractor, tmp_path):
    path = tmp_path / "jane.pdf"
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), "Jane Doe\nSenior React Developer")
    doc.new_page().insert_text((72, 72), "Education\nBachelor of Science")
    doc.save(str(path))
    doc.close()

    result = await extractor.extract(str(path), ".pdf")

    assert result.page_count == 2
    assert "Senior React Developer" in result.text
    assert "Bachelor of Science" in result.text


@pytest.mark.asyncio
async def test_docx_paragraphs_and_tables(extractor, tmp_path):
    path = tmp_path / "jane.docx"
    document = docx.Document()
    document.add_paragraph("Jane Doe")
    document.add_paragraph("")
    document.add_paragraph("Skills: Python, React")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Acme"
    table.rows[0].cells[1].text = "2019-2024"
    document.save(str(path))

    result = await extractor.extract(str(path), ".DOCX")

    assert result.text == "Jane Doe\n\nSkills: Python, React\n\nAcme | 2019-2024"


@pytest.mark.asyncio
async def test_plain_text_falls_back_to_latin1(extractor, tmp_path):
    path = tmp_path / "jane.txt"
    path.write_bytes("Zoë Müller".encode("latin-1"))

    result = await extractor.extract(str(path), ".txt")

    assert result.text == "Zoë Müller"


@pytest.mark.asyncio
async def test_legacy_doc_is_unsupported(extractor, tmp_path):
    path = tmp_path / "old.doc"
    path.write_bytes(b"\xd0\xcf\x11\xe0")

    with pytest.raises(UnsupportedFormat, match="convert"):
        await extractor.extract(str(path), ".doc")


@pytest.mark.asyncio
async def test_unknown_extension_is_unsupported(extractor, tmp_path):
    with pytest.raises(UnsupportedFormat):
        await extractor.extract(str(tmp_path / "photo.png"), ".png")


@pytest.mark.asyncio
async def test_missing_file_fails_extraction(extractor, tmp_path):
    with pytest.raises(ExtractionFailed, match="not found"):
        await extractor.extract(str(tmp_path / "gone.pdf"), ".pdf")


@pytest.mark.asyncio
async def test_corrupt_pdf_fails_extraction(extractor, tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")

    with pytest.raises(ExtractionFailed):
        await extractor.extract(str(path), ".pdf")


def test_supports_known_extensions(extractor):
    assert extractor.supports(".PDF")
    assert extractor.supports(".docx")
    assert not extractor.supports(".doc")
