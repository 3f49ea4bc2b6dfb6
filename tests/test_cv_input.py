"""Tests for CV file loading."""
from __future__ import annotations

import io
import zipfile

import pytest

from jobnado.cv_input import ImageInput, TextInput, from_upload, load_cv

DOCX_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main"><w:body>'
    "<w:p><w:r><w:t>Jane Doe</w:t></w:r></w:p>"
    "<w:p><w:r><w:t>Data </w:t></w:r><w:r><w:t>Analyst</w:t></w:r></w:p>"
    "<w:p></w:p>"
    "</w:body></w:document>"
)


def make_docx() -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("word/document.xml", DOCX_XML)
    return buf.getvalue()


def test_text_file(tmp_path):
    path = tmp_path / "cv.txt"
    path.write_text("Jane Doe\nSQL", encoding="utf-8")
    assert load_cv(path) == TextInput("Jane Doe\nSQL")


def test_image_file(tmp_path):
    path = tmp_path / "scan.JPG"
    path.write_bytes(b"\xff\xd8\xff")
    assert load_cv(path) == ImageInput(mime_type="image/jpeg", data=b"\xff\xd8\xff")


def test_docx_upload():
    assert from_upload("cv.docx", make_docx()) == TextInput("Jane Doe\nData Analyst")


def test_docx_file(tmp_path):
    path = tmp_path / "cv.docx"
    path.write_bytes(make_docx())
    assert load_cv(path).text == "Jane Doe\nData Analyst"


def test_markdown_upload():
    assert from_upload("cv.md", "# Jane".encode()) == TextInput("# Jane")


@pytest.mark.parametrize("name", ["cv.odt", "cv", "cv.exe"])
def test_unsupported_format(name, tmp_path):
    with pytest.raises(ValueError):
        from_upload(name, b"data")
    with pytest.raises(ValueError):
        load_cv(tmp_path / name)
