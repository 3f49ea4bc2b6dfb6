"""Turn a CV file or upload into analysis input.

PDF (via pdftotext or pypdf), DOCX (stdlib zipfile) and plain text become a
:class:`TextInput`; PNG/JPEG/WEBP scans become an :class:`ImageInput` that is
sent to the model as-is.
"""
from __future__ import annotations

import io
import re
import shutil
import subprocess
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Union
from xml.etree import ElementTree

from jobnado.log import get_logger

log = get_logger(__name__)

IMAGE_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}
TEXT_SUFFIXES = (".txt", ".md")


@dataclass
class TextInput:
    text: str


@dataclass
class ImageInput:
    mime_type: str
    data: bytes


CVInput = Union[TextInput, ImageInput]


def load_cv(path: Path) -> CVInput:
    """Return analysis input for a CV file on disk."""
    suffix = path.suffix.lower()
    if suffix in IMAGE_TYPES:
        return ImageInput(mime_type=IMAGE_TYPES[suffix], data=path.read_bytes())
    if suffix in TEXT_SUFFIXES:
        return TextInput(path.read_text(encoding="utf-8", errors="ignore"))
    if suffix == ".docx":
        return TextInput(_extract_docx(path.read_bytes()))
    if suffix == ".pdf":
        return TextInput(_extract_pdf(path))
    raise ValueError(f"Unsupported CV format: {suffix or path.name}")


def from_upload(filename: str, data: bytes) -> CVInput:
    """Same as :func:`load_cv` for in-memory uploads (Streamlit)."""
    suffix = Path(filename).suffix.lower()
    if suffix in IMAGE_TYPES:
        return ImageInput(mime_type=IMAGE_TYPES[suffix], data=data)
    if suffix in TEXT_SUFFIXES:
        return TextInput(data.decode("utf-8", errors="ignore"))
    if suffix == ".docx":
        return TextInput(_extract_docx(data))
    if suffix == ".pdf":
        with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as tmp:
            tmp.write(data)
            tmp_path = Path(tmp.name)
        try:
            return TextInput(_extract_pdf(tmp_path))
        finally:
            tmp_path.unlink(missing_ok=True)
    raise ValueError(f"Unsupported CV format: {suffix or filename}")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction glues words together."""
    if not text or len(text) < 50:
        return text
    if text.count(" ") / len(text) > 0.08:
        return text
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(path: Path) -> str:
    if shutil.which("pdftotext"):
        result = subprocess.run(
            ["pdftotext", "-layout", str(path), "-"],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout
        log.debug("pdftotext produced no text for %s, trying pypdf", path.name)

    from pypdf import PdfReader

    reader = PdfReader(str(path))
    return "\n".join(_fix_spacing(page.extract_text() or "") for page in reader.pages)


def _extract_docx(data: bytes) -> str:
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: list[str] = []
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        with zf.open("word/document.xml") as f:
            tree = ElementTree.parse(f)
            for para in tree.iter(f"{ns}p"):
                parts = [node.text for node in para.iter(f"{ns}t") if node.text]
                if parts:
                    texts.append("".join(parts))
    return "\n".join(texts)
