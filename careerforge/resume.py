"""Résumé input - size checks, inline encoding, and text extraction (PDF, DOCX, MD, TXT)."""

import base64
import io
import mimetypes
from pathlib import Path

import docx

from .errors import ResumeTooLargeError
from .models import ResumeFile

SUPPORTED_EXTENSIONS = {".pdf", ".docx", ".md", ".txt"}
MAX_RESUME_BYTES = 2 * 1024 * 1024


def encode_resume(data: bytes, mime_type: str) -> ResumeFile:
    """Base64-encode résumé bytes for inline sending and storage.

    Raises:
        ResumeTooLargeError: If *data* is larger than 2 MB.
    """
    if len(data) > MAX_RESUME_BYTES:
        raise ResumeTooLargeError("File size too large. Please upload a file smaller than 2MB.")
    return ResumeFile(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)


def prepare_resume(filename: str, data: bytes, mime_type: str | None = None) -> tuple[str | None, ResumeFile | None]:
    """
    Turn an uploaded résumé into what the analysis call accepts.

    PDFs are sent to Gemini inline. DOCX files are reduced to text since the
    model cannot read them directly; Markdown and plain text are decoded.

    Returns:
        ``(resume_text, resume_file)`` with exactly one of them set.

    Raises:
        ValueError: If the format is unsupported or no text could be extracted.
        ResumeTooLargeError: If the file is larger than 2 MB.
    """
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file format: {suffix or filename}. Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    if suffix == ".pdf":
        return None, encode_resume(data, mime_type or "application/pdf")

    if len(data) > MAX_RESUME_BYTES:
        raise ResumeTooLargeError("File size too large. Please upload a file smaller than 2MB.")

    if suffix == ".docx":
        text = _extract_from_docx(data)
    else:  # .md, .txt
        text = data.decode("utf-8", errors="replace")

    text = _clean_text(text)
    if not text:
        raise ValueError(f"No text could be extracted from: {filename}")
    return text, None


def read_resume(path: str | Path) -> tuple[str | None, ResumeFile | None]:
    """Load a résumé from disk, see :func:`prepare_resume`.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Resume file not found: {path}")
    mime_type, _ = mimetypes.guess_type(path.name)
    return prepare_resume(path.name, path.read_bytes(), mime_type)


def _extract_from_docx(data: bytes) -> str:
    """Extract text from DOCX bytes."""
    document = docx.Document(io.BytesIO(data))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    return "\n\n".join(paragraphs)


def _clean_text(text: str) -> str:
    """Clean up whitespace while preserving structure."""
    lines = text.split("\n")
    cleaned_text = "\n".join(line.strip() for line in lines)

    while "\n\n\n" in cleaned_text:
        cleaned_text = cleaned_text.replace("\n\n\n", "\n\n")

    return cleaned_text.strip()
