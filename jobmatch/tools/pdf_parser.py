"""
PDF text extraction and resume text checks.

Extracts text content from PDF files using pypdf.
"""

import re
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from jobmatch.errors import ResumeValidationError

MIN_RESUME_CHARS = 50

WORK_KEYWORDS = re.compile(
    r"\b(experience|education|skills|work|job|position|role|employment|university|college|degree)\b",
    re.IGNORECASE,
)


def extract_pdf_text(pdf_content: bytes) -> str:
    """
    Extract text from a PDF file.

    Args:
        pdf_content: Raw bytes of the PDF file

    Returns:
        Extracted text content from all pages

    Raises:
        ResumeValidationError: the bytes are not a readable PDF
    """
    try:
        reader = PdfReader(BytesIO(pdf_content))
        text_parts = []

        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)

    except (PyPdfError, ValueError, OSError) as e:
        raise ResumeValidationError(f"unreadable format: {e}") from e

    return "\n\n".join(text_parts).strip()


def extract_pdf_text_from_path(file_path: str) -> str:
    """Extract text from a PDF file path."""
    with open(file_path, "rb") as f:
        return extract_pdf_text(f.read())


def validate_resume_text(text: str) -> None:
    """Reject text that cannot plausibly be a resume."""
    stripped = (text or "").strip()
    if not stripped:
        raise ResumeValidationError("insufficient content: resume appears to be empty")
    if len(stripped) < MIN_RESUME_CHARS:
        raise ResumeValidationError(
            f"insufficient content: resume is too short (minimum {MIN_RESUME_CHARS} characters)"
        )
    if not WORK_KEYWORDS.search(stripped):
        raise ResumeValidationError(
            "insufficient content: we couldn't find work history, skills or education"
        )


def truncate_resume(text: str, max_chars: int = 4000) -> str:
    """
    Truncate a resume to its essential sections for token efficiency.

    Keeps: Skills, Experience, Education sections
    Removes: references, declarations
    """
    if len(text) <= max_chars:
        return text

    kept: list[str] = []
    in_section = False
    size = 0

    for line in text.split("\n"):
        lowered = line.lower().strip()

        if any(skip in lowered for skip in ("reference", "declaration")):
            in_section = False
            continue

        if any(kw in lowered for kw in ("skill", "experience", "education", "summary", "objective")):
            in_section = True

        if in_section or len(kept) < 50:
            kept.append(line)
            size += len(line) + 1

        if size > max_chars:
            break

    result = "\n".join(kept)
    if len(result) > max_chars:
        result = result[:max_chars] + "\n[truncated]"
    return result
