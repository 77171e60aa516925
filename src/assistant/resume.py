"""Resume text loading for the CLI: PDF via pymupdf, anything else as text."""

from pathlib import Path


def extract_text_from_pdf(data: bytes) -> str:
    """Extract plain text from PDF bytes, pages joined by newlines.

    Raises:
        ImportError: If pymupdf is not installed.
        ValueError: If the bytes are not a readable PDF.
    """
    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for PDF resumes. "
            "Install with: pip install 'job-outreach-assistant[pdf]'"
        )
        raise ImportError(msg) from None

    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        msg = f"Could not read PDF: {e}"
        raise ValueError(msg) from e

    try:
        return "\n".join(page.get_text() for page in doc)
    finally:
        doc.close()


def load_resume_text(path: str | Path) -> str:
    """Read a resume from a .pdf or plain-text file."""
    path = Path(path)
    if not path.exists():
        msg = f"Resume file not found: {path}"
        raise FileNotFoundError(msg)

    if path.suffix.lower() == ".pdf":
        text = extract_text_from_pdf(path.read_bytes())
    else:
        text = path.read_text(encoding="utf-8")

    if not text.strip():
        msg = f"No text found in resume: {path}"
        raise ValueError(msg)
    return text
