"""Plain-text extraction from resume documents (PDF, DOCX, TXT).

pymupdf and python-docx are optional dependencies, imported on use.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES: tuple[str, ...] = (".pdf", ".docx", ".txt")


def extract_text_from_pdf(path: str | Path) -> str:
    """Extract plain text from a PDF file.

    Args:
        path: Path to the PDF file.

    Returns:
        Concatenated text from all pages.

    Raises:
        FileNotFoundError: If the PDF file does not exist.
        ImportError: If pymupdf is not installed.
    """
    path = Path(path)
    if not path.exists():
        msg = f"PDF file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for PDF extraction. "
            "Install with: pip install 'job-intake-engine[documents]'"
        )
        raise ImportError(msg) from None

    doc = pymupdf.open(str(path))
    try:
        text_parts = [page.get_text() for page in doc]
    finally:
        doc.close()

    return "\n".join(text_parts)


def extract_text_from_docx(path: str | Path) -> str:
    """Extract paragraph and table text from a DOCX file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ImportError: If python-docx is not installed.
    """
    path = Path(path)
    if not path.exists():
        msg = f"DOCX file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        import docx
    except ImportError:
        msg = (
            "python-docx is required for DOCX extraction. "
            "Install with: pip install 'job-intake-engine[documents]'"
        )
        raise ImportError(msg) from None

    document = docx.Document(str(path))
    lines = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def extract_document_text(path: str | Path) -> str:
    """Extract text from a resume document, dispatching on file suffix.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the suffix is not supported.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        text = extract_text_from_pdf(path)
    elif suffix == ".docx":
        text = extract_text_from_docx(path)
    elif suffix == ".txt":
        if not path.exists():
            msg = f"Text file not found: {path}"
            raise FileNotFoundError(msg)
        text = path.read_text(encoding="utf-8", errors="replace")
    else:
        supported = ", ".join(SUPPORTED_SUFFIXES)
        msg = f"Unsupported document type '{suffix}'. Supported: {supported}"
        raise ValueError(msg)

    logger.info("Extracted %d chars from %s", len(text), path.name)
    return text
