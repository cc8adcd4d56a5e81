"""
CV text extraction.

`run_extraction` is the background unit that drives a Document through
Uploaded -> Processing -> Processed | Error. Extractors raise on unreadable
files; the unit turns that into status=Error and never lets it escape.
"""
import io
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .. import database
from ..config import UPLOAD_DIR
from ..models.document import Document, DocumentStatus

logger = logging.getLogger(__name__)


# ------------------------- Extractors -------------------------

def extract_text_from_pdf(data: bytes) -> str:
    """Per-page text from a PDF using pypdf, pages joined by blank lines."""
    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(data))
    pages = [(page.extract_text() or "") for page in reader.pages]
    return "\n\n".join(pages).strip()


def extract_text_from_docx(data: bytes) -> str:
    """Paragraph and table-cell text from a DOCX using python-docx."""
    import docx

    d = docx.Document(io.BytesIO(data))
    parts = [p.text for p in d.paragraphs if p.text]
    for table in d.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text and c.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts).strip()


_PRINTABLE_RUN_RE = re.compile(rb"[\x20-\x7e\t\r\n]{4,}")
_UTF16_RUN_RE = re.compile(rb"(?:[\x20-\x7e]\x00){4,}")


def extract_text_from_doc(data: bytes) -> str:
    """
    Legacy Word (.doc) best-effort.

    Many ".doc" uploads are really DOCX; try python-docx first. Otherwise
    recover printable runs from the binary (Word 97 stores body text either as
    cp1252 or UTF-16LE).
    """
    try:
        return extract_text_from_docx(data)
    except Exception:
        logger.debug("DOC is not an OOXML package; falling back to binary text recovery")

    utf16 = [m.group(0).decode("utf-16-le", errors="ignore") for m in _UTF16_RUN_RE.finditer(data)]
    ascii_runs = [m.group(0).decode("cp1252", errors="ignore") for m in _PRINTABLE_RUN_RE.finditer(data)]
    runs = utf16 if sum(map(len, utf16)) >= sum(map(len, ascii_runs)) else ascii_runs
    return "\n".join(r.strip() for r in runs if r.strip()).strip()


def extract_text_from_txt(data: bytes) -> str:
    # utf-8-sig drops a BOM when present
    return data.decode("utf-8-sig", errors="replace").strip()


EXTRACTORS: dict[str, Callable[[bytes], str]] = {
    ".pdf": extract_text_from_pdf,
    ".doc": extract_text_from_doc,
    ".docx": extract_text_from_docx,
    ".txt": extract_text_from_txt,
}


# ------------------------- Cleaning -------------------------

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_MULTISPACE_RE = re.compile(r"[ \t]{2,}")
_MULTINEWLINE_RE = re.compile(r"\n{3,}")
_BULLET_RE = re.compile(r"^[ \t]*[•·●◦▪▫∙⁃‣]+[ \t]*", re.MULTILINE)
_PAGE_MARKER_RE = re.compile(
    r"^\s*(page\s*\d+(\s*of\s*\d+)?)\s*$|^\s*\d+\s*/\s*\d+\s*$",
    re.IGNORECASE | re.MULTILINE,
)
_HYPHEN_LINEBREAK_RE = re.compile(r"([A-Za-z])-\n([a-z])")


def clean_extracted_text(raw_text: str) -> str:
    """
    Normalize extracted text without losing structure:
    newlines, control chars, page markers, hyphenation, bullets, whitespace.
    """
    text = (raw_text or "").replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS_RE.sub("", text)
    text = _PAGE_MARKER_RE.sub("", text)
    # "devel-\nopment" -> "development"
    text = _HYPHEN_LINEBREAK_RE.sub(r"\1\2", text)
    text = _BULLET_RE.sub("- ", text)
    text = _MULTISPACE_RE.sub(" ", text)
    text = _MULTINEWLINE_RE.sub("\n\n", text)
    return text.strip()


def extract_document_text(*, data: bytes, ext: str | None) -> str:
    """
    Dispatch by extension and clean the result.

    Unsupported extensions yield "" (logged, not an error). Extractor
    exceptions propagate to the caller.
    """
    ext_norm = (ext or "").lower()
    extractor = EXTRACTORS.get(ext_norm)
    if extractor is None:
        logger.warning("Unsupported file format for extraction: %s", ext_norm or "<none>")
        return ""
    return clean_extracted_text(extractor(data))


def _read_stored_file(rel_path: str) -> bytes:
    return (Path(UPLOAD_DIR) / Path(rel_path)).read_bytes()


# ------------------------- Background unit -------------------------

def run_extraction(*, document_id: int) -> None:
    """
    Extract one document's text on its own session.

    Re-entrant: whatever the current status, a run restarts at Processing.
    """
    db = database.open_session()
    try:
        doc = db.query(Document).filter(Document.id == int(document_id)).first()
        if not doc:
            logger.warning("Extraction skipped: document %s not found", document_id)
            return

        logger.info("Extraction start document_id=%s ext=%s previous_status=%s", doc.id, doc.file_extension, doc.status.value)
        doc.status = DocumentStatus.PROCESSING
        doc.extracted_text = None
        doc.error_message = None
        doc.processed_at = None
        db.commit()

        try:
            data = _read_stored_file(doc.file_path)
            text = extract_document_text(data=data, ext=doc.file_extension)

            doc.extracted_text = text
            doc.status = DocumentStatus.PROCESSED
            doc.processed_at = datetime.now(timezone.utc)
            db.commit()
            logger.info("Extraction done document_id=%s chars=%s", document_id, len(text))
        except Exception as e:
            db.rollback()
            logger.exception("Extraction failed document_id=%s", document_id)
            doc = db.query(Document).filter(Document.id == int(document_id)).first()
            if doc:
                doc.status = DocumentStatus.ERROR
                doc.extracted_text = None
                doc.error_message = (str(e) or type(e).__name__)[:1000]
                doc.processed_at = datetime.now(timezone.utc)
                db.commit()
    except Exception:
        # Could not even record the failure (e.g. database unavailable).
        db.rollback()
        logger.exception("Extraction unit aborted document_id=%s", document_id)
    finally:
        db.close()
