import base64
import binascii
import io
import re
from pathlib import Path
from pdfminer.high_level import extract_text as pdf_extract
from docx import Document
import logging

from talentrank.utils.exceptions import ValidationError

logging.getLogger("pdfminer").setLevel(logging.ERROR)

SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx")


def read_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")


def read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])


def read_pdf(data: bytes) -> str:
    return pdf_extract(io.BytesIO(data))


def clean_text(x: str) -> str:
    x = re.sub(r'\s+', ' ', x).strip()
    return x


def decode_document(b64_string: str, filename: str) -> str:
    """Decode a base64 upload and return its plain text.

    The file extension picks the reader; unknown extensions, bad base64 and
    unreadable documents are all reported as a ValidationError.
    """
    ext = Path(filename or "").suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported document type '{ext or filename}'. Use one of {', '.join(SUPPORTED_EXTENSIONS)}",
            field="cv_filename",
            value=filename,
        )

    try:
        data = base64.b64decode(b64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid base64 CV: {e}", field="cv_base64", cause=e) from e

    readers = {".txt": read_txt, ".pdf": read_pdf, ".docx": read_docx}
    try:
        text = readers[ext](data)
    except Exception as e:
        raise ValidationError(f"Could not read {ext} document: {e}", field="cv_base64", cause=e) from e

    text = clean_text(text)
    if not text:
        raise ValidationError("Uploaded document contains no text", field="cv_base64")
    return text
