"""
PDF Decoder

Turns a PDF byte stream (optionally password-protected) into a Document.
Uses pikepdf (qpdf) for parsing and decryption. Encrypted streams are
decrypted in memory; the password is used for this single call only.
"""

import io
import logging
from typing import List, Optional

import pikepdf

from engine.errors import IncorrectPassword, MalformedDocument
from models.document import Document, Page
from utils.pdf_transforms import push_inherited_attributes, visible_page_size
from utils.validation import validate_pdf_signature

logger = logging.getLogger(__name__)


def decode(data: bytes, password: Optional[str] = None) -> Document:
    """
    Parse a PDF byte stream into a Document.

    Args:
        data: Raw PDF bytes (never modified)
        password: Credential for encrypted documents

    Returns:
        Document whose pages carry decrypted content

    Raises:
        IncorrectPassword: Stream is encrypted and password is missing or wrong
        MalformedDocument: Stream is not a structurally valid PDF
    """
    data = bytes(data)
    is_valid, error = validate_pdf_signature(data)
    if not is_valid:
        raise MalformedDocument("Input is not a PDF document", detail=error)

    try:
        pdf = pikepdf.open(io.BytesIO(data), password=password or "")
    except pikepdf.PasswordError as e:
        logger.info("Document is encrypted and could not be opened with the supplied credential")
        raise IncorrectPassword(
            "Document is password protected and the password is missing or incorrect"
        ) from e
    except pikepdf.PdfError as e:
        logger.warning(f"Failed to parse PDF ({len(data)} bytes): {e}")
        raise MalformedDocument("Document structure is invalid", detail=str(e)) from e

    try:
        pages = _build_pages(pdf)
    except (pikepdf.PdfError, KeyError, TypeError, ValueError) as e:
        pdf.close()
        logger.warning(f"Failed to read page tree: {e}")
        raise MalformedDocument("Document page tree is invalid", detail=str(e)) from e

    document = Document(pdf, pages, is_encrypted=pdf.is_encrypted)
    logger.debug(f"Decoded {document!r} from {len(data)} bytes")
    return document


def _build_pages(pdf: pikepdf.Pdf) -> List[Page]:
    pages: List[Page] = []
    for index, pike_page in enumerate(pdf.pages):
        push_inherited_attributes(pike_page.obj)
        width, height = visible_page_size(pike_page.obj)
        if width <= 0 or height <= 0:
            raise ValueError(f"Page {index + 1} has an empty page box")
        pages.append(Page(index=index, width=width, height=height, source=pike_page))
    return pages
