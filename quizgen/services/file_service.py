import asyncio
import logging
from typing import Iterable, Tuple

import fitz  # PyMuPDF

from quizgen.core.config import settings

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt", ".md")
PDF_EXTENSIONS = (".pdf",)
PDF_MAGIC = b"%PDF"

SOURCE_SEPARATOR = "\n\n---\n\n"


class ExtractionError(ValueError):
    """A document could not be turned into study text."""


async def extract_text_from_file(file_content: bytes, filename: str) -> str:
    """
    Extract study text from an uploaded document.
    PDF via PyMuPDF, .txt / .md decoded as UTF-8.
    """
    name = (filename or "").lower()

    # ── Validate file size ────────────────────────────
    max_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024
    if len(file_content) > max_bytes:
        raise ExtractionError(f"File exceeds {settings.MAX_FILE_SIZE_MB}MB limit.")

    if len(file_content) == 0:
        raise ExtractionError("File is empty.")

    if name.endswith(PDF_EXTENSIONS):
        if not file_content[:4].startswith(PDF_MAGIC):
            raise ExtractionError("File does not appear to be a valid PDF (invalid magic bytes).")
        text = await _extract_from_pdf(file_content)
    elif name.endswith(TEXT_EXTENSIONS):
        text = file_content.decode("utf-8", errors="replace")
    else:
        raise ExtractionError("Unsupported format. Use PDF, TXT or MD.")

    if not text or not text.strip():
        raise ExtractionError("No text found in file.")

    logger.info(f"[UPLOAD] Extracted {len(text)} characters from {filename}")
    return text.strip()


async def _extract_from_pdf(content: bytes) -> str:
    """
    Extract text from PDF using PyMuPDF (fitz).
    Runs in a thread pool to avoid blocking the async event loop.
    """
    max_pages = settings.MAX_PDF_PAGES

    def _process_pdf(data: bytes) -> str:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if doc.page_count == 0:
                    raise ExtractionError("PDF has no pages.")

                if doc.page_count > max_pages:
                    raise ExtractionError(f"PDF too large (>{max_pages} pages).")

                text_blocks = []
                for page in doc:
                    page_text = page.get_text("text")
                    if page_text.strip():
                        text_blocks.append(page_text)

                return "\n\n".join(text_blocks)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"PDF extraction failed: {str(e)}")

    return await asyncio.to_thread(_process_pdf, content)


def combine_sources(sources: Iterable[Tuple[str, str]]) -> str:
    """Tag each source's text with a header naming its origin and join them."""
    return SOURCE_SEPARATOR.join(
        f"=== Source: {name} ===\n{text}" for name, text in sources
    )
