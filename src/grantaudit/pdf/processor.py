"""Document text acquisition: native PDF text layer first, OCR second."""
import io
from typing import Optional

import pdfplumber
import pypdf

from .ocr import OcrClient
from grantaudit.utils.logger import get_logger
from grantaudit.utils.exceptions import ExtractionFailure, GrantAuditError, UnsupportedDocumentError

logger = get_logger()

PDF_MIME_TYPES = {"application/pdf", "application/x-pdf"}
TEXT_MIME_TYPES = {"text/plain", "text/csv"}


class TextAcquirer:
    """Produces plain text from a PDF, image or text upload."""

    def __init__(self, ocr_client: Optional[OcrClient], min_text_length: int = 50):
        """
        Initialize text acquirer.

        Args:
            ocr_client: OCR fallback for scanned PDFs and images (None disables OCR)
            min_text_length: Stripped length that readable text must exceed
        """
        self.ocr_client = ocr_client
        self.min_text_length = min_text_length

    def acquire_text(self, document: bytes, mime_type: str) -> str:
        """
        Extract text from a document.

        Args:
            document: Raw document bytes (never modified)
            mime_type: Upload MIME type

        Returns:
            Extracted text

        Raises:
            UnsupportedDocumentError: If the MIME type is not PDF, image or text
            ExtractionFailure: If no method yields enough text
        """
        mime = (mime_type or "").split(";")[0].strip().lower()
        document = bytes(document)

        if mime in TEXT_MIME_TYPES:
            text = document.decode("utf-8", errors="replace")
            if not self.validate_extraction(text):
                raise ExtractionFailure(self._too_short_message(text, "text upload"))
            return text

        if mime in PDF_MIME_TYPES:
            text = self._extract_with_pdfplumber(document)
            if not self.validate_extraction(text):
                logger.info(f"pdfplumber extracted {len(text) if text else 0} chars, trying pypdf")
                text = self._extract_with_pypdf(document)
            if self.validate_extraction(text):
                logger.info(f"Successfully extracted {len(text)} characters from PDF text layer")
                return text
            logger.info("PDF text layer insufficient, falling back to OCR")
        elif not mime.startswith("image/"):
            raise UnsupportedDocumentError(f"Unsupported file type: {mime_type or 'unknown'}")

        text = self._extract_with_ocr(document, mime)
        if not self.validate_extraction(text):
            raise ExtractionFailure(self._too_short_message(text, "OCR"))

        logger.info(f"Successfully extracted {len(text)} characters with OCR")
        return text

    def validate_extraction(self, text: Optional[str]) -> bool:
        """True if the stripped text is longer than the minimum length."""
        return bool(text) and len(text.strip()) > self.min_text_length

    def _too_short_message(self, text: Optional[str], source: str) -> str:
        length = len(text.strip()) if text else 0
        return (
            f"Could not extract readable text from document ({source} gave {length} chars, "
            f"needs more than {self.min_text_length}). Please ensure the document is clear and readable."
        )

    def _extract_with_pdfplumber(self, document: bytes) -> Optional[str]:
        try:
            with pdfplumber.open(io.BytesIO(document)) as pdf:
                text_parts = []
                for i, page in enumerate(pdf.pages, 1):
                    page_text = page.extract_text()
                    if page_text:
                        text_parts.append(page_text)
                        logger.debug(f"pdfplumber: Page {i} extracted {len(page_text)} chars")
                    else:
                        logger.debug(f"pdfplumber: Page {i} extracted no text")

                text = "\n".join(text_parts)
                logger.info(f"pdfplumber extracted {len(text)} chars from {len(pdf.pages)} pages")
                return text or None

        except Exception as e:
            logger.warning(f"pdfplumber extraction failed: {e}")
            return None

    def _extract_with_pypdf(self, document: bytes) -> Optional[str]:
        try:
            reader = pypdf.PdfReader(io.BytesIO(document))
            text_parts = []
            for i, page in enumerate(reader.pages, 1):
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
                    logger.debug(f"pypdf: Page {i} extracted {len(page_text)} chars")

            text = "\n".join(text_parts)
            logger.info(f"pypdf extracted {len(text)} chars from {len(reader.pages)} pages")
            return text or None

        except Exception as e:
            logger.warning(f"pypdf extraction failed: {e}")
            return None

    def _extract_with_ocr(self, document: bytes, mime: str) -> Optional[str]:
        if self.ocr_client is None:
            raise ExtractionFailure("Document has no readable text layer and OCR is not configured")

        try:
            return self.ocr_client.recognize(document, mime)
        except GrantAuditError as e:
            raise ExtractionFailure(f"OCR could not read the document: {e}") from e
