"""OCR clients for scanned PDFs and images."""
import os
import tempfile
from typing import Optional

try:
    import aspose.ocr as ocr
    OCR_AVAILABLE = True
except ImportError:
    OCR_AVAILABLE = False

from grantaudit.config.settings import AppSettings, ModelConfiguration
from grantaudit.gemini.client import GeminiClient
from grantaudit.utils.exceptions import ConfigError, ExtractionFailure
from grantaudit.utils.logger import get_logger

logger = get_logger()

TRANSCRIBE_INSTRUCTION = (
    "You are an OCR engine. Transcribe every line of text in the supplied bank "
    "statement exactly as printed, one statement row per line, preserving the "
    "order of columns (date, narration, reference, debit, credit, balance). "
    "Do not summarise, translate, correct or add anything. Output plain text only."
)


class OcrClient:
    """Recognises text in raw document bytes."""

    def recognize(self, document: bytes, mime_type: str) -> str:
        raise NotImplementedError


class GeminiOcrClient(OcrClient):
    """Transcribes documents by sending them inline to a Gemini model."""

    def __init__(self, gemini: GeminiClient, model: str, max_output_tokens: int = 32768):
        self.gemini = gemini
        self.configuration = ModelConfiguration(
            name="ocr",
            model=model,
            temperature=0.0,
            max_output_tokens=max_output_tokens,
            strict_schema=False
        )

    def recognize(self, document: bytes, mime_type: str) -> str:
        logger.info(f"OCR: transcribing {len(document)} bytes ({mime_type}) with {self.configuration.model}")
        contents = [
            GeminiClient.inline_document(document, mime_type),
            "Transcribe this document."
        ]
        text = self.gemini.generate(TRANSCRIBE_INSTRUCTION, contents, self.configuration)
        logger.info(f"OCR extracted {len(text)} chars")
        return text


class AsposeOcrClient(OcrClient):
    """Local OCR with Aspose.OCR (optional dependency)."""

    def __init__(self):
        if not OCR_AVAILABLE:
            raise ConfigError("Aspose OCR requested but not available. Install: pip install aspose-ocr-python-net")
        logger.info("Initializing Aspose.OCR...")
        self.ocr_api = ocr.AsposeOcr()

    def recognize(self, document: bytes, mime_type: str) -> str:
        input_type = ocr.InputType.PDF if mime_type == "application/pdf" else ocr.InputType.SINGLE_IMAGE
        suffix = ".pdf" if mime_type == "application/pdf" else "." + mime_type.split("/")[-1]

        # Aspose reads from paths only
        handle, path = tempfile.mkstemp(suffix=suffix)
        try:
            with os.fdopen(handle, "wb") as f:
                f.write(document)

            input_data = ocr.OcrInput(input_type)
            input_data.add(path)
            results = self.ocr_api.recognize(input_data)
        except Exception as e:
            raise ExtractionFailure(f"OCR failed: {e}") from e
        finally:
            os.unlink(path)

        if not results:
            logger.warning("OCR: No results returned")
            return ""

        text_parts = []
        for i, result in enumerate(results, 1):
            page_text = result.recognition_text
            if page_text:
                text_parts.append(page_text)
                logger.debug(f"OCR: Page {i} extracted {len(page_text)} chars")
            else:
                logger.debug(f"OCR: Page {i} extracted no text")

        text = "\n\n".join(text_parts)
        logger.info(f"OCR extracted {len(text)} chars from {len(results)} pages")
        return text


def build_ocr_client(settings: AppSettings, gemini: Optional[GeminiClient]) -> OcrClient:
    """Create the OCR client named by ``ocr.backend``."""
    backend = settings.ocr_backend.lower()
    if backend == "aspose":
        return AsposeOcrClient()
    if backend == "gemini":
        if gemini is None:
            raise ConfigError("Gemini OCR backend needs a Gemini client")
        return GeminiOcrClient(gemini, settings.ocr_model)
    raise ConfigError(f"Unknown OCR backend: {settings.ocr_backend}")
