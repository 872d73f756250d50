"""Document text acquisition module."""
from .processor import TextAcquirer
from .ocr import OcrClient, GeminiOcrClient, AsposeOcrClient, build_ocr_client

__all__ = ["TextAcquirer", "OcrClient", "GeminiOcrClient", "AsposeOcrClient", "build_ocr_client"]
