"""
OCR collaborator – turns an uploaded prescription image into text with
Tesseract. The engine itself is opaque to the rest of the service; any
decode or engine error comes back as ExtractionFailed.
"""

import io
import logging

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError

from rxgate.config import Config
from rxgate.errors import ExtractionFailed

logger = logging.getLogger("rxgate.ocr")

TESSERACT_CONFIG = "--oem 3 --psm 6"

_extractor = None


class TesseractExtractor:
    def __init__(self, tesseract_cmd: str = ""):
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract(self, document_bytes: bytes, language: str = "eng") -> str:
        if not document_bytes:
            raise ExtractionFailed("The uploaded document is empty.")
        try:
            with Image.open(io.BytesIO(document_bytes)) as img:
                gray = ImageOps.grayscale(img)
                text = pytesseract.image_to_string(gray, lang=language, config=TESSERACT_CONFIG)
        except UnidentifiedImageError as exc:
            logger.warning("Unreadable prescription upload: %s", exc)
            raise ExtractionFailed("The uploaded file is not a readable image.") from exc
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as exc:
            logger.error("OCR engine error: %s", exc)
            raise ExtractionFailed() from exc
        logger.debug("OCR extracted %d characters", len(text))
        return text


def get_extractor() -> TesseractExtractor:
    global _extractor
    if _extractor is None:
        _extractor = TesseractExtractor(Config.TESSERACT_CMD)
    return _extractor
