"""
Prescription document verification pipeline.

    extract text (OCR) -> normalize -> substring verdict -> upload document
    -> persist terminal authorization record

Steps run strictly in that order. Either the whole operation succeeds and
is durably recorded, or it fails with a distinct error and no record exists.

Matching is deliberately conservative: the normalized medicine name must
appear as one contiguous run in the normalized OCR text. OCR noise or
punctuation that breaks contiguity yields a rejection, not a fuzzy match.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol

from rxgate.config import Config
from rxgate.errors import ExtractionFailed, PersistFailed, StorageUnavailable, Unauthenticated
from rxgate.models.models import AuthorizationRecord, STATUS_APPROVED, STATUS_REJECTED
from rxgate.services.authorization_store import AuthorizationStore
from rxgate.services.document_storage import build_document_name

logger = logging.getLogger("rxgate.verification")

_WHITESPACE = re.compile(r"\s+")


class TextExtractor(Protocol):
    def extract(self, document_bytes: bytes, language: str = "eng") -> str: ...


class DocumentStorage(Protocol):
    def upload(self, data: bytes, name: str) -> str: ...

    def delete(self, ref: str) -> None: ...


@dataclass
class VerificationOutcome:
    record: AuthorizationRecord
    extracted_text: str

    @property
    def approved(self) -> bool:
        return self.record.status == STATUS_APPROVED

    def to_dict(self) -> dict:
        return {
            "prescription": self.record.to_dict(),
            "verified": self.approved,
            "extracted_text": self.extracted_text,
        }


def normalize(text: Optional[str]) -> str:
    """Lowercase, collapse whitespace runs to one space, trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.lower()).strip()


def mentions(extracted_text: str, subject_name: str) -> bool:
    """True when the normalized subject appears contiguously in the normalized text."""
    subject = normalize(subject_name)
    if not subject:
        return False
    return subject in normalize(extracted_text)


class VerificationPipeline:
    def __init__(
        self,
        extractor: TextExtractor,
        storage: DocumentStorage,
        store: AuthorizationStore,
        language: str = Config.OCR_LANGUAGE,
    ):
        self._extractor = extractor
        self._storage = storage
        self._store = store
        self._language = language

    def verify(
        self,
        owner_id: Optional[int],
        subject_name: str,
        document_bytes: bytes,
        filename: str = "",
    ) -> VerificationOutcome:
        if owner_id is None:
            raise Unauthenticated()
        if not normalize(subject_name):
            raise ValueError("subject_name must not be blank")

        # 1. OCR
        try:
            extracted = self._extractor.extract(document_bytes, self._language)
        except ExtractionFailed:
            raise
        except Exception as exc:
            logger.error("OCR collaborator failed for owner=%s: %s", owner_id, exc)
            raise ExtractionFailed() from exc
        if extracted is None:
            raise ExtractionFailed()

        # 2-3. Normalize and decide
        status = STATUS_APPROVED if mentions(extracted, subject_name) else STATUS_REJECTED

        # 4. Upload
        name = build_document_name(owner_id, filename)
        try:
            document_ref = self._storage.upload(document_bytes, name)
        except StorageUnavailable:
            raise
        except Exception as exc:
            logger.error("Document storage failed for %s: %s", name, exc)
            raise StorageUnavailable() from exc

        # 5. Persist
        record = AuthorizationRecord(
            owner_id=owner_id,
            subject_name=subject_name,
            document_ref=document_ref,
            status=status,
        )
        try:
            self._store.insert(record)
        except PersistFailed:
            self._discard_document(document_ref)
            raise

        logger.info(
            "Prescription verification owner=%s subject=%r -> %s (record %s)",
            owner_id, subject_name, status, record.id,
        )
        return VerificationOutcome(record=record, extracted_text=extracted)

    def _discard_document(self, document_ref: str) -> None:
        try:
            self._storage.delete(document_ref)
        except StorageUnavailable as exc:
            logger.warning("Orphaned document %s left in storage: %s", document_ref, exc)
