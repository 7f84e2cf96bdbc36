"""
Verification pipeline tests – normalization, the substring verdict policy,
record persistence and the no-partial-record guarantee on every failure path.
"""

import io
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from rxgate.errors import ExtractionFailed, PersistFailed, StorageUnavailable, Unauthenticated
from rxgate.models.models import AuthorizationRecord
from rxgate.services import ocr_service
from rxgate.services.authorization_store import AuthorizationStore
from rxgate.services.policy_evaluator import PolicyEvaluator
from rxgate.services.verification_pipeline import VerificationPipeline, mentions, normalize

from conftest import FakeExtractor, FakeStorage


def _records(session, owner_id):
    return session.query(AuthorizationRecord).filter_by(owner_id=owner_id).all()


# ═══════════════════════════════════════════
# NORMALIZATION
# ═══════════════════════════════════════════

class TestNormalize:
    @pytest.mark.parametrize("raw,expected", [
        ("Paracetamol 500mg", "paracetamol 500mg"),
        ("  PARACETAMOL\t\t500MG \n", "paracetamol 500mg"),
        ("line one\n\nline  two", "line one line two"),
        ("", ""),
        ("   ", ""),
        (None, ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize(raw) == expected

    @pytest.mark.parametrize("raw", [
        "Amoxicillin  500 MG",
        "\tRx:\n Metformin\r\n500mg  BD ",
        "already normal",
    ])
    def test_idempotent(self, raw):
        once = normalize(raw)
        assert normalize(once) == once


class TestMentions:
    def test_case_and_whitespace_variation_matches(self):
        text = "...the patient is prescribed  PARACETAMOL 500MG twice daily..."
        assert mentions(text, "Paracetamol 500mg")

    def test_different_medicine_does_not_match(self):
        assert not mentions("Paracetamol 500mg, twice daily", "Amoxicillin")

    def test_broken_contiguity_does_not_match(self):
        # OCR noise between the words is not forgiven
        assert not mentions("Paracetamol, 500mg", "Paracetamol 500mg")

    def test_line_break_inside_name_still_matches(self):
        assert mentions("Tab. Metformin\n500mg", "Metformin 500mg")

    def test_blank_subject_never_matches(self):
        assert not mentions("anything at all", "   ")


# ═══════════════════════════════════════════
# PIPELINE
# ═══════════════════════════════════════════

class TestVerify:
    def _pipeline(self, session, text="", storage=None, extractor=None):
        return VerificationPipeline(
            extractor=extractor or FakeExtractor(text),
            storage=storage or FakeStorage(),
            store=AuthorizationStore(session),
        )

    def test_approved_record_persisted(self, db_session, owner_id):
        storage = FakeStorage()
        pipeline = self._pipeline(
            db_session, "...the patient is prescribed  PARACETAMOL 500MG twice daily...", storage,
        )
        outcome = pipeline.verify(owner_id, "Paracetamol 500mg", b"img", "scan.png")

        assert outcome.approved
        assert outcome.record.status == "approved"
        assert outcome.record.id is not None
        assert "PARACETAMOL 500MG" in outcome.extracted_text
        assert outcome.record.document_ref.startswith("memory://verification_")
        assert len(storage.documents) == 1
        [stored] = _records(db_session, owner_id)
        assert stored.subject_name == "Paracetamol 500mg"
        assert stored.status == "approved"

    def test_non_match_persists_rejected_record(self, db_session, owner_id):
        pipeline = self._pipeline(db_session, "Paracetamol 500mg, twice daily")
        outcome = pipeline.verify(owner_id, "Amoxicillin", b"img", "scan.png")

        assert not outcome.approved
        [stored] = _records(db_session, owner_id)
        assert stored.status == "rejected"

    def test_ocr_language_hint_passed(self, db_session, owner_id):
        extractor = FakeExtractor("Metformin 500mg")
        self._pipeline(db_session, extractor=extractor).verify(owner_id, "Metformin 500mg", b"img")
        assert extractor.calls == [(b"img", "eng")]

    def test_extraction_failure_writes_nothing(self, db_session, owner_id):
        storage = FakeStorage()
        pipeline = self._pipeline(
            db_session, storage=storage, extractor=FakeExtractor(error=ExtractionFailed()),
        )
        with pytest.raises(ExtractionFailed):
            pipeline.verify(owner_id, "Metformin 500mg", b"not-an-image")
        assert storage.documents == {}
        assert _records(db_session, owner_id) == []

    def test_unexpected_ocr_error_becomes_extraction_failed(self, db_session, owner_id):
        pipeline = self._pipeline(db_session, extractor=FakeExtractor(error=RuntimeError("engine crashed")))
        with pytest.raises(ExtractionFailed):
            pipeline.verify(owner_id, "Metformin 500mg", b"img")
        assert _records(db_session, owner_id) == []

    def test_storage_failure_writes_nothing(self, db_session, owner_id):
        pipeline = self._pipeline(db_session, "Metformin 500mg", storage=FakeStorage(fail=True))
        with pytest.raises(StorageUnavailable):
            pipeline.verify(owner_id, "Metformin 500mg", b"img")
        assert _records(db_session, owner_id) == []

    def test_persist_failure_removes_uploaded_document(self, db_session, owner_id):
        storage = FakeStorage()
        store = AuthorizationStore(db_session)
        pipeline = VerificationPipeline(FakeExtractor("Metformin 500mg"), storage, store)

        with mock.patch.object(store, "insert", side_effect=PersistFailed()):
            with pytest.raises(PersistFailed):
                pipeline.verify(owner_id, "Metformin 500mg", b"img")

        assert storage.documents == {}
        assert _records(db_session, owner_id) == []

    def test_missing_owner_is_unauthenticated(self, db_session):
        with pytest.raises(Unauthenticated):
            self._pipeline(db_session, "Metformin").verify(None, "Metformin", b"img")

    def test_blank_subject_refused_before_io(self, db_session, owner_id):
        extractor = FakeExtractor("anything")
        with pytest.raises(ValueError):
            self._pipeline(db_session, extractor=extractor).verify(owner_id, "  ", b"img")
        assert extractor.calls == []

    def test_reverification_after_rejection(self, db_session, owner_id):
        evaluator = PolicyEvaluator(AuthorizationStore(db_session))

        first = self._pipeline(db_session, "Ibuprofen 400mg").verify(owner_id, "Amoxicillin 500mg", b"a")
        assert first.record.status == "rejected"
        assert not evaluator.has_approval(owner_id, "Amoxicillin 500mg")

        second = self._pipeline(db_session, "Amoxicillin 500mg tds x 5 days").verify(
            owner_id, "Amoxicillin 500mg", b"b",
        )
        assert second.record.status == "approved"
        assert second.record.id != first.record.id
        assert len(_records(db_session, owner_id)) == 2
        assert evaluator.has_approval(owner_id, "Amoxicillin 500mg")


class TestStoreWriteFailure:
    def test_commit_error_raises_persist_failed_and_rolls_back(self):
        session = mock.Mock()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))
        record = AuthorizationRecord(owner_id=1, subject_name="X", document_ref="ref", status="approved")

        with pytest.raises(PersistFailed):
            AuthorizationStore(session).insert(record)
        session.rollback.assert_called_once()


# ═══════════════════════════════════════════
# TESSERACT EXTRACTOR
# ═══════════════════════════════════════════

class TestTesseractExtractor:
    @staticmethod
    def _png() -> bytes:
        from PIL import Image
        buf = io.BytesIO()
        Image.new("RGB", (40, 20), "white").save(buf, format="PNG")
        return buf.getvalue()

    def test_returns_engine_text(self):
        with mock.patch.object(ocr_service.pytesseract, "image_to_string", return_value="Amoxicillin 500mg") as ocr:
            text = ocr_service.TesseractExtractor().extract(self._png(), "eng")
        assert text == "Amoxicillin 500mg"
        assert ocr.call_args.kwargs["lang"] == "eng"
        assert ocr.call_args.kwargs["config"] == "--oem 3 --psm 6"

    def test_empty_document(self):
        with pytest.raises(ExtractionFailed):
            ocr_service.TesseractExtractor().extract(b"")

    def test_unreadable_document(self):
        with pytest.raises(ExtractionFailed):
            ocr_service.TesseractExtractor().extract(b"%PDF-1.4 not an image")

    def test_engine_missing(self):
        with mock.patch.object(
            ocr_service.pytesseract, "image_to_string",
            side_effect=ocr_service.pytesseract.TesseractNotFoundError(),
        ):
            with pytest.raises(ExtractionFailed):
                ocr_service.TesseractExtractor().extract(self._png())
