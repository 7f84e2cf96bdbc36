"""
Authorization store – thin query/command boundary over the relational
`prescriptions` table. Owns no business logic beyond the approved-record
filter; read failures surface as StoreUnavailable, write failures as
PersistFailed.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rxgate.errors import PersistFailed, StoreUnavailable
from rxgate.models.models import AuthorizationRecord, STATUS_APPROVED

logger = logging.getLogger("rxgate.store")


def approves(record, owner_id: int, subject_name: str) -> bool:
    """Does this record approve the exact (owner, subject) pair?"""
    return (
        record.owner_id == owner_id
        and record.subject_name == subject_name
        and record.status == STATUS_APPROVED
    )


class AuthorizationStore:
    def __init__(self, session: Session):
        self._session = session

    def insert(self, record: AuthorizationRecord) -> str:
        """Durably write a new record and return its id."""
        try:
            self._session.add(record)
            self._session.commit()
        except SQLAlchemyError as exc:
            logger.error("Authorization record insert failed: %s", exc)
            self._session.rollback()
            raise PersistFailed() from exc
        logger.info(
            "Stored authorization %s owner=%s subject=%r status=%s",
            record.id, record.owner_id, record.subject_name, record.status,
        )
        return record.id

    def records_for(self, owner_id: int, subject_name: str) -> list[AuthorizationRecord]:
        """Every record filed by this owner for this subject, newest first."""
        try:
            return (
                self._session.query(AuthorizationRecord)
                .filter_by(owner_id=owner_id, subject_name=subject_name)
                .order_by(AuthorizationRecord.created_at.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error("Authorization store query failed: %s", exc)
            raise StoreUnavailable() from exc

    def find_approved(self, owner_id: int, subject_name: str) -> Optional[AuthorizationRecord]:
        """Return any approved record for the exact (owner, subject) pair."""
        # The SQL filter narrows; `approves` decides, so a case-insensitive
        # collation on subject_name never widens a match.
        for record in self.records_for(owner_id, subject_name):
            if approves(record, owner_id, subject_name):
                return record
        return None

    def list_for_owner(self, owner_id: int) -> list[AuthorizationRecord]:
        try:
            return (
                self._session.query(AuthorizationRecord)
                .filter_by(owner_id=owner_id)
                .order_by(AuthorizationRecord.created_at.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error("Authorization store query failed: %s", exc)
            raise StoreUnavailable() from exc

    def list_all(self, status: Optional[str] = None) -> list[AuthorizationRecord]:
        try:
            query = self._session.query(AuthorizationRecord)
            if status:
                query = query.filter_by(status=status)
            return query.order_by(AuthorizationRecord.created_at.desc()).all()
        except SQLAlchemyError as exc:
            logger.error("Authorization store query failed: %s", exc)
            raise StoreUnavailable() from exc
