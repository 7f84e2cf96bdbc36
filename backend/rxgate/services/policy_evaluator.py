"""
Authorization policy evaluator.
Decides whether a purchase of a possibly prescription-gated item may
proceed for a requester. Fails closed: a store outage blocks the purchase,
it is never read as "no approval needed" or "approved".
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from rxgate.errors import Unauthenticated
from rxgate.models.models import Product
from rxgate.services.authorization_store import AuthorizationStore, approves

logger = logging.getLogger("rxgate.policy")

REASON_NOT_GATED = "not_gated"
REASON_APPROVED = "prescription_approved"
REASON_REQUIRED = "prescription_required"


@dataclass(frozen=True)
class PurchaseDecision:
    allowed: bool
    reason: str
    authorization_id: Optional[str] = None


def any_approved(records: Iterable, owner_id: int, subject_name: str) -> bool:
    """Pure predicate: does any record approve this exact (owner, subject) pair?"""
    return any(approves(r, owner_id, subject_name) for r in records)


def requires_authorization(product: Product) -> bool:
    return bool(product.requires_prescription)


class PolicyEvaluator:
    def __init__(self, store: AuthorizationStore):
        self._store = store

    def has_approval(self, owner_id: Optional[int], subject_name: str) -> bool:
        if owner_id is None:
            raise Unauthenticated()
        # StoreUnavailable propagates untouched.
        return any_approved(self._store.records_for(owner_id, subject_name), owner_id, subject_name)

    def authorize_purchase(self, owner_id: Optional[int], product: Product) -> PurchaseDecision:
        if owner_id is None:
            raise Unauthenticated()
        if not requires_authorization(product):
            return PurchaseDecision(allowed=True, reason=REASON_NOT_GATED)

        record = self._store.find_approved(owner_id, product.name)
        if record is None:
            logger.info("Purchase of %r blocked for owner=%s: no approved prescription", product.name, owner_id)
            return PurchaseDecision(allowed=False, reason=REASON_REQUIRED)
        return PurchaseDecision(allowed=True, reason=REASON_APPROVED, authorization_id=record.id)
