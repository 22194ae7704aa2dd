"""Classification of a receipt's sharing outcome."""

from __future__ import annotations

import logging

from yoti_profile.types import (
    DetailedFailure,
    GenericFailure,
    Outcome,
    ProfileNotFound,
    Receipt,
    Success,
)

logger = logging.getLogger(__name__)


class OutcomeMapper:
    SUCCESS_OUTCOME = "SUCCESS"
    NOT_FOUND_STATUS = 404

    def from_status(self, status_code: int) -> ProfileNotFound | None:
        """Transport-level gate, checked before the body is parsed."""
        if status_code == self.NOT_FOUND_STATUS:
            return ProfileNotFound()
        return None

    def classify(self, receipt: Receipt) -> Outcome:
        if receipt.sharing_outcome == self.SUCCESS_OUTCOME:
            return Success(receipt)

        logger.info("Sharing outcome %r for receipt %s", receipt.sharing_outcome, receipt.receipt_id or "<none>")
        details = receipt.error_details
        if details is not None and details.error_code:
            return DetailedFailure(code=details.error_code, description=details.description)
        return GenericFailure()
