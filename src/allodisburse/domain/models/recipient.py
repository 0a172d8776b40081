"""Approved-recipient records and the enumerated/incomplete listing union."""

from typing import Any, Literal, Union

from pydantic import BaseModel

from allodisburse.domain.enums import RecipientStatus


class RecipientRecord(BaseModel):
    recipient_id: str
    recipient_address: str
    profile_id: str | None = None
    status: RecipientStatus = RecipientStatus.APPROVED
    allocated_amount: int | None = None


class EnumeratedRecipients(BaseModel):
    """The reader saw the full approved set. An empty list means confirmed empty."""

    kind: Literal["enumerated"] = "enumerated"
    records: list[RecipientRecord] = []


class EnumerationIncomplete(BaseModel):
    """The approved set could not be determined from contract state alone."""

    kind: Literal["incomplete"] = "incomplete"
    reason: str
    known_count: int | None = None
    allocated_total: int | None = None
    details: dict[str, Any] = {}


RecipientListing = Union[EnumeratedRecipients, EnumerationIncomplete]
