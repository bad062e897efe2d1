"""Request bodies for admin and party actions."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ResolveDisputeRequest(BaseModel):
    """Admin decision on a disputed transaction."""

    outcome: str = Field(description="completed or cancelled")


class VerifyUserRequest(BaseModel):
    decision: Literal["verified", "rejected"]


class CreateTransactionRequest(BaseModel):
    """A party opens a new escrow transaction.

    The creator is the buyer or the seller; the other side may be unknown
    until the counterparty joins.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    description: str | None = None
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    role: Literal["buyer", "seller"]
    counterparty_id: uuid.UUID | None = None
    inspection_period: int | None = Field(default=None, ge=0)
    items: list[dict[str, Any]] | None = None


class PersonalDetails(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: str
    middle_name: str | None = None
    last_name: str
    date_of_birth: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    phone_number: str | None = None


class VerificationSubmission(BaseModel):
    """Identity verification packet submitted by an account holder."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    account_type: Literal["individual", "business"] = "individual"
    personal_details: PersonalDetails
    id_document: str | None = Field(default=None, description="Uploaded ID document reference")
    address_document: str | None = Field(default=None, description="Uploaded proof-of-address reference")
