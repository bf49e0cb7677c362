"""Action descriptions and stored action records.

An action is a closed set of variants discriminated by ``action_type``:

- ``tip``: native-currency transfer to ``recipient_address``
- ``nft_sale``: payable ``buy(token_id)`` call on ``contract_address``

Field values are kept as strings exactly as the creator typed them. The
models do not check address or amount syntax; ``validate_action`` does that
separately so that old links with odd values still round-trip.
"""

import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ActionValidationError, MalformedLinkError, UnknownActionTypeError

# 40 hex characters, 0x prefix optional
ADDRESS_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")
TOKEN_ID_PATTERN = re.compile(r"^[0-9]+$")

# Field names used by links generated before the flat record layout
LEGACY_FIELD_NAMES = {
    "type": "action_type",
    "recipient": "recipient_address",
    "amount": "tip_amount_eth",
    "contract": "contract_address",
    "tokenId": "token_id",
    "desc": "description",
}


def _number_to_str(value: Any) -> Any:
    """Accept JSON numbers for fields stored as strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    description: str | None = None


class TipAction(_ActionBase):
    """Send ``tip_amount_eth`` native units to ``recipient_address``."""

    action_type: Literal["tip"] = "tip"
    recipient_address: str
    tip_amount_eth: str

    @field_validator("tip_amount_eth", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Any:
        return _number_to_str(value)


class NftSaleAction(_ActionBase):
    """Buy NFT ``token_id`` from ``contract_address`` for ``price`` native units."""

    action_type: Literal["nft_sale"] = "nft_sale"
    contract_address: str
    token_id: str
    price: str

    @field_validator("token_id", "price", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Any:
        return _number_to_str(value)


ActionDescription = TipAction | NftSaleAction

ACTION_MODELS: dict[str, type[TipAction] | type[NftSaleAction]] = {
    "tip": TipAction,
    "nft_sale": NftSaleAction,
}


def parse_action(data: Any) -> ActionDescription:
    """Build an action from a flat mapping.

    Accepts both the canonical field names and the legacy inline-link names.

    Parameters
    ----------
    data : Any
        Decoded JSON payload or store row.

    Returns
    -------
    ActionDescription
        The parsed action.

    Raises
    ------
    MalformedLinkError
        If the payload is not an object or a required field is missing.
    UnknownActionTypeError
        If the discriminator is missing or unsupported.
    """
    if not isinstance(data, dict):
        raise MalformedLinkError("Action payload must be a JSON object")

    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if key in LEGACY_FIELD_NAMES:
            normalized.setdefault(LEGACY_FIELD_NAMES[key], value)
    normalized.update({k: v for k, v in data.items() if k not in LEGACY_FIELD_NAMES})

    action_type = normalized.get("action_type")
    model = ACTION_MODELS.get(action_type) if isinstance(action_type, str) else None
    if model is None:
        raise UnknownActionTypeError(action_type)

    try:
        return model.model_validate(normalized)
    except ValidationError as e:
        raise MalformedLinkError(
            f"Invalid {action_type} action: {e.error_count()} field error(s)"
        ) from e


def _check_address(field: str, value: str) -> None:
    if not ADDRESS_PATTERN.match(value):
        raise ActionValidationError(field, f"Invalid address format: {value}")


def _check_amount(field: str, value: str) -> None:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ActionValidationError(field, f"Invalid amount: {value}") from None
    if not amount.is_finite() or amount < 0:
        raise ActionValidationError(field, f"Amount must be a non-negative number: {value}")


def validate_action(action: ActionDescription) -> None:
    """Check address, amount and token id syntax.

    Raises
    ------
    ActionValidationError
        On the first field that fails.
    """
    if isinstance(action, TipAction):
        _check_address("recipient_address", action.recipient_address)
        _check_amount("tip_amount_eth", action.tip_amount_eth)
    elif isinstance(action, NftSaleAction):
        _check_address("contract_address", action.contract_address)
        if not TOKEN_ID_PATTERN.match(action.token_id):
            raise ActionValidationError(
                "token_id", f"Token ID must be a non-negative integer: {action.token_id}"
            )
        _check_amount("price", action.price)
    else:
        raise UnknownActionTypeError(getattr(action, "action_type", None))


class ActionRecord(BaseModel):
    """A stored action, addressed in URLs by ``short_id``."""

    model_config = ConfigDict(frozen=True)

    id: str
    short_id: str
    created_at: datetime
    action: TipAction | NftSaleAction = Field(discriminator="action_type")

    @classmethod
    def new(cls, action: ActionDescription, short_id: str) -> "ActionRecord":
        """Create a record with a fresh id and timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            short_id=short_id,
            created_at=datetime.now(timezone.utc),
            action=action,
        )

    def to_row(self) -> dict[str, Any]:
        """Flatten into the JSON row served by the resolution API."""
        return {
            "id": self.id,
            "short_id": self.short_id,
            "created_at": self.created_at.isoformat(),
            **self.action.model_dump(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ActionRecord":
        """Rebuild a record from its flat row.

        Raises
        ------
        KeyError
            If ``id``, ``short_id`` or ``created_at`` is missing.
        MalformedLinkError, UnknownActionTypeError
            If the action fields are invalid.
        """
        return cls(
            id=str(row["id"]),
            short_id=row["short_id"],
            created_at=row["created_at"],
            action=parse_action(row),
        )
