"""Core EtherBlink components."""

from .errors import (
    INVALID_LINK_MESSAGE,
    ActionNotFoundError,
    ActionValidationError,
    EtherBlinkError,
    LinkResolutionError,
    MalformedLinkError,
    StoreWriteError,
    UnknownActionTypeError,
    WalletRejectionError,
)
from .models import (
    ActionDescription,
    ActionRecord,
    NftSaleAction,
    TipAction,
    parse_action,
    validate_action,
)
from .presenter import ActionMetadata, present
from .wallet import LocalKeyWallet, WalletProvider

__all__ = [
    # Errors
    "INVALID_LINK_MESSAGE",
    "ActionNotFoundError",
    "ActionValidationError",
    "EtherBlinkError",
    "LinkResolutionError",
    "MalformedLinkError",
    "StoreWriteError",
    "UnknownActionTypeError",
    "WalletRejectionError",
    # Models
    "ActionDescription",
    "ActionRecord",
    "NftSaleAction",
    "TipAction",
    "parse_action",
    "validate_action",
    # Presenter
    "ActionMetadata",
    "present",
    # Wallet
    "LocalKeyWallet",
    "WalletProvider",
]
