"""Exception hierarchy for EtherBlink.

Resolution errors share the ``LinkResolutionError`` base so callers can
collapse them into a single "invalid link" state for the end user.
"""

INVALID_LINK_MESSAGE = "Invalid or corrupt action link."


class EtherBlinkError(Exception):
    """Base class for all EtherBlink errors."""


class LinkResolutionError(EtherBlinkError):
    """A link token could not be turned back into an action."""


class MalformedLinkError(LinkResolutionError):
    """The token is not valid Base64url/JSON, or is structurally wrong."""


class UnknownActionTypeError(LinkResolutionError):
    """The action type discriminator is missing or not supported."""

    def __init__(self, action_type: object):
        super().__init__(f"Unsupported action type: {action_type!r}")
        self.action_type = action_type


class ActionNotFoundError(LinkResolutionError):
    """No stored action exists for a short id, or the store is unreachable."""

    def __init__(self, short_id: str, reason: str | None = None):
        message = f"Action not found: {short_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.short_id = short_id


class StoreWriteError(EtherBlinkError):
    """The action store rejected a write."""


class WalletRejectionError(EtherBlinkError):
    """The wallet or node refused or failed the transaction."""


class ActionValidationError(EtherBlinkError):
    """An action field failed a basic syntactic check.

    Parameters
    ----------
    field : str
        Name of the offending field.
    message : str
        Human-readable reason.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
