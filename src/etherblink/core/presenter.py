"""Human-facing metadata for resolved actions."""

from dataclasses import dataclass

from .errors import UnknownActionTypeError
from .models import ActionDescription, NftSaleAction, TipAction

TIP_ICON = "/static/tip.svg"
NFT_ICON = "/static/nft.svg"


@dataclass(frozen=True)
class ActionMetadata:
    """What the action page shows before the user executes."""

    title: str
    icon: str
    description: str
    label: str

    def to_dict(self) -> dict[str, str]:
        """Convert to JSON-serializable dict."""
        return {
            "title": self.title,
            "icon": self.icon,
            "description": self.description,
            "label": self.label,
        }


def present(action: ActionDescription, currency: str = "XTZ") -> ActionMetadata:
    """Map an action to its title, icon, description and button label.

    Parameters
    ----------
    action : ActionDescription
        The resolved action.
    currency : str
        Native currency symbol used in the default description.

    Returns
    -------
    ActionMetadata
        Display metadata. A non-empty ``action.description`` replaces the
        default description.
    """
    if isinstance(action, TipAction):
        return ActionMetadata(
            title="Send a Tip",
            icon=TIP_ICON,
            description=action.description
            or f"You are about to send a {action.tip_amount_eth} {currency} tip.",
            label="Send Tip",
        )
    if isinstance(action, NftSaleAction):
        return ActionMetadata(
            title="Buy an NFT",
            icon=NFT_ICON,
            description=action.description
            or f"You are about to buy NFT #{action.token_id} for {action.price} {currency}.",
            label="Buy NFT",
        )
    raise UnknownActionTypeError(getattr(action, "action_type", None))
