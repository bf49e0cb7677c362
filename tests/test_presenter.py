"""Tests for action presentation metadata."""

import pytest

from etherblink.core.errors import UnknownActionTypeError
from etherblink.core.models import NftSaleAction, TipAction
from etherblink.core.presenter import NFT_ICON, TIP_ICON, present

TIP_RECIPIENT = "0xABCD000000000000000000000000000000001234"
NFT_CONTRACT = "0x742d35Cc6634C0532925a3b844Bc9e7595f8fE00"


class TestPresent:
    """Tests for present()."""

    def test_tip_defaults(self):
        """Tip without description gets the default text."""
        metadata = present(TipAction(recipient_address=TIP_RECIPIENT, tip_amount_eth="0.05"))

        assert metadata.title == "Send a Tip"
        assert metadata.icon == TIP_ICON
        assert metadata.label == "Send Tip"
        assert metadata.description == "You are about to send a 0.05 XTZ tip."

    def test_nft_defaults(self):
        """NFT sale without description names the token and price."""
        metadata = present(
            NftSaleAction(contract_address=NFT_CONTRACT, token_id="42", price="1.5")
        )

        assert metadata.title == "Buy an NFT"
        assert metadata.icon == NFT_ICON
        assert metadata.label == "Buy NFT"
        assert metadata.description == "You are about to buy NFT #42 for 1.5 XTZ."

    def test_custom_description_wins(self):
        """A creator description replaces the default."""
        metadata = present(
            TipAction(
                recipient_address=TIP_RECIPIENT,
                tip_amount_eth="1",
                description="Buy me a coffee",
            )
        )

        assert metadata.description == "Buy me a coffee"

    def test_empty_description_falls_back(self):
        """An empty description is treated as absent."""
        metadata = present(
            TipAction(recipient_address=TIP_RECIPIENT, tip_amount_eth="1", description="")
        )

        assert metadata.description == "You are about to send a 1 XTZ tip."

    def test_currency_symbol(self):
        """Default descriptions use the configured currency."""
        metadata = present(
            NftSaleAction(contract_address=NFT_CONTRACT, token_id="1", price="3"),
            currency="ETH",
        )

        assert metadata.description.endswith("for 3 ETH.")

    def test_to_dict(self):
        """Metadata serializes to plain strings."""
        metadata = present(TipAction(recipient_address=TIP_RECIPIENT, tip_amount_eth="1"))

        assert metadata.to_dict() == {
            "title": "Send a Tip",
            "icon": TIP_ICON,
            "description": "You are about to send a 1 XTZ tip.",
            "label": "Send Tip",
        }

    def test_unknown_action(self):
        """Objects that are not known actions are rejected."""
        with pytest.raises(UnknownActionTypeError):
            present(object())
