"""HTML page rendering for the EtherBlink web service."""

from html import escape

from etherblink.blockchain.networks import NetworkInfo
from etherblink.core.errors import INVALID_LINK_MESSAGE
from etherblink.core.models import ActionDescription, NftSaleAction, TipAction
from etherblink.core.presenter import ActionMetadata

STYLE = """
body { background: #000; color: #e5e7eb; font-family: system-ui, sans-serif; margin: 0; }
main { max-width: 32rem; margin: 4rem auto; padding: 2rem; background: #1f2937;
       border: 1px solid #0e7490; border-radius: 1rem; }
h1 { color: #22d3ee; }
label { display: block; margin-top: 1rem; font-size: 0.9rem; color: #d1d5db; }
input, textarea { width: 100%; box-sizing: border-box; padding: 0.5rem; background: #374151;
                  color: #fff; border: none; border-radius: 0.375rem; }
button { margin-top: 1.5rem; width: 100%; padding: 0.75rem; background: #06b6d4; color: #fff;
         border: none; border-radius: 0.5rem; font-weight: bold; }
.tabs a { margin-right: 1rem; color: #9ca3af; }
.tabs a.active { color: #fff; border-bottom: 2px solid #22d3ee; }
.error { color: #f87171; }
.icon { width: 8rem; height: 8rem; display: block; margin: 0 auto 1.5rem; }
code { word-break: break-all; }
"""

REQUIRED_FIELDS_MESSAGE = {
    "tip": "Please fill out all required fields for the tip.",
    "nft_sale": "Please fill out all required fields for the NFT sale.",
}


def _layout(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>{escape(title)} · EtherBlink</title><style>{STYLE}</style></head>"
        f'<body><nav><a href="/">EtherBlink</a> · <a href="/create-link">Create Link</a></nav>'
        f"<main>{body}</main></body></html>"
    )


def _field(label: str, name: str, value: str, placeholder: str, required: bool = True) -> str:
    required_attr = " required" if required else ""
    return (
        f"<label>{escape(label)}"
        f'<input type="text" name="{name}" value="{escape(value)}" '
        f'placeholder="{escape(placeholder)}"{required_attr}></label>'
    )


class PageRenderer:
    """Renders the EtherBlink pages.

    Parameters
    ----------
    network : NetworkInfo
        Network info for currency labels and explorer links.
    """

    def __init__(self, network: NetworkInfo):
        self._network = network

    def home(self) -> str:
        body = (
            "<h1>EtherBlink</h1>"
            "<p>Turn a blockchain action into a link you can share anywhere.</p>"
            "<ol><li><strong>Create Link</strong>: describe a tip or an NFT sale.</li>"
            "<li><strong>Share</strong>: post the link on any platform.</li>"
            "<li><strong>Receive</strong>: whoever opens it pays straight to your wallet.</li></ol>"
            '<p><a href="/create-link">Create a link</a></p>'
        )
        return _layout("Home", body)

    def create_form(
        self,
        action_type: str = "tip",
        values: dict[str, str] | None = None,
        error: str | None = None,
    ) -> str:
        """Render the creation form for one action type.

        Parameters
        ----------
        action_type : str
            ``tip`` or ``nft_sale``; anything else shows the tip form.
        values : dict[str, str] | None
            Previously submitted values to refill.
        error : str | None
            Error message to show above the form.
        """
        values = values or {}
        currency = self._network.currency_symbol
        if action_type != "nft_sale":
            action_type = "tip"

        if action_type == "tip":
            fields = _field(
                "Recipient Wallet Address", "recipient_address",
                values.get("recipient_address", ""), "0x...",
            ) + _field(
                f"Tip Amount (in {currency})", "tip_amount_eth",
                values.get("tip_amount_eth", ""), "0.01",
            )
        else:
            fields = (
                _field(
                    "NFT Contract Address", "contract_address",
                    values.get("contract_address", ""), "0x...",
                )
                + _field("Token ID", "token_id", values.get("token_id", ""), "42")
                + _field(
                    f"Price (in {currency})", "price", values.get("price", ""), "1.5"
                )
            )

        tip_class = ' class="active"' if action_type == "tip" else ""
        nft_class = ' class="active"' if action_type == "nft_sale" else ""
        error_html = f'<p class="error">{escape(error)}</p>' if error else ""
        body = (
            "<h1>Create a New Action Link</h1>"
            f'<div class="tabs"><a href="/create-link?type=tip"{tip_class}>Send a Tip</a>'
            f'<a href="/create-link?type=nft_sale"{nft_class}>Sell an NFT</a></div>'
            f"{error_html}"
            '<form method="post" action="/create-link">'
            f'<input type="hidden" name="action_type" value="{action_type}">'
            f"{fields}"
            "<label>Description (Optional)"
            '<textarea name="description" rows="3" '
            'placeholder="e.g., A special NFT from my collection!">'
            f"{escape(values.get('description', ''))}</textarea></label>"
            '<button type="submit">Generate Link</button></form>'
        )
        return _layout("Create Link", body)

    def link_created(self, link: str, metadata: ActionMetadata) -> str:
        body = (
            "<h1>Link generated</h1>"
            f"<p>{escape(metadata.description)}</p>"
            "<p>Your generated link:</p>"
            f'<p><code><a href="{escape(link)}">{escape(link)}</a></code></p>'
            '<p><a href="/create-link">Create another</a></p>'
        )
        return _layout("Link generated", body)

    def _details(self, action: ActionDescription) -> str:
        currency = self._network.currency_symbol
        if isinstance(action, TipAction):
            rows = [
                ("Recipient", action.recipient_address),
                ("Amount", f"{action.tip_amount_eth} {currency}"),
            ]
        elif isinstance(action, NftSaleAction):
            rows = [
                ("Contract", action.contract_address),
                ("Token ID", action.token_id),
                ("Price", f"{action.price} {currency}"),
            ]
        else:
            rows = []
        rows.append(("Chain ID", str(self._network.chain_id)))
        cells = "".join(
            f"<tr><th>{escape(name)}</th><td><code>{escape(value)}</code></td></tr>"
            for name, value in rows
        )
        return f"<table>{cells}</table>"

    def action(self, link: str, action: ActionDescription, metadata: ActionMetadata) -> str:
        """Render a resolved action with instructions to execute it."""
        body = (
            f'<img class="icon" src="{escape(metadata.icon)}" alt="{escape(metadata.title)}">'
            f"<h1>{escape(metadata.title)}</h1>"
            f"<p>{escape(metadata.description)}</p>"
            f"{self._details(action)}"
            f"<h2>{escape(metadata.label)} Now</h2>"
            "<p>Connect your wallet and run:</p>"
            f"<p><code>etherblink execute {escape(link)}</code></p>"
        )
        return _layout(metadata.title, body)

    def invalid_link(self) -> str:
        body = (
            "<h1>Could not load this action</h1>"
            f'<p class="error">{escape(INVALID_LINK_MESSAGE)}</p>'
        )
        return _layout("Invalid Link", body)
