"""Chain description shared by the web service, the executor and the CLI.

Every value comes from configuration. The defaults in ``EtherBlinkConfig``
describe the Etherlink testnet.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from etherblink.config import EtherBlinkConfig


@dataclass(frozen=True)
class NetworkInfo:
    """Chain that action links execute on.

    Attributes
    ----------
    rpc_endpoint : str
        JSON-RPC URL used for submission and receipt polling.
    chain_id : int
        EIP-155 chain id the signed transactions carry.
    currency_symbol : str
        Native currency shown next to amounts.
    block_explorer_url : str | None
        Explorer base URL. Without one, no transaction links are shown.
    """

    rpc_endpoint: str
    chain_id: int
    currency_symbol: str = "XTZ"
    block_explorer_url: str | None = None

    @classmethod
    def from_config(cls, config: "EtherBlinkConfig") -> "NetworkInfo":
        return cls(
            rpc_endpoint=config.rpc_endpoint,
            chain_id=config.chain_id,
            currency_symbol=config.currency_symbol,
            block_explorer_url=config.block_explorer_url,
        )

    def get_tx_url(self, tx_hash: str) -> str | None:
        """Explorer page for ``tx_hash``, or None when no explorer is set."""
        if not self.block_explorer_url:
            return None
        return f"{self.block_explorer_url.rstrip('/')}/tx/{tx_hash}"
