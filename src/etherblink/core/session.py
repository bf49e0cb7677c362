"""Per-page-view wallet connection state."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from etherblink.blockchain.networks import NetworkInfo

if TYPE_CHECKING:
    from etherblink.blockchain.client import ChainClient


@dataclass
class WalletSession:
    """Wallet connection handed to one ``ActionExecutor``.

    A session without a client is disconnected; the execute action is not
    offered in that case.

    Attributes
    ----------
    network : NetworkInfo
        Chain the session is connected to.
    client : ChainClient | None
        Signing client for the connected wallet.
    receipt_timeout : int
        Seconds to wait for a transaction to be mined.
    """

    network: NetworkInfo
    client: "ChainClient | None" = None
    receipt_timeout: int = 120

    @property
    def connected(self) -> bool:
        return self.client is not None

    @property
    def address(self) -> str | None:
        if self.client is None:
            return None
        return self.client.wallet_address

    def connect(self, client: "ChainClient") -> None:
        self.client = client

    def disconnect(self) -> None:
        self.client = None
