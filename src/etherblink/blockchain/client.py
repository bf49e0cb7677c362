"""Web3 access for executing action links.

``ChainClient`` holds one HTTP provider and one signing wallet. Every
call blocks on the RPC endpoint; the executor runs them in a worker
thread.
"""

import logging
from decimal import Decimal
from typing import Any

from web3 import Web3
from web3.types import TxReceipt

from etherblink.core.wallet import WalletProvider

logger = logging.getLogger(__name__)

# Sale contracts expose a single payable entry point.
NFT_SALE_ABI = [
    {
        "type": "function",
        "name": "buy",
        "stateMutability": "payable",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [],
    }
]


class ChainClient:
    """Signs and submits action transactions.

    Parameters
    ----------
    rpc_endpoint : str
        JSON-RPC URL of the chain.
    wallet : WalletProvider
        Account that pays for and signs each transaction.
    """

    def __init__(self, rpc_endpoint: str, wallet: WalletProvider):
        self._w3 = Web3(Web3.HTTPProvider(rpc_endpoint))
        self._wallet = wallet

    @property
    def connected(self) -> bool:
        return self._w3.is_connected()

    @property
    def chain_id(self) -> int:
        return self._w3.eth.chain_id

    @property
    def wallet_address(self) -> str:
        return self._wallet.address

    def get_balance(self, address: str) -> Decimal:
        """Native balance of ``address`` in whole units (not wei)."""
        wei = self._w3.eth.get_balance(Web3.to_checksum_address(address))
        return Decimal(str(self._w3.from_wei(wei, "ether")))

    def _tx_fields(self, value: Decimal) -> dict[str, Any]:
        sender = self._wallet.address
        return {
            "from": sender,
            "value": self._w3.to_wei(value, "ether"),
            "nonce": self._w3.eth.get_transaction_count(sender),
            "gasPrice": self._w3.eth.gas_price,
            "chainId": self._w3.eth.chain_id,
        }

    def _submit(self, tx: dict[str, Any]) -> str:
        signed = self._wallet.get_account().sign_transaction(tx)
        return Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))

    def transfer_native(self, to: str, amount: Decimal) -> str:
        """Send ``amount`` of the native currency to ``to``.

        Gas is estimated by the node rather than fixed, since some chains
        charge more than 21000 for a plain transfer.

        Returns
        -------
        str
            Hash of the submitted transaction.
        """
        recipient = Web3.to_checksum_address(to)
        tx = {**self._tx_fields(amount), "to": recipient}
        tx["gas"] = self._w3.eth.estimate_gas(tx)
        tx_hash = self._submit(tx)

        logger.info(
            "Tip transfer submitted",
            extra={"tx_hash": tx_hash, "to": recipient, "amount": str(amount), "gas": tx["gas"]},
        )
        return tx_hash

    def buy_nft(self, contract_address: str, token_id: int, price: Decimal) -> str:
        """Call ``buy(token_id)`` on a sale contract with ``price`` attached.

        Returns
        -------
        str
            Hash of the submitted transaction.
        """
        sale = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=NFT_SALE_ABI
        )
        # build_transaction fills in "to", "data" and the gas estimate
        tx = sale.functions.buy(token_id).build_transaction(self._tx_fields(price))
        tx_hash = self._submit(tx)

        logger.info(
            "NFT purchase submitted",
            extra={
                "tx_hash": tx_hash,
                "contract": sale.address,
                "token_id": token_id,
                "price": str(price),
            },
        )
        return tx_hash

    def wait_for_receipt(self, tx_hash: str, timeout: int = 120) -> TxReceipt:
        """Block until ``tx_hash`` is mined.

        Raises
        ------
        web3.exceptions.TimeExhausted
            If no receipt arrives within ``timeout`` seconds.
        """
        return self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
