"""Recipient-side wallet used to sign action transactions."""

import logging
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

if TYPE_CHECKING:
    from etherblink.config import EtherBlinkConfig

logger = logging.getLogger(__name__)

NO_WALLET_MESSAGE = (
    "No wallet configured. "
    "Set ETHERBLINK_WALLET_PRIVATE_KEY or ETHERBLINK_WALLET_PRIVATE_KEY_FILE"
)


class WalletProvider(ABC):
    """Source of the account that signs a visitor's transactions."""

    @abstractmethod
    def get_account(self) -> LocalAccount:
        """Get the account used for signing.

        Returns
        -------
        LocalAccount
            The account instance for transaction signing.
        """
        ...

    @property
    def address(self) -> str:
        """Checksummed address of the signing account."""
        return self.get_account().address


class LocalKeyWallet(WalletProvider):
    """Wallet holding a private key from the environment or a key file.

    Parameters
    ----------
    private_key : SecretStr, optional
        The private key, usually from ``ETHERBLINK_WALLET_PRIVATE_KEY``.
    private_key_file : str, optional
        Path to a file containing the private key. Checked only when
        ``private_key`` is not given.

    Raises
    ------
    ValueError
        If neither source is provided, or the key is not a valid secp256k1 key.
    FileNotFoundError
        If ``private_key_file`` does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
    ):
        if private_key is not None:
            raw = private_key.get_secret_value()
        elif private_key_file is not None:
            raw = self._read_key_file(Path(private_key_file).expanduser())
        else:
            raise ValueError("Either private_key or private_key_file must be provided")

        try:
            self._account = Account.from_key(raw.strip())
        except (ValueError, TypeError) as e:
            raise ValueError("Private key is not a valid hex-encoded key") from e

    @classmethod
    def from_config(cls, config: "EtherBlinkConfig") -> "LocalKeyWallet":
        """Build the wallet named by configuration.

        Raises
        ------
        ValueError
            If no key source is configured.
        """
        if config.wallet_private_key:
            return cls(private_key=config.wallet_private_key)
        if config.wallet_private_key_file:
            return cls(private_key_file=config.wallet_private_key_file)
        raise ValueError(NO_WALLET_MESSAGE)

    @staticmethod
    def _read_key_file(key_path: Path) -> str:
        if not key_path.exists():
            raise FileNotFoundError(f"Private key file not found: {key_path}")
        mode = key_path.stat().st_mode
        if mode & (stat.S_IRWXG | stat.S_IRWXO):
            logger.warning(
                "Private key file is accessible by other users",
                extra={"path": str(key_path), "mode": oct(mode & 0o777)},
            )
        return key_path.read_text()

    def get_account(self) -> LocalAccount:
        return self._account
