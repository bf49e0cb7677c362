"""Tests for wallet provider module."""

import logging

import pytest
from pydantic import SecretStr

from etherblink.config import EtherBlinkConfig
from etherblink.core.wallet import LocalKeyWallet, WalletProvider

# Test private key (DO NOT USE IN PRODUCTION - this is a well-known test key)
TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_ADDRESS = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"


@pytest.fixture
def key_file(tmp_path):
    """Private key file readable only by its owner."""
    path = tmp_path / "wallet.key"
    path.write_text(TEST_PRIVATE_KEY + "\n")
    path.chmod(0o600)
    return path


class TestWalletProvider:
    """Tests for WalletProvider abstract class."""

    def test_wallet_provider_is_abstract(self):
        """WalletProvider cannot be instantiated directly."""
        with pytest.raises(TypeError):
            WalletProvider()  # type: ignore


class TestLocalKeyWallet:
    """Tests for LocalKeyWallet."""

    def test_load_from_secret_str(self):
        """Load wallet from SecretStr (simulating env var)."""
        wallet = LocalKeyWallet(private_key=SecretStr(TEST_PRIVATE_KEY))

        assert wallet.address == TEST_ADDRESS
        assert wallet.get_account().address == TEST_ADDRESS

    def test_load_from_file(self, key_file):
        """Load wallet from key file, ignoring the trailing newline."""
        wallet = LocalKeyWallet(private_key_file=str(key_file))

        assert wallet.address == TEST_ADDRESS

    def test_key_without_prefix(self):
        """Keys without the 0x prefix load the same account."""
        wallet = LocalKeyWallet(private_key=SecretStr(TEST_PRIVATE_KEY[2:]))

        assert wallet.address == TEST_ADDRESS

    def test_secret_preferred_over_file(self, tmp_path):
        """An explicit key wins; the file is not read."""
        wallet = LocalKeyWallet(
            private_key=SecretStr(TEST_PRIVATE_KEY),
            private_key_file=str(tmp_path / "missing.key"),
        )

        assert wallet.address == TEST_ADDRESS

    def test_no_key_raises(self):
        """Raises ValueError when no key source provided."""
        with pytest.raises(ValueError, match="Either private_key or private_key_file"):
            LocalKeyWallet()

    def test_missing_file_raises(self):
        """Raises FileNotFoundError for missing key file."""
        with pytest.raises(FileNotFoundError, match="Private key file not found"):
            LocalKeyWallet(private_key_file="/nonexistent/path/key.txt")

    def test_invalid_key_raises(self):
        """Garbage keys are rejected with a readable message."""
        with pytest.raises(ValueError, match="not a valid hex-encoded key"):
            LocalKeyWallet(private_key=SecretStr("not-a-key"))

    def test_warns_on_shared_key_file(self, key_file, caplog):
        """Group or world readable key files are logged."""
        key_file.chmod(0o644)

        with caplog.at_level(logging.WARNING, logger="etherblink.core.wallet"):
            LocalKeyWallet(private_key_file=str(key_file))

        assert "accessible by other users" in caplog.text

    def test_private_key_not_in_repr(self):
        """The key never appears in the wallet's repr."""
        wallet = LocalKeyWallet(private_key=SecretStr(TEST_PRIVATE_KEY))

        assert TEST_PRIVATE_KEY[2:] not in repr(wallet)


class TestFromConfig:
    """Tests for LocalKeyWallet.from_config."""

    def test_from_env_key(self, monkeypatch):
        """ETHERBLINK_WALLET_PRIVATE_KEY is used when set."""
        monkeypatch.setenv("ETHERBLINK_WALLET_PRIVATE_KEY", TEST_PRIVATE_KEY)

        wallet = LocalKeyWallet.from_config(EtherBlinkConfig())

        assert wallet.address == TEST_ADDRESS

    def test_from_key_file(self, monkeypatch, key_file):
        """ETHERBLINK_WALLET_PRIVATE_KEY_FILE is used otherwise."""
        monkeypatch.setenv("ETHERBLINK_WALLET_PRIVATE_KEY_FILE", str(key_file))

        wallet = LocalKeyWallet.from_config(EtherBlinkConfig())

        assert wallet.address == TEST_ADDRESS

    def test_nothing_configured(self):
        """Missing configuration names both variables."""
        with pytest.raises(ValueError, match="ETHERBLINK_WALLET_PRIVATE_KEY_FILE"):
            LocalKeyWallet.from_config(EtherBlinkConfig())
