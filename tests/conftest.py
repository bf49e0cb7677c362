"""Pytest configuration and fixtures for EtherBlink tests."""

import os

import pytest

from etherblink.blockchain.networks import NetworkInfo


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear EtherBlink-related environment variables before each test."""
    env_prefixes = ("ETHERBLINK_", "REDIS_")
    for key in list(os.environ.keys()):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def network():
    """Etherlink-like test network with an explorer."""
    return NetworkInfo(
        rpc_endpoint="http://localhost:8545",
        chain_id=128123,
        currency_symbol="XTZ",
        block_explorer_url="https://explorer.example.com",
    )
