"""Blockchain integration for EtherBlink."""

from .client import NFT_SALE_ABI, ChainClient
from .networks import NetworkInfo

__all__ = ["ChainClient", "NFT_SALE_ABI", "NetworkInfo"]
