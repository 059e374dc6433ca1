"""
Type definitions for the AMM client
"""

from .common import AddressLike, DerivedAddress, Token, to_pubkey
from .pool import PoolAddresses, PoolInfo
from .result import SwapQuote

__all__ = [
    "AddressLike",
    "DerivedAddress",
    "Token",
    "to_pubkey",
    "PoolAddresses",
    "PoolInfo",
    "SwapQuote",
]
