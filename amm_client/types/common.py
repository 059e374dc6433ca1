"""
Common type definitions
"""

from dataclasses import dataclass
from typing import Optional, Union

from solders.pubkey import Pubkey


# Anything the public API accepts as an account address
AddressLike = Union[str, Pubkey]


def to_pubkey(address: AddressLike) -> Pubkey:
    """Normalize a base58 string or Pubkey to Pubkey"""
    if isinstance(address, Pubkey):
        return address
    return Pubkey.from_string(address)


@dataclass(frozen=True)
class DerivedAddress:
    """
    Program-derived address with the bump that produced it

    Attributes:
        address: Derived account address (off the ed25519 curve)
        bump: First bump, searching 255 downward, that yields an off-curve address
    """
    address: Pubkey
    bump: int

    def __iter__(self):
        # Allows `address, bump = derived`
        yield self.address
        yield self.bump

    def __str__(self) -> str:
        return str(self.address)


@dataclass(frozen=True)
class Token:
    """
    Token information

    Static metadata supplied by the caller or a token registry; never derived.

    Attributes:
        mint: Token mint address (base58)
        symbol: Token symbol (e.g., "SOL", "USDC")
        decimals: Number of decimal places
        name: Full token name (optional)
        logo_uri: Logo location for display (optional)
    """
    mint: str
    symbol: str
    decimals: int
    name: str = ""
    logo_uri: Optional[str] = None

    def __str__(self) -> str:
        return self.symbol

    def __repr__(self) -> str:
        return f"Token({self.symbol}, {self.mint[:8]}...)"
