"""
Pool type definitions
"""

from dataclasses import dataclass
from decimal import Decimal

from .common import DerivedAddress


@dataclass(frozen=True)
class PoolAddresses:
    """
    The three program-derived addresses of a pool

    All three share the seed suffix (mint A, mint B) and differ only in
    their namespace prefix.
    """
    pool: DerivedAddress
    lp_token_mint: DerivedAddress
    authority: DerivedAddress


@dataclass
class PoolInfo:
    """
    Snapshot of a remote pool account

    The remote program owns the canonical state; this is a read-only copy
    used for preview math.

    Attributes:
        address: Pool address (base58)
        token_a_mint: Mint of side A
        token_b_mint: Mint of side B
        lp_token_mint: LP token mint (PDA)
        authority: Pool authority (PDA) owning the pool token accounts
        token_a_reserve: Raw token A held by the pool
        token_b_reserve: Raw token B held by the pool
        lp_token_supply: Outstanding LP tokens
        fee_rate: Trading fee in basis points (30 = 0.3%)
        bump: Bump stored by the program for the pool PDA
    """
    address: str
    token_a_mint: str
    token_b_mint: str
    lp_token_mint: str
    authority: str
    token_a_reserve: int
    token_b_reserve: int
    lp_token_supply: int
    fee_rate: int
    bump: int = 0

    def __repr__(self) -> str:
        return f"PoolInfo({self.address[:8]}..., reserves={self.token_a_reserve}/{self.token_b_reserve})"

    @property
    def has_liquidity(self) -> bool:
        return self.token_a_reserve > 0 and self.token_b_reserve > 0

    @property
    def fee_rate_decimal(self) -> Decimal:
        """Fee as a ratio (e.g. 0.003 for 30 bps)"""
        return Decimal(self.fee_rate) / Decimal(10_000)

    def reserves(self, a_to_b: bool) -> tuple:
        """(reserve_in, reserve_out) for the given swap direction"""
        if a_to_b:
            return self.token_a_reserve, self.token_b_reserve
        return self.token_b_reserve, self.token_a_reserve

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary"""
        return {
            "address": self.address,
            "token_a_mint": self.token_a_mint,
            "token_b_mint": self.token_b_mint,
            "lp_token_mint": self.lp_token_mint,
            "authority": self.authority,
            "token_a_reserve": self.token_a_reserve,
            "token_b_reserve": self.token_b_reserve,
            "lp_token_supply": self.lp_token_supply,
            "fee_rate": self.fee_rate,
        }
