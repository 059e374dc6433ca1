"""
Result type definitions for quotes
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class SwapQuote:
    """
    Locally computed swap preview

    Attributes:
        amount_in: Raw input amount
        amount_out: Expected raw output (floor-rounded)
        fee_amount: Portion of amount_in taken as fee
        minimum_amount_out: amount_out after slippage tolerance
        price_impact_pct: Price impact in percent
        a_to_b: Swap direction
        slippage_bps: Slippage tolerance used for minimum_amount_out
    """
    amount_in: int
    amount_out: int
    fee_amount: int
    minimum_amount_out: int
    price_impact_pct: Decimal
    a_to_b: bool
    slippage_bps: int = 0

    @property
    def is_empty(self) -> bool:
        """True when the pool cannot produce any output for this input"""
        return self.amount_out == 0

    def __str__(self) -> str:
        direction = "A->B" if self.a_to_b else "B->A"
        return (
            f"SwapQuote({direction}, in={self.amount_in}, out={self.amount_out}, "
            f"min_out={self.minimum_amount_out}, impact={self.price_impact_pct:.4f}%)"
        )
