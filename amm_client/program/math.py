"""
Constant-product AMM Math Utilities

Integer swap quotes, price impact and liquidity previews.

Every integer division floors, matching the on-chain program, so a quote
never promises more than the program will pay out.
"""

import math
from decimal import Decimal
from typing import Optional, Tuple

from ..errors import ConfigurationError
from .constants import BPS_DENOMINATOR


def _check_amount(name: str, value: int):
    if value < 0:
        raise ConfigurationError.invalid(name, f"must be non-negative, got {value}")


def _check_bps(name: str, value: int):
    if value < 0 or value > BPS_DENOMINATOR:
        raise ConfigurationError.invalid(name, f"must be in [0, {BPS_DENOMINATOR}] bps, got {value}")


def swap_fee(amount_in: int, fee_rate_bps: int) -> int:
    """Fee taken from the input before the curve is applied"""
    _check_amount("amount_in", amount_in)
    _check_bps("fee_rate_bps", fee_rate_bps)
    return amount_in * fee_rate_bps // BPS_DENOMINATOR


def quote_swap(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_rate_bps: int,
) -> int:
    """
    Output amount for a swap against x * y = k

        fee_amount    = floor(amount_in * fee / 10000)
        amount_in_net = amount_in - fee_amount
        amount_out    = floor(amount_in_net * reserve_out / (reserve_in + amount_in_net))

    An empty side or a zero input is a valid pool state and quotes 0.

    Args:
        amount_in: Raw input amount
        reserve_in: Pool reserve of the input token
        reserve_out: Pool reserve of the output token
        fee_rate_bps: Pool fee in basis points

    Returns:
        Raw output amount
    """
    _check_amount("amount_in", amount_in)
    _check_amount("reserve_in", reserve_in)
    _check_amount("reserve_out", reserve_out)
    _check_bps("fee_rate_bps", fee_rate_bps)

    if amount_in == 0 or reserve_in == 0 or reserve_out == 0:
        return 0

    amount_in_net = amount_in - swap_fee(amount_in, fee_rate_bps)
    return amount_in_net * reserve_out // (reserve_in + amount_in_net)


def quote_price_impact(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_rate_bps: int,
    amount_out: Optional[int] = None,
) -> Decimal:
    """
    Price impact of a swap in percent

    Compares the spot price before the trade (reserve_out / reserve_in) with
    the spot price after it, where the pool gains the full amount_in and
    pays out the quoted amount_out.

    Args:
        amount_in: Raw input amount
        reserve_in: Pool reserve of the input token
        reserve_out: Pool reserve of the output token
        fee_rate_bps: Pool fee in basis points
        amount_out: Output from quote_swap for the same inputs; computed if omitted

    Returns:
        Non-negative percentage (e.g. Decimal("9.09") for 9.09%)

    Raises:
        ConfigurationError: amount_out is negative or exceeds reserve_out
    """
    if amount_out is None:
        amount_out = quote_swap(amount_in, reserve_in, reserve_out, fee_rate_bps)
    else:
        _check_amount("amount_out", amount_out)
        if amount_out > reserve_out:
            raise ConfigurationError.invalid(
                "amount_out", f"exceeds reserve_out {reserve_out}, got {amount_out}"
            )

    if amount_in == 0 or reserve_in == 0 or reserve_out == 0:
        return Decimal(0)

    pre_price = Decimal(reserve_out) / Decimal(reserve_in)
    post_price = Decimal(reserve_out - amount_out) / Decimal(reserve_in + amount_in)

    return abs((post_price - pre_price) / pre_price) * 100


def minimum_amount_out(amount_out: int, slippage_bps: int) -> int:
    """
    Lowest acceptable output for a given slippage tolerance (floored)

    Args:
        amount_out: Quoted output
        slippage_bps: Tolerance in basis points (50 = 0.5%)
    """
    _check_amount("amount_out", amount_out)
    _check_bps("slippage_bps", slippage_bps)
    return amount_out * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


def quote_add_liquidity(
    max_token_a: int,
    max_token_b: int,
    reserve_a: int,
    reserve_b: int,
    lp_supply: int,
) -> int:
    """
    Expected LP tokens for a deposit

    An empty pool mints isqrt(a * b); otherwise the deposit is credited at the
    scarcer side's share of the reserves.
    """
    for name, value in (
        ("max_token_a", max_token_a),
        ("max_token_b", max_token_b),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("lp_supply", lp_supply),
    ):
        _check_amount(name, value)

    if lp_supply == 0 or reserve_a == 0 or reserve_b == 0:
        return math.isqrt(max_token_a * max_token_b)

    return min(
        max_token_a * lp_supply // reserve_a,
        max_token_b * lp_supply // reserve_b,
    )


def quote_remove_liquidity(
    lp_amount: int,
    reserve_a: int,
    reserve_b: int,
    lp_supply: int,
) -> Tuple[int, int]:
    """
    Expected (token_a, token_b) returned for burning lp_amount

    Returns (0, 0) for a pool with no LP supply.
    """
    _check_amount("lp_amount", lp_amount)
    _check_amount("reserve_a", reserve_a)
    _check_amount("reserve_b", reserve_b)
    _check_amount("lp_supply", lp_supply)

    if lp_supply == 0:
        return 0, 0
    if lp_amount > lp_supply:
        raise ConfigurationError.invalid("lp_amount", f"exceeds LP supply {lp_supply}, got {lp_amount}")

    return (
        lp_amount * reserve_a // lp_supply,
        lp_amount * reserve_b // lp_supply,
    )
