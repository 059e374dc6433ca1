"""
Test Types Module

Tests for amm_client.types package.
"""

import dataclasses
import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.pubkey import Pubkey


def test_token():
    """Test Token dataclass"""
    from amm_client.types import Token

    print("Testing Token...")

    sol = Token(
        mint="So11111111111111111111111111111111111111112",
        symbol="SOL",
        decimals=9,
        name="Solana",
    )

    assert sol.symbol == "SOL"
    assert str(sol) == "SOL"
    assert sol.logo_uri is None

    # Token is frozen (immutable)
    try:
        sol.symbol = "XXX"
        assert False, "Should not be able to modify frozen dataclass"
    except dataclasses.FrozenInstanceError:
        pass

    print("  Token: PASSED")


def test_to_pubkey():
    """Test address normalization"""
    from amm_client.types import to_pubkey

    print("Testing to_pubkey...")

    key = Pubkey.new_unique()
    assert to_pubkey(key) is key
    assert to_pubkey(str(key)) == key

    try:
        to_pubkey("not-a-valid-address")
        assert False, "Should reject invalid base58"
    except ValueError:
        pass

    print("  to_pubkey: PASSED")


def test_pool_info():
    """Test PoolInfo helpers"""
    from amm_client.types import PoolInfo

    print("Testing PoolInfo...")

    pool = PoolInfo(
        address="DmmbZuXW4EezUyWbtXXbYGqafs11DG9qYnuLPwaqCWaW",
        token_a_mint="mintA",
        token_b_mint="mintB",
        lp_token_mint="lpMint",
        authority="authority",
        token_a_reserve=1_000,
        token_b_reserve=2_000,
        lp_token_supply=1_414,
        fee_rate=30,
    )

    assert pool.has_liquidity
    assert pool.fee_rate_decimal == Decimal("0.003")
    assert pool.reserves(True) == (1_000, 2_000)
    assert pool.reserves(False) == (2_000, 1_000)
    assert pool.to_dict()["token_b_reserve"] == 2_000
    assert "DmmbZuXW" in repr(pool)

    empty = dataclasses.replace(pool, token_a_reserve=0)
    assert not empty.has_liquidity

    print("  PoolInfo: PASSED")


def test_swap_quote():
    """Test SwapQuote"""
    from amm_client.types import SwapQuote

    print("Testing SwapQuote...")

    quote = SwapQuote(
        amount_in=100_000,
        amount_out=181_322,
        fee_amount=300,
        minimum_amount_out=180_415,
        price_impact_pct=Decimal("17.3328"),
        a_to_b=True,
        slippage_bps=50,
    )
    assert not quote.is_empty
    assert "A->B" in str(quote)
    assert "17.3328%" in str(quote)

    empty = dataclasses.replace(quote, amount_out=0, minimum_amount_out=0, a_to_b=False)
    assert empty.is_empty
    assert "B->A" in str(empty)

    print("  SwapQuote: PASSED")


def main():
    """Run all type tests"""
    print("=" * 60)
    print("AMM Client Types Tests")
    print("=" * 60)

    tests = [
        test_token,
        test_to_pubkey,
        test_pool_info,
        test_swap_quote,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
