"""
AMM program bindings

Address derivation, instruction encoding, swap math and account parsing
for the constant-product AMM program.
"""

from .constants import InstructionTag
from .pda import (
    PoolAddressDeriver,
    create_program_address,
    derive,
    get_associated_token_address,
    validate_mint_pair,
)
from .instructions import (
    AmmInstruction,
    InitializePool,
    AddLiquidity,
    RemoveLiquidity,
    Swap,
    encode,
    decode,
)
from .math import (
    quote_swap,
    quote_price_impact,
    swap_fee,
    minimum_amount_out,
    quote_add_liquidity,
    quote_remove_liquidity,
)

__all__ = [
    "InstructionTag",
    "PoolAddressDeriver",
    "create_program_address",
    "derive",
    "get_associated_token_address",
    "validate_mint_pair",
    "AmmInstruction",
    "InitializePool",
    "AddLiquidity",
    "RemoveLiquidity",
    "Swap",
    "encode",
    "decode",
    "quote_swap",
    "quote_price_impact",
    "swap_fee",
    "minimum_amount_out",
    "quote_add_liquidity",
    "quote_remove_liquidity",
]
