"""
AMM Client - Python bindings for a constant-product AMM on Solana

Provides:
- Pool address derivation (pool, LP token mint, pool authority)
- Instruction encoding and builders (initialize pool, add/remove liquidity, swap)
- Swap quotes and price impact using the program's integer math
- Pool and token reads over JSON-RPC

Transactions are built but never signed or sent here.
"""

from .client import AmmClient
from .config import ProgramConfig, setup_logging
from .types import (
    DerivedAddress,
    Token,
    PoolAddresses,
    PoolInfo,
    SwapQuote,
)
from .errors import (
    AmmClientError,
    RpcError,
    InvalidMintPair,
    DerivationExhausted,
    InstructionDataError,
    AccountNotFound,
    PoolStateError,
    InvalidAccountData,
    ConfigurationError,
    ErrorCode,
)
from .infra import RpcClient, RpcClientConfig
from .program import (
    AmmInstruction,
    InitializePool,
    AddLiquidity,
    RemoveLiquidity,
    Swap,
    encode,
    decode,
    quote_swap,
    quote_price_impact,
)

__all__ = [
    # Client
    "AmmClient",
    "ProgramConfig",
    "setup_logging",
    # Types
    "DerivedAddress",
    "Token",
    "PoolAddresses",
    "PoolInfo",
    "SwapQuote",
    # Errors
    "AmmClientError",
    "RpcError",
    "InvalidMintPair",
    "DerivationExhausted",
    "InstructionDataError",
    "AccountNotFound",
    "PoolStateError",
    "InvalidAccountData",
    "ConfigurationError",
    "ErrorCode",
    # Infrastructure
    "RpcClient",
    "RpcClientConfig",
    # Program
    "AmmInstruction",
    "InitializePool",
    "AddLiquidity",
    "RemoveLiquidity",
    "Swap",
    "encode",
    "decode",
    "quote_swap",
    "quote_price_impact",
]

__version__ = "0.1.0"
