"""
Error definitions for the AMM client
"""

from .exceptions import (
    ErrorCode,
    AmmClientError,
    RpcError,
    InvalidMintPair,
    DerivationExhausted,
    InstructionDataError,
    AccountNotFound,
    PoolStateError,
    InvalidAccountData,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "AmmClientError",
    "RpcError",
    "InvalidMintPair",
    "DerivationExhausted",
    "InstructionDataError",
    "AccountNotFound",
    "PoolStateError",
    "InvalidAccountData",
    "ConfigurationError",
]
