"""
Exception definitions for the AMM client
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for AMM client operations

    1xxx - RPC errors
    2xxx - Address derivation errors
    3xxx - Instruction errors
    4xxx - Account / pool errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Address derivation errors
    INVALID_MINT_PAIR = "2001"
    DERIVATION_EXHAUSTED = "2002"

    # Instruction errors
    INSTRUCTION_FIELD_OUT_OF_RANGE = "3001"
    INSTRUCTION_UNKNOWN_TAG = "3002"

    # Account / pool errors
    ACCOUNT_NOT_FOUND = "4001"
    POOL_NOT_FOUND = "4002"
    POOL_INVALID_STATE = "4003"
    ACCOUNT_INVALID_DATA = "4004"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class AmmClientError(Exception):
    """
    Base exception for all AMM client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class RpcError(AmmClientError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The node answers with a JSON-RPC error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )


class InvalidMintPair(AmmClientError):
    """
    Both sides of a pool were given the same mint

    Raised before any address derivation is attempted.
    """

    def __init__(self, mint: str):
        super().__init__(
            f"Pool mints must differ, got {mint} for both sides",
            ErrorCode.INVALID_MINT_PAIR,
            recoverable=False,
            details={"mint": mint},
        )
        self.mint = mint


class DerivationExhausted(AmmClientError):
    """
    No bump in 255..0 produced an off-curve program address
    """

    def __init__(self, program_id: str, seeds: Optional[list] = None):
        super().__init__(
            f"Unable to find a viable program address bump for program {program_id}",
            ErrorCode.DERIVATION_EXHAUSTED,
            recoverable=False,
            details={
                "program_id": program_id,
                "seeds": [seed.hex() for seed in seeds] if seeds else None,
            },
        )
        self.program_id = program_id


class InstructionDataError(AmmClientError):
    """
    Instruction payload cannot be represented on the wire

    Raised when:
    - A numeric field falls outside its fixed-width range
    - A payload carries an unknown discriminator
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INSTRUCTION_FIELD_OUT_OF_RANGE,
        field_name: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"field": field_name},
        )
        self.field_name = field_name

    @classmethod
    def out_of_range(cls, field_name: str, value, bits: int) -> "InstructionDataError":
        return cls(
            f"Field '{field_name}' must fit in u{bits}, got {value!r}",
            field_name=field_name,
        )

    @classmethod
    def unknown_tag(cls, tag: int) -> "InstructionDataError":
        return cls(
            f"Unknown instruction discriminator: {tag}",
            code=ErrorCode.INSTRUCTION_UNKNOWN_TAG,
        )


class AccountNotFound(AmmClientError):
    """
    Requested account does not exist on chain

    Not fatal: callers use it to decide whether to prepend an
    account-creation instruction.
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        code: ErrorCode = ErrorCode.ACCOUNT_NOT_FOUND,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def account(cls, address: str) -> "AccountNotFound":
        return cls(f"Account not found: {address}", address=address)

    @classmethod
    def pool(cls, address: str) -> "AccountNotFound":
        return cls(
            f"Pool not found: {address}",
            address=address,
            code=ErrorCode.POOL_NOT_FOUND,
        )


class PoolStateError(AmmClientError):
    """
    Pool account exists but its data cannot be decoded
    """

    def __init__(self, message: str, pool_address: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.POOL_INVALID_STATE,
            recoverable=False,
            details={"pool_address": pool_address},
        )
        self.pool_address = pool_address

    @classmethod
    def invalid_state(cls, pool_address: Optional[str], reason: str) -> "PoolStateError":
        return cls(f"Pool has invalid state: {reason}", pool_address=pool_address)


class InvalidAccountData(AmmClientError):
    """
    SPL mint or token account data is shorter than its layout
    """

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.ACCOUNT_INVALID_DATA,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def too_short(cls, kind: str, expected: int, actual: int, address: Optional[str] = None) -> "InvalidAccountData":
        return cls(
            f"{kind} account data too short: expected {expected} bytes, got {actual}",
            address=address,
        )


class ConfigurationError(AmmClientError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration or argument values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
