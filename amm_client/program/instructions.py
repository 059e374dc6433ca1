"""
AMM Instruction Encoding and Builders

Payload layout for every variant:
    u8 discriminator, then fields in declaration order,
    little-endian, fixed width, no padding.

    InitializePool   0 | fee_rate u16
    AddLiquidity     1 | max_token_a u64 | max_token_b u64 | min_lp_tokens u64
    RemoveLiquidity  2 | lp_amount u64 | min_token_a u64 | min_token_b u64
    Swap             3 | amount_in u64 | minimum_amount_out u64 | a_to_b u8

Account lists are positional; the program resolves accounts by index, so
order and signer/writable flags must match exactly.
"""

import logging
import struct
from dataclasses import astuple, dataclass, fields
from typing import ClassVar, Dict, List, Type, Union

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from ..config import ProgramConfig
from ..errors import InstructionDataError
from .constants import InstructionTag, U16_MAX, U64_MAX

logger = logging.getLogger(__name__)


def _check_uint(name: str, value, bits: int, max_value: int):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0 or value > max_value:
        raise InstructionDataError.out_of_range(name, value, bits)


@dataclass(frozen=True)
class InitializePool:
    fee_rate: int

    TAG: ClassVar[InstructionTag] = InstructionTag.INITIALIZE_POOL

    def __post_init__(self):
        _check_uint("fee_rate", self.fee_rate, 16, U16_MAX)


@dataclass(frozen=True)
class AddLiquidity:
    max_token_a: int
    max_token_b: int
    min_lp_tokens: int

    TAG: ClassVar[InstructionTag] = InstructionTag.ADD_LIQUIDITY

    def __post_init__(self):
        _check_uint("max_token_a", self.max_token_a, 64, U64_MAX)
        _check_uint("max_token_b", self.max_token_b, 64, U64_MAX)
        _check_uint("min_lp_tokens", self.min_lp_tokens, 64, U64_MAX)


@dataclass(frozen=True)
class RemoveLiquidity:
    lp_amount: int
    min_token_a: int
    min_token_b: int

    TAG: ClassVar[InstructionTag] = InstructionTag.REMOVE_LIQUIDITY

    def __post_init__(self):
        _check_uint("lp_amount", self.lp_amount, 64, U64_MAX)
        _check_uint("min_token_a", self.min_token_a, 64, U64_MAX)
        _check_uint("min_token_b", self.min_token_b, 64, U64_MAX)


@dataclass(frozen=True)
class Swap:
    amount_in: int
    minimum_amount_out: int
    a_to_b: bool

    TAG: ClassVar[InstructionTag] = InstructionTag.SWAP

    def __post_init__(self):
        _check_uint("amount_in", self.amount_in, 64, U64_MAX)
        _check_uint("minimum_amount_out", self.minimum_amount_out, 64, U64_MAX)
        if not isinstance(self.a_to_b, bool):
            raise InstructionDataError(
                f"Field 'a_to_b' must be a bool, got {self.a_to_b!r}",
                field_name="a_to_b",
            )


AmmInstruction = Union[InitializePool, AddLiquidity, RemoveLiquidity, Swap]

# Discriminator byte followed by the variant's fields
LAYOUTS: Dict[Type, struct.Struct] = {
    InitializePool: struct.Struct("<BH"),
    AddLiquidity: struct.Struct("<BQQQ"),
    RemoveLiquidity: struct.Struct("<BQQQ"),
    Swap: struct.Struct("<BQQ?"),
}

_VARIANTS_BY_TAG: Dict[int, Type] = {cls.TAG: cls for cls in LAYOUTS}


def encode(instruction: AmmInstruction) -> bytes:
    """
    Serialize an instruction to the program's wire format

    Args:
        instruction: One of InitializePool, AddLiquidity, RemoveLiquidity, Swap

    Returns:
        Payload bytes (3 bytes for InitializePool, 25 for liquidity, 18 for Swap)
    """
    layout = LAYOUTS.get(type(instruction))
    if layout is None:
        raise TypeError(f"Not an AMM instruction: {type(instruction).__name__}")
    return layout.pack(instruction.TAG, *astuple(instruction))


def decode(data: bytes) -> AmmInstruction:
    """
    Parse a payload produced by encode()

    Raises:
        InstructionDataError: Unknown discriminator or wrong payload length
    """
    if not data:
        raise InstructionDataError("Empty instruction payload")

    cls = _VARIANTS_BY_TAG.get(data[0])
    if cls is None:
        raise InstructionDataError.unknown_tag(data[0])

    layout = LAYOUTS[cls]
    if len(data) != layout.size:
        raise InstructionDataError(
            f"{cls.__name__} payload must be {layout.size} bytes, got {len(data)}"
        )

    values = layout.unpack(data)[1:]
    return cls(**{f.name: v for f, v in zip(fields(cls), values)})


# ========== Builders ==========


def _readonly(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=False)


def _writable(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=True)


def _to_instruction(program_config: ProgramConfig, data: AmmInstruction, accounts: List[AccountMeta]) -> Instruction:
    payload = encode(data)
    logger.debug(f"Built {type(data).__name__} instruction: {len(accounts)} accounts, data={payload.hex()}")
    return Instruction(Pubkey.from_string(program_config.program_id), payload, accounts)


def build_initialize_pool_instruction(
    program_config: ProgramConfig,
    initializer: Pubkey,
    pool: Pubkey,
    token_a_mint: Pubkey,
    token_b_mint: Pubkey,
    lp_token_mint: Pubkey,
    pool_token_a: Pubkey,
    pool_token_b: Pubkey,
    pool_authority: Pubkey,
    fee_rate: int,
) -> Instruction:
    """
    Build InitializePool instruction.

    The token program appears twice: once for the pool token accounts and
    once for the LP mint.
    """
    token_program = Pubkey.from_string(program_config.token_program_id)

    accounts = [
        AccountMeta(initializer, is_signer=True, is_writable=True),   # 0: initializer / payer
        _writable(pool),                                              # 1: pool state
        _readonly(token_a_mint),                                      # 2: token A mint
        _readonly(token_b_mint),                                      # 3: token B mint
        _writable(lp_token_mint),                                     # 4: LP token mint
        _writable(pool_token_a),                                      # 5: pool token A account
        _writable(pool_token_b),                                      # 6: pool token B account
        _readonly(pool_authority),                                    # 7: pool authority
        _readonly(token_program),                                     # 8: token program
        _readonly(token_program),                                     # 9: token program (LP mint)
        _readonly(Pubkey.from_string(program_config.associated_token_program_id)),  # 10
        _readonly(Pubkey.from_string(program_config.system_program_id)),            # 11
        _readonly(Pubkey.from_string(program_config.rent_sysvar_id)),               # 12
    ]

    return _to_instruction(program_config, InitializePool(fee_rate=fee_rate), accounts)


def _liquidity_accounts(
    program_config: ProgramConfig,
    user: Pubkey,
    pool: Pubkey,
    pool_authority: Pubkey,
    user_token_a: Pubkey,
    user_token_b: Pubkey,
    pool_token_a: Pubkey,
    pool_token_b: Pubkey,
    lp_token_mint: Pubkey,
    user_lp_token: Pubkey,
) -> List[AccountMeta]:
    token_program = Pubkey.from_string(program_config.token_program_id)
    return [
        AccountMeta(user, is_signer=True, is_writable=False),  # 0: user
        _writable(pool),                                       # 1: pool state
        _readonly(pool_authority),                             # 2: pool authority
        _writable(user_token_a),                               # 3: user token A
        _writable(user_token_b),                               # 4: user token B
        _writable(pool_token_a),                               # 5: pool token A
        _writable(pool_token_b),                               # 6: pool token B
        _writable(lp_token_mint),                              # 7: LP token mint
        _writable(user_lp_token),                              # 8: user LP token account
        _readonly(token_program),                              # 9: token program
        _readonly(token_program),                              # 10: token program (LP mint)
        _readonly(Pubkey.from_string(program_config.associated_token_program_id)),  # 11
    ]


def build_add_liquidity_instruction(
    program_config: ProgramConfig,
    user: Pubkey,
    pool: Pubkey,
    pool_authority: Pubkey,
    user_token_a: Pubkey,
    user_token_b: Pubkey,
    pool_token_a: Pubkey,
    pool_token_b: Pubkey,
    lp_token_mint: Pubkey,
    user_lp_token: Pubkey,
    max_token_a: int,
    max_token_b: int,
    min_lp_tokens: int,
) -> Instruction:
    """Build AddLiquidity instruction."""
    data = AddLiquidity(max_token_a=max_token_a, max_token_b=max_token_b, min_lp_tokens=min_lp_tokens)
    accounts = _liquidity_accounts(
        program_config, user, pool, pool_authority,
        user_token_a, user_token_b, pool_token_a, pool_token_b,
        lp_token_mint, user_lp_token,
    )
    return _to_instruction(program_config, data, accounts)


def build_remove_liquidity_instruction(
    program_config: ProgramConfig,
    user: Pubkey,
    pool: Pubkey,
    pool_authority: Pubkey,
    user_token_a: Pubkey,
    user_token_b: Pubkey,
    pool_token_a: Pubkey,
    pool_token_b: Pubkey,
    lp_token_mint: Pubkey,
    user_lp_token: Pubkey,
    lp_amount: int,
    min_token_a: int,
    min_token_b: int,
) -> Instruction:
    """Build RemoveLiquidity instruction (same account list as AddLiquidity)."""
    data = RemoveLiquidity(lp_amount=lp_amount, min_token_a=min_token_a, min_token_b=min_token_b)
    accounts = _liquidity_accounts(
        program_config, user, pool, pool_authority,
        user_token_a, user_token_b, pool_token_a, pool_token_b,
        lp_token_mint, user_lp_token,
    )
    return _to_instruction(program_config, data, accounts)


def build_swap_instruction(
    program_config: ProgramConfig,
    user: Pubkey,
    pool: Pubkey,
    pool_authority: Pubkey,
    user_input_token: Pubkey,
    user_output_token: Pubkey,
    pool_input_token: Pubkey,
    pool_output_token: Pubkey,
    amount_in: int,
    minimum_amount_out: int,
    a_to_b: bool,
) -> Instruction:
    """
    Build Swap instruction.

    Input/output accounts are already oriented by the caller according to
    a_to_b.
    """
    token_program = Pubkey.from_string(program_config.token_program_id)
    data = Swap(amount_in=amount_in, minimum_amount_out=minimum_amount_out, a_to_b=a_to_b)

    accounts = [
        AccountMeta(user, is_signer=True, is_writable=False),  # 0: user
        _writable(pool),                                       # 1: pool state
        _readonly(pool_authority),                             # 2: pool authority
        _writable(user_input_token),                           # 3: user input token
        _writable(user_output_token),                          # 4: user output token
        _writable(pool_input_token),                           # 5: pool input token
        _writable(pool_output_token),                          # 6: pool output token
        _readonly(token_program),                              # 7: token program
        _readonly(token_program),                              # 8: token program
    ]

    return _to_instruction(program_config, data, accounts)


def build_create_ata_idempotent_instruction(
    program_config: ProgramConfig,
    payer: Pubkey,
    ata_address: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
) -> Instruction:
    """
    Build create_associated_token_account_idempotent instruction.

    Creates the ATA if it doesn't exist, or does nothing if it does.
    """
    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        _writable(ata_address),
        _readonly(owner),
        _readonly(mint),
        _readonly(Pubkey.from_string(program_config.system_program_id)),
        _readonly(Pubkey.from_string(program_config.token_program_id)),
    ]

    # Instruction data: single byte 1 for idempotent create
    return Instruction(
        Pubkey.from_string(program_config.associated_token_program_id),
        bytes([1]),
        accounts,
    )
