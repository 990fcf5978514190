"""Type-specific transaction payloads.

Each transaction type has exactly one payload shape. The payloads form a
pydantic discriminated union on the ``type`` field so that a request's data
can never disagree with its type.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, field_validator

from txengine.models.base import FrozenModel, TransactionType

# Destination token for SWAP_TO_NATIVE requests
NATIVE_TOKEN = "SOL"


class _WalletPayload(FrozenModel):
    wallet_address: str = Field(min_length=1)


class AddLiquidityData(_WalletPayload):
    """Deposit into a liquidity pool across a bin range."""

    type: Literal[TransactionType.ADD_LIQUIDITY] = TransactionType.ADD_LIQUIDITY
    pool_address: str = Field(min_length=1)
    amount: float = Field(gt=0)
    bin_range: tuple[int, int] = (-10, 10)

    @field_validator("bin_range")
    @classmethod
    def ordered_bin_range(cls, v: tuple[int, int]) -> tuple[int, int]:
        if v[0] > v[1]:
            raise ValueError("bin_range lower bound must not exceed upper bound")
        return v


class RemoveLiquidityData(_WalletPayload):
    """Withdraw a percentage of a position from a liquidity pool."""

    type: Literal[TransactionType.REMOVE_LIQUIDITY] = TransactionType.REMOVE_LIQUIDITY
    pool_address: str = Field(min_length=1)
    percentage: float = Field(gt=0, le=100)
    bin_range: tuple[int, int] | None = None


class SwapData(_WalletPayload):
    """Swap between two tokens."""

    type: Literal[TransactionType.SWAP] = TransactionType.SWAP
    from_token: str = Field(min_length=1)
    to_token: str = Field(min_length=1)
    amount: float = Field(gt=0)
    max_slippage: float = Field(default=1.0, ge=0, le=100)


class SwapToNativeData(_WalletPayload):
    """Swap a token back into the chain's native token."""

    type: Literal[TransactionType.SWAP_TO_NATIVE] = TransactionType.SWAP_TO_NATIVE
    from_token: str = Field(min_length=1)
    amount: float = Field(gt=0)
    max_slippage: float = Field(default=1.0, ge=0, le=100)

    @property
    def to_token(self) -> str:
        return NATIVE_TOKEN


class EmergencyExitData(_WalletPayload):
    """Pull all liquidity out of the given pools."""

    type: Literal[TransactionType.EMERGENCY_EXIT] = TransactionType.EMERGENCY_EXIT
    pool_addresses: list[str] = Field(min_length=1)


TransactionPayload = Annotated[
    Union[
        AddLiquidityData,
        RemoveLiquidityData,
        SwapData,
        SwapToNativeData,
        EmergencyExitData,
    ],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter[Any] = TypeAdapter(TransactionPayload)


def parse_payload(
    tx_type: TransactionType, data: Mapping[str, Any] | FrozenModel
) -> TransactionPayload:
    """Validate ``data`` as the payload for ``tx_type``.

    Accepts either an already-built payload model or a plain mapping. Raises
    ValueError (pydantic ValidationError for malformed fields) when the
    payload does not belong to ``tx_type``.
    """
    tx_type = TransactionType(tx_type)
    if isinstance(data, FrozenModel):
        payload_type = getattr(data, "type", None)
        if payload_type != tx_type:
            raise ValueError(
                f"Payload {type(data).__name__} does not match transaction type {tx_type.value}"
            )
        return data

    raw = dict(data)
    declared = raw.get("type")
    if declared is not None and TransactionType(declared) != tx_type:
        raise ValueError(
            f"Payload type {declared} does not match transaction type {tx_type.value}"
        )
    raw["type"] = tx_type
    return _payload_adapter.validate_python(raw)
