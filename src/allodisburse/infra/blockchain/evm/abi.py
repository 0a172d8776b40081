"""Minimal ABI layer: function signatures, selectors and eth-abi encode/decode.

Only the functions this engine touches are declared. Struct outputs are
declared as tuple types, e.g. Allo's ``Pool`` is
``(bytes32,address,address,(uint256,string),bytes32,bytes32)``.
"""

from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from allodisburse.exceptions import ContractCallError

EMPTY_BYTES32 = b"\x00" * 32


@dataclass(frozen=True)
class ContractFunction:
    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> str:
        return "0x" + keccak(text=self.signature)[:4].hex()

    def encode_call(self, *args: Any) -> str:
        """Return 0x-prefixed calldata: selector + ABI-encoded arguments."""
        if len(args) != len(self.inputs):
            raise ValueError(f"{self.signature} takes {len(self.inputs)} arguments, got {len(args)}")
        encoded = encode(list(self.inputs), list(args)) if self.inputs else b""
        return self.selector + encoded.hex()

    def decode_result(self, data: bytes) -> Any:
        """Decode return data. A single output is unwrapped from its tuple."""
        if not self.outputs:
            return None
        if not data:
            raise ContractCallError(f"{self.signature} returned no data", function=self.name)
        try:
            values = decode(list(self.outputs), data)
        except (DecodingError, UnicodeDecodeError) as e:
            raise ContractCallError(f"Could not decode {self.signature} output: {e}", function=self.name) from e
        return values[0] if len(values) == 1 else values


def bytes32_to_str(value: bytes) -> str:
    """Decode a right-padded bytes32 string (pre-standard ERC20 symbol/name)."""
    return value.rstrip(b"\x00").decode("utf-8", errors="ignore")


def to_hex32(value: bytes) -> str:
    return "0x" + value.hex()


def is_zero_bytes32(value: bytes | str | None) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return int(value, 16) == 0
    return value == EMPTY_BYTES32


# ---------------------------------------------------------------------------
# Allo core
# ---------------------------------------------------------------------------

METADATA_TYPE = "(uint256,string)"

ALLO_GET_POOL = ContractFunction(
    "getPool", ("uint256",), (f"(bytes32,address,address,{METADATA_TYPE},bytes32,bytes32)",)
)
ALLO_GET_STRATEGY = ContractFunction("getStrategy", ("uint256",), ("address",))
ALLO_GET_REGISTRY = ContractFunction("getRegistry", (), ("address",))
ALLO_IS_POOL_MANAGER = ContractFunction("isPoolManager", ("uint256", "address"), ("bool",))

REGISTRY_GET_PROFILE_BY_ANCHOR = ContractFunction(
    "getProfileByAnchor", ("address",), (f"(bytes32,uint256,string,{METADATA_TYPE},address,address)",)
)

# ---------------------------------------------------------------------------
# Strategy reads
# ---------------------------------------------------------------------------

STRATEGY_GET_STRATEGY_ID = ContractFunction("getStrategyId", (), ("bytes32",))
STRATEGY_NAME = ContractFunction("STRATEGY_NAME", (), ("string",))
STRATEGY_GET_POOL_ID = ContractFunction("getPoolId", (), ("uint256",))
STRATEGY_POOL_ID = ContractFunction("poolId", (), ("uint256",))
STRATEGY_GET_POOL_AMOUNT = ContractFunction("getPoolAmount", (), ("uint256",))
STRATEGY_RECIPIENTS_COUNTER = ContractFunction("recipientsCounter", (), ("uint256",))
STRATEGY_TOTAL_ALLOCATED = ContractFunction("totalAllocated", (), ("uint256",))
STRATEGY_ACCEPTED_RECIPIENT_ID = ContractFunction("acceptedRecipientId", (), ("address",))
# RFP Recipient{useRegistryAnchor, recipientAddress, proposalBid, recipientStatus, metadata}
STRATEGY_GET_RECIPIENT = ContractFunction(
    "getRecipient", ("address",), (f"(bool,address,uint256,uint8,{METADATA_TYPE})",)
)
STRATEGY_GET_RECIPIENT_STATUS = ContractFunction("getRecipientStatus", ("address",), ("uint8",))
STRATEGY_DISTRIBUTION_STARTED = ContractFunction("distributionStarted", (), ("bool",))

# ---------------------------------------------------------------------------
# Strategy writes (payout sequences)
# ---------------------------------------------------------------------------

STRATEGY_ALLOCATE = ContractFunction("allocate", ("address[]", "uint256[]"))
STRATEGY_DISTRIBUTE_WITH_DATA = ContractFunction("distribute", ("address[]", "bytes"))
STRATEGY_DISTRIBUTE = ContractFunction("distribute", ("address[]",))
STRATEGY_UPDATE_DISTRIBUTION = ContractFunction("updateDistribution", ("bytes32", METADATA_TYPE))
STRATEGY_DISTRIBUTE_AMOUNTS = ContractFunction("distribute", ("address[]", "uint256[]", "bytes"))

# ---------------------------------------------------------------------------
# ERC20
# ---------------------------------------------------------------------------

ERC20_SYMBOL = ContractFunction("symbol", (), ("string",))
ERC20_SYMBOL_BYTES32 = ContractFunction("symbol", (), ("bytes32",))
ERC20_NAME = ContractFunction("name", (), ("string",))
ERC20_NAME_BYTES32 = ContractFunction("name", (), ("bytes32",))
ERC20_DECIMALS = ContractFunction("decimals", (), ("uint8",))
ERC20_BALANCE_OF = ContractFunction("balanceOf", ("address",), ("uint256",))
