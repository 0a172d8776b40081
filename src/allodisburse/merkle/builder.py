"""Merkle commitment over (index, recipient, amount) leaves.

Leaf: keccak256(abi.encodePacked(uint256 index, address recipient, uint256 amount)).
The packing and field order must match the on-chain verifier exactly.

Tree: built bottom-up pairing adjacent nodes left to right; a trailing odd node
is paired with itself. Every internal node is the sorted-pair hash of its two
children (smaller 32-byte value first), the same rule OpenZeppelin's
MerkleProof uses to fold a proof, so proofs produced here verify on-chain.
"""

import logging

from eth_abi.packed import encode_packed
from eth_utils import decode_hex, keccak, to_checksum_address

from allodisburse.domain.models.distribution import DistributionEntry, MerkleDistribution
from allodisburse.domain.models.ingest import ValidatedRow
from allodisburse.exceptions import EmptyInputError

logger = logging.getLogger(__name__)

LEAF_TYPES = ["uint256", "address", "uint256"]


def _as_bytes(value: bytes | str) -> bytes:
    return decode_hex(value) if isinstance(value, str) else value


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


def leaf_hash(index: int, recipient: str, amount: int) -> bytes:
    return keccak(encode_packed(LEAF_TYPES, [index, to_checksum_address(recipient), amount]))


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Sorted-pair hash: order-independent in its arguments."""
    return keccak(a + b) if a <= b else keccak(b + a)


def build_levels(leaves: list[bytes]) -> list[list[bytes]]:
    """All tree levels, leaves first, root level last."""
    if not leaves:
        raise EmptyInputError("Cannot build a merkle tree without leaves")
    levels = [list(leaves)]
    current = levels[0]
    while len(current) > 1:
        nxt = []
        for i in range(0, len(current), 2):
            left = current[i]
            right = current[i + 1] if i + 1 < len(current) else left
            nxt.append(hash_pair(left, right))
        levels.append(nxt)
        current = nxt
    return levels


def proof(levels: list[list[bytes]], index: int) -> list[bytes]:
    """Sibling path from leaf ``index`` up to (not including) the root."""
    if not 0 <= index < len(levels[0]):
        raise IndexError(f"Leaf index {index} out of range")
    path: list[bytes] = []
    pos = index
    for level in levels[:-1]:
        sibling = pos ^ 1
        # Duplicate-last-node rule: a lone node is its own sibling
        path.append(level[sibling] if sibling < len(level) else level[pos])
        pos //= 2
    return path


def verify(proof_path: list[bytes | str], root: bytes | str, leaf: bytes | str) -> bool:
    computed = _as_bytes(leaf)
    for node in proof_path:
        computed = hash_pair(computed, _as_bytes(node))
    return computed == _as_bytes(root)


def build(valid_rows: list[ValidatedRow]) -> MerkleDistribution:
    """Build the distribution tree. Leaf index is the row's position in ``valid_rows``."""
    if not valid_rows:
        raise EmptyInputError("Cannot build a merkle distribution from zero rows")

    leaves = [
        leaf_hash(i, row.checksummed_address, row.parsed_amount)
        for i, row in enumerate(valid_rows)
    ]
    levels = build_levels(leaves)
    root = levels[-1][0]

    entries = [
        DistributionEntry(
            index=i,
            recipient_address=row.checksummed_address,
            amount=row.parsed_amount,
            proof=[_hex(node) for node in proof(levels, i)],
        )
        for i, row in enumerate(valid_rows)
    ]

    logger.info("Built merkle distribution: %d leaves, %d levels, root %s", len(leaves), len(levels), _hex(root))
    return MerkleDistribution(root=_hex(root), entries=entries)
