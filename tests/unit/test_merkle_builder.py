"""Tests for the merkle distribution builder -- leaf packing, proofs, verification."""

import pytest
from eth_utils import keccak

from allodisburse.domain.models import ValidatedRow
from allodisburse.exceptions import EmptyInputError
from allodisburse.merkle import builder

ADDR_A = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
ADDR_B = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
ADDR_C = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"
ADDR_D = "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb"
ADDR_E = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


def _rows(*pairs) -> list[ValidatedRow]:
    return [
        ValidatedRow(checksummed_address=addr, parsed_amount=amount, source_row_number=i + 2)
        for i, (addr, amount) in enumerate(pairs)
    ]


def _leaf(index: int, row: ValidatedRow) -> bytes:
    return builder.leaf_hash(index, row.checksummed_address, row.parsed_amount)


class TestLeafHash:
    def test_tight_packing(self):
        # uint256 (32 bytes) + address (20 bytes, no padding) + uint256 (32 bytes)
        packed = (
            (3).to_bytes(32, "big")
            + bytes.fromhex(ADDR_A[2:])
            + (10**18).to_bytes(32, "big")
        )
        assert len(packed) == 84
        assert builder.leaf_hash(3, ADDR_A, 10**18) == keccak(packed)

    def test_address_case_irrelevant(self):
        assert builder.leaf_hash(0, ADDR_A, 1) == builder.leaf_hash(0, ADDR_A.lower(), 1)

    def test_field_order_matters(self):
        assert builder.leaf_hash(0, ADDR_A, 1) != builder.leaf_hash(1, ADDR_A, 0)


class TestHashPair:
    def test_sorted(self):
        a, b = keccak(b"a"), keccak(b"b")
        assert builder.hash_pair(a, b) == builder.hash_pair(b, a)
        low, high = sorted([a, b])
        assert builder.hash_pair(a, b) == keccak(low + high)


class TestBuild:
    def test_empty_raises(self):
        with pytest.raises(EmptyInputError):
            builder.build([])

    def test_single_leaf(self):
        rows = _rows((ADDR_A, 5))
        dist = builder.build(rows)
        assert dist.root == "0x" + _leaf(0, rows[0]).hex()
        assert dist.entries[0].proof == []
        assert builder.verify([], dist.root, _leaf(0, rows[0]))

    def test_three_leaves(self):
        rows = _rows((ADDR_A, 1), (ADDR_B, 2), (ADDR_C, 3))
        dist = builder.build(rows)

        assert len(dist.entries[1].proof) == 2
        assert builder.verify(dist.entries[1].proof, dist.root, _leaf(1, rows[1]))
        assert builder.build(rows).root == dist.root

    def test_three_leaves_structure(self):
        rows = _rows((ADDR_A, 1), (ADDR_B, 2), (ADDR_C, 3))
        l0, l1, l2 = (_leaf(i, r) for i, r in enumerate(rows))
        expected = builder.hash_pair(builder.hash_pair(l0, l1), builder.hash_pair(l2, l2))

        dist = builder.build(rows)
        assert dist.root == "0x" + expected.hex()
        # Lone last leaf is its own sibling
        assert dist.entries[2].proof[0] == "0x" + l2.hex()

    @pytest.mark.parametrize("n", [2, 4, 5, 7, 8, 13])
    def test_every_proof_verifies(self, n):
        addrs = [ADDR_A, ADDR_B, ADDR_C, ADDR_D, ADDR_E]
        rows = _rows(*[(addrs[i % 5], i + 1) for i in range(n)])
        dist = builder.build(rows)
        for i, entry in enumerate(dist.entries):
            assert entry.index == i
            assert builder.verify(entry.proof, dist.root, _leaf(i, rows[i]))

    def test_wrong_leaf_fails(self):
        rows = _rows((ADDR_A, 1), (ADDR_B, 2), (ADDR_C, 3))
        dist = builder.build(rows)
        forged = builder.leaf_hash(1, ADDR_B, 2_000)
        assert not builder.verify(dist.entries[1].proof, dist.root, forged)

    def test_root_depends_on_order(self):
        a = builder.build(_rows((ADDR_A, 1), (ADDR_B, 2)))
        b = builder.build(_rows((ADDR_B, 2), (ADDR_A, 1)))
        assert a.root != b.root

    def test_entry_for(self):
        dist = builder.build(_rows((ADDR_A, 1), (ADDR_B, 2)))
        assert dist.entry_for(ADDR_B.lower()).amount == 2
        assert dist.entry_for(ADDR_C) is None


class TestProof:
    def test_out_of_range(self):
        levels = builder.build_levels([keccak(b"x")])
        with pytest.raises(IndexError):
            builder.proof(levels, 1)
