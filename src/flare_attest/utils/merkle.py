"""
Merkle helpers matching OpenZeppelin's MerkleProof (sorted-pair keccak256).

The Relay contract publishes one root per (protocol, voting round); a response
is included when hashing its leaf up the proof path reproduces that root.
"""

from typing import List, Sequence

from .abi import keccak


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a < b else keccak(b + a)


def leaf_hash(raw_response: bytes) -> bytes:
    """Leaf of an ABI-encoded response: keccak256(abi.encode(response))."""
    return keccak(raw_response)


def process_proof(proof: Sequence[bytes], leaf: bytes) -> bytes:
    computed = leaf
    for node in proof:
        computed = hash_pair(computed, node)
    return computed


def verify_proof(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    return process_proof(proof, leaf) == root


def merkle_root(leaves: Sequence[bytes]) -> bytes:
    """Root over already-hashed leaves (pairs sorted, odd node carried up)."""
    if not leaves:
        raise ValueError("Cannot build a Merkle tree without leaves")
    level = list(leaves)
    while len(level) > 1:
        level = _next_level(level)
    return level[0]


def merkle_proof(leaves: Sequence[bytes], index: int) -> List[bytes]:
    """Proof path for leaves[index] in the tree built by merkle_root."""
    if not 0 <= index < len(leaves):
        raise IndexError(f"Leaf index {index} out of range for {len(leaves)} leaves")
    proof = []
    level = list(leaves)
    while len(level) > 1:
        sibling = index ^ 1
        if sibling < len(level):
            proof.append(level[sibling])
        level = _next_level(level)
        index //= 2
    return proof


def _next_level(level: List[bytes]) -> List[bytes]:
    nxt = []
    for i in range(0, len(level), 2):
        if i + 1 < len(level):
            nxt.append(hash_pair(level[i], level[i + 1]))
        else:
            nxt.append(level[i])
    return nxt
