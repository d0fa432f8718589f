"""Uniswap V3 Swap events extracted from an attested EVM transaction."""

from dataclasses import dataclass
from typing import List, Optional

from eth_abi import decode
from web3 import Web3

from ..errors import BusinessRuleViolation
from ..models import EVMEvent, EVMTransactionPayload
from ..utils.abi import hex_to_bytes, keccak, normalize_hex


SWAP_EVENT_SIGNATURE = "Swap(address,address,int256,int256,uint160,uint128,int24)"
SWAP_TOPIC = normalize_hex(keccak(SWAP_EVENT_SIGNATURE.encode("utf-8")))


@dataclass(frozen=True)
class SwapEvent:
    pool: str
    sender: str
    recipient: str
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int


def _topic_address(topic: str) -> str:
    return Web3.to_checksum_address("0x" + hex_to_bytes(topic)[-20:].hex())


def parse_swap_event(event: EVMEvent) -> Optional[SwapEvent]:
    """SwapEvent for a Swap log, None for any other log."""
    if event.removed or len(event.topics) < 3 or event.topics[0] != SWAP_TOPIC:
        return None
    amount0, amount1, sqrt_price_x96, liquidity, tick = decode(
        ["int256", "int256", "uint160", "uint128", "int24"], event.data
    )
    return SwapEvent(
        pool=Web3.to_checksum_address(event.emitter_address),
        sender=_topic_address(event.topics[1]),
        recipient=_topic_address(event.topics[2]),
        amount0=amount0,
        amount1=amount1,
        sqrt_price_x96=sqrt_price_x96,
        liquidity=liquidity,
        tick=tick,
    )


class SwapEventCollector:
    """Collects Swap events from verified transactions, optionally for one pool."""

    def __init__(self, pool_address: Optional[str] = None):
        self.pool_address = Web3.to_checksum_address(pool_address) if pool_address else None
        self.swap_events: List[SwapEvent] = []
        self.seen_transactions = set()

    def collect_swap_events(self, payload: EVMTransactionPayload) -> List[SwapEvent]:
        """
        Raises:
            BusinessRuleViolation if the transaction failed or was already collected
        """
        if payload.status != 1:
            raise BusinessRuleViolation(f"Transaction {payload.transaction_hash} did not succeed")
        if payload.transaction_hash in self.seen_transactions:
            raise BusinessRuleViolation(f"Transaction {payload.transaction_hash} already collected")

        found = []
        for event in payload.events:
            swap = parse_swap_event(event)
            if swap is None:
                continue
            if self.pool_address and swap.pool != self.pool_address:
                continue
            found.append(swap)

        self.seen_transactions.add(payload.transaction_hash)
        self.swap_events.extend(found)
        print(f"[OK] Found {len(found)} Swap event(s) in {payload.transaction_hash}")
        return found
