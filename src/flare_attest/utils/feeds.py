"""
FTSO feed ids.

A feed id is 21 bytes: a one-byte category followed by the UTF-8 feed name,
zero-padded. Category 01 is crypto.
"""

from typing import Dict


CATEGORY_CRYPTO = "01"
CATEGORY_FOREX = "02"
CATEGORY_COMMODITY = "03"
CATEGORY_STOCK = "04"


def get_feed_id(category: str, name: str) -> str:
    """
    Build a feed id from category and name.

    get_feed_id("01", "FLR/USD") -> "0x01464c522f55534400000000000000000000000000"
    """
    if len(category) != 2:
        raise ValueError(f"Category must be one byte of hex, got {category!r}")
    combined = category + name.encode("utf-8").hex()
    if len(combined) > 42:
        raise ValueError(f"Feed name too long: {name!r}")
    return "0x" + combined.ljust(42, "0")


def feed_name(feed_id: str) -> str:
    """Readable name of a feed id ("0x01464c52..." -> "FLR/USD")."""
    raw = bytes.fromhex(feed_id[2:] if feed_id.startswith("0x") else feed_id)
    return raw[1:].rstrip(b"\x00").decode("utf-8", errors="replace")


# Common crypto feeds
KNOWN_FEEDS: Dict[str, str] = {
    name: get_feed_id(CATEGORY_CRYPTO, name)
    for name in ("FLR/USD", "SGB/USD", "BTC/USD", "ETH/USD", "XRP/USD", "USDC/USD", "USDT/USD")
}


def resolve_feed_id(name_or_id: str) -> str:
    """Accept either a feed name ("BTC/USD") or a 0x feed id."""
    if name_or_id.startswith("0x"):
        return name_or_id.lower()
    if name_or_id.upper() in KNOWN_FEEDS:
        return KNOWN_FEEDS[name_or_id.upper()]
    return get_feed_id(CATEGORY_CRYPTO, name_or_id)
