"""Candidate voting rounds to probe for a finalized proof."""

from typing import List, Optional


class RoundSearchPolicy:
    """
    Backward search over voting rounds.

    The latest reported round may still be inside its dispute window, so the
    search starts one round earlier and walks back at most max_attempts rounds.
    """

    def __init__(self, max_attempts: int = 5):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts

    def start_round(self, latest_round_id: int, ceiling: Optional[int] = None) -> int:
        """
        First candidate round.

        Args:
            latest_round_id: Latest round reported by the DA layer
            ceiling: Newest round that can hold the proof (the assigned round
                of a submitted request)
        """
        start = latest_round_id - 1
        if ceiling is not None:
            start = min(start, ceiling)
        return start

    def candidates(self, latest_round_id: int, ceiling: Optional[int] = None) -> List[int]:
        """Strictly decreasing candidate ids, at most max_attempts, none negative."""
        start = self.start_round(latest_round_id, ceiling)
        return [start - i for i in range(self.max_attempts) if start - i >= 0]
