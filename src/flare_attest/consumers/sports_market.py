"""
Sports result market resolved by a Web2Json attestation.

The attested DTO is {matchId, homeScore, awayScore, status}. A finished
match with a winner resolves the market; a tie cancels it.
"""

from enum import IntEnum
from typing import Any, Mapping, Optional

from ..errors import BusinessRuleViolation
from ..models import Web2JsonPayload


MATCH_FINISHED = "Match Finished"

# Response shape attested for a match lookup
MATCH_RESULT_SIGNATURE = """{
  "components": [
    {"internalType": "uint256", "name": "matchId", "type": "uint256"},
    {"internalType": "uint256", "name": "homeScore", "type": "uint256"},
    {"internalType": "uint256", "name": "awayScore", "type": "uint256"},
    {"internalType": "string", "name": "status", "type": "string"}
  ],
  "internalType": "struct DataTransportObject",
  "name": "dto",
  "type": "tuple"
}"""

# jq turning a TheSportsDB lookupevent response into the DTO
MATCH_RESULT_JQ = (
    "{matchId: .events[0].idEvent | tonumber, "
    "homeScore: .events[0].intHomeScore | tonumber, "
    "awayScore: .events[0].intAwayScore | tonumber, "
    "status: .events[0].strStatus}"
)


def match_lookup_url(match_id: int) -> str:
    return f"https://www.thesportsdb.com/api/v1/json/123/lookupevent.php?id={match_id}"


class MarketStatus(IntEnum):
    OPEN = 0
    LOCKED = 1
    RESOLVED = 2
    CANCELED = 3


class Team(IntEnum):
    NONE = 0
    HOME = 1
    AWAY = 2


class SportsMarket:
    """Two-team market. Resolves or cancels exactly once."""

    def __init__(self, match_id: int, home_team_name: str, away_team_name: str):
        self.match_id = int(match_id)
        self.home_team_name = home_team_name
        self.away_team_name = away_team_name

        self.status = MarketStatus.OPEN
        self.winning_team = Team.NONE
        self.home_score: Optional[int] = None
        self.away_score: Optional[int] = None

    def lock(self):
        if self.status is not MarketStatus.OPEN:
            raise BusinessRuleViolation(f"Market is {self.status.name}, not OPEN")
        self.status = MarketStatus.LOCKED

    @staticmethod
    def _result(data: Mapping[str, Any]):
        try:
            return int(data["matchId"]), int(data["homeScore"]), int(data["awayScore"]), str(data["status"])
        except (KeyError, TypeError, ValueError) as e:
            raise BusinessRuleViolation(f"Attested result is incomplete: {e}") from e

    def resolve(self, payload: Web2JsonPayload) -> MarketStatus:
        """
        Apply an attested match result.

        Raises:
            BusinessRuleViolation on wrong match id, unfinished match, or a
            market that is already settled. Nothing changes on failure.
        """
        if self.status in (MarketStatus.RESOLVED, MarketStatus.CANCELED):
            raise BusinessRuleViolation(f"Market already {self.status.name}")

        match_id, home_score, away_score, status = self._result(payload.data)
        if match_id != self.match_id:
            raise BusinessRuleViolation(f"Wrong match id: {match_id} (expected {self.match_id})")
        if status != MATCH_FINISHED:
            raise BusinessRuleViolation(f"Match not finished: {status!r}")

        self.home_score = home_score
        self.away_score = away_score

        if home_score == away_score:
            self.status = MarketStatus.CANCELED
            print(f"[OK] Match {match_id} tied {home_score}-{away_score}: market canceled")
            return self.status

        self.winning_team = Team.HOME if home_score > away_score else Team.AWAY
        self.status = MarketStatus.RESOLVED
        print(f"[OK] Match {match_id} won by {self.winning_team_name} ({home_score}-{away_score})")
        return self.status

    @property
    def winning_team_name(self) -> Optional[str]:
        if self.winning_team is Team.HOME:
            return self.home_team_name
        if self.winning_team is Team.AWAY:
            return self.away_team_name
        return None
