"""
Match history for co-evolution runs.

Records per-match statistics so a run can be inspected or stopped once
player 1's learned strategy settles:
- Round wins, ties and utility per round for both players
- Which player won the match
- Support size (schemes with positive learned probability) per player
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple

import numpy as np


@dataclass
class MatchStats:
    """Statistics for a single match."""
    match: int
    rounds: int
    player1_wins: int
    player2_wins: int
    ties: int
    player1_utility: float   # Mean utility per round
    player2_utility: float
    winner: int              # 1 or 2
    player1_support: int
    player2_support: int
    player1_size: int
    player2_size: int
    timestamp: str

    @property
    def player1_win_rate(self) -> float:
        return self.player1_wins / self.rounds if self.rounds else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MatchHistory:
    """
    Tracks co-evolution progress over matches.

    Records per-match statistics for analysis and stopping decisions.
    """

    def __init__(self):
        self.matches: List[MatchStats] = []
        self.win_rate_trajectory: List[float] = []
        self.utility_trajectory: List[float] = []

    def record_match(
        self,
        match: int,
        rounds: int,
        player1_wins: int,
        player2_wins: int,
        player1_total_utility: float,
        player2_total_utility: float,
        winner: int,
        player1_support: int,
        player2_support: int,
        player1_size: int,
        player2_size: int,
    ) -> MatchStats:
        """
        Record statistics for a completed match.

        Args:
            match: Match number (1-based)
            rounds: Rounds played in the match
            player1_wins, player2_wins: Rounds won by each player
            player1_total_utility, player2_total_utility: Summed round outcomes
            winner: 1 or 2
            player1_support, player2_support: Schemes with positive learned mass
            player1_size, player2_size: Pool sizes during the match

        Returns:
            MatchStats for this match
        """
        stats = MatchStats(
            match=match,
            rounds=rounds,
            player1_wins=player1_wins,
            player2_wins=player2_wins,
            ties=rounds - player1_wins - player2_wins,
            player1_utility=player1_total_utility / rounds if rounds else 0.0,
            player2_utility=player2_total_utility / rounds if rounds else 0.0,
            winner=winner,
            player1_support=player1_support,
            player2_support=player2_support,
            player1_size=player1_size,
            player2_size=player2_size,
            timestamp=datetime.now().isoformat(),
        )

        self.matches.append(stats)
        self.win_rate_trajectory.append(stats.player1_win_rate)
        self.utility_trajectory.append(stats.player1_utility)
        return stats

    def __len__(self) -> int:
        return len(self.matches)

    @property
    def last(self) -> Optional[MatchStats]:
        return self.matches[-1] if self.matches else None

    def mean_utilities(self) -> Tuple[float, float]:
        """Mean per-round utility across matches for (player 1, player 2)."""
        if not self.matches:
            return 0.0, 0.0
        return (
            float(np.mean([m.player1_utility for m in self.matches])),
            float(np.mean([m.player2_utility for m in self.matches])),
        )

    def matches_won(self, player: int) -> int:
        return sum(1 for m in self.matches if m.winner == player)

    def is_settled(
        self,
        min_matches: int,
        win_rate_range: Optional[Tuple[float, float]],
    ) -> bool:
        """
        Check whether player 1's strategy has settled.

        Settled means at least min_matches were played, the last match's
        player 1 round win rate lies within win_rate_range (when given) and
        player 1 ended that match playing every scheme of its pool with
        positive probability.

        Args:
            min_matches: Minimum number of matches
            win_rate_range: Inclusive (low, high) bounds, or None to skip

        Returns:
            True if the run can stop
        """
        if len(self.matches) < min_matches or not self.matches:
            return False
        last = self.matches[-1]
        if last.player1_support < last.player1_size:
            return False
        if win_rate_range is not None:
            low, high = win_rate_range
            if not low <= self.win_rate_trajectory[-1] <= high:
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert history to dictionary for serialization."""
        return {
            'matches': [m.to_dict() for m in self.matches],
            'win_rate_trajectory': self.win_rate_trajectory,
            'utility_trajectory': self.utility_trajectory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchHistory':
        """Restore history from dictionary."""
        history = cls()
        history.matches = [MatchStats(**m) for m in data.get('matches', [])]
        history.win_rate_trajectory = data.get('win_rate_trajectory', [])
        history.utility_trajectory = data.get('utility_trajectory', [])
        return history
