"""Placements derived from a tournament's matches."""

from collections import Counter, defaultdict
from collections.abc import Sequence

from .models import (
    ELIMINATION_FORMATS,
    MatchStatus,
    TournamentFormat,
    TournamentMatch,
    TournamentResult,
)


def _is_decided(match: TournamentMatch) -> bool:
    return match.status == MatchStatus.COMPLETED and match.winner_id is not None


def match_loser(match: TournamentMatch) -> str | None:
    """The player who lost ``match``; None while undecided or for a bye."""
    if not _is_decided(match) or match.player1_id is None or match.player2_id is None:
        return None
    return match.player2_id if match.winner_id == match.player1_id else match.player1_id


def _record(matches: Sequence[TournamentMatch]) -> tuple[Counter, Counter]:
    wins: Counter = Counter()
    losses: Counter = Counter()
    for match in matches:
        if not _is_decided(match):
            continue
        wins[match.winner_id] += 1
        loser = match_loser(match)
        if loser is not None:
            losses[loser] += 1
    return wins, losses


def elimination_placements(matches: Sequence[TournamentMatch]) -> list[TournamentResult]:
    """Placements of an elimination bracket, decided matches only.

    The final's winner is 1st and its loser 2nd. A player knocked out in a
    round of ``k`` matches shares place ``k + 1`` (semi-final losers 3rd,
    quarter-final losers 5th, ...). Players still in the bracket are omitted.
    """
    rounds: dict[int, list[TournamentMatch]] = defaultdict(list)
    for match in matches:
        rounds[match.round_number].append(match)
    if not rounds:
        return []

    wins, losses = _record(matches)
    placements: dict[str, int] = {}

    final_round = max(rounds)
    for final in rounds[final_round]:
        if _is_decided(final):
            placements[final.winner_id] = 1

    for round_number, round_matches in rounds.items():
        for match in round_matches:
            loser = match_loser(match)
            if loser is not None:
                placements[loser] = len(round_matches) + 1

    return sorted(
        (
            TournamentResult(
                placement=placement,
                participant_id=participant_id,
                wins=wins[participant_id],
                losses=losses[participant_id],
            )
            for participant_id, placement in placements.items()
        ),
        key=lambda r: (r.placement, r.participant_id),
    )


def round_robin_standings(matches: Sequence[TournamentMatch]) -> list[TournamentResult]:
    """Standings by number of wins; equal win counts share a place."""
    participants = {
        player
        for match in matches
        for player in (match.player1_id, match.player2_id)
        if player is not None
    }
    wins, losses = _record(matches)

    results = [
        TournamentResult(
            placement=1 + sum(1 for other in participants if wins[other] > wins[participant_id]),
            participant_id=participant_id,
            wins=wins[participant_id],
            losses=losses[participant_id],
        )
        for participant_id in participants
    ]
    return sorted(results, key=lambda r: (r.placement, r.participant_id))


def calculate_placements(
    format: TournamentFormat, matches: Sequence[TournamentMatch]
) -> list[TournamentResult]:
    if format in ELIMINATION_FORMATS:
        return elimination_placements(matches)
    return round_robin_standings(matches)
