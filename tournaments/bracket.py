"""Bracket generation for elimination and round-robin formats."""

import logging
import math
from collections.abc import Callable, Sequence

from .exceptions import InsufficientParticipantsError
from .models import MatchStatus, TournamentFormat, TournamentMatch

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 2

BracketGenerator = Callable[[str, Sequence[str]], list[TournamentMatch]]


def _new_match(
    tournament_id: str,
    round_number: int,
    match_number: int,
    player1_id: str | None = None,
    player2_id: str | None = None,
) -> TournamentMatch:
    return TournamentMatch(
        tournament_id=tournament_id,
        round_number=round_number,
        match_number=match_number,
        player1_id=player1_id,
        player2_id=player2_id,
        winner_id=None,
        player1_score=0,
        player2_score=0,
        status=MatchStatus.PENDING,
    )


def _require_participants(participants: Sequence[str]) -> None:
    if len(participants) < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError(len(participants), MIN_PARTICIPANTS)


def matches_per_round(num_participants: int) -> list[int]:
    """Match counts per elimination round, first round first.

    >>> matches_per_round(5)
    [3, 2, 1]
    """
    if num_participants < MIN_PARTICIPANTS:
        return []

    counts = [math.ceil(num_participants / 2)]
    remaining = counts[0]
    while remaining > 1:
        remaining = math.ceil(remaining / 2)
        counts.append(remaining)
    return counts


def calculate_total_rounds(format: TournamentFormat, num_participants: int) -> int:
    """Calculate total rounds needed for a bracket of ``num_participants``."""
    if num_participants < MIN_PARTICIPANTS:
        return 0
    if format == TournamentFormat.ROUND_ROBIN:
        return 1
    return math.ceil(math.log2(num_participants))


def generate_single_elimination(
    tournament_id: str, participants: Sequence[str]
) -> list[TournamentMatch]:
    """Generate the complete single elimination bracket.

    Round 1 pairs consecutive participants; an odd participant out is placed
    alone in the last match (a bye). Later rounds are created empty and get
    filled as winners advance.
    """
    _require_participants(participants)

    matches: list[TournamentMatch] = []
    match_number = 1
    for i in range(0, len(participants), 2):
        player1 = participants[i]
        player2 = participants[i + 1] if i + 1 < len(participants) else None
        matches.append(_new_match(tournament_id, 1, match_number, player1, player2))
        match_number += 1

    round_sizes = matches_per_round(len(participants))
    for round_number, matches_in_round in enumerate(round_sizes[1:], start=2):
        for match_number in range(1, matches_in_round + 1):
            matches.append(_new_match(tournament_id, round_number, match_number))

    logger.info(
        f"Generated single elimination bracket for tournament {tournament_id}: "
        f"{len(participants)} participants, {len(matches)} matches, "
        f"{len(round_sizes)} rounds"
    )
    return matches


def generate_round_robin(
    tournament_id: str, participants: Sequence[str]
) -> list[TournamentMatch]:
    """Generate one match for every pair of participants, all in round 1."""
    _require_participants(participants)

    matches: list[TournamentMatch] = []
    match_number = 1
    for i in range(len(participants)):
        for j in range(i + 1, len(participants)):
            matches.append(
                _new_match(tournament_id, 1, match_number, participants[i], participants[j])
            )
            match_number += 1

    logger.info(
        f"Generated round robin for tournament {tournament_id}: "
        f"{len(participants)} participants, {len(matches)} matches"
    )
    return matches


class BracketRegistry:
    """Maps tournament formats to bracket generators."""

    def __init__(self, default: BracketGenerator = generate_single_elimination):
        self._generators: dict[TournamentFormat, BracketGenerator] = {}
        self._default = default
        self._register_built_in_generators()

    def _register_built_in_generators(self) -> None:
        self.register(TournamentFormat.SINGLE_ELIMINATION, generate_single_elimination)
        # Losers' bracket is not implemented: double elimination plays out
        # as a single elimination bracket.
        self.register(TournamentFormat.DOUBLE_ELIMINATION, generate_single_elimination)
        self.register(TournamentFormat.ROUND_ROBIN, generate_round_robin)

    def register(self, format: TournamentFormat, generator: BracketGenerator) -> None:
        self._generators[format] = generator

    def get_generator(self, format: TournamentFormat) -> BracketGenerator:
        """Generator for ``format``; unregistered formats use the default."""
        generator = self._generators.get(format)
        if generator is None:
            logger.info(
                f"No generator registered for {format.value}, "
                "falling back to single elimination"
            )
            return self._default
        return generator

    def list_formats(self) -> list[TournamentFormat]:
        return list(self._generators.keys())


bracket_registry = BracketRegistry()


def generate_bracket(
    tournament_id: str,
    format: TournamentFormat,
    ordered_participants: Sequence[str],
) -> list[TournamentMatch]:
    """Build every match of a new bracket. Nothing is persisted here."""
    generator = bracket_registry.get_generator(format)
    return generator(tournament_id, ordered_participants)
