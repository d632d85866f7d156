"""Winner advancement through elimination brackets."""

import logging
import math

from .exceptions import AdvanceWinnerError
from .models import MatchStatus, TournamentMatch
from .store import TournamentStore

logger = logging.getLogger(__name__)

PLAYER1_SLOT = "player1_id"
PLAYER2_SLOT = "player2_id"


def next_slot(match: TournamentMatch) -> tuple[int, int, str]:
    """Where the winner of ``match`` plays next.

    Returns ``(round_number, match_number, slot_field)``. Odd matches feed the
    first slot of the next match, even matches the second.
    """
    next_round = match.round_number + 1
    next_match_number = math.ceil(match.match_number / 2)
    slot = PLAYER1_SLOT if match.match_number % 2 == 1 else PLAYER2_SLOT
    return next_round, next_match_number, slot


def advance_winner(
    store: TournamentStore, completed_match: TournamentMatch
) -> TournamentMatch | None:
    """Write the winner of ``completed_match`` into its next-round slot.

    Returns the updated downstream match, or None when nothing was advanced:
    the match is not completed with a winner, or it was the final.
    Re-advancing overwrites the slot.
    """
    if (
        completed_match.status != MatchStatus.COMPLETED
        or not completed_match.winner_id
    ):
        return None

    next_round, next_match_number, slot = next_slot(completed_match)

    try:
        next_match = store.find_match(
            completed_match.tournament_id, next_round, next_match_number
        )
    except Exception as e:
        raise AdvanceWinnerError(
            f"Failed to look up round {next_round} match {next_match_number} "
            f"for tournament {completed_match.tournament_id}: {e}"
        ) from e

    if next_match is None:
        logger.info(
            f"Match {completed_match.match_id} was the final of tournament "
            f"{completed_match.tournament_id}, nothing to advance"
        )
        return None

    if next_match.match_id is None:
        raise AdvanceWinnerError(
            f"Round {next_round} match {next_match_number} has no ID"
        )

    previous = getattr(next_match, slot)
    if previous is not None and previous != completed_match.winner_id:
        logger.warning(
            f"Overwriting {slot} of match {next_match.match_id}: "
            f"{previous} -> {completed_match.winner_id}"
        )

    try:
        updated = store.update_match(
            next_match.match_id, {slot: completed_match.winner_id}
        )
    except Exception as e:
        raise AdvanceWinnerError(
            f"Failed to advance {completed_match.winner_id} into match "
            f"{next_match.match_id}: {e}"
        ) from e

    logger.info(
        f"Advanced {completed_match.winner_id} from round "
        f"{completed_match.round_number} match {completed_match.match_number} "
        f"to round {next_round} match {next_match_number} ({slot})"
    )
    return updated
