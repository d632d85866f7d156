"""Participant ordering prior to bracket generation."""

import logging
import random
from collections.abc import Sequence

from .exceptions import InvalidParticipantOrderError

logger = logging.getLogger(__name__)


def shuffle(participants: Sequence[str], rng: random.Random | None = None) -> list[str]:
    """Return a uniformly random permutation of ``participants``.

    The input is copied first; the caller's sequence is left untouched.
    ``random.shuffle`` is a Fisher-Yates shuffle (walks from the last index
    down to 1, swapping with a random index in ``[0, i]``).
    """
    shuffled = list(participants)
    (rng or random).shuffle(shuffled)
    return shuffled


def validate_order(order: Sequence[str]) -> None:
    """Reject orders that repeat a participant."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for participant_id in order:
        if participant_id in seen:
            duplicates.append(participant_id)
        seen.add(participant_id)

    if duplicates:
        raise InvalidParticipantOrderError(
            f"Participant order contains duplicates: {sorted(set(duplicates))}"
        )


def seed_order(
    participants: Sequence[str],
    explicit: bool = False,
    rng: random.Random | None = None,
) -> list[str]:
    """Order participants for the bracket.

    With ``explicit`` the caller's order is kept as the seeding; otherwise
    the participants are shuffled.
    """
    if explicit:
        ordered = list(participants)
        logger.debug(f"Using explicit seeding for {len(ordered)} participants")
    else:
        ordered = shuffle(participants, rng)
        logger.debug(f"Shuffled {len(ordered)} participants for random seeding")

    validate_order(ordered)
    return ordered
