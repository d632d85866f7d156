"""Tournament lifecycle: registration, bracket creation and match progression."""

import logging
import random
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from config.settings import BracketConfig

from .bracket import calculate_total_rounds, generate_bracket
from .exceptions import (
    AdvanceWinnerError,
    AlreadyRegisteredError,
    AlreadyStartedError,
    BracketsAlreadyExistError,
    InsufficientParticipantsError,
    InvalidMatchUpdateError,
    MatchNotFoundError,
    RegistrationClosedError,
    TournamentFullError,
    TournamentNotFoundError,
    UnsupportedFormatError,
)
from .models import (
    BracketData,
    MatchStatus,
    MatchUpdateOutcome,
    MatchUpdateRequest,
    Registration,
    RegistrationStatus,
    RoundStatus,
    Tournament,
    TournamentCreateRequest,
    TournamentFormat,
    TournamentMatch,
    TournamentResult,
    TournamentStatus,
    TournamentSummary,
)
from .progression import advance_winner
from .results import calculate_placements
from .seeding import seed_order
from .store import TournamentStore

logger = logging.getLogger(__name__)


class TournamentManager:
    """Manages tournament creation, bracket generation and progression."""

    def __init__(
        self,
        db: TournamentStore,
        bracket_config: BracketConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.bracket_config = bracket_config or BracketConfig()
        if rng is None and self.bracket_config.shuffle_seed is not None:
            rng = random.Random(self.bracket_config.shuffle_seed)
        self.rng = rng

    async def create_tournament(self, request: TournamentCreateRequest) -> Tournament:
        """Create an UPCOMING tournament open for registration."""
        logger.info(f"Creating tournament: {request.name} ({request.format.value})")

        tournament = Tournament(
            tournament_id=str(uuid.uuid4()),
            name=request.name,
            description=request.description,
            format=request.format,
            status=TournamentStatus.UPCOMING,
            max_participants=request.max_participants,
            card_id=request.card_id,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        return self.db.create_tournament(tournament)

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.db.get_tournament(tournament_id)
        if not tournament:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0, card_id: int | None = None
    ) -> list[TournamentSummary]:
        return self.db.list_tournaments(limit, offset, card_id)

    async def delete_tournament(self, tournament_id: str) -> None:
        """Delete a tournament with its registrations and matches."""
        if not self.db.delete_tournament(tournament_id):
            raise TournamentNotFoundError(tournament_id)

    async def register_participant(
        self, tournament_id: str, participant_id: str
    ) -> Registration:
        """Register a participant; confirmed immediately."""
        tournament = self.get_tournament(tournament_id)

        if tournament.status != TournamentStatus.UPCOMING:
            raise RegistrationClosedError(
                f"Tournament {tournament_id} is not accepting registrations "
                f"(status {tournament.status.value})"
            )

        registrations = self.db.get_registrations(tournament_id)
        if any(r.participant_id == participant_id for r in registrations):
            raise AlreadyRegisteredError(
                f"Participant {participant_id} is already registered for "
                f"tournament {tournament_id}"
            )

        if len(registrations) >= tournament.max_participants:
            raise TournamentFullError(
                f"Tournament {tournament_id} is full "
                f"({tournament.max_participants} participants)"
            )

        registration = self.db.add_registration(
            Registration(
                registration_id=str(uuid.uuid4()),
                tournament_id=tournament_id,
                participant_id=participant_id,
                status=RegistrationStatus.CONFIRMED,
            )
        )
        logger.info(f"Registered {participant_id} for tournament {tournament_id}")
        return registration

    def list_registrations(self, tournament_id: str) -> list[Registration]:
        """Confirmed registrations in registration order."""
        self.get_tournament(tournament_id)
        return self.db.get_registrations(tournament_id, RegistrationStatus.CONFIRMED)

    async def start_tournament(
        self, tournament_id: str, player_order: Sequence[str]
    ) -> list[TournamentMatch]:
        """Start a tournament with an explicit seeding order."""
        tournament = self.get_tournament(tournament_id)

        existing = self.db.count_matches(tournament_id)
        if existing > 0:
            raise AlreadyStartedError(tournament_id, existing)

        ordered = seed_order(player_order, explicit=True)
        try:
            return self._create_bracket(tournament, ordered)
        except BracketsAlreadyExistError as e:
            raise AlreadyStartedError(tournament_id, e.existing) from e

    async def generate_brackets(self, tournament_id: str) -> list[TournamentMatch]:
        """Generate brackets from confirmed registrations in random order."""
        tournament = self.get_tournament(tournament_id)

        existing = self.db.count_matches(tournament_id)
        if existing > 0:
            raise BracketsAlreadyExistError(tournament_id, existing)

        participants = self.db.list_confirmed_participants(tournament_id)
        logger.info(
            f"Generating brackets for tournament {tournament_id} "
            f"with {len(participants)} confirmed participants"
        )
        if len(participants) < 2:
            raise InsufficientParticipantsError(len(participants))

        ordered = seed_order(participants, rng=self.rng)
        return self._create_bracket(tournament, ordered)

    def _create_bracket(
        self, tournament: Tournament, ordered: list[str]
    ) -> list[TournamentMatch]:
        """Generate, persist in one batch, then mark the tournament ONGOING."""
        if tournament.format == TournamentFormat.DOUBLE_ELIMINATION:
            if self.bracket_config.double_elimination_mode == "reject":
                raise UnsupportedFormatError(
                    "Double elimination is not supported; losers' brackets "
                    "are not generated"
                )
            logger.warning(
                f"Tournament {tournament.tournament_id} is DOUBLE_ELIMINATION, "
                "generating a single elimination bracket"
            )

        matches = generate_bracket(tournament.tournament_id, tournament.format, ordered)
        stored = self.db.create_matches(matches)

        self.db.update_tournament_status(tournament.tournament_id, TournamentStatus.ONGOING)
        logger.info(
            f"Started tournament {tournament.tournament_id} with "
            f"{len(ordered)} participants and {len(stored)} matches"
        )
        return stored

    async def update_match(
        self, match_id: str, update: MatchUpdateRequest
    ) -> MatchUpdateOutcome:
        """Patch a match; completing it with a winner advances the winner."""
        match = self.db.get_match(match_id)
        if not match:
            raise MatchNotFoundError(match_id)

        fields = self._match_fields(match, update)
        updated = self.db.update_match(match_id, fields)
        if not updated:
            raise MatchNotFoundError(match_id)

        tournament = self.get_tournament(updated.tournament_id)

        advanced_to = None
        if (
            tournament.is_elimination
            and fields.get("status") == MatchStatus.COMPLETED
            and updated.winner_id
        ):
            try:
                advanced_to = advance_winner(self.db, updated)
            except AdvanceWinnerError as e:
                logger.error(f"Error advancing winner to next round: {e}")

        round_status = self.db.get_round_status(
            updated.tournament_id, updated.round_number
        )
        tournament_completed = self._check_completion(tournament, updated)

        return MatchUpdateOutcome(
            match=updated,
            advanced_to=advanced_to,
            round_completed=round_status.all_completed,
            tournament_completed=tournament_completed,
        )

    def _match_fields(
        self, match: TournamentMatch, update: MatchUpdateRequest
    ) -> dict[str, Any]:
        """Fields to write for ``update``, validated against the match."""
        fields = update.model_dump(exclude_unset=True)

        # Scores and status are never cleared, only replaced
        for key in ("player1_score", "player2_score", "status"):
            if key in fields and fields[key] is None:
                del fields[key]

        player1 = fields.get("player1_id", match.player1_id)
        player2 = fields.get("player2_id", match.player2_id)
        winner = fields.get("winner_id", match.winner_id)
        if winner is not None and winner not in (player1, player2):
            raise InvalidMatchUpdateError(
                f"Winner {winner} is not a player of match {match.match_id}"
            )

        if fields.get("status") == MatchStatus.COMPLETED:
            fields["completed_at"] = match.completed_at or datetime.now()

        return fields

    def _check_completion(self, tournament: Tournament, match: TournamentMatch) -> bool:
        """Keep the tournament's status and champion in step with its matches.

        Returns True when the tournament is COMPLETED after the update.
        """
        tournament_id = tournament.tournament_id
        completed = tournament.status == TournamentStatus.COMPLETED
        if tournament.status != TournamentStatus.ONGOING and not completed:
            return False

        matches = self.db.get_matches(tournament_id)

        if tournament.is_elimination:
            # The final is the only match of the last round
            final_round = max((m.round_number for m in matches), default=0)
            if match.round_number != final_round:
                return completed
            if match.status == MatchStatus.COMPLETED and match.winner_id:
                if completed and tournament.winner_id == match.winner_id:
                    return True
                self.db.update_tournament_status(
                    tournament_id, TournamentStatus.COMPLETED, winner_id=match.winner_id
                )
                if completed:
                    logger.warning(
                        f"Tournament {tournament_id} champion changed: "
                        f"{tournament.winner_id} -> {match.winner_id}"
                    )
                else:
                    logger.info(
                        f"Tournament {tournament_id} completed, winner: {match.winner_id}"
                    )
                return True
        elif matches and all(m.status.is_terminal for m in matches):
            if not completed:
                self.db.update_tournament_status(tournament_id, TournamentStatus.COMPLETED)
                logger.info(f"Round robin tournament {tournament_id} completed")
            return True

        if completed:
            # A deciding match was reopened
            self.db.update_tournament_status(
                tournament_id, TournamentStatus.ONGOING, winner_id=None
            )
            logger.warning(f"Tournament {tournament_id} reopened, its result is undecided")
        return False

    def get_bracket_view(self, tournament_id: str) -> BracketData:
        """Get the tournament with all of its matches."""
        tournament = self.get_tournament(tournament_id)
        matches = self.db.get_matches(tournament_id)
        entrants = {
            player
            for m in matches
            if m.round_number == 1
            for player in (m.player1_id, m.player2_id)
            if player is not None
        }
        total_rounds = calculate_total_rounds(tournament.format, len(entrants))
        return BracketData(tournament=tournament, matches=matches, total_rounds=total_rounds)

    def get_round_status(self, tournament_id: str, round_number: int) -> RoundStatus:
        self.get_tournament(tournament_id)
        return self.db.get_round_status(tournament_id, round_number)

    def get_results(self, tournament_id: str) -> list[TournamentResult]:
        """Placements so far, best first."""
        tournament = self.get_tournament(tournament_id)
        return calculate_placements(tournament.format, self.db.get_matches(tournament_id))
