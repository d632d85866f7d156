"""Persistence contract used by the bracket engine."""

from typing import Any, Protocol

from .models import (
    Registration,
    RegistrationStatus,
    RoundStatus,
    Tournament,
    TournamentMatch,
    TournamentStatus,
    TournamentSummary,
)


class TournamentStore(Protocol):
    """Operations the progression engine and lifecycle controller rely on.

    ``TournamentDatabaseManager`` is the SQLite implementation; tests may
    pass any object with these methods. Inserts that collide with an existing
    registration or bracket position raise the matching conflict error from
    ``tournaments.exceptions``.
    """

    # Tournaments

    def create_tournament(self, tournament: Tournament) -> Tournament: ...

    def get_tournament(self, tournament_id: str) -> Tournament | None: ...

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0, card_id: int | None = None
    ) -> list[TournamentSummary]: ...

    def update_tournament_status(
        self, tournament_id: str, status: TournamentStatus, **kwargs: Any
    ) -> bool: ...

    def delete_tournament(self, tournament_id: str) -> bool:
        """Delete the tournament with its registrations and matches."""
        ...

    # Registrations

    def add_registration(self, registration: Registration) -> Registration:
        """Insert a registration; a repeated participant raises AlreadyRegisteredError."""
        ...

    def get_registrations(
        self, tournament_id: str, status: RegistrationStatus | None = None
    ) -> list[Registration]: ...

    def list_confirmed_participants(self, tournament_id: str) -> list[str]: ...

    # Matches

    def create_matches(self, matches: list[TournamentMatch]) -> list[TournamentMatch]:
        """Insert all matches in one transaction and return them with IDs.

        A taken bracket position raises BracketsAlreadyExistError and nothing
        is written.
        """
        ...

    def count_matches(self, tournament_id: str) -> int: ...

    def find_match(
        self, tournament_id: str, round_number: int, match_number: int
    ) -> TournamentMatch | None: ...

    def get_match(self, match_id: str) -> TournamentMatch | None: ...

    def update_match(
        self, match_id: str, fields: dict[str, Any]
    ) -> TournamentMatch | None:
        """Apply a partial update and return the stored match."""
        ...

    def get_matches(
        self, tournament_id: str, round_number: int | None = None
    ) -> list[TournamentMatch]: ...

    def get_round_status(self, tournament_id: str, round_number: int) -> RoundStatus: ...
