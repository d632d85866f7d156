"""Tournament error taxonomy."""


class TournamentError(Exception):
    """Base class for bracket and lifecycle errors."""

    status_code = 400


class InsufficientParticipantsError(TournamentError):
    """Fewer than two entrants were supplied."""

    def __init__(self, count: int, required: int = 2):
        self.count = count
        self.required = required
        super().__init__(
            f"Need at least {required} players to generate brackets. "
            f"Currently have: {count}"
        )


class InvalidParticipantOrderError(TournamentError):
    """A seeding order that cannot produce a valid bracket."""


class InvalidMatchUpdateError(TournamentError):
    """A match patch that would break a match invariant."""


class UnsupportedFormatError(TournamentError):
    """The tournament format cannot be generated under the current configuration."""


class TournamentConflictError(TournamentError):
    """The requested transition conflicts with the tournament's current state."""

    status_code = 409


class AlreadyStartedError(TournamentConflictError):
    """Matches already exist for a tournament being started."""

    def __init__(self, tournament_id: str, existing: int):
        self.tournament_id = tournament_id
        self.existing = existing
        super().__init__(
            f"Tournament {tournament_id} has already been started "
            f"({existing} existing matches)"
        )


class BracketsAlreadyExistError(TournamentConflictError):
    """Brackets were already generated for the tournament."""

    def __init__(self, tournament_id: str, existing: int):
        self.tournament_id = tournament_id
        self.existing = existing
        super().__init__(
            f"Brackets already exist for tournament {tournament_id} "
            f"({existing} existing matches)"
        )


class AlreadyRegisteredError(TournamentConflictError):
    """The participant is already registered."""


class RegistrationClosedError(TournamentConflictError):
    """The tournament no longer accepts registrations."""


class TournamentFullError(TournamentConflictError):
    """The tournament reached its participant capacity."""


class TournamentNotFoundError(TournamentError):
    status_code = 404

    def __init__(self, tournament_id: str):
        self.tournament_id = tournament_id
        super().__init__(f"Tournament {tournament_id} not found")


class MatchNotFoundError(TournamentError):
    status_code = 404

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


class AdvanceWinnerError(TournamentError):
    """Progression of a winner into the next round failed.

    Raised by the progression engine and swallowed by the lifecycle
    controller; the completed match stays completed.
    """

    status_code = 500
