"""Tournament bracket engine: seeding, generation and progression."""

from .manager import TournamentManager
from .database import TournamentDatabaseManager
from .api import TournamentAPI
from .bracket import (
    BracketRegistry,
    bracket_registry,
    calculate_total_rounds,
    generate_bracket,
    generate_round_robin,
    generate_single_elimination,
    matches_per_round,
)
from .progression import advance_winner, next_slot
from .results import calculate_placements
from .seeding import seed_order, shuffle
from .store import TournamentStore
from .exceptions import (
    AdvanceWinnerError,
    AlreadyRegisteredError,
    AlreadyStartedError,
    BracketsAlreadyExistError,
    InsufficientParticipantsError,
    InvalidMatchUpdateError,
    InvalidParticipantOrderError,
    MatchNotFoundError,
    RegistrationClosedError,
    TournamentError,
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
    RegistrationRequest,
    RegistrationStatus,
    RoundStatus,
    StartTournamentRequest,
    Tournament,
    TournamentCreateRequest,
    TournamentFormat,
    TournamentMatch,
    TournamentResult,
    TournamentStatus,
    TournamentSummary,
)

__all__ = [
    "TournamentManager",
    "TournamentDatabaseManager",
    "TournamentAPI",
    "TournamentStore",
    "BracketRegistry",
    "bracket_registry",
    "calculate_total_rounds",
    "generate_bracket",
    "generate_round_robin",
    "generate_single_elimination",
    "matches_per_round",
    "advance_winner",
    "next_slot",
    "calculate_placements",
    "seed_order",
    "shuffle",
    "AdvanceWinnerError",
    "AlreadyRegisteredError",
    "AlreadyStartedError",
    "BracketsAlreadyExistError",
    "InsufficientParticipantsError",
    "InvalidMatchUpdateError",
    "InvalidParticipantOrderError",
    "MatchNotFoundError",
    "RegistrationClosedError",
    "TournamentError",
    "TournamentFullError",
    "TournamentNotFoundError",
    "UnsupportedFormatError",
    "BracketData",
    "MatchStatus",
    "MatchUpdateOutcome",
    "MatchUpdateRequest",
    "Registration",
    "RegistrationRequest",
    "RegistrationStatus",
    "RoundStatus",
    "StartTournamentRequest",
    "Tournament",
    "TournamentCreateRequest",
    "TournamentFormat",
    "TournamentMatch",
    "TournamentResult",
    "TournamentStatus",
    "TournamentSummary",
]
