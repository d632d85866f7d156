"""Tournament system data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class TournamentFormat(Enum):
    """Bracket format of a tournament."""

    SINGLE_ELIMINATION = "SINGLE_ELIMINATION"
    DOUBLE_ELIMINATION = "DOUBLE_ELIMINATION"  # No losers' bracket, see bracket.py
    ROUND_ROBIN = "ROUND_ROBIN"
    SWISS = "SWISS"  # Listed by the admin UI, generated as single elimination


class TournamentStatus(Enum):
    """Tournament lifecycle status."""

    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MatchStatus(Enum):
    """Individual match status."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.COMPLETED, MatchStatus.CANCELLED)


class RegistrationStatus(Enum):
    """Status of a participant's registration."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


ELIMINATION_FORMATS = frozenset(
    {
        TournamentFormat.SINGLE_ELIMINATION,
        TournamentFormat.DOUBLE_ELIMINATION,
        TournamentFormat.SWISS,
    }
)


class TournamentCreateRequest(BaseModel):
    """Request to create a new tournament."""

    name: str = Field(..., min_length=1, description="Tournament name")
    description: str | None = Field(default=None, description="Free text shown on the card")
    format: TournamentFormat = Field(
        default=TournamentFormat.SINGLE_ELIMINATION, description="Bracket format"
    )
    max_participants: int = Field(
        default=16, ge=2, description="Registration capacity"
    )
    card_id: int | None = Field(default=None, description="Owning content card")
    start_date: datetime | None = None
    end_date: datetime | None = None


class Tournament(BaseModel):
    """Complete tournament information."""

    tournament_id: str
    name: str
    description: str | None = None
    format: TournamentFormat
    status: TournamentStatus = TournamentStatus.UPCOMING
    max_participants: int
    card_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    winner_id: str | None = None  # Champion of an elimination bracket
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_elimination(self) -> bool:
        return self.format in ELIMINATION_FORMATS


class TournamentSummary(BaseModel):
    """Tournament summary for listing."""

    tournament_id: str
    name: str
    format: TournamentFormat
    status: TournamentStatus
    max_participants: int
    registration_count: int
    card_id: int | None = None
    created_at: datetime | None = None
    winner_id: str | None = None


class RegistrationRequest(BaseModel):
    """Request to register a participant for a tournament."""

    participant_id: str = Field(..., min_length=1, description="Registered user ID")


class Registration(BaseModel):
    """A participant's registration for a tournament."""

    registration_id: str
    tournament_id: str
    participant_id: str
    status: RegistrationStatus = RegistrationStatus.CONFIRMED
    registration_date: datetime | None = None


class TournamentMatch(BaseModel):
    """Individual bracket match."""

    match_id: str | None = None  # Assigned by the store on insert
    tournament_id: str
    round_number: int = Field(..., ge=1)
    match_number: int = Field(..., ge=1)  # Position within the round, 1-based
    player1_id: str | None = None  # NULL until a winner advances into the slot
    player2_id: str | None = None  # NULL for byes and unreached rounds
    winner_id: str | None = None
    player1_score: int = Field(default=0, ge=0)
    player2_score: int = Field(default=0, ge=0)
    status: MatchStatus = MatchStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_bye(self) -> bool:
        return self.player1_id is not None and self.player2_id is None


class StartTournamentRequest(BaseModel):
    """Explicit seeding order supplied by the organiser."""

    player_order: list[str] = Field(
        ..., alias="playerOrder", description="Participant IDs in bracket order"
    )

    model_config = {"populate_by_name": True}


class MatchUpdateRequest(BaseModel):
    """Partial update of a single match.

    Only the fields present in the request body are written.
    """

    player1_id: str | None = None
    player2_id: str | None = None
    winner_id: str | None = None
    player1_score: int | None = Field(default=None, ge=0)
    player2_score: int | None = Field(default=None, ge=0)
    status: MatchStatus | None = None


class RoundStatus(BaseModel):
    """Status of all matches in a round."""

    round_number: int
    total_matches: int
    completed_matches: int
    pending_matches: int
    in_progress_matches: int
    cancelled_matches: int
    all_completed: bool


class MatchUpdateOutcome(BaseModel):
    """Result of a match update, including any progression side effects."""

    match: TournamentMatch
    advanced_to: TournamentMatch | None = None
    round_completed: bool = False
    tournament_completed: bool = False


class BracketData(BaseModel):
    """Tournament bracket view data."""

    tournament: Tournament
    matches: list[TournamentMatch]
    total_rounds: int


class TournamentResult(BaseModel):
    """Final or provisional placement of one participant."""

    placement: int = Field(..., ge=1)
    participant_id: str
    wins: int = 0
    losses: int = 0
