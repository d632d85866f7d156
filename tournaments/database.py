"""Tournament database operations."""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List

from .exceptions import AlreadyRegisteredError, BracketsAlreadyExistError
from .models import (
    MatchStatus,
    Registration,
    RegistrationStatus,
    RoundStatus,
    Tournament,
    TournamentFormat,
    TournamentMatch,
    TournamentStatus,
    TournamentSummary,
)

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS tournaments (
        tournament_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        format TEXT NOT NULL,
        status TEXT NOT NULL,
        max_participants INTEGER NOT NULL,
        card_id INTEGER,
        start_date TEXT,
        end_date TEXT,
        winner_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tournament_registrations (
        registration_id TEXT PRIMARY KEY,
        tournament_id TEXT NOT NULL
            REFERENCES tournaments(tournament_id) ON DELETE CASCADE,
        participant_id TEXT NOT NULL,
        status TEXT NOT NULL,
        registration_date TEXT NOT NULL,
        UNIQUE (tournament_id, participant_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tournament_matches (
        match_id TEXT PRIMARY KEY,
        tournament_id TEXT NOT NULL
            REFERENCES tournaments(tournament_id) ON DELETE CASCADE,
        round_number INTEGER NOT NULL,
        match_number INTEGER NOT NULL,
        player1_id TEXT,
        player2_id TEXT,
        winner_id TEXT,
        player1_score INTEGER NOT NULL DEFAULT 0,
        player2_score INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        completed_at TEXT,
        UNIQUE (tournament_id, round_number, match_number)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_matches_tournament_round
        ON tournament_matches (tournament_id, round_number)
    """,
]

# Columns a partial match update may touch
MATCH_UPDATE_COLUMNS = (
    "player1_id",
    "player2_id",
    "winner_id",
    "player1_score",
    "player2_score",
    "status",
    "completed_at",
)


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (MatchStatus, TournamentStatus, TournamentFormat, RegistrationStatus)):
        return value.value
    return value


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _is_unique_violation(error: sqlite3.IntegrityError, column: str) -> bool:
    """Whether ``error`` is a UNIQUE failure on a constraint covering ``column``."""
    message = str(error)
    return message.startswith("UNIQUE constraint failed") and column in message


class TournamentDatabaseManager:
    """Manages SQLite database operations for tournaments."""

    def __init__(self, db_path: str = "tournaments.db"):
        self.db_path = Path(db_path)
        self._init_database()

    def _init_database(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            for statement in SCHEMA_STATEMENTS:
                cursor.execute(statement)
            conn.commit()
            logger.info(f"Tournament database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable column access by name
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Tournament database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    # Tournaments

    def create_tournament(self, tournament: Tournament) -> Tournament:
        """Insert a tournament and return it with its ID and timestamps."""
        now = datetime.now()
        stored = tournament.model_copy(
            update={
                "tournament_id": tournament.tournament_id or str(uuid.uuid4()),
                "created_at": now,
                "updated_at": now,
            }
        )

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO tournaments (
                    tournament_id, name, description, format, status,
                    max_participants, card_id, start_date, end_date, winner_id,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stored.tournament_id,
                    stored.name,
                    stored.description,
                    stored.format.value,
                    stored.status.value,
                    stored.max_participants,
                    stored.card_id,
                    _to_db(stored.start_date),
                    _to_db(stored.end_date),
                    stored.winner_id,
                    _to_db(stored.created_at),
                    _to_db(stored.updated_at),
                ),
            )
            conn.commit()

        logger.info(f"Created tournament {stored.tournament_id}: {stored.name}")
        return stored

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        """Get tournament by ID."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM tournaments WHERE tournament_id = ?", (tournament_id,)
            ).fetchone()

        if not row:
            return None

        return Tournament(
            tournament_id=row["tournament_id"],
            name=row["name"],
            description=row["description"],
            format=TournamentFormat(row["format"]),
            status=TournamentStatus(row["status"]),
            max_participants=row["max_participants"],
            card_id=row["card_id"],
            start_date=_parse_datetime(row["start_date"]),
            end_date=_parse_datetime(row["end_date"]),
            winner_id=row["winner_id"],
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0, card_id: int | None = None
    ) -> List[TournamentSummary]:
        """List tournaments with summary information, newest first."""
        query = """
            SELECT t.tournament_id, t.name, t.format, t.status, t.max_participants,
                   t.card_id, t.created_at, t.winner_id,
                   (SELECT COUNT(*) FROM tournament_registrations r
                    WHERE r.tournament_id = t.tournament_id) AS registration_count
            FROM tournaments t
        """
        params: List[Any] = []
        if card_id is not None:
            query += " WHERE t.card_id = ?"
            params.append(card_id)

        query += " ORDER BY t.created_at DESC"
        if limit:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            TournamentSummary(
                tournament_id=row["tournament_id"],
                name=row["name"],
                format=TournamentFormat(row["format"]),
                status=TournamentStatus(row["status"]),
                max_participants=row["max_participants"],
                registration_count=row["registration_count"],
                card_id=row["card_id"],
                created_at=_parse_datetime(row["created_at"]),
                winner_id=row["winner_id"],
            )
            for row in rows
        ]

    def update_tournament_status(
        self, tournament_id: str, status: TournamentStatus, **kwargs: Any
    ) -> bool:
        """Update tournament status and optional fields."""
        set_clauses = ["status = ?", "updated_at = ?"]
        params: List[Any] = [status.value, datetime.now().isoformat()]

        if "winner_id" in kwargs:
            set_clauses.append("winner_id = ?")
            params.append(kwargs["winner_id"])

        params.append(tournament_id)

        query = f"""
            UPDATE tournaments
            SET {', '.join(set_clauses)}
            WHERE tournament_id = ?
        """

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            updated = cursor.rowcount > 0
            conn.commit()

        if updated:
            logger.info(f"Updated tournament {tournament_id} status to {status.value}")

        return updated

    def delete_tournament(self, tournament_id: str) -> bool:
        """Delete tournament and all related data."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM tournaments WHERE tournament_id = ?", (tournament_id,)
            )
            deleted = cursor.rowcount > 0
            conn.commit()

        if deleted:
            logger.info(f"Deleted tournament {tournament_id}")

        return deleted

    # Registrations

    def add_registration(self, registration: Registration) -> Registration:
        """Register a participant for a tournament."""
        stored = registration.model_copy(
            update={
                "registration_id": registration.registration_id or str(uuid.uuid4()),
                "registration_date": registration.registration_date or datetime.now(),
            }
        )

        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO tournament_registrations (
                        registration_id, tournament_id, participant_id, status,
                        registration_date
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        stored.registration_id,
                        stored.tournament_id,
                        stored.participant_id,
                        stored.status.value,
                        _to_db(stored.registration_date),
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            if not _is_unique_violation(e, "tournament_registrations.participant_id"):
                raise
            # UNIQUE (tournament_id, participant_id) lost a registration race
            raise AlreadyRegisteredError(
                f"Participant {stored.participant_id} is already registered for "
                f"tournament {stored.tournament_id}"
            ) from e

        return stored

    def get_registrations(
        self, tournament_id: str, status: RegistrationStatus | None = None
    ) -> List[Registration]:
        """Get registrations in registration order, optionally filtered by status."""
        query = "SELECT * FROM tournament_registrations WHERE tournament_id = ?"
        params: List[Any] = [tournament_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY registration_date, rowid"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            Registration(
                registration_id=row["registration_id"],
                tournament_id=row["tournament_id"],
                participant_id=row["participant_id"],
                status=RegistrationStatus(row["status"]),
                registration_date=_parse_datetime(row["registration_date"]),
            )
            for row in rows
        ]

    def list_confirmed_participants(self, tournament_id: str) -> List[str]:
        """Participant IDs of confirmed registrations, in registration order."""
        return [
            registration.participant_id
            for registration in self.get_registrations(
                tournament_id, RegistrationStatus.CONFIRMED
            )
        ]

    # Matches

    def create_matches(self, matches: List[TournamentMatch]) -> List[TournamentMatch]:
        """Insert every match in a single transaction."""
        now = datetime.now()
        stored = [
            match.model_copy(
                update={
                    "match_id": match.match_id or str(uuid.uuid4()),
                    "created_at": now,
                    "updated_at": now,
                }
            )
            for match in matches
        ]

        try:
            with self._get_connection() as conn:
                conn.executemany(
                    """
                    INSERT INTO tournament_matches (
                        match_id, tournament_id, round_number, match_number,
                        player1_id, player2_id, winner_id, player1_score,
                        player2_score, status, created_at, updated_at, completed_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            m.match_id,
                            m.tournament_id,
                            m.round_number,
                            m.match_number,
                            m.player1_id,
                            m.player2_id,
                            m.winner_id,
                            m.player1_score,
                            m.player2_score,
                            m.status.value,
                            _to_db(m.created_at),
                            _to_db(m.updated_at),
                            _to_db(m.completed_at),
                        )
                        for m in stored
                    ],
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            if not stored or not _is_unique_violation(e, "tournament_matches.match_number"):
                raise
            # A bracket position is already taken; the batch was rolled back
            tournament_id = stored[0].tournament_id
            raise BracketsAlreadyExistError(
                tournament_id, self.count_matches(tournament_id)
            ) from e

        if stored:
            logger.info(
                f"Created {len(stored)} matches for tournament {stored[0].tournament_id}"
            )
        return stored

    def _row_to_match(self, row: sqlite3.Row) -> TournamentMatch:
        return TournamentMatch(
            match_id=row["match_id"],
            tournament_id=row["tournament_id"],
            round_number=row["round_number"],
            match_number=row["match_number"],
            player1_id=row["player1_id"],
            player2_id=row["player2_id"],
            winner_id=row["winner_id"],
            player1_score=row["player1_score"],
            player2_score=row["player2_score"],
            status=MatchStatus(row["status"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            completed_at=_parse_datetime(row["completed_at"]),
        )

    def get_match(self, match_id: str) -> TournamentMatch | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM tournament_matches WHERE match_id = ?", (match_id,)
            ).fetchone()
        return self._row_to_match(row) if row else None

    def find_match(
        self, tournament_id: str, round_number: int, match_number: int
    ) -> TournamentMatch | None:
        """Find a match by its bracket position."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM tournament_matches
                WHERE tournament_id = ? AND round_number = ? AND match_number = ?
                """,
                (tournament_id, round_number, match_number),
            ).fetchone()
        return self._row_to_match(row) if row else None

    def get_matches(
        self, tournament_id: str, round_number: int | None = None
    ) -> List[TournamentMatch]:
        """Get matches for tournament, optionally filtered by round."""
        with self._get_connection() as conn:
            if round_number is not None:
                rows = conn.execute(
                    """
                    SELECT * FROM tournament_matches
                    WHERE tournament_id = ? AND round_number = ?
                    ORDER BY match_number
                    """,
                    (tournament_id, round_number),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM tournament_matches
                    WHERE tournament_id = ?
                    ORDER BY round_number, match_number
                    """,
                    (tournament_id,),
                ).fetchall()

        return [self._row_to_match(row) for row in rows]

    def count_matches(self, tournament_id: str) -> int:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS count FROM tournament_matches WHERE tournament_id = ?",
                (tournament_id,),
            ).fetchone()
        return row["count"]

    def update_match(
        self, match_id: str, fields: dict[str, Any]
    ) -> TournamentMatch | None:
        """Apply a partial update to a match and return the stored row."""
        unknown = set(fields) - set(MATCH_UPDATE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update match columns: {sorted(unknown)}")

        set_clauses = ["updated_at = ?"]
        params: List[Any] = [datetime.now().isoformat()]
        for column in MATCH_UPDATE_COLUMNS:
            if column in fields:
                set_clauses.append(f"{column} = ?")
                params.append(_to_db(fields[column]))

        params.append(match_id)

        query = f"""
            UPDATE tournament_matches
            SET {', '.join(set_clauses)}
            WHERE match_id = ?
        """

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            updated = cursor.rowcount > 0
            conn.commit()

        if not updated:
            return None

        logger.debug(f"Updated match {match_id}: {sorted(fields)}")
        return self.get_match(match_id)

    def get_round_status(self, tournament_id: str, round_number: int) -> RoundStatus:
        """Get status of all matches in a round."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT status, COUNT(*) as count
                FROM tournament_matches
                WHERE tournament_id = ? AND round_number = ?
                GROUP BY status
                """,
                (tournament_id, round_number),
            ).fetchall()

        status_counts = {row["status"]: row["count"] for row in rows}
        total_matches = sum(status_counts.values())
        completed_matches = status_counts.get(MatchStatus.COMPLETED.value, 0)
        cancelled_matches = status_counts.get(MatchStatus.CANCELLED.value, 0)

        return RoundStatus(
            round_number=round_number,
            total_matches=total_matches,
            completed_matches=completed_matches,
            pending_matches=status_counts.get(MatchStatus.PENDING.value, 0),
            in_progress_matches=status_counts.get(MatchStatus.IN_PROGRESS.value, 0),
            cancelled_matches=cancelled_matches,
            all_completed=total_matches > 0
            and completed_matches + cancelled_matches == total_matches,
        )
