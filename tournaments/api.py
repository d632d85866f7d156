"""Tournament API endpoint handlers."""

import logging
from datetime import datetime
from typing import Any

from fastapi import HTTPException

from .exceptions import TournamentError
from .manager import TournamentManager
from .models import (
    MatchUpdateRequest,
    Registration,
    StartTournamentRequest,
    Tournament,
    TournamentCreateRequest,
    TournamentMatch,
)

logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _tournament_to_dict(tournament: Tournament) -> dict[str, Any]:
    return {
        "tournament_id": tournament.tournament_id,
        "name": tournament.name,
        "description": tournament.description,
        "format": tournament.format.value,
        "status": tournament.status.value,
        "max_participants": tournament.max_participants,
        "card_id": tournament.card_id,
        "start_date": _iso(tournament.start_date),
        "end_date": _iso(tournament.end_date),
        "winner_id": tournament.winner_id,
        "created_at": _iso(tournament.created_at),
        "updated_at": _iso(tournament.updated_at),
    }


def _match_to_dict(match: TournamentMatch) -> dict[str, Any]:
    return {
        "bracket_id": match.match_id,
        "tournament_id": match.tournament_id,
        "round_number": match.round_number,
        "match_number": match.match_number,
        "player1_id": match.player1_id,
        "player2_id": match.player2_id,
        "winner_id": match.winner_id,
        "player1_score": match.player1_score,
        "player2_score": match.player2_score,
        "status": match.status.value,
        "is_bye": match.is_bye,
        "created_at": _iso(match.created_at),
        "updated_at": _iso(match.updated_at),
        "completed_time": _iso(match.completed_at),
    }


def _registration_to_dict(registration: Registration) -> dict[str, Any]:
    return {
        "registration_id": registration.registration_id,
        "tournament_id": registration.tournament_id,
        "user_id": registration.participant_id,
        "status": registration.status.value,
        "registration_date": _iso(registration.registration_date),
    }


def _to_http_error(e: TournamentError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


class TournamentAPI:
    """FastAPI endpoint handlers for tournament operations."""

    def __init__(self, tournament_manager: TournamentManager):
        self.manager = tournament_manager

    async def create_tournament(
        self, request: TournamentCreateRequest
    ) -> dict[str, Any]:
        """Create a new tournament."""
        try:
            tournament = await self.manager.create_tournament(request)
            return _tournament_to_dict(tournament)

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to create tournament: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def list_tournaments(
        self, limit: int | None = None, offset: int = 0, card_id: int | None = None
    ) -> dict[str, Any]:
        """List all tournaments."""
        try:
            tournaments = self.manager.list_tournaments(limit, offset, card_id)

            return {
                "tournaments": [
                    {
                        "tournament_id": t.tournament_id,
                        "name": t.name,
                        "format": t.format.value,
                        "status": t.status.value,
                        "max_participants": t.max_participants,
                        "registration_count": t.registration_count,
                        "card_id": t.card_id,
                        "created_at": _iso(t.created_at),
                        "winner_id": t.winner_id,
                    }
                    for t in tournaments
                ],
                "count": len(tournaments),
            }

        except Exception as e:
            logger.error(f"Failed to list tournaments: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def get_tournament(self, tournament_id: str) -> dict[str, Any]:
        """Get tournament details."""
        try:
            tournament = self.manager.get_tournament(tournament_id)
            registrations = self.manager.list_registrations(tournament_id)

            details = _tournament_to_dict(tournament)
            details["registration_count"] = len(registrations)
            return details

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to get tournament {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def delete_tournament(self, tournament_id: str) -> dict[str, Any]:
        """Delete a tournament and all related data."""
        try:
            await self.manager.delete_tournament(tournament_id)

            return {
                "message": "Tournament deleted successfully",
                "deleted_tournament_id": tournament_id,
            }

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to delete tournament {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def register(self, tournament_id: str, participant_id: str) -> dict[str, Any]:
        """Register a participant for a tournament."""
        try:
            registration = await self.manager.register_participant(
                tournament_id, participant_id
            )

            return {
                "message": "Registration successful",
                "registration_id": registration.registration_id,
                "user_id": registration.participant_id,
            }

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to register for tournament {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def get_registrations(self, tournament_id: str) -> list[dict[str, Any]]:
        """Get confirmed registrations for a tournament."""
        try:
            registrations = self.manager.list_registrations(tournament_id)
            return [_registration_to_dict(r) for r in registrations]

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(
                f"Failed to get registrations for tournament {tournament_id}: {e}"
            )
            raise HTTPException(status_code=500, detail="Internal server error")

    async def start_tournament(
        self, tournament_id: str, request: StartTournamentRequest
    ) -> dict[str, Any]:
        """Start a tournament with the organiser's player order."""
        try:
            matches = await self.manager.start_tournament(
                tournament_id, request.player_order
            )

            return {
                "message": "Tournament started successfully",
                "matches_created": len(matches),
            }

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to start tournament {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to start tournament")

    async def generate_brackets(self, tournament_id: str) -> dict[str, Any]:
        """Generate brackets from confirmed registrations."""
        try:
            matches = await self.manager.generate_brackets(tournament_id)

            return {
                "message": "Brackets generated successfully",
                "matches_created": len(matches),
            }

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to generate brackets for {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate brackets")

    async def get_brackets(self, tournament_id: str) -> list[dict[str, Any]]:
        """Get all matches of a tournament ordered by round and match number."""
        try:
            bracket_data = self.manager.get_bracket_view(tournament_id)
            return [_match_to_dict(m) for m in bracket_data.matches]

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to get brackets for tournament {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def update_match(
        self, match_id: str, request: MatchUpdateRequest
    ) -> dict[str, Any]:
        """Update scores, players or status of a match."""
        try:
            outcome = await self.manager.update_match(match_id, request)

            return {
                "message": "Match updated successfully",
                "match": _match_to_dict(outcome.match),
                "advanced_to": (
                    _match_to_dict(outcome.advanced_to) if outcome.advanced_to else None
                ),
                "round_completed": outcome.round_completed,
                "tournament_completed": outcome.tournament_completed,
            }

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to update match {match_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update match")

    async def get_round_status(
        self, tournament_id: str, round_number: int
    ) -> dict[str, Any]:
        """Get status of all matches in a specific round."""
        try:
            round_status = self.manager.get_round_status(tournament_id, round_number)

            return {
                "tournament_id": tournament_id,
                "round_number": round_number,
                "total_matches": round_status.total_matches,
                "completed_matches": round_status.completed_matches,
                "pending_matches": round_status.pending_matches,
                "in_progress_matches": round_status.in_progress_matches,
                "cancelled_matches": round_status.cancelled_matches,
                "all_completed": round_status.all_completed,
                "completion_percentage": (
                    round_status.completed_matches / round_status.total_matches * 100
                    if round_status.total_matches > 0
                    else 0
                ),
            }

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(
                f"Failed to get round status for tournament {tournament_id}, "
                f"round {round_number}: {e}"
            )
            raise HTTPException(status_code=500, detail="Internal server error")

    async def get_results(self, tournament_id: str) -> list[dict[str, Any]]:
        """Get placements ordered best first."""
        try:
            results = self.manager.get_results(tournament_id)
            return [
                {
                    "placement": r.placement,
                    "user_id": r.participant_id,
                    "wins": r.wins,
                    "losses": r.losses,
                }
                for r in results
            ]

        except TournamentError as e:
            raise _to_http_error(e)
        except Exception as e:
            logger.error(f"Failed to get results for tournament {tournament_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch tournament results")
