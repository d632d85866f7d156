"""Tournament management endpoints."""

import logging

from fastapi import APIRouter, Depends, Request

from tournaments import (
    MatchUpdateRequest,
    RegistrationRequest,
    StartTournamentRequest,
    TournamentAPI,
    TournamentCreateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_tournament_api(request: Request) -> TournamentAPI:
    """Tournament API instance created by the application factory."""
    return request.app.state.tournament_api


@router.post("/tournaments")
async def create_tournament(
    request: TournamentCreateRequest, api: TournamentAPI = Depends(get_tournament_api)
):
    """Create a new tournament."""
    return await api.create_tournament(request)


@router.get("/tournaments")
async def list_tournaments(
    limit: int | None = None,
    offset: int = 0,
    card_id: int | None = None,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """List all tournaments, optionally only those of one card."""
    return await api.list_tournaments(limit, offset, card_id)


# Registered before /tournaments/{tournament_id} routes so "brackets" is
# never read as a tournament ID.
@router.patch("/tournaments/brackets/{match_id}")
async def update_match(
    match_id: str,
    request: MatchUpdateRequest,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Update a match; completing it advances the winner."""
    return await api.update_match(match_id, request)


@router.get("/tournaments/{tournament_id}")
async def get_tournament(
    tournament_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Get tournament details."""
    return await api.get_tournament(tournament_id)


@router.delete("/tournaments/{tournament_id}")
async def delete_tournament(
    tournament_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Delete a tournament and all related data."""
    return await api.delete_tournament(tournament_id)


@router.post("/tournaments/{tournament_id}/register")
async def register_for_tournament(
    tournament_id: str,
    request: RegistrationRequest,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Register a participant."""
    return await api.register(tournament_id, request.participant_id)


@router.get("/tournaments/{tournament_id}/registrations")
async def get_registrations(
    tournament_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Get confirmed registrations."""
    return await api.get_registrations(tournament_id)


@router.post("/tournaments/{tournament_id}/start")
async def start_tournament(
    tournament_id: str,
    request: StartTournamentRequest,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Start a tournament with an explicit player order."""
    return await api.start_tournament(tournament_id, request)


@router.post("/tournaments/{tournament_id}/generate-brackets")
async def generate_brackets(
    tournament_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Generate brackets from confirmed registrations in random order."""
    return await api.generate_brackets(tournament_id)


@router.get("/tournaments/{tournament_id}/brackets")
async def get_brackets(
    tournament_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Get all matches of a tournament."""
    return await api.get_brackets(tournament_id)


@router.get("/tournaments/{tournament_id}/rounds/{round_number}/status")
async def get_round_status(
    tournament_id: str,
    round_number: int,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Get status of all matches in a specific round."""
    return await api.get_round_status(tournament_id, round_number)


@router.get("/tournaments/{tournament_id}/results")
async def get_results(
    tournament_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Get placements derived from completed matches."""
    return await api.get_results(tournament_id)
