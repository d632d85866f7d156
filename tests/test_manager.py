"""Tests for the tournament lifecycle manager."""

import asyncio
from collections.abc import Callable

import pytest

from config.settings import BracketConfig
from tournaments import (
    AlreadyRegisteredError,
    AlreadyStartedError,
    BracketsAlreadyExistError,
    InsufficientParticipantsError,
    InvalidMatchUpdateError,
    InvalidParticipantOrderError,
    MatchNotFoundError,
    MatchStatus,
    MatchUpdateRequest,
    RegistrationClosedError,
    Tournament,
    TournamentDatabaseManager,
    TournamentFormat,
    TournamentFullError,
    TournamentManager,
    TournamentNotFoundError,
    TournamentStatus,
    UnsupportedFormatError,
)
from tournaments.models import TournamentMatch

MakeTournament = Callable[..., Tournament]


def _match(db: TournamentDatabaseManager, tournament_id: str, round_number: int, match_number: int) -> TournamentMatch:
    match = db.find_match(tournament_id, round_number, match_number)
    assert match is not None and match.match_id is not None
    return match


def _finish(
    manager: TournamentManager, match: TournamentMatch, winner: str, scores: tuple[int, int] = (3, 1)
):
    return asyncio.run(
        manager.update_match(
            match.match_id,
            MatchUpdateRequest(
                winner_id=winner,
                player1_score=scores[0],
                player2_score=scores[1],
                status=MatchStatus.COMPLETED,
            ),
        )
    )


class TestStartTournament:

    def test_start_persists_bracket_and_marks_ongoing(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()

        matches = asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

        assert len(matches) == 3
        assert all(m.match_id for m in matches)
        stored = manager.db.get_matches(tournament.tournament_id)
        assert [(m.round_number, m.match_number, m.player1_id, m.player2_id) for m in stored] == [
            (1, 1, "A", "B"),
            (1, 2, "C", "D"),
            (2, 1, None, None),
        ]
        assert manager.get_tournament(tournament.tournament_id).status == TournamentStatus.ONGOING

    def test_single_player_fails_and_persists_nothing(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()

        with pytest.raises(InsufficientParticipantsError):
            asyncio.run(manager.start_tournament(tournament.tournament_id, ["A"]))

        assert manager.db.get_matches(tournament.tournament_id) == []
        assert manager.get_tournament(tournament.tournament_id).status == TournamentStatus.UPCOMING

    def test_second_start_is_rejected(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

        with pytest.raises(AlreadyStartedError) as excinfo:
            asyncio.run(manager.start_tournament(tournament.tournament_id, ["X", "Y"]))

        assert excinfo.value.existing == 3

    def test_unknown_tournament(self, manager: TournamentManager) -> None:
        with pytest.raises(TournamentNotFoundError):
            asyncio.run(manager.start_tournament("missing", ["A", "B"]))

    def test_duplicate_players_rejected(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()

        with pytest.raises(InvalidParticipantOrderError):
            asyncio.run(manager.start_tournament(tournament.tournament_id, ["A", "B", "A"]))

        assert manager.db.get_matches(tournament.tournament_id) == []

    def test_round_robin_format(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament(format=TournamentFormat.ROUND_ROBIN)

        matches = asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

        assert len(matches) == 6
        assert {m.round_number for m in matches} == {1}

    def test_double_elimination_degrades_by_default(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament(format=TournamentFormat.DOUBLE_ELIMINATION)

        matches = asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

        assert len(matches) == 3

    def test_double_elimination_can_be_rejected(
        self, db: TournamentDatabaseManager, four_players: list[str]
    ) -> None:
        manager = TournamentManager(db, BracketConfig(double_elimination_mode="reject"))
        tournament = db.create_tournament(
            Tournament(
                tournament_id="double",
                name="Double",
                format=TournamentFormat.DOUBLE_ELIMINATION,
                max_participants=8,
            )
        )

        with pytest.raises(UnsupportedFormatError):
            asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

        assert db.get_matches(tournament.tournament_id) == []


class TestGenerateBrackets:

    def _register(self, manager: TournamentManager, tournament_id: str, players: list[str]) -> None:
        for player in players:
            asyncio.run(manager.register_participant(tournament_id, player))

    def test_generates_from_confirmed_registrations(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()
        players = [f"user-{i}" for i in range(6)]
        self._register(manager, tournament.tournament_id, players)

        matches = asyncio.run(manager.generate_brackets(tournament.tournament_id))

        first_round = [m for m in matches if m.round_number == 1]
        seeded = [p for m in first_round for p in (m.player1_id, m.player2_id)]
        assert sorted(seeded) == sorted(players)
        assert len(matches) == 3 + 2 + 1
        assert manager.get_tournament(tournament.tournament_id).status == TournamentStatus.ONGOING

    def test_second_call_fails_and_leaves_bracket(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        self._register(manager, tournament.tournament_id, four_players)
        asyncio.run(manager.generate_brackets(tournament.tournament_id))
        before = manager.db.get_matches(tournament.tournament_id)

        with pytest.raises(BracketsAlreadyExistError):
            asyncio.run(manager.generate_brackets(tournament.tournament_id))

        assert manager.db.get_matches(tournament.tournament_id) == before

    def test_no_registrations_fails_without_creating_any(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()

        with pytest.raises(InsufficientParticipantsError) as excinfo:
            asyncio.run(manager.generate_brackets(tournament.tournament_id))

        assert excinfo.value.count == 0
        assert manager.list_registrations(tournament.tournament_id) == []
        assert manager.db.get_matches(tournament.tournament_id) == []

    def test_uses_tournament_format(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament(format=TournamentFormat.ROUND_ROBIN)
        self._register(manager, tournament.tournament_id, four_players)

        matches = asyncio.run(manager.generate_brackets(tournament.tournament_id))

        assert len(matches) == 6


class TestRegistration:

    def test_register_and_list(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()

        asyncio.run(manager.register_participant(tournament.tournament_id, "u1"))
        asyncio.run(manager.register_participant(tournament.tournament_id, "u2"))

        registrations = manager.list_registrations(tournament.tournament_id)
        assert [r.participant_id for r in registrations] == ["u1", "u2"]

    def test_duplicate_registration(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.register_participant(tournament.tournament_id, "u1"))

        with pytest.raises(AlreadyRegisteredError):
            asyncio.run(manager.register_participant(tournament.tournament_id, "u1"))

    def test_full_tournament(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament(max_participants=2)
        asyncio.run(manager.register_participant(tournament.tournament_id, "u1"))
        asyncio.run(manager.register_participant(tournament.tournament_id, "u2"))

        with pytest.raises(TournamentFullError):
            asyncio.run(manager.register_participant(tournament.tournament_id, "u3"))

    def test_closed_after_start(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

        with pytest.raises(RegistrationClosedError):
            asyncio.run(manager.register_participant(tournament.tournament_id, "late"))

    def test_unknown_tournament(self, manager: TournamentManager) -> None:
        with pytest.raises(TournamentNotFoundError):
            asyncio.run(manager.register_participant("missing", "u1"))


class TestUpdateMatch:

    def test_four_player_tournament_to_champion(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        tid = tournament.tournament_id
        asyncio.run(manager.start_tournament(tid, four_players))

        outcome = _finish(manager, _match(manager.db, tid, 1, 1), "A", (3, 1))
        assert outcome.match.status == MatchStatus.COMPLETED
        assert (outcome.match.player1_score, outcome.match.player2_score) == (3, 1)
        assert outcome.match.completed_at is not None
        assert outcome.advanced_to is not None
        assert outcome.advanced_to.player1_id == "A"
        assert not outcome.round_completed
        assert not outcome.tournament_completed

        outcome = _finish(manager, _match(manager.db, tid, 1, 2), "C", (2, 0))
        assert outcome.advanced_to is not None
        assert (outcome.advanced_to.player1_id, outcome.advanced_to.player2_id) == ("A", "C")
        assert outcome.round_completed
        assert not outcome.tournament_completed

        outcome = _finish(manager, _match(manager.db, tid, 2, 1), "A")
        assert outcome.advanced_to is None
        assert outcome.tournament_completed

        finished = manager.get_tournament(tid)
        assert finished.status == TournamentStatus.COMPLETED
        assert finished.winner_id == "A"

    def test_two_player_final_completes_tournament(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, ["A", "B"]))

        outcome = _finish(manager, _match(manager.db, tournament.tournament_id, 1, 1), "B")

        assert outcome.tournament_completed
        assert manager.get_tournament(tournament.tournament_id).winner_id == "B"

    def test_winner_must_be_a_player(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))
        match = _match(manager.db, tournament.tournament_id, 1, 1)

        with pytest.raises(InvalidMatchUpdateError):
            _finish(manager, match, "C")

        assert _match(manager.db, tournament.tournament_id, 1, 1).status == MatchStatus.PENDING

    def test_partial_update_keeps_other_fields(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))
        match = _match(manager.db, tournament.tournament_id, 1, 1)

        outcome = asyncio.run(
            manager.update_match(
                match.match_id,
                MatchUpdateRequest(player1_score=2, status=MatchStatus.IN_PROGRESS),
            )
        )

        assert outcome.match.player1_score == 2
        assert outcome.match.player2_score == 0
        assert (outcome.match.player1_id, outcome.match.player2_id) == ("A", "B")
        assert outcome.match.status == MatchStatus.IN_PROGRESS
        assert outcome.advanced_to is None

    def test_completed_without_winner_does_not_advance(
        self, manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))
        match = _match(manager.db, tournament.tournament_id, 1, 1)

        outcome = asyncio.run(
            manager.update_match(match.match_id, MatchUpdateRequest(status=MatchStatus.COMPLETED))
        )

        assert outcome.advanced_to is None
        assert _match(manager.db, tournament.tournament_id, 2, 1).player1_id is None

    def test_bye_match_waits_for_operator(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        """Byes are not auto-advanced; completing the bye by hand advances it."""
        tournament = make_tournament()
        tid = tournament.tournament_id
        asyncio.run(manager.start_tournament(tid, ["A", "B", "C"]))

        _finish(manager, _match(manager.db, tid, 1, 1), "A")
        bye = _match(manager.db, tid, 1, 2)
        assert bye.is_bye and bye.status == MatchStatus.PENDING
        assert _match(manager.db, tid, 2, 1).player2_id is None

        outcome = _finish(manager, bye, "C", (0, 0))
        assert outcome.advanced_to is not None
        assert (outcome.advanced_to.player1_id, outcome.advanced_to.player2_id) == ("A", "C")

    def test_round_robin_never_advances_and_completes(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tournament = make_tournament(format=TournamentFormat.ROUND_ROBIN)
        tid = tournament.tournament_id
        asyncio.run(manager.start_tournament(tid, ["A", "B", "C"]))
        matches = manager.db.get_matches(tid)

        outcomes = [_finish(manager, m, m.player1_id) for m in matches]

        assert all(o.advanced_to is None for o in outcomes)
        assert [o.tournament_completed for o in outcomes] == [False, False, True]
        finished = manager.get_tournament(tid)
        assert finished.status == TournamentStatus.COMPLETED
        assert finished.winner_id is None

    def test_advance_failure_is_swallowed(
        self,
        manager: TournamentManager,
        make_tournament: MakeTournament,
        four_players: list[str],
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        tournament = make_tournament()
        asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))
        match = _match(manager.db, tournament.tournament_id, 1, 1)

        def broken_find_match(*args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(manager.db, "find_match", broken_find_match)

        outcome = _finish(manager, match, "A")

        assert outcome.match.status == MatchStatus.COMPLETED
        assert outcome.match.winner_id == "A"
        assert outcome.advanced_to is None
        assert "connection reset" in caplog.text

    def test_unknown_match(self, manager: TournamentManager) -> None:
        with pytest.raises(MatchNotFoundError):
            asyncio.run(manager.update_match("missing", MatchUpdateRequest(player1_score=1)))


def test_bracket_view_and_round_status(
    manager: TournamentManager, make_tournament: MakeTournament
) -> None:
    tournament = make_tournament()
    asyncio.run(manager.start_tournament(tournament.tournament_id, [f"p{i}" for i in range(5)]))

    view = manager.get_bracket_view(tournament.tournament_id)
    status = manager.get_round_status(tournament.tournament_id, 1)

    assert view.total_rounds == 3
    assert len(view.matches) == 3 + 2 + 1
    assert status.total_matches == 3
    assert status.pending_matches == 3
    assert not status.all_completed


def test_delete_tournament_removes_everything(
    manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
) -> None:
    tournament = make_tournament()
    asyncio.run(manager.register_participant(tournament.tournament_id, "u1"))
    asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

    asyncio.run(manager.delete_tournament(tournament.tournament_id))

    assert manager.db.get_tournament(tournament.tournament_id) is None
    assert manager.db.get_matches(tournament.tournament_id) == []
    assert manager.db.get_registrations(tournament.tournament_id) == []
    with pytest.raises(TournamentNotFoundError):
        asyncio.run(manager.delete_tournament(tournament.tournament_id))


class TestChampionCorrection:
    """Edits to a decided final keep the tournament record in step."""

    def _play_to_champion(self, manager: TournamentManager, tid: str) -> TournamentMatch:
        asyncio.run(manager.start_tournament(tid, ["A", "B", "C", "D"]))
        _finish(manager, _match(manager.db, tid, 1, 1), "A")
        _finish(manager, _match(manager.db, tid, 1, 2), "C")
        _finish(manager, _match(manager.db, tid, 2, 1), "A")
        return _match(manager.db, tid, 2, 1)

    def test_corrected_final_winner_replaces_champion(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tid = make_tournament().tournament_id
        final = self._play_to_champion(manager, tid)

        outcome = _finish(manager, final, "C")

        assert outcome.tournament_completed
        tournament = manager.get_tournament(tid)
        assert tournament.status == TournamentStatus.COMPLETED
        assert tournament.winner_id == outcome.match.winner_id == "C"

    def test_reopened_final_reopens_tournament(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tid = make_tournament().tournament_id
        final = self._play_to_champion(manager, tid)

        outcome = asyncio.run(
            manager.update_match(
                final.match_id, MatchUpdateRequest(status=MatchStatus.IN_PROGRESS)
            )
        )

        assert not outcome.tournament_completed
        tournament = manager.get_tournament(tid)
        assert tournament.status == TournamentStatus.ONGOING
        assert tournament.winner_id is None

    def test_earlier_round_edit_keeps_champion(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tid = make_tournament().tournament_id
        self._play_to_champion(manager, tid)

        outcome = asyncio.run(
            manager.update_match(
                _match(manager.db, tid, 1, 1).match_id,
                MatchUpdateRequest(player1_score=5),
            )
        )

        assert outcome.tournament_completed
        assert manager.get_tournament(tid).winner_id == "A"

    def test_reopened_round_robin_match_reopens_tournament(
        self, manager: TournamentManager, make_tournament: MakeTournament
    ) -> None:
        tid = make_tournament(format=TournamentFormat.ROUND_ROBIN).tournament_id
        asyncio.run(manager.start_tournament(tid, ["A", "B"]))
        match = _match(manager.db, tid, 1, 1)
        _finish(manager, match, "A")

        asyncio.run(
            manager.update_match(match.match_id, MatchUpdateRequest(status=MatchStatus.PENDING))
        )

        assert manager.get_tournament(tid).status == TournamentStatus.ONGOING


class TestConcurrentWrites:
    """A request that passes the read checks still loses at the insert."""

    def test_registration_race_is_a_conflict(
        self,
        manager: TournamentManager,
        make_tournament: MakeTournament,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        tid = make_tournament().tournament_id
        # Both requests read the registrations before either writes
        monkeypatch.setattr(manager.db, "get_registrations", lambda *args, **kwargs: [])
        asyncio.run(manager.register_participant(tid, "A"))

        with pytest.raises(AlreadyRegisteredError):
            asyncio.run(manager.register_participant(tid, "A"))

        monkeypatch.undo()
        assert [r.participant_id for r in manager.list_registrations(tid)] == ["A"]

    def test_generate_race_is_a_conflict(
        self,
        manager: TournamentManager,
        make_tournament: MakeTournament,
        four_players: list[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        tid = make_tournament().tournament_id
        for player in four_players:
            asyncio.run(manager.register_participant(tid, player))
        first = asyncio.run(manager.generate_brackets(tid))
        monkeypatch.setattr(manager.db, "count_matches", lambda tournament_id: 0)

        with pytest.raises(BracketsAlreadyExistError):
            asyncio.run(manager.generate_brackets(tid))

        assert manager.db.get_matches(tid) == first

    def test_start_race_is_a_conflict(
        self,
        manager: TournamentManager,
        make_tournament: MakeTournament,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        tid = make_tournament().tournament_id
        asyncio.run(manager.start_tournament(tid, ["A", "B"]))
        monkeypatch.setattr(manager.db, "count_matches", lambda tournament_id: 0)

        with pytest.raises(AlreadyStartedError):
            asyncio.run(manager.start_tournament(tid, ["C", "D"]))

        assert [(m.player1_id, m.player2_id) for m in manager.db.get_matches(tid)] == [("A", "B")]


def test_bracket_view_round_robin_has_one_round(
    manager: TournamentManager, make_tournament: MakeTournament, four_players: list[str]
) -> None:
    tournament = make_tournament(format=TournamentFormat.ROUND_ROBIN)
    asyncio.run(manager.start_tournament(tournament.tournament_id, four_players))

    assert manager.get_bracket_view(tournament.tournament_id).total_rounds == 1
