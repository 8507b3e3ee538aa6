"""
Tests for demo dataset seeding and clearing.
"""

import pytest
from sqlmodel import Session, select

from ringside.models.bracket import Bracket
from ringside.models.club import Club
from ringside.models.competition import Competition, CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.models.match import Match
from ringside.services.demo_seed import DemoSeedOptions, clear_all_data, demo_seed_preset, seed_all
from ringside.services.synthesis_config import synthesis_preset
from tests.conftest import TODAY


def _small_options(**overrides) -> DemoSeedOptions:
    options = DemoSeedOptions(
        clubs=(3, 4),
        fighters=(30, 40),
        competitions=(2, 2),
        participants_per_competition=(10, 15),
        seed="seed-test",
        synthesis=synthesis_preset("dev"),
    )
    for key, value in overrides.items():
        setattr(options, key, value)
    return options


class TestSeedAll:
    def test_counts_within_ranges(self, session: Session):
        summary = seed_all(session, _small_options(), TODAY)

        assert 3 <= summary["clubs"] <= 4
        assert 30 <= summary["fighters"] <= 40
        assert summary["competitions"] == 2
        assert len(session.exec(select(Competition)).all()) == 2
        assert len(summary["results"]) == 2

    def test_competition_count_respects_minimum(self, session: Session):
        options = _small_options(competitions=(1, 1))
        options.synthesis.min_competitions = 3
        summary = seed_all(session, options, TODAY)
        assert summary["competitions"] == 3

    def test_registrations_follow_competition_disciplines(self, session: Session):
        seed_all(session, _small_options(generate_brackets=False), TODAY)

        for competition in session.exec(select(Competition)).all():
            assert competition.start_date <= competition.end_date
            assert competition.registration_date < competition.start_date
            positions = [r.position for r in competition.registrations]
            assert positions == list(range(1, len(positions) + 1))
            for registration in competition.registrations:
                fighter = session.get(Fighter, registration.fighter_id)
                assert fighter.discipline in competition.disciplines

    def test_fighters_belong_to_clubs(self, session: Session):
        seed_all(session, _small_options(generate_brackets=False), TODAY)
        clubs = {c.id: c.name for c in session.exec(select(Club)).all()}
        for fighter in session.exec(select(Fighter)).all():
            assert clubs[fighter.club_id] == fighter.club

    def test_without_brackets(self, session: Session):
        summary = seed_all(session, _small_options(generate_brackets=False), TODAY)
        assert summary["brackets"] == 0
        assert summary["results"] == []
        assert session.exec(select(Bracket)).all() == []

    def test_brackets_created(self, session: Session):
        summary = seed_all(session, _small_options(), TODAY)
        brackets = session.exec(select(Bracket)).all()
        assert summary["brackets"] == len(brackets)
        for bracket in brackets:
            matches = session.exec(select(Match).where(Match.bracket_id == bracket.id)).all()
            assert len(matches) >= 1

    def test_same_seed_same_dataset(self, session: Session):
        seed_all(session, _small_options(generate_brackets=False), TODAY)
        first = [(f.first_name, f.last_name, f.weight) for f in session.exec(select(Fighter).order_by(Fighter.id))]

        seed_all(session, _small_options(generate_brackets=False), TODAY)
        second = [(f.first_name, f.last_name, f.weight) for f in session.exec(select(Fighter).order_by(Fighter.id))]

        assert first == second

    def test_reseed_replaces_data(self, session: Session):
        seed_all(session, _small_options(generate_brackets=False), TODAY)
        summary = seed_all(session, _small_options(generate_brackets=False), TODAY)
        assert len(session.exec(select(Fighter)).all()) == summary["fighters"]


class TestClear:
    def test_clear_all_data(self, session: Session):
        summary = seed_all(session, _small_options(), TODAY)

        counts = clear_all_data(session)

        assert counts["clubs"] == summary["clubs"]
        assert counts["competitions"] == summary["competitions"]
        assert counts["brackets"] == summary["brackets"]
        for model in (Match, Bracket, CompetitionFighter, Competition, Fighter, Club):
            assert session.exec(select(model)).all() == []

    def test_clear_empty_database(self, session: Session):
        counts = clear_all_data(session)
        assert set(counts.values()) == {0}


class TestPresets:
    def test_known_presets(self):
        assert demo_seed_preset("dev").synthesis.max_brackets_per_competition == 3
        assert demo_seed_preset("demo").synthesis.max_brackets_per_competition == 8

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            demo_seed_preset("production")
