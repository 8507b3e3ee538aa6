"""
Tests for division grouping, backfill and bracket synthesis per competition.

All fixtures use the fixed TODAY so derived age groups never drift.
"""

from datetime import date

import pytest
from pydantic import ValidationError
from sqlmodel import Session, select

from ringside.models.bracket import Bracket
from ringside.models.competition import CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.services.bracket_synthesis import (
    backfill_fighters_for_division,
    choose_bracket_size,
    diagnose_empty_competition,
    group_eligible_fighters_by_division,
    synthesize_all,
    synthesize_for_competition,
)
from ringside.services.chain_validator import ChainReport, verify_chain
from ringside.services.division_rules import DivisionKey, division_key_for
from ringside.services.repositories import Repositories, SqlBracketRepository, SqlFighterRepository
from ringside.services.synthesis_config import AllowedDivisions, SynthesisConfig, synthesis_preset
from ringside.utils.seeded_random import SeededRandom
from tests.conftest import TODAY

ADULT_K1_70 = DivisionKey("Adult", "K1", "-70kg", "M")


class FlakyFighters(SqlFighterRepository):
    """Creates `succeed` fighters, then every create raises."""

    def __init__(self, session: Session, succeed: int):
        super().__init__(session)
        self.remaining = succeed

    def create(self, spec):
        if self.remaining <= 0:
            raise RuntimeError("disk full")
        self.remaining -= 1
        return super().create(spec)


def _config(**overrides) -> SynthesisConfig:
    return synthesis_preset("default").model_copy(update={"deterministic_seed": "test-seed", **overrides})


# ============================================================================
# Pure helpers
# ============================================================================


class TestChooseBracketSize:
    def test_smallest_preferred_that_fits(self):
        assert choose_bracket_size(5, [16, 4, 8]) == 8

    def test_does_not_mutate_preferred(self):
        preferred = [16, 4, 8]
        choose_bracket_size(5, preferred)
        assert preferred == [16, 4, 8]

    def test_falls_back_to_power_of_two(self):
        assert choose_bracket_size(20, [4, 8, 16]) == 32

    def test_exact_fit(self):
        assert choose_bracket_size(4, [4, 8]) == 4


class TestGrouping:
    def test_groups_in_registration_order(self, make_fighter):
        a = make_fighter(first_name="A")
        b = make_fighter(first_name="B", weight=80)
        c = make_fighter(first_name="C")
        groups = group_eligible_fighters_by_division([a, b, c], AllowedDivisions(), TODAY)

        assert list(groups) == [ADULT_K1_70, DivisionKey("Adult", "K1", "-81kg", "M")]
        assert groups[ADULT_K1_70] == [a.id, c.id]

    def test_non_whitelisted_fighters_are_dropped(self, make_fighter):
        child = make_fighter(birth_date=date(2016, 1, 1), weight=35)
        groups = group_eligible_fighters_by_division([child], AllowedDivisions(), TODAY)
        assert groups == {}

    def test_every_component_is_checked(self, make_fighter):
        fighter = make_fighter()
        allowed = AllowedDivisions(genders=["F"])
        assert group_eligible_fighters_by_division([fighter], allowed, TODAY) == {}

    def test_no_empty_groups(self, make_fighter):
        fighters = [make_fighter(weight=w) for w in (58, 68, 68, 100)]
        groups = group_eligible_fighters_by_division(fighters, AllowedDivisions(), TODAY)
        assert all(groups.values())
        assert sum(len(ids) for ids in groups.values()) == 4


class TestConfig:
    def test_presets(self):
        assert synthesis_preset("default").preferred_bracket_sizes == [4, 8, 16]
        assert synthesis_preset("dev").max_brackets_per_competition == 3
        assert synthesis_preset("demo").max_brackets_per_competition == 8
        assert "U12" not in synthesis_preset("default").allowed_divisions.age_groups

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            synthesis_preset("huge")

    def test_seed_from_environment(self, monkeypatch):
        monkeypatch.setenv("SYNTHESIS_SEED", "from-env")
        assert SynthesisConfig().deterministic_seed == "from-env"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_fighters_per_bracket": 1},
            {"preferred_bracket_sizes": []},
            {"preferred_bracket_sizes": [0, 4]},
            {"preferred_bracket_sizes": [6]},
            {"backfill_strategy": "alphabetical"},
            {"allowed_divisions": {"age_groups": ["U99"]}},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            SynthesisConfig(**overrides)


# ============================================================================
# Backfill
# ============================================================================


class TestBackfill:
    def test_no_clubs(self, session: Session):
        repos = Repositories.from_session(session)
        created = backfill_fighters_for_division(repos, ADULT_K1_70, 2, "club-distributed", SeededRandom("x"), TODAY)
        assert created == []

    def test_club_distributed_round_robins(self, session: Session, make_club):
        first = make_club(name="Dinamo Fight Club")
        second = make_club(name="Rapid Fighters")
        repos = Repositories.from_session(session)

        created = backfill_fighters_for_division(repos, ADULT_K1_70, 3, "club-distributed", SeededRandom("x"), TODAY)
        clubs = [session.get(Fighter, fid).club_id for fid in created]
        assert clubs == [first.id, second.id, first.id]

    def test_balanced_prefers_emptiest_club(self, session: Session, make_club, make_fighter):
        busy = make_club(name="Dinamo Fight Club")
        empty = make_club(name="Rapid Fighters")
        for _ in range(3):
            make_fighter(club=busy)
        repos = Repositories.from_session(session)

        created = backfill_fighters_for_division(repos, ADULT_K1_70, 2, "balanced", SeededRandom("x"), TODAY)
        assert [session.get(Fighter, fid).club_id for fid in created] == [empty.id, empty.id]

    def test_failed_create_returns_fighters_created_so_far(self, session: Session, make_club):
        make_club()
        repos = Repositories.from_session(session)
        repos.fighters = FlakyFighters(session, succeed=1)

        created = backfill_fighters_for_division(repos, ADULT_K1_70, 3, "club-distributed", SeededRandom("x"), TODAY)

        assert len(created) == 1
        assert [f.id for f in session.exec(select(Fighter)).all()] == created

    def test_random_uses_existing_clubs(self, session: Session, make_club):
        club_ids = {make_club(name=f"Club {i}").id for i in range(3)}
        repos = Repositories.from_session(session)

        created = backfill_fighters_for_division(repos, ADULT_K1_70, 4, "random", SeededRandom("x"), TODAY)
        assert len(created) == 4
        assert {session.get(Fighter, fid).club_id for fid in created} <= club_ids

    def test_backfilled_fighters_match_division(self, session: Session, make_club):
        make_club()
        repos = Repositories.from_session(session)
        division = DivisionKey("U21", "Boxing", "-60kg", "F")

        for fid in backfill_fighters_for_division(repos, division, 3, "club-distributed", SeededRandom("d"), TODAY):
            f = session.get(Fighter, fid)
            assert division_key_for(f.birth_date, f.discipline, f.weight, f.gender, TODAY) == division


# ============================================================================
# Synthesis
# ============================================================================


class TestSynthesizeForCompetition:
    def test_backfills_short_division(self, session: Session, make_club, make_fighter, make_competition):
        """2 fighters, min 4, one club: 2 fighters created and one valid bracket."""
        club = make_club()
        fighters = [make_fighter(first_name="Andrei", club=club), make_fighter(first_name="Mihai", club=club)]
        competition = make_competition(fighters)

        result = synthesize_for_competition(session, competition.id, _config(), TODAY)

        assert result.brackets_created == 1
        assert result.brackets_attempted == 1
        messages = result.per_division_diagnostics[ADULT_K1_70.normalized()]
        assert messages[0] == "Backfilled 2 fighters (had 2, needed 4)"
        assert messages[1] == "Created bracket: 4 fighters -> 4-slot bracket with 3 matches"

        outcome = result.outcomes[0]
        assert outcome.status == "created"
        assert len(outcome.backfilled_ids) == 2
        assert outcome.fighter_ids[:2] == [f.id for f in fighters]

        registrations = session.exec(
            select(CompetitionFighter)
            .where(CompetitionFighter.competition_id == competition.id)
            .order_by(CompetitionFighter.position)
        ).all()
        assert [r.fighter_id for r in registrations] == outcome.fighter_ids
        assert all(r.discipline == "K1" for r in registrations)

        bracket = session.get(Bracket, outcome.bracket_id)
        assert bracket.status == "published"
        assert bracket.seed_method == "random"
        assert bracket.division == ADULT_K1_70
        matches = SqlBracketRepository(session).get_matches(competition.id, bracket.id)
        assert len(matches) == 3
        assert verify_chain(matches).ok

    def test_backfill_disabled(self, session: Session, make_club, make_fighter, make_competition):
        make_club()
        competition = make_competition([make_fighter(), make_fighter()])

        result = synthesize_for_competition(session, competition.id, _config(auto_backfill_fighters=False), TODAY)

        assert result.brackets_created == 0
        assert result.brackets_attempted == 1
        assert result.outcomes[0].reason == "INSUFFICIENT_FIGHTERS"
        assert result.per_division_diagnostics[ADULT_K1_70.normalized()] == [
            "Insufficient fighters: 2 < 4",
            "Auto-backfill disabled",
        ]

    def test_backfill_without_clubs_fails_division(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter(), make_fighter()])

        result = synthesize_for_competition(session, competition.id, _config(), TODAY)

        assert result.brackets_created == 0
        assert result.outcomes[0].status == "failed"
        assert result.outcomes[0].reason == "INSUFFICIENT_FIGHTERS"
        assert result.per_division_diagnostics[ADULT_K1_70.normalized()][-1] == "Backfill failed"

    def test_one_failure_does_not_block_other_divisions(self, session: Session, make_fighter, make_competition):
        short = [make_fighter(weight=58)]
        full = [make_fighter(first_name=f"F{i}") for i in range(5)]
        competition = make_competition(short + full)

        result = synthesize_for_competition(session, competition.id, _config(), TODAY)

        assert result.brackets_attempted == 2
        assert result.brackets_created == 1
        assert [o.status for o in result.outcomes] == ["failed", "created"]
        assert result.outcomes[1].bracket_size == 8
        assert result.outcomes[1].match_count == 7

    def test_max_brackets(self, session: Session, make_fighter, make_competition):
        light = [make_fighter(weight=68) for _ in range(4)]
        heavy = [make_fighter(weight=80) for _ in range(4)]
        competition = make_competition(light + heavy)

        result = synthesize_for_competition(session, competition.id, _config(max_brackets_per_competition=1), TODAY)

        assert result.brackets_created == 1
        assert result.brackets_attempted == 1
        assert result.outcomes[1].status == "skipped"
        assert result.outcomes[1].reason == "MAX_BRACKETS_REACHED"
        assert result.per_division_diagnostics["MAX_BRACKETS_REACHED"] == ["Stopped at 1 brackets"]

    def test_unknown_competition(self, session: Session):
        result = synthesize_for_competition(session, 999, _config(), TODAY)
        assert result.per_division_diagnostics == {"ERROR": ["Competition not found"]}

    def test_no_fighters(self, session: Session, make_competition):
        competition = make_competition([])
        result = synthesize_for_competition(session, competition.id, _config(), TODAY)
        assert list(result.per_division_diagnostics) == ["NO_FIGHTERS"]

    def test_no_eligible_divisions(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter(birth_date=date(2016, 1, 1), weight=35)])
        result = synthesize_for_competition(session, competition.id, _config(), TODAY)
        assert result.per_division_diagnostics["NO_ELIGIBLE_DIVISIONS"][0] == "No fighters match allowed divisions"
        assert result.brackets_attempted == 0

    def test_deterministic_across_runs(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter(first_name=f"F{i}") for i in range(7)])
        repo = SqlBracketRepository(session)

        def run():
            result = synthesize_for_competition(session, competition.id, _config(), TODAY)
            bracket_id = result.outcomes[0].bracket_id
            pairs = [
                [p.fighter_id for p in m.participants]
                for m in repo.get_matches(competition.id, bracket_id)
            ]
            repo.delete(competition.id, bracket_id)
            return pairs

        assert run() == run()

    def test_chain_failure_is_not_persisted(self, session: Session, make_fighter, make_competition, monkeypatch):
        competition = make_competition([make_fighter() for _ in range(4)])
        monkeypatch.setattr(
            "ringside.services.bracket_synthesis.verify_chain",
            lambda matches: ChainReport(ok=False, errors=["Match 3 references missing match 9"]),
        )

        result = synthesize_for_competition(session, competition.id, _config(), TODAY)

        assert result.brackets_created == 0
        assert result.outcomes[0].reason == "CHAIN_INVALID"
        assert "Match 3 references missing match 9" in result.outcomes[0].messages
        assert session.exec(select(Bracket)).all() == []

    def test_persistence_error_is_caught(self, session: Session, make_fighter, make_competition):
        class FailingBrackets(SqlBracketRepository):
            def create(self, competition_id, bracket, matches):
                raise RuntimeError("disk full")

        competition = make_competition([make_fighter() for _ in range(4)])
        repos = Repositories.from_session(session)
        repos.brackets = FailingBrackets(session)

        result = synthesize_for_competition(repos, competition.id, _config(), TODAY)

        assert result.brackets_created == 0
        assert result.outcomes[0].reason == "PERSISTENCE_ERROR"
        assert result.outcomes[0].messages == ["Bracket creation failed: disk full"]

    def test_partial_backfill_registers_created_fighters(self, session: Session, make_club, make_fighter, make_competition):
        make_club()
        original = make_fighter()
        competition = make_competition([original])
        repos = Repositories.from_session(session)
        repos.fighters = FlakyFighters(session, succeed=1)

        result = synthesize_for_competition(repos, competition.id, _config(), TODAY)

        outcome = result.outcomes[0]
        assert result.brackets_created == 0
        assert outcome.status == "failed"
        assert outcome.reason == "INSUFFICIENT_FIGHTERS"
        assert outcome.messages == [
            "Insufficient fighters: 1 < 4",
            "Backfill failed",
            "Backfilled only 1 of 3 fighters",
        ]
        assert len(outcome.backfilled_ids) == 1

        fighter_ids = {f.id for f in session.exec(select(Fighter)).all()}
        registered = {
            r.fighter_id
            for r in session.exec(
                select(CompetitionFighter).where(CompetitionFighter.competition_id == competition.id)
            ).all()
        }
        assert fighter_ids == registered == {original.id, *outcome.backfilled_ids}
        assert session.exec(select(Bracket)).all() == []

    def test_to_dict(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter() for _ in range(4)])
        data = synthesize_for_competition(session, competition.id, _config(), TODAY).to_dict()
        assert data["competition_id"] == competition.id
        assert data["brackets_created"] == 1
        assert data["outcomes"][0]["division_key"] == ADULT_K1_70.normalized()


def test_synthesize_all(session: Session, make_fighter, make_competition):
    first = make_competition([make_fighter() for _ in range(4)], title="First")
    second = make_competition([], title="Second")

    results = synthesize_all(session, _config(), TODAY)

    assert [r.competition_id for r in results] == [first.id, second.id]
    assert [r.brackets_created for r in results] == [1, 0]


def test_synthesize_all_continues_after_a_failing_competition(session: Session, make_fighter, make_competition):
    broken = make_competition([make_fighter(gender="X")], title="Broken")
    valid = make_competition([make_fighter() for _ in range(4)], title="Valid")

    results = synthesize_all(session, _config(), TODAY)

    assert [r.competition_id for r in results] == [broken.id, valid.id]
    assert results[0].brackets_created == 0
    assert results[0].per_division_diagnostics["ERROR"][0].startswith("Synthesis failed")
    assert results[1].brackets_created == 1


# ============================================================================
# Diagnosis
# ============================================================================


class TestDiagnosis:
    def test_unknown_competition(self, session: Session):
        reasons = diagnose_empty_competition(session, 404, _config(), TODAY)
        assert reasons[0].category == "UNKNOWN"
        assert reasons[0].details == ["Competition not found"]

    def test_zero_fighters(self, session: Session, make_competition):
        competition = make_competition([])
        reasons = diagnose_empty_competition(session, competition.id, _config(), TODAY)
        assert [r.category for r in reasons] == ["INSUFFICIENT_FIGHTERS"]
        assert reasons[0].details == ["Competition has 0 registered fighters"]

    def test_short_division(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter(), make_fighter()])
        reasons = diagnose_empty_competition(session, competition.id, _config(), TODAY)

        assert reasons[0].category == "INSUFFICIENT_FIGHTERS"
        assert reasons[0].details[0] == f"Division {ADULT_K1_70.normalized()}:"
        assert "  Missing: 2 fighters" in reasons[0].details
        assert "  Weight Class: -70kg" in reasons[0].details

    def test_no_eligible_divisions(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter(birth_date=date(2016, 1, 1), weight=35)])
        reasons = diagnose_empty_competition(session, competition.id, _config(), TODAY)
        assert [r.category for r in reasons] == ["NO_ELIGIBLE_DIVISIONS"]

    def test_bracket_without_matches(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter() for _ in range(4)])
        session.add(
            Bracket(competition_id=competition.id, age_group="Adult", discipline="K1", weight_class="-70kg", gender="M")
        )
        session.commit()

        reasons = diagnose_empty_competition(session, competition.id, _config(), TODAY)
        assert [r.category for r in reasons] == ["PERSISTENCE_CONFLICT"]

    def test_nothing_obvious(self, session: Session, make_fighter, make_competition):
        competition = make_competition([make_fighter() for _ in range(4)])
        synthesize_for_competition(session, competition.id, _config(), TODAY)

        reasons = diagnose_empty_competition(session, competition.id, _config(), TODAY)
        assert reasons[0].category == "UNKNOWN"
        assert reasons[0].details[0] == "No obvious issues found"
        assert reasons[0].details[2] == "Existing brackets: 1"
