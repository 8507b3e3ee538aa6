from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ringside.database import get_session
from ringside.main import app
from ringside.models.club import Club
from ringside.models.competition import Competition, CompetitionFighter
from ringside.models.fighter import Fighter

TEST_DATABASE_URL = "sqlite:///:memory:"

# Reference date for every age-group derivation in tests
TODAY = date(2025, 6, 15)

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are dropped and recreated per test (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    # Models are registered by the imports at the top of this module
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override is set BEFORE TestClient() so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Data helpers
# ============================================================================


@pytest.fixture(name="make_club")
def make_club_fixture(session: Session):
    def _make(name: str = "Dinamo Fight Club", city: str = "Bucuresti", disciplines=None) -> Club:
        club = Club(name=name, city=city, disciplines=disciplines or ["K1", "Boxing"])
        session.add(club)
        session.commit()
        session.refresh(club)
        return club

    return _make


@pytest.fixture(name="make_fighter")
def make_fighter_fixture(session: Session):
    """Adult (born 2000) K1 male at 68kg unless overridden -> Adult|K1|-70kg|M."""

    def _make(
        first_name: str = "Andrei",
        last_name: str = "Popescu",
        birth_date: date = date(2000, 1, 1),
        weight: float = 68,
        discipline: str = "K1",
        gender: str = "M",
        club: Club = None,
    ) -> Fighter:
        fighter = Fighter(
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            height=178,
            weight=weight,
            discipline=discipline,
            gender=gender,
            club_id=club.id if club else None,
            club=club.name if club else "No Club",
        )
        session.add(fighter)
        session.commit()
        session.refresh(fighter)
        return fighter

    return _make


@pytest.fixture(name="make_competition")
def make_competition_fixture(session: Session):
    def _make(fighters=(), title: str = "Golden Championship Cluj 2025", disciplines=None) -> Competition:
        competition = Competition(
            title=title,
            location="Cluj-Napoca",
            start_date=date(2025, 7, 1),
            end_date=date(2025, 7, 2),
            registration_date=date(2025, 6, 1),
            disciplines=disciplines or ["K1", "Boxing"],
        )
        session.add(competition)
        session.commit()
        session.refresh(competition)
        for position, fighter in enumerate(fighters, start=1):
            session.add(
                CompetitionFighter(
                    competition_id=competition.id,
                    fighter_id=fighter.id,
                    discipline=fighter.discipline,
                    position=position,
                )
            )
        session.commit()
        session.refresh(competition)
        return competition

    return _make
