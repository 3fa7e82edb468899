"""
Pytest configuration and fixtures

IMPORTANT: All tests use transactional rollback isolation against an
in-memory SQLite database. Nothing created during a test outlives it.
"""
import pytest
import sys
import os
from uuid import uuid4

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be set before core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "text")

from sqlalchemy.orm import Session
from core.database import Base, engine, get_db
from services.exercise_activation import ExerciseActivationCatalog
from services.muscle_groups import MuscleVector
import models  # noqa: F401  (registers tables)


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a database session with transactional rollback.

    session.commit() inside application code only releases a SAVEPOINT;
    the outer transaction is rolled back after the test.
    """
    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
        expire_on_commit=False,
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(db_session):
    """TestClient whose requests share the test's db_session."""
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def athlete_id():
    return uuid4()


@pytest.fixture
def catalog():
    """Four catalogued exercises: bench press, squat, barbell row, plank."""
    return ExerciseActivationCatalog({
        "1": MuscleVector.from_dict({"Chest": 1.0, "Triceps": 0.6, "Deltoids": 0.4}),
        "2": MuscleVector.from_dict({"Quads": 1.0, "Glutes": 0.8, "Hams": 0.5, "Lumbar": 0.3}),
        "3": MuscleVector.from_dict({"Lats": 1.0, "Biceps": 0.6, "Trapezius": 0.5}),
        "4": MuscleVector.from_dict({"Abs": 1.0, "Lumbar": 0.4}),
    })

