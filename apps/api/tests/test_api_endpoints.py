"""
Tests for API endpoints - workouts, check-ins and training load routes
"""
import pytest
from datetime import date, timedelta
from unittest.mock import patch
from models import Exercise

D0 = date(2024, 3, 4)
D1 = date(2024, 3, 5)


@pytest.fixture
def exercises(db_session):
    db_session.add_all([
        Exercise(id="1", name="Bench Press", muscle_activation={"Chest": 1.0, "Triceps": 0.6, "Deltoids": 0.4}),
        Exercise(id="2", name="Back Squat", muscle_activation={"Quads": 1.0, "Glutes": 0.8, "Hams": 0.5}),
    ])
    db_session.flush()


def bench_workout(day, weight=100, reps=10):
    return {
        "workout_date": day.isoformat(),
        "duration_minutes": 45,
        "intensity_rpe": 7,
        "exercises": [{
            "exercise_id": 1,
            "exercise_name": "Bench Press",
            "sets": [{"weight": weight, "reps": reps}],
        }],
    }


class TestAppEndpoints:

    def test_ping(self, client):
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.json() == {"pong": True}

    def test_health(self, client):
        with patch("main.check_db_connection", return_value=True):
            response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_database_down(self, client):
        with patch("main.check_db_connection", return_value=False):
            response = client.get("/health")
        assert response.status_code == 503


class TestWorkoutEndpoints:

    def test_create_workout(self, client, athlete_id, exercises):
        response = client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))

        assert response.status_code == 201
        data = response.json()
        assert data["activity_type"] == "weightlifting"
        assert data["exercises"][0]["sets"] == [{"weight": 100.0, "reps": 10, "time": None}]

    def test_create_workout_requires_date(self, client, athlete_id):
        response = client.post(f"/v1/athletes/{athlete_id}/workouts", json={"duration_minutes": 30})
        assert response.status_code == 422

    def test_invalid_athlete_id(self, client):
        response = client.get("/v1/athletes/not-a-uuid/workouts")
        assert response.status_code == 422

    def test_list_and_delete(self, client, athlete_id, exercises):
        first = client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0)).json()
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D1))

        listed = client.get(f"/v1/athletes/{athlete_id}/workouts").json()
        assert listed["total"] == 2
        assert [w["workout_date"] for w in listed["workouts"]] == [D1.isoformat(), D0.isoformat()]

        response = client.delete(f"/v1/athletes/{athlete_id}/workouts/{first['id']}")
        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.get(f"/v1/athletes/{athlete_id}/workouts").json()["total"] == 1

    def test_delete_unknown_workout(self, client, athlete_id):
        response = client.delete(f"/v1/athletes/{athlete_id}/workouts/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_stats(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D1))

        data = client.get(
            f"/v1/athletes/{athlete_id}/workouts/stats", params={"as_of": D1.isoformat()}
        ).json()

        assert data["total_workouts"] == 2
        assert data["total_volume"] == 2000
        assert data["exercise_frequency"] == {"Bench Press": 2}
        assert data["longest_streak"] == 2

    def test_history_paging_and_filters(self, client, athlete_id, exercises):
        for day in (D0, D1):
            client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(day))
        client.post(f"/v1/athletes/{athlete_id}/workouts", json={
            "workout_date": D1.isoformat(),
            "duration_minutes": 30,
            "sport_sessions": [{"activity_name": "Pool swim", "duration_minutes": 30}],
        })

        page = client.get(
            f"/v1/athletes/{athlete_id}/workouts", params={"limit": 1, "offset": 1}
        ).json()
        assert page["total"] == 3
        assert len(page["workouts"]) == 1

        lifting = client.get(
            f"/v1/athletes/{athlete_id}/workouts",
            params={"activity_type": "weightlifting", "start_date": D1.isoformat()},
        ).json()
        assert lifting["total"] == 1
        assert lifting["workouts"][0]["workout_date"] == D1.isoformat()

    def test_history_rejects_unknown_activity_type(self, client, athlete_id):
        response = client.get(f"/v1/athletes/{athlete_id}/workouts", params={"activity_type": "yoga"})
        assert response.status_code == 422

    def test_stats_window(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D1))

        data = client.get(
            f"/v1/athletes/{athlete_id}/workouts/stats", params={"as_of": D1.isoformat(), "days": 0}
        )
        assert data.status_code == 422

        data = client.get(
            f"/v1/athletes/{athlete_id}/workouts/stats",
            params={"as_of": (D1 + timedelta(days=30)).isoformat(), "days": 30},
        ).json()
        assert data["days"] == 30
        assert data["total_workouts"] == 1
        assert data["current_streak"] == 0

    def test_exercise_history(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0, weight=100, reps=10))
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D1, weight=90, reps=12))

        history = client.get(f"/v1/athletes/{athlete_id}/exercises/1/history").json()

        assert [h["workout_date"] for h in history] == [D1.isoformat(), D0.isoformat()]
        assert history[0]["volume"] == 1080
        assert history[1]["sets"] == [{"weight": 100.0, "reps": 10, "time": None}]

    def test_personal_records(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0, weight=100, reps=10))
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D1, weight=90, reps=12))

        records = client.get(f"/v1/athletes/{athlete_id}/personal-records").json()

        assert len(records) == 1
        assert records[0]["max_weight"] == 100
        assert records[0]["max_reps"] == 12
        assert records[0]["max_one_rep_max"] == pytest.approx(100 * (1 + 10 / 30))
        assert records[0]["last_performed"] == D1.isoformat()


class TestCheckInEndpoints:

    def test_create_and_fetch(self, client, athlete_id):
        response = client.post(
            f"/v1/athletes/{athlete_id}/check-ins",
            json={"date": D0.isoformat(), "sleep_quality_1_5": 5, "stress_1_5": 1, "nutrition_quality_1_5": 5},
        )
        assert response.status_code == 201
        assert response.json()["recovery_coefficient"] == 1.5

        fetched = client.get(f"/v1/athletes/{athlete_id}/check-ins/{D0.isoformat()}").json()
        assert fetched["sleep_quality_1_5"] == 5

    def test_out_of_range_answer(self, client, athlete_id):
        response = client.post(
            f"/v1/athletes/{athlete_id}/check-ins",
            json={"date": D0.isoformat(), "sleep_quality_1_5": 9},
        )
        assert response.status_code == 422

    def test_missing_check_in(self, client, athlete_id):
        response = client.get(f"/v1/athletes/{athlete_id}/check-ins/{D0.isoformat()}")
        assert response.status_code == 404

    def test_history_window(self, client, athlete_id):
        for day in (D0, D1, D1 + timedelta(days=60)):
            client.post(f"/v1/athletes/{athlete_id}/check-ins", json={"date": day.isoformat()})

        response = client.get(f"/v1/athletes/{athlete_id}/check-ins", params={"as_of": D1.isoformat()})

        assert response.status_code == 200
        assert [c["date"] for c in response.json()] == [D0.isoformat(), D1.isoformat()]


class TestTrainingLoadEndpoints:

    def test_metrics(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))

        data = client.get(f"/v1/athletes/{athlete_id}/training-load/metrics").json()

        summary = data["summary"]
        assert summary["latest"]["fitness_score"] == 1000
        assert summary["form_status"] == "Fatigued"
        assert summary["acwr_zone"]["zone"] == "optimal"

    def test_metrics_without_history(self, client, athlete_id):
        data = client.get(f"/v1/athletes/{athlete_id}/training-load/metrics").json()
        assert data["history"] == []
        assert data["summary"]["latest"] is None

    def test_recompute(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))

        response = client.post(
            f"/v1/athletes/{athlete_id}/training-load/recompute", params={"as_of": D1.isoformat()}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["workouts_replayed"] == 1
        assert data["snapshots_written"] == 1
        assert data["latest"]["metric_date"] == D0.isoformat()

    def test_readiness(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))

        data = client.get(
            f"/v1/athletes/{athlete_id}/training-load/readiness", params={"as_of": D1.isoformat()}
        ).json()

        assert data["days_since_last_workout"] == 1
        assert data["readiness"]["Quads"] == 100
        assert data["readiness"]["Chest"] == 0
        assert data["muscle_fatigue"]["Chest"] == pytest.approx(850)
        assert data["acwr_zone"]["zone"] == "optimal"

    def test_readiness_without_history(self, client, athlete_id):
        response = client.get(f"/v1/athletes/{athlete_id}/training-load/readiness")
        assert response.status_code == 404

    def test_balanced_targets_default_profile(self, client, athlete_id):
        data = client.get(
            f"/v1/athletes/{athlete_id}/training-load/balanced-targets",
            params={"as_of": D0.isoformat()},
        ).json()

        assert data["is_default"] is True
        assert data["targets"]["Quads"] == 80
        assert data["sport_targets"] is None
        assert len(data["available_sports"]) == 16

    def test_balanced_targets_from_history(self, client, athlete_id, exercises):
        client.post(f"/v1/athletes/{athlete_id}/workouts", json=bench_workout(D0))

        data = client.get(
            f"/v1/athletes/{athlete_id}/training-load/balanced-targets",
            params={"as_of": D0.isoformat(), "sports": ["Swimming"]},
        ).json()

        assert data["is_default"] is False
        assert max(data["targets"].values()) == 100
        assert data["targets"]["Chest"] == 15
        assert data["sport_targets"]["Lats"] == 100
        assert (data["difficulty_min"], data["difficulty_max"]) == (2, 4)

    @pytest.mark.parametrize("score,label", [(85, "Fully Recovered"), (45, "Elevated Fatigue")])
    def test_readiness_color(self, client, athlete_id, score, label):
        data = client.get(f"/v1/athletes/{athlete_id}/training-load/readiness-color/{score}").json()
        assert data["label"] == label

    def test_readiness_color_out_of_range(self, client, athlete_id):
        response = client.get(f"/v1/athletes/{athlete_id}/training-load/readiness-color/140")
        assert response.status_code == 422
