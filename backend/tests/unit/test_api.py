"""
API tests for the routers.

Services are replaced through FastAPI dependency overrides, so no
database or AI provider is needed.

Test Organization:
    - TestHealth: Health endpoint
    - TestAuthentication: User header and API key
    - TestContributionsApi: Graph, stats and app-open
    - TestStudyApi: Grading and session completion
    - TestSetsApi: Flashcard set creation, listing, loading and deletion
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from flashstudy.db.base import get_db
from flashstudy.dependencies import (
    get_answer_grader,
    get_contribution_aggregator,
    get_contribution_tracker,
    get_flashcard_set_service,
    get_study_completion_service,
)
from flashstudy.enums import ContributionType, GradingLevel
from flashstudy.main import create_app
from flashstudy.middleware.error_handling import LLMError, NotFoundError, PersistenceError
from flashstudy.models.contributions import (
    ContributionEvent,
    ContributionGraphDay,
    ContributionGraphResponse,
    StreakData,
    UserStats,
)
from flashstudy.models.study import (
    FinalizeReport,
    Flashcard,
    FlashcardSetResponse,
    FlashcardSetSummary,
    GradingResult,
)

USER = {"X-User-Id": "user-1"}


@pytest.fixture
def services():
    """Mocked services injected into the routers."""
    aggregator = MagicMock()
    aggregator.contribution_graph = AsyncMock(
        return_value=ContributionGraphResponse(
            start=date(2024, 1, 9),
            end=date(2024, 1, 10),
            days=[
                ContributionGraphDay(date=date(2024, 1, 9), count=0, level=0),
                ContributionGraphDay(date=date(2024, 1, 10), count=3, level=2),
            ],
            total_contributions=3,
            active_days=1,
            max_daily_count=3,
        )
    )
    aggregator.compute_user_stats = AsyncMock(
        return_value=UserStats(total_contributions=9, current_streak=1, longest_streak=3)
    )
    aggregator.streak_data = AsyncMock(
        return_value=StreakData(current_streak=1, longest_streak=3, next_milestone=7)
    )

    tracker = MagicMock()
    tracker.track_app_open = AsyncMock(return_value=True)

    grader = MagicMock()
    grader.grade = AsyncMock(
        return_value=GradingResult(
            score=85,
            is_correct=True,
            level=GradingLevel.GOOD,
            feedback="Nice work!",
            specific_feedback=["+ Right idea"],
        )
    )

    completion = MagicMock()
    completion.finalize = AsyncMock(
        return_value=FinalizeReport(
            final_score_percentage=95,
            events=[
                ContributionEvent(
                    id=1,
                    user_id="user-1",
                    type=ContributionType.STUDY_COMPLETED,
                    created_at=datetime(2024, 1, 10, 12, tzinfo=timezone.utc),
                    metadata={"cards_studied": 1},
                )
            ],
        )
    )

    set_service = MagicMock()
    set_service.create_set = AsyncMock(
        return_value=FlashcardSetResponse(
            id="set-1",
            title="Biology",
            flashcards=[
                Flashcard(id="card-1", question="Q?", answer="A", set_id="set-1")
            ],
        )
    )

    return {
        "aggregator": aggregator,
        "tracker": tracker,
        "grader": grader,
        "completion": completion,
        "sets": set_service,
    }


@pytest.fixture
def client(services):
    app = create_app()
    app.dependency_overrides[get_contribution_aggregator] = lambda: services["aggregator"]
    app.dependency_overrides[get_contribution_tracker] = lambda: services["tracker"]
    app.dependency_overrides[get_answer_grader] = lambda: services["grader"]
    app.dependency_overrides[get_study_completion_service] = lambda: services["completion"]
    app.dependency_overrides[get_flashcard_set_service] = lambda: services["sets"]
    return TestClient(app)


# ============================================================================
# Health
# ============================================================================


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health(self, mock_db_session):
        app = create_app()
        app.dependency_overrides[get_db] = lambda: mock_db_session

        body = TestClient(app).get("/api/health/detailed").json()

        assert body["status"] == "healthy"
        assert body["dependencies"]["database"] == {"status": "healthy"}
        assert "models" in body["dependencies"]["ai"]

    def test_detailed_health_degraded_without_database(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=OSError("connection refused"))
        app = create_app()
        app.dependency_overrides[get_db] = lambda: mock_db_session

        body = TestClient(app).get("/api/health/detailed").json()

        assert body["status"] == "degraded"
        assert body["dependencies"]["database"]["status"] == "unhealthy"

    def test_unhandled_error_is_sanitized_500(self):
        app = create_app()

        @app.get("/api/explode")
        async def explode():
            raise RuntimeError("secret internals")

        response = TestClient(app).get("/api/explode")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["error_id"]
        assert "secret internals" not in body["message"]


# ============================================================================
# Authentication
# ============================================================================


class TestAuthentication:
    def test_missing_user_is_401(self, client, services):
        response = client.get("/api/contributions/graph")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        services["aggregator"].contribution_graph.assert_not_awaited()

    def test_api_key_enforced_when_configured(self, client):
        with patch("flashstudy.dependencies.settings.API_KEY", "secret"):
            missing = client.get("/api/contributions/stats", headers=USER)
            wrong = client.get(
                "/api/contributions/stats", headers={**USER, "X-API-Key": "nope"}
            )
            ok = client.get(
                "/api/contributions/stats", headers={**USER, "X-API-Key": "secret"}
            )

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert ok.status_code == 200


# ============================================================================
# Contributions
# ============================================================================


class TestContributionsApi:
    def test_graph(self, client, services):
        response = client.get("/api/contributions/graph?days=1", headers=USER)

        assert response.status_code == 200
        body = response.json()
        assert [d["date"] for d in body["days"]] == ["2024-01-09", "2024-01-10"]
        assert body["days"][1]["level"] == 2
        services["aggregator"].contribution_graph.assert_awaited_once_with("user-1", days=1)

    def test_graph_window_bounds(self, client):
        response = client.get("/api/contributions/graph?days=0", headers=USER)

        assert response.status_code == 422

    def test_stats(self, client):
        response = client.get("/api/contributions/stats", headers=USER)

        assert response.status_code == 200
        body = response.json()
        assert body["stats"]["total_contributions"] == 9
        assert body["stats"]["longest_streak"] == 3
        assert body["streak"]["next_milestone"] == 7

    def test_app_open(self, client, services):
        response = client.post("/api/contributions/app-open", headers=USER)

        assert response.status_code == 200
        assert response.json() == {"new_contribution": True}
        services["tracker"].track_app_open.assert_awaited_once_with("user-1")

    def test_unexpected_error_is_500(self, client, services):
        services["aggregator"].compute_user_stats = AsyncMock(side_effect=KeyError("boom"))

        response = client.get("/api/contributions/stats", headers=USER)

        assert response.status_code == 500
        assert response.json()["detail"] == "Get contribution stats failed"


# ============================================================================
# Study
# ============================================================================


class TestStudyApi:
    def test_grade(self, client, services):
        response = client.post(
            "/api/study/grade",
            headers=USER,
            json={
                "question": "What is ATP?",
                "reference_answer": "Energy currency of the cell",
                "user_answer": "energy",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 85
        assert body["isCorrect"] is True
        assert body["specificFeedback"] == ["+ Right idea"]
        services["grader"].grade.assert_awaited_once_with(
            question="What is ATP?",
            reference_answer="Energy currency of the cell",
            user_answer="energy",
        )

    def test_grade_ai_unavailable_is_502(self, client, services):
        services["grader"].grade = AsyncMock(side_effect=LLMError("AI service unavailable"))

        response = client.post(
            "/api/study/grade",
            headers=USER,
            json={"question": "Q?", "reference_answer": "A", "user_answer": "a"},
        )

        assert response.status_code == 502
        assert response.json()["error"] == "llm_error"

    def test_complete(self, client, services):
        response = client.post(
            "/api/study/complete",
            headers=USER,
            json={
                "set_id": "set-1",
                "cards_studied": 1,
                "correct_cards": 1,
                "ai_score_percentage": 95,
                "final_score_percentage": 95,
                "graded_answers": 1,
                "all_answers_perfect": True,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["events"][0]["type"] == "study_completed"
        assert body["events"][0]["metadata"]["cards_studied"] == 1
        user_id, outcome = services["completion"].finalize.await_args.args
        assert user_id == "user-1"
        assert outcome.is_perfect

    def test_complete_rejects_bad_percentage(self, client):
        response = client.post(
            "/api/study/complete",
            headers=USER,
            json={"cards_studied": 1, "correct_cards": 1, "final_score_percentage": 140},
        )

        assert response.status_code == 422


# ============================================================================
# Sets
# ============================================================================


class TestSetsApi:
    def test_create_set(self, client, services):
        response = client.post(
            "/api/sets",
            headers=USER,
            json={"title": "Biology", "content": "Cells are small.", "num_flashcards": 1},
        )

        assert response.status_code == 201
        assert response.json()["flashcards"][0]["question"] == "Q?"
        user_id, request = services["sets"].create_set.await_args.args
        assert user_id == "user-1"
        assert request.num_flashcards == 1

    def test_invalid_request_makes_no_call(self, client, services):
        response = client.post(
            "/api/sets", headers=USER, json={"title": "Biology", "num_flashcards": 1}
        )

        assert response.status_code == 422
        services["sets"].create_set.assert_not_awaited()

    def test_storage_failure_is_503(self, client, services):
        services["sets"].create_set = AsyncMock(
            side_effect=PersistenceError("Could not create flashcard set")
        )

        response = client.post(
            "/api/sets", headers=USER, json={"title": "Biology", "content": "Cells."}
        )

        assert response.status_code == 503
        assert response.json()["error"] == "persistence_unavailable"

    def test_list_sets(self, client, services):
        services["sets"].list_sets = AsyncMock(
            return_value=[
                FlashcardSetSummary(
                    id="set-1",
                    title="Biology",
                    card_count=3,
                    created_at=datetime(2024, 1, 10, 12, tzinfo=timezone.utc),
                )
            ]
        )

        response = client.get("/api/sets", headers=USER)

        assert response.status_code == 200
        assert response.json()[0]["card_count"] == 3
        services["sets"].list_sets.assert_awaited_once_with("user-1")

    def test_get_set_returns_deck(self, client, services):
        services["sets"].get_set = AsyncMock(
            return_value=FlashcardSetResponse(
                id="set-1",
                title="Biology",
                flashcards=[
                    Flashcard(id="card-1", question="Q?", answer="A", set_id="set-1")
                ],
            )
        )

        response = client.get("/api/sets/set-1", headers=USER)

        assert response.status_code == 200
        assert [c["id"] for c in response.json()["flashcards"]] == ["card-1"]
        services["sets"].get_set.assert_awaited_once_with("user-1", "set-1")

    def test_get_other_users_set_is_404(self, client, services):
        services["sets"].get_set = AsyncMock(
            side_effect=NotFoundError("Flashcard set not found")
        )

        response = client.get("/api/sets/set-1", headers=USER)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_delete_set(self, client, services):
        services["sets"].delete_set = AsyncMock(return_value=None)

        response = client.delete("/api/sets/set-1", headers=USER)

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted_id": "set-1"}
        services["sets"].delete_set.assert_awaited_once_with("user-1", "set-1")

    def test_delete_requires_user(self, client, services):
        services["sets"].delete_set = AsyncMock()

        response = client.delete("/api/sets/set-1")

        assert response.status_code == 401
        services["sets"].delete_set.assert_not_awaited()
