"""Tests for the web API and its SQL state store."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from conftest import make_lot
from fashionsim.io.store import (
    CommittedStateError,
    InMemoryStateStore,
    SessionNotFoundError,
    StoreError,
)
from fashionsim.models.decisions import Decisions
from fashionsim.models.session import GameSession
from fashionsim.models.state import WeeklyState
from web.app import create_app
from web.config import WebConfig
from web.database.session import build_engine, init_db
from web.services.state_store import SqlStateStore


@pytest.fixture
def sql_store() -> SqlStateStore:
    engine = build_engine("sqlite://")
    init_db(engine)
    return SqlStateStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture(params=["memory", "sql"])
def client(request, sql_store: SqlStateStore) -> TestClient:
    store = InMemoryStateStore() if request.param == "memory" else sql_store
    return TestClient(create_app(WebConfig(database_url="sqlite://"), store=store))


def new_game(client: TestClient, name: str = "Alex") -> str:
    response = client.post("/api/sessions", json={"player_name": name})
    assert response.status_code == 201
    return response.json()["session"]["session_id"]


def as_json(decisions: Decisions) -> dict:
    return decisions.model_dump(mode="json", exclude_defaults=True)


class TestSessionsApi:
    """Tests for game creation and lookup."""

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "healthy", "app": "fashionsim"}

    def test_create_session(self, client: TestClient) -> None:
        response = client.post("/api/sessions", json={"player_name": "Alex"})

        data = response.json()
        assert response.status_code == 201
        assert data["session"]["player_name"] == "Alex"
        assert data["state"]["week_number"] == 1
        assert Decimal(data["state"]["cash_on_hand"]) == Decimal("1000000")

    def test_list_and_get(self, client: TestClient) -> None:
        session_id = new_game(client)

        listed = client.get("/api/sessions").json()
        single = client.get(f"/api/sessions/{session_id}").json()

        assert [s["session_id"] for s in listed] == [session_id]
        assert single["current_week"] == 1
        assert single["result"] is None

    def test_unknown_session(self, client: TestClient) -> None:
        response = client.get("/api/sessions/missing")

        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_player_name_too_long(self, client: TestClient) -> None:
        assert client.post("/api/sessions", json={"player_name": "x" * 101}).status_code == 422


class TestWeeksApi:
    """Tests for deciding, validating and committing weeks."""

    def test_current_week(self, client: TestClient) -> None:
        session_id = new_game(client)

        response = client.get(f"/api/sessions/{session_id}/weeks/current")

        assert response.status_code == 200
        assert response.json()["phase"] == "strategy"

    def test_unknown_week(self, client: TestClient) -> None:
        session_id = new_game(client)

        assert client.get(f"/api/sessions/{session_id}/weeks/9").status_code == 404

    def test_submit_and_validate(self, client: TestClient, strategy_decisions: Decisions) -> None:
        session_id = new_game(client)

        submitted = client.put(f"/api/sessions/{session_id}/decisions", json=as_json(strategy_decisions))
        validation = client.post(f"/api/sessions/{session_id}/validate").json()

        assert submitted.status_code == 200
        assert submitted.json()["product_data"]["jacket"]["fabric"] == "standardDenim"
        assert validation["valid"] is True
        assert validation["errors"] == []

    def test_validate_reports_fields(self, client: TestClient) -> None:
        session_id = new_game(client)

        validation = client.post(f"/api/sessions/{session_id}/validate").json()

        assert validation["valid"] is False
        assert "products.jacket.rrp" in {e["field"] for e in validation["errors"]}

    def test_malformed_decisions(self, client: TestClient) -> None:
        session_id = new_game(client)

        response = client.put(f"/api/sessions/{session_id}/decisions", json={"discounts": {"jacket": 3}})

        assert response.status_code == 422

    def test_commit(self, client: TestClient, strategy_decisions: Decisions) -> None:
        session_id = new_game(client)
        client.put(f"/api/sessions/{session_id}/decisions", json=as_json(strategy_decisions))

        response = client.post(f"/api/sessions/{session_id}/commit")

        data = response.json()
        assert response.status_code == 200
        assert data["committed"] is True
        assert data["week_number"] == 1
        assert data["next_week"] == 2
        assert data["summary"]["week_number"] == 1
        assert [w["week_number"] for w in client.get(f"/api/sessions/{session_id}/weeks").json()] == [1]
        assert client.get(f"/api/sessions/{session_id}/weeks/1").json()["is_committed"] is True

    def test_refused_commit_is_not_an_http_error(self, client: TestClient) -> None:
        session_id = new_game(client)

        response = client.post(f"/api/sessions/{session_id}/commit")

        data = response.json()
        assert response.status_code == 200
        assert data["committed"] is False
        assert data["next_week"] is None
        assert data["validation"]["errors"]

    def test_locked_price(self, client: TestClient, strategy_decisions: Decisions) -> None:
        session_id = new_game(client)
        client.put(f"/api/sessions/{session_id}/decisions", json=as_json(strategy_decisions))
        client.post(f"/api/sessions/{session_id}/commit")
        client.post(f"/api/sessions/{session_id}/commit")

        response = client.put(
            f"/api/sessions/{session_id}/decisions", json={"products": {"jacket": {"rrp": "120"}}}
        )

        assert response.status_code == 422
        assert "locked" in response.json()["detail"]

    def test_commit_in_progress(self, client: TestClient) -> None:
        session_id = new_game(client)
        lock = client.app.state.orchestrator._lock_for(session_id)
        lock.acquire()
        try:
            response = client.post(f"/api/sessions/{session_id}/commit")
        finally:
            lock.release()

        assert response.status_code == 409

    def test_submit_during_commit(self, client: TestClient) -> None:
        session_id = new_game(client)
        lock = client.app.state.orchestrator._lock_for(session_id)
        lock.acquire()
        try:
            response = client.put(
                f"/api/sessions/{session_id}/decisions", json={"products": {"jacket": {"rrp": "120"}}}
            )
        finally:
            lock.release()

        assert response.status_code == 409
        assert "in progress" in response.json()["detail"]


class TestCatalogApi:
    """Tests for the demand preview and constants endpoints."""

    def test_demand_preview(self, client: TestClient) -> None:
        response = client.post(
            "/api/demand-preview",
            json={"product": "jacket", "week": 6, "rrp": "100", "marketing_spend": "216667"},
        )

        data = response.json()
        assert response.status_code == 200
        assert data["units"] == 62_765
        assert data["seasonality"] == pytest.approx(1.0)

    def test_demand_preview_unknown_product(self, client: TestClient) -> None:
        response = client.post("/api/demand-preview", json={"product": "scarf", "week": 6, "rrp": "10"})

        assert response.status_code == 422

    def test_demand_preview_rejects_zero_price(self, client: TestClient) -> None:
        response = client.post("/api/demand-preview", json={"product": "jacket", "week": 6, "rrp": "0"})

        assert response.status_code == 422

    def test_constants(self, client: TestClient) -> None:
        data = client.get("/api/constants").json()

        assert set(data["products"]) == {"jacket", "dress", "pants"}
        assert Decimal(data["finance"]["starting_capital"]) == Decimal("1000000")


class TestSqlStateStore:
    """SQL store specifics."""

    def test_round_trip(self, sql_store: SqlStateStore) -> None:
        sql_store.create_session(GameSession(session_id="s1", player_name="Tester"))
        state = sql_store.create(
            WeeklyState(session_id="s1", week_number=1, finished_goods=[make_lot("pants", 20)])
        )

        assert sql_store.get("s1", 1) == state
        assert sql_store.get_latest("s1") == state
        assert sql_store.get_session("s1").player_name == "Tester"

    def test_duplicate_week(self, sql_store: SqlStateStore) -> None:
        sql_store.create_session(GameSession(session_id="s1"))
        sql_store.create(WeeklyState(session_id="s1", week_number=1))

        with pytest.raises(StoreError, match="already exists"):
            sql_store.create(WeeklyState(session_id="s1", week_number=1))

    def test_update(self, sql_store: SqlStateStore) -> None:
        sql_store.create_session(GameSession(session_id="s1"))
        state = sql_store.create(WeeklyState(session_id="s1", week_number=1))

        sql_store.update(state.state_id, {"validation_warnings": ["Low cash"]})

        assert sql_store.get("s1", 1).validation_warnings == ["Low cash"]
        with pytest.raises(StoreError, match="Unknown state id"):
            sql_store.update("nope", {})

    def test_update_refuses_committed_week(self, sql_store: SqlStateStore) -> None:
        session = sql_store.create_session(GameSession(session_id="s1"))
        draft = sql_store.create(
            WeeklyState(session_id="s1", week_number=1, validation_warnings=["Low cash"])
        )
        sql_store.commit_week(
            draft.model_copy(update={"is_committed": True}),
            WeeklyState(session_id="s1", week_number=2),
            session.model_copy(update={"current_week": 2}),
        )

        with pytest.raises(CommittedStateError):
            sql_store.update(draft.state_id, {"validation_warnings": []})

        assert sql_store.get("s1", 1).validation_warnings == ["Low cash"]

    def test_commit_week_is_atomic(self, sql_store: SqlStateStore) -> None:
        session = sql_store.create_session(GameSession(session_id="s1"))
        draft = sql_store.create(WeeklyState(session_id="s1", week_number=1))
        sql_store.create(WeeklyState(session_id="s1", week_number=2))

        with pytest.raises(StoreError):
            sql_store.commit_week(
                draft.model_copy(update={"is_committed": True}),
                WeeklyState(session_id="s1", week_number=2),
                session.model_copy(update={"current_week": 2}),
            )

        assert not sql_store.get("s1", 1).is_committed
        assert sql_store.get_session("s1").current_week == 1

    def test_update_missing_session(self, sql_store: SqlStateStore) -> None:
        with pytest.raises(SessionNotFoundError):
            sql_store.update_session("zzz", {"current_week": 2})
