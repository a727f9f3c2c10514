"""Tests for week settlement and the commit lifecycle."""

import threading
from decimal import Decimal

import pytest

from conftest import make_gmc_book, make_lot, make_state
from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.intake import IntakeError
from fashionsim.engine.simulation import (
    CommitInProgressError,
    Simulation,
    WeekAlreadyCommittedError,
    WeekCommitOrchestrator,
)
from fashionsim.io.store import (
    CommittedStateError,
    InMemoryStateStore,
    SessionNotFoundError,
    WeekNotFoundError,
)
from fashionsim.models.decisions import Decisions, MarketingPlan, ProductInput
from fashionsim.models.state import EntryType, Phase


class TestSimulation:
    """Tests for the pure settlement of one week."""

    def test_initial_state(self, simulation: Simulation) -> None:
        state = simulation.initial_state("abc")

        assert state.week_number == 1
        assert state.phase == Phase.STRATEGY
        assert state.cash_on_hand == Decimal("1000000.00")
        assert set(state.product_data) == {"jacket", "dress", "pants"}
        assert not state.is_committed

    def test_commit_does_not_mutate_draft(self, simulation: Simulation) -> None:
        state = make_state(8, finished_goods=[make_lot("jacket", 1_000)])

        settled = simulation.commit_week(state)

        assert settled.committed.is_committed
        assert not state.is_committed
        assert state.finished_units() == 1_000

    def test_sales_week(self, simulation: Simulation) -> None:
        state = make_state(
            8,
            finished_goods=[make_lot("jacket", 1_000)],
            marketing_plan=MarketingPlan(total_spend=Decimal("10000")),
        )

        settled = simulation.commit_week(state, ["a warning"])
        committed = settled.committed

        assert committed.weekly_sales["jacket"] == 1_000
        assert committed.weekly_revenue == Decimal("100000.00")
        assert committed.costs.marketing == Decimal("10000.00")
        assert committed.totals.units_sold == 1_000
        assert committed.validation_warnings == ["a warning"]
        # 1,000,000 + 100,000 revenue - 10,000 marketing
        assert committed.cash_on_hand == Decimal("1090000.00")
        entry_types = {entry.entry_type for entry in committed.ledger}
        assert entry_types == {EntryType.REVENUE, EntryType.MARKETING}
        assert settled.summary.week_number == 8
        assert settled.summary.sales[0].sold == 1_000

    def test_holding_cost_on_inventory(self, simulation: Simulation) -> None:
        """Unsold stock is charged 0.3% of its value."""
        state = make_state(1, finished_goods=[make_lot("jacket", 1_000)])

        committed = simulation.commit_week(state).committed

        assert committed.costs.holding == Decimal("117.00")
        assert committed.cash_on_hand == Decimal("999883.00")

    def test_final_week_shortfall_penalty(self, simulation: Simulation) -> None:
        """50,000 committed, 40,000 delivered: 10,000 x 10 x 20% charged."""
        state = make_state(15, cash_on_hand=Decimal("100000"), procurement=make_gmc_book(50_000, 40_000))

        settled = simulation.commit_week(state)

        assert settled.penalties == {"supplier1": Decimal("20000.00")}
        assert settled.waterfall.gmc_penalty == Decimal("20000.00")
        assert settled.committed.cash_on_hand == Decimal("80000.00")
        assert settled.committed.costs.materials == Decimal("20000.00")
        assert EntryType.GMC_PENALTY in {e.entry_type for e in settled.committed.ledger}

    def test_no_penalty_before_final_week(self, simulation: Simulation) -> None:
        state = make_state(14, procurement=make_gmc_book(50_000, 40_000))

        assert simulation.commit_week(state).penalties == {}

    def test_seed_next_draft_locks_after_strategy(self, simulation: Simulation) -> None:
        committed = simulation.commit_week(make_state(2)).committed

        draft = simulation.seed_next_draft(committed)

        assert draft.week_number == 3
        assert draft.phase == Phase.DEVELOPMENT
        assert all(d.rrp_locked and d.design_locked for d in draft.product_data.values())
        assert not draft.is_committed
        assert draft.state_id != committed.state_id

    def test_seed_next_draft_stays_open_in_strategy(self, simulation: Simulation) -> None:
        draft = simulation.seed_next_draft(simulation.commit_week(make_state(1)).committed)

        assert draft.phase == Phase.STRATEGY
        assert not any(d.rrp_locked for d in draft.product_data.values())

    def test_seed_next_draft_carries_plan_resets_flows(self, simulation: Simulation) -> None:
        state = make_state(
            8,
            finished_goods=[make_lot("jacket", 1_000)],
            weekly_discounts={"dress": Decimal("0.1")},
            marketing_plan=MarketingPlan(total_spend=Decimal("5000")),
        )
        committed = simulation.commit_week(state).committed

        draft = simulation.seed_next_draft(committed)

        assert draft.weekly_discounts == {"dress": Decimal("0.1")}
        assert draft.marketing_spend == Decimal("5000")
        assert draft.costs == committed.costs
        assert draft.totals == committed.totals
        assert draft.weekly_sales == {}
        assert draft.ledger == []
        assert draft.weekly_revenue == Decimal("0.00")


class TestOrchestrator:
    """Tests for the stored game lifecycle."""

    def test_start_game(self, orchestrator: WeekCommitOrchestrator) -> None:
        session, state = orchestrator.start_game("Alex")

        assert session.player_name == "Alex"
        assert orchestrator.current_state(session.session_id).state_id == state.state_id
        assert orchestrator.history(session.session_id) == []

    def test_unknown_session(self, orchestrator: WeekCommitOrchestrator) -> None:
        with pytest.raises(SessionNotFoundError):
            orchestrator.current_state("missing")

    def test_unknown_week(self, orchestrator: WeekCommitOrchestrator) -> None:
        session, _ = orchestrator.start_game()

        with pytest.raises(WeekNotFoundError):
            orchestrator.get_week(session.session_id, 9)

    def test_submit_decisions_stores_validation(self, orchestrator: WeekCommitOrchestrator) -> None:
        session, _ = orchestrator.start_game()

        draft = orchestrator.submit_decisions(
            session.session_id, Decisions(products={"jacket": ProductInput(rrp=Decimal("100"))})
        )

        assert draft.product_data["jacket"].rrp == Decimal("100")
        assert any("products.dress.rrp" in e for e in draft.validation_errors)
        assert orchestrator.current_state(session.session_id) == draft

    def test_refused_commit_writes_nothing(
        self, orchestrator: WeekCommitOrchestrator, store: InMemoryStateStore
    ) -> None:
        session, state = orchestrator.start_game()

        outcome = orchestrator.commit(session.session_id)

        assert not outcome.committed
        assert not outcome.validation.valid
        assert store.get_all(session.session_id) == [state]
        assert orchestrator.get_session(session.session_id).current_week == 1

    def test_commit_advances_week(
        self, orchestrator: WeekCommitOrchestrator, strategy_decisions: Decisions
    ) -> None:
        session, _ = orchestrator.start_game()
        orchestrator.submit_decisions(session.session_id, strategy_decisions)

        outcome = orchestrator.commit(session.session_id)

        assert outcome.committed
        assert outcome.summary.week_number == 1
        assert outcome.next_state.week_number == 2
        assert orchestrator.current_state(session.session_id).week_number == 2
        assert orchestrator.get_session(session.session_id).current_week == 2
        assert [s.week_number for s in orchestrator.history(session.session_id)] == [1]
        assert orchestrator.get_week(session.session_id, 1).is_committed

    def test_locked_price_after_strategy(
        self, orchestrator: WeekCommitOrchestrator, strategy_decisions: Decisions
    ) -> None:
        session, _ = orchestrator.start_game()
        orchestrator.submit_decisions(session.session_id, strategy_decisions)
        orchestrator.commit(session.session_id)
        orchestrator.commit(session.session_id)

        with pytest.raises(IntakeError, match="locked"):
            orchestrator.submit_decisions(
                session.session_id, Decisions(products={"jacket": ProductInput(rrp=Decimal("120"))})
            )

    def test_commit_in_progress(self, orchestrator: WeekCommitOrchestrator) -> None:
        session, _ = orchestrator.start_game()
        lock = orchestrator._lock_for(session.session_id)
        lock.acquire()
        try:
            with pytest.raises(CommitInProgressError):
                orchestrator.commit(session.session_id)
        finally:
            lock.release()

    def test_submit_waits_for_no_writer(self, orchestrator: WeekCommitOrchestrator) -> None:
        """Decisions are refused while a commit holds the session."""
        session, _ = orchestrator.start_game()
        lock = orchestrator._lock_for(session.session_id)
        lock.acquire()
        try:
            with pytest.raises(CommitInProgressError):
                orchestrator.submit_decisions(
                    session.session_id, Decisions(products={"jacket": ProductInput(rrp=Decimal("150"))})
                )
        finally:
            lock.release()

    def test_stale_submit_cannot_rewrite_committed_week(
        self, config: FashionSimConfig, strategy_decisions: Decisions
    ) -> None:
        """A submit that read the draft before another process committed it is rejected."""

        class CommitFirstStore(InMemoryStateStore):
            other: WeekCommitOrchestrator
            pending = True

            def update(self, state_id, fields):
                if self.pending:
                    self.pending = False
                    self.other.commit(session.session_id)
                return super().update(state_id, fields)

        store = CommitFirstStore()
        first = WeekCommitOrchestrator(store, config)
        store.other = WeekCommitOrchestrator(store, config)
        store.pending = False
        session, _ = first.start_game()
        first.submit_decisions(session.session_id, strategy_decisions)
        planned_rrp = first.current_state(session.session_id).product_data["jacket"].rrp
        store.pending = True

        with pytest.raises(CommittedStateError):
            first.submit_decisions(
                session.session_id, Decisions(products={"jacket": ProductInput(rrp=Decimal("1"))})
            )

        week_one = first.get_week(session.session_id, 1)
        assert week_one.is_committed
        assert week_one.product_data["jacket"].rrp == planned_rrp
        assert first.get_session(session.session_id).current_week == 2

    def test_concurrent_commits_settle_once(
        self, orchestrator: WeekCommitOrchestrator, strategy_decisions: Decisions
    ) -> None:
        session, _ = orchestrator.start_game()
        orchestrator.submit_decisions(session.session_id, strategy_decisions)
        outcomes = []
        errors = []

        def commit() -> None:
            try:
                outcomes.append(orchestrator.commit(session.session_id))
            except CommitInProgressError as e:
                errors.append(e)

        threads = [threading.Thread(target=commit) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        committed_weeks = [o.state.week_number for o in outcomes if o.committed]
        assert len(outcomes) + len(errors) == 4
        assert len(set(committed_weeks)) == len(committed_weeks)
        assert orchestrator.get_session(session.session_id).current_week == len(committed_weeks) + 1

    def test_credit_limit_refuses_commit(self, store: InMemoryStateStore) -> None:
        """A week whose payments break the credit line is refused, not clamped."""
        config = get_default_config().merge({"finance": {"credit_limit": 0}})
        orchestrator = WeekCommitOrchestrator(store, config)
        session, state = orchestrator.start_game()
        # Marketing passes validation only while cash covers it; holding is charged on top
        store.update(
            state.state_id,
            {
                "product_data": make_state(1).product_data,
                "finished_goods": [make_lot("jacket", 1_000)],
                "marketing_plan": MarketingPlan(total_spend=Decimal("1000000")),
            },
        )

        outcome = orchestrator.commit(session.session_id)

        assert not outcome.committed
        assert "Credit limit exceeded" in " ".join(outcome.validation.error_messages)
        assert orchestrator.current_state(session.session_id).week_number == 1

    def test_preview_demand(self, orchestrator: WeekCommitOrchestrator) -> None:
        breakdown = orchestrator.preview_demand("jacket", 6, Decimal("100"), marketing_spend=Decimal("216667"))

        assert breakdown.units == 62_765
        with pytest.raises(IntakeError):
            orchestrator.preview_demand("scarf", 6, Decimal("100"))


class TestFullSeason:
    """Play a whole season from the week 1 plan."""

    def test_full_season(
        self, orchestrator: WeekCommitOrchestrator, strategy_decisions: Decisions
    ) -> None:
        session, _ = orchestrator.start_game("Season")
        sid = session.session_id
        orchestrator.submit_decisions(sid, strategy_decisions)

        outcomes = [orchestrator.commit(sid) for _ in range(15)]

        assert all(o.committed for o in outcomes), [o.validation.error_messages for o in outcomes]

        # Denim delivered and paid, batch started in week 3
        week3 = orchestrator.get_week(sid, 3)
        assert week3.costs.materials == Decimal("500000.00")
        assert week3.costs.production == Decimal("1250000.00")
        assert week3.credit_used > 0

        # Shipped week 4, on shelves week 7
        assert orchestrator.get_week(sid, 4).costs.logistics == Decimal("200000.00")
        assert orchestrator.get_week(sid, 6).finished_goods == []
        week7 = orchestrator.get_week(sid, 7)
        assert week7.weekly_sales["jacket"] > 0
        assert week7.finished_goods[0].unit_cost_basis == Decimal("39")

        session = orchestrator.get_session(sid)
        result = session.result
        assert session.is_completed
        assert result.total_revenue == Decimal("5000000.00")
        assert result.units_sold == 50_000
        assert 0 < result.service_level < 100
        assert result.dead_stock_units == 0
        assert result.final_credit == Decimal("0.00")

        final = orchestrator.current_state(sid)
        assert final.week_number == 15
        assert final.is_committed
        assert len(orchestrator.history(sid)) == 15

        with pytest.raises(WeekAlreadyCommittedError):
            orchestrator.commit(sid)
        with pytest.raises(WeekAlreadyCommittedError):
            orchestrator.submit_decisions(sid, Decisions())
