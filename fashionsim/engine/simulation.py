"""
Week settlement and commit orchestration for FASHIONSIM.

Simulation is the pure settlement function: given a validated draft it
computes the committed week and the next draft without touching any
store. WeekCommitOrchestrator owns the draft -> validating -> committed
lifecycle for stored sessions.

Order of a commit:
1. Procurement: price, schedule, pay and receive contracts
2. Production: start batches, ship completed WIP, land shipments
3. Sales: resolve demand against finished goods (FIFO)
4. Holding cost on end-of-week inventory
5. Cash waterfall (final week adds the GMC shortfall penalty)
6. Cost buckets, season totals, ledger and summary
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterator, Optional

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.cash import CashLedger, CreditLimitExceededError
from fashionsim.engine.demand import DemandBreakdown, DemandModel
from fashionsim.engine.intake import DecisionIntake, IntakeError
from fashionsim.engine.kpi import compute_season_result
from fashionsim.engine.procurement import ProcurementLedger
from fashionsim.engine.production import ProductionPipeline
from fashionsim.engine.report import build_ledger, build_summary
from fashionsim.engine.sales import SalesResolver
from fashionsim.engine.validation import ValidationError, ValidationResult, validate_week
from fashionsim.io.store import SessionNotFoundError, StateStore, WeekNotFoundError
from fashionsim.models.decisions import Decisions
from fashionsim.models.money import ZERO, to_money
from fashionsim.models.products import ProductDecision
from fashionsim.models.report import CashWaterfall, WeeklySummary
from fashionsim.models.session import GameSession, SeasonResult
from fashionsim.models.state import CostBuckets, Phase, WeeklyState

logger = logging.getLogger(__name__)


class WeekAlreadyCommittedError(Exception):
    """Raised when committing or editing a week that is already committed."""

    def __init__(self, session_id: str, week_number: int):
        self.session_id = session_id
        self.week_number = week_number
        super().__init__(f"Week {week_number} of session {session_id} is already committed")


class CommitInProgressError(Exception):
    """Raised when another commit or decision submit for the session is running."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Another change is already in progress for session {session_id}")


@dataclass
class SimulationWeekResult:
    """Committed state of a week and everything reported about it."""

    committed: WeeklyState
    summary: WeeklySummary
    waterfall: CashWaterfall
    penalties: dict[str, Decimal] = field(default_factory=dict)


class Simulation:
    """Pure weekly settlement."""

    def __init__(self, config: Optional[FashionSimConfig] = None):
        self.config = config or get_default_config()
        self.procurement = ProcurementLedger(self.config)
        self.production = ProductionPipeline(self.config)
        self.sales = SalesResolver(self.config)
        self.cash = CashLedger(self.config)

    def initial_state(self, session_id: str) -> WeeklyState:
        """Week 1 draft: starting capital, no contracts, no inventory."""
        return WeeklyState(
            session_id=session_id,
            week_number=1,
            phase=Phase(self.config.phase_for_week(1)),
            cash_on_hand=to_money(self.config.finance.starting_capital),
            product_data={product: ProductDecision() for product in self.config.product_keys},
        )

    def is_final_week(self, week: int) -> bool:
        return week >= self.config.season.total_weeks

    def commit_week(
        self, state: WeeklyState, warnings: Optional[list[str]] = None
    ) -> SimulationWeekResult:
        """Settle a draft week.

        Args:
            state: Validated draft state
            warnings: Validation warnings to store with the committed week

        Returns:
            SimulationWeekResult with the committed state and its summary

        Raises:
            CreditLimitExceededError: If the week's payments exceed the credit line
        """
        week = state.week_number
        final_week = self.is_final_week(week)

        procurement = self.procurement.process_week(state.procurement, state.raw_materials, week)
        production = self.production.process_week(
            state.production_schedule,
            state.product_data,
            procurement.raw_materials,
            state.work_in_process,
            state.shipments_in_transit,
            state.finished_goods,
            week,
        )
        marketing = to_money(state.marketing_spend)
        sales = self.sales.resolve(
            week,
            state.product_data,
            production.finished_goods,
            state.weekly_discounts,
            marketing,
            state.totals,
        )

        end_of_week = state.model_copy(
            update={
                "raw_materials": production.raw_materials,
                "work_in_process": production.work_in_process,
                "finished_goods": sales.finished_goods,
            }
        )
        holding = self.cash.holding_cost(end_of_week.inventory_value)

        penalties = self.procurement.shortfall_penalties(procurement.book) if final_week else {}
        penalty_total = to_money(sum(penalties.values(), ZERO))
        outflows = to_money(
            procurement.payments_total
            + production.production_cost
            + production.shipping_cost
            + marketing
            + holding
        )
        waterfall = self.cash.settle(
            state.cash_on_hand,
            state.credit_used,
            sales.revenue,
            outflows,
            gmc_penalty=penalty_total,
            final_week=final_week,
        )

        week_costs = CostBuckets(
            materials=to_money(procurement.payments_total + waterfall.gmc_penalty),
            production=production.production_cost,
            logistics=production.shipping_cost,
            holding=holding,
            interest=waterfall.interest,
            marketing=marketing,
        )
        ledger = build_ledger(
            week, procurement, production, sales, marketing, holding, waterfall, penalties
        )

        committed = end_of_week.model_copy(
            update={
                "cash_on_hand": waterfall.closing_cash,
                "credit_used": waterfall.closing_credit,
                "shipments_in_transit": production.shipments_in_transit,
                "procurement": procurement.book,
                "weekly_demand": sales.demand,
                "weekly_sales": sales.sales,
                "lost_sales": sales.lost,
                "weekly_revenue": sales.revenue,
                "ledger": ledger,
                "costs": state.costs.add(week_costs),
                "totals": self.sales.update_totals(state.totals, sales, marketing),
                "validation_errors": [],
                "validation_warnings": list(warnings or []),
                "is_committed": True,
            }
        )
        summary = build_summary(state, committed, procurement, production, sales, waterfall)

        logger.info(
            "Committed week %d of %s: revenue %s, outflows %s, cash %s, credit %s",
            week,
            state.session_id,
            sales.revenue,
            outflows,
            waterfall.closing_cash,
            waterfall.closing_credit,
        )
        return SimulationWeekResult(
            committed=committed, summary=summary, waterfall=waterfall, penalties=penalties
        )

    def seed_next_draft(self, committed: WeeklyState) -> WeeklyState:
        """Carry a committed week forward into the next week's draft."""
        week = committed.week_number + 1
        phase = Phase(self.config.phase_for_week(week))

        product_data = committed.product_data
        if phase != Phase.STRATEGY:
            product_data = {
                product: decision.model_copy(update={"rrp_locked": True, "design_locked": True})
                for product, decision in committed.product_data.items()
            }

        return WeeklyState(
            session_id=committed.session_id,
            week_number=week,
            phase=phase,
            cash_on_hand=committed.cash_on_hand,
            credit_used=committed.credit_used,
            product_data=product_data,
            raw_materials=committed.raw_materials,
            work_in_process=committed.work_in_process,
            shipments_in_transit=committed.shipments_in_transit,
            finished_goods=committed.finished_goods,
            production_schedule=committed.production_schedule,
            procurement=committed.procurement,
            marketing_plan=committed.marketing_plan,
            weekly_discounts=committed.weekly_discounts,
            costs=committed.costs,
            totals=committed.totals,
        )


@dataclass
class CommitOutcome:
    """Result of a commit attempt.

    When ``committed`` is False the stored state is unchanged and
    ``validation`` explains why.
    """

    committed: bool
    state: WeeklyState
    validation: ValidationResult
    summary: Optional[WeeklySummary] = None
    next_state: Optional[WeeklyState] = None
    result: Optional[SeasonResult] = None


class WeekCommitOrchestrator:
    """Runs the game lifecycle against a StateStore."""

    def __init__(
        self,
        store: StateStore,
        config: Optional[FashionSimConfig] = None,
        simulation: Optional[Simulation] = None,
    ):
        self.store = store
        self.config = config or get_default_config()
        self.simulation = simulation or Simulation(self.config)
        self.intake = DecisionIntake(self.config)
        self.demand_model = DemandModel(self.config)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(session_id, threading.Lock())

    @contextmanager
    def _exclusive(self, session_id: str) -> Iterator[None]:
        """Hold the session lock, failing fast when another writer has it."""
        lock = self._lock_for(session_id)
        if not lock.acquire(blocking=False):
            raise CommitInProgressError(session_id)
        try:
            yield
        finally:
            lock.release()

    def start_game(self, player_name: str = "Player") -> tuple[GameSession, WeeklyState]:
        """Create a session and its week 1 draft."""
        session = self.store.create_session(GameSession(player_name=player_name))
        state = self.store.create(self.simulation.initial_state(session.session_id))
        logger.info("Started game %s for %s", session.session_id, player_name)
        return session, state

    def get_session(self, session_id: str) -> GameSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def current_state(self, session_id: str) -> WeeklyState:
        """Latest state of a session (the draft, or week 15 once finished)."""
        self.get_session(session_id)
        state = self.store.get_latest(session_id)
        if state is None:
            raise WeekNotFoundError(session_id)
        return state

    def get_week(self, session_id: str, week_number: int) -> WeeklyState:
        self.get_session(session_id)
        state = self.store.get(session_id, week_number)
        if state is None:
            raise WeekNotFoundError(session_id, week_number)
        return state

    def history(self, session_id: str) -> list[WeeklyState]:
        """Committed weeks, oldest first."""
        self.get_session(session_id)
        return [s for s in self.store.get_all(session_id) if s.is_committed]

    def submit_decisions(self, session_id: str, decisions: Decisions) -> WeeklyState:
        """Merge decisions into the current draft and store it.

        Raises:
            CommitInProgressError: If a commit for the session is running
            WeekAlreadyCommittedError: If the season is over
            IntakeError, ProcurementError, ScheduleError: If a decision is invalid
        """
        with self._exclusive(session_id):
            return self._submit(session_id, decisions)

    def _submit(self, session_id: str, decisions: Decisions) -> WeeklyState:
        state = self.current_state(session_id)
        if state.is_committed:
            raise WeekAlreadyCommittedError(session_id, state.week_number)
        draft = self.intake.apply(state, decisions)
        validation = validate_week(draft, self.config)
        draft = draft.model_copy(
            update={
                "validation_errors": validation.error_messages,
                "validation_warnings": validation.warning_messages,
            }
        )
        return self.store.update(
            draft.state_id,
            {
                "product_data": draft.product_data,
                "procurement": draft.procurement,
                "production_schedule": draft.production_schedule,
                "weekly_discounts": draft.weekly_discounts,
                "marketing_plan": draft.marketing_plan,
                "validation_errors": draft.validation_errors,
                "validation_warnings": draft.validation_warnings,
            },
        )

    def validate(self, session_id: str) -> ValidationResult:
        """Validate the current draft without committing."""
        state = self.current_state(session_id)
        if state.is_committed:
            raise WeekAlreadyCommittedError(session_id, state.week_number)
        return validate_week(state, self.config)

    def commit(self, session_id: str) -> CommitOutcome:
        """Validate and commit the current draft.

        Raises:
            CommitInProgressError: If another commit for the session is running
            WeekAlreadyCommittedError: If the season is already over
        """
        with self._exclusive(session_id):
            return self._commit(session_id)

    def _commit(self, session_id: str) -> CommitOutcome:
        session = self.get_session(session_id)
        state = self.current_state(session_id)
        if state.is_committed:
            raise WeekAlreadyCommittedError(session_id, state.week_number)

        validation = validate_week(state, self.config)
        if not validation.can_commit:
            logger.warning(
                "Refused commit of week %d for %s: %d errors",
                state.week_number,
                session_id,
                len(validation.errors),
            )
            return CommitOutcome(committed=False, state=state, validation=validation)

        try:
            settled = self.simulation.commit_week(state, validation.warning_messages)
        except CreditLimitExceededError as e:
            logger.warning("Refused commit of week %d for %s: %s", state.week_number, session_id, e)
            validation.add_error(ValidationError(field="cash", message=str(e)))
            return CommitOutcome(committed=False, state=state, validation=validation)

        committed = settled.committed
        next_state: Optional[WeeklyState] = None
        result: Optional[SeasonResult] = None
        if self.simulation.is_final_week(committed.week_number):
            result = compute_season_result(self.history(session_id), committed, self.config)
            session = session.model_copy(update={"is_completed": True, "result": result})
            logger.info("Season %s finished: final score %s", session_id, result.final_score)
        else:
            next_state = self.simulation.seed_next_draft(committed)
            session = session.model_copy(update={"current_week": next_state.week_number})

        self.store.commit_week(committed, next_state, session)
        return CommitOutcome(
            committed=True,
            state=committed,
            validation=validation,
            summary=settled.summary,
            next_state=next_state,
            result=result,
        )

    def preview_demand(
        self,
        product: str,
        week: int,
        rrp: Decimal,
        discount: Decimal = Decimal("0"),
        marketing_spend: Decimal = Decimal("0"),
        has_print: bool = False,
    ) -> DemandBreakdown:
        """Demand forecast with its factors. Pure; callable any time."""
        if product not in self.config.products:
            raise IntakeError(f"Unknown product: {product}")
        return self.demand_model.breakdown(
            product, week, rrp, discount, marketing_spend, has_print
        )
