"""
JSON API routes for FASHIONSIM.

Handles game creation, decision submission, validation, commits,
history and demand previews.
"""

from dataclasses import asdict
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from fashionsim.config.schema import FashionSimConfig
from fashionsim.engine.simulation import CommitOutcome, WeekCommitOrchestrator
from fashionsim.engine.validation import ValidationResult
from fashionsim.models.decisions import Decisions
from fashionsim.models.report import WeeklySummary
from fashionsim.models.session import GameSession, SeasonResult
from fashionsim.models.state import WeeklyState
from web.dependencies import get_game_config, get_orchestrator

router = APIRouter(prefix="/api")


class NewGameRequest(BaseModel):
    player_name: str = Field(default="Player", max_length=100)


class NewGameResponse(BaseModel):
    session: GameSession
    state: WeeklyState


class ValidationMessage(BaseModel):
    field: str
    message: str
    value: Optional[str] = None
    suggestion: Optional[str] = None


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[ValidationMessage] = Field(default_factory=list)
    warnings: list[ValidationMessage] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            valid=result.can_commit,
            errors=[ValidationMessage(**asdict(e)) for e in result.errors],
            warnings=[ValidationMessage(**asdict(w)) for w in result.warnings],
        )


class CommitResponse(BaseModel):
    committed: bool
    week_number: int
    validation: ValidationResponse
    summary: Optional[WeeklySummary] = None
    next_week: Optional[int] = None
    result: Optional[SeasonResult] = None

    @classmethod
    def from_outcome(cls, outcome: CommitOutcome) -> "CommitResponse":
        return cls(
            committed=outcome.committed,
            week_number=outcome.state.week_number,
            validation=ValidationResponse.from_result(outcome.validation),
            summary=outcome.summary,
            next_week=outcome.next_state.week_number if outcome.next_state else None,
            result=outcome.result,
        )


class DemandPreviewRequest(BaseModel):
    product: str
    week: int = Field(ge=1)
    rrp: Decimal = Field(gt=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    marketing_spend: Decimal = Field(default=Decimal("0"), ge=0)
    has_print: bool = False


class DemandPreviewResponse(BaseModel):
    product: str
    week: int
    base_forecast: float
    seasonality: float
    price_effect: float
    promo_lift: float
    positioning_effect: float
    design_effect: float
    units: int


# =============================================================================
# Sessions
# =============================================================================


@router.post("/sessions", response_model=NewGameResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    body: NewGameRequest,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Start a new game."""
    session, state = orchestrator.start_game(body.player_name)
    return NewGameResponse(session=session, state=state)


@router.get("/sessions", response_model=list[GameSession])
def list_sessions(orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator)):
    """List all games."""
    return orchestrator.store.list_sessions()


@router.get("/sessions/{session_id}", response_model=GameSession)
def get_session(
    session_id: str,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Get a game session (including its result once finished)."""
    return orchestrator.get_session(session_id)


# =============================================================================
# Weeks
# =============================================================================


@router.get("/sessions/{session_id}/weeks", response_model=list[WeeklyState])
def list_weeks(
    session_id: str,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Committed weeks, oldest first."""
    return orchestrator.history(session_id)


@router.get("/sessions/{session_id}/weeks/current", response_model=WeeklyState)
def current_week(
    session_id: str,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """The current draft week."""
    return orchestrator.current_state(session_id)


@router.get("/sessions/{session_id}/weeks/{week_number}", response_model=WeeklyState)
def get_week(
    session_id: str,
    week_number: int,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """One week of a game."""
    return orchestrator.get_week(session_id, week_number)


@router.put("/sessions/{session_id}/decisions", response_model=WeeklyState)
def submit_decisions(
    session_id: str,
    decisions: Decisions,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Merge decisions into the current draft."""
    return orchestrator.submit_decisions(session_id, decisions)


@router.post("/sessions/{session_id}/validate", response_model=ValidationResponse)
def validate_week(
    session_id: str,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Validate the current draft without committing."""
    return ValidationResponse.from_result(orchestrator.validate(session_id))


@router.post("/sessions/{session_id}/commit", response_model=CommitResponse)
def commit_week(
    session_id: str,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Commit the current draft.

    A refused commit is not an HTTP error: the response carries
    ``committed: false`` and the validation errors.
    """
    return CommitResponse.from_outcome(orchestrator.commit(session_id))


# =============================================================================
# Catalog
# =============================================================================


@router.post("/demand-preview", response_model=DemandPreviewResponse)
def demand_preview(
    body: DemandPreviewRequest,
    orchestrator: WeekCommitOrchestrator = Depends(get_orchestrator),
):
    """Forecast demand with its contributing factors."""
    breakdown = orchestrator.preview_demand(
        body.product, body.week, body.rrp, body.discount, body.marketing_spend, body.has_print
    )
    return DemandPreviewResponse(**asdict(breakdown))


@router.get("/constants")
def constants(config: FashionSimConfig = Depends(get_game_config)) -> dict[str, Any]:
    """The constants catalog."""
    return config.to_dict()
