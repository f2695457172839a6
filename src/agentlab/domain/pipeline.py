"""
Pipeline state for the routed question pipeline.

Start -> Routed -> {SchemaRetrieved -> SQLGenerated -> Executed -> Answered}
                 | {DocRetrieved -> Answered} -> Done

Any stage may move to Failed. SQLGenerated may go straight to Answered when
generation came back empty.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from .base_enums import PipelineStage, RouteDecision
from .errors import PipelineError


ALLOWED_TRANSITIONS: Dict[PipelineStage, FrozenSet[PipelineStage]] = {
    PipelineStage.START: frozenset({PipelineStage.ROUTED}),
    PipelineStage.ROUTED: frozenset({PipelineStage.SCHEMA_RETRIEVED, PipelineStage.DOC_RETRIEVED}),
    PipelineStage.SCHEMA_RETRIEVED: frozenset({PipelineStage.SQL_GENERATED}),
    PipelineStage.SQL_GENERATED: frozenset({PipelineStage.EXECUTED, PipelineStage.ANSWERED}),
    PipelineStage.EXECUTED: frozenset({PipelineStage.ANSWERED}),
    PipelineStage.DOC_RETRIEVED: frozenset({PipelineStage.ANSWERED}),
    PipelineStage.ANSWERED: frozenset({PipelineStage.DONE}),
    PipelineStage.DONE: frozenset(),
    PipelineStage.FAILED: frozenset(),
}

# First stage of each branch
BRANCH_ENTRY: Dict[RouteDecision, PipelineStage] = {
    RouteDecision.DATABASE_QUERY: PipelineStage.SCHEMA_RETRIEVED,
    RouteDecision.DOCUMENT_QA: PipelineStage.DOC_RETRIEVED,
}

TERMINAL_STAGES = frozenset({PipelineStage.DONE, PipelineStage.FAILED})


@dataclass
class PipelineState:
    """
    Mutable state of one pipeline run.

    Tracks the current stage, the chosen route and the stage history.
    Transitions are strictly forward; there is no re-routing.
    """

    question: str
    stage: PipelineStage = PipelineStage.START
    route: Optional[RouteDecision] = None
    history: List[PipelineStage] = field(default_factory=lambda: [PipelineStage.START])

    # Name of the stage call in flight, for error reporting
    current_operation: Optional[str] = None

    # Error tracking
    error_message: Optional[str] = None
    error_stage: Optional[PipelineStage] = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def advance(self, next_stage: PipelineStage) -> None:
        """
        Move to `next_stage`.

        Raises:
            PipelineError: If the transition is not allowed from the current stage
        """
        if next_stage is PipelineStage.FAILED:
            raise PipelineError(
                "Use fail() to terminate a pipeline run",
                details={"stage": self.stage.value},
            )
        if next_stage not in ALLOWED_TRANSITIONS[self.stage]:
            raise PipelineError(
                f"Illegal pipeline transition {self.stage.value} -> {next_stage.value}",
                details={"stage": self.stage.value},
            )
        if self.stage is PipelineStage.ROUTED and BRANCH_ENTRY.get(self.route) is not next_stage:
            raise PipelineError(
                f"Stage {next_stage.value} does not belong to route {self.route}",
                details={"stage": self.stage.value},
            )
        self.stage = next_stage
        self.history.append(next_stage)

    def set_route(self, route: RouteDecision) -> None:
        self.route = route
        self.advance(PipelineStage.ROUTED)

    def fail(self, message: str) -> None:
        """Record a fatal failure at the current stage."""
        if self.is_terminal:
            return
        self.error_message = message
        self.error_stage = self.stage
        self.stage = PipelineStage.FAILED
        self.history.append(PipelineStage.FAILED)
