from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .ffmpeg import Invoker, run_ffmpeg
from .operations import CompilerOptions, Operation, OperationKind, compile_operation
from .params import ParameterSet
from .workspace import WorkingArea

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineState:
    current_input_path: Path
    original_input_path: Path

    @classmethod
    def start(cls, input_path: Path) -> "PipelineState":
        return cls(current_input_path=Path(input_path), original_input_path=Path(input_path))

    def advance(self, new_path: Path) -> "PipelineState":
        return PipelineState(current_input_path=Path(new_path), original_input_path=self.original_input_path)


@dataclass(frozen=True)
class StepRecord:
    kind: str
    order: int
    output_path: Path
    elapsed_seconds: float


@dataclass
class PipelineResult:
    output_path: Path
    steps: List[StepRecord] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        return sum(s.elapsed_seconds for s in self.steps)


def sort_operations(operations: Iterable[Operation]) -> List[Operation]:
    """Ascending by ``order``; equal orders keep their input position."""
    return sorted(operations, key=lambda op: op.order)


def _run_step(
    state: PipelineState,
    op: Operation,
    area: WorkingArea,
    invoke: Invoker,
    options: Optional[CompilerOptions],
) -> tuple[PipelineState, StepRecord]:
    kind = OperationKind.parse(op.kind)
    invocation = compile_operation(
        state.current_input_path,
        kind,
        op.parameters,
        area.new_output_path(),
        options=options,
    )
    result = invoke(invocation)

    next_state = state.advance(result.output_path)
    area.release(state.current_input_path, original=state.original_input_path)

    record = StepRecord(
        kind=kind.value,
        order=op.order,
        output_path=result.output_path,
        elapsed_seconds=result.elapsed_seconds,
    )
    return next_state, record


def run_pipeline(
    input_path: Path,
    operations: Iterable[Operation],
    area: WorkingArea,
    *,
    invoke: Invoker = run_ffmpeg,
    options: Optional[CompilerOptions] = None,
) -> PipelineResult:
    """Apply ``operations`` one after another, each on the previous output.

    The first failing step raises and later steps never run. Outputs that
    already exist stay in ``area`` until it is closed.
    """
    ordered = sort_operations(operations)
    state = PipelineState.start(input_path)
    steps: List[StepRecord] = []

    for idx, op in enumerate(ordered, start=1):
        log.info("step %d/%d: %s (order=%d)", idx, len(ordered), op.kind, op.order)
        state, record = _run_step(state, op, area, invoke, options)
        steps.append(record)
        log.debug("frontier is now %s", state.current_input_path)

    return PipelineResult(output_path=state.current_input_path, steps=steps)


def run_single(
    input_path: Path,
    kind: "str | OperationKind",
    params: Optional[ParameterSet],
    area: WorkingArea,
    *,
    invoke: Invoker = run_ffmpeg,
    options: Optional[CompilerOptions] = None,
) -> PipelineResult:
    op_kind = kind.value if isinstance(kind, OperationKind) else kind
    op = Operation(kind=op_kind, parameters=dict(params or {}), order=0)
    state, record = _run_step(PipelineState.start(input_path), op, area, invoke, options)
    return PipelineResult(output_path=state.current_input_path, steps=[record])
