"""
Workflow engine

A Workflow is an ordered list of Steps. Running it threads an amount
through every step: each step receives `amount_in_step`, returns a
StepResult, and the result decides what the next step receives.

Run modes:
    ESTIMATE            forward, reads only
    ESTIMATE_REVERSED   backward from a desired output, reads only
    EXECUTE             forward, results carry slippage-adjusted call data
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..errors import UnsupportedOperation

logger = logging.getLogger(__name__)


class RunMode(Enum):
    ESTIMATE = "estimate"
    ESTIMATE_REVERSED = "estimate_reversed"
    EXECUTE = "execute"


@dataclass(frozen=True)
class Clipboard:
    """
    Copy instruction: forward an earlier step's amount instead of this
    step's own output.

    Attributes:
        step: Index (forward order) of the step whose result is copied
        slot: "amount_in" or "amount_out"
    """
    step: int
    slot: str = "amount_in"

    def __post_init__(self):
        if self.slot not in ("amount_in", "amount_out"):
            raise ValueError(f"Clipboard slot must be amount_in or amount_out, got {self.slot}")


@dataclass
class StepResult:
    """
    Effect of running one step.

    A step either knows its call data right away (`call_data`) or supplies
    an `encoder` that builds it from the final RunContext at execute time.
    `target=None` means the protocol contract itself. A result with neither
    call data nor encoder contributes no call.
    """
    name: str
    amount_in: int
    amount_out: int
    target: Optional[str] = None
    call_data: Optional[bytes] = None
    value: int = 0
    clipboard: Optional[Clipboard] = None
    encoder: Optional[Callable[["RunContext"], Optional[bytes]]] = None

    def next_amount(self, results: List["StepResult"]) -> int:
        """Amount handed to the next step in a forward run"""
        if self.clipboard is None:
            return self.amount_out
        if self.clipboard.step >= len(results) - 1:
            raise ValueError(
                f"Step '{self.name}' copies from step {self.clipboard.step}, which has not run yet"
            )
        return getattr(results[self.clipboard.step], self.clipboard.slot)

    def encode(self, context: "RunContext") -> Optional[bytes]:
        if self.encoder is not None:
            return self.encoder(context)
        return self.call_data

    @property
    def has_call(self) -> bool:
        return self.call_data is not None or self.encoder is not None


@dataclass
class RunContext:
    """
    State visible to every step during a run.

    Attributes:
        run_mode: Current mode
        step_index: Index of the running step, in run order
        step_results: Results produced so far, in run order
        data: Caller-supplied values (slippage, permit, account, ...)
    """
    run_mode: RunMode
    step_index: int = 0
    step_results: List[StepResult] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_reversed(self) -> bool:
        return self.run_mode == RunMode.ESTIMATE_REVERSED

    @property
    def is_estimate(self) -> bool:
        return self.run_mode in (RunMode.ESTIMATE, RunMode.ESTIMATE_REVERSED)

    @property
    def slippage(self) -> float:
        """Slippage tolerance in percent"""
        return float(self.data.get("slippage", 0))

    def min_amount_out(self, amount_out: int) -> int:
        """amount_out reduced by the slippage tolerance, rounded down"""
        slippage_bps = int(round(self.slippage * 100))
        return amount_out * (10_000 - slippage_bps) // 10_000


class Step(ABC):
    """A unit of a workflow"""

    name: str = "step"

    @abstractmethod
    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        """
        Compute this step's effect.

        In ESTIMATE_REVERSED mode `amount_in_step` is the desired output and
        the result's `amount_in` is the required input.
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"


StepFunction = Callable[[int, RunContext], Any]


class FunctionStep(Step):
    """
    Adapts a plain callable to the Step interface.

    The callable receives (amount_in_step, context) and may return:
        - a StepResult (used as-is)
        - bytes: call data for the protocol contract
        - (target, bytes): call data for another contract
        - None: no call
    The amount passes through unchanged unless a StepResult says otherwise.
    """

    def __init__(self, fn: StepFunction, name: Optional[str] = None):
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "function")

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        out = self._fn(amount_in_step, context)
        if isinstance(out, StepResult):
            return out

        target, call_data = None, None
        if isinstance(out, tuple):
            target, call_data = out
        elif out is not None:
            call_data = bytes(out)

        return StepResult(
            name=self.name,
            amount_in=amount_in_step,
            amount_out=amount_in_step,
            target=target,
            call_data=call_data,
        )


StepLike = Union[Step, StepFunction, "Workflow", Iterable[Any]]


class Workflow:
    """
    Ordered pipeline of steps with forward and reverse estimation.

    Steps can only be added before the first run. Nested workflows and
    lists are flattened when added.

    Usage:
        wf = Workflow("swap")
        wf.add([step_a, step_b])
        amount_out = wf.estimate(1_000_000)
        amount_in = wf.estimate_reversed(amount_out)
    """

    def __init__(self, name: str = "Workflow"):
        self.name = name
        self._steps: List[Step] = []
        self._results: List[StepResult] = []
        self._context: Optional[RunContext] = None
        self._started = False

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add(self, *items: StepLike) -> "Workflow":
        """
        Append one or more steps.

        Raises:
            UnsupportedOperation: If the workflow has already been run
        """
        if self._started:
            raise UnsupportedOperation(
                f"Cannot add steps to workflow '{self.name}' after it has been run",
                operation="add",
            )
        for item in items:
            self._steps.extend(self._flatten(item))
        return self

    @classmethod
    def _flatten(cls, item: Any) -> List[Step]:
        if isinstance(item, Workflow):
            return list(item._steps)
        if isinstance(item, Step):
            return [item]
        if isinstance(item, (list, tuple)):
            steps: List[Step] = []
            for sub in item:
                steps.extend(cls._flatten(sub))
            return steps
        if callable(item):
            return [FunctionStep(item)]
        raise TypeError(f"Cannot add {type(item).__name__} to a workflow")

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def results(self) -> Tuple[StepResult, ...]:
        """Results of the last successful run"""
        return tuple(self._results)

    @property
    def length(self) -> int:
        return len(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def _run(self, amount: int, mode: RunMode, data: Optional[Dict[str, Any]] = None) -> int:
        self._started = True
        context = RunContext(run_mode=mode, data=dict(data or {}))
        results: List[StepResult] = []
        context.step_results = results

        ordered = list(reversed(self._steps)) if context.is_reversed else self._steps
        current = amount

        for index, step in enumerate(ordered):
            context.step_index = index
            result = step.run(current, context)

            if context.is_reversed:
                if result.clipboard is not None:
                    raise UnsupportedOperation(
                        f"Step '{result.name}' uses a clipboard and cannot be estimated in reverse",
                        operation="estimate_reversed",
                    )
                results.append(result)
                current = result.amount_in
            else:
                results.append(result)
                current = result.next_amount(results)

            logger.debug(
                f"[{self.name}] {mode.value} step {index} {result.name}: "
                f"in={result.amount_in} out={result.amount_out} next={current}"
            )

        if context.is_reversed:
            results.reverse()

        # Only a completed run replaces the stored results
        self._results = results
        self._context = context
        return current

    def estimate(self, amount_in: int, data: Optional[Dict[str, Any]] = None) -> int:
        """Run every step forward with reads only and return the final amount"""
        return self._run(int(amount_in), RunMode.ESTIMATE, data)

    def estimate_reversed(self, amount_out: int, data: Optional[Dict[str, Any]] = None) -> int:
        """
        Run the pipeline backward and return the input needed for `amount_out`.

        Raises:
            UnsupportedOperation: If any step cannot estimate in reverse
        """
        return self._run(int(amount_out), RunMode.ESTIMATE_REVERSED, data)

    def summarize(self) -> List[Dict[str, Any]]:
        """Per-step amounts from the last run, for display"""
        return [
            {"name": r.name, "amount_in": r.amount_in, "amount_out": r.amount_out}
            for r in self._results
        ]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, steps={[s.name for s in self._steps]})"
