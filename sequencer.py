from __future__ import annotations
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set
import yaml
from exceptions import GraphError
from logger import log

ABORT = ":abort"
BACK = ":back"
DONE = ":done"
CONTROL = (ABORT, BACK, DONE)
TERMINALS = (ABORT, DONE)

DEFAULT_SEQUENCE = Path(__file__).parent / "data" / "sequence.yaml"


class SequenceGraph:
    """Static step graph: step name -> {transition key -> next step or control}."""

    def __init__(
        self,
        steps: Mapping[str, Mapping[str, str]],
        start: str,
        debug_start: Optional[str] = None,
    ):
        self.steps: Dict[str, Dict[str, str]] = {
            name: dict(edges or {}) for name, edges in steps.items()
        }
        self.start = start
        self.debug_start = debug_start

    @classmethod
    def from_yaml(cls, path=DEFAULT_SEQUENCE) -> "SequenceGraph":
        with open(path) as f:
            data = yaml.safe_load(f)
        try:
            return cls(data["steps"], data["start"], data.get("debug_start"))
        except (KeyError, TypeError) as e:
            raise GraphError(f"Malformed sequence file {path}: {e}") from e

    def targets(self, step: str) -> Iterable[str]:
        return self.steps[step].values()

    def validate(self, known_steps: Optional[Iterable[str]] = None) -> None:
        """Startup self-check; raises GraphError describing every problem found."""
        problems: List[str] = []
        starts = [s for s in (self.start, self.debug_start) if s]
        for s in starts:
            if s not in self.steps:
                problems.append(f"start step '{s}' is not defined")
        for name, edges in self.steps.items():
            for key, target in edges.items():
                if target not in CONTROL and target not in self.steps:
                    problems.append(f"'{name}' --{key}--> unknown step '{target}'")
        reachable = self._reachable(starts)
        for name in self.steps:
            if name not in reachable:
                problems.append(f"step '{name}' is unreachable")
        if known_steps is not None:
            known = set(known_steps)
            for name in self.steps:
                if name not in known:
                    problems.append(f"step '{name}' has no implementation")
        if problems:
            raise GraphError("Invalid step graph: " + "; ".join(problems))

    def _reachable(self, starts: Iterable[str]) -> Set[str]:
        seen: Set[str] = set()
        todo = [s for s in starts if s in self.steps]
        while todo:
            name = todo.pop()
            if name in seen:
                continue
            seen.add(name)
            todo.extend(t for t in self.targets(name) if t in self.steps)
        return seen


class Sequencer:
    """Walks a SequenceGraph one step at a time.

    "back" is answered from the history of visited steps rather than from
    the graph, so it returns to wherever the user came from, including after
    a jump to the overview.
    """

    def __init__(self, graph: SequenceGraph, debug: bool = False):
        self.graph = graph
        self.debug = debug
        self.current: Optional[str] = None
        self.history: List[str] = []

    @property
    def finished(self) -> bool:
        return self.current in TERMINALS

    def start(self) -> str:
        self.history = []
        if self.debug and self.graph.debug_start:
            self.current = self.graph.debug_start
        else:
            self.current = self.graph.start
        log.info("Sequencer: starting at '%s'", self.current)
        return self.current

    def advance(self, key: str) -> str:
        step = self.current
        if step is None or step in TERMINALS:
            raise GraphError(f"Cannot advance from '{step}'")
        if step not in self.graph.steps:
            raise GraphError(f"Step '{step}' is not in the graph")

        if key == "back":
            return self._go_back()
        try:
            target = self.graph.steps[step][key]
        except KeyError:
            raise GraphError(f"Step '{step}' has no transition for '{key}'") from None
        if target == BACK:
            return self._go_back()

        if target not in TERMINALS:
            self.history.append(step)
        log.info("Sequencer: '%s' --%s--> '%s'", step, key, target)
        self.current = target
        return target

    def _go_back(self) -> str:
        if not self.history:
            log.warning("Sequencer: 'back' at '%s' with empty history, staying", self.current)
            return self.current
        previous = self.history.pop()
        log.info("Sequencer: '%s' --back--> '%s'", self.current, previous)
        self.current = previous
        return previous

    def run(self, steps: Mapping[str, Callable[[], str]]) -> str:
        """Run steps synchronously until the walk ends; return the terminal reached."""
        step = self.start()
        while step not in TERMINALS:
            try:
                action = steps[step]
            except KeyError:
                raise GraphError(f"No implementation for step '{step}'") from None
            step = self.advance(action())
        return step
