"""Dependency resolution for atomic rules.

Turns a requested list of rule ids into a linear emission order in which
every rule's ``depends_on`` entries come first. The traversal is a
depth-first topological sort:

- requested ids are visited in input order;
- a rule's dependencies are visited in the order they are declared;
- a rule already emitted is skipped;
- a rule met again while still on the active path is a cycle.

The result depends only on the input list and the store, so resolving
the same request twice yields the same order.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from atomic_rules.rules.errors import CircularDependencyError, UnknownRuleError
from atomic_rules.rules.models import Rule
from atomic_rules.rules.store import RuleStore


logger = logging.getLogger(__name__)


@dataclass
class _Traversal:
    """Mutable state of a single resolve() call.

    ``path`` and ``frames`` grow and shrink together: ``frames[i]`` yields
    the not yet visited dependencies of ``path[i]``.
    """
    order: list[str] = field(default_factory=list)
    emitted: set[str] = field(default_factory=set)
    path: list[str] = field(default_factory=list)
    on_path: set[str] = field(default_factory=set)
    frames: list[Iterator[str]] = field(default_factory=list)


class DependencyResolver:
    """Resolves rule ids against a RuleStore.

    The resolver holds no state between calls and may be shared across
    threads as long as the store is not replaced underneath it. The
    traversal keeps its own stack, so chain depth is not limited by the
    interpreter's recursion limit.
    """

    def __init__(self, store: RuleStore) -> None:
        self.store = store

    def resolve(self, requested_ids: Iterable[str]) -> list[str]:
        """Compute the emission order for the requested ids.

        Args:
            requested_ids: Ids in caller order. Duplicates are allowed.

        Returns:
            Unique ids, each one after all of its dependencies.

        Raises:
            UnknownRuleError: If a requested id or a dependency is missing.
            CircularDependencyError: If the dependencies contain a cycle.
        """
        state = _Traversal()
        for rule_id in requested_ids:
            self._visit(rule_id, state)

        logger.debug(f"Resolved {len(state.order)} rules: {state.order}")
        return state.order

    def resolve_rules(self, requested_ids: Iterable[str]) -> list[Rule]:
        """Like resolve(), returning the rule records."""
        return [self.store.get(rule_id) for rule_id in self.resolve(requested_ids)]

    def _visit(self, root: str, state: _Traversal) -> None:
        if root in state.emitted:
            return

        self._enter(root, state)
        while state.frames:
            dependency = next(state.frames[-1], None)
            if dependency is None:
                # All dependencies emitted
                state.frames.pop()
                rule_id = state.path.pop()
                state.on_path.discard(rule_id)
                state.emitted.add(rule_id)
                state.order.append(rule_id)
            elif dependency not in state.emitted:
                self._enter(dependency, state)

    def _enter(self, rule_id: str, state: _Traversal) -> None:
        if rule_id in state.on_path:
            start = state.path.index(rule_id)
            raise CircularDependencyError(state.path[start:] + [rule_id])

        rule = self._lookup(rule_id, state.path)
        state.path.append(rule_id)
        state.on_path.add(rule_id)
        state.frames.append(iter(rule.depends_on))

    def _lookup(self, rule_id: str, path: list[str]) -> Rule:
        try:
            return self.store.get(rule_id)
        except UnknownRuleError:
            # Re-raise with the dependency chain that led here
            raise UnknownRuleError(rule_id, chain=path) from None
