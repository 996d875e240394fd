"""Exceptions raised while loading, resolving and assembling rules.

All of them derive from RuleError so callers can isolate one target's
failure without catching unrelated exceptions.
"""

from collections.abc import Sequence
from pathlib import Path


class RuleError(Exception):
    """Base class for rule loading and assembly errors."""
    pass


class RuleParseError(RuleError):
    """Raised when a rule or target file cannot be read or is invalid."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = str(path) if path is not None else None
        if self.path:
            message = f"{message} ({self.path})"
        super().__init__(message)


class DuplicateRuleError(RuleError):
    """Raised when two loaded rules share an id."""

    def __init__(self, rule_id: str, sources: Sequence[str | None] = ()):
        self.rule_id = rule_id
        self.sources = tuple(s for s in sources if s)
        message = f"Duplicate rule id '{rule_id}'"
        if self.sources:
            message += f" defined in {', '.join(self.sources)}"
        super().__init__(message)


class UnknownRuleError(RuleError):
    """Raised when a requested id or a dependency does not exist.

    Attributes:
        rule_id: The id that could not be found.
        chain: Ids on the dependency path that led to ``rule_id``.
            Empty when the id was requested directly.
    """

    def __init__(self, rule_id: str, chain: Sequence[str] = ()):
        self.rule_id = rule_id
        self.chain = tuple(chain)
        message = f"Unknown rule '{rule_id}'"
        if self.chain:
            message += f" (via {' -> '.join(self.chain)})"
        super().__init__(message)


class CircularDependencyError(RuleError):
    """Raised when a rule depends on itself, directly or transitively.

    ``cycle`` starts and ends with the same id, e.g. ``("a", "b", "a")``.
    """

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.cycle)}")
