"""Rule storage for atomic rules.

This module provides:
- RuleStore: Immutable snapshot of loaded rules, looked up by id
- RuleStoreRegistry: Holds the current snapshot and swaps in new versions
- FileRuleSource: Loads rule definitions from a directory tree
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import MappingProxyType

from atomic_rules.rules.errors import DuplicateRuleError, UnknownRuleError
from atomic_rules.rules.models import Rule
from atomic_rules.rules.parser import RULE_FILE_SUFFIXES, RuleParser


logger = logging.getLogger(__name__)


class RuleStore:
    """Read-only collection of rules keyed by id.

    A store is a snapshot: it is never mutated after ``load``, so any
    number of resolutions may read it concurrently without locking.

    Attributes:
        version: Snapshot version assigned by the registry (0 if standalone).
    """

    def __init__(self, rules: dict[str, Rule] | None = None, version: int = 0) -> None:
        self._rules = MappingProxyType(dict(rules or {}))
        self.version = version

    @classmethod
    def load(cls, rules: Iterable[Rule], version: int = 0) -> "RuleStore":
        """Build a store from already-parsed rules.

        Args:
            rules: Rules to load, in the order they should be listed.
            version: Snapshot version.

        Returns:
            A new RuleStore.

        Raises:
            DuplicateRuleError: If two rules share an id.
        """
        by_id: dict[str, Rule] = {}
        for rule in rules:
            existing = by_id.get(rule.id)
            if existing is not None:
                raise DuplicateRuleError(rule.id, [existing.source_path, rule.source_path])
            by_id[rule.id] = rule

        logger.debug(f"Loaded {len(by_id)} rules (snapshot v{version})")
        return cls(by_id, version=version)

    def get(self, rule_id: str) -> Rule:
        """Get a rule by id.

        Raises:
            UnknownRuleError: If no rule has this id.
        """
        try:
            return self._rules[rule_id]
        except KeyError:
            raise UnknownRuleError(rule_id) from None

    def all_ids(self) -> frozenset[str]:
        """All rule ids in the store, for usage auditing."""
        return frozenset(self._rules)

    def list_rules(self, category: str | None = None) -> list[Rule]:
        """List rules in load order, optionally filtered by category."""
        if category is None:
            return list(self._rules.values())
        return [r for r in self._rules.values() if r.category == category]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())


class RuleStoreRegistry:
    """Holds the current rule snapshot.

    Publishing builds a complete new RuleStore and swaps the reference
    under a lock. Callers take ``current()`` once per assembly run and keep
    using that snapshot even if a newer one is published meanwhile.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = RuleStore()
        self._version = 0

    def current(self) -> RuleStore:
        """Get the most recently published snapshot."""
        with self._lock:
            return self._current

    def publish(self, rules: Iterable[Rule]) -> RuleStore:
        """Load rules into a new snapshot and make it current.

        The previous snapshot is left untouched. If loading fails the
        current snapshot is kept.

        Raises:
            DuplicateRuleError: If two rules share an id.
        """
        rules = list(rules)
        with self._lock:
            store = RuleStore.load(rules, version=self._version + 1)
            self._version = store.version
            self._current = store
        logger.info(f"Published rule snapshot v{store.version} ({len(store)} rules)")
        return store

    def reload(self, source: "FileRuleSource") -> RuleStore:
        """Load rules from a source and publish them."""
        return self.publish(source.load())


class FileRuleSource:
    """Loads rule definitions from a directory.

    Files are visited recursively in sorted path order so that the
    resulting store, and any duplicate-id error, is deterministic.

    Attributes:
        rules_dir: Root directory holding rule files.
    """

    def __init__(self, rules_dir: Path, parser: RuleParser | None = None) -> None:
        self.rules_dir = Path(rules_dir)
        self.parser = parser or RuleParser()

    def iter_files(self) -> Iterator[Path]:
        """Yield rule files under the directory in sorted order."""
        if not self.rules_dir.exists():
            logger.warning(f"Rules directory not found: {self.rules_dir}")
            return
        for path in sorted(self.rules_dir.rglob("*")):
            if path.is_file() and path.suffix.lower() in RULE_FILE_SUFFIXES:
                yield path

    def load(self) -> list[Rule]:
        """Parse every rule file.

        Raises:
            RuleParseError: If any file is invalid. Nothing is skipped.
        """
        rules: list[Rule] = []
        for path in self.iter_files():
            parsed = self.parser.parse_file(path)
            logger.debug(f"Parsed {len(parsed)} rule(s) from {path}")
            rules.extend(parsed)
        logger.info(f"Loaded {len(rules)} rules from {self.rules_dir}")
        return rules

    def load_store(self) -> RuleStore:
        """Parse every rule file into a standalone RuleStore."""
        return RuleStore.load(self.load())
