"""Auditing of rule stores and target configurations.

Finds problems that should be fixed before deployment:
- orphan rules no target reaches
- dependencies pointing at ids that do not exist
- dependency cycles anywhere in the store
- targets that fail to assemble

It also emits heuristic warnings for rules that may contradict each
other. Those are hints for a human reviewer, never failures.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from atomic_rules.rules.assembler import Assembler
from atomic_rules.rules.errors import RuleError
from atomic_rules.rules.models import ResolutionRequest, Rule
from atomic_rules.rules.store import RuleStore


logger = logging.getLogger(__name__)


# Keyword groups whose affirmative and negative words, found in two rules
# of the same document, suggest the rules disagree
POLARITY_KEYWORDS = {
    "obligation": (frozenset({"always", "must", "required"}), frozenset({"never", "forbidden", "prohibited"})),
    "permission": (frozenset({"enable", "allow", "permit"}), frozenset({"disable", "deny", "block"})),
    "inclusion": (frozenset({"include", "add"}), frozenset({"exclude", "remove"})),
}

WORD_PATTERN = re.compile(r"[a-z]+")


@dataclass
class AuditReport:
    """Report of all audit findings."""
    orphans: list[str] = field(default_factory=list)
    dangling: list[tuple[str, str]] = field(default_factory=list)  # (rule_id, missing_id)
    cycles: list[list[str]] = field(default_factory=list)
    target_errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def has_errors(self) -> bool:
        """Check for findings that block deployment. Orphans do not."""
        return bool(self.dangling or self.cycles or self.target_errors)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "orphans": self.orphans,
            "dangling": [
                {"rule_id": rule_id, "missing": missing}
                for rule_id, missing in self.dangling
            ],
            "cycles": self.cycles,
            "target_errors": self.target_errors,
            "warnings": self.warnings,
            "has_errors": self.has_errors(),
        }


class RuleAuditor:
    """Audits a rule store against the targets that use it."""

    def __init__(self, store: RuleStore) -> None:
        self.store = store
        self.assembler = Assembler(store)

    def audit(self, requests: Iterable[ResolutionRequest]) -> AuditReport:
        """Run every check.

        Args:
            requests: One request per target configuration.

        Returns:
            AuditReport containing all findings.
        """
        requests = list(requests)
        report = AuditReport(
            orphans=self.find_orphans(requests),
            dangling=self.find_dangling(),
            cycles=self.find_cycles(),
        )

        for request in requests:
            try:
                document = self.assembler.assemble_request(request)
            except RuleError as e:
                report.target_errors[request.target] = str(e)
                continue
            self._detect_contradictions(request.target, list(document.rules), report)

        for rule_id, missing in report.dangling:
            logger.warning(f"Rule '{rule_id}' depends on unknown rule '{missing}'")
        for cycle in report.cycles:
            logger.warning(f"Dependency cycle: {' -> '.join(cycle)}")
        if report.orphans:
            logger.warning(f"{len(report.orphans)} orphan rule(s): {', '.join(report.orphans)}")

        return report

    def find_orphans(self, requests: Iterable[ResolutionRequest]) -> list[str]:
        """Ids that no target reaches directly or through dependencies."""
        reached: set[str] = set()
        stack = [rule_id for request in requests for rule_id in request.requested_ids]
        while stack:
            rule_id = stack.pop()
            if rule_id in reached or rule_id not in self.store:
                continue
            reached.add(rule_id)
            stack.extend(self.store.get(rule_id).depends_on)

        return sorted(self.store.all_ids() - reached)

    def find_dangling(self) -> list[tuple[str, str]]:
        """(rule_id, missing_id) pairs for dependencies that do not exist."""
        dangling = []
        for rule_id in sorted(self.store.all_ids()):
            for dependency in self.store.get(rule_id).depends_on:
                if dependency not in self.store:
                    dangling.append((rule_id, dependency))
        return dangling

    def find_cycles(self) -> list[list[str]]:
        """Every distinct dependency cycle in the store.

        Each cycle is reported once, as a path starting and ending with its
        alphabetically smallest id.
        """
        done: set[str] = set()
        found: dict[tuple[str, ...], list[str]] = {}

        for root in sorted(self.store.all_ids()):
            if root in done:
                continue

            path = [root]
            visiting = {root}
            frames = [iter(self.store.get(root).depends_on)]
            while frames:
                dependency = next(frames[-1], None)
                if dependency is None:
                    frames.pop()
                    rule_id = path.pop()
                    visiting.discard(rule_id)
                    done.add(rule_id)
                elif dependency in done or dependency not in self.store:
                    continue
                elif dependency in visiting:
                    cycle = path[path.index(dependency):]
                    pivot = cycle.index(min(cycle))
                    canonical = cycle[pivot:] + cycle[:pivot]
                    found.setdefault(tuple(canonical), canonical + [canonical[0]])
                else:
                    path.append(dependency)
                    visiting.add(dependency)
                    frames.append(iter(self.store.get(dependency).depends_on))

        return list(found.values())

    def _detect_contradictions(
        self, target: str, rules: list[Rule], report: AuditReport
    ) -> None:
        """Warn about rule pairs in one document whose wording pulls apart.

        Each rule is reduced to the polarity it shows per keyword group
        (whole words only). A pair is flagged on the first group where one
        rule is affirmative and the other negative.
        """
        stances = [(rule, _stances(rule.description)) for rule in rules]

        for i, (rule1, stance1) in enumerate(stances):
            for rule2, stance2 in stances[i + 1:]:
                group = next(
                    (g for g in POLARITY_KEYWORDS if _opposed(stance1.get(g, set()), stance2.get(g, set()))),
                    None,
                )
                if group is None:
                    continue

                warning = (
                    f"Potential contradiction between '{rule1.id}' and '{rule2.id}' "
                    f"in target '{target}' ({group} wording)"
                )
                if warning not in report.warnings:
                    report.warnings.append(warning)


def _stances(text: str) -> dict[str, set[bool]]:
    """Map keyword group name to the polarities used in ``text``."""
    words = set(WORD_PATTERN.findall(text.lower()))
    stances: dict[str, set[bool]] = {}
    for group, (affirmative, negative) in POLARITY_KEYWORDS.items():
        if words & affirmative:
            stances.setdefault(group, set()).add(True)
        if words & negative:
            stances.setdefault(group, set()).add(False)
    return stances


def _opposed(first: set[bool], second: set[bool]) -> bool:
    return (True in first and False in second) or (False in first and True in second)
