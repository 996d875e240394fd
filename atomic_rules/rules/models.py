"""Data models for atomic rules.

This module defines the core data structures for rule assembly:
- RuleExample: An (input, context, behavior) illustration attached to a rule
- Rule: A single-purpose instruction fragment with declared dependencies
- ResolutionRequest: The rule ids a target asks for, in caller order
- AssembledDocument: The ordered, deduplicated result of an assembly
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class RuleExample:
    """Example attached to a rule. Carried through unmodified."""
    input: str = ""
    context: str = ""
    behavior: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "input": self.input,
            "context": self.context,
            "behavior": self.behavior,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleExample":
        return cls(
            input=str(data.get("input", "") or ""),
            context=str(data.get("context", "") or ""),
            behavior=str(data.get("behavior", "") or ""),
        )


@dataclass(frozen=True)
class Rule:
    """Atomic instruction rule.

    Rules are immutable once created so a loaded store can be shared
    between concurrent assemblies.

    Attributes:
        id: Unique identifier for the rule
        description: The instruction text to emit
        version: Free-form version label, not interpreted
        category: Grouping label, no effect on ordering
        tags: Informational tags
        depends_on: Ids that must be emitted before this rule, in order
        examples: Illustrations carried through to the output
        source_path: Path to the source file (if loaded from file)
        metadata: Additional keys from the source document
    """
    id: str
    description: str
    version: str = "1.0"
    category: str = "general"
    tags: frozenset[str] = frozenset()
    depends_on: tuple[str, ...] = ()
    examples: tuple[RuleExample, ...] = ()
    source_path: str | None = field(default=None, compare=False)
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        """Normalise collections and validate the rule."""
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "depends_on", tuple(self.depends_on))
        object.__setattr__(self, "examples", tuple(self.examples))
        object.__setattr__(self, "version", str(self.version))

        if not self.id or not self.id.strip():
            raise ValueError("Rule id cannot be empty")
        if not self.description or not self.description.strip():
            raise ValueError(f"Rule '{self.id}' description cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        """Serialize rule to dictionary.

        Returns:
            Dictionary representation of the rule. Metadata values are passed
            through as parsed (YAML dates stay dates).
        """
        return {
            "id": self.id,
            "version": self.version,
            "category": self.category,
            "tags": sorted(self.tags),
            "depends_on": list(self.depends_on),
            "description": self.description,
            "examples": [e.to_dict() for e in self.examples],
            "source_path": self.source_path,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        """Deserialize rule from dictionary.

        Args:
            data: Dictionary containing rule data.

        Returns:
            Rule instance reconstructed from the dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If field values are invalid.
        """
        return cls(
            id=data["id"],
            description=data["description"],
            version=data.get("version", "1.0"),
            category=data.get("category", "general"),
            tags=frozenset(data.get("tags", ())),
            depends_on=tuple(data.get("depends_on", ())),
            examples=tuple(RuleExample.from_dict(e) for e in data.get("examples", ())),
            source_path=data.get("source_path"),
            metadata=data.get("metadata", {}),
        )


@dataclass(frozen=True)
class ResolutionRequest:
    """Rule ids requested by one target.

    Attributes:
        target: Agent or semantic view name, for traceability
        requested_ids: Requested ids in the order the caller cares about
        generation_id: Optional caller-supplied id for the assembly run
    """
    target: str
    requested_ids: tuple[str, ...]
    generation_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "requested_ids", tuple(self.requested_ids))


@dataclass(frozen=True)
class AssembledDocument:
    """Ordered, deduplicated instruction document for one target.

    Every rule's dependencies appear strictly earlier in ``rules``.
    ``requested_ids`` is the caller's list unchanged, so it can be diffed
    against what was actually emitted.
    """
    target: str
    rules: tuple[Rule, ...]
    requested_ids: tuple[str, ...]
    generation_id: str | None = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "requested_ids", tuple(self.requested_ids))

    @property
    def rule_ids(self) -> list[str]:
        return [rule.id for rule in self.rules]

    @property
    def injected_ids(self) -> list[str]:
        """Ids emitted only because another rule depends on them."""
        requested = set(self.requested_ids)
        return [rule.id for rule in self.rules if rule.id not in requested]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "target": self.target,
            "generation_id": self.generation_id,
            "generated_at": self.generated_at.isoformat(),
            "requested_ids": list(self.requested_ids),
            "rule_ids": self.rule_ids,
            "injected_ids": self.injected_ids,
            "rules": [rule.to_dict() for rule in self.rules],
        }

    def render_markdown(self) -> str:
        """Render the document as markdown instructions.

        Returns:
            Markdown text with one section per rule in resolved order.
        """
        sections = [f"# Instructions: {self.target}\n"]
        if self.generation_id:
            sections.append(f"<!-- generation: {self.generation_id} -->\n")

        for rule in self.rules:
            sections.append(f"## {rule.id} (v{rule.version})\n")
            sections.append(rule.description.strip() + "\n")
            if rule.examples:
                sections.append("**Examples:**\n")
                for example in rule.examples:
                    line = f"- Input: {example.input}"
                    if example.context:
                        line += f"\n  Context: {example.context}"
                    if example.behavior:
                        line += f"\n  Behavior: {example.behavior}"
                    sections.append(line)
                sections.append("")

        return "\n".join(sections).rstrip() + "\n"
