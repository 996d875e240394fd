"""Target configuration for atomic rules.

A target is an agent or a semantic view that references rule ids.
Agents split their ids into orchestration, system and response lists;
semantic views list them under ``rule_ids``.

Example agent file:
```yaml
agent: sales_analyst
instructions:
  orchestration: [default_period]
  system: [pii_filtering]
  response: [response_format]
```

Example semantic view file:
```yaml
semantic_view: revenue
rule_ids: [fiscal_year_handling]
```
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from atomic_rules.rules.errors import RuleParseError
from atomic_rules.rules.models import ResolutionRequest
from atomic_rules.rules.parser import YAML_SUFFIXES, load_yaml, read_text_file


logger = logging.getLogger(__name__)


class TargetKind(Enum):
    """Kind of configuration that requests rules."""
    AGENT = "agent"
    SEMANTIC_VIEW = "semantic_view"


# Order in which an agent's instruction lists are flattened
AGENT_SECTIONS = ("orchestration", "system", "response")


@dataclass(frozen=True)
class Target:
    """An agent or semantic view and the rule ids it declares."""
    name: str
    kind: TargetKind
    orchestration: tuple[str, ...] = ()
    system: tuple[str, ...] = ()
    response: tuple[str, ...] = ()
    rule_ids: tuple[str, ...] = ()
    source_path: str | None = None

    @property
    def requested_ids(self) -> list[str]:
        """Declared ids flattened in the order they should be resolved."""
        if self.kind is TargetKind.AGENT:
            return [*self.orchestration, *self.system, *self.response]
        return list(self.rule_ids)

    def to_request(self, generation_id: str | None = None) -> ResolutionRequest:
        return ResolutionRequest(
            target=self.name,
            requested_ids=tuple(self.requested_ids),
            generation_id=generation_id,
        )


class TargetParser:
    """Parses agent and semantic view YAML files into Targets."""

    def parse_file(self, file_path: Path) -> Target:
        data = load_yaml(read_text_file(file_path), file_path)
        return self.parse_mapping(data, str(file_path))

    def parse_mapping(self, data: Any, source_path: str | None = None) -> Target:
        """Build a Target from a parsed mapping.

        Raises:
            RuleParseError: If the mapping does not describe a target.
        """
        if not isinstance(data, dict):
            raise RuleParseError("Target file must contain a mapping", source_path)

        if data.get("agent"):
            name, kind = data["agent"], TargetKind.AGENT
        elif data.get("semantic_view"):
            name, kind = data["semantic_view"], TargetKind.SEMANTIC_VIEW
        elif data.get("name") and data.get("kind"):
            name = data["name"]
            try:
                kind = TargetKind(data["kind"])
            except ValueError:
                raise RuleParseError(f"Unknown target kind: {data['kind']!r}", source_path) from None
        else:
            raise RuleParseError(
                "Target must declare 'agent', 'semantic_view', or 'name' with 'kind'",
                source_path,
            )

        name = str(name)
        # Names become output file names
        if "/" in name or "\\" in name or name in (".", ".."):
            raise RuleParseError(f"Invalid target name: {name!r}", source_path)

        if kind is TargetKind.SEMANTIC_VIEW:
            return Target(
                name=name,
                kind=kind,
                rule_ids=self._id_list(data, "rule_ids", source_path),
                source_path=source_path,
            )

        sections = data.get("instructions", data)
        if not isinstance(sections, dict):
            raise RuleParseError("'instructions' must be a mapping", source_path)
        return Target(
            name=name,
            kind=kind,
            source_path=source_path,
            **{section: self._id_list(sections, section, source_path) for section in AGENT_SECTIONS},
        )

    def parse_dir(self, targets_dir: Path) -> list[Target]:
        """Load every target file under a directory in sorted path order.

        Raises:
            RuleParseError: If a file is invalid or two targets share a name.
        """
        targets_dir = Path(targets_dir)
        if not targets_dir.exists():
            logger.warning(f"Targets directory not found: {targets_dir}")
            return []

        targets: list[Target] = []
        seen: dict[str, str | None] = {}
        for path in sorted(targets_dir.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in YAML_SUFFIXES:
                continue
            target = self.parse_file(path)
            if target.name in seen:
                raise RuleParseError(
                    f"Duplicate target '{target.name}' (also in {seen[target.name]})", path
                )
            seen[target.name] = target.source_path
            targets.append(target)

        logger.info(f"Loaded {len(targets)} targets from {targets_dir}")
        return targets

    def _id_list(self, data: dict[str, Any], key: str, source_path: str | None) -> tuple[str, ...]:
        value = data.get(key)
        if value is None:
            return ()
        if not isinstance(value, list):
            raise RuleParseError(f"'{key}' must be a list of rule ids", source_path)
        return tuple(str(item) for item in value)
