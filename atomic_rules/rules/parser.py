"""Rule file parser for atomic rules.

This module handles parsing of rule definition files:
- YAML files holding one rule mapping or a ``rules:`` list
- Markdown files with YAML frontmatter, the body being the description
- Required field validation (id, description)
- File size limits
"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from atomic_rules.rules.errors import RuleParseError
from atomic_rules.rules.models import Rule, RuleExample


logger = logging.getLogger(__name__)

# Maximum rule file size (1MB)
MAX_RULE_FILE_SIZE = 1 * 1024 * 1024

YAML_SUFFIXES = (".yaml", ".yml")
MARKDOWN_SUFFIXES = (".md",)
RULE_FILE_SUFFIXES = YAML_SUFFIXES + MARKDOWN_SUFFIXES

# Keys consumed by the parser; anything else ends up in Rule.metadata
KNOWN_KEYS = frozenset({
    "id", "version", "category", "tags", "depends_on", "description", "examples",
})


def read_text_file(file_path: Path) -> str:
    """Read a configuration file, enforcing the size limit.

    Raises:
        RuleParseError: If the file is too large or cannot be decoded.
    """
    file_size = file_path.stat().st_size
    if file_size > MAX_RULE_FILE_SIZE:
        raise RuleParseError(
            f"File exceeds size limit ({file_size} > {MAX_RULE_FILE_SIZE})", file_path
        )

    try:
        return file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise RuleParseError("Failed to read file (encoding error)", file_path) from e
    except OSError as e:
        raise RuleParseError("Failed to read file", file_path) from e


def load_yaml(text: str, source_path: str | Path | None = None) -> Any:
    """Parse YAML text, wrapping syntax errors in RuleParseError."""
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RuleParseError(f"Invalid YAML: {e}", source_path) from e


class RuleParser:
    """Parser for rule files.

    Example YAML rule file:
    ```yaml
    id: fiscal_year_handling
    version: "1.2"
    category: time
    tags: [finance]
    depends_on: [default_period]
    description: |
      Fiscal years start in February.
    examples:
      - input: "revenue for FY24"
        behavior: "Use Feb 2023 - Jan 2024"
    ```

    Example markdown rule file:
    ```markdown
    ---
    id: pii_filtering
    category: security
    ---

    Never return columns tagged as PII.
    ```
    """

    # Pattern to match YAML frontmatter between --- delimiters
    FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?", re.DOTALL)

    def parse_file(self, file_path: Path) -> list[Rule]:
        """Parse a rule file.

        Args:
            file_path: Path to the rule file.

        Returns:
            Rules defined in the file, in document order.

        Raises:
            RuleParseError: If the file is too large or has invalid format.
        """
        content = read_text_file(file_path)
        return self.parse_content(content, str(file_path), file_path.suffix)

    def parse_content(
        self,
        content: str,
        source_path: str | None = None,
        suffix: str = ".yaml",
    ) -> list[Rule]:
        """Parse rule content string.

        Args:
            content: The full content of the rule file.
            source_path: Optional path to the source file for reference.
            suffix: File suffix selecting YAML or markdown parsing.

        Returns:
            Parsed rules.

        Raises:
            RuleParseError: If the content has invalid format or missing required fields.
        """
        if suffix.lower() in MARKDOWN_SUFFIXES:
            return [self._parse_markdown(content, source_path)]

        data = load_yaml(content, source_path)
        if data is None:
            logger.debug(f"Empty rule file: {source_path}")
            return []
        if not isinstance(data, dict):
            raise RuleParseError("Rule file must contain a mapping", source_path)

        if "rules" in data:
            entries = data["rules"]
            if not isinstance(entries, list):
                raise RuleParseError("'rules' must be a list", source_path)
            return [self.parse_mapping(entry, source_path) for entry in entries]

        return [self.parse_mapping(data, source_path)]

    def _parse_markdown(self, content: str, source_path: str | None) -> Rule:
        match = self.FRONTMATTER_PATTERN.match(content)
        if not match:
            raise RuleParseError(
                "Missing or invalid YAML frontmatter. "
                "Rule files must start with '---' followed by YAML metadata.",
                source_path,
            )

        metadata = load_yaml(match.group(1), source_path) or {}
        if not isinstance(metadata, dict):
            raise RuleParseError("Frontmatter must be a mapping", source_path)

        body = content[match.end():].strip()
        if body and not metadata.get("description"):
            metadata = {**metadata, "description": body}

        return self.parse_mapping(metadata, source_path)

    def parse_mapping(self, data: Any, source_path: str | None = None) -> Rule:
        """Build a Rule from a parsed mapping.

        Raises:
            RuleParseError: If required fields are missing or values are invalid.
        """
        if not isinstance(data, dict):
            raise RuleParseError("Rule entry must be a mapping", source_path)

        # Validate required fields
        if not data.get("id"):
            raise RuleParseError("Missing required field: id", source_path)
        if not data.get("description"):
            raise RuleParseError(
                f"Missing required field: description (rule '{data['id']}')", source_path
            )

        rule_id = str(data["id"])
        version = data.get("version", "1.0")
        if not isinstance(version, str):
            # YAML reads an unquoted 1.10 as the float 1.1
            logger.warning(
                f"Rule '{rule_id}': version {version!r} is not a string, "
                f"quote it to keep the exact label ({source_path})"
            )
        try:
            return Rule(
                id=rule_id,
                description=str(data["description"]).strip(),
                version=str(version),
                category=str(data.get("category") or "general"),
                tags=frozenset(self._string_list(data, "tags", rule_id, source_path)),
                depends_on=tuple(self._string_list(data, "depends_on", rule_id, source_path)),
                examples=tuple(self._parse_examples(data.get("examples"), rule_id, source_path)),
                source_path=source_path,
                metadata={k: v for k, v in data.items() if k not in KNOWN_KEYS},
            )
        except ValueError as e:
            raise RuleParseError(str(e), source_path) from e

    def _string_list(
        self,
        data: dict[str, Any],
        key: str,
        rule_id: str,
        source_path: str | None,
    ) -> list[str]:
        """Read an optional list-of-strings field.

        A bare string is accepted as a single-element list.
        """
        value = data.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            raise RuleParseError(f"Rule '{rule_id}': '{key}' must be a list", source_path)
        return [str(item) for item in value]

    def _parse_examples(
        self,
        value: Any,
        rule_id: str,
        source_path: str | None,
    ) -> list[RuleExample]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise RuleParseError(f"Rule '{rule_id}': 'examples' must be a list", source_path)

        examples = []
        for item in value:
            if not isinstance(item, dict):
                raise RuleParseError(
                    f"Rule '{rule_id}': each example must be a mapping", source_path
                )
            examples.append(RuleExample.from_dict(item))
        return examples
