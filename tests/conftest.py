"""Pytest configuration and fixtures for atomic rules tests."""

import pytest

from atomic_rules.rules.models import Rule
from atomic_rules.rules.store import RuleStore


def _rule(rule_id: str, *depends_on: str, **kwargs) -> Rule:
    """Helper to create test rules."""
    defaults = {"description": f"Instruction for {rule_id}"}
    defaults.update(kwargs)
    return Rule(id=rule_id, depends_on=depends_on, **defaults)


@pytest.fixture
def analytics_store() -> RuleStore:
    """Store with the period, privacy and formatting rules of an analytics agent."""
    return RuleStore.load([
        _rule("response_format", description="Always answer with a table."),
        _rule("pii_filtering", description="Never return PII columns."),
        _rule("aligned_period_comparison", "default_period"),
        _rule("default_period", description="Default to the last 12 months."),
        _rule("fiscal_year_handling", "default_period"),
    ])


@pytest.fixture
def rules_dir(tmp_path):
    """Directory with YAML and markdown rule files."""
    directory = tmp_path / "rules"
    (directory / "time").mkdir(parents=True)
    (directory / "time" / "periods.yaml").write_text(
        "rules:\n"
        "  - id: default_period\n"
        "    category: time\n"
        "    description: Default to the last 12 months.\n"
        "  - id: fiscal_year_handling\n"
        "    category: time\n"
        "    version: \"2\"\n"
        "    depends_on: [default_period]\n"
        "    description: Fiscal years start in February.\n"
        "    examples:\n"
        "      - input: revenue for FY24\n"
        "        behavior: Use Feb 2023 to Jan 2024\n",
        encoding="utf-8",
    )
    (directory / "pii_filtering.md").write_text(
        "---\n"
        "id: pii_filtering\n"
        "category: security\n"
        "tags: [privacy]\n"
        "---\n"
        "\n"
        "Never return columns tagged as PII.\n",
        encoding="utf-8",
    )
    (directory / "response_format.yml").write_text(
        "id: response_format\n"
        "description: Present results as a markdown table.\n",
        encoding="utf-8",
    )
    (directory / "unused.yaml").write_text(
        "id: legacy_currency\n"
        "description: Convert amounts to EUR.\n",
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def targets_dir(tmp_path):
    """Directory with one agent and one semantic view."""
    directory = tmp_path / "targets"
    directory.mkdir()
    (directory / "sales_agent.yaml").write_text(
        "agent: sales_agent\n"
        "instructions:\n"
        "  orchestration: [fiscal_year_handling]\n"
        "  system: [pii_filtering]\n"
        "  response: [response_format]\n",
        encoding="utf-8",
    )
    (directory / "revenue_view.yaml").write_text(
        "semantic_view: revenue\n"
        "rule_ids: [default_period]\n",
        encoding="utf-8",
    )
    return directory
