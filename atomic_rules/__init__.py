"""Atomic rules - assemble agent instructions from reusable rule fragments."""

from importlib.metadata import version, PackageNotFoundError

from atomic_rules.rules import (
    Assembler,
    AssembledDocument,
    BatchAssembler,
    CircularDependencyError,
    DependencyResolver,
    DuplicateRuleError,
    Rule,
    RuleError,
    RuleStore,
    UnknownRuleError,
)

try:
    __version__ = version("atomic-rules")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development

__all__ = [
    "Assembler",
    "AssembledDocument",
    "BatchAssembler",
    "CircularDependencyError",
    "DependencyResolver",
    "DuplicateRuleError",
    "Rule",
    "RuleError",
    "RuleStore",
    "UnknownRuleError",
]
