"""Atomic rules: loading, dependency resolution and document assembly.

Rules are single-purpose instruction fragments that may declare
dependencies on other rules. Targets (agents and semantic views) request
rule ids; the assembler resolves them into an ordered, deduplicated,
cycle-free instruction document.
"""

from atomic_rules.rules.models import (
    Rule,
    RuleExample,
    ResolutionRequest,
    AssembledDocument,
)
from atomic_rules.rules.errors import (
    RuleError,
    RuleParseError,
    DuplicateRuleError,
    UnknownRuleError,
    CircularDependencyError,
)
from atomic_rules.rules.parser import RuleParser, MAX_RULE_FILE_SIZE
from atomic_rules.rules.store import RuleStore, RuleStoreRegistry, FileRuleSource
from atomic_rules.rules.resolver import DependencyResolver
from atomic_rules.rules.assembler import Assembler, BatchAssembler, BatchResult
from atomic_rules.rules.targets import Target, TargetKind, TargetParser
from atomic_rules.rules.audit import RuleAuditor, AuditReport

__all__ = [
    # Models
    "Rule",
    "RuleExample",
    "ResolutionRequest",
    "AssembledDocument",
    # Errors
    "RuleError",
    "RuleParseError",
    "DuplicateRuleError",
    "UnknownRuleError",
    "CircularDependencyError",
    # Parser
    "RuleParser",
    "MAX_RULE_FILE_SIZE",
    # Store
    "RuleStore",
    "RuleStoreRegistry",
    "FileRuleSource",
    # Resolution and assembly
    "DependencyResolver",
    "Assembler",
    "BatchAssembler",
    "BatchResult",
    # Targets
    "Target",
    "TargetKind",
    "TargetParser",
    # Audit
    "RuleAuditor",
    "AuditReport",
]
