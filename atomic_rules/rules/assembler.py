"""Assembly of instruction documents.

This module turns resolved rule orders into documents:
- Assembler: One target, all-or-nothing
- BatchAssembler: Many targets, failures isolated per target
- BatchResult: Documents and failures of a batch run
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from atomic_rules.rules.errors import RuleError
from atomic_rules.rules.models import AssembledDocument, ResolutionRequest
from atomic_rules.rules.resolver import DependencyResolver
from atomic_rules.rules.store import RuleStore


logger = logging.getLogger(__name__)


class Assembler:
    """Builds the instruction document for a target.

    Assembly has no side effects. Resolution errors propagate unchanged;
    no partial document is ever produced.
    """

    def __init__(self, store: RuleStore, resolver: DependencyResolver | None = None) -> None:
        self.store = store
        self.resolver = resolver or DependencyResolver(store)

    def assemble(
        self,
        target: str,
        requested_ids: Iterable[str],
        generation_id: str | None = None,
    ) -> AssembledDocument:
        """Assemble a document for one target.

        Args:
            target: Agent or semantic view name.
            requested_ids: Ids declared by the target, in order.
            generation_id: Optional id of the assembly run.

        Returns:
            The assembled document.

        Raises:
            UnknownRuleError: If a requested id or a dependency is missing.
            CircularDependencyError: If the dependencies contain a cycle.
        """
        requested = tuple(requested_ids)
        order = self.resolver.resolve(requested)
        rules = tuple(self.store.get(rule_id) for rule_id in order)

        document = AssembledDocument(
            target=target,
            rules=rules,
            requested_ids=requested,
            generation_id=generation_id,
        )
        if document.injected_ids:
            logger.debug(f"Target '{target}': injected dependencies {document.injected_ids}")
        logger.info(f"Assembled '{target}' with {len(rules)} rules")
        return document

    def assemble_request(self, request: ResolutionRequest) -> AssembledDocument:
        return self.assemble(request.target, request.requested_ids, request.generation_id)


@dataclass
class BatchResult:
    """Outcome of assembling several targets.

    Both mappings keep the order of the original requests.
    """
    documents: dict[str, AssembledDocument] = field(default_factory=dict)
    failures: dict[str, RuleError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.documents) + len(self.failures),
            "assembled": len(self.documents),
            "failed": len(self.failures),
        }


class BatchAssembler:
    """Assembles many targets against one rule snapshot.

    Targets are independent of each other: a target that fails is
    recorded in the result and reported, the others are still assembled.

    Args:
        store: Snapshot shared by every target in the batch.
        max_workers: Number of worker threads. 1 assembles sequentially.
    """

    def __init__(self, store: RuleStore, max_workers: int = 1) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.assembler = Assembler(store)
        self.max_workers = max_workers

    def assemble_all(self, requests: Sequence[ResolutionRequest]) -> BatchResult:
        """Assemble every request.

        Raises:
            ValueError: If two requests name the same target.
        """
        names = [request.target for request in requests]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate targets in batch: {', '.join(duplicates)}")

        if self.max_workers == 1 or len(requests) <= 1:
            outcomes = [self._assemble_one(request) for request in requests]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(executor.map(self._assemble_one, requests))

        result = BatchResult()
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, RuleError):
                result.failures[request.target] = outcome
            else:
                result.documents[request.target] = outcome

        logger.info(
            f"Batch assembly finished: {len(result.documents)} assembled, "
            f"{len(result.failures)} failed"
        )
        return result

    def _assemble_one(self, request: ResolutionRequest) -> AssembledDocument | RuleError:
        try:
            return self.assembler.assemble_request(request)
        except RuleError as e:
            logger.error(f"Assembly failed for target '{request.target}': {e}")
            return e
