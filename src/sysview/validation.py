"""
sysview.validation - Static model checks.

Three rules run over a set of resident elements:

- DUP_REQID: two requirement definitions share a ``reqId``
- CYCLE_DERIVE_REFINE: derive/refine relationships form a loop
- BROKEN_REF: a usage or relationship points at an element that is not there

The checks are pure functions of the element map, like the projections,
so the store and the reference backend run the same code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from sysview.model.ElementRecord import (
    DEFINITION_REF,
    SOURCE_REF,
    TARGET_REF,
    ElementKind,
    ElementRecord,
)
from sysview.model.relations import EdgeKind, edge_kind_for

RESULT_VERSION = "1.0"

DUP_REQID = "DUP_REQID"
CYCLE_DERIVE_REFINE = "CYCLE_DERIVE_REFINE"
BROKEN_REF = "BROKEN_REF"

REQ_ID_ATTRIBUTE = "reqId"

_CYCLE_KINDS = (EdgeKind.DERIVES, EdgeKind.REFINES)


class Severity(Enum):
    """Severity level for rule violations."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Rule:
    code: str
    description: str
    severity: Severity = Severity.ERROR

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code,
            "description": self.description,
            "severity": self.severity.value.upper(),
        }


RULES: tuple[Rule, ...] = (
    Rule(DUP_REQID, "Detects duplicate reqId in requirement definitions"),
    Rule(CYCLE_DERIVE_REFINE, "Detects circular dependencies in derive/refine chains"),
    Rule(BROKEN_REF, "Detects references to elements that do not exist"),
)


@dataclass(frozen=True)
class Violation:
    """One rule violation.

    Attributes:
        rule_code: Code of the violated rule (e.g. "BROKEN_REF").
        target_id: Element the violation is reported against.
        message: Short description.
        details: Specifics (the duplicated value, the loop, the missing id).
        severity: Severity level.
    """

    rule_code: str
    target_id: str
    message: str
    details: str = ""
    severity: Severity = Severity.ERROR

    def __str__(self) -> str:
        head = f"{self.severity.name} [{self.rule_code}] {self.target_id}"
        return f"{head}\n   {self.message}\n   {self.details}"

    def to_dict(self) -> dict[str, str]:
        return {
            "ruleCode": self.rule_code,
            "targetId": self.target_id,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value.upper(),
        }


@dataclass
class ValidationResult:
    """Outcome of one validation run."""

    violations: list[Violation]
    element_count: int
    validated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return not any(v.severity is Severity.ERROR for v in self.violations)

    def by_rule(self, rule_code: str) -> list[Violation]:
        return [v for v in self.violations if v.rule_code == rule_code]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.ok,
            "violations": [v.to_dict() for v in self.violations],
            "elementCount": self.element_count,
            "validatedAt": self.validated_at.isoformat(),
            "version": RESULT_VERSION,
        }


def validate_elements(elements: Mapping[str, ElementRecord]) -> ValidationResult:
    """Run every rule over ``elements``.

    Violations come grouped by rule in ``RULES`` order, and in element
    insertion order within a rule.
    """
    violations = (
        check_duplicate_req_ids(elements)
        + check_derive_refine_cycles(elements)
        + check_broken_references(elements)
    )
    return ValidationResult(violations=violations, element_count=len(elements))


def check_duplicate_req_ids(elements: Mapping[str, ElementRecord]) -> list[Violation]:
    """DUP_REQID: every definition after the first one holding a reqId."""
    groups: dict[str, list[ElementRecord]] = {}
    for record in elements.values():
        if record.kind is not ElementKind.DEFINITION:
            continue
        value = record.get(REQ_ID_ATTRIBUTE)
        if value in (None, ""):
            continue
        groups.setdefault(str(value), []).append(record)

    violations = []
    for req_id, records in groups.items():
        for duplicate in records[1:]:
            violations.append(
                Violation(
                    DUP_REQID,
                    duplicate.id,
                    f"reqId duplicated: {req_id}",
                    f"Found duplicate reqId '{req_id}' in {len(records)} elements",
                )
            )
    return violations


def check_derive_refine_cycles(elements: Mapping[str, ElementRecord]) -> list[Violation]:
    """CYCLE_DERIVE_REFINE: one violation per loop, reported at its first element."""
    graph: dict[str, list[str]] = {}
    for record in elements.values():
        if edge_kind_for(record.type_tag) not in _CYCLE_KINDS:
            continue
        source, target = record.reference(SOURCE_REF), record.reference(TARGET_REF)
        if source is not None and target is not None:
            graph.setdefault(source, []).append(target)

    violations = []
    seen_loops: set[frozenset[str]] = set()
    done: set[str] = set()

    def visit(node: str, path: list[str]) -> None:
        path.append(node)
        for nxt in graph.get(node, ()):
            if nxt in path:
                loop = path[path.index(nxt) :]
                key = frozenset(loop)
                if key not in seen_loops:
                    seen_loops.add(key)
                    violations.append(
                        Violation(
                            CYCLE_DERIVE_REFINE,
                            loop[0],
                            "Circular dependency detected in derive/refine chain",
                            " -> ".join(loop + [loop[0]]),
                        )
                    )
            elif nxt not in done:
                visit(nxt, path)
        path.pop()
        done.add(node)

    for start in list(graph):
        if start not in done:
            visit(start, [])
    return violations


def check_broken_references(elements: Mapping[str, ElementRecord]) -> list[Violation]:
    """BROKEN_REF: usage definitionRef or relationship endpoint not resident."""
    violations = []
    for record in elements.values():
        if record.kind is ElementKind.USAGE:
            fields: tuple[str, ...] = (DEFINITION_REF,)
        elif record.kind is ElementKind.RELATIONSHIP:
            fields = (SOURCE_REF, TARGET_REF)
        else:
            continue
        for name in fields:
            target = record.reference(name)
            if target is not None and target not in elements:
                violations.append(
                    Violation(
                        BROKEN_REF,
                        record.id,
                        "Reference to non-existent element",
                        f"'{record.id}' references missing element '{target}' via {name}",
                    )
                )
    return violations


__all__ = [
    "BROKEN_REF",
    "CYCLE_DERIVE_REFINE",
    "DUP_REQID",
    "REQ_ID_ATTRIBUTE",
    "RESULT_VERSION",
    "RULES",
    "Rule",
    "Severity",
    "ValidationResult",
    "Violation",
    "check_broken_references",
    "check_derive_refine_cycles",
    "check_duplicate_req_ids",
    "validate_elements",
]
