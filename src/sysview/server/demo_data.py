"""Demo dataset for the development server.

Seeds an EV battery requirements project: numbered requirement
definitions, one usage under each, and trace relationships chaining
neighbouring definitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sysview.model.ElementRecord import DEFINITION_REF, SOURCE_REF, TARGET_REF
from sysview.server.repository import ElementRepository

logger = logging.getLogger(__name__)

DEFINITION_TYPE = "RequirementDefinition"
USAGE_TYPE = "RequirementUsage"

# Relationship type tags, cycled over the generated traces.
TRACE_TYPES = ("Derive", "Satisfy", "Refine", "Trace")

_TOPICS = (
    ("Charge Time", "The battery shall charge from 10% to 80% in under 30 minutes."),
    ("Driving Range", "The vehicle shall travel at least 400 km on a full charge."),
    ("Cell Temperature", "Cell temperature shall stay between -20 C and 60 C."),
    ("Cycle Life", "Capacity shall remain above 80% after 1500 full cycles."),
    ("Crash Safety", "The pack shall not vent or ignite after a 50 km/h side impact."),
    ("Thermal Runaway", "A single-cell runaway shall not propagate to adjacent modules."),
    ("Pack Mass", "The pack shall weigh no more than 450 kg."),
    ("State Of Charge", "State of charge shall be reported within 2% accuracy."),
    ("Isolation", "HV isolation resistance shall exceed 500 ohm per volt."),
    ("Cold Start", "The pack shall deliver full power at -10 C after 5 minutes."),
)


@dataclass
class DemoSummary:
    """Ids created by ``seed_demo``, grouped by role."""

    definitions: list[str] = field(default_factory=list)
    usages: list[str] = field(default_factory=list)
    traces: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.definitions) + len(self.usages) + len(self.traces)


def demo_req_id(index: int) -> str:
    """Human-facing requirement number, e.g. ``DEMO-REQ-001``."""
    return f"DEMO-REQ-{index + 1:03d}"


def seed_demo(
    repository: ElementRepository,
    count: int = 10,
    trace_count: int | None = None,
) -> DemoSummary:
    """Populate ``repository`` with a demo project.

    Args:
        repository: Target repository; existing elements are kept.
        count: Number of requirement definitions (one usage each).
        trace_count: Number of trace relationships; defaults to ``count``.
            Trace ``i`` links definition ``i % count`` to ``(i + 1) % count``.

    Returns:
        The ids that were created.
    """
    summary = DemoSummary()
    if count <= 0:
        return summary
    if trace_count is None:
        trace_count = count

    for i in range(count):
        name, text = _TOPICS[i % len(_TOPICS)]
        if i >= len(_TOPICS):
            name = f"{name} {i // len(_TOPICS) + 1}"
        definition = repository.create(
            DEFINITION_TYPE,
            {
                "declaredName": name,
                "declaredShortName": demo_req_id(i),
                "reqId": demo_req_id(i),
                "text": text,
                "status": "draft",
            },
        )
        summary.definitions.append(definition.id)

    for i, definition_id in enumerate(summary.definitions):
        usage = repository.create(
            USAGE_TYPE,
            {
                "declaredName": f"{_TOPICS[i % len(_TOPICS)][0]} (vehicle)",
                DEFINITION_REF: definition_id,
                "status": "draft",
            },
        )
        summary.usages.append(usage.id)

    for i in range(trace_count):
        trace = repository.create(
            TRACE_TYPES[i % len(TRACE_TYPES)],
            {
                SOURCE_REF: summary.definitions[i % count],
                TARGET_REF: summary.definitions[(i + 1) % count],
            },
        )
        summary.traces.append(trace.id)

    logger.info(
        "seeded demo project: %d definitions, %d usages, %d traces",
        len(summary.definitions),
        len(summary.usages),
        len(summary.traces),
    )
    return summary


__all__ = [
    "DEFINITION_TYPE",
    "USAGE_TYPE",
    "TRACE_TYPES",
    "DemoSummary",
    "demo_req_id",
    "seed_demo",
]
