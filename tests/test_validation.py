"""Tests for the static model rules."""

from __future__ import annotations

import pytest

from sysview.validation import (
    BROKEN_REF,
    CYCLE_DERIVE_REFINE,
    DUP_REQID,
    RULES,
    Severity,
    ValidationResult,
    Violation,
    check_broken_references,
    check_derive_refine_cycles,
    check_duplicate_req_ids,
    validate_elements,
)

# ─────────────────────────────────────────────────────────────────────────────
# DUP_REQID
# ─────────────────────────────────────────────────────────────────────────────


class TestDuplicateReqIds:
    def test_every_repeat_after_the_first_is_flagged(self, make_record, elements):
        data = elements(
            make_record("R1", "RequirementDefinition", reqId="REQ-1"),
            make_record("R2", "RequirementDefinition", reqId="REQ-1"),
            make_record("R3", "RequirementDefinition", reqId="REQ-1"),
            make_record("R4", "RequirementDefinition", reqId="REQ-2"),
        )

        violations = check_duplicate_req_ids(data)

        assert [v.target_id for v in violations] == ["R2", "R3"]
        assert violations[0].message == "reqId duplicated: REQ-1"
        assert violations[0].details == "Found duplicate reqId 'REQ-1' in 3 elements"

    def test_only_definitions_with_a_value_count(self, make_record, elements):
        data = elements(
            make_record("R1", "RequirementDefinition", reqId="REQ-1"),
            make_record("U1", "RequirementUsage", reqId="REQ-1"),
            make_record("R2", "RequirementDefinition", reqId=""),
            make_record("R3", "RequirementDefinition"),
        )

        assert check_duplicate_req_ids(data) == []


# ─────────────────────────────────────────────────────────────────────────────
# CYCLE_DERIVE_REFINE
# ─────────────────────────────────────────────────────────────────────────────


class TestDeriveRefineCycles:
    def test_loop_reported_once(self, make_record, elements):
        data = elements(
            make_record("A", "RequirementDefinition"),
            make_record("B", "RequirementDefinition"),
            make_record("C", "RequirementDefinition"),
            make_record("d1", "DeriveRequirement", sourceRef="A", targetRef="B"),
            make_record("r1", "Refine", sourceRef="B", targetRef="C"),
            make_record("d2", "Derive", sourceRef="C", targetRef="A"),
        )

        violations = check_derive_refine_cycles(data)

        assert len(violations) == 1
        assert violations[0].rule_code == CYCLE_DERIVE_REFINE
        assert violations[0].target_id == "A"
        assert violations[0].details == "A -> B -> C -> A"

    def test_chain_without_loop_is_clean(self, make_record, elements):
        data = elements(
            make_record("d1", "Derive", sourceRef="A", targetRef="B"),
            make_record("d2", "Derive", sourceRef="A", targetRef="C"),
            make_record("d3", "Refine", sourceRef="B", targetRef="C"),
        )

        assert check_derive_refine_cycles(data) == []

    def test_other_relationships_do_not_close_loops(self, make_record, elements):
        data = elements(
            make_record("d1", "Derive", sourceRef="A", targetRef="B"),
            make_record("s1", "Satisfy", sourceRef="B", targetRef="A"),
            make_record("t1", "Trace", sourceRef="B", targetRef="A"),
        )

        assert check_derive_refine_cycles(data) == []

    def test_self_loop(self, make_record, elements):
        data = elements(make_record("r1", "Refine", sourceRef="A", targetRef="A"))

        [violation] = check_derive_refine_cycles(data)

        assert violation.details == "A -> A"


# ─────────────────────────────────────────────────────────────────────────────
# BROKEN_REF
# ─────────────────────────────────────────────────────────────────────────────


class TestBrokenReferences:
    def test_dangling_usage_and_relationship_endpoints(self, make_record, elements):
        data = elements(
            make_record("D1", "PartDefinition"),
            make_record("U1", "PartUsage", definitionRef="D1"),
            make_record("U2", "PartUsage", definitionRef="gone"),
            make_record("S1", "Satisfy", sourceRef="U1", targetRef="missing"),
        )

        violations = check_broken_references(data)

        assert [(v.target_id, v.rule_code) for v in violations] == [
            ("U2", BROKEN_REF),
            ("S1", BROKEN_REF),
        ]
        assert violations[1].details == (
            "'S1' references missing element 'missing' via targetRef"
        )

    def test_blank_references_are_not_broken(self, make_record, elements):
        data = elements(
            make_record("U1", "PartUsage"),
            make_record("U2", "PartUsage", definitionRef=""),
            make_record("S1", "Satisfy", sourceRef=None, targetRef=""),
        )

        assert check_broken_references(data) == []

    def test_definitions_are_not_checked(self, make_record, elements):
        data = elements(make_record("D1", "PartDefinition", definitionRef="gone"))

        assert check_broken_references(data) == []


# ─────────────────────────────────────────────────────────────────────────────
# Result
# ─────────────────────────────────────────────────────────────────────────────


class TestValidationResult:
    def test_clean_model(self, make_record, elements):
        data = elements(
            make_record("D1", "PartDefinition"),
            make_record("U1", "PartUsage", definitionRef="D1"),
        )

        result = validate_elements(data)

        assert result.ok is True
        assert result.element_count == 2
        payload = result.to_dict()
        assert payload["valid"] is True
        assert payload["violations"] == []
        assert payload["version"] == "1.0"
        assert payload["validatedAt"].endswith("+00:00")

    def test_violations_grouped_by_rule(self, make_record, elements):
        data = elements(
            make_record("U1", "PartUsage", definitionRef="gone"),
            make_record("r1", "Refine", sourceRef="U1", targetRef="U1"),
            make_record("R1", "RequirementDefinition", reqId="X"),
            make_record("R2", "RequirementDefinition", reqId="X"),
        )

        result = validate_elements(data)

        assert result.ok is False
        assert [v.rule_code for v in result.violations] == [
            DUP_REQID,
            CYCLE_DERIVE_REFINE,
            BROKEN_REF,
        ]
        assert [v.target_id for v in result.by_rule(BROKEN_REF)] == ["U1"]

    def test_warnings_do_not_fail(self):
        result = ValidationResult(
            violations=[Violation("X", "E1", "m", severity=Severity.WARNING)], element_count=1
        )

        assert result.ok is True

    def test_violation_formats(self):
        violation = Violation(BROKEN_REF, "U1", "Reference to non-existent element", "via x")

        assert str(violation) == (
            "ERROR [BROKEN_REF] U1\n   Reference to non-existent element\n   via x"
        )
        assert violation.to_dict() == {
            "ruleCode": BROKEN_REF,
            "targetId": "U1",
            "message": "Reference to non-existent element",
            "details": "via x",
            "severity": "ERROR",
        }

    @pytest.mark.parametrize("rule", RULES, ids=lambda r: r.code)
    def test_rule_catalogue(self, rule):
        assert rule.to_dict() == {
            "code": rule.code,
            "description": rule.description,
            "severity": "ERROR",
        }


class TestStoreValidation:
    async def test_store_checks_resident_elements(self, store, battery_repository):
        _, ids = battery_repository
        await store.load_all()

        result = store.validate()

        assert result.element_count == 4
        assert [v.target_id for v in result.violations] == [ids["stray"]]

    async def test_partial_load_reports_absent_definitions(self, store, battery_repository):
        _, ids = battery_repository
        await store.load_by_type("PartUsage")

        result = store.validate()

        assert {v.target_id for v in result.by_rule(BROKEN_REF)} == {
            ids["cell"],
            ids["bms"],
            ids["stray"],
        }
