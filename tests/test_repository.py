"""Tests for the reference ElementRepository."""

from __future__ import annotations

import pytest

from sysview.errors import ConflictFailure, NotFoundFailure, ValidationFailure
from sysview.query import FilterSpec, QueryRequest, SortSpec
from sysview.server.repository import ElementRepository


class TestRepositoryCrud:
    def test_create_assigns_id(self, repository):
        record = repository.create("PartDefinition", {"id": "tmp", "declaredName": "Pack"})

        assert record.id.startswith("partdefiniti-")
        assert record.attributes == {"declaredName": "Pack"}
        assert record.id in repository

    def test_create_normalizes_aliases(self, repository):
        record = repository.create("PartUsage", {"of": "D1"})
        assert record.attributes == {"definitionRef": "D1"}

    @pytest.mark.parametrize(
        "type_tag, attributes, field",
        [
            ("", {}, "typeTag"),
            (None, {}, "typeTag"),
            ("9Bad", {}, "typeTag"),
            ("PartDefinition", ["x"], "attributes"),
        ],
    )
    def test_create_validation(self, repository, type_tag, attributes, field):
        with pytest.raises(ValidationFailure) as exc_info:
            repository.create(type_tag, attributes)
        assert field in exc_info.value.field_errors
        assert len(repository) == 0

    def test_duplicate_short_name_within_type_conflicts(self, repository):
        repository.create("PartDefinition", {"declaredShortName": "BAT"})
        repository.create("PortDefinition", {"declaredShortName": "BAT"})

        with pytest.raises(ConflictFailure):
            repository.create("PartDefinition", {"declaredShortName": "BAT"})

    def test_get_unknown(self, repository):
        with pytest.raises(NotFoundFailure):
            repository.get("nope")

    def test_returned_records_are_copies(self, repository):
        record = repository.create("PartDefinition", {"tags": ["a"]})
        record.attributes["tags"].append("b")

        assert repository.get(record.id).attributes["tags"] == ["a"]

    def test_update_merges(self, repository):
        record = repository.create("PartDefinition", {"a": 1, "b": 2})

        updated = repository.update(record.id, {"b": 3})

        assert updated.attributes == {"a": 1, "b": 3}

    def test_update_rejects_identity_change(self, repository):
        record = repository.create("PartDefinition", {})

        with pytest.raises(ValidationFailure) as exc_info:
            repository.update(record.id, {"typeTag": "PartUsage"})
        assert "typeTag" in exc_info.value.field_errors

        # Restating the same values is allowed.
        repository.update(record.id, {"id": record.id, "typeTag": "PartDefinition"})

    def test_update_unknown_and_bad_body(self, repository):
        with pytest.raises(NotFoundFailure):
            repository.update("nope", {})
        record = repository.create("PartDefinition", {})
        with pytest.raises(ValidationFailure):
            repository.update(record.id, ["x"])

    def test_update_uniqueness_excludes_self(self, repository):
        a = repository.create("PartDefinition", {"declaredShortName": "A"})
        b = repository.create("PartDefinition", {"declaredShortName": "B"})

        repository.update(a.id, {"declaredShortName": "A"})
        with pytest.raises(ConflictFailure):
            repository.update(b.id, {"declaredShortName": "A"})

    def test_delete_is_idempotent(self, repository):
        record = repository.create("PartDefinition", {})

        assert repository.delete(record.id) is True
        assert repository.delete(record.id) is False

    def test_delete_referenced_definition_conflicts(self, battery_repository):
        repository, ids = battery_repository

        with pytest.raises(ConflictFailure) as exc_info:
            repository.delete(ids["pack"])

        assert ids["cell"] in exc_info.value.detail
        assert ids["bms"] in exc_info.value.detail
        assert ids["pack"] in repository

    def test_delete_relationship_endpoint_conflicts(self, repository):
        a = repository.create("RequirementDefinition", {})
        b = repository.create("RequirementDefinition", {})
        trace = repository.create("Satisfy", {"sourceRef": a.id, "targetRef": b.id})

        for endpoint in (a.id, b.id):
            with pytest.raises(ConflictFailure):
                repository.delete(endpoint)

        assert repository.delete(trace.id) is True
        assert repository.delete(a.id) is True

    def test_referrers(self, battery_repository):
        repository, ids = battery_repository

        assert [r.id for r in repository.referrers(ids["pack"])] == [ids["cell"], ids["bms"]]
        assert repository.referrers(ids["cell"]) == []


class TestRepositoryQuery:
    @pytest.fixture
    def parts(self, repository):
        for name, mass, status in [
            ("Cell", 2, "draft"),
            ("Pack", 450, "approved"),
            ("Busbar", 1, "draft"),
            ("Housing", None, "approved"),
        ]:
            attrs = {"declaredName": name, "status": status}
            if mass is not None:
                attrs["mass"] = mass
            repository.create("PartDefinition", attrs)
        repository.create("PortDefinition", {"declaredName": "Charge Port"})
        return repository

    def test_type_filter(self, parts):
        page = parts.query(QueryRequest(type_tag="PortDefinition"))
        assert [r.label for r in page.content] == ["Charge Port"]

    def test_sort_ascending_and_descending(self, parts):
        request = QueryRequest(type_tag="PartDefinition", sort=(SortSpec("declaredName"),))
        assert [r.label for r in parts.query(request).content] == [
            "Busbar",
            "Cell",
            "Housing",
            "Pack",
        ]

        request = QueryRequest(
            type_tag="PartDefinition", sort=(SortSpec("declaredName", "desc"),)
        )
        assert [r.label for r in parts.query(request).content][0] == "Pack"

    def test_multi_key_sort(self, parts):
        request = QueryRequest(
            type_tag="PartDefinition",
            sort=(SortSpec("status"), SortSpec("declaredName", "desc")),
        )
        assert [r.label for r in parts.query(request).content] == [
            "Pack",
            "Housing",
            "Cell",
            "Busbar",
        ]

    def test_numeric_sort_with_missing_values_last(self, parts):
        request = QueryRequest(type_tag="PartDefinition", sort=(SortSpec("mass"),))
        assert [r.label for r in parts.query(request).content] == [
            "Busbar",
            "Cell",
            "Pack",
            "Housing",
        ]

    def test_filter(self, parts):
        request = QueryRequest(filters=(FilterSpec("status", "draft"),))
        assert sorted(r.label for r in parts.query(request).content) == ["Busbar", "Cell"]

    def test_filter_on_type_tag(self, parts):
        request = QueryRequest(filters=(FilterSpec("eClass", "PortDefinition"),))
        assert parts.query(request).total_count == 1

    def test_search_is_case_insensitive(self, parts):
        page = parts.query(QueryRequest(search="CHARGE"))
        assert [r.label for r in page.content] == ["Charge Port"]

    def test_paging(self, parts):
        page = parts.query(QueryRequest(page=1, page_size=2, sort=(SortSpec("declaredName"),)))

        assert [r.label for r in page.content] == ["Charge Port", "Housing"]
        assert (page.total_count, page.total_pages) == (5, 3)
        assert (page.is_first_page, page.is_last_page) == (False, False)

    def test_page_past_end_is_empty(self, parts):
        page = parts.query(QueryRequest(page=10, page_size=2))
        assert page.content == []
        assert page.is_last_page is True

    def test_invalid_request(self, parts):
        with pytest.raises(ValidationFailure):
            parts.query(QueryRequest(page_size=0))


class TestExportImport:
    def test_export_in_insertion_order(self, battery_repository):
        repository, ids = battery_repository

        exported = repository.export_elements()

        assert [e["id"] for e in exported] == [ids[k] for k in ("pack", "cell", "bms", "stray")]
        assert set(exported[0]) == {"id", "typeTag", "attributes"}

    def test_import_keeps_ids_and_references(self, battery_repository):
        source, ids = battery_repository
        target = ElementRepository()

        imported = target.import_elements(source.export_elements())

        assert [r.id for r in imported] == [e["id"] for e in source.export_elements()]
        assert target.get(ids["cell"]).reference("definitionRef") == ids["pack"]
        assert [r.id for r in target.referrers(ids["pack"])] == [ids["cell"], ids["bms"]]

    def test_import_assigns_missing_ids(self, repository):
        imported = repository.import_elements(
            [{"eClass": "PartDefinition", "declaredName": "Pack"}, {"typeTag": "PortDefinition"}]
        )

        assert imported[0].id.startswith("partdefiniti-")
        assert imported[0].attributes == {"declaredName": "Pack"}
        assert len({r.id for r in imported}) == 2

    @pytest.mark.parametrize(
        "payloads, field",
        [
            ({"elements": []}, "elements"),
            (["x"], "elements[0]"),
            ([{"id": "a", "typeTag": "PartDefinition"}, {"id": "b"}], "elements[1].typeTag"),
        ],
    )
    def test_import_validation(self, repository, payloads, field):
        with pytest.raises(ValidationFailure) as exc_info:
            repository.import_elements(payloads)

        assert field in exc_info.value.field_errors
        assert len(repository) == 0

    def test_import_existing_id_conflicts(self, repository):
        existing = repository.create("PartDefinition", {})

        with pytest.raises(ConflictFailure):
            repository.import_elements(
                [{"id": "new-1", "typeTag": "PartDefinition"}, existing.to_dict()]
            )

        assert "new-1" not in repository
        assert len(repository) == 1

    def test_import_repeated_id_conflicts(self, repository):
        with pytest.raises(ConflictFailure):
            repository.import_elements(
                [{"id": "x", "typeTag": "PartDefinition"}, {"id": "x", "typeTag": "PartUsage"}]
            )
        assert len(repository) == 0

    def test_import_duplicate_short_name_conflicts(self, repository):
        repository.create("PartDefinition", {"declaredShortName": "BAT"})

        with pytest.raises(ConflictFailure):
            repository.import_elements(
                [{"typeTag": "PartDefinition", "attributes": {"declaredShortName": "BAT"}}]
            )
        with pytest.raises(ConflictFailure):
            repository.import_elements(
                [
                    {"typeTag": "PortDefinition", "attributes": {"declaredShortName": "P"}},
                    {"typeTag": "PortDefinition", "attributes": {"declaredShortName": "P"}},
                ]
            )

        assert len(repository) == 1
