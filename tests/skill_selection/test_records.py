import pytest

from skill_context_engine.errors import MalformedRecordError
from skill_context_engine.records import (
    SkillRecord,
    normalize_compatibility,
    normalize_tags,
    tokenize,
)


class TestTokenize:
    def test_lowercases_and_drops_stopwords(self):
        assert tokenize("Run THE unit tests with Vitest") == {
            "run",
            "unit",
            "test",
            "vitest",
        }

    def test_splits_camel_case(self):
        assert tokenize("formatDate") == {"format", "date"}
        assert tokenize("parseHTTPResponse") == {"parse", "http", "response"}

    def test_splits_snake_and_kebab_case(self):
        assert tokenize("jest-testing format_code") == {"jest", "testing", "format", "code"}

    def test_plural_normalization(self):
        assert tokenize("libraries tests") == {"library", "test"}
        assert tokenize("process status analysis") == {"process", "status", "analysis"}

    def test_empty_input(self):
        assert tokenize("") == frozenset()
        assert tokenize(None) == frozenset()
        assert tokenize("a the of") == frozenset()

    def test_drops_single_characters(self):
        assert tokenize("x y z query") == {"query"}


class TestNormalizers:
    def test_tags_share_token_space(self):
        assert normalize_tags(["Unit-Testing", "vitest"]) == {"unit", "testing", "vitest"}
        assert normalize_tags("tests") == {"test"}
        assert normalize_tags(None) == frozenset()

    def test_compatibility_from_string(self):
        assert normalize_compatibility("Opus, sonnet haiku") == {"opus", "sonnet", "haiku"}

    def test_compatibility_from_list(self):
        assert normalize_compatibility(["Opus", " "]) == {"opus"}

    def test_universal_compatibility(self):
        assert normalize_compatibility("*") == frozenset()
        assert normalize_compatibility(["any"]) == frozenset()
        assert normalize_compatibility(None) == frozenset()


class TestSkillRecord:
    def test_from_document_minimal(self):
        record = SkillRecord.from_document(
            {"id": "vitest", "description": "run unit tests", "body": "steps"}
        )

        assert record.id == "vitest"
        assert record.priority == 0
        assert record.tags == frozenset()
        assert record.compatibility == frozenset()
        assert record.description_tokens == {"run", "unit", "test"}

    def test_from_document_full(self):
        record = SkillRecord.from_document(
            {
                "id": "vitest",
                "description": "run unit tests",
                "body": "steps",
                "compatibility": "opus",
                "priority": "7",
                "tags": ["testing"],
                "companions": "prettier, eslint",
                "source": "project",
                "path": "/skills/vitest/SKILL.md",
            }
        )

        assert record.priority == 7
        assert record.compatibility == {"opus"}
        assert record.tags == {"testing"}
        assert record.companions == {"prettier", "eslint"}
        assert record.source == "project"

    @pytest.mark.parametrize("field", ["id", "description", "body"])
    def test_empty_required_field(self, field: str):
        document = {"id": "x-skill", "description": "desc", "body": "body"}
        document[field] = "   "

        with pytest.raises(MalformedRecordError) as exc_info:
            SkillRecord.from_document(document)

        assert exc_info.value.field == field

    def test_missing_body(self):
        with pytest.raises(MalformedRecordError):
            SkillRecord.from_document({"id": "x-skill", "description": "desc"})

    @pytest.mark.parametrize("priority", [True, "high", 1.5])
    def test_invalid_priority(self, priority):
        with pytest.raises(MalformedRecordError) as exc_info:
            SkillRecord.from_document(
                {"id": "x-skill", "description": "d", "body": "b", "priority": priority}
            )

        assert exc_info.value.field == "priority"

    def test_not_a_mapping(self):
        with pytest.raises(MalformedRecordError):
            SkillRecord.from_document(["id", "description"])  # type: ignore[arg-type]

    def test_is_immutable(self):
        record = SkillRecord(id="a", description="d", body="b")

        with pytest.raises(AttributeError):
            record.body = "changed"  # type: ignore[misc]

    def test_compatibility_check(self):
        unrestricted = SkillRecord(id="a", description="d", body="b")
        restricted = SkillRecord(
            id="b", description="d", body="b", compatibility=frozenset({"opus"})
        )

        assert unrestricted.is_compatible_with(None) is True
        assert unrestricted.is_compatible_with("haiku") is True
        assert restricted.is_compatible_with("Opus") is True
        assert restricted.is_compatible_with("haiku") is False
        assert restricted.is_compatible_with(None) is False

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("tags", 5),
            ("compatibility", 5),
            ("compatibility", True),
            ("companions", 7),
        ],
    )
    def test_scalar_list_field(self, field: str, value):
        with pytest.raises(MalformedRecordError) as exc_info:
            SkillRecord.from_document(
                {"id": "x-skill", "description": "d", "body": "b", field: value}
            )

        assert exc_info.value.record_id == "x-skill"
        assert exc_info.value.field == field

    def test_direct_construction_normalizes_fields(self):
        record = SkillRecord(
            id="a",
            description="d",
            body="b",
            compatibility="GPU",  # type: ignore[arg-type]
            tags=["Unit-Testing"],  # type: ignore[arg-type]
            companions="b-skill, c-skill",  # type: ignore[arg-type]
        )

        assert record.compatibility == {"gpu"}
        assert record.tags == {"unit", "testing"}
        assert record.companions == {"b-skill", "c-skill"}

    def test_normalized_fields_are_stable(self):
        document = {
            "id": "x-skill",
            "description": "d",
            "body": "b",
            "compatibility": ["opus", "Sonnet"],
            "tags": ["libraries", "tests"],
        }
        record = SkillRecord.from_document(document)

        rebuilt = SkillRecord(
            id=record.id,
            description=record.description,
            body=record.body,
            compatibility=record.compatibility,
            tags=record.tags,
        )

        assert rebuilt.compatibility == {"opus", "sonnet"}
        assert rebuilt.tags == {"library", "test"}
