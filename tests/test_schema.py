"""Tests for tether.validation.schema — the pydantic-backed Schema wrapper."""

import pytest
from pydantic import BaseModel, Field

from tether.validation import Issue, ParseResult, Schema, SchemaError, as_schema


class Flags(BaseModel):
    excited: bool = False


class NewPost(BaseModel):
    title: str


class Versioned(BaseModel):
    api_version: int = Field(alias="x-api-version")


class TestParse:
    def test_valid_value(self) -> None:
        assert Schema(Flags).parse({"excited": True}) == Flags(excited=True)

    def test_invalid_value_raises_structured_error(self) -> None:
        with pytest.raises(SchemaError) as info:
            Schema(NewPost).parse({})
        issue = info.value.issues[0]
        assert issue.path == ("title",)
        assert issue.code == "missing"

    def test_schema_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Schema(NewPost).parse({"title": 1})

    def test_non_model_annotation(self) -> None:
        assert Schema(list[int]).parse([1, 2]) == [1, 2]

    def test_strict_by_default(self) -> None:
        with pytest.raises(SchemaError):
            Schema(Flags).parse({"excited": "yes"})

    def test_lax_mode_opt_in(self) -> None:
        assert Schema(Flags, strict=False).parse({"excited": "yes"}).excited is True


class TestParseJson:
    def test_valid_document(self) -> None:
        assert Schema(NewPost).parse_json(b'{"title": "x"}') == NewPost(title="x")

    def test_empty_body_is_json_invalid(self) -> None:
        with pytest.raises(SchemaError) as info:
            Schema(NewPost).parse_json(b"")
        assert info.value.issues[0].code == "json_invalid"


class TestSafeParse:
    def test_success(self) -> None:
        result = Schema(Flags).safe_parse({"excited": True})
        assert result
        assert result.ok
        assert result.value.excited is True
        assert result.error is None

    def test_failure(self) -> None:
        result = Schema(NewPost).safe_parse({})
        assert not result
        assert isinstance(result.error, SchemaError)

    def test_safe_parse_json(self) -> None:
        assert not Schema(NewPost).safe_parse_json(b"{not json")
        assert Schema(NewPost).safe_parse_json('{"title": "x"}').value.title == "x"


class TestDump:
    def test_uses_aliases(self) -> None:
        schema = Schema(Versioned)
        assert schema.dump(schema.parse({"x-api-version": 2})) == {"x-api-version": 2}

    def test_json_compatible(self) -> None:
        assert Schema(tuple[int, ...]).dump((1, 2)) == [1, 2]


class TestSchemaError:
    def test_message_joins_issues(self) -> None:
        error = SchemaError([Issue(("a",), "bad", "x"), Issue((), "worse", "y")])
        assert error.message == "a: bad; worse"
        assert str(error) == "a: bad; worse"

    def test_to_dict(self) -> None:
        error = SchemaError([Issue(("user", 0), "bad", "x")])
        assert error.to_dict() == {"issues": [{"path": ["user", 0], "message": "bad", "code": "x"}]}


class TestAsSchema:
    def test_passes_schema_through(self) -> None:
        schema = Schema(Flags)
        assert as_schema(schema) is schema

    def test_wraps_annotations(self) -> None:
        schema = as_schema(Flags)
        assert isinstance(schema, Schema)
        assert schema.annotation is Flags

    def test_parse_result_is_falsy_on_failure(self) -> None:
        assert not ParseResult(ok=False)
