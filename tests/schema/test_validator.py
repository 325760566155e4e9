"""Tests for document validation."""

import sigrun.schema as schema


def _messages(violations: list[schema.Violation]) -> list[str]:
    return [str(v) for v in violations]


class TestValidateKinds:
    """Kind, null and required checks."""

    def test_valid_document(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": "t", "columns": 3, "fields": [{"name": "a", "unit": "m"}]}
        assert schema.validate(document, panel_schema) == []

    def test_wrong_kind(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": "t", "columns": "three", "fields": []}
        assert _messages(schema.validate(document, panel_schema)) == [
            "columns: expected integer, got string"
        ]

    def test_null_not_allowed(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": None, "columns": 1, "fields": []}
        assert _messages(schema.validate(document, panel_schema)) == ["title: null is not allowed"]

    def test_nullable_accepts_null(self) -> None:
        descriptor = schema.SchemaBuilder().field("note", "string", nullable=True).build()
        assert schema.validate({"note": None}, descriptor) == []

    def test_required_missing(self, panel_schema: schema.SchemaDescriptor) -> None:
        violations = schema.validate({"title": "t", "fields": []}, panel_schema)
        assert _messages(violations) == ["columns: required property is missing"]

    def test_optional_missing(self) -> None:
        descriptor = schema.SchemaBuilder().field("a", "string", required=False).build()
        assert schema.validate({}, descriptor) == []

    def test_unknown_keys_not_reported(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": "t", "columns": 1, "fields": [], "extra": 1}
        assert schema.validate(document, panel_schema) == []

    def test_all_violations_collected(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": 1, "columns": None}
        assert len(schema.validate(document, panel_schema)) == 3


class TestValidateOptions:
    """Allowed-value checks."""

    def test_value_outside_options(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": "t", "columns": 1, "fields": [{"name": "a", "unit": "inch"}]}
        violations = schema.validate(document, panel_schema)
        assert len(violations) == 1
        assert violations[0].path == "fields[0].unit"
        assert "'inch' is not one of the allowed values" in violations[0].message

    def test_discriminated_options(self) -> None:
        units = schema.Discriminated(
            by="kind",
            providers={
                "length": schema.StaticOptions(["mm", "m"]),
                "mass": schema.StaticOptions(["kg"]),
            },
        )
        descriptor = (
            schema.SchemaBuilder()
            .field("kind", "string", options=["length", "mass"])
            .field("unit", "string", options=units)
            .build()
        )
        assert schema.validate({"kind": "mass", "unit": "kg"}, descriptor) == []
        violations = schema.validate({"kind": "mass", "unit": "mm"}, descriptor)
        assert [v.path for v in violations] == ["unit"]

    def test_string_array_options(self) -> None:
        descriptor = (
            schema.SchemaBuilder().field("tags", "array", items="string", options=["a", "b"]).build()
        )
        violations = schema.validate({"tags": ["a", "c"]}, descriptor)
        assert [v.path for v in violations] == ["tags[1]"]

    def test_validator_queries_provider_once(self) -> None:
        class Provider:
            calls = 0

            def get_options(self) -> list[str]:
                Provider.calls += 1
                return ["a"]

        descriptor = schema.SchemaBuilder().field("x", "string", options=Provider()).build()
        validator = schema.Validator(descriptor)
        validator.validate({"x": "a"})
        validator.validate({"x": "b"})
        assert Provider.calls == 1


class TestValidateArrays:
    """Array items and include directives."""

    def test_item_kind(self) -> None:
        descriptor = schema.SchemaBuilder().field("n", "array", items="integer").build()
        assert _messages(schema.validate({"n": [1, "2"]}, descriptor)) == [
            "n[1]: expected integer, got string"
        ]

    def test_include_directive_accepted(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": "t", "columns": 1, "fields": [{"$include": "_fragments/f"}]}
        assert schema.validate(document, panel_schema) == []

    def test_malformed_include_directive(self, panel_schema: schema.SchemaDescriptor) -> None:
        document = {"title": "t", "columns": 1, "fields": [{"$include": 5}]}
        violations = schema.validate(document, panel_schema)
        assert [v.path for v in violations] == ["fields[0]"]

    def test_directive_in_plain_array_is_an_item(self) -> None:
        """Only include-capable arrays treat $include specially."""
        item = schema.SchemaBuilder().field("name", "string").build()
        descriptor = schema.SchemaBuilder().field("l", "array", items=item).build()
        violations = schema.validate({"l": [{"$include": "f"}]}, descriptor)
        assert _messages(violations) == ["l[0].name: required property is missing"]
