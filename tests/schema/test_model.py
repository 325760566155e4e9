"""Tests for descriptors derived from pydantic models."""

import enum as _enum
import typing as _typing

import pydantic as _pydantic

import sigrun.schema as schema

UNITS = schema.Discriminated(
    by="spec_type",
    providers={
        "length": schema.StaticOptions(["mm", "m"]),
        "mass": schema.StaticOptions(["kg"]),
    },
)


class Color(str, _enum.Enum):
    RED = "red"
    BLUE = "blue"


class FieldSpec(_pydantic.BaseModel):
    name: str = ""
    spec_type: _typing.Annotated[str, schema.Options(["length", "mass"])] = "length"
    unit: _typing.Annotated[str, schema.Options(UNITS)] = "mm"


class Layout(_pydantic.BaseModel):
    columns: int = 2
    rows: _typing.Annotated[list[str], schema.Includable()] = []


class Panel(_pydantic.BaseModel):
    title: str
    ratio: float = 1.0
    enabled: bool = True
    note: str | None = None
    mode: _typing.Literal["fast", "slow"] = "fast"
    color: Color = Color.RED
    tags: list[str] = _pydantic.Field(default_factory=list, description="Free-form labels")
    fields: _typing.Annotated[list[FieldSpec], schema.Includable()] = []
    layout: Layout = Layout()
    extra: dict[str, int] = {}
    display_name: str = _pydantic.Field(default="", alias="DisplayName")


class TestDescribeModel:
    """Field mapping."""

    def test_field_order_and_aliases(self) -> None:
        descriptor = schema.describe_model(Panel)
        assert descriptor.title == "Panel"
        assert descriptor.names == [
            "title",
            "ratio",
            "enabled",
            "note",
            "mode",
            "color",
            "tags",
            "fields",
            "layout",
            "extra",
            "DisplayName",
        ]

    def test_scalar_kinds(self) -> None:
        descriptor = schema.describe_model(Panel)
        kinds = {f.name: f.kind for f in descriptor}
        assert kinds["title"] is schema.FieldKind.STRING
        assert kinds["ratio"] is schema.FieldKind.NUMBER
        assert kinds["enabled"] is schema.FieldKind.BOOLEAN
        assert kinds["extra"] is schema.FieldKind.OBJECT

    def test_required_and_defaults(self) -> None:
        descriptor = schema.describe_model(Panel)
        title = descriptor.get("title")
        ratio = descriptor.get("ratio")
        assert title is not None and ratio is not None
        assert title.required and not title.has_default
        assert not ratio.required and ratio.default == 1.0

    def test_optional_is_nullable(self) -> None:
        note = schema.describe_model(Panel).get("note")
        assert note is not None
        assert note.kind is schema.FieldKind.STRING
        assert note.nullable
        assert note.has_default and note.default is None

    def test_literal_and_enum_options(self) -> None:
        descriptor = schema.describe_model(Panel)
        cache = schema.ProviderCache()
        mode = descriptor.get("mode")
        color = descriptor.get("color")
        assert mode is not None and color is not None
        assert cache.resolve(mode.options) == ["fast", "slow"]
        assert cache.resolve(color.options) == ["red", "blue"]
        assert color.default == "red"

    def test_includable_object_array(self) -> None:
        fields = schema.describe_model(Panel).get("fields")
        assert fields is not None
        assert fields.includable
        assert fields.items is schema.FieldKind.OBJECT
        assert fields.item_fields is schema.describe_model(FieldSpec)

    def test_nested_model(self) -> None:
        descriptor = schema.describe_model(Panel)
        layout = descriptor.get("layout")
        assert layout is not None
        assert layout.fields is schema.describe_model(Layout)
        assert layout.default == {"columns": 2, "rows": []}
        assert descriptor.includable_paths() == {("fields",), ("layout", "rows")}

    def test_description_and_factory_default(self) -> None:
        tags = schema.describe_model(Panel).get("tags")
        assert tags is not None
        assert tags.description == "Free-form labels"
        assert tags.default == []
        assert tags.items is schema.FieldKind.STRING

    def test_options_marker(self) -> None:
        item = schema.describe_model(FieldSpec)
        unit = item.get("unit")
        assert unit is not None
        assert unit.options is UNITS

    def test_cached_per_model(self) -> None:
        assert schema.describe_model(Panel) is schema.describe_model(Panel)


class TestModelDescriptorInUse:
    """Derived descriptors drive validation and sanitization."""

    def test_validate_discriminated_unit(self) -> None:
        descriptor = schema.describe_model(Panel)
        document = {
            "title": "t",
            "fields": [{"name": "w", "spec_type": "mass", "unit": "mm"}],
        }
        violations = schema.validate(document, descriptor)
        assert [v.path for v in violations] == ["fields[0].unit"]

    def test_sanitize_fills_model_defaults(self) -> None:
        descriptor = schema.describe_model(Panel)
        result, report = schema.sanitize({"title": "t"}, descriptor)
        assert result["layout"] == {"columns": 2, "rows": []}
        assert result["DisplayName"] == ""
        assert "title" not in report.added
        assert _pydantic.TypeAdapter(Panel).validate_python(result).title == "t"
