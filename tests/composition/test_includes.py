"""Tests for $include fragment expansion."""

import pathlib as _pathlib
import typing as _typing

import pytest as _pytest

import sigrun.composition as composition
import sigrun.errors as errors

WriteJson = _typing.Callable[[_pathlib.Path, _typing.Any], _pathlib.Path]


class TestDirectiveDetection:
    """Recognizing include directives."""

    def test_is_include_directive(self) -> None:
        assert composition.is_include_directive({"$include": "x"})
        assert not composition.is_include_directive({"name": "x"})
        assert not composition.is_include_directive("$include")

    def test_contains_nested(self) -> None:
        """Directives inside nested arrays are found."""
        doc = {"a": {"b": [{"c": [{"$include": "x"}]}]}}
        assert composition.contains_include_directives(doc)

    def test_directive_outside_array_ignored(self) -> None:
        """An object value named $include is not a directive position."""
        assert not composition.contains_include_directives({"a": {"$include": "x"}})


class TestFragmentShapes:
    """The three accepted fragment shapes."""

    def test_array_fragment_spliced(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        """Every item of an array fragment is spliced in place."""
        write_json(profile_dir / "_fragments" / "header.json", [{"n": "a"}, {"n": "b"}])
        doc = {"fields": [{"n": "first"}, {"$include": "_fragments/header"}, {"n": "last"}]}

        result = composition.expand_includes(doc, profile_dir)

        assert result == {"fields": [{"n": "first"}, {"n": "a"}, {"n": "b"}, {"n": "last"}]}

    def test_items_object_fragment(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        """An object with an ``Items`` array contributes those items."""
        write_json(
            profile_dir / "_fragments" / "footer.json",
            {"$schema": "../schema-fragment.json", "Items": [1, 2]},
        )
        result = composition.expand_includes({"l": [{"$include": "_fragments/footer"}]}, profile_dir)
        assert result == {"l": [1, 2]}

    def test_single_object_fragment(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        """Any other object is one item; its $schema is dropped."""
        write_json(profile_dir / "one.json", {"$schema": "x", "n": "only"})
        result = composition.expand_includes({"l": [{"$include": "one"}]}, profile_dir)
        assert result == {"l": [{"n": "only"}]}

    def test_scalar_fragment_rejected(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        write_json(profile_dir / "bad.json", "text")
        with _pytest.raises(errors.FileFormatError, match="array or object"):
            composition.expand_includes({"l": [{"$include": "bad"}]}, profile_dir)

    def test_items_must_be_array(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        write_json(profile_dir / "bad.json", {"Items": {"a": 1}})
        with _pytest.raises(errors.FileFormatError, match="must be an array"):
            composition.expand_includes({"l": [{"$include": "bad"}]}, profile_dir)


class TestNestedFragments:
    """Fragments including other fragments."""

    def test_nested_include(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        """A fragment may itself include fragments."""
        write_json(profile_dir / "inner.json", ["x"])
        write_json(profile_dir / "outer.json", ["a", {"$include": "inner"}, "b"])
        result = composition.expand_includes({"l": [{"$include": "outer"}]}, profile_dir)
        assert result == {"l": ["a", "x", "b"]}

    def test_same_fragment_twice_is_not_a_cycle(
        self, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        """Repeated siblings are fine; only the include stack matters."""
        write_json(profile_dir / "f.json", [1])
        doc = {"l": [{"$include": "f"}, {"$include": "f"}]}
        assert composition.expand_includes(doc, profile_dir) == {"l": [1, 1]}

    def test_include_cycle_detected(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        """Fragments that include each other fail with a cycle error."""
        write_json(profile_dir / "a.json", [{"$include": "b"}])
        write_json(profile_dir / "b.json", [{"$include": "a"}])

        with _pytest.raises(errors.CompositionCycleError) as exc_info:
            composition.expand_includes({"l": [{"$include": "a"}]}, profile_dir)

        assert exc_info.value.chain == ["a", "b", "a"]
        assert exc_info.value.directive == "$include"

    def test_fragment_extends_not_followed(
        self, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        """Fragments are flat content."""
        write_json(profile_dir / "f.json", {"$extends": "other", "n": 1})
        result = composition.expand_includes({"l": [{"$include": "f"}]}, profile_dir)
        assert result == {"l": [{"$extends": "other", "n": 1}]}


class TestIncludeErrors:
    """Failure modes."""

    def test_missing_target(self, profile_dir: _pathlib.Path) -> None:
        with _pytest.raises(errors.MissingIncludeTargetError) as exc_info:
            composition.expand_includes({"l": [{"$include": "_fragments/nope"}]}, profile_dir)
        assert exc_info.value.kind is errors.ErrorKind.MISSING_INCLUDE_TARGET
        assert "Fragment paths are relative to the base directory" in str(exc_info.value)

    def test_escape_checked_before_file_access(self, tmp_path: _pathlib.Path) -> None:
        """An escaping reference fails as an escape even when the file exists."""
        base = tmp_path / "base"
        base.mkdir()
        (tmp_path / "secrets.json").write_text("[1]")
        with _pytest.raises(errors.PathEscapeError):
            composition.expand_includes({"l": [{"$include": "../secrets"}]}, base)

    @_pytest.mark.parametrize("reference", ["", "   ", 5, None])
    def test_invalid_reference(self, profile_dir: _pathlib.Path, reference: object) -> None:
        with _pytest.raises(errors.InvalidDirectiveError):
            composition.expand_includes({"l": [{"$include": reference}]}, profile_dir)

    def test_extra_keys_rejected(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        """A directive carries nothing but the reference."""
        write_json(profile_dir / "f.json", [1])
        with _pytest.raises(errors.InvalidDirectiveError, match="unexpected sibling keys"):
            composition.expand_includes({"l": [{"$include": "f", "x": 1}]}, profile_dir)


class TestIncludablePaths:
    """Restricting expansion to declared arrays."""

    def test_only_declared_arrays_expanded(
        self, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        write_json(profile_dir / "f.json", [1])
        doc = {"a": [{"$include": "f"}], "b": [{"$include": "f"}]}

        result = composition.expand_includes(doc, profile_dir, {("a",)})

        assert result == {"a": [1], "b": [{"$include": "f"}]}

    def test_arrays_inside_items_addressed_by_key_path(
        self, profile_dir: _pathlib.Path, write_json: WriteJson
    ) -> None:
        """Array levels do not add to the key path."""
        write_json(profile_dir / "f.json", ["t"])
        doc = {"fields": [{"tags": [{"$include": "f"}]}]}

        result = composition.expand_includes(doc, profile_dir, {("fields", "tags")})

        assert result == {"fields": [{"tags": ["t"]}]}

    def test_input_not_modified(self, profile_dir: _pathlib.Path, write_json: WriteJson) -> None:
        write_json(profile_dir / "f.json", [1])
        doc = {"a": [{"$include": "f"}]}
        composition.IncludeExpander(profile_dir).expand(doc)
        assert doc == {"a": [{"$include": "f"}]}
