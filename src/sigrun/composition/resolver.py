"""
Profile resolution: ``$extends`` chains and ``$include`` fragments.

Resolution of a profile:
1. Parse the file and lift out ``$extends``
2. If it extends a parent, resolve the parent first (depth-first), then
   merge this profile's body onto it
3. After the whole chain is merged, expand ``$include`` directives
4. Return the flattened document (no directives left)

Nothing is cached between calls: every resolve re-reads the files, so edits
on disk are always reflected. Callers that need caching should key it on
(profile name, directory, file modification time).
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import sigrun.composition.includes as includes
import sigrun.composition.loader as loader
import sigrun.composition.paths as paths
import sigrun.composition.profile as profile_mod
import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.tree as tree

_logger = _logging.getLogger(__name__)

BaseHook = _typing.Callable[[profile_mod.Profile, tree.JsonObject], tree.JsonObject]
"""Receives a base profile and its resolved document; returns what gets merged onto."""


class ProfileResolver:
    """
    Resolves named profiles inside a base directory.

    Profile names are relative to the base directory without extension
    (``"base"``, ``"wip/child"``). ``$extends`` references are relative to
    the extending profile's directory, so ``"../base"`` from ``wip/child``
    names ``base``. Every reference must stay inside the base directory.

    Example:
        >>> resolver = ProfileResolver(settings_dir)
        >>> resolver.resolve("child")
        {'tags': ['a', 'b']}
    """

    def __init__(
        self,
        base_directory: _pathlib.Path,
        *,
        includable_paths: _typing.AbstractSet[tree.Path] | None = None,
        expand_includes: bool = True,
        base_hook: BaseHook | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            base_directory: Root of the profile tree and the trust boundary
                for every reference.
            includable_paths: Key paths of arrays that accept ``$include``.
                None means every array is scanned.
            expand_includes: Set False to return documents with directives
                left in place (for editors that show the raw composition).
            base_hook: Run on every base profile an ``$extends`` chain passes
                through, after its own ancestors resolved. Used for upkeep of
                base files (schema references, sanitizing).
        """
        self._root = base_directory.resolve()
        self._includable_paths = includable_paths
        self._expand_includes = expand_includes
        self._base_hook = base_hook

    @property
    def base_directory(self) -> _pathlib.Path:
        """Root directory profiles are resolved in."""
        return self._root

    # =========================================================================
    # Public API
    # =========================================================================

    def profile_path(self, name: str) -> _pathlib.Path:
        """
        Absolute path of a named profile.

        Raises:
            InvalidArgumentError: If name is empty.
            PathEscapeError: If the name escapes the base directory.
        """
        if not name or not name.strip():
            raise errors.InvalidArgumentError("Profile name must not be empty", argument="name")
        return paths.resolve_within(self._root, name.strip())

    def load_profile(self, name: str) -> profile_mod.Profile:
        """
        Load a single profile without following ``$extends``.

        Raises:
            ProfileNotFoundError: If the file does not exist.
        """
        path = self.profile_path(name)
        if not path.is_file():
            raise errors.ProfileNotFoundError(name, path)
        return profile_mod.parse_profile(paths.relative_name(path, self._root), path)

    def resolve(self, name: str) -> tree.JsonObject:
        """
        Resolve a named profile into a single flattened document.

        Raises:
            ProfileNotFoundError: If the profile or a base it extends is missing.
            CompositionCycleError: If the ``$extends`` chain loops.
            PathEscapeError: If a reference escapes the base directory.
            MissingIncludeTargetError: If an ``$include`` target is missing.
            InvalidDirectiveError: If a directive value is malformed.
            FileFormatError: If a file is unreadable or not a JSON object.
        """
        path = self.profile_path(name)
        if not path.is_file():
            raise errors.ProfileNotFoundError(name, path)
        return self.resolve_file(path)

    def resolve_file(self, path: _pathlib.Path) -> tree.JsonObject:
        """Resolve a profile given its file path (must be inside the base directory)."""
        path = self._checked(path)
        _logger.debug("Resolving profile %s", path)
        data = loader.load_json_object(path)
        return self.resolve_tree(data, path)

    def resolve_tree(
        self,
        data: tree.JsonObject,
        path: _pathlib.Path,
    ) -> tree.JsonObject:
        """
        Resolve an already-parsed profile document.

        ``path`` locates the document for relative ``$extends`` references
        and error messages; it is not read.
        """
        path = self._checked(path)
        name = paths.relative_name(path, self._root)
        profile = profile_mod.profile_from_tree(name, path, data)
        resolved = self._resolve_extends(profile, ())
        if self._expand_includes:
            resolved = includes.expand_includes(resolved, self._root, self._includable_paths)
        return resolved

    def resolve_chain(self, name: str) -> list[profile_mod.Profile]:
        """
        Return the inheritance chain of a profile, root ancestor first.

        The profile itself is the last element.
        """
        chain: list[profile_mod.Profile] = []
        current = self.load_profile(name)
        seen = [current.name]
        chain.append(current)

        while current.extends is not None:
            parent_path = self._extends_path(current)
            parent_name = paths.relative_name(parent_path, self._root)
            if parent_name in seen:
                raise errors.CompositionCycleError([*seen, parent_name], path=current.path)
            if not parent_path.is_file():
                raise errors.ProfileNotFoundError(current.extends, parent_path, child=current.path)
            current = profile_mod.parse_profile(parent_name, parent_path)
            seen.append(current.name)
            chain.append(current)

        chain.reverse()
        return chain

    def resolve_base(self, name: str) -> tree.JsonObject:
        """
        Resolve the document a child profile is layered on.

        For a profile with ``$extends`` this is the resolved parent; for a
        root profile it is an empty object. Directives in the base are
        expanded the same way as in :meth:`resolve`.
        """
        profile = self.load_profile(name)
        if profile.extends is None:
            return {}
        return self.resolve_file(self._extends_path(profile))

    def child_profile(
        self,
        child_path: _pathlib.Path,
        extends_name: str,
        edited: tree.JsonObject,
    ) -> tree.JsonObject:
        """
        Build the minimal child profile that turns a base into ``edited``.

        The base profile is resolved fresh and diffed against ``edited``;
        the patch gets a leading ``$extends``.

        Args:
            child_path: Where the child profile will live (``$extends`` is
                relative to its directory).
            extends_name: Name of the base profile.
            edited: The full edited document.

        Raises:
            ProfileNotFoundError: If the base profile does not exist.
            CompositionCycleError: If the child would extend itself.
        """
        child_path = self._checked(child_path)
        base_path = paths.resolve_within(
            self._root,
            extends_name,
            relative_to=child_path.parent,
        )
        if not base_path.is_file():
            raise errors.ProfileNotFoundError(extends_name, base_path, child=child_path)
        if base_path == child_path:
            name = paths.relative_name(child_path, self._root)
            raise errors.CompositionCycleError([name, name], path=child_path)

        base = self.resolve_file(base_path)
        return tree.create_child_profile(base, edited, paths.strip_suffix(extends_name))

    def save_child_profile(
        self,
        name: str,
        extends_name: str,
        edited: tree.JsonObject,
    ) -> _pathlib.Path:
        """
        Save an edited document as a minimal child profile.

        Args:
            name: Name of the child profile to write.
            extends_name: Name of the base profile, relative to the child's
                directory.
            edited: The full edited document.

        Returns:
            Path of the written child profile.
        """
        child_path = self.profile_path(name)
        child = self.child_profile(child_path, extends_name, edited)
        _logger.debug("Saving child profile %s extending %s", child_path, extends_name)
        return loader.dump_json(child_path, child)

    def has_directives(self, document: tree.JsonObject) -> bool:
        """Check whether a raw document uses ``$extends`` or ``$include``."""
        return constants.EXTENDS_KEY in document or includes.contains_include_directives(
            document
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _checked(self, path: _pathlib.Path) -> _pathlib.Path:
        resolved = path.resolve()
        if not resolved.is_relative_to(self._root):
            raise errors.PathEscapeError(str(path), resolved, self._root)
        return resolved

    def _extends_path(self, profile: profile_mod.Profile) -> _pathlib.Path:
        assert profile.extends is not None
        return paths.resolve_within(
            self._root,
            profile.extends,
            relative_to=profile.path.parent,
        )

    def _resolve_extends(
        self,
        profile: profile_mod.Profile,
        stack: tuple[str, ...],
    ) -> tree.JsonObject:
        """Resolve a profile's chain; ``stack`` holds names currently being resolved."""
        if profile.extends is None:
            return tree.deep_clone(profile.body)

        stack = (*stack, profile.name)
        parent_path = self._extends_path(profile)
        parent_name = paths.relative_name(parent_path, self._root)

        if parent_name in stack:
            raise errors.CompositionCycleError([*stack, parent_name], path=profile.path)
        if not parent_path.is_file():
            raise errors.ProfileNotFoundError(profile.extends, parent_path, child=profile.path)

        _logger.debug("Profile %s extends %s", profile.name, parent_name)
        parent = profile_mod.parse_profile(parent_name, parent_path)
        parent_resolved = self._resolve_extends(parent, stack)
        if self._base_hook is not None:
            parent_resolved = self._base_hook(parent, parent_resolved)
        return tree.merge(parent_resolved, profile.body)
