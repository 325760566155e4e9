"""Tests for behavior policies."""

import pytest as _pytest

import sigrun.storage as storage


class TestPolicies:
    """Each category has a fixed policy."""

    def test_settings(self) -> None:
        policy = storage.Behavior.SETTINGS.policy
        assert policy.readable
        assert policy.on_missing is storage.MissingFile.WRITE_DEFAULTS_AND_FAIL
        assert policy.sanitize and policy.drift_is_fatal and policy.validate

    def test_state(self) -> None:
        policy = storage.Behavior.STATE.policy
        assert policy.on_missing is storage.MissingFile.WRITE_DEFAULTS
        assert policy.sanitize and not policy.drift_is_fatal

    def test_output(self) -> None:
        policy = storage.Behavior.OUTPUT.policy
        assert not policy.readable
        assert not policy.validate
        assert not policy.inject_schema

    @_pytest.mark.parametrize("behavior", list(storage.Behavior))
    def test_policies_frozen(self, behavior: storage.Behavior) -> None:
        with _pytest.raises(AttributeError):
            behavior.policy.readable = False  # type: ignore[misc]
