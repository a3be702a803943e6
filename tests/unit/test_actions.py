"""Unit tests for actions and the action log."""

import pytest

from hyperconnect.actions import (
    ActionLog,
    CookieOptions,
    EndResponse,
    SetBody,
    SetHeader,
    SetStatus,
)


class TestActionLog:
    """Test the persistent action log."""

    def test_empty_log(self):
        """The empty log is shared and has no actions."""
        log = ActionLog.empty()

        assert log is ActionLog.empty()
        assert len(log) == 0
        assert log.is_empty()
        assert list(log) == []
        assert log.to_reversed_list() == []

    def test_iteration_is_most_recent_first(self):
        """Storage order is the reverse of recording order."""
        log = ActionLog.empty().cons(SetStatus(200)).cons(SetHeader("a", "b"))

        assert list(log) == [SetHeader("a", "b"), SetStatus(200)]
        assert log.head == SetHeader("a", "b")

    @pytest.mark.parametrize("count", [0, 1, 2, 7, 50])
    def test_reversal_restores_recording_order(self, count):
        """One reversal yields the order actions were appended in."""
        actions = [SetHeader(f"x-{i}", str(i)) for i in range(count)]

        log = ActionLog.empty()
        for action in actions:
            log = log.cons(action)

        assert len(log) == count
        assert log.to_reversed_list() == actions

    def test_cons_does_not_modify_original(self):
        """Appending returns a new log and shares the old one as its tail."""
        base = ActionLog.of(SetStatus(201))
        derived = base.cons(EndResponse())

        assert len(base) == 1
        assert len(derived) == 2
        assert derived.tail is base

    def test_of_builds_chronological_log(self):
        log = ActionLog.of(SetStatus(200), SetBody("hi"))

        assert log.to_reversed_list() == [SetStatus(200), SetBody("hi")]


class TestActionValues:
    """Test action value semantics."""

    def test_actions_are_frozen(self):
        action = SetHeader("name", "value")

        with pytest.raises(AttributeError):
            action.name = "other"  # type: ignore[misc]

    def test_set_body_defaults_to_no_payload(self):
        assert SetBody().body is None

    def test_cookie_options_are_immutable(self):
        options = CookieOptions(http_only=True, max_age=60)

        assert options.http_only is True
        with pytest.raises(Exception):
            options.max_age = 10  # type: ignore[misc]
