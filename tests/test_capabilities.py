"""Tests for the capability store, control mirror and notifier."""

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from custom_components.alarmdotcom_panel.capabilities import (
    CapabilityStore,
    reconcile_controls,
)
from custom_components.alarmdotcom_panel.events import StateChangeNotifier
from custom_components.alarmdotcom_panel.models import (
    ArmMode,
    StateChangeEvent,
    TimelineEntry,
)


class TestCapabilityStore:
    """Tests for CapabilityStore."""

    def test_new_store_is_unavailable_and_empty(self) -> None:
        """Test that a new store has no values and is not available."""
        store = CapabilityStore()
        assert store.available is False
        assert store.get_capability_value("onoff") is None
        assert store.get_setting("username") is None

    def test_set_capability_value_stores_value(self) -> None:
        """Test that a written value is read back."""
        store = CapabilityStore()

        store.set_capability_value("arm_mode", ArmMode.STAY)

        assert store.get_capability_value("arm_mode") == ArmMode.STAY

    def test_availability_transitions(self) -> None:
        """Test that unavailability carries a reason until cleared."""
        store = CapabilityStore()

        store.set_unavailable("Login failed: rejected")
        assert store.available is False
        assert store.unavailable_reason == "Login failed: rejected"

        store.set_available()
        store.set_available()
        assert store.available is True
        assert store.unavailable_reason is None

    def test_update_settings_returns_changed_keys(self) -> None:
        """Test that only keys whose value changed are reported."""
        store = CapabilityStore({"username": "a", "password": "b", "default_pin": "1"})

        changed = store.update_settings(
            {"username": "a", "password": "c", "poll_interval": 30}
        )

        assert changed == {"password", "default_pin", "poll_interval"}
        assert store.settings == {"username": "a", "password": "c", "poll_interval": 30}


class TestReconcileControls:
    """Tests for reconcile_controls function."""

    @pytest.mark.parametrize(
        ("mode", "onoff"),
        [
            (ArmMode.AWAY, True),
            (ArmMode.STAY, False),
            (ArmMode.NIGHT, False),
            (ArmMode.DISARMED, False),
        ],
    )
    def test_onoff_is_true_only_for_away(self, mode: ArmMode, onoff: bool) -> None:
        """Test that the on/off control is on only when armed away."""
        store = CapabilityStore()
        reconcile_controls(store, mode)
        assert store.get_capability_value("onoff") is onoff
        assert store.get_capability_value("arm_mode") == mode

    def test_unchanged_values_are_not_written(self) -> None:
        """Test that reconciling to the current mode writes nothing."""
        sink = Mock()
        sink.get_capability_value.side_effect = {
            "onoff": True,
            "arm_mode": ArmMode.AWAY,
        }.get

        reconcile_controls(sink, ArmMode.AWAY)

        sink.set_capability_value.assert_not_called()

    def test_only_differing_values_are_written(self) -> None:
        """Test that switching between two off modes only writes the arm mode."""
        sink = Mock()
        sink.get_capability_value.side_effect = {
            "onoff": False,
            "arm_mode": ArmMode.STAY,
        }.get

        reconcile_controls(sink, ArmMode.DISARMED)

        sink.set_capability_value.assert_called_once_with(
            "arm_mode", ArmMode.DISARMED
        )


class TestStateChangeNotifier:
    """Tests for StateChangeNotifier."""

    def test_subscribers_receive_events_until_unsubscribed(self) -> None:
        """Test that unsubscribing stops delivery."""
        notifier = StateChangeNotifier()
        handler = Mock()
        unsubscribe = notifier.subscribe(handler)
        event = StateChangeEvent("armed_stay", "disarmed", 2)

        notifier.emit_state_change(event)
        unsubscribe()
        notifier.emit_state_change(event)

        handler.assert_called_once_with(event)

    def test_timeline_handlers_are_separate(self) -> None:
        """Test that timeline entries only reach timeline handlers."""
        notifier = StateChangeNotifier()
        state_handler = Mock()
        timeline_handler = Mock()
        notifier.subscribe(state_handler)
        notifier.subscribe_timeline(timeline_handler)
        entry = TimelineEntry("changed", "info", datetime.now(UTC))

        notifier.emit_timeline(entry)

        timeline_handler.assert_called_once_with(entry)
        state_handler.assert_not_called()

    def test_failing_handler_does_not_stop_others(self) -> None:
        """Test that a raising handler is logged and skipped."""
        notifier = StateChangeNotifier()
        notifier.subscribe(Mock(side_effect=ValueError("bad")))
        second = Mock()
        notifier.subscribe(second)

        notifier.emit_state_change(StateChangeEvent("disarmed", "unknown", 1))

        second.assert_called_once()
