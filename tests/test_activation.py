import pytest

from diagram_events.activation import ActivationTracker
from diagram_events.errors import NegativeActivation


def test_nested_activations_stack():
    tracker = ActivationTracker()

    assert tracker.activate("A").attrs == {"activation": "1"}
    assert tracker.activate("A").attrs == {"activation": "2"}
    assert tracker.deactivate("A").attrs == {"activation": "1"}
    assert tracker.depth("A") == 1
    assert tracker.active() == ["A"]


def test_deactivate_at_zero_raises():
    tracker = ActivationTracker()
    with pytest.raises(NegativeActivation) as exc_info:
        tracker.deactivate("B", line=5)
    assert exc_info.value.line == 5
    assert exc_info.value.code == "E_NEGATIVE_ACTIVATION"


def test_activate_carries_extra_attrs():
    tracker = ActivationTracker()
    event = tracker.activate("A", {"color": "#red"})
    assert event.id == "A"
    assert event.attrs == {"color": "#red", "activation": "1"}


def test_destroy_resets_depth():
    tracker = ActivationTracker()
    tracker.activate("A")
    event = tracker.destroy("A")

    assert event.attrs == {"destroyed": "true", "activation": "0"}
    assert tracker.depth("A") == 0
    with pytest.raises(NegativeActivation):
        tracker.deactivate("A")
