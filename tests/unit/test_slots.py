"""Unit tests for the slot ledger"""

from moto_fleet.domain import slots
from moto_fleet.domain.models import Yard


def test_has_available_slot():
    """A yard has room until occupied reaches total"""
    assert slots.has_available_slot(Yard(name="Centro", total_slots=2, occupied_slots=1)) is True
    assert slots.has_available_slot(Yard(name="Centro", total_slots=2, occupied_slots=2)) is False


def test_acquire_increments_when_free():
    yard = Yard(name="Centro", total_slots=2, occupied_slots=1)

    assert slots.acquire(yard) is True
    assert yard.occupied_slots == 2
    assert yard.available_slots == 0


def test_acquire_on_full_yard_leaves_counters_unchanged():
    yard = Yard(name="Centro", total_slots=3, occupied_slots=3)

    assert slots.acquire(yard) is False
    assert yard.occupied_slots == 3
    assert yard.total_slots == 3


def test_release_decrements_by_exactly_one():
    yard = Yard(name="Centro", total_slots=5, occupied_slots=3)

    slots.release(yard)

    assert yard.occupied_slots == 2


def test_release_on_empty_yard_is_noop():
    """Releasing below zero is clamped, not an error"""
    yard = Yard(name="Centro", total_slots=5, occupied_slots=0)

    slots.release(yard)

    assert yard.occupied_slots == 0


def test_invariant_holds_through_mixed_sequence():
    yard = Yard(name="Centro", total_slots=2)
    operations = [slots.acquire, slots.acquire, slots.acquire, slots.release, slots.release, slots.release, slots.acquire]

    for operation in operations:
        operation(yard)
        assert 0 <= yard.occupied_slots <= yard.total_slots

    assert yard.occupied_slots == 1


def test_occupancy_rate():
    assert Yard(name="Centro", total_slots=4, occupied_slots=1).occupancy_rate == 0.25
    assert Yard(name="Vazio", total_slots=0).occupancy_rate == 0.0
