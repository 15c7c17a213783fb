"""Slot ledger - the only code that moves a yard's occupancy counter.

These are pure state transitions over a Yard. Persisting the yard and
serializing concurrent callers is the lifecycle coordinator's job.
"""

import logging
from moto_fleet.domain.models import Yard


def has_available_slot(yard: Yard) -> bool:
    """True when at least one slot is free"""
    return yard.occupied_slots < yard.total_slots


def acquire(yard: Yard) -> bool:
    """
    Take one slot in the yard.

    Returns:
        False (yard untouched) when the yard is full, True otherwise
    """
    if not has_available_slot(yard):
        logging.info(
            "Slot acquire refused",
            extra={"yard": yard.name, "occupied_slots": yard.occupied_slots, "total_slots": yard.total_slots},
        )
        return False

    yard.occupied_slots += 1
    logging.debug("Slot acquired", extra={"yard": yard.name, "occupied_slots": yard.occupied_slots})
    return True


def release(yard: Yard) -> None:
    """Give one slot back; releasing an empty yard is a no-op"""
    if yard.occupied_slots > 0:
        yard.occupied_slots -= 1
        logging.debug("Slot released", extra={"yard": yard.name, "occupied_slots": yard.occupied_slots})
        return

    # Counter already at zero: bookkeeping drifted somewhere upstream
    logging.warning("Slot release on empty yard ignored", extra={"yard": yard.name})
