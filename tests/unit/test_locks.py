"""Unit tests for the yard lock registry"""

from moto_fleet.services.locks import YardLockRegistry


def test_hold_orders_and_deduplicates_names():
    locks = YardLockRegistry()

    with locks.hold("Norte", "Centro", "Centro", "") as held:
        assert held == ["Centro", "Norte"]
        assert locks._lock_for("Centro").locked()
        assert locks._lock_for("Norte").locked()

    assert not locks._lock_for("Centro").locked()
    assert not locks._lock_for("Norte").locked()


def test_hold_releases_on_error():
    locks = YardLockRegistry()

    try:
        with locks.hold("Centro"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert not locks._lock_for("Centro").locked()


def test_same_name_shares_one_lock():
    locks = YardLockRegistry()

    assert locks._lock_for("Centro") is locks._lock_for("Centro")
    assert locks._lock_for("Centro") is not locks._lock_for("Norte")
