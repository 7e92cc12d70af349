import threading

from chefhome.core.reservation_lock import booking_key, chef_schedule_key, reservation_lock


def test_keys_are_scoped_per_resource():
    assert chef_schedule_key("c1") != chef_schedule_key("c2")
    assert chef_schedule_key("x") != booking_key("x")


def test_lock_is_exclusive_until_released():
    key = chef_schedule_key("exclusive")
    with reservation_lock(key) as acquired:
        assert acquired
        results = []

        def contender():
            with reservation_lock(key, wait_s=0.05) as other:
                results.append(other)

        thread = threading.Thread(target=contender)
        thread.start()
        thread.join()
        assert results == [False]

    with reservation_lock(key, wait_s=0.05) as acquired_again:
        assert acquired_again


def test_different_keys_do_not_block_each_other():
    with reservation_lock(chef_schedule_key("a")) as first:
        with reservation_lock(chef_schedule_key("b"), wait_s=0.05) as second:
            assert first and second
