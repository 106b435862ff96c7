# utils/tests/test_distributed_locks.py
from django.core.cache import cache
from django.test import SimpleTestCase

from utils.distributed_locks import (
    DistributedLock,
    LockTimeout,
    staff_bookings_lock_key,
)


class DistributedLockTest(SimpleTestCase):
    """Test cases for the cache-backed lock"""

    def setUp(self):
        cache.clear()

    def test_acquire_and_release(self):
        lock = DistributedLock("resource", timeout=0)

        self.assertTrue(lock.acquire())
        self.assertTrue(lock.acquired)
        self.assertIsNotNone(cache.get("lock:resource"))

        self.assertTrue(lock.release())
        self.assertIsNone(cache.get("lock:resource"))

    def test_second_holder_is_refused(self):
        first = DistributedLock("resource", timeout=0)
        second = DistributedLock("resource", timeout=0)

        self.assertTrue(first.acquire())
        self.assertFalse(second.acquire())
        self.assertFalse(second.release())

        first.release()
        self.assertTrue(second.acquire())
        second.release()

    def test_context_manager_raises_on_timeout(self):
        holder = DistributedLock("resource", timeout=0)
        holder.acquire()

        with self.assertRaises(LockTimeout) as ctx:
            with DistributedLock("resource", timeout=0):
                pass

        self.assertEqual(ctx.exception.key, "lock:resource")
        holder.release()

    def test_context_manager_releases_on_error(self):
        with self.assertRaises(ValueError):
            with DistributedLock("resource", timeout=0):
                raise ValueError("boom")

        self.assertIsNone(cache.get("lock:resource"))

    def test_staff_key(self):
        self.assertEqual(staff_bookings_lock_key("abc"), "staff:abc:bookings")
