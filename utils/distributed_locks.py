import logging
import time
import uuid

from django.core.cache import cache

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    """Raised when a lock could not be acquired within its timeout."""

    def __init__(self, key, timeout):
        self.key = key
        self.timeout = timeout
        super().__init__(f"Could not acquire lock {key} within {timeout} seconds")


class DistributedLock:
    """
    A distributed lock implementation using Django's cache backend.

    ``cache.add`` only stores the key when it is absent, so exactly one
    process holds the lock at a time. The lock expires on its own if the
    holder dies before releasing it.
    """

    def __init__(self, key, expires=30, timeout=5, poll_interval=0.05):
        """
        Initialize a distributed lock.

        Args:
            key (str): The unique identifier for the lock
            expires (int): The number of seconds after which the lock expires
            timeout (float): The maximum number of seconds to wait to acquire the lock
            poll_interval (float): The interval in seconds to check if lock can be acquired
        """
        self.key = f"lock:{key}"
        self.expires = expires
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._lock_id = str(uuid.uuid4())
        self.acquired = False

    def acquire(self):
        """
        Attempt to acquire the lock, polling until the timeout elapses.

        Returns:
            bool: True if the lock was acquired, False otherwise
        """
        logger.debug(f"Attempting to acquire lock for {self.key}")
        deadline = time.monotonic() + self.timeout

        while True:
            if cache.add(self.key, self._lock_id, self.expires):
                logger.debug(f"Lock acquired for {self.key}")
                self.acquired = True
                return True

            if time.monotonic() >= deadline:
                break
            time.sleep(self.poll_interval)

        logger.warning(f"Failed to acquire lock for {self.key} after {self.timeout} seconds")
        return False

    def release(self):
        """
        Release the lock if it's owned by this instance.

        Returns:
            bool: True if the lock was released, False otherwise
        """
        if cache.get(self.key) == self._lock_id:
            cache.delete(self.key)
            self.acquired = False
            logger.debug(f"Lock released for {self.key}")
            return True

        logger.warning(f"Failed to release lock for {self.key} - lock not owned by this instance")
        self.acquired = False
        return False

    def __enter__(self):
        if not self.acquire():
            raise LockTimeout(self.key, self.timeout)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if self.acquired:
            self.release()
        return False


def staff_bookings_lock_key(staff_id):
    """Lock key serializing booking writes for one staff member"""
    return f"staff:{staff_id}:bookings"
