"""
Usage ledger: counts and records rate-limited operations per subject and day.

The ledger is mechanism only. It knows nothing about daily ceilings; callers
compare ``count_today`` against their own limit before starting an operation.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from pymongo.errors import PyMongoError

from ideaforge.errors import UsageLedgerUnavailable
from ideaforge.models.usage import OperationKind, UsageRecord
from ideaforge.utils.logger import logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UtcDayClock:
    """
    Defines "today" as the UTC calendar day, [00:00 UTC, next 00:00 UTC).

    ``now`` is injectable so tests can pin the wall clock.
    """

    def __init__(self, now: Callable[[], datetime] = utc_now):
        self._now = now

    def now(self) -> datetime:
        current = self._now()
        if current.tzinfo is None:
            # Naive datetimes are taken to be UTC
            return current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def today(self) -> Tuple[datetime, datetime]:
        start = self.now().replace(hour=0, minute=0, second=0, microsecond=0)
        return start, start + timedelta(days=1)


class UsageLedger(ABC):
    """Durable per-subject counter of completed rate-limited operations."""

    def __init__(self, clock: Optional[UtcDayClock] = None):
        self.clock = clock or UtcDayClock()

    @abstractmethod
    def count_today(self, subject: str, kind: OperationKind) -> int:
        """
        Count the subject's records of this kind within the current UTC day.

        Raises:
            UsageLedgerUnavailable: if the backing store cannot be read
        """
        pass

    @abstractmethod
    def record(self, subject: str, kind: OperationKind) -> UsageRecord:
        """
        Append exactly one usage record, atomically with respect to concurrent counts.

        Raises:
            UsageLedgerUnavailable: if the backing store cannot be written
        """
        pass

    def remaining_today(self, subject: str, kind: OperationKind, daily_limit: int) -> int:
        return max(0, daily_limit - self.count_today(subject, kind))


class MongoUsageLedger(UsageLedger):
    """Usage ledger backed by a MongoDB collection."""

    def __init__(self, mongodb_client, clock: Optional[UtcDayClock] = None):
        super().__init__(clock)
        self.mongodb_client = mongodb_client

    def count_today(self, subject: str, kind: OperationKind) -> int:
        start, end = self.clock.today()
        try:
            return self.mongodb_client.count_usage(subject, OperationKind(kind).value, start, end)
        except PyMongoError as e:
            logger.error(f"Could not read usage for {subject}/{OperationKind(kind).value}: {e}")
            raise UsageLedgerUnavailable() from e

    def record(self, subject: str, kind: OperationKind) -> UsageRecord:
        record = UsageRecord(subject=subject, kind=kind, created_at=self.clock.now())
        try:
            # A single insert is atomic; concurrent counts see it or they don't
            self.mongodb_client.insert_usage(record.subject, record.kind.value, record.created_at)
        except PyMongoError as e:
            logger.error(f"Could not record usage for {subject}/{record.kind.value}: {e}")
            raise UsageLedgerUnavailable("Usage could not be recorded.") from e
        logger.info(f"Recorded {record.kind.value} usage for {subject}")
        return record


class InMemoryUsageLedger(UsageLedger):
    """Process-local usage ledger, for single-process deployments and tests."""

    def __init__(self, clock: Optional[UtcDayClock] = None):
        super().__init__(clock)
        self._records: List[UsageRecord] = []
        self._lock = threading.Lock()

    def count_today(self, subject: str, kind: OperationKind) -> int:
        start, end = self.clock.today()
        kind = OperationKind(kind)
        with self._lock:
            return sum(
                1 for record in self._records
                if record.subject == subject and record.kind == kind and start <= record.created_at < end
            )

    def record(self, subject: str, kind: OperationKind) -> UsageRecord:
        record = UsageRecord(subject=subject, kind=kind, created_at=self.clock.now())
        with self._lock:
            self._records.append(record)
        return record
