from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class OperationKind(str, Enum):
    """Rate-limited operations tracked by the usage ledger."""

    ENHANCEMENT = "enhancement"
    VALIDATION = "validation"


class UsageRecord(BaseModel):
    """One completed rate-limited operation. Exists only to be counted."""

    model_config = ConfigDict(frozen=True)

    subject: str
    kind: OperationKind
    created_at: datetime
