"""
In-memory repository adapters - Implement the domain persistence ports.

Used for local runs (STORAGE_BACKEND=memory) and tests. A single lock per
repository serializes each operation, mirroring the per-row atomicity of
the PostgreSQL adapters.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime

from src.domain.exceptions import ConflictError
from src.domain.ports import (
    Account,
    OtpPurpose,
    OTPRecord,
    PendingRegistration,
    ProfileDraft,
)


class InMemoryOtpRepository:
    """Implements OtpRepository protocol with a dict keyed by (email, purpose)."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, OtpPurpose], OTPRecord] = {}
        self._lock = threading.Lock()

    def replace(self, record: OTPRecord) -> OTPRecord:
        key = (record.email, record.purpose)
        with self._lock:
            previous = self._records.get(key)
            version = previous.version + 1 if previous is not None else 1
            stored = replace(record, used=False, version=version)
            self._records[key] = stored
            return stored

    def find(self, email: str, purpose: OtpPurpose) -> OTPRecord | None:
        with self._lock:
            return self._records.get((email, purpose))

    def mark_used(self, email: str, purpose: OtpPurpose, code: str) -> bool:
        key = (email, purpose)
        with self._lock:
            record = self._records.get(key)
            if record is None or record.used or record.code != code:
                return False
            self._records[key] = replace(record, used=True)
            return True

    def delete_for_email(self, email: str) -> None:
        with self._lock:
            for key in [k for k in self._records if k[0] == email]:
                del self._records[key]

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [k for k, r in self._records.items() if r.expires_at < now]
            for key in expired:
                del self._records[key]
            return len(expired)


class InMemoryPendingRegistrationRepository:
    """Implements PendingRegistrationRepository protocol."""

    def __init__(self) -> None:
        self._drafts: dict[str, PendingRegistration] = {}
        self._lock = threading.Lock()

    def put(self, email: str, draft: ProfileDraft, created_at: datetime) -> None:
        with self._lock:
            self._drafts[email] = PendingRegistration(email, draft, created_at)

    def get(self, email: str) -> PendingRegistration | None:
        with self._lock:
            return self._drafts.get(email)

    def delete(self, email: str) -> None:
        with self._lock:
            self._drafts.pop(email, None)


class InMemoryAccountRepository:
    """Implements AccountRepository protocol; email uniqueness enforced under lock."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> Account | None:
        with self._lock:
            return next((a for a in self._accounts.values() if a.email == email), None)

    def find_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def create(
        self, email: str, draft: ProfileDraft, email_verified: bool, now: datetime
    ) -> Account:
        with self._lock:
            if any(a.email == email for a in self._accounts.values()):
                raise ConflictError()
            account = Account(
                id=str(uuid.uuid4()),
                email=email,
                username=draft.username,
                password_hash=draft.password_hash,
                role=draft.role,
                email_verified=email_verified,
                created_at=now,
                updated_at=now,
            )
            self._accounts[account.id] = account
            return account

    def update_password(self, account_id: str, password_hash: str, now: datetime) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                return False
            self._accounts[account_id] = replace(
                account, password_hash=password_hash, updated_at=now
            )
            return True

    def delete(self, account_id: str) -> bool:
        with self._lock:
            return self._accounts.pop(account_id, None) is not None
