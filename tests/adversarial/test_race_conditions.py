"""
Adversarial tests for race condition attack prevention.

Verifies that concurrent operations on the same email are handled atomically,
preventing attackers from exploiting race conditions to:
- Redeem one code more than once
- Create duplicate accounts
- Leave two live codes for the same (email, purpose)

Security rationale:
- Concurrent replays of a verification request could activate twice
- Concurrent resends could interleave their writes
- Atomic single-statement writes (ON CONFLICT, conditional UPDATE, UNIQUE)
  prevent these attacks
"""

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from src.adapters.signing.jose_signer import JoseSigner
from src.adapters.smtp.console import ConsoleEmailSender
from src.domain.exceptions import AlreadyUsedError, ConflictError, IdentityError
from src.domain.otp import CodeDelivery, OtpIssuer, VerificationEngine
from src.domain.ports import OtpPurpose, ProfileDraft, VerifyResult
from src.domain.registration import RegistrationService
from src.domain.tokens import TokenIssuer
from tests.helpers import TEST_SECRET, Store

# Apply adversarial marker to all tests in this module
pytestmark = pytest.mark.adversarial

EMAIL = "attack@example.com"
NUM_ATTACKERS = 8


def run_concurrently(attack: Callable[[], object], count: int = NUM_ATTACKERS) -> list[object]:
    """Run `attack` from `count` threads released together; collect results or errors."""
    barrier = threading.Barrier(count)
    results: list[object] = []
    results_lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        try:
            outcome = attack()
        except IdentityError as e:
            outcome = e
        with results_lock:
            results.append(outcome)

    with ThreadPoolExecutor(max_workers=count) as executor:
        futures = [executor.submit(worker) for _ in range(count)]
        for f in futures:
            f.result()
    return results


def make_service(store: Store, sender: Mock) -> RegistrationService:
    issuer = OtpIssuer(repository=store.otps, diagnostics_enabled=True)
    return RegistrationService(
        accounts=store.accounts,
        pending=store.pending,
        issuer=issuer,
        engine=VerificationEngine(repository=store.otps),
        delivery=CodeDelivery(email_sender=sender),
        tokens=TokenIssuer(signer=JoseSigner(TEST_SECRET)),
    )


class TestConcurrentIssuance:
    """Concurrent resends for one key end with exactly one live code."""

    def test_concurrent_issue_leaves_single_live_code(self, store: Store) -> None:
        issuer = OtpIssuer(repository=store.otps)

        issued = run_concurrently(lambda: issuer.issue(EMAIL, OtpPurpose.REGISTRATION))

        stored = store.otps.find(EMAIL, OtpPurpose.REGISTRATION)
        assert stored.code in {record.code for record in issued}
        assert stored.version == NUM_ATTACKERS
        assert sorted(record.version for record in issued) == list(range(1, NUM_ATTACKERS + 1))

    def test_only_final_code_verifies(self, store: Store) -> None:
        issuer = OtpIssuer(repository=store.otps)
        engine = VerificationEngine(repository=store.otps)

        issued = run_concurrently(lambda: issuer.issue(EMAIL, OtpPurpose.PASSWORD_RESET))

        live = store.otps.find(EMAIL, OtpPurpose.PASSWORD_RESET).code
        for stale in {record.code for record in issued} - {live}:
            assert engine.verify(EMAIL, stale, OtpPurpose.PASSWORD_RESET) == VerifyResult.INVALID_CODE
        assert engine.verify(EMAIL, live, OtpPurpose.PASSWORD_RESET) == VerifyResult.SUCCESS


class TestConcurrentRedemption:
    """A code produces SUCCESS at most once under concurrent replays."""

    def test_concurrent_verify_exactly_one_succeeds(self, store: Store) -> None:
        record = OtpIssuer(repository=store.otps).issue(EMAIL, OtpPurpose.REGISTRATION)
        engine = VerificationEngine(repository=store.otps)

        results = run_concurrently(
            lambda: engine.verify(EMAIL, record.code, OtpPurpose.REGISTRATION)
        )

        assert results.count(VerifyResult.SUCCESS) == 1, (
            f"Race condition vulnerability: {results.count(VerifyResult.SUCCESS)} "
            f"redemptions succeeded (expected exactly 1)"
        )
        assert results.count(VerifyResult.ALREADY_USED) == NUM_ATTACKERS - 1

    def test_concurrent_activation_creates_one_account(self, store: Store) -> None:
        sender = Mock(spec=ConsoleEmailSender)
        service = make_service(store, sender)
        service.register(EMAIL, "attacker", "secret1")
        code = sender.send_code.call_args[0][1]

        results = run_concurrently(lambda: service.verify_otp(EMAIL, code))

        activations = [r for r in results if isinstance(r, tuple)]
        assert len(activations) == 1
        assert all(isinstance(r, AlreadyUsedError) for r in results if not isinstance(r, tuple))
        assert store.accounts.find_by_email(EMAIL).id == activations[0][0].id


class TestConcurrentAccountCreation:
    """The unique email constraint holds under concurrent inserts."""

    def test_concurrent_create_exactly_one_succeeds(self, store: Store) -> None:
        draft = ProfileDraft(username="attacker", password_hash="$2b$10$attackhash")

        results = run_concurrently(
            lambda: store.accounts.create(EMAIL, draft, True, datetime.now(timezone.utc))
        )

        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(conflicts) == NUM_ATTACKERS - 1
        assert store.accounts.find_by_email(EMAIL) is not None
