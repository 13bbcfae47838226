# Overview: Pytest coverage for racing units of work and the SQL retry helper.

"""
Races run on the memory backend, where units of work are serialized under
one lock and threads genuinely overlap. The SQL retry helper is exercised
against a stub session so conflicts can be injected deterministically.
"""

import threading
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from jaguar.errors import BundleUnavailableError, DuplicateTokenError, InvalidTransitionError, LedgerError
from jaguar.models import BundleState, QuotationState
from jaguar.repositories import InMemoryRepositories
from jaguar.services import inventory_service, payment_service, quotation_service
from jaguar.services.concurrency import run_with_retry
from jaguar.services.quotation_service import LineRequest


def _available_bundle(repos, t0, price="500.00"):
    bundle = inventory_service.receive_bundle(
        repos,
        garment_type="CASUAL_MUJER",
        season="VERANO",
        category="MUJER",
        sizes=["S", "M"],
        description="Saco de blusas",
        base_price=price,
        now=t0,
    )
    return inventory_service.tag_bundle(repos, bundle.id, now=t0)


def _issue(repos, bundles, t0):
    return quotation_service.issue_quotation(
        repos,
        customer_name="Cliente",
        lines=[LineRequest(bundle_id=b.id) for b in bundles],
        now=t0,
    )


def _race(*calls):
    """Start every call at once; return (results, errors) in call order."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)
    errors = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        try:
            results[index] = call()
        except LedgerError as exc:
            errors[index] = exc

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return results, errors


class TestReservationRace:
    """Two reservations over one bundle: exactly one wins."""

    @pytest.mark.parametrize("round_", range(5))
    def test_overlapping_reservations(self, t0, round_):
        repos = InMemoryRepositories()
        shared = _available_bundle(repos, t0)
        own_a = _available_bundle(repos, t0)
        own_b = _available_bundle(repos, t0)
        first = _issue(repos, [own_a, shared], t0)
        second = _issue(repos, [shared, own_b], t0)

        results, errors = _race(
            lambda: quotation_service.reserve_quotation(repos, first.id, now=t0),
            lambda: quotation_service.reserve_quotation(repos, second.id, now=t0),
        )

        winners = [r for r in results if r is not None]
        assert len(winners) == 1
        assert sum(isinstance(e, BundleUnavailableError) for e in errors) == 1

        loser = second if winners[0].id == first.id else first
        loser_own = own_b if loser is second else own_a
        assert repos.quotations.get(loser.id).state == QuotationState.ISSUED
        assert repos.bundles.get(loser_own.id).state == BundleState.AVAILABLE
        assert repos.bundles.get(shared.id).state == BundleState.RESERVED

    def test_many_contenders(self, t0):
        repos = InMemoryRepositories()
        shared = _available_bundle(repos, t0)
        quotations = [_issue(repos, [shared], t0) for _ in range(8)]

        results, errors = _race(*[
            (lambda q=q: quotation_service.reserve_quotation(repos, q.id, now=t0))
            for q in quotations
        ])

        assert sum(r is not None for r in results) == 1
        assert sum(isinstance(e, BundleUnavailableError) for e in errors) == 7


class TestExpiryPaymentRace:
    """Expiry racing the settling payment leaves one consistent outcome."""

    @pytest.mark.parametrize("round_", range(5))
    def test_expire_vs_pay(self, t0, round_):
        repos = InMemoryRepositories()
        bundles = [_available_bundle(repos, t0), _available_bundle(repos, t0)]
        quotation = quotation_service.reserve_quotation(repos, _issue(repos, bundles, t0).id, now=t0)
        late = t0 + timedelta(days=8)

        results, errors = _race(
            lambda: quotation_service.expire_quotation(repos, quotation.id, now=late),
            lambda: payment_service.record_payment(
                repos, quotation.id, amount="1000.00", method="EFECTIVO", now=late
            ),
        )

        stored = repos.quotations.get(quotation.id)
        states = {repos.bundles.get(b.id).state for b in bundles}
        payments = payment_service.list_payments(repos, quotation.id)

        if stored.state == QuotationState.PAID:
            assert results[0] is False
            assert states == {BundleState.SOLD}
            assert len(payments) == 1
        else:
            assert stored.state == QuotationState.EXPIRED
            assert results[0] is True
            assert isinstance(errors[1], InvalidTransitionError)
            assert states == {BundleState.AVAILABLE}
            assert payments == []


class TestDispatchRace:
    def test_same_batch_dispatched_once(self, t0):
        repos = InMemoryRepositories()
        bundle = _available_bundle(repos, t0)
        quotation = quotation_service.reserve_quotation(repos, _issue(repos, [bundle], t0).id, now=t0)
        payment_service.record_payment(repos, quotation.id, amount="500", method="EFECTIVO", now=t0)

        results, errors = _race(
            lambda: quotation_service.dispatch_quotations(repos, [quotation.id], now=t0),
            lambda: quotation_service.dispatch_quotations(repos, [quotation.id], now=t0),
        )

        assert sum(r is not None for r in results) == 1
        assert sum(isinstance(e, InvalidTransitionError) for e in errors) == 1
        assert repos.quotations.get(quotation.id).state == QuotationState.DISPATCHED


class StubSession:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


def _failing(*exceptions, result="done"):
    """A unit of work that raises each exception once, then returns result."""
    pending = list(exceptions)

    def func():
        if pending:
            raise pending.pop(0)
        return result

    return func


def _integrity_error():
    return IntegrityError("INSERT INTO quotations ...", {}, Exception("UNIQUE constraint failed"))


class TestRunWithRetry:
    def test_commits_on_success(self):
        session = StubSession()
        assert run_with_retry(session, lambda: 42) == 42
        assert (session.commits, session.rollbacks) == (1, 0)

    def test_stale_data_is_retried(self):
        session = StubSession()
        func = _failing(StaleDataError("version mismatch"))

        assert run_with_retry(session, func, backoff_base=0) == "done"
        assert (session.commits, session.rollbacks) == (1, 1)

    def test_lock_timeout_is_retried_until_attempts_run_out(self):
        session = StubSession()
        lock_error = OperationalError("SELECT ...", {}, Exception("database is locked"))
        func = _failing(lock_error, lock_error, lock_error)

        with pytest.raises(OperationalError):
            run_with_retry(session, func, attempts=3, backoff_base=0)
        assert (session.commits, session.rollbacks) == (0, 3)

    def test_integrity_error_not_retried_by_default(self):
        session = StubSession()
        func = _failing(_integrity_error())

        with pytest.raises(IntegrityError):
            run_with_retry(session, func, backoff_base=0)
        assert session.rollbacks == 1

    def test_token_collision_is_regenerated(self):
        session = StubSession()
        func = _failing(_integrity_error())

        assert run_with_retry(session, func, retry_on_conflict=True, backoff_base=0) == "done"
        assert (session.commits, session.rollbacks) == (1, 1)

    def test_persistent_collision_surfaces_as_duplicate_token(self):
        session = StubSession()
        func = _failing(*[_integrity_error() for _ in range(3)])

        with pytest.raises(DuplicateTokenError):
            run_with_retry(session, func, attempts=3, retry_on_conflict=True, backoff_base=0)
        assert session.rollbacks == 3

    def test_domain_errors_roll_back_without_retry(self):
        session = StubSession()
        calls = []

        def func():
            calls.append(1)
            raise InvalidTransitionError("nope")

        with pytest.raises(InvalidTransitionError):
            run_with_retry(session, func, backoff_base=0)
        assert len(calls) == 1
        assert (session.commits, session.rollbacks) == (0, 1)
