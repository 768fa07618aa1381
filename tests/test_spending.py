import threading

import pytest

from blockrun_llm.spending import Spending, SpendingLedger


def test_new_ledger_is_empty():
    assert SpendingLedger().snapshot() == Spending(total_usd=0.0, calls=0)


def test_record_converts_micro_units():
    ledger = SpendingLedger()

    ledger.record(1_000_000)

    assert ledger.snapshot() == Spending(total_usd=1.0, calls=1)


def test_record_accumulates_without_drift():
    ledger = SpendingLedger()

    for _ in range(10):
        ledger.record(100_000)

    snapshot = ledger.snapshot()
    assert snapshot.total_usd == 1.0
    assert snapshot.calls == 10


def test_record_zero_amount_counts_call():
    ledger = SpendingLedger()

    ledger.record(0)

    assert ledger.snapshot() == Spending(total_usd=0.0, calls=1)


def test_record_rejects_negative():
    ledger = SpendingLedger()

    with pytest.raises(ValueError):
        ledger.record(-1)
    assert ledger.snapshot().calls == 0


def test_concurrent_records():
    ledger = SpendingLedger()

    def pay():
        for _ in range(100):
            ledger.record(1)

    threads = [threading.Thread(target=pay) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snapshot = ledger.snapshot()
    assert snapshot.calls == 800
    assert snapshot.total_usd == 800 / 1_000_000
