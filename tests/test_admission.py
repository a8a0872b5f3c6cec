import threading

from gate.net.admission import AdmissionController


def make(**kw) -> AdmissionController:
    kw.setdefault("start", 0.0)
    return AdmissionController(**kw)


def test_walkthrough():
    ctl = make(max_tokens=3, refill_interval=60.0, cooldown=5.0)

    assert ctl.allow("A", 0.0) is True
    assert ctl.tokens == 2
    assert ctl.allow("A", 2.0) is False
    assert ctl.allow("B", 0.0) is True
    assert ctl.tokens == 1
    assert ctl.allow("C", 0.0) is True
    assert ctl.tokens == 0
    assert ctl.allow("D", 0.0) is False

    assert ctl.allow("D", 60.0) is True
    assert ctl.tokens == 2
    assert ctl.last_refill == 60.0


def test_tokens_never_exceed_capacity_after_long_idle():
    ctl = make(max_tokens=3, refill_interval=60.0)
    assert ctl.allow("A", 0.0)
    assert ctl.allow("B", 10_000.0)
    # Full refill capped at 3, minus the admission.
    assert ctl.tokens == 2


def test_tokens_stay_in_bounds_under_load():
    ctl = make(max_tokens=3, refill_interval=10.0, cooldown=0.5)
    for i in range(200):
        ctl.allow(f"c{i % 7}", i * 0.7)
        assert 0 <= ctl.tokens <= 3


def test_partial_interval_not_credited():
    ctl = make(max_tokens=3, refill_interval=60.0, cooldown=0.0)
    for cid in ("A", "B", "C"):
        assert ctl.allow(cid, 1.0)
    assert ctl.allow("D", 59.9) is False
    assert ctl.tokens == 0
    assert ctl.last_refill == 0.0


def test_refill_anchor_resets_to_now():
    ctl = make(max_tokens=1, refill_interval=60.0, cooldown=0.0)
    assert ctl.allow("A", 0.0)
    # 90s elapsed: one interval credited, 30s remainder dropped.
    assert ctl.allow("B", 90.0)
    assert ctl.last_refill == 90.0
    assert ctl.allow("C", 120.0) is False
    assert ctl.allow("C", 150.0) is True


def test_refill_applies_even_when_rejected_by_cooldown():
    ctl = make(max_tokens=2, refill_interval=60.0, cooldown=100.0)
    assert ctl.allow("A", 0.0)
    assert ctl.allow("B", 0.0)
    assert ctl.tokens == 0
    assert ctl.allow("A", 61.0) is False
    assert ctl.tokens == 2
    assert ctl.last_refill == 61.0


def test_cooldown_rejection_does_not_consume_token():
    ctl = make(max_tokens=3, cooldown=5.0)
    assert ctl.allow("A", 0.0)
    before = ctl.tokens
    assert ctl.allow("A", 4.999) is False
    assert ctl.tokens == before
    assert ctl.last_admitted("A") == 0.0


def test_cooldown_boundary_admits():
    ctl = make(max_tokens=3, cooldown=5.0)
    assert ctl.allow("A", 0.0)
    assert ctl.allow("A", 5.0) is True
    assert ctl.last_admitted("A") == 5.0


def test_clients_are_independent():
    ctl = make(max_tokens=3, cooldown=5.0)
    assert ctl.allow("A", 0.0)
    assert ctl.allow("B", 1.0)
    assert ctl.last_admitted("A") == 0.0
    assert ctl.allow("A", 5.0)
    assert ctl.last_admitted("B") == 1.0


def test_global_exhaustion_does_not_record_client():
    ctl = make(max_tokens=1, cooldown=5.0)
    assert ctl.allow("A", 0.0)
    assert ctl.allow("B", 0.0) is False
    assert ctl.last_admitted("B") is None


def test_missing_client_id_rejected_without_state_change():
    ctl = make(max_tokens=3)
    assert ctl.allow(None, 0.0) is False
    assert ctl.tokens == 3
    assert ctl.client_count == 0


def test_out_of_order_time_never_moves_state_backwards():
    ctl = make(max_tokens=3, refill_interval=60.0, cooldown=0.0)
    assert ctl.allow("A", 120.0)
    assert ctl.last_refill == 120.0
    assert ctl.allow("A", 100.0) is False
    assert ctl.last_admitted("A") == 120.0
    assert ctl.last_refill == 120.0


def test_integer_client_ids():
    ctl = make()
    assert ctl.allow(7, 0.0)
    assert ctl.allow(7, 1.0) is False
    assert ctl.allow(8, 1.0)


def test_maintenance_purges_only_stale_entries():
    ctl = make(max_tokens=3, cooldown=0.0, stale_ttl=60.0)
    assert ctl.allow("old", 0.0)
    assert ctl.allow("edge", 10.0)
    assert ctl.allow("new", 50.0)

    removed = ctl.maintenance(70.0)

    assert removed == 1
    assert ctl.last_admitted("old") is None
    assert ctl.last_admitted("edge") == 10.0
    assert ctl.last_admitted("new") == 50.0


def test_maintenance_leaves_bucket_alone():
    ctl = make(max_tokens=3)
    assert ctl.allow("A", 0.0)
    ctl.maintenance(500.0)
    assert ctl.tokens == 2
    assert ctl.last_refill == 0.0


def test_maintenance_on_empty_table():
    ctl = make()
    assert ctl.maintenance(1000.0) == 0
    assert ctl.maintenance(1000.0) == 0


def test_default_clock_is_used():
    now = [100.0]
    ctl = AdmissionController(clock=lambda: now[0])
    assert ctl.allow("A")
    now[0] = 102.0
    assert ctl.allow("A") is False
    now[0] = 200.0
    assert ctl.maintenance() == 1


def test_concurrent_admissions_respect_capacity():
    ctl = make(max_tokens=50, refill_interval=3600.0, cooldown=0.0)
    admitted = []
    lock = threading.Lock()

    def worker(n):
        for i in range(100):
            if ctl.allow(f"w{n}-{i}", 1.0):
                with lock:
                    admitted.append(1)
            if i % 10 == 0:
                ctl.maintenance(1.0)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(admitted) == 50
    assert ctl.tokens == 0


def test_snapshot():
    ctl = make(max_tokens=3, cooldown=5.0, refill_interval=60.0)
    ctl.allow("A", 0.0)
    snap = ctl.snapshot()
    assert snap == {
        "tokens": 2,
        "maxTokens": 3,
        "clients": 1,
        "cooldownSec": 5.0,
        "refillIntervalSec": 60.0,
    }
