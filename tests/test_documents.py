"""Tests for document submission and one-shot verification."""
import dataclasses
import threading
from datetime import datetime, timedelta

import pytest

from app.registry.errors import AlreadyVerified, NotFound, PermissionDenied
from app.registry.service import create_registry

OWNER = "0xOWNER"
STUDENT = "0xSTUDENT"
VERIFIER = "0xVERIFIER"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0))


@pytest.fixture()
def registry(tmp_path, clock):
    reg = create_registry(f"sqlite:///{tmp_path/'test.db'}", env="test", clock=clock)
    reg.initialize(OWNER)
    reg.add_verifier(OWNER, VERIFIER)
    reg.register_student(OWNER, STUDENT, "Bob", 1, 2, "B100")
    return reg


def _submit(reg, who=STUDENT, content_hash="QmHash"):
    return reg.submit_document(who, "marksheet", content_hash, '{"sem": 3}', "B100")


def test_submit_assigns_sequential_ids_from_one(registry):
    ids = [_submit(registry, content_hash=f"Qm{i}") for i in range(5)]
    assert ids == [1, 2, 3, 4, 5]
    assert registry.document_count() == 5
    assert registry.documents_submitted_by(STUDENT) == [1, 2, 3, 4, 5]


def test_submit_records_fields_and_unverified_state(registry, clock):
    doc_id = _submit(registry)
    d = registry.get_document(doc_id)
    assert d.doc_type == "marksheet"
    assert d.content_hash == "QmHash"
    assert d.metadata == '{"sem": 3}'
    assert d.submitter == STUDENT
    assert d.student_id_number == "B100"
    assert d.created_at == clock.now
    assert d.verified is False
    assert d.verified_by == ()
    assert d.verified_at is None


def test_submit_requires_registered_student(registry):
    for who in (OWNER, VERIFIER, "0xSTRANGER"):
        with pytest.raises(PermissionDenied):
            _submit(registry, who=who)
    # Failed submissions never consume an id.
    assert registry.document_count() == 0
    assert _submit(registry) == 1


def test_duplicate_hashes_are_accepted(registry):
    assert _submit(registry, content_hash="same") == 1
    assert _submit(registry, content_hash="same") == 2


def test_submit_stores_fields_exactly_as_given(registry):
    doc_id = registry.submit_document(STUDENT, " marksheet ", " h ", "  ", " B100 ")
    d = registry.get_document(doc_id)
    assert d.doc_type == " marksheet "
    assert d.content_hash == " h "
    assert d.metadata == "  "
    assert d.student_id_number == " B100 "

    # Empty type and hash are accepted too; the hash is never inspected.
    empty_id = registry.submit_document(STUDENT, "", "", "", "")
    assert empty_id == doc_id + 1
    assert registry.get_document(empty_id).content_hash == ""


def test_verify_is_one_shot(registry, clock):
    doc_id = _submit(registry)
    clock.advance(hours=2)

    view = registry.verify_document(VERIFIER, doc_id)
    assert view.verified is True
    assert view.verified_by == (VERIFIER,)
    assert view.verified_at == clock.now

    with pytest.raises(AlreadyVerified):
        registry.verify_document(VERIFIER, doc_id)

    registry.add_verifier(OWNER, "0xSECOND")
    with pytest.raises(AlreadyVerified):
        registry.verify_document("0xSECOND", doc_id)

    d = registry.get_document(doc_id)
    assert d.verified_by == (VERIFIER,)
    assert d.verified_at == view.verified_at


def test_verify_requires_verifier_role(registry):
    doc_id = _submit(registry)
    for who in (OWNER, STUDENT, "0xSTRANGER"):
        with pytest.raises(PermissionDenied):
            registry.verify_document(who, doc_id)
    assert registry.get_document(doc_id).verified is False


def test_verify_unknown_document(registry):
    with pytest.raises(NotFound):
        registry.verify_document(VERIFIER, 42)
    # Authorization is checked before existence.
    with pytest.raises(PermissionDenied):
        registry.verify_document("0xSTRANGER", 42)


def test_get_unknown_document(registry):
    with pytest.raises(NotFound):
        registry.get_document(1)


def test_get_returns_read_only_copy(registry):
    doc_id = _submit(registry)
    d = registry.get_document(doc_id)
    with pytest.raises(dataclasses.FrozenInstanceError):
        d.verified = True  # type: ignore[misc]
    assert registry.get_document(doc_id).verified is False


def test_mutations_are_audited(registry):
    doc_id = _submit(registry)
    registry.verify_document(VERIFIER, doc_id)
    events = registry.audit_trail(entity_type="Document", entity_id=str(doc_id))
    assert [e.action for e in events] == ["doc.submit", "doc.verify"]
    assert [e.actor for e in events] == [STUDENT, VERIFIER]


def test_concurrent_submissions_never_collide(registry):
    errors = []

    def worker(n: int) -> None:
        try:
            for i in range(10):
                _submit(registry, content_hash=f"Qm-{n}-{i}")
        except Exception as e:  # pragma: no cover - surfaced by the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert registry.document_count() == 60
    assert registry.documents_submitted_by(STUDENT) == list(range(1, 61))


def test_concurrent_verifications_succeed_once(registry):
    doc_id = _submit(registry)
    verifiers = [f"0xV{i}" for i in range(5)]
    for v in verifiers:
        registry.add_verifier(OWNER, v)

    results = []
    results_lock = threading.Lock()

    def worker(v: str) -> None:
        try:
            registry.verify_document(v, doc_id)
            outcome = "ok"
        except AlreadyVerified:
            outcome = "already"
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker, args=(v,)) for v in verifiers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["already"] * 4 + ["ok"]
    assert len(registry.get_document(doc_id).verified_by) == 1
