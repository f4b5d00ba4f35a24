import pytest

from lime_streamcore.backend.common.errors import ParseError, ServiceUnavailableError
from lime_streamcore.backend.streams.credentials import (
    PRIMARY_INDEX_KEY,
    CredentialPool,
    CredentialStatus,
    CredentialStore,
    CredentialValidator,
    QuotaSnapshot,
)
from lime_streamcore.backend.streams.febbox import FebBoxClient


def test_rotate_starts_at_primary_and_wraps():
    pool = CredentialPool.of(["a", "b", "c"], primary_index=1)
    assert [i for i, _ in pool.rotate()] == [1, 2, 0]
    assert [c.secret for _, c in pool.rotate()] == ["b", "c", "a"]


def test_out_of_range_primary_is_clamped():
    assert CredentialPool.of(["a", "b"], primary_index=7).primary_index == 0
    assert CredentialPool.of(["a"], primary_index=-1).primary_index == 0


def test_empty_pool():
    pool = CredentialPool.of([])
    assert pool.rotate() == []
    assert pool.primary() is None


def test_store_add_ignores_empty_and_duplicates(kv_store):
    store = CredentialStore(kv_store)
    store.add("tok-a")
    store.add("  ")
    store.add("tok-a")
    store.add(" tok-b ")
    assert store.secrets() == ["tok-a", "tok-b"]


def test_store_promote_persists_primary(kv_store):
    store = CredentialStore(kv_store)
    for secret in ("a", "b", "c"):
        store.add(secret)
    store.promote(2)
    assert store.pool().primary_index == 2
    assert CredentialStore(kv_store).primary_index() == 2
    with pytest.raises(IndexError):
        store.promote(3)


def test_store_clamps_stale_primary_after_removal(kv_store):
    store = CredentialStore(kv_store)
    for secret in ("a", "b", "c"):
        store.add(secret)
    store.promote(2)
    store.remove(2)
    assert store.primary_index() == 0
    assert kv_store.get(PRIMARY_INDEX_KEY) == "0"


def test_store_removal_below_primary_keeps_same_secret_primary(kv_store):
    store = CredentialStore(kv_store)
    for secret in ("tok0", "tok1", "tok2"):
        store.add(secret)
    store.promote(2)
    store.remove(0)
    assert store.primary_index() == 1
    assert store.pool().primary().secret == "tok2"
    store.update(0, "")
    assert store.primary_index() == 0
    assert store.pool().primary().secret == "tok2"


def test_store_update_replaces_or_drops(kv_store):
    store = CredentialStore(kv_store)
    store.add("a")
    store.add("b")
    assert store.update(0, "z") == ["z", "b"]
    assert store.update(1, "") == ["z"]


def test_store_tolerates_malformed_list(kv_store):
    kv_store.set("febbox_tokens", '{"oops": true}')
    assert CredentialStore(kv_store).secrets() == []


def test_quota_snapshot_from_megabytes():
    quota = QuotaSnapshot.from_traffic({"traffic_usage_mb": 512, "traffic_limit_mb": 1024, "reset_at": "2026-11-01"})
    assert quota.used_bytes == 512 * 1024 * 1024
    assert quota.limit_bytes == 1024 * 1024 * 1024
    assert quota.has_traffic_remaining
    assert not QuotaSnapshot(used_bytes=10, limit_bytes=10).has_traffic_remaining


def test_validator_marks_valid_with_quota(fake_session, respond):
    session = fake_session(
        lambda call: respond({"code": 1, "data": {"traffic_usage_mb": 1, "traffic_limit_mb": 100, "reset_at": "soon"}})
    )
    validator = CredentialValidator(FebBoxClient(session, region="UK3"))
    credential = CredentialPool.of(["secret-token"]).credentials[0]

    validator.validate(credential)

    assert credential.status is CredentialStatus.VALID
    assert credential.quota.has_traffic_remaining
    cookie = session.calls[0]["headers"]["Cookie"]
    assert cookie.startswith("ui=secret-token; oss_group=UK3")


def test_validator_marks_html_response_invalid_but_keeps_credential(fake_session, respond):
    session = fake_session(lambda call: respond(text="<!DOCTYPE html><html>login</html>"))
    pool = CredentialPool.of(["bad", "also-bad"])
    CredentialValidator(FebBoxClient(session, region="USA7")).validate_pool(pool)
    assert [c.status for c in pool.credentials] == [CredentialStatus.INVALID, CredentialStatus.INVALID]
    assert len(pool) == 2


def test_validator_marks_request_failures_invalid(fake_session):
    session = fake_session(lambda call: ServiceUnavailableError("timed out"))
    credential = CredentialPool.of(["tok"]).credentials[0]
    CredentialValidator(FebBoxClient(session, region="USA7")).validate(credential)
    assert credential.status is CredentialStatus.INVALID
    assert "timed out" in credential.error


def test_validator_rejects_empty_secret(fake_session):
    session = fake_session(lambda call: AssertionError("no request expected"))
    credential = CredentialPool.of([" "]).credentials[0]
    CredentialValidator(FebBoxClient(session, region="USA7")).validate(credential)
    assert credential.status is CredentialStatus.INVALID
    assert session.calls == []


def test_quota_snapshot_rejects_unreadable_amounts():
    with pytest.raises(ParseError):
        QuotaSnapshot.from_traffic({"traffic_usage_mb": "1.2 GB", "traffic_limit_mb": 100})


def test_validator_marks_unreadable_quota_invalid(fake_session, respond):
    session = fake_session(lambda call: respond({"code": 1, "data": {"traffic_usage_mb": "1.2 GB"}}))
    credential = CredentialPool.of(["tok"]).credentials[0]
    CredentialValidator(FebBoxClient(session, region="USA7")).validate(credential)
    assert credential.status is CredentialStatus.INVALID
    assert credential.error.startswith("Request failed")
