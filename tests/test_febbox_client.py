import pytest

from lime_streamcore.backend.common.errors import AuthenticationError, NotFoundError, ProviderError
from lime_streamcore.backend.streams.febbox import FebBoxClient


def test_create_share_reads_token_from_link(fake_session, respond):
    session = fake_session(lambda call: respond({"code": 1, "data": {"link": "https://www.febbox.com/share/ZyX987"}}))
    client = FebBoxClient(session, region="USA6")

    assert client.create_share(1234, 1, "cred") == "ZyX987"
    call = session.calls[0]
    assert call["path"] == "mbp/to_share_page"
    assert call["params"] == {"box_type": 1, "mid": 1234, "json": 1}
    assert call["headers"]["Cookie"] == "ui=cred; oss_group=USA6"


def test_create_share_without_link_is_not_found(fake_session, respond):
    session = fake_session(lambda call: respond({"code": 0, "msg": "no share", "data": {}}))
    with pytest.raises(NotFoundError, match="no share"):
        FebBoxClient(session, region="USA7").create_share(1, 2, "cred")


def test_list_folder_parses_entries(fake_session, respond):
    payload = {
        "code": 1,
        "data": {
            "file_list": [
                {"fid": 11, "file_name": "Season 1", "is_dir": 1, "file_size_bytes": 0},
                {"fid": 12, "file_name": "Movie.MKV", "is_dir": 0, "file_size_bytes": "2048"},
            ]
        },
    }
    session = fake_session(lambda call: respond(payload))
    entries = FebBoxClient(session, region="USA7").list_folder("tok", "cred", parent_id="5", page=2)

    assert [(e.id, e.is_directory, e.extension, e.size_bytes) for e in entries] == [
        ("11", True, "", 0),
        ("12", False, "mkv", 2048),
    ]
    assert session.calls[0]["params"]["parent_id"] == "5"
    assert session.calls[0]["params"]["page"] == 2


def test_quality_listing_accepts_json_wrapped_html(fake_session, respond):
    session = fake_session(lambda call: respond({"html": '<div data-url="https://x/a.mp4"></div>'}))
    assert "data-url" in FebBoxClient(session, region="USA7").quality_listing("tok", "1", "cred")


def test_traffic_parses_quota(fake_session, respond):
    data = {"traffic_usage_mb": 512, "traffic_limit_mb": 1024, "reset_at": "2026-11-01", "is_vip": 1}
    session = fake_session(lambda call: respond({"code": 1, "data": data}))

    quota = FebBoxClient(session, region="USA7").traffic("cred")

    assert quota.used_bytes == 512 * 1024 * 1024
    assert quota.limit_bytes == 1024 * 1024 * 1024
    assert quota.is_vip
    assert quota.has_traffic_remaining


def test_traffic_html_means_rejected_credential(fake_session, respond):
    session = fake_session(lambda call: respond(text="<html>login</html>"))
    with pytest.raises(AuthenticationError):
        FebBoxClient(session, region="USA7").traffic("cred")


def test_traffic_error_code(fake_session, respond):
    session = fake_session(lambda call: respond({"code": -1, "msg": "busy"}))
    with pytest.raises(ProviderError, match="busy"):
        FebBoxClient(session, region="USA7").traffic("cred")

