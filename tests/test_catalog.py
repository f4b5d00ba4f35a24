import base64
import hashlib
import json

import pytest

from lime_streamcore.backend.common.errors import ConfigError, NotFoundError, ParseError
from lime_streamcore.backend.streams.catalog import ENVELOPE_TTL_SECONDS, EncryptedCatalogClient
from lime_streamcore.backend.streams.models import MediaKind

CIPHER = {
    "app_key": "app-key",
    "key": "abcdefghijklmnopqrstuvwx",
    "iv": "12345678",
    "app_id": "com.example.app",
    "app_version": "11.5",
    "version_code": "129",
    "platform": "android",
    "channel": "Website",
    "lang": "en",
    "search_module": "Search5",
    "page_limit": 20,
}

NOW = 1_700_000_000


def md5(value):
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def make_client(session=None, **overrides):
    return EncryptedCatalogClient(
        session,
        cipher_config={**CIPHER, **overrides},
        clock=lambda: NOW,
        nonce_factory=lambda: "f" * 32,
    )


def unpack(client, form):
    body = json.loads(base64.b64decode(form["data"]))
    return body, json.loads(client.decrypt(body["encrypt_data"]))


def test_envelope_carries_platform_metadata_and_expiry(fake_session):
    client = make_client(fake_session(lambda call: None))
    envelope = client.build_envelope("Search5", keyword="tt0111161", page=None)
    assert envelope["expired_date"] == str(NOW + ENVELOPE_TTL_SECONDS)
    assert envelope["module"] == "Search5"
    assert envelope["appid"] == "com.example.app"
    assert envelope["keyword"] == "tt0111161"
    assert "page" not in envelope


def test_pack_signs_ciphertext(fake_session):
    client = make_client(fake_session(lambda call: None))
    form = client.pack(client.build_envelope("Search5", keyword="tt1"))
    body, envelope = unpack(client, form)

    assert body["app_key"] == md5("app-key")
    assert body["verify"] == md5(md5("app-key") + CIPHER["key"] + body["encrypt_data"])
    assert len(base64.b64decode(body["encrypt_data"])) % 8 == 0
    assert envelope["keyword"] == "tt1"
    assert form["token"] == "f" * 32
    assert form["version"] == "129"


def test_search_posts_form_and_prefers_exact_external_id(fake_session, respond):
    payload = {
        "code": 1,
        "data": [
            {"id": 11, "box_type": 1, "title": "Other", "imdb_id": "tt999"},
            {"id": 12, "box_type": 2, "title": "A show"},
            {"id": 13, "box_type": 1, "title": "The one", "imdb_id": "tt0111161"},
        ],
    }
    session = fake_session(lambda call: respond(payload))
    client = make_client(session)

    matches = client.search("tt0111161", MediaKind.MOVIE)

    assert [m.media_id for m in matches] == [13, 11]
    call = session.calls[0]
    assert call["method"] == "POST"
    _, envelope = unpack(client, call["data"])
    assert envelope["type"] == "movie"
    assert envelope["pagelimit"] == "20"


def test_resolve_without_results_is_not_found(fake_session, respond):
    client = make_client(fake_session(lambda call: respond({"code": 1, "data": {"list": []}})))
    with pytest.raises(NotFoundError):
        client.resolve("tt1", MediaKind.TV)


def test_unconfigured_client_refuses_to_call(fake_session):
    client = make_client(fake_session(lambda call: None), app_key="", key="", iv="")
    assert not client.is_configured
    with pytest.raises(ConfigError):
        client.search("tt1", MediaKind.MOVIE)


def test_bad_key_length_is_a_config_error():
    with pytest.raises(ConfigError):
        make_client(object(), key="short")


def test_unreadable_response_code_is_a_parse_error(fake_session, respond):
    client = make_client(fake_session(lambda call: respond({"code": "ok?", "data": []})))
    with pytest.raises(ParseError):
        client.search("tt1", MediaKind.MOVIE)
