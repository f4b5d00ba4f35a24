import pytest
from pydantic import ValidationError

from lime_streamcore.backend.persistence.preferences import (
    LANGUAGES_KEY,
    REGION_KEY,
    STYLING_KEY,
    PreferencesStore,
)


def test_region_defaults_and_updates(kv_store):
    prefs = PreferencesStore(kv_store)
    assert prefs.region() == "USA7"

    region = prefs.set_region("UK3")

    assert region.country == "UK"
    assert prefs.region() == "UK3"


def test_unknown_region_is_rejected(kv_store):
    prefs = PreferencesStore(kv_store)
    with pytest.raises(ValueError):
        prefs.set_region("MARS1")
    kv_store.set(REGION_KEY, "MARS1")
    assert prefs.region() == "USA7"


def test_languages_are_unique_by_code(kv_store):
    prefs = PreferencesStore(kv_store)
    prefs.add_language("eng", "English")
    prefs.add_language("spa", "Spanish")
    prefs.add_language("eng", "English (again)")

    assert [(l.code, l.name) for l in prefs.languages()] == [("eng", "English"), ("spa", "Spanish")]

    prefs.remove_language("eng")
    assert [l.code for l in prefs.languages()] == ["spa"]


def test_malformed_languages_fall_back_to_empty(kv_store):
    kv_store.set(LANGUAGES_KEY, "{not json")
    assert PreferencesStore(kv_store).languages() == []
    kv_store.set_json(LANGUAGES_KEY, [{"name": "no code"}])
    assert PreferencesStore(kv_store).languages() == []


def test_styling_merges_and_resets(kv_store):
    prefs = PreferencesStore(kv_store)
    assert prefs.styling().font_size == 16

    updated = prefs.update_styling({"font_size": 22, "text_shadow": True})

    assert updated.font_size == 22
    assert prefs.styling().text_shadow is True
    assert prefs.styling().text_color == "#ffffff"

    assert prefs.reset_styling().font_size == 16
    assert prefs.styling().text_shadow is False


def test_invalid_styling_is_rejected_and_stored_garbage_ignored(kv_store):
    prefs = PreferencesStore(kv_store)
    with pytest.raises(ValidationError):
        prefs.update_styling({"font_size": 1000})
    kv_store.set_json(STYLING_KEY, {"font_size": "huge"})
    assert prefs.styling().font_size == 16
