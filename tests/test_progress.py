import pytest

from lime_streamcore.backend.player.progress import (
    CONTINUE_WATCHING_KEY,
    ContinueWatchingEntry,
    PlaybackProgressStore,
)
from lime_streamcore.backend.streams.models import MediaKind


@pytest.fixture
def progress(kv_store):
    ticks = iter(range(1_000, 10_000))
    return PlaybackProgressStore(kv_store, clock=lambda: float(next(ticks)))


def entry(content_id, position, duration=100, media_type=MediaKind.MOVIE, **extra):
    return ContinueWatchingEntry(
        content_id=content_id,
        media_type=media_type,
        position_seconds=position,
        duration_seconds=duration,
        **extra,
    )


def test_below_five_percent_is_ignored(progress):
    assert progress.save(entry(1, 4)) is None
    assert progress.get_all() == []


def test_zero_duration_is_ignored(progress):
    assert progress.save(entry(1, 40, duration=0)) is None
    assert progress.get_all() == []


def test_midway_is_stored_with_progress(progress):
    progress.save(entry(1, 50))
    stored = progress.get_one(1)
    assert stored is not None
    assert stored.progress_percent == 50
    assert stored.last_watched_at > 0


def test_finished_entry_is_removed(progress):
    progress.save(entry(1, 50))
    progress.save(entry(2, 30))
    assert progress.save(entry(1, 97)) is None
    assert [e.content_id for e in progress.get_all()] == [2]


def test_resave_moves_entry_to_front(progress):
    progress.save(entry(1, 20))
    progress.save(entry(2, 20))
    progress.save(entry(1, 40))
    entries = progress.get_all()
    assert [e.content_id for e in entries] == [1, 2]
    assert entries[0].position_seconds == 40


def test_cap_keeps_ten_most_recent(progress):
    for content_id in range(1, 12):
        progress.save(entry(content_id, 50))
    assert [e.content_id for e in progress.get_all()] == list(range(11, 1, -1))


def test_episode_fields_round_trip(progress):
    progress.save(entry(1399, 600, duration=3600, media_type=MediaKind.TV, season=1, episode=3))
    stored = progress.get_one(1399, MediaKind.TV)
    assert (stored.season, stored.episode) == (1, 3)
    assert progress.get_one(1399, MediaKind.MOVIE) is None


def test_remove_and_clear(progress):
    progress.save(entry(1, 50))
    progress.save(entry(2, 50))
    progress.remove(1)
    assert [e.content_id for e in progress.get_all()] == [2]
    progress.clear_all()
    assert progress.get_all() == []


@pytest.mark.parametrize("raw", ["not json", '{"a": 1}', '[{"content_id": "x"}]'])
def test_malformed_data_reads_as_empty(kv_store, raw):
    kv_store.set(CONTINUE_WATCHING_KEY, raw)
    store = PlaybackProgressStore(kv_store)
    assert store.get_all() == []
    assert store.save(entry(5, 50)) is not None
    assert [e.content_id for e in store.get_all()] == [5]
