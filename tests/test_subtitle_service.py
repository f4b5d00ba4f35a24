import gzip

import pytest

from lime_streamcore.backend.common.errors import AuthenticationError, ParseError, ServiceUnavailableError
from lime_streamcore.backend.player.exceptions import SubtitleError, SubtitleProviderUnavailable
from lime_streamcore.backend.player.subtitles.models import (
    SortStrategy,
    SubtitlePayload,
    SubtitleResult,
)
from lime_streamcore.backend.player.subtitles.providers.base import SubtitleProvider
from lime_streamcore.backend.player.subtitles.service import SubtitleService
from lime_streamcore.backend.streams.models import MediaKind


def srt_bytes(text):
    return gzip.compress(f"1\n00:00:01,000 --> 00:00:02,000\n{text}\n".encode("utf-8"))


class ScriptedProvider(SubtitleProvider):
    name = "scripted"

    def __init__(self, releases):
        self.releases = releases
        self.queries = []
        self.downloads = []

    def search(self, query):
        self.queries.append(query)
        return [
            SubtitleResult(
                provider=self.name,
                language=query.language,
                release=release,
                download_link=f"https://dl.example/{i}" if release != "nolink" else "",
                downloads=100 - i,
            )
            for i, release in enumerate(self.releases)
        ]

    def download(self, result):
        self.downloads.append(result.release)
        return SubtitlePayload(file_name="x.srt", content=srt_bytes(result.release))


def test_fetch_clamps_index_to_last_result():
    provider = ScriptedProvider(["a", "b", "c"])
    service = SubtitleService(provider)
    loaded = service.fetch(1, MediaKind.MOVIE, "eng", external_id="tt0111161", strategy=SortStrategy.RECENT, index=10)
    assert loaded.current_index == 2
    assert loaded.total_available == 3
    assert loaded.release == "c"
    assert "c" in loaded.srt


def test_fetch_translates_catalog_id_and_passes_episode():
    provider = ScriptedProvider(["a"])
    lookups = []

    def lookup(content_id, media_type):
        lookups.append((content_id, media_type))
        return "tt0944947"

    service = SubtitleService(provider, external_ids=lookup)
    service.fetch(1399, MediaKind.TV, "eng", season=1, episode=2)
    assert lookups == [(1399, MediaKind.TV)]
    query = provider.queries[0]
    assert (query.external_id, query.season, query.episode) == ("tt0944947", 1, 2)


def test_fetch_without_external_id_fails_with_message():
    service = SubtitleService(ScriptedProvider(["a"]), external_ids=lambda cid, kind: None)
    with pytest.raises(SubtitleError, match="IMDB ID"):
        service.fetch(1, MediaKind.MOVIE, "eng")


def test_fetch_with_no_results():
    service = SubtitleService(ScriptedProvider([]))
    with pytest.raises(SubtitleError, match="No subtitles found"):
        service.fetch(1, MediaKind.MOVIE, "eng", external_id="tt1")


def test_fetch_without_download_link():
    service = SubtitleService(ScriptedProvider(["nolink"]))
    with pytest.raises(SubtitleError, match="No download link"):
        service.fetch(1, MediaKind.MOVIE, "eng", external_id="tt1")


def test_load_cycles_through_results_per_language():
    provider = ScriptedProvider(["a", "b", "c"])
    service = SubtitleService(provider)
    picks = [
        service.load(1, MediaKind.MOVIE, "eng", external_id="tt1", strategy=SortStrategy.RECENT).current_index
        for _ in range(4)
    ]
    assert picks == [0, 1, 2, 0]
    assert service.track.text_at(1.5) == "a"

    # another language starts from the top
    assert service.load(1, MediaKind.MOVIE, "spa", external_id="tt1").current_index == 0
    assert service.state("eng").current_index == 0


def test_load_resets_cycle_for_a_new_title():
    service = SubtitleService(ScriptedProvider(["a", "b"]))
    service.load(1, MediaKind.MOVIE, "eng", external_id="tt1")
    assert service.load(1, MediaKind.MOVIE, "eng", external_id="tt1").current_index == 1
    assert service.load(2, MediaKind.MOVIE, "eng", external_id="tt2").current_index == 0


def test_fetch_reports_unreachable_title_lookup_as_provider_unavailable():
    provider = ScriptedProvider(["a"])

    def lookup(content_id, media_type):
        raise ServiceUnavailableError("metadata host unreachable")

    service = SubtitleService(provider, external_ids=lookup)
    with pytest.raises(SubtitleProviderUnavailable):
        service.fetch(1, MediaKind.MOVIE, "eng")
    assert provider.queries == []


@pytest.mark.parametrize("error", [AuthenticationError("bad key"), ParseError("garbled")])
def test_fetch_reports_failed_title_lookup_as_missing_id(error):
    def lookup(content_id, media_type):
        raise error

    service = SubtitleService(ScriptedProvider(["a"]), external_ids=lookup)
    with pytest.raises(SubtitleError, match="Could not find IMDB ID for this title"):
        service.fetch(1, MediaKind.MOVIE, "eng")
