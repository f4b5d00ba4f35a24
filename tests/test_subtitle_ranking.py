import pytest

from lime_streamcore.backend.player.subtitles.models import SortStrategy, SubtitleResult
from lime_streamcore.backend.player.subtitles.ranking import rank, smart_score


def result(release, downloads=0):
    return SubtitleResult(
        provider="opensubtitles",
        language="eng",
        release=release,
        download_link=f"https://dl.example/{release}",
        downloads=downloads,
    )


@pytest.mark.parametrize(
    "release,expected",
    [
        ("Show.S01E01.1080p.WEB-DL.x264", 100),
        ("Show.S01E01.WEBRip.x264", 90),
        ("Show.S01E01.1080p.WEB.h264", 85),
        ("Show.S01E01.AMZN.1080p", 80),
        ("Show S01E01 NF 1080p", 80),
        ("Show.S01E01.BluRay.x264", 70),
        ("Show.S01E01.DVDRip", 60),
        ("Show.S01E01.HDTV.x264", -100),
        ("Show.S01E01.720p", 0),
    ],
)
def test_source_tag_bonus(release, expected):
    assert smart_score(result(release)) == expected


def test_nf_only_counts_as_a_whole_token():
    assert smart_score(result("Infinity.Pool.2023.720p")) == 0
    assert smart_score(result("Infinity.Pool.2023.NF.720p")) == 80


def test_downloads_bonus_is_capped():
    assert smart_score(result("x", downloads=50_000)) == 5
    assert smart_score(result("x", downloads=10_000_000)) == 30


def test_hearing_impaired_bonus():
    assert smart_score(result("Movie.2020.hi.srt")) == 5
    assert smart_score(result("Movie.2020.cc.srt")) == 5


def test_smart_ranking_prefers_web_sources_and_is_stable():
    items = [
        result("Movie.HDTV", downloads=900_000),
        result("Movie.720p.a"),
        result("Movie.WEB-DL"),
        result("Movie.720p.b"),
    ]
    ranked = rank(items, SortStrategy.SMART)
    assert [r.release for r in ranked] == ["Movie.WEB-DL", "Movie.720p.a", "Movie.720p.b", "Movie.HDTV"]


def test_popular_ranking_by_downloads():
    items = [result("a", 10), result("b", 300), result("c", 20)]
    assert [r.release for r in rank(items, SortStrategy.POPULAR)] == ["b", "c", "a"]


def test_recent_keeps_provider_order_and_copies():
    items = [result("a", 10), result("b", 300)]
    ranked = rank(items, SortStrategy.RECENT)
    assert [r.release for r in ranked] == ["a", "b"]
    assert ranked is not items
