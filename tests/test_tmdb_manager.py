import pytest

from lime_streamcore.backend.common.errors import NotFoundError, ParseError
from lime_streamcore.backend.information_handlers.tmdb_manager import TMDbManager
from lime_streamcore.backend.streams.models import MediaKind


def test_imdb_id_is_memoized_per_title(fake_session, respond):
    session = fake_session(lambda call: respond({"id": 550, "imdb_id": "tt0137523"}))
    tmdb = TMDbManager(session=session)

    assert tmdb.imdb_id(550, MediaKind.MOVIE) == "tt0137523"
    assert tmdb.imdb_id(550, MediaKind.MOVIE) == "tt0137523"
    assert len(session.calls) == 1
    assert session.calls[0]["path"] == "movie/550/external_ids"

    tmdb.imdb_id(550, MediaKind.TV)
    assert session.calls[-1]["path"] == "tv/550/external_ids"


def test_imdb_id_missing_or_unknown_title(fake_session, respond):
    def handler(call):
        if "404" in call["path"]:
            return NotFoundError("404 Not Found", status_code=404)
        return respond({"id": 1, "imdb_id": None})

    tmdb = TMDbManager(session=fake_session(handler))
    assert tmdb.imdb_id(1, MediaKind.TV) is None
    assert tmdb.imdb_id(404, MediaKind.MOVIE) is None


def test_non_json_payload_is_a_parse_error(fake_session, respond):
    tmdb = TMDbManager(session=fake_session(lambda call: respond(text="<html>")))
    with pytest.raises(ParseError):
        tmdb.external_ids(550, MediaKind.MOVIE)
