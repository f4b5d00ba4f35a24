"""Media-focused CLI: stream resolution, subtitles and continue-watching state."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from pydantic import ValidationError

from lime_streamcore.backend.information_handlers.tmdb_manager import TMDbManager
from lime_streamcore.backend.player.exceptions import SubtitleError
from lime_streamcore.backend.player.progress import ContinueWatchingEntry, PlaybackProgressStore
from lime_streamcore.backend.player.subtitles.models import SortStrategy
from lime_streamcore.backend.player.subtitles.service import SubtitleService
from lime_streamcore.backend.streams.models import MediaKind, StreamRequest
from lime_streamcore.backend.streams.service import StreamService

from ._utils import (
    add_title_arguments,
    build_subparser,
    configure_logging,
    exit_with_error,
    print_json,
    require_subcommand,
)


def _stream_request(args: argparse.Namespace) -> StreamRequest:
    try:
        return StreamRequest(
            content_id=args.content_id,
            media_type=MediaKind(args.media_type),
            external_id=getattr(args, "external_id", None),
            season=args.season,
            episode=args.episode,
        )
    except ValueError as exc:
        exit_with_error(str(exc))


def _handle_stream_resolve(args: argparse.Namespace) -> None:
    resolution = StreamService().resolve(_stream_request(args), use_cached_share=args.use_cached_share)
    print_json(resolution.as_dict())
    if not resolution.success:
        raise SystemExit(2)


def _handle_subtitles_fetch(args: argparse.Namespace) -> None:
    service = SubtitleService(external_ids=TMDbManager().imdb_id)
    try:
        loaded = service.fetch(
            args.content_id,
            MediaKind(args.media_type),
            args.language,
            external_id=args.external_id,
            season=args.season,
            episode=args.episode,
            strategy=SortStrategy(args.strategy),
            index=args.index,
        )
    except SubtitleError as exc:
        exit_with_error(str(exc))
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(loaded.srt)
        payload = loaded.as_dict()
        payload.pop("srt")
        payload["output"] = args.output
        print_json(payload)
    else:
        print_json(loaded.as_dict())


def _handle_progress_list(_: argparse.Namespace) -> None:
    print_json([entry.model_dump(mode="json") for entry in PlaybackProgressStore().get_all()])


def _handle_progress_get(args: argparse.Namespace) -> None:
    entry = PlaybackProgressStore().get_one(args.content_id, MediaKind(args.media_type))
    if entry is None:
        exit_with_error(f"No saved progress for {args.media_type} {args.content_id}")
    print_json(entry.model_dump(mode="json"))


def _handle_progress_save(args: argparse.Namespace) -> None:
    try:
        entry = ContinueWatchingEntry(
            content_id=args.content_id,
            media_type=MediaKind(args.media_type),
            position_seconds=args.position,
            duration_seconds=args.duration,
            season=args.season,
            episode=args.episode,
        )
    except ValidationError as exc:
        exit_with_error(str(exc))
    stored = PlaybackProgressStore().save(entry)
    print_json({"stored": stored.model_dump(mode="json") if stored else None})


def _handle_progress_remove(args: argparse.Namespace) -> None:
    PlaybackProgressStore().remove(args.content_id, MediaKind(args.media_type))
    print_json({"removed": args.content_id})


def _handle_progress_clear(_: argparse.Namespace) -> None:
    PlaybackProgressStore().clear_all()
    print_json({"cleared": True})


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lime-media",
        description="Resolve streams, fetch subtitles and manage continue-watching state.",
    )
    parser.add_argument("--log-level", help="Override the configured log level.")
    subparsers = parser.add_subparsers(dest="command")
    require_subcommand(subparsers)

    # Streams ------------------------------------------------------------
    stream_parser = build_subparser(subparsers, "stream", help="Stream resolution.")
    stream_sub = stream_parser.add_subparsers(dest="stream_command")
    require_subcommand(stream_sub)

    stream_resolve = build_subparser(stream_sub, "resolve", help="Find a playable stream URL for a title.")
    add_title_arguments(stream_resolve)
    stream_resolve.add_argument("--external-id", help="IMDb id; looked up on TMDb when omitted.")
    stream_resolve.add_argument(
        "--use-cached-share",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Try the cached share link for this title first (default: on).",
    )
    stream_resolve.set_defaults(func=_handle_stream_resolve)

    # Subtitles ----------------------------------------------------------
    subs_parser = build_subparser(subparsers, "subtitles", help="Subtitle search and download.")
    subs_sub = subs_parser.add_subparsers(dest="subtitles_command")
    require_subcommand(subs_sub)

    subs_fetch = build_subparser(subs_sub, "fetch", help="Download a ranked subtitle as SRT.")
    add_title_arguments(subs_fetch)
    subs_fetch.add_argument("--language", default="eng", help="Three-letter subtitle language id (default: eng).")
    subs_fetch.add_argument("--external-id", help="IMDb id; looked up on TMDb when omitted.")
    subs_fetch.add_argument("--strategy", choices=[s.value for s in SortStrategy], default=SortStrategy.SMART.value)
    subs_fetch.add_argument("--index", type=int, default=0, help="Position in the ranked results (clamped).")
    subs_fetch.add_argument("--output", help="Write the SRT text to this file instead of stdout.")
    subs_fetch.set_defaults(func=_handle_subtitles_fetch)

    # Progress -----------------------------------------------------------
    progress_parser = build_subparser(subparsers, "progress", help="Continue-watching entries.")
    progress_sub = progress_parser.add_subparsers(dest="progress_command")
    require_subcommand(progress_sub)

    progress_list = build_subparser(progress_sub, "list", help="List entries, most recent first.")
    progress_list.set_defaults(func=_handle_progress_list)

    progress_get = build_subparser(progress_sub, "get", help="Show the entry for one title.")
    progress_get.add_argument("content_id", type=int)
    progress_get.add_argument("--type", dest="media_type", choices=[k.value for k in MediaKind], default="movie")
    progress_get.set_defaults(func=_handle_progress_get)

    progress_save = build_subparser(progress_sub, "save", help="Record a playback position.")
    add_title_arguments(progress_save)
    progress_save.add_argument("--position", type=float, required=True, help="Playback position in seconds.")
    progress_save.add_argument("--duration", type=float, required=True, help="Total duration in seconds.")
    progress_save.set_defaults(func=_handle_progress_save)

    progress_remove = build_subparser(progress_sub, "remove", help="Forget one title.")
    progress_remove.add_argument("content_id", type=int)
    progress_remove.add_argument("--type", dest="media_type", choices=[k.value for k in MediaKind], default="movie")
    progress_remove.set_defaults(func=_handle_progress_remove)

    progress_clear = build_subparser(progress_sub, "clear", help="Remove every entry.")
    progress_clear.set_defaults(func=_handle_progress_clear)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return
    configure_logging(args)
    handler(args)


if __name__ == "__main__":  # pragma: no cover
    main()
