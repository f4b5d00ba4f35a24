"""Shared helpers for the lime-media and lime-admin command lines."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, NoReturn

from lime_streamcore.backend.common.logging import init_logging
from lime_streamcore.backend.streams.models import MediaKind
from lime_streamcore.config.settings import get_settings


def build_subparser(parent: argparse._SubParsersAction, name: str, **kwargs: Any) -> argparse.ArgumentParser:
    return parent.add_parser(name, **kwargs)


def require_subcommand(subparsers: argparse._SubParsersAction) -> None:
    subparsers.required = True


def add_title_arguments(parser: argparse.ArgumentParser) -> None:
    """``content_id --type movie|tv [--season N --episode N]``."""

    parser.add_argument("content_id", type=int, help="Catalog (TMDb) id of the title.")
    parser.add_argument("--type", dest="media_type", choices=[k.value for k in MediaKind], default=MediaKind.MOVIE.value)
    parser.add_argument("--season", type=int, help="Season number (TV only).")
    parser.add_argument("--episode", type=int, help="Episode number (TV only).")


def configure_logging(args: argparse.Namespace) -> None:
    level = getattr(args, "log_level", None) or get_settings().log_level
    init_logging(level)


def print_json(payload: Any) -> None:
    print(json.dumps(to_serializable(payload), indent=2, sort_keys=True, ensure_ascii=False))


def to_serializable(value: Any) -> Any:
    """Convert models, dataclasses and enums into JSON-friendly structures."""

    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_serializable(item) for item in value]
    if hasattr(value, "model_dump"):
        return to_serializable(value.model_dump())
    if hasattr(value, "as_dict"):
        return to_serializable(value.as_dict())
    if is_dataclass(value):
        return {f.name: to_serializable(getattr(value, f.name)) for f in fields(value)}
    return str(value)


def parse_key_value_pairs(pairs: Iterable[str]) -> MutableMapping[str, str]:
    """Parse ``key=value`` strings into a mapping."""

    data: MutableMapping[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE syntax, got '{pair}'")
        key, value = pair.split("=", 1)
        data[key.strip()] = value.strip()
    return data


def exit_with_error(message: str, *, code: int = 1) -> NoReturn:
    sys.stderr.write(f"Error: {message}\n")
    raise SystemExit(code)
