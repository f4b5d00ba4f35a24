"""Administrative CLI: share credentials, cached share links, preferences and settings."""

from __future__ import annotations

import argparse
from dataclasses import asdict
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.persistence.preferences import AVAILABLE_REGIONS, PreferencesStore
from lime_streamcore.backend.streams.credentials import CredentialStore, CredentialValidator
from lime_streamcore.backend.streams.febbox import FebBoxClient
from lime_streamcore.backend.streams.models import MediaKind
from lime_streamcore.backend.streams.shares import ShareReferenceStore
from lime_streamcore.config import settings
from lime_streamcore.config.settings import providers as provider_settings

from ._utils import (
    add_title_arguments,
    build_subparser,
    configure_logging,
    exit_with_error,
    parse_key_value_pairs,
    print_json,
    require_subcommand,
)


def _credentials_payload(store: CredentialStore) -> dict[str, Any]:
    pool = store.pool()
    return {
        "primary_index": pool.primary_index,
        "credentials": [c.as_dict(i) for i, c in enumerate(pool.credentials)],
    }


# Credentials -------------------------------------------------------------

def _handle_credentials_list(_: argparse.Namespace) -> None:
    print_json(_credentials_payload(CredentialStore()))


def _handle_credentials_add(args: argparse.Namespace) -> None:
    store = CredentialStore()
    store.add(args.credential)
    print_json(_credentials_payload(store))


def _handle_credentials_remove(args: argparse.Namespace) -> None:
    store = CredentialStore()
    try:
        store.remove(args.index)
    except IndexError as exc:
        exit_with_error(str(exc))
    print_json(_credentials_payload(store))


def _handle_credentials_primary(args: argparse.Namespace) -> None:
    store = CredentialStore()
    try:
        store.promote(args.index)
    except IndexError as exc:
        exit_with_error(str(exc))
    print_json(_credentials_payload(store))


def _handle_credentials_validate(_: argparse.Namespace) -> None:
    store = CredentialStore()
    region = PreferencesStore().region()
    validator = CredentialValidator(FebBoxClient(HttpSession(), region=region))
    pool = validator.validate_pool(store.pool())
    print_json(
        {
            "primary_index": pool.primary_index,
            "credentials": [
                {
                    **c.as_dict(i),
                    "has_traffic_remaining": c.quota.has_traffic_remaining if c.quota else None,
                }
                for i, c in enumerate(pool.credentials)
            ],
        }
    )


# Shares ------------------------------------------------------------------

def _handle_shares_list(_: argparse.Namespace) -> None:
    print_json(
        [
            {"content_id": r.content_id, "type": r.media_type.value, "season": r.season, "token": r.token}
            for r in ShareReferenceStore().all()
        ]
    )


def _handle_shares_show(args: argparse.Namespace) -> None:
    reference = ShareReferenceStore().get(args.content_id, MediaKind(args.media_type), args.season)
    print_json({"share": {"token": reference.token, "key": reference.storage_key} if reference else None})


def _handle_shares_set(args: argparse.Namespace) -> None:
    try:
        reference = ShareReferenceStore().save_input(args.content_id, MediaKind(args.media_type), args.link, args.season)
    except ValueError as exc:
        exit_with_error(str(exc))
    print_json({"share": {"token": reference.token, "key": reference.storage_key}})


def _handle_shares_clear(args: argparse.Namespace) -> None:
    ShareReferenceStore().clear(args.content_id, MediaKind(args.media_type), args.season)
    print_json({"share": None})


# Preferences -------------------------------------------------------------

def _handle_prefs_region(args: argparse.Namespace) -> None:
    prefs = PreferencesStore()
    if args.list:
        print_json([asdict(r) for r in AVAILABLE_REGIONS])
        return
    if args.group_id:
        try:
            prefs.set_region(args.group_id)
        except ValueError as exc:
            exit_with_error(str(exc))
    print_json({"region": prefs.region()})


def _handle_prefs_languages(args: argparse.Namespace) -> None:
    prefs = PreferencesStore()
    if args.add:
        code, _, name = args.add.partition("=")
        try:
            prefs.add_language(code.strip(), (name or code).strip())
        except ValidationError as exc:
            exit_with_error(str(exc))
    if args.remove:
        prefs.remove_language(args.remove)
    print_json([lang.model_dump() for lang in prefs.languages()])


def _handle_prefs_styling(args: argparse.Namespace) -> None:
    prefs = PreferencesStore()
    if args.reset:
        styling = prefs.reset_styling()
    elif args.set:
        try:
            styling = prefs.update_styling(parse_key_value_pairs(args.set))
        except (ValidationError, argparse.ArgumentTypeError) as exc:
            exit_with_error(str(exc))
    else:
        styling = prefs.styling()
    print_json(styling.model_dump())


# Settings ----------------------------------------------------------------

def _handle_settings_show(args: argparse.Namespace) -> None:
    print_json(settings.get_settings(reload=args.reload).as_dict())


def _handle_settings_update(args: argparse.Namespace) -> None:
    changes = {
        key: value
        for key, value in {
            "app_name": args.app_name,
            "env": args.env,
            "log_level": args.log_level_value,
            "request_timeout": args.request_timeout,
            "retry_attempts": args.retry_attempts,
        }.items()
        if value is not None
    }
    try:
        updated = settings.update_settings(changes)
    except ValueError as exc:
        exit_with_error(str(exc))
    print_json(updated.as_dict())


def _handle_providers_list(_: argparse.Namespace) -> None:
    print_json(sorted(provider_settings.list_provider_configs()))


def _handle_providers_endpoints(args: argparse.Namespace) -> None:
    print_json(dict(provider_settings.get_provider_endpoints(args.service)))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lime-admin",
        description="Manage share credentials, cached share links, preferences and settings.",
    )
    parser.add_argument("--log-level", help="Override the configured log level.")
    subparsers = parser.add_subparsers(dest="command")
    require_subcommand(subparsers)

    # Credentials --------------------------------------------------------
    creds_parser = build_subparser(subparsers, "credentials", help="Share host credentials.")
    creds_sub = creds_parser.add_subparsers(dest="credentials_command")
    require_subcommand(creds_sub)

    creds_list = build_subparser(creds_sub, "list", help="List credentials (masked) and the primary index.")
    creds_list.set_defaults(func=_handle_credentials_list)

    creds_add = build_subparser(creds_sub, "add", help="Append a credential; duplicates are ignored.")
    creds_add.add_argument("credential", help="Session cookie value.")
    creds_add.set_defaults(func=_handle_credentials_add)

    creds_remove = build_subparser(creds_sub, "remove", help="Remove the credential at an index.")
    creds_remove.add_argument("index", type=int)
    creds_remove.set_defaults(func=_handle_credentials_remove)

    creds_primary = build_subparser(creds_sub, "primary", help="Make the credential at an index the primary one.")
    creds_primary.add_argument("index", type=int)
    creds_primary.set_defaults(func=_handle_credentials_primary)

    creds_validate = build_subparser(creds_sub, "validate", help="Check every credential against the quota endpoint.")
    creds_validate.set_defaults(func=_handle_credentials_validate)

    # Shares -------------------------------------------------------------
    shares_parser = build_subparser(subparsers, "shares", help="Cached share links per title.")
    shares_sub = shares_parser.add_subparsers(dest="shares_command")
    require_subcommand(shares_sub)

    shares_list = build_subparser(shares_sub, "list", help="List every cached share token.")
    shares_list.set_defaults(func=_handle_shares_list)

    shares_show = build_subparser(shares_sub, "show", help="Show the cached share token for a title.")
    add_title_arguments(shares_show)
    shares_show.set_defaults(func=_handle_shares_show)

    shares_set = build_subparser(shares_sub, "set", help="Store a share link or token for a title.")
    add_title_arguments(shares_set)
    shares_set.add_argument("link", help="Share URL (…/share/<token>) or bare token.")
    shares_set.set_defaults(func=_handle_shares_set)

    shares_clear = build_subparser(shares_sub, "clear", help="Forget the cached share for a title.")
    add_title_arguments(shares_clear)
    shares_clear.set_defaults(func=_handle_shares_clear)

    # Preferences --------------------------------------------------------
    prefs_parser = build_subparser(subparsers, "prefs", help="User preferences.")
    prefs_sub = prefs_parser.add_subparsers(dest="prefs_command")
    require_subcommand(prefs_sub)

    prefs_region = build_subparser(prefs_sub, "region", help="Show or set the share host server region.")
    prefs_region.add_argument("group_id", nargs="?", help="Region tag, e.g. USA7.")
    prefs_region.add_argument("--list", action="store_true", help="List the available regions.")
    prefs_region.set_defaults(func=_handle_prefs_region)

    prefs_languages = build_subparser(prefs_sub, "languages", help="Show or edit subtitle languages.")
    prefs_languages.add_argument("--add", metavar="CODE=NAME", help="Add a language, e.g. eng=English.")
    prefs_languages.add_argument("--remove", metavar="CODE", help="Remove a language by code.")
    prefs_languages.set_defaults(func=_handle_prefs_languages)

    prefs_styling = build_subparser(prefs_sub, "styling", help="Show or edit subtitle styling.")
    prefs_styling.add_argument("--set", nargs="+", metavar="KEY=VALUE", help="Fields to change, e.g. font_size=18.")
    prefs_styling.add_argument("--reset", action="store_true", help="Restore the default styling.")
    prefs_styling.set_defaults(func=_handle_prefs_styling)

    # Settings -----------------------------------------------------------
    settings_parser = build_subparser(subparsers, "settings", help="Inspect and update core runtime settings.")
    settings_sub = settings_parser.add_subparsers(dest="settings_command")
    require_subcommand(settings_sub)

    show_settings = build_subparser(settings_sub, "show", help="Display the effective runtime settings.")
    show_settings.add_argument("--reload", action="store_true", help="Reload configuration before displaying.")
    show_settings.set_defaults(func=_handle_settings_show)

    update_settings = build_subparser(settings_sub, "update", help="Update user-level settings persisted on disk.")
    update_settings.add_argument("--app-name", help="Application display name.")
    update_settings.add_argument("--env", help="Runtime environment label.")
    update_settings.add_argument("--log-level", dest="log_level_value", help="Logging level (e.g. INFO, DEBUG).")
    update_settings.add_argument("--request-timeout", type=float, help="Provider request timeout in seconds.")
    update_settings.add_argument("--retry-attempts", type=int, help="Attempts per provider request.")
    update_settings.set_defaults(func=_handle_settings_update)

    # Providers ----------------------------------------------------------
    providers_parser = build_subparser(subparsers, "providers", help="Inspect provider service configuration.")
    providers_sub = providers_parser.add_subparsers(dest="providers_command")
    require_subcommand(providers_sub)

    providers_list = build_subparser(providers_sub, "list", help="List configured provider services.")
    providers_list.set_defaults(func=_handle_providers_list)

    providers_endpoints = build_subparser(providers_sub, "endpoints", help="Show endpoint templates for a service.")
    providers_endpoints.add_argument("service", help="Provider service key (febbox, febapi, opensubtitles, ...).")
    providers_endpoints.set_defaults(func=_handle_providers_endpoints)

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
