#!/usr/bin/env python3
"""
dockpin command line

    dockpin resolve ghcr.io/org/app            # which release is "latest" right now?
    dockpin check ghcr.io/org/app:1.2.3 nginx:1.25.3
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from typing import List, Optional

from dockpin.config.settings import Settings, setup_logging
from dockpin.models.ignore_rules import IgnoreRule, load_ignore_rules
from dockpin.models.image import ImageReference
from dockpin.registry.adapter import RegistryAdapter
from dockpin.registry.errors import RegistryError
from dockpin.updates.latest_resolver import LatestVersionResolver
from dockpin.updates.release_updater import IncorrectDigestError, ReleaseUpdater
from dockpin.utils.registry_credentials import EnvCredentialsProvider

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # Options shared by every subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    common.add_argument("--floating-tag", "-f", help="Floating tag to resolve (default: latest)")
    common.add_argument("--ignore", action="append", default=[], metavar="TAG",
                        help="Tag to ignore (repeatable)")
    common.add_argument("--ignore-regex", action="append", default=[], metavar="REGEX",
                        help="Regex of tags to ignore (repeatable)")
    common.add_argument("--ignore-config", metavar="FILE", help="YAML file of ignore rules")
    common.add_argument("--concurrency", type=int, help="Max concurrent digest lookups")

    parser = argparse.ArgumentParser(
        prog="dockpin",
        description="Pin floating container image tags to immutable release tags and digests",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", parents=[common], help="Resolve the static tag behind a floating tag")
    resolve.add_argument("image", help="Image reference, e.g. ghcr.io/org/app or nginx:1.25")
    resolve.add_argument("--json", action="store_true", help="Print a JSON object")

    check = subparsers.add_parser("check", parents=[common], help="Plan tag/digest updates for configured images")
    check.add_argument("images", nargs="+", help="Configured image references (repo:tag[@digest])")

    return parser


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides = {}
    if args.floating_tag:
        overrides["floating_tag"] = args.floating_tag
    if args.ignore_config:
        overrides["ignore_config_path"] = args.ignore_config
    if args.concurrency is not None:
        if args.concurrency < 1:
            raise ValueError("--concurrency must be at least 1")
        overrides["digest_concurrency"] = args.concurrency
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return dataclasses.replace(settings, **overrides)


def build_ignore_rules(args: argparse.Namespace, settings: Settings) -> List[IgnoreRule]:
    rules = []
    if settings.ignore_config_path:
        rules.extend(load_ignore_rules(settings.ignore_config_path))
    rules.extend(IgnoreRule(pattern=tag, match_type="exact") for tag in args.ignore)
    rules.extend(IgnoreRule(pattern=regex, match_type="regex") for regex in args.ignore_regex)
    return rules


async def run_resolve(args, settings: Settings, rules: List[IgnoreRule]) -> int:
    reference = ImageReference.parse(args.image)
    async with RegistryAdapter(settings) as adapter:
        resolver = LatestVersionResolver(adapter, EnvCredentialsProvider(), settings)
        resolution = await resolver.resolve(reference, ignore_rules=rules)

    if args.json:
        print(json.dumps({
            "repository": reference.full_name,
            "floating_tag": resolution.floating_tag,
            "tag": resolution.static_tag,
            "digest": resolution.floating_digest,
            "candidates": resolution.candidates,
            "changed": resolution.changed,
        }, indent=2))
    else:
        print(f"{reference.full_name}:{resolution.static_tag}@{resolution.floating_digest}")
    return 0


async def run_check(args, settings: Settings, rules: List[IgnoreRule]) -> int:
    references = [ImageReference.parse(image) for image in args.images]
    async with RegistryAdapter(settings) as adapter:
        resolver = LatestVersionResolver(adapter, EnvCredentialsProvider(), settings)
        updater = ReleaseUpdater(resolver, rules)
        updates = await updater.plan_all(references)

    for update in updates:
        line = f"{update.action.value:<14} {update.reference}"
        if update.needs_update:
            line += f" -> {update.target}"
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = build_settings(args)
        setup_logging(settings.log_level, settings.log_file)
        rules = build_ignore_rules(args, settings)

        if args.command == "resolve":
            return asyncio.run(run_resolve(args, settings, rules))
        return asyncio.run(run_check(args, settings, rules))
    except (RegistryError, IncorrectDigestError, ValueError) as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
