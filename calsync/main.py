from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Optional

import yaml

from .config import load_config
from .ics import build_ics, proxy_ics
from .pipeline import Pipeline
from .registry import load_registry, resolve_feed
from .utils import dumps, ensure_dir

log = logging.getLogger("calsync")


def feeds_cmd(cfg: dict) -> None:
    entries = load_registry(cfg["registry"])
    sys.stdout.buffer.write(dumps([e.model_dump(by_alias=True, exclude_none=True) for e in entries]) + b"\n")


def events_cmd(cfg: dict, feed_id: str) -> None:
    entry = resolve_feed(load_registry(cfg["registry"]), feed_id)
    events = Pipeline(cfg).extract_entry(entry)
    sys.stdout.buffer.write(dumps([e.model_dump(mode="json") for e in events]) + b"\n")


def ics_cmd(cfg: dict, feed_id: str, out: Optional[str]) -> None:
    entry = resolve_feed(load_registry(cfg["registry"]), feed_id)
    pipeline = Pipeline(cfg)
    if entry.type == "url":
        body = proxy_ics(pipeline.retriever, entry.source)
        if body is None:
            print("Failed to fetch calendar", file=sys.stderr)
            raise SystemExit(1)
    else:
        body = build_ics(entry.id, entry.name, pipeline.extract_entry(entry))

    if out:
        path = pathlib.Path(out)
        ensure_dir(path.parent)
        path.write_bytes(body)
        log.info("wrote %s (%d bytes)", path, len(body))
    else:
        sys.stdout.buffer.write(body)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="calsync", description="Calendar feeds from club pages and lunar rules")
    parser.add_argument("--config", help="path to config.yaml")
    parser.add_argument("--debug", action="store_true", help="trace stage counts")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("feeds")
    p_events = sub.add_parser("events")
    p_events.add_argument("feed")
    p_ics = sub.add_parser("ics")
    p_ics.add_argument("feed")
    p_ics.add_argument("-o", "--out")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"cannot load config: {e}", file=sys.stderr)
        raise SystemExit(2)
    if args.debug:
        cfg["debug"] = True

    try:
        if args.cmd == "feeds":
            feeds_cmd(cfg)
        elif args.cmd == "events":
            events_cmd(cfg, args.feed)
        elif args.cmd == "ics":
            ics_cmd(cfg, args.feed, args.out)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"cannot load feed registry: {e}", file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
