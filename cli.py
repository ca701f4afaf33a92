"""
CLI entry point for gh-spirit. Wires the pipeline: ingest -> normalize -> score -> report
for one GitHub user and one section.
"""

import argparse
import json
import logging
import os
import sys
import webbrowser
from dataclasses import replace
from datetime import datetime, timezone

from dotenv import load_dotenv

from errors import SpiritError
from evaluator import SpiritService
from report.renderer import render, FORMATS, SECTIONS
from settings import Settings
from storage.cache import Cache
from storage.retry import configure_retry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _print_json(obj, stream=None):
    print(json.dumps(obj, indent=2, default=str), file=stream or sys.stdout)


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def write_output(fmt: str, rendered: str, args):
    """Write output to a file for html/md (or whenever --out-file is given), otherwise to stdout."""
    if fmt in ("html", "md") or args.out_file.strip():
        ext_map = {"html": "html", "md": "md", "json": "json", "text": "txt"}
        ext = ext_map.get(fmt, "txt")
        out_path = args.out_file.strip() or f"spirit_report_{args.user}_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}.{ext}"
        out_dir = os.path.dirname(out_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(rendered)
        print(f"Wrote report to {out_path}")
        if args.open and fmt == "html":
            try:
                _open_file_in_browser(out_path)
            except webbrowser.Error:
                print("Failed to open browser automatically; file saved at", out_path)
    else:
        print(rendered)


def build_settings(args) -> Settings:
    """Environment settings with any CLI flags layered on top."""
    overrides = {
        'github_token': args.token,
        'max_retries': args.max_retries,
        'backoff_base': args.backoff_base,
        'rate_floor': args.rate_floor,
        'cache_ttl': args.cache_ttl,
        'cache_grace': args.cache_grace,
    }
    return replace(Settings.from_env(), **{k: v for k, v in overrides.items() if v is not None})


def run_section(service: SpiritService, section: str, username: str):
    """Run one section operation and return its result in wire (dict) form."""
    result = getattr(service, section)(username)
    return result.to_dict() if hasattr(result, 'to_dict') else result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GitHub activity analytics and spirit animal classification")
    parser.add_argument("--user", type=str, required=True, help="GitHub username")
    parser.add_argument("--section", choices=SECTIONS, default="dashboard", help="Which section to compute")
    parser.add_argument("--output", choices=FORMATS, default="text", help="Output format")
    parser.add_argument("--out-file", type=str, default="", help="Output file path. html/md are always written to a file; a default name is used if omitted")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML report in the default browser")
    parser.add_argument("--token", type=str, default=None, help="GitHub token (overrides GITHUB_TOKEN env)")
    # retry/backoff and quota knobs; SPIRIT_* environment variables set the defaults
    parser.add_argument("--max-retries", type=int, default=None, help="Maximum attempts per GitHub request (overrides SPIRIT_MAX_RETRIES env)")
    parser.add_argument("--backoff-base", type=float, default=None, help="Base backoff seconds (overrides SPIRIT_BACKOFF_BASE env)")
    parser.add_argument("--rate-floor", type=int, default=None, help="Fail fast when fewer GitHub calls remain (overrides SPIRIT_RATE_FLOOR env)")
    parser.add_argument("--cache-ttl", type=float, default=None, help="Seconds a cached upstream result stays fresh (overrides SPIRIT_CACHE_TTL env)")
    parser.add_argument("--cache-grace", type=float, default=None, help="Seconds a stale result may still be served while refreshing (overrides SPIRIT_CACHE_GRACE env)")
    parser.add_argument("--cache-info", action="store_true", help="Print cache statistics to stderr after the run")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    # CLI flags take precedence over environment variables
    try:
        configure_retry(max_retries=args.max_retries, backoff_base=args.backoff_base)
    except ValueError as ex:
        parser.error(str(ex))
    settings = build_settings(args)

    with Cache(default_ttl=settings.cache_ttl, grace=settings.cache_grace, max_entries=settings.cache_max_entries) as cache:
        service = SpiritService.from_settings(settings, cache=cache)
        try:
            data = run_section(service, args.section, args.user)
        except SpiritError as ex:
            logger.debug(f"{args.section} failed for {args.user}", exc_info=True)
            print(f"Error ({ex.kind}): {ex.message}", file=sys.stderr)
            return 1
        rendered = render(args.section, data, fmt=args.output, username=args.user)
        write_output(args.output, rendered, args)
        if args.cache_info:
            _print_json(cache.stats(), stream=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
