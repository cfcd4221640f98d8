#!/usr/bin/env python3
"""Command-line entry point for profile building and job suggestions."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobsuggest.config import load_settings
from jobsuggest.errors import JobSuggestError
from jobsuggest.extractor import guess_media_type
from jobsuggest.log import configure, get_logger
from jobsuggest.models import RawDocument, SearchFilters
from jobsuggest.service import build_service, profile_to_dict, suggestion_to_dict

log = get_logger(__name__)


def _read_document(path: Path) -> RawDocument:
    return RawDocument(content=path.read_bytes(), media_type=guess_media_type(path.name), filename=path.name)


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="run_suggest", description=__doc__)
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING …")
    p.add_argument("--settings", type=Path, default=None, help="YAML settings file")
    sub = p.add_subparsers(dest="command", required=True)

    prof = sub.add_parser("profile", help="extract a candidate profile from a resume")
    prof.add_argument("resume", type=Path)

    for name, helptext in (("suggest", "rank job postings for a resume"),
                           ("search", "rank job postings for a free-text query")):
        sp = sub.add_parser(name, help=helptext)
        sp.add_argument("resume" if name == "suggest" else "text")
        sp.add_argument("--limit", type=int, default=10)
        sp.add_argument("--location", default="")
        sp.add_argument("--distance-km", type=int, default=None)
        sp.add_argument("--max-days-old", type=int, default=None)
    return p


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    # stdout carries the JSON result only
    configure(args.log_level, stream=sys.stderr)

    try:
        service = build_service(load_settings(args.settings))
        if args.command == "profile":
            profile = service.build_profile(_read_document(args.resume))
            out: object = profile_to_dict(profile)
        else:
            filters = SearchFilters(
                location=args.location,
                distance_km=args.distance_km,
                max_days_old=args.max_days_old,
            )
            if args.command == "suggest":
                profile, suggestions = service.suggest_from_resume(
                    _read_document(Path(args.resume)), args.limit, filters
                )
                out = {
                    "profile": profile_to_dict(profile),
                    "suggestions": [suggestion_to_dict(s) for s in suggestions],
                }
            else:
                suggestions = service.suggest_for_query(args.text, filters, args.limit)
                out = [suggestion_to_dict(s) for s in suggestions]
    except JobSuggestError as exc:
        log.error("%s (%s)", exc, exc.status_code)
        return 1
    except (OSError, ValueError) as exc:
        log.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted")
        return 130

    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
