from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from xml_compare.core.config import AppConfig
from xml_compare.core.errors import XmlCompareError
from xml_compare.core.logging_config import configure_logging
from xml_compare.core.models import AuthCredentials, ComparisonRequest, UrlComparisonRequest
from xml_compare.core.service import ComparisonService

logger = logging.getLogger(__name__)

EXIT_MATCHED = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xml-compare", description="Compare XML documents semantically.")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_ignores(p: argparse.ArgumentParser) -> None:
        p.add_argument("--ignore-path", action="append", default=[], dest="ignore_paths")
        p.add_argument("--ignore-property", action="append", default=[], dest="ignore_properties")

    p_cmp = sub.add_parser("compare", help="Compare two local XML files")
    p_cmp.add_argument("file1", type=Path)
    p_cmp.add_argument("file2", type=Path)
    add_ignores(p_cmp)

    p_batch = sub.add_parser("batch", help='Run a {"comparisons": [...]} payload file')
    p_batch.add_argument("payload", type=Path)
    p_batch.add_argument("--urls", action="store_true", help="Payload holds URL pairs")

    p_urls = sub.add_parser("compare-urls", help="Fetch and compare two remote XML documents")
    p_urls.add_argument("url1")
    p_urls.add_argument("url2")
    p_urls.add_argument("--username", default=None)
    p_urls.add_argument("--password", default="")
    add_ignores(p_urls)

    return parser


async def _run(args: argparse.Namespace, config: AppConfig) -> tuple[int, dict[str, Any]]:
    async with ComparisonService(config) as svc:
        if args.command == "compare":
            request = ComparisonRequest(
                xml1=args.file1.read_bytes(),
                xml2=args.file2.read_bytes(),
                ignore_paths=tuple(args.ignore_paths),
                ignore_properties=tuple(args.ignore_properties),
            )
            result = await svc.compare_xml(request)
            return (EXIT_MATCHED if result.matched else EXIT_MISMATCH), result.to_dict()

        if args.command == "compare-urls":
            creds = AuthCredentials(args.username, args.password) if args.username else None
            url_request = UrlComparisonRequest(
                url1=args.url1,
                url2=args.url2,
                ignore_paths=tuple(args.ignore_paths),
                ignore_properties=tuple(args.ignore_properties),
                auth_credentials=creds,
            )
            result = await svc.compare_urls(url_request)
            return (EXIT_MATCHED if result.matched else EXIT_MISMATCH), result.to_dict()

        payload = json.loads(args.payload.read_text(encoding="utf-8"))
        if args.urls:
            batch = await svc.compare_urls_batch(payload)
        else:
            batch = await svc.compare_xml_batch(payload)
        return EXIT_MATCHED, batch.to_dict()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig.load(args.config)
    configure_logging(config)

    try:
        code, payload = asyncio.run(_run(args, config))
    except XmlCompareError as e:
        logger.error("%s: %s", e.error_type, e.message)
        json.dump(e.to_dict(), sys.stdout)
        sys.stdout.write("\n")
        return EXIT_ERROR
    except OSError as e:
        logger.error("I/O error: %s", e)
        return EXIT_ERROR

    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
