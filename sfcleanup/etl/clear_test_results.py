"""
Clear Apex test results and code coverage in an org, so the next test run
reports fresh coverage.

It:
- Queries ApexCodeCoverageAggregate and ApexTestResult ids (Tooling API)
- Deletes them in chunks, coverage first
- Reports every record that failed to delete as one error, exit code 1

Usage:
  sf-clear-test-results -u myorg
  sf-clear-test-results -u myorg --dry-run
  sf-clear-test-results --secret-id dev/sfcleanup --json
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional, Tuple

from simple_salesforce import Salesforce

from sfcleanup.client.session import get_salesforce_client
from sfcleanup.client.tooling import query_records
from sfcleanup.etl.purge import AggregatedDeleteError, PurgeResult, purge_records
from sfcleanup.logger import configure_logging, get_logger

CODECOVAGG_QUERY = "SELECT Id FROM ApexCodeCoverageAggregate"
APEXTESTRESULT_QUERY = "SELECT Id FROM ApexTestResult"

PURGE_ORDER: List[Tuple[str, str]] = [
    ("ApexCodeCoverageAggregate", CODECOVAGG_QUERY),
    ("ApexTestResult", APEXTESTRESULT_QUERY),
]

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sf-clear-test-results",
        description="Clear any test results and code coverage in the org, to get fresh coverage every time.",
    )
    parser.add_argument(
        "-u", "--target-org",
        dest="target_org",
        default=None,
        help="Org alias; credentials are read from the secret mapped to it.",
    )
    parser.add_argument(
        "--secret-id",
        dest="secret_id",
        default=None,
        help="Secrets Manager id holding the credentials (overrides --target-org).",
    )
    parser.add_argument("--region", dest="region", default=None, help="AWS region for Secrets Manager.")
    parser.add_argument(
        "--json",
        dest="json",
        action="store_true",
        help="Print the result as JSON on stdout.",
    )
    parser.add_argument(
        "--loglevel",
        dest="loglevel",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level (default INFO).",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Only count the records that would be deleted.",
    )
    return parser.parse_args(argv)


def count_test_results(sf: Salesforce) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for obj, soql in PURGE_ORDER:
        counts[obj] = len(query_records(sf, soql, tooling=True))
        logger.info("%s: %d record(s)", obj, counts[obj])
    return counts


def clear_test_results(sf: Salesforce) -> List[PurgeResult]:
    """
    Delete all code coverage aggregates, then all test results.

    Each object type is queried right before it is purged. An
    AggregatedDeleteError from the first type stops the second.
    """
    logger.info("Clearing test results")
    results: List[PurgeResult] = []
    for obj, soql in PURGE_ORDER:
        records = query_records(sf, soql, tooling=True)
        logger.info("Found %d %s record(s)", len(records), obj)
        results.append(purge_records(sf, obj, [r.id for r in records]))
    return results


def _emit(payload: Dict[str, Any], as_json: bool, message: str, stream=None) -> None:
    if as_json:
        print(json.dumps(payload), file=stream or sys.stdout)
    else:
        print(message, file=stream or sys.stdout)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.loglevel)

    sf = get_salesforce_client(target_org=args.target_org, secret_id=args.secret_id, region_name=args.region)
    org = args.target_org or sf.sf_instance

    if args.dry_run:
        counts = count_test_results(sf)
        summary = "\n".join(f"{obj}: {n} to delete" for obj, n in counts.items())
        _emit({"status": 0, "result": counts}, args.json, summary)
        return 0

    try:
        clear_test_results(sf)
    except AggregatedDeleteError as e:
        _emit(
            {"status": 1, "name": type(e).__name__, "message": e.to_json(), "result": None},
            args.json,
            f"ERROR: {e}",
            stream=None if args.json else sys.stderr,
        )
        return 1

    _emit({"status": 0, "result": True}, args.json, f"Test results cleared in {org} successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
