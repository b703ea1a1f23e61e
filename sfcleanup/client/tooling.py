"""
Query and delete helpers on top of simple_salesforce.

query_records() runs a SOQL query against either the standard data API or
the Tooling API and follows pagination until every record is fetched.

destroy_records() deletes ids through the Tooling API sObject collection
endpoint. That endpoint takes at most MAX_COLLECTION_SIZE ids per request,
so larger lists are sent as several requests and the results stitched back
together in submission order.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from simple_salesforce import Salesforce

from sfcleanup.client.models import DeleteOutcome, QueryRecord
from sfcleanup.logger import get_logger

MAX_COLLECTION_SIZE = 200
COLLECTION_ENDPOINT = "composite/sobjects"

logger = get_logger(__name__)


def _tooling_query_all(sf: Salesforce, soql: str) -> List[Dict[str, Any]]:
    result = sf.toolingexecute("query/", params={"q": soql})
    records: List[Dict[str, Any]] = list(result.get("records", []))

    while not result.get("done", True) and result.get("nextRecordsUrl"):
        result = sf.query_more(result["nextRecordsUrl"], identifier_is_url=True)
        records.extend(result.get("records", []))

    return records


def query_records(sf: Salesforce, soql: str, tooling: bool = False) -> List[QueryRecord]:
    """
    Run a query and return every matching record, in API order.

    With tooling=True the query goes to the Tooling API, which is where
    objects like ApexCodeCoverageAggregate live.
    """
    logger.debug("Running %squery: %s", "tooling " if tooling else "", soql)
    if tooling:
        raw = _tooling_query_all(sf, soql)
    else:
        raw = sf.query_all(soql).get("records", [])
    return [QueryRecord.from_dict(r) for r in raw]


def destroy_records(sf: Salesforce, object_type: str, ids: Sequence[str]) -> List[DeleteOutcome]:
    """
    Delete records of object_type through the Tooling API.

    Returns one DeleteOutcome per id, in the order the ids were given.
    allOrNone is off, so one bad id does not roll back the rest.
    """
    outcomes: List[DeleteOutcome] = []

    for start in range(0, len(ids), MAX_COLLECTION_SIZE):
        batch = list(ids[start:start + MAX_COLLECTION_SIZE])
        logger.debug("DELETE %s: %d %s record(s)", COLLECTION_ENDPOINT, len(batch), object_type)
        results = sf.toolingexecute(
            COLLECTION_ENDPOINT,
            method="DELETE",
            params={"ids": ",".join(batch), "allOrNone": "false"},
        )
        if not isinstance(results, list) or len(results) != len(batch):
            raise ValueError(
                f"Expected {len(batch)} delete result(s) for {object_type}, got {results!r}"
            )
        outcomes.extend(DeleteOutcome.from_dict(res, submitted_id=rid) for res, rid in zip(results, batch))

    return outcomes
