"""
Bulk delete of records by id, chunked, with every per-record failure
collected into a single error.

The purge is best-effort rather than transactional: a chunk that reports
failures does not stop the chunks after it, and nothing is retried. Once
every chunk has been attempted, the collected failures (if any) are raised
together as one AggregatedDeleteError.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from simple_salesforce import Salesforce

from sfcleanup.client.models import DeleteError, DeleteOutcome
from sfcleanup.client.tooling import destroy_records
from sfcleanup.logger import get_logger

# Max ids handed to one destroy call
CHUNK_SIZE = 2000

logger = get_logger(__name__)

DestroyFn = Callable[[Salesforce, str, Sequence[str]], List[DeleteOutcome]]


class AggregatedDeleteError(Exception):
    """One or more records failed to delete. str() is the JSON array of errors."""

    def __init__(self, object_type: str, errors: List[DeleteError]):
        self.object_type = object_type
        self.errors = list(errors)
        super().__init__(self.to_json())

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.errors]

    def to_json(self) -> str:
        return json.dumps(self.to_list())


@dataclass
class PurgeResult:
    object_type: str
    requested: int = 0
    deleted: int = 0
    chunks: int = 0
    errors: List[DeleteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise AggregatedDeleteError(self.object_type, self.errors)


def chunk_ids(ids: Sequence[str], size: int = CHUNK_SIZE) -> Iterator[List[str]]:
    """Split ids into ceil(len/size) consecutive lists, keeping order."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for n in range(math.ceil(len(ids) / size)):
        yield list(ids[n * size:(n + 1) * size])


def _failures(outcome: DeleteOutcome) -> List[DeleteError]:
    if outcome.errors:
        return list(outcome.errors)
    # Unsuccessful with no detail: keep the record, leave the message empty
    return [DeleteError(record_id=outcome.id)]


def purge_records(
    sf: Salesforce,
    object_type: str,
    ids: Optional[Sequence[str]],
    destroy: DestroyFn = destroy_records,
    raise_on_error: bool = True,
) -> PurgeResult:
    """
    Delete every id of object_type, CHUNK_SIZE ids per destroy call.

    Chunks are sent one after another. Failures from all chunks are
    gathered in encounter order; with raise_on_error (the default) they are
    raised as AggregatedDeleteError after the last chunk, otherwise the
    failing PurgeResult is returned. Errors from the destroy call itself
    (network, auth) propagate as-is.
    """
    result = PurgeResult(object_type=object_type)
    if not ids:
        logger.debug("No %s records to delete", object_type)
        return result

    result.requested = len(ids)
    total_chunks = math.ceil(len(ids) / CHUNK_SIZE)

    for n, chunk in enumerate(chunk_ids(ids), start=1):
        logger.debug("Deleting %s chunk %d/%d (%d records)", object_type, n, total_chunks, len(chunk))
        outcomes = destroy(sf, object_type, chunk)
        result.chunks += 1

        for outcome in outcomes:
            if outcome.success:
                result.deleted += 1
            else:
                result.errors.extend(_failures(outcome))

    if result.errors:
        logger.warning(
            "%d %s delete error(s) across %d chunk(s)", len(result.errors), object_type, result.chunks
        )
    else:
        logger.info("Deleted %d %s record(s)", result.deleted, object_type)

    if raise_on_error:
        result.raise_for_errors()
    return result
