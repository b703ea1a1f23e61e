import json
import math
from unittest.mock import MagicMock

import pytest

from sfcleanup.client.models import DeleteError, DeleteOutcome
from sfcleanup.etl.purge import (
    CHUNK_SIZE,
    AggregatedDeleteError,
    chunk_ids,
    purge_records,
)


def make_ids(n, prefix="7147z"):
    return [f"{prefix}{i:013d}" for i in range(n)]


def all_ok(sf, object_type, ids):
    return [DeleteOutcome(id=i, success=True) for i in ids]


def failing(bad_ids):
    """Destroy stub that fails the given ids with one error each."""
    def destroy(sf, object_type, ids):
        out = []
        for i in ids:
            if i in bad_ids:
                err = DeleteError(status_code="ENTITY_IS_DELETED", message=f"{i} gone", record_id=i)
                out.append(DeleteOutcome(id=i, success=False, errors=[err]))
            else:
                out.append(DeleteOutcome(id=i, success=True))
        return out
    return destroy


@pytest.mark.parametrize("length", [0, 1, 1999, 2000, 2001, 4500, 6000])
def test_chunk_ids_preserves_sequence(length):
    ids = make_ids(length)
    chunks = list(chunk_ids(ids))

    assert len(chunks) == math.ceil(length / CHUNK_SIZE)
    assert all(0 < len(c) <= CHUNK_SIZE for c in chunks)
    assert [i for c in chunks for i in c] == ids


def test_chunk_ids_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(chunk_ids(["a"], size=0))


@pytest.mark.parametrize("ids", [[], None])
def test_empty_input_is_a_noop(ids):
    destroy = MagicMock()
    result = purge_records(MagicMock(), "ApexTestResult", ids, destroy=destroy)

    destroy.assert_not_called()
    assert result.ok
    assert result.chunks == 0


def test_4500_ids_go_out_in_three_chunks():
    sf = MagicMock()
    destroy = MagicMock(side_effect=all_ok)
    ids = make_ids(4500)

    result = purge_records(sf, "ApexTestResult", ids, destroy=destroy)

    assert destroy.call_count == 3
    sizes = [len(call.args[2]) for call in destroy.call_args_list]
    assert sizes == [2000, 2000, 500]
    assert all(call.args[0] is sf and call.args[1] == "ApexTestResult" for call in destroy.call_args_list)
    assert result.ok
    assert result.errors == []
    assert result.deleted == 4500
    assert result.requested == 4500


def test_failures_from_every_chunk_are_aggregated_in_order():
    ids = make_ids(2500)
    bad = {ids[3], ids[1500], ids[2100]}
    destroy = MagicMock(side_effect=failing(bad))

    with pytest.raises(AggregatedDeleteError) as excinfo:
        purge_records(MagicMock(), "ApexCodeCoverageAggregate", ids, destroy=destroy)

    # second chunk still attempted after the first one reported failures
    assert destroy.call_count == 2
    err = excinfo.value
    assert err.object_type == "ApexCodeCoverageAggregate"
    assert [e.record_id for e in err.errors] == [ids[3], ids[1500], ids[2100]]


def test_error_message_is_json_array_of_errors():
    ids = make_ids(3)
    destroy = MagicMock(side_effect=failing({ids[1]}))

    with pytest.raises(AggregatedDeleteError) as excinfo:
        purge_records(MagicMock(), "ApexTestResult", ids, destroy=destroy)

    payload = json.loads(str(excinfo.value))
    assert payload == [
        {"statusCode": "ENTITY_IS_DELETED", "message": f"{ids[1]} gone", "fields": [], "id": ids[1]}
    ]


def test_failure_without_detail_still_counts():
    def destroy(sf, object_type, ids):
        return [DeleteOutcome(id=ids[0], success=False, errors=[])]

    result = purge_records(MagicMock(), "ApexTestResult", ["7147z0000000001"], destroy=destroy, raise_on_error=False)

    assert not result.ok
    assert result.errors == [DeleteError(record_id="7147z0000000001")]
    assert result.errors[0].message is None


def test_raise_on_error_false_returns_failing_result():
    ids = make_ids(10)
    destroy = MagicMock(side_effect=failing({ids[0], ids[9]}))

    result = purge_records(MagicMock(), "ApexTestResult", ids, destroy=destroy, raise_on_error=False)

    assert result.deleted == 8
    assert len(result.errors) == 2
    with pytest.raises(AggregatedDeleteError):
        result.raise_for_errors()


def test_transport_errors_propagate_unchanged():
    boom = ConnectionError("connection reset")
    destroy = MagicMock(side_effect=boom)

    with pytest.raises(ConnectionError) as excinfo:
        purge_records(MagicMock(), "ApexTestResult", make_ids(4001), destroy=destroy)

    assert excinfo.value is boom
    assert destroy.call_count == 1


def test_second_purge_after_full_delete_is_noop():
    ids = make_ids(5)
    remaining = set(ids)

    def destroy(sf, object_type, chunk):
        remaining.difference_update(chunk)
        return all_ok(sf, object_type, chunk)

    purge_records(MagicMock(), "ApexTestResult", ids, destroy=destroy)
    second = MagicMock()
    result = purge_records(MagicMock(), "ApexTestResult", sorted(remaining), destroy=second)

    second.assert_not_called()
    assert result.ok
