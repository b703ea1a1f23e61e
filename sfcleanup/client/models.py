"""
Typed views over the JSON the Salesforce REST/Tooling APIs return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class QueryRecord:
    id: str
    object_type: Optional[str] = None

    @classmethod
    def from_dict(cls, rec: Dict[str, Any]) -> "QueryRecord":
        attributes = rec.get("attributes") or {}
        return cls(id=rec["Id"], object_type=attributes.get("type"))


@dataclass(frozen=True)
class DeleteError:
    status_code: Optional[str] = None
    message: Optional[str] = None
    fields: List[str] = field(default_factory=list)
    record_id: Optional[str] = None

    @classmethod
    def from_dict(cls, err: Dict[str, Any], record_id: Optional[str] = None) -> "DeleteError":
        return cls(
            status_code=err.get("statusCode"),
            message=err.get("message"),
            fields=list(err.get("fields") or []),
            record_id=record_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        # Same keys the API uses, so the aggregated payload reads like the raw errors
        out: Dict[str, Any] = {
            "statusCode": self.status_code,
            "message": self.message,
            "fields": list(self.fields),
        }
        if self.record_id:
            out["id"] = self.record_id
        return out


@dataclass(frozen=True)
class DeleteOutcome:
    id: Optional[str]
    success: bool
    errors: List[DeleteError] = field(default_factory=list)

    @classmethod
    def from_dict(cls, res: Dict[str, Any], submitted_id: Optional[str] = None) -> "DeleteOutcome":
        # Failed rows come back with id=null, so fall back to what we sent
        rid = res.get("id") or submitted_id
        return cls(
            id=rid,
            success=bool(res.get("success")),
            errors=[DeleteError.from_dict(e, record_id=rid) for e in (res.get("errors") or [])],
        )
