"""Record query description shared by all RecordStore implementations.

A RecordQuery is a small, backend-neutral filter: a list of conditions that
must all hold, an optional group of which at least one must hold, ordering
and paging. The HTTP store ships it to the hosted API as a payload; local
stores evaluate it in process with ``apply``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Operator(str, Enum):
    EQUAL_TO = "EqualTo"
    GREATER_THAN_OR_EQUAL_TO = "GreaterThanOrEqualTo"
    CONTAINS = "Contains"


@dataclass(frozen=True)
class Condition:
    field: str
    operator: Operator
    values: tuple

    def matches(self, record: Dict[str, Any]) -> bool:
        actual = _comparable(record.get(self.field))
        if actual is None:
            return False

        if self.operator is Operator.EQUAL_TO:
            return any(_equal(actual, v) for v in self.values)

        if self.operator is Operator.GREATER_THAN_OR_EQUAL_TO:
            for v in self.values:
                try:
                    if float(actual) >= float(v):
                        return True
                except (TypeError, ValueError):
                    continue
            return False

        if self.operator is Operator.CONTAINS:
            haystack = str(actual).lower()
            return any(str(v).lower() in haystack for v in self.values)

        raise ValueError(f"Unsupported operator: {self.operator}")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "FieldName": self.field,
            "Operator": self.operator.value,
            "Values": [str(v) if self.operator is Operator.GREATER_THAN_OR_EQUAL_TO else v for v in self.values],
        }


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False

    def to_payload(self) -> Dict[str, str]:
        return {"fieldName": self.field, "sorttype": "DESC" if self.descending else "ASC"}


@dataclass
class RecordQuery:
    """Filter, ordering and paging for ``RecordStore.fetch_all``."""

    where: List[Condition] = field(default_factory=list)
    any_of: List[Condition] = field(default_factory=list)
    order_by: List[OrderBy] = field(default_factory=list)
    limit: Optional[int] = None
    offset: int = 0
    fields: List[str] = field(default_factory=list)

    def matches(self, record: Dict[str, Any]) -> bool:
        if not all(c.matches(record) for c in self.where):
            return False
        if self.any_of and not any(c.matches(record) for c in self.any_of):
            return False
        return True

    def apply(self, records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Filter, sort and page records in process."""
        rows = [r for r in records if self.matches(r)]

        # Stable sorts applied last-key-first give multi-key ordering
        for order in reversed(self.order_by):
            present = [r for r in rows if r.get(order.field) is not None]
            missing = [r for r in rows if r.get(order.field) is None]
            present.sort(key=lambda r: _sort_key(r.get(order.field)), reverse=order.descending)
            rows = present + missing

        end = self.offset + self.limit if self.limit is not None else None
        return rows[self.offset:end]

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the hosted record API's fetch parameters."""
        payload: Dict[str, Any] = {}
        if self.fields:
            payload["fields"] = [{"field": {"Name": name}} for name in self.fields]
        if self.where:
            payload["where"] = [c.to_payload() for c in self.where]
        if self.any_of:
            payload["whereGroups"] = [{
                "operator": "OR",
                "subGroups": [{
                    "conditions": [
                        {
                            "fieldName": c.field,
                            "operator": c.operator.value,
                            "values": list(c.values),
                        }
                        for c in self.any_of
                    ],
                    "operator": "OR",
                }],
            }]
        if self.order_by:
            payload["orderBy"] = [o.to_payload() for o in self.order_by]
        if self.limit is not None:
            payload["pagingInfo"] = {"limit": self.limit, "offset": self.offset}
        return payload


def where(field_name: str, operator: Operator, *values: Any) -> Condition:
    return Condition(field=field_name, operator=operator, values=tuple(values))


def _comparable(value: Any) -> Any:
    # Reference fields come back expanded as {"Id": ..., "name_c": ...}
    if isinstance(value, dict):
        return value.get("Id")
    return value


def _equal(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    return str(actual) == str(expected)


def _sort_key(value: Any):
    value = _comparable(value)
    if isinstance(value, (int, float)):
        return (0, value, "")
    return (1, 0, str(value))
