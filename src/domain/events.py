"""
Change events and row filters for the Record Store change feed.

A ChangeEvent is the decoded form of one row-level notification; a RowFilter
restricts which notifications a subscription reacts to.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from src.domain.models import DomainRecord, schema_for


class ChangeType(str, enum.Enum):
    INSERTED = "INSERT"
    UPDATED = "UPDATE"
    DELETED = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """
    Tagged variant over Inserted(record), Updated(record) and Deleted(id).

    `old` carries the previous row image when the feed provides one; it is
    used to evaluate row filters for deletes and for updates that move a row
    out of a filtered view.
    """

    type: ChangeType
    record: Optional[DomainRecord] = None
    old_id: Optional[str] = None
    old: Optional[Mapping[str, Any]] = None

    @classmethod
    def inserted(cls, record: DomainRecord) -> "ChangeEvent":
        return cls(ChangeType.INSERTED, record=record)

    @classmethod
    def updated(cls, record: DomainRecord, old: Optional[Mapping[str, Any]] = None) -> "ChangeEvent":
        return cls(ChangeType.UPDATED, record=record, old=old)

    @classmethod
    def deleted(cls, record_id: str, old: Optional[Mapping[str, Any]] = None) -> "ChangeEvent":
        return cls(ChangeType.DELETED, old_id=str(record_id), old=old)

    @property
    def id(self) -> Optional[str]:
        if self.record is not None:
            return self.record.id
        return self.old_id

    @classmethod
    def from_payload(cls, table: str, payload: Union[str, bytes, Mapping[str, Any]]) -> "ChangeEvent":
        """
        Decode a notification payload of the form
        `{"type": "INSERT"|"UPDATE"|"DELETE", "new": {...}, "old": {...}}`.

        Raises ValueError (or pydantic.ValidationError) on malformed payloads.
        """
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, Mapping):
            raise ValueError(f"Change payload must be an object, got {type(payload).__name__}")

        change_type = ChangeType(str(payload.get("type", "")).upper())
        new_row = payload.get("new")
        old_row = payload.get("old")

        if change_type is ChangeType.DELETED:
            if not isinstance(old_row, Mapping) or old_row.get("id") is None:
                raise ValueError("DELETE payload is missing old.id")
            return cls.deleted(old_row["id"], old=old_row)

        if not isinstance(new_row, Mapping):
            raise ValueError(f"{change_type.value} payload is missing the new row")
        record = schema_for(table).model_validate(new_row)
        if change_type is ChangeType.INSERTED:
            return cls.inserted(record)
        return cls.updated(record, old=old_row if isinstance(old_row, Mapping) else None)


def _field_value(row: Union[DomainRecord, Mapping[str, Any]], field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def _equals(row: Union[DomainRecord, Mapping[str, Any]], field: str, value: Any, expected: str) -> bool:
    """
    Compare a row value with a filter literal the way SQL equality would:
    the literal is cast to the column type first, so `2000` matches `2000.0`.
    """
    field_info = None if isinstance(row, Mapping) else type(row).model_fields.get(field)
    if field_info is not None:
        try:
            return value == _adapter(field_info.annotation).validate_python(expected)
        except ValidationError:
            return False
    # Raw feed images carry JSON scalars; numbers compare numerically.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return value == float(expected)
        except ValueError:
            return False
    return str(value) == expected


@dataclass(frozen=True)
class RowFilter:
    """
    Conjunction of equality predicates on row fields.

    Values are carried as text, the way the filter syntax (`state=eq.Punjab`)
    and the bulk-load query parameters carry them, and are cast to the field's
    declared type when matched.
    """

    conditions: Tuple[Tuple[str, str], ...]

    @classmethod
    def eq(cls, field: str, value: Any) -> "RowFilter":
        return cls(((field, str(value)),))

    def and_eq(self, field: str, value: Any) -> "RowFilter":
        return RowFilter(self.conditions + ((field, str(value)),))

    @classmethod
    def parse(cls, text: str) -> "RowFilter":
        """Parse `field=eq.value[~field=eq.value...]`."""
        conditions = []
        for part in text.split("~"):
            part = part.strip()
            if not part:
                continue
            field, sep, rhs = part.partition("=")
            if not sep or not rhs.startswith("eq."):
                raise ValueError(f"Unsupported filter clause '{part}'; expected field=eq.value")
            conditions.append((field.strip(), rhs[len("eq."):]))
        if not conditions:
            raise ValueError("Empty row filter")
        return cls(tuple(conditions))

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]]) -> Optional["RowFilter"]:
        """Equality filter from non-empty query parameters, or None."""
        if not params:
            return None
        conditions = tuple((k, str(v)) for k, v in params.items() if v not in (None, ""))
        return cls(conditions) if conditions else None

    def matches(self, row: Union[DomainRecord, Mapping[str, Any], None]) -> bool:
        if row is None:
            return False
        for field, expected in self.conditions:
            value = _field_value(row, field)
            if value is None or not _equals(row, field, value, expected):
                return False
        return True

    def may_match(self, image: Optional[Mapping[str, Any]]) -> bool:
        """
        Match a partial row image, such as the trimmed `old` image of the
        change feed. Fields absent from the image cannot rule the row out.
        """
        if image is None:
            return True
        for field, expected in self.conditions:
            if field not in image:
                continue
            value = image[field]
            if value is None or not _equals(image, field, value, expected):
                return False
        return True

    def as_dict(self) -> dict:
        return dict(self.conditions)

    def __str__(self) -> str:
        return "~".join(f"{field}=eq.{value}" for field, value in self.conditions)


__all__ = ["ChangeType", "ChangeEvent", "RowFilter"]
