# codesync/vector_index/types.py
"""
Types shared by the vector index client and its stores.

Filters are a closed expression type: Eq and In clauses over a fixed set of
metadata fields, combined by AND in a Filter. Anything outside the schema
raises FilterValidationError before a query is sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple, Union

from codesync.core.exceptions import FilterValidationError

# =============================================================================
# Records
# =============================================================================


@dataclass
class VectorRecord:
    """One stored vector. `id` is the chunk id."""

    id: str
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class QueryMatch:
    id: str
    score: float
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IndexDescription:
    name: str
    dimension: int
    ready: bool
    vector_count: int = 0
    metric: str = "cosine"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dimension": self.dimension,
            "ready": self.ready,
            "vector_count": self.vector_count,
            "metric": self.metric,
        }


@dataclass
class UpsertResult:
    """
    Outcome of upsert_batch.

    processed counts records written, errors counts records in failed batches.
    """

    processed: int = 0
    errors: int = 0
    failed_ids: List[str] = field(default_factory=list)
    error_messages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, int]:
        return {"processed": self.processed, "errors": self.errors}


# =============================================================================
# Filter expressions
# =============================================================================

# Field name -> (scalar type, is the stored value a list)
FILTER_SCHEMA: Dict[str, Tuple[type, bool]] = {
    "codebase_id": (str, False),
    "original_file_path": (str, False),
    "file_path": (str, False),
    "file_name": (str, False),
    "language": (str, False),
    "kind": (str, False),
    "name": (str, False),
    "keywords": (str, True),
    "dependencies": (str, True),
}


def _check_field(name: str) -> Tuple[type, bool]:
    spec = FILTER_SCHEMA.get(name)
    if spec is None:
        raise FilterValidationError(
            f"Unknown filter field '{name}'. Allowed: {sorted(FILTER_SCHEMA)}"
        )
    return spec


def _check_value(name: str, value: Any, expected: type) -> None:
    if not isinstance(value, expected) or isinstance(value, bool) and expected is not bool:
        raise FilterValidationError(
            f"Filter field '{name}' expects {expected.__name__}, got {type(value).__name__}"
        )


def _matches_value(stored: Any, wanted: Any, is_list: bool) -> bool:
    if is_list:
        return isinstance(stored, (list, tuple)) and wanted in stored
    return stored == wanted


@dataclass(frozen=True)
class Eq:
    """field == value (for list fields: value is an element)."""

    field: str
    value: Any

    def validate(self) -> None:
        expected, _ = _check_field(self.field)
        _check_value(self.field, self.value, expected)

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        _, is_list = FILTER_SCHEMA[self.field]
        return _matches_value(metadata.get(self.field), self.value, is_list)


@dataclass(frozen=True)
class In:
    """field in values (for list fields: any element in values)."""

    field: str
    values: Tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def validate(self) -> None:
        expected, _ = _check_field(self.field)
        if not self.values:
            raise FilterValidationError(f"Filter field '{self.field}' has an empty value set")
        for value in self.values:
            _check_value(self.field, value, expected)

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        _, is_list = FILTER_SCHEMA[self.field]
        stored = metadata.get(self.field)
        return any(_matches_value(stored, value, is_list) for value in self.values)


Clause = Union[Eq, In]


@dataclass(frozen=True)
class Filter:
    """Conjunction of clauses. An empty filter matches everything."""

    clauses: Tuple[Clause, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "clauses", tuple(self.clauses))
        for clause in self.clauses:
            if not isinstance(clause, (Eq, In)):
                raise FilterValidationError(f"Unsupported filter clause: {clause!r}")
            clause.validate()

    @classmethod
    def where(cls, **conditions: Any) -> "Filter":
        """
        Build from keyword arguments; list/tuple/set values become In.

        Example:
            >>> Filter.where(codebase_id="github_acme_api", language=["python", "java"])
        """
        clauses: List[Clause] = []
        for name, value in conditions.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(In(name, tuple(sorted(value)) if isinstance(value, (set, frozenset)) else tuple(value)))
            else:
                clauses.append(Eq(name, value))
        return cls(tuple(clauses))

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        return all(clause.matches(metadata) for clause in self.clauses)


def codebase_filter(codebase_id: str) -> Filter:
    return Filter((Eq("codebase_id", codebase_id),))


__all__ = [
    "Clause",
    "Eq",
    "FILTER_SCHEMA",
    "Filter",
    "In",
    "IndexDescription",
    "QueryMatch",
    "UpsertResult",
    "VectorRecord",
    "codebase_filter",
]
