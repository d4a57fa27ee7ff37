"""Tagged-variant filter expressions for vector index queries.

Search filters are translated into these predicates; each vector index
adapter maps them onto its native filter grammar with a pure function.
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "equals", "field": self.field, "value": self.value}


@dataclass(frozen=True)
class MemberOf:
    """Matches when the field (or any element of a list field) is one of ``values``."""

    field: str
    values: tuple[Any, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "member_of", "field": self.field, "values": list(self.values)}


@dataclass(frozen=True)
class RangeBounded:
    """Inclusive numeric range; either bound may be open."""

    field: str
    gte: float | None = None
    lte: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "range", "field": self.field, "gte": self.gte, "lte": self.lte}


@dataclass(frozen=True)
class All:
    """Logical AND of predicates."""

    predicates: tuple["FilterExpression", ...]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "all", "predicates": [p.to_dict() for p in self.predicates]}

    def flatten(self) -> list["FilterExpression"]:
        """Return the leaf predicates with nested ``All`` groups inlined."""
        leaves: list[FilterExpression] = []
        for predicate in self.predicates:
            if isinstance(predicate, All):
                leaves.extend(predicate.flatten())
            else:
                leaves.append(predicate)
        return leaves


FilterExpression = Union[Equals, MemberOf, RangeBounded, All]
