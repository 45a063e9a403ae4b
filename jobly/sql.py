"""
SQL fragment builders for partial updates and filtered listing.

Both builders are pure: they return statement text plus the ordered list of
values to bind, and never interpolate a value into the text. Placeholders use
SQLAlchemy's named-bind syntax (``:p1``, ``:p2``, ...), numbered from 1 in the
order values are bound.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import ValidationError

# Filter kinds
CONTAINS = "contains"
EQUALS = "equals"
MIN = "min"
MAX = "max"
FLAG = "flag"

_UNBOUND = object()


def placeholder(index: int) -> str:
    """Return the bind marker for the value at 1-based ``index``."""
    return f":p{index}"


def bind_params(values: Sequence[Any], start: int = 1) -> Dict[str, Any]:
    """
    Turn an ordered value list into the named-parameter dict SQLAlchemy expects.

    Examples:
        >>> bind_params(["Amazon", 5])
        {'p1': 'Amazon', 'p2': 5}
    """
    return {f"p{i}": v for i, v in enumerate(values, start=start)}


def quote_identifier(name: str) -> str:
    """
    Quote a column name, doubling any embedded double quotes.

    Examples:
        >>> quote_identifier("num_employees")
        '"num_employees"'
    """
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def build_update_clause(
    updates: Mapping[str, Any],
    field_name_map: Mapping[str, str],
) -> Tuple[str, List[Any]]:
    """
    Build the SET portion of an UPDATE statement.

    Args:
        updates: Logical field name -> new value, in the order to emit
        field_name_map: Logical name -> column name, for names that differ

    Returns:
        Tuple of (set clause, ordered values). Placeholder N in the clause
        binds values[N - 1].

    Raises:
        ValidationError: If updates is empty

    Examples:
        >>> build_update_clause({"numEmployees": 5, "name": "Acme"},
        ...                     {"numEmployees": "num_employees"})
        ('"num_employees"=:p1, "name"=:p2', [5, 'Acme'])
    """
    if not updates:
        raise ValidationError("No data")

    fragments = []
    values = []
    for idx, (field, value) in enumerate(updates.items(), start=1):
        column = field_name_map.get(field, field)
        fragments.append(f"{quote_identifier(column)}={placeholder(idx)}")
        values.append(value)

    return ", ".join(fragments), values


@dataclass(frozen=True)
class FilterSpec:
    """One recognized filter criterion of an entity listing."""

    name: str
    column: str
    kind: str


class QueryBuilder:
    """
    Collects predicates with their bound values.

    Templates reference their value as ``{param}``; the marker is filled in
    at render time from the predicate's position among bound values, so the
    text and the value list can never disagree.
    """

    def __init__(self):
        self._parts: List[Tuple[str, Any]] = []

    def add(self, template: str, value: Any = _UNBOUND) -> "QueryBuilder":
        self._parts.append((template, value))
        return self

    def __len__(self) -> int:
        return len(self._parts)

    @property
    def values(self) -> List[Any]:
        return [v for _, v in self._parts if v is not _UNBOUND]

    def predicates(self) -> List[str]:
        rendered = []
        bound = 0
        for template, value in self._parts:
            if value is _UNBOUND:
                rendered.append(template)
            else:
                bound += 1
                rendered.append(template.format(param=placeholder(bound)))
        return rendered

    def where_clause(self) -> str:
        """Return `` WHERE a AND b`` or an empty string when nothing was added."""
        if not self._parts:
            return ""
        return " WHERE " + " AND ".join(self.predicates())


def _check_ranges(criteria: Mapping[str, Any], filters: Sequence[FilterSpec]) -> None:
    bounds: Dict[str, Dict[str, FilterSpec]] = {}
    for spec in filters:
        if spec.kind in (MIN, MAX) and criteria.get(spec.name) is not None:
            bounds.setdefault(spec.column, {})[spec.kind] = spec

    for pair in bounds.values():
        if MIN in pair and MAX in pair:
            low, high = pair[MIN], pair[MAX]
            if criteria[low.name] > criteria[high.name]:
                raise ValidationError(
                    f"{high.name} must be greater than or equal to {low.name}"
                )


def build_filtered_query(
    base_select: str,
    criteria: Optional[Mapping[str, Any]],
    filters: Sequence[FilterSpec],
    order_by: str,
) -> Tuple[str, List[Any]]:
    """
    Append a WHERE clause built from ``criteria`` and a fixed ORDER BY.

    Criteria are applied in the order of ``filters``, not the order of the
    criteria mapping. A criterion whose value is None counts as absent.

    Args:
        base_select: SELECT statement without WHERE or ORDER BY
        criteria: Filter name -> value, or None for no filtering
        filters: Recognized filters of the entity
        order_by: ORDER BY expression

    Returns:
        Tuple of (query text, ordered values)

    Raises:
        ValidationError: On an unrecognized criterion or a min greater than
            its matching max
    """
    criteria = criteria or {}

    known = {spec.name for spec in filters}
    unknown = sorted(k for k in criteria if k not in known)
    if unknown:
        raise ValidationError(
            f"Unknown filter: {', '.join(unknown)}",
            errors=[f"Unknown filter: {k}" for k in unknown],
        )

    _check_ranges(criteria, filters)

    builder = QueryBuilder()
    for spec in filters:
        value = criteria.get(spec.name)
        if value is None:
            continue
        if spec.kind == CONTAINS:
            builder.add(f"LOWER({spec.column}) LIKE LOWER({{param}})", f"%{value}%")
        elif spec.kind == EQUALS:
            builder.add(f"{spec.column} = {{param}}", value)
        elif spec.kind == MIN:
            builder.add(f"{spec.column} >= {{param}}", value)
        elif spec.kind == MAX:
            builder.add(f"{spec.column} <= {{param}}", value)
        elif spec.kind == FLAG:
            if value:
                builder.add(f"{spec.column} > 0")
        else:
            raise ValueError(f"Unsupported filter kind: {spec.kind}")

    query = base_select + builder.where_clause() + f" ORDER BY {order_by}"
    return query, builder.values
