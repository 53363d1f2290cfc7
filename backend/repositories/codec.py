# backend/repositories/codec.py
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, Mapping, Type, TypeVar, Union

from pydantic import BaseModel

from repositories.errors import IntegrityFault

T = TypeVar("T", bound=BaseModel)

Partial = Union[BaseModel, Mapping[str, Any]]


def to_int(value: Any) -> int:
    # Aggregates and some drivers hand back Decimal or numeric strings
    if isinstance(value, int):
        return value
    return int(Decimal(str(value)))


def to_float(value: Any) -> float:
    return float(value)


def to_str(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


class RowCodec(Generic[T]):
    """
    Maps storage rows to entities and partial entities back to rows.

    ``fields`` lists every stored field of the entity together with the
    function used to coerce the raw column value. Field names are the column
    names; the camelCase spelling lives only in the entity's aliases.
    """

    def __init__(self, entity: Type[T], fields: Dict[str, Callable[[Any], Any]]):
        self.entity = entity
        self.fields = fields

    @property
    def columns(self):
        return frozenset(self.fields)

    def decode(self, row: Mapping[str, Any]) -> T:
        values = {}
        for name, coerce in self.fields.items():
            if name not in row:
                raise IntegrityFault(
                    f"{self.entity.__name__}: column '{name}' missing from row {sorted(row.keys())}"
                )
            raw = row[name]
            if raw is None:
                raise IntegrityFault(f"{self.entity.__name__}: column '{name}' is NULL")
            values[name] = coerce(raw)
        return self.entity(**values)

    def encode(self, partial: Partial) -> Dict[str, Any]:
        """Return only the columns present in ``partial``."""
        if isinstance(partial, BaseModel):
            data = partial.model_dump(exclude_unset=True)
        else:
            data = dict(partial)

        unknown = set(data) - set(self.fields)
        if unknown:
            raise ValueError(f"{self.entity.__name__}: unknown field(s) {sorted(unknown)}")

        return {name: self.fields[name](value) if value is not None else None
                for name, value in data.items()}
