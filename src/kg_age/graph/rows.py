"""
Typed result rows.

cypher() needs the caller to declare the output columns (``AS (name agtype,
...)``). A RowSchema holds that declaration as ordered (name, type) pairs and
validates decoded rows against it with a generated pydantic model.
"""

import re
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from kg_age.errors import InvalidIdentifierError, RowDecodeError
from kg_age.graph import agtype

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MAX_IDENTIFIER_LENGTH = 63

# One "<name> agtype" entry of a free-form column signature
_SIGNATURE_ENTRY = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s+(?:ag_catalog\.)?agtype\s*$", re.IGNORECASE)

DEFAULT_COLUMN = "result"


def validate_identifier(name: str, kind: str = "identifier") -> str:
    """
    Check that ``name`` is a plain SQL identifier.

    Raises:
        InvalidIdentifierError: If name has characters outside [A-Za-z0-9_],
            starts with a digit, or is longer than 63 characters
    """
    if not isinstance(name, str) or not IDENTIFIER.match(name):
        raise InvalidIdentifierError(
            f"Invalid {kind} {name!r}: use letters, digits and underscores only"
        )
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(
            f"Invalid {kind} {name!r}: longer than {MAX_IDENTIFIER_LENGTH} characters"
        )
    return name


class RowSchema:
    """Ordered column declaration for a cypher() result."""

    def __init__(
        self,
        columns: Sequence[tuple[str, Any]],
        model: type[BaseModel] | None = None,
        typed: bool = True,
    ):
        if not columns:
            raise InvalidIdentifierError("A result schema needs at least one column")
        for entry in columns:
            if not isinstance(entry, (tuple, list)) or len(entry) != 2:
                raise InvalidIdentifierError(
                    f"Invalid column entry {entry!r}: expected a (name, type) pair"
                )
        names = [validate_identifier(name, "column name") for name, _ in columns]
        if len(set(names)) != len(names):
            raise InvalidIdentifierError(f"Duplicate column names in {names}")

        self.columns = [tuple(entry) for entry in columns]
        self.typed = typed
        if model is None:
            model = create_model(
                "Row",
                __config__=ConfigDict(arbitrary_types_allowed=True),
                **{name: (tp, ...) for name, tp in self.columns},
            )
        self.model = model

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.columns]

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, Any]]) -> "RowSchema":
        """Schema from (name, type) pairs, e.g. [("name", str), ("age", int)]."""
        return cls(list(pairs))

    @classmethod
    def from_model(cls, model: type[BaseModel]) -> "RowSchema":
        """Schema from a pydantic model; columns follow field declaration order."""
        columns = [(name, info.annotation) for name, info in model.model_fields.items()]
        return cls(columns, model=model)

    @classmethod
    def parse_signature(cls, signature: str) -> "RowSchema":
        """
        Schema from a free-form signature such as "name agtype, age agtype".

        Values are decoded but not type-checked; rows come back as dicts.
        """
        columns = []
        for entry in signature.split(","):
            m = _SIGNATURE_ENTRY.match(entry)
            if m is None:
                raise InvalidIdentifierError(
                    f"Invalid column signature entry {entry.strip()!r}: expected '<name> agtype'"
                )
            columns.append((m.group(1), Any))
        return cls(columns, typed=False)

    @classmethod
    def coerce(cls, columns: Any) -> "RowSchema":
        """Normalise every accepted column declaration into a RowSchema."""
        if columns is None:
            return cls([(DEFAULT_COLUMN, Any)], typed=False)
        if isinstance(columns, RowSchema):
            return columns
        if isinstance(columns, str):
            return cls.parse_signature(columns)
        if isinstance(columns, type) and issubclass(columns, BaseModel):
            return cls.from_model(columns)
        return cls.from_pairs(columns)

    def column_definitions(self) -> str:
        """Render the ``AS (...)`` column list."""
        return ", ".join(f'"{name}" agtype' for name in self.names)

    def decode(self, raw: dict[str, Any]) -> Any:
        """
        Decode one raw row (column name -> agtype text).

        Returns:
            Model instance for typed schemas, dict otherwise

        Raises:
            RowDecodeError: If a column is missing or a value fails validation
        """
        missing = [name for name in self.names if name not in raw]
        if missing:
            raise RowDecodeError(f"Result row is missing columns {missing}")

        values = {name: agtype.loads(raw[name]) for name in self.names}
        if not self.typed:
            return values
        try:
            return self.model.model_validate(values)
        except ValidationError as e:
            bad = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise RowDecodeError(
                f"Result row does not match schema in columns {bad}: {e.error_count()} error(s)"
            ) from e

    def __repr__(self) -> str:
        cols = ", ".join(f"{name}: {getattr(tp, '__name__', tp)}" for name, tp in self.columns)
        return f"RowSchema({cols})"
