"""
Sentinel for omitted fields in partial updates.

A partial update has three states per field: omitted (MISSING, leave the
column alone), explicitly cleared (None), or set to a value.
"""

from typing import Any, TypeVar, Union

T = TypeVar("T")


class MissingType:
    """Type of the MISSING singleton."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(MissingType, cls).__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MissingType)

    def __hash__(self) -> int:
        return hash("MISSING")

    def __copy__(self):
        return self

    def __deepcopy__(self, memo: Any):
        return self


MISSING = MissingType()

Maybe = Union[T, MissingType]


def is_set(value: Any) -> bool:
    """True when a partial-update field was provided (including None)."""
    return not isinstance(value, MissingType)
