from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ParamKind(StrEnum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DATETIME = "datetime"
    LIST = "list"
    MAP = "map"
    NULL = "null"


@dataclass(frozen=True, slots=True)
class ParamValue:
    """Type-tagged function parameter.

    Lists hold a tuple of ``ParamValue`` and maps a dict of ``ParamValue`` so the
    tag survives nesting. ``unwrap`` turns the whole tree back into plain values.
    """

    kind: ParamKind
    value: object = None

    @classmethod
    def wrap(cls, raw: object) -> ParamValue:
        if isinstance(raw, ParamValue):
            return raw
        if raw is None:
            return cls(ParamKind.NULL)
        # bool is a subclass of int
        if isinstance(raw, bool):
            return cls(ParamKind.BOOL, raw)
        if isinstance(raw, int):
            return cls(ParamKind.INT, raw)
        if isinstance(raw, float):
            return cls(ParamKind.FLOAT, raw)
        if isinstance(raw, str):
            return cls(ParamKind.STRING, raw)
        if isinstance(raw, datetime):
            return cls(ParamKind.DATETIME, raw)
        if isinstance(raw, Mapping):
            return cls(ParamKind.MAP, {str(key): cls.wrap(item) for key, item in raw.items()})
        if isinstance(raw, list | tuple):
            return cls(ParamKind.LIST, tuple(cls.wrap(item) for item in raw))
        return cls(ParamKind.STRING, str(raw))

    def unwrap(self) -> object:
        if self.kind == ParamKind.MAP and isinstance(self.value, dict):
            return {key: item.unwrap() for key, item in self.value.items()}
        if self.kind == ParamKind.LIST and isinstance(self.value, tuple):
            return [item.unwrap() for item in self.value]
        return self.value

    def as_str(self) -> str | None:
        if self.kind == ParamKind.STRING and isinstance(self.value, str):
            return self.value
        return None


def wrap_parameters(parameters: Mapping[str, object]) -> dict[str, ParamValue]:
    return {str(key): ParamValue.wrap(value) for key, value in parameters.items()}


def unwrap_parameters(parameters: Mapping[str, ParamValue]) -> dict[str, object]:
    return {key: value.unwrap() for key, value in parameters.items()}
