from __future__ import annotations

import datetime
import decimal
import enum
import inspect
import types
import typing
import uuid
from collections.abc import Sequence
from typing import Any, Optional

from starlette.datastructures import UploadFile as StarletteUploadFile

from dynapi.domain.models import TypeKind

_PRIMITIVE_TYPES: frozenset[type] = frozenset(
    {
        bool,
        int,
        float,
        decimal.Decimal,
        str,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
    }
)

_PARSE_METHODS = ("parse", "try_parse")

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, Sequence)


def unwrap(tp: Any) -> Any:
    """Strip Annotated[...] and Optional[...] down to the underlying type."""
    while True:
        origin = typing.get_origin(tp)
        if origin is typing.Annotated:
            tp = typing.get_args(tp)[0]
            continue
        if origin in (typing.Union, types.UnionType):
            args = [a for a in typing.get_args(tp) if a is not type(None)]
            if len(args) == 1:
                tp = args[0]
                continue
        return tp


def is_primitive(tp: Any) -> bool:
    tp = unwrap(tp)
    if not isinstance(tp, type):
        return False
    if tp in _PRIMITIVE_TYPES:
        return True
    # IntEnum, StrEnum and plain Enum all count
    return issubclass(tp, enum.Enum) or issubclass(tp, (int, float, str))


def is_parseable(tp: Any) -> bool:
    tp = unwrap(tp)
    if not isinstance(tp, type):
        return False
    for name in _PARSE_METHODS:
        try:
            attr = inspect.getattr_static(tp, name)
        except AttributeError:
            continue
        if isinstance(attr, (staticmethod, classmethod)):
            return True
    return False


def parser_for(tp: Any) -> Optional[typing.Callable[[str], Any]]:
    """The ``parse``/``try_parse`` callable of a Parseable type, bound to the type."""
    tp = unwrap(tp)
    if not is_parseable(tp):
        return None
    for name in _PARSE_METHODS:
        if isinstance(inspect.getattr_static(tp, name, None), (staticmethod, classmethod)):
            return getattr(tp, name)
    return None


def is_file(tp: Any) -> bool:
    tp = unwrap(tp)
    if isinstance(tp, type) and issubclass(tp, StarletteUploadFile):
        return True
    origin = typing.get_origin(tp)
    if origin is not None and isinstance(origin, type) and issubclass(origin, _SEQUENCE_ORIGINS):
        args = [a for a in typing.get_args(tp) if a is not Ellipsis]
        return len(args) == 1 and is_file(args[0])
    return False


def classify(tp: Any) -> Optional[TypeKind]:
    """
    Place a declared parameter type in one of the four buckets.

    Returns None when the type cannot be placed: a missing annotation,
    ``Any``, an unresolved forward reference or a union of several types.
    """
    if tp is None or tp is inspect.Parameter.empty:
        return None
    tp = unwrap(tp)
    if tp is Any or isinstance(tp, (str, typing.ForwardRef, typing.TypeVar)):
        return None
    if typing.get_origin(tp) in (typing.Union, types.UnionType):
        return None

    if is_file(tp):
        return TypeKind.FILE
    if is_primitive(tp):
        return TypeKind.PRIMITIVE
    if is_parseable(tp):
        return TypeKind.PARSEABLE
    return TypeKind.COMPLEX


def is_suitable_for_path(kind: Optional[TypeKind]) -> bool:
    return kind in (TypeKind.PRIMITIVE, TypeKind.PARSEABLE)


def is_body_candidate(kind: Optional[TypeKind]) -> bool:
    return kind is TypeKind.COMPLEX
