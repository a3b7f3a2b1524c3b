from __future__ import annotations

import re
from typing import Iterable

_LOWER_UPPER = re.compile(r"(?<=[a-z])(?=[A-Z])")


def to_kebab_case(name: str) -> str:
    """
    UserInfo -> user-info, Get -> get.
    A hyphen goes before every uppercase letter that follows a lowercase one,
    then everything is lowercased. Blank and single-character names pass through.
    """
    if not name or not name.strip() or len(name) == 1:
        return name
    return _LOWER_UPPER.sub("-", name).lower()


def to_pascal_case(name: str) -> str:
    """
    create_user_info_async -> CreateUserInfoAsync, getAsync -> GetAsync.
    PascalCase input is returned unchanged.
    """
    if not name:
        return name
    if "_" in name:
        parts = [p for p in name.split("_") if p]
        return "".join(p[0].upper() + p[1:] for p in parts)
    return name[0].upper() + name[1:]


def strip_suffix(name: str, candidates: Iterable[str]) -> str:
    # ordinal, first candidate in order wins (not longest)
    if not name:
        return name
    for suffix in candidates:
        if suffix and name.endswith(suffix):
            return name[: len(name) - len(suffix)]
    return name


def strip_prefix(name: str, candidates: Iterable[str]) -> str:
    if not name:
        return name
    for prefix in candidates:
        if prefix and name.startswith(prefix):
            return name[len(prefix):]
    return name
