from __future__ import annotations

from dynapi.config import DynamicApiSettings
from dynapi.domain.models import ActionDescriptor
from dynapi.naming.transform import to_pascal_case

# verbs whose suitable parameters all travel in the path
READ_VERBS = frozenset({"GET", "DELETE", "HEAD", "OPTIONS"})


def is_read_verb(verb: str) -> bool:
    return verb.upper() in READ_VERBS


def match_conventional_verb(action_name: str, settings: DynamicApiSettings) -> str | None:
    """First verb in table order owning a prefix the name starts with (case-insensitive)."""
    lowered = to_pascal_case(action_name).lower()
    for verb, prefixes in settings.conventional_prefixes.items():
        if any(p and lowered.startswith(p.lower()) for p in prefixes):
            return verb
    return None


def resolve_http_method(action: ActionDescriptor, settings: DynamicApiSettings) -> str:
    """
    Explicit override, then conventional prefix, then the configured default.
    Multiple explicit verbs are rejected by the validator before we get here.
    """
    if action.http_methods:
        return action.http_methods[0].strip().upper()

    verb = match_conventional_verb(action.name, settings)
    if verb is not None:
        return verb
    return settings.default_http_method
