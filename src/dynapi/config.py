"""
Compiler configuration.

Values come from, lowest precedence first: field defaults, ``DYNAPI_*``
environment variables (list and mapping fields as JSON), then keyword
arguments. ``load_settings`` adds a TOML or JSON file on top of the
environment. The settings object is frozen once built and shared read-only
by every compiler component.
"""

from __future__ import annotations

import json
import logging
import tomllib
from collections import defaultdict
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONTROLLER_SUFFIXES: tuple[str, ...] = (
    "ApplicationService",
    "AppService",
    "AppServices",
    "Service",
    "Services",
    "ApiController",
    "Controller",
)

DEFAULT_CONVENTIONAL_PREFIXES: dict[str, tuple[str, ...]] = {
    "GET": ("Get", "Query", "Find", "Fetch", "Select"),
    "POST": ("Post", "Create", "Add", "Insert", "Submit", "Save"),
    "PATCH": ("Patch",),
    "PUT": ("Put", "Update"),
    "DELETE": ("Delete", "Remove", "Clear"),
}


class DynamicApiSettings(BaseSettings):
    """Switches that drive route synthesis."""

    # when off, compile_routes yields an empty table
    enable_synthesis: bool = True

    # verb used when neither an override nor a conventional prefix applies
    default_http_method: str = "POST"

    # "api/..." segment
    default_route_prefix: str = "api"
    add_route_prefix_to_route: bool = True

    # "api/app/..." segment, overridable per service with @area
    default_root_path: str = "app"
    add_root_path_to_route: bool = False

    # GetUserInfo -> user-info
    remove_action_prefix: bool = True

    # UserAppService -> user
    remove_controller_suffix: bool = True
    controller_suffixes_to_strip: tuple[str, ...] = DEFAULT_CONTROLLER_SUFFIXES

    # GetAsync -> Get
    suppress_async_suffix: bool = True

    # verb -> name prefixes, matched in declaration order
    conventional_prefixes: Mapping[str, tuple[str, ...]] = Field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_CONVENTIONAL_PREFIXES))
    )

    model_config = SettingsConfigDict(
        env_prefix="DYNAPI_",
        frozen=True,
        case_sensitive=False,
        extra="forbid",
    )

    @field_validator("default_http_method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("default_http_method must not be blank")
        return v

    @field_validator("conventional_prefixes")
    @classmethod
    def _normalize_prefixes(cls, v: Mapping[str, tuple[str, ...]]) -> Mapping[str, tuple[str, ...]]:
        out: dict[str, tuple[str, ...]] = {}
        for verb, prefixes in v.items():
            key = verb.strip().upper()
            if not key:
                raise ValueError("conventional_prefixes has a blank verb")
            if key in out:
                raise ValueError(f"conventional_prefixes lists verb {key!r} more than once")
            out[key] = tuple(prefixes)

        owners: dict[str, list[str]] = defaultdict(list)
        for verb, prefixes in out.items():
            for p in prefixes:
                owners[p.lower()].append(verb)
        for prefix, verbs in sorted(owners.items()):
            if len(verbs) > 1:
                # first verb in table order wins at resolution time
                logger.warning(
                    "conventional prefix %r is listed under several verbs: %s",
                    prefix,
                    ", ".join(verbs),
                )
        # read-only view: the table must not change once settings are built
        return MappingProxyType(out)

    def prefixes_for(self, verb: str) -> tuple[str, ...]:
        return self.conventional_prefixes.get(verb.upper(), ())


def _read_config_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    if suffix not in (".toml", ".json"):
        raise ValueError(f"{path}: unsupported config format (use .toml or .json)")
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        data = tomllib.loads(text)
        # pyproject.toml style: [tool.dynapi]
        if "tool" in data and isinstance(data["tool"], dict) and "dynapi" in data["tool"]:
            data = data["tool"]["dynapi"]
        return dict(data)
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    return data


def load_settings(path: Optional[Path] = None, **overrides: Any) -> DynamicApiSettings:
    """Build settings from env, an optional config file and explicit overrides."""
    values: dict[str, Any] = {}
    if path is not None:
        values.update(_read_config_file(path))
        logger.debug("loaded dynapi settings from %s", path)
    values.update(overrides)
    return DynamicApiSettings(**values)
