"""
Route template composition.

    [prefix]/[root path]/controller/[action]/[{p1}/{p2}...]

Absent segments are omitted, never left empty. An explicit override replaces
controller, action and path parameters; a ``~/`` override replaces
everything.
"""

from __future__ import annotations

import re
from typing import Iterable

from dynapi.config import DynamicApiSettings
from dynapi.domain.models import ActionDescriptor, ServiceDescriptor
from dynapi.naming.transform import strip_prefix, strip_suffix, to_kebab_case, to_pascal_case

ROOTED_MARKER = "~/"
ROOT_TEMPLATE = "/"

# {id}, {id:int}, {*rest}, {id?}
_TOKEN = re.compile(r"\{\*{0,2}([A-Za-z_][A-Za-z0-9_\-]*)[^}]*\}")
_CONTROLLER_TOKEN = re.compile(r"\[controller\]", re.IGNORECASE)
_ACTION_TOKEN = re.compile(r"\[action\]", re.IGNORECASE)


def route_token(param_name: str) -> str:
    return to_kebab_case(param_name)


def template_tokens(template: str) -> list[str]:
    """Route parameter names appearing in a template, in order."""
    return _TOKEN.findall(template or "")


def controller_segment(service: ServiceDescriptor, settings: DynamicApiSettings) -> str:
    name = service.name
    if settings.remove_controller_suffix:
        stripped = strip_suffix(name, settings.controller_suffixes_to_strip)
        # a class named just "Service" keeps its name
        if stripped:
            name = stripped
    return to_kebab_case(name)


def action_segment(action: ActionDescriptor, verb: str, settings: DynamicApiSettings) -> str:
    if action.action_name is not None:
        return action.action_name

    name = to_pascal_case(action.name)
    if settings.suppress_async_suffix:
        name = strip_suffix(name, ("Async",))
    if settings.remove_action_prefix:
        name = strip_prefix(name, settings.prefixes_for(verb))
    return to_kebab_case(name)


def leading_segments(service: ServiceDescriptor, settings: DynamicApiSettings) -> list[str]:
    segments: list[str] = []
    prefix = settings.default_route_prefix
    if settings.add_route_prefix_to_route and prefix and prefix.strip():
        segments.append(prefix)

    root = service.root_path if service.root_path is not None else settings.default_root_path
    if settings.add_root_path_to_route and root and root.strip():
        segments.append(root)
    return segments


def build_template(
    service: ServiceDescriptor,
    action: ActionDescriptor,
    verb: str,
    path_params: Iterable[str],
    settings: DynamicApiSettings,
) -> str:
    """Conventional template for an action with no explicit override."""
    segments = leading_segments(service, settings)
    segments.append(controller_segment(service, settings))

    act = action_segment(action, verb, settings)
    if act:
        segments.append(act)

    for name in path_params:
        segments.append("{" + route_token(name) + "}")
    return "/".join(segments)


def build_override_template(
    service: ServiceDescriptor,
    action: ActionDescriptor,
    verb: str,
    override: str,
    settings: DynamicApiSettings,
) -> str:
    """Template for an action carrying an explicit route fragment."""
    fragment = _CONTROLLER_TOKEN.sub(lambda _: controller_segment(service, settings), override)
    fragment = _ACTION_TOKEN.sub(lambda _: action_segment(action, verb, settings), fragment)

    if fragment.startswith(ROOTED_MARKER):
        rooted = fragment[len(ROOTED_MARKER):]
        return rooted or ROOT_TEMPLATE

    segments = leading_segments(service, settings)
    segments.append(fragment)
    return "/".join(segments)
