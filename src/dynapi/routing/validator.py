"""
Routing invariants checked at compile time.

Every check raises on the first violation; nothing is collected or skipped,
so a single bad action refuses the whole route table.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from dynapi.domain.models import ActionDescriptor, BindingSource, ParameterBinding, RouteEntry
from dynapi.errors import ConfigurationConflict, MalformedTemplate, UnboundParameter
from dynapi.routing.template import ROOT_TEMPLATE, ROOTED_MARKER, template_tokens

_MULTI_SLASH = re.compile(r"/{2,}")
_TOKEN_SHAPE = re.compile(r"\{[^}]*\}")


def check_action_declarations(service_name: str, action: ActionDescriptor) -> None:
    """Explicit overrides that contradict each other, before anything is resolved."""
    if len(action.http_methods) > 1:
        raise ConfigurationConflict(
            f"has several explicit HTTP methods ({', '.join(action.http_methods)}); "
            "an action maps to exactly one verb",
            service=service_name,
            action=action.name,
        )

    if action.host_route is not None:
        raise ConfigurationConflict(
            "already carries a route declared for the host framework; dynamic routes "
            "are never merged with independently authored ones",
            service=service_name,
            action=action.name,
            template=action.host_route,
        )

    if action.route_template is not None and action.verb_template is not None:
        raise ConfigurationConflict(
            f"declares a route template twice ('{action.route_template}' and "
            f"'{action.verb_template}')",
            service=service_name,
            action=action.name,
            template=action.route_template,
        )

    if action.verb_template is not None and not action.verb_template.strip():
        raise MalformedTemplate(
            "uses a verb shorthand with an empty template; drop the template argument "
            "or give the path explicitly",
            service=service_name,
            action=action.name,
            template=action.verb_template,
        )

    override = action.template_override
    if override is not None:
        fragment = override[len(ROOTED_MARKER):] if override.startswith(ROOTED_MARKER) else override
        check_template(service_name, action.name, fragment, allow_empty=override.startswith(ROOTED_MARKER))


def check_template(
    service_name: str,
    action_name: str,
    template: str,
    *,
    allow_empty: bool = False,
) -> None:
    if template == ROOT_TEMPLATE or (allow_empty and template == ""):
        return

    if not template.strip():
        raise MalformedTemplate(
            "resolves to an empty template",
            service=service_name,
            action=action_name,
            template=template,
        )
    if _MULTI_SLASH.search(template):
        raise MalformedTemplate(
            "contains consecutive path separators",
            service=service_name,
            action=action_name,
            template=template,
        )
    if template.startswith("/"):
        raise MalformedTemplate(
            "starts with a path separator (only the root template '/' may)",
            service=service_name,
            action=action_name,
            template=template,
        )
    if template.endswith("/"):
        raise MalformedTemplate(
            "ends with a path separator (only the root template '/' may)",
            service=service_name,
            action=action_name,
            template=template,
        )


def check_path_tokens(
    service_name: str,
    action_name: str,
    template: str,
    bindings: Iterable[ParameterBinding],
) -> None:
    """Path-bound parameters and template tokens must match one-to-one, in order."""
    expected = [b.token for b in bindings if b.source is BindingSource.PATH]
    found = template_tokens(template)

    missing = [t for t in expected if t not in found]
    if missing:
        raise UnboundParameter(
            f"path parameter(s) {', '.join(repr(t) for t in missing)} do not appear in the template",
            service=service_name,
            action=action_name,
            template=template,
        )
    extra = [t for t in found if t not in expected]
    if extra:
        raise UnboundParameter(
            f"template token(s) {', '.join(repr(t) for t in extra)} match no parameter",
            service=service_name,
            action=action_name,
            template=template,
        )
    if len(found) != len(set(found)):
        raise UnboundParameter(
            "template repeats a route token",
            service=service_name,
            action=action_name,
            template=template,
        )
    if found != expected:
        raise UnboundParameter(
            "path parameters must appear in the template in declaration order",
            service=service_name,
            action=action_name,
            template=template,
        )


def _route_shape(entry: RouteEntry) -> tuple[str, str]:
    return entry.http_method, _TOKEN_SHAPE.sub("{}", entry.template).lower()


def check_unique_routes(entries: Iterable[RouteEntry]) -> None:
    seen: dict[tuple[str, str], RouteEntry] = {}
    for entry in entries:
        key = _route_shape(entry)
        first: Optional[RouteEntry] = seen.get(key)
        if first is not None:
            raise ConfigurationConflict(
                f"{entry.http_method} route collides with "
                f"{first.service}.{first.action} ('{first.template}')",
                service=entry.service,
                action=entry.action,
                template=entry.template,
            )
        seen[key] = entry
