from __future__ import annotations

import logging
from typing import Iterable, Optional

from dynapi.config import DynamicApiSettings
from dynapi.domain.models import ActionDescriptor, BindingSource, RouteEntry, ServiceDescriptor
from dynapi.routing import validator
from dynapi.routing.binding import resolve_bindings
from dynapi.routing.template import (
    action_segment,
    build_override_template,
    build_template,
    controller_segment,
    template_tokens,
)
from dynapi.routing.verbs import resolve_http_method

logger = logging.getLogger(__name__)


def compile_action(
    service: ServiceDescriptor,
    action: ActionDescriptor,
    settings: DynamicApiSettings,
) -> RouteEntry:
    validator.check_action_declarations(service.name, action)

    verb = resolve_http_method(action, settings)
    override = action.template_override

    if override is not None:
        template = build_override_template(service, action, verb, override, settings)
        bindings = resolve_bindings(service.name, action, verb, route_tokens=template_tokens(template))
    else:
        bindings = resolve_bindings(service.name, action, verb)
        path_params = [b.name for b in bindings if b.source is BindingSource.PATH]
        template = build_template(service, action, verb, path_params, settings)

    validator.check_template(service.name, action.name, template)
    validator.check_path_tokens(service.name, action.name, template, bindings)

    controller = controller_segment(service, settings)
    return RouteEntry(
        service=service.name,
        action=action.name,
        controller=controller,
        action_segment=action_segment(action, verb, settings),
        group_name=controller,
        http_method=verb,
        template=template,
        parameters=tuple(bindings),
    )


def compile_routes(
    services: Iterable[ServiceDescriptor],
    settings: Optional[DynamicApiSettings] = None,
) -> list[RouteEntry]:
    """
    Compile service descriptors into a route table.

    Deterministic: entries come out in service order, then action order, and
    the same input always yields the same table. The first invalid action
    raises a CompilationError and no table is returned.
    """
    settings = settings or DynamicApiSettings()
    services = list(services)
    if not settings.enable_synthesis:
        logger.info("dynamic API synthesis is disabled; skipping %d service(s)", len(services))
        return []

    entries: list[RouteEntry] = []
    for service in services:
        for action in service.actions:
            entry = compile_action(service, action, settings)
            logger.debug(
                "%s.%s -> %s %s",
                entry.service,
                entry.action,
                entry.http_method,
                entry.template,
            )
            entries.append(entry)

    validator.check_unique_routes(entries)
    logger.info("compiled %d route(s) from %d service(s)", len(entries), len(services))
    return entries
