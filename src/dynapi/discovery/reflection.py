"""
Live Python classes -> service descriptors.

This is the only place that touches reflection; the compiler works on the
plain descriptors it returns.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import typing
from types import ModuleType
from typing import Any, Iterable, Optional, Union

from dynapi.discovery.markers import get_meta
from dynapi.discovery.selector import ServiceSelector, is_dynamic_api_service
from dynapi.domain.models import (
    ActionDescriptor,
    BindingSource,
    ParameterDescriptor,
    ServiceDescriptor,
)
from dynapi.errors import UnboundParameter
from dynapi.typeinfo.classifier import classify

logger = logging.getLogger(__name__)

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def _annotated_binding(tp: Any) -> Optional[BindingSource]:
    # Annotated[int, BindingSource.PATH]
    if typing.get_origin(tp) is typing.Annotated:
        for extra in typing.get_args(tp)[1:]:
            if isinstance(extra, BindingSource):
                return extra
    return None


def _type_hints(fn: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(fn, include_extras=True)
    except (NameError, TypeError):
        # unresolvable forward references: fall back to raw annotations,
        # which the classifier reports as unknown
        return dict(getattr(fn, "__annotations__", {}))


def describe_parameters(service_name: str, fn: Any) -> tuple[ParameterDescriptor, ...]:
    sig = inspect.signature(fn)
    hints = _type_hints(fn)
    overrides: dict[str, BindingSource] = get_meta(fn).get("bindings", {})

    params = list(sig.parameters.values())
    if params and params[0].name in ("self", "cls"):
        params = params[1:]

    out: list[ParameterDescriptor] = []
    for p in params:
        if p.kind in _VARIADIC:
            raise UnboundParameter(
                f"variadic parameter '{p.name}' cannot be bound to a request",
                service=service_name,
                action=fn.__name__,
            )
        tp = hints.get(p.name, p.annotation)
        binding = overrides.get(p.name) or _annotated_binding(tp)
        out.append(
            ParameterDescriptor(
                name=p.name,
                kind=classify(tp),
                binding=binding,
                annotation=None if tp is inspect.Parameter.empty else tp,
            )
        )

    unknown = set(overrides) - {p.name for p in out}
    if unknown:
        raise UnboundParameter(
            f"binding override names unknown parameter(s): {', '.join(sorted(unknown))}",
            service=service_name,
            action=fn.__name__,
        )
    return tuple(out)


def iter_action_functions(cls: type) -> list[tuple[str, Any]]:
    """
    Public plain methods in declaration order, subclass first.
    Static methods, class methods, properties and @non_action methods are skipped.
    """
    seen: set[str] = set()
    out: list[tuple[str, Any]] = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, raw in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if name.startswith("_") or not inspect.isfunction(raw):
                continue
            if get_meta(raw).get("non_action"):
                continue
            out.append((name, raw))
    return out


def describe_action(service_name: str, name: str, fn: Any) -> ActionDescriptor:
    meta = get_meta(fn)
    return ActionDescriptor(
        name=name,
        http_methods=tuple(meta.get("http_methods", ())),
        route_template=meta.get("route_template"),
        verb_template=meta.get("verb_template"),
        host_route=meta.get("host_route"),
        action_name=meta.get("action_name"),
        parameters=describe_parameters(service_name, fn),
    )


def describe_service(cls: type) -> ServiceDescriptor:
    meta = get_meta(cls)
    actions = tuple(
        describe_action(cls.__name__, name, fn) for name, fn in iter_action_functions(cls)
    )
    logger.debug("described service %s with %d action(s)", cls.__name__, len(actions))
    return ServiceDescriptor(
        name=cls.__name__,
        root_path=meta.get("root_path"),
        actions=actions,
    )


def _load_module(mod: Union[str, ModuleType]) -> ModuleType:
    if isinstance(mod, ModuleType):
        return mod
    return importlib.import_module(mod)


def discover_service_classes(
    modules: Iterable[Union[str, ModuleType]],
    selector: ServiceSelector = is_dynamic_api_service,
) -> list[type]:
    """Service classes defined in the given modules, in definition order."""
    found: list[type] = []
    seen: set[type] = set()
    for m in modules:
        module = _load_module(m)
        for obj in vars(module).values():
            if not inspect.isclass(obj) or obj.__module__ != module.__name__:
                continue
            if obj in seen or not selector(obj):
                continue
            seen.add(obj)
            found.append(obj)
    return found


def discover_services(
    modules: Iterable[Union[str, ModuleType]],
    selector: ServiceSelector = is_dynamic_api_service,
) -> list[ServiceDescriptor]:
    return [describe_service(cls) for cls in discover_service_classes(modules, selector)]
