"""
FastAPI host adapter.

Compiles a set of service classes and registers one ``add_api_route`` per
RouteEntry on a FastAPI app or APIRouter. Each endpoint wraps a bound method
of a single service instance; its signature is rewritten so FastAPI binds
every parameter from the source the compiler chose.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import re
import typing
from typing import Annotated, Any, Callable, Iterable, Optional, Union

from fastapi import APIRouter, Body, Depends, FastAPI, File, HTTPException, Path
from pydantic import BaseModel

from dynapi.config import DynamicApiSettings
from dynapi.discovery.reflection import describe_service
from dynapi.domain.models import BindingSource, RouteEntry, TypeKind
from dynapi.errors import ConfigurationConflict, UnboundParameter
from dynapi.orchestrator.compiler import compile_routes
from dynapi.routing.template import ROOT_TEMPLATE
from dynapi.typeinfo.classifier import classify, parser_for, unwrap

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[type], Any]

# {id}, {id:int}, {*rest}
_TOKEN = re.compile(r"\{(\*{0,2})([^}:*]+)(:[^}]*)?\}")


def _default_factory(cls: type) -> Any:
    return cls()


def _strip_binding_markers(tp: Any) -> Any:
    # Annotated[int, BindingSource.PATH] -> int (other metadata kept)
    if typing.get_origin(tp) is not typing.Annotated:
        return tp
    base, *extras = typing.get_args(tp)
    extras = [e for e in extras if not isinstance(e, BindingSource)]
    if not extras:
        return base
    return Annotated[(base, *extras)]


def _fastapi_marker(source: Optional[BindingSource]) -> Any:
    if source is BindingSource.PATH:
        return Path()
    if source is BindingSource.BODY:
        return Body()
    if source is BindingSource.FILE:
        return File()
    return None


def _query_model_marker(entry: RouteEntry, name: str, tp: Any) -> Any:
    # left unmarked, FastAPI would turn a model into a second body field
    base = unwrap(tp)
    if isinstance(base, type) and (issubclass(base, BaseModel) or dataclasses.is_dataclass(base)):
        return Depends()
    raise UnboundParameter(
        f"parameter '{name}' has a complex type the host can only read from the body; "
        "bind it to the body or declare it as a model",
        service=entry.service,
        action=entry.action,
        template=entry.template,
    )


def fastapi_path(entry: RouteEntry) -> str:
    """Route template as a FastAPI path; route tokens are mapped back to parameter names."""
    if entry.template == ROOT_TEMPLATE:
        return ROOT_TEMPLATE
    names = {p.token: p.name for p in entry.path_parameters if p.token}

    def repl(m: re.Match[str]) -> str:
        name = names.get(m.group(2), m.group(2))
        if m.group(1):
            # catch-all: the rest of the path, slashes included
            return "{" + name + ":path}"
        return "{" + name + (m.group(3) or "") + "}"

    return "/" + _TOKEN.sub(repl, entry.template)


def _parse_arguments(parsers: dict[str, Callable[[str], Any]], kwargs: dict[str, Any]) -> dict[str, Any]:
    for name, parse in parsers.items():
        raw = kwargs.get(name)
        if raw is None:
            continue
        try:
            value = parse(raw)
        except (TypeError, ValueError) as e:
            raise HTTPException(status_code=422, detail=f"invalid value for '{name}': {e}") from e
        if value is None:
            # try_parse reports failure with None
            raise HTTPException(status_code=422, detail=f"invalid value for '{name}'")
        kwargs[name] = value
    return kwargs


def make_endpoint(method: Callable[..., Any], entry: RouteEntry) -> Callable[..., Any]:
    sig = inspect.signature(method)
    try:
        hints = typing.get_type_hints(method, include_extras=True)
    except (NameError, TypeError):
        hints = {}

    params = []
    parsers: dict[str, Callable[[str], Any]] = {}
    for p in sig.parameters.values():
        ann = _strip_binding_markers(hints.get(p.name, p.annotation))
        source = entry.binding_for(p.name)
        kind = classify(ann)
        default = p.default

        if kind is TypeKind.PARSEABLE:
            # FastAPI sees the raw string; the type's own parser runs per request
            parsers[p.name] = parser_for(ann)
            ann = str

        if kind is TypeKind.COMPLEX and source is BindingSource.FRAMEWORK_DEFAULT:
            marker = _query_model_marker(entry, p.name, ann)
        else:
            marker = _fastapi_marker(source)
        if marker is not None:
            ann = Annotated[ann, marker] if ann is not inspect.Parameter.empty else Annotated[Any, marker]
        if source is BindingSource.PATH:
            # path parameters are always required
            default = inspect.Parameter.empty
        # keyword-only so required and optional parameters can interleave
        params.append(p.replace(annotation=ann, default=default, kind=inspect.Parameter.KEYWORD_ONLY))

    returns = hints.get("return", sig.return_annotation)
    new_sig = sig.replace(parameters=params, return_annotation=returns)

    if inspect.iscoroutinefunction(method):

        async def endpoint(**kwargs: Any) -> Any:
            return await method(**_parse_arguments(parsers, kwargs))

    else:

        def endpoint(**kwargs: Any) -> Any:
            return method(**_parse_arguments(parsers, kwargs))

    endpoint.__signature__ = new_sig  # type: ignore[attr-defined]
    endpoint.__name__ = f"{entry.service}_{entry.action}"
    endpoint.__doc__ = inspect.getdoc(method)
    return endpoint


def include_dynamic_api(
    target: Union[FastAPI, APIRouter],
    services: Iterable[type],
    settings: Optional[DynamicApiSettings] = None,
    factory: Optional[ServiceFactory] = None,
) -> list[RouteEntry]:
    """
    Compile ``services`` and install the resulting routes on ``target``.

    Returns the compiled route table. Compilation errors propagate before
    any route is added.
    """
    factory = factory or _default_factory
    classes: dict[str, type] = {}
    for cls in services:
        if cls.__name__ in classes and classes[cls.__name__] is not cls:
            raise ConfigurationConflict(
                f"two service classes share the name (from {classes[cls.__name__].__module__} "
                f"and {cls.__module__})",
                service=cls.__name__,
            )
        classes[cls.__name__] = cls

    entries = compile_routes([describe_service(cls) for cls in classes.values()], settings)

    instances: dict[str, Any] = {}
    endpoints = []
    for entry in entries:
        if entry.service not in instances:
            instances[entry.service] = factory(classes[entry.service])
        method = getattr(instances[entry.service], entry.action)
        endpoints.append(make_endpoint(method, entry))

    for entry, endpoint in zip(entries, endpoints):
        target.add_api_route(
            fastapi_path(entry),
            endpoint,
            methods=[entry.http_method],
            tags=[entry.group_name] if entry.group_name else None,
            name=f"{entry.service}.{entry.action}",
        )
        logger.debug("mounted %s %s", entry.http_method, fastapi_path(entry))

    logger.info("mounted %d dynamic API route(s)", len(entries))
    return entries
