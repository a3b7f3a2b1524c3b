from __future__ import annotations

from typing import Iterable, Optional

from dynapi.domain.models import (
    ActionDescriptor,
    BindingSource,
    ParameterBinding,
    ParameterDescriptor,
    TypeKind,
)
from dynapi.errors import UnboundParameter, UnknownType
from dynapi.routing.template import route_token
from dynapi.routing.verbs import is_read_verb
from dynapi.typeinfo.classifier import is_body_candidate, is_suitable_for_path


def _infer(param: ParameterDescriptor, verb: str, route_tokens: Optional[set[str]]) -> BindingSource:
    kind = param.kind
    if kind is TypeKind.FILE:
        return BindingSource.FILE

    if is_suitable_for_path(kind):
        if route_tokens is not None:
            # explicit template: only what it names goes in the path
            if route_token(param.name) in route_tokens:
                return BindingSource.PATH
            return BindingSource.FRAMEWORK_DEFAULT
        if is_read_verb(verb):
            return BindingSource.PATH
        # identifiers route, payloads travel in the body
        if param.name.lower() == "id":
            return BindingSource.PATH
        return BindingSource.FRAMEWORK_DEFAULT

    if is_body_candidate(kind):
        return BindingSource.BODY
    return BindingSource.FRAMEWORK_DEFAULT


def resolve_bindings(
    service_name: str,
    action: ActionDescriptor,
    verb: str,
    route_tokens: Optional[Iterable[str]] = None,
) -> list[ParameterBinding]:
    """
    Assign every parameter of ``action`` a binding source.

    ``route_tokens`` is given when the action has an explicit template; the
    tokens it names decide which parameters go in the path. Without it, path
    parameters are inferred from the verb and the parameter types.
    """
    tokens = set(route_tokens) if route_tokens is not None else None
    bindings: list[ParameterBinding] = []

    for param in action.parameters:
        if param.binding is not None:
            source = param.binding
            if source is BindingSource.PATH and param.kind in (TypeKind.FILE, TypeKind.COMPLEX):
                raise UnboundParameter(
                    f"parameter '{param.name}' is declared as a path parameter "
                    f"but its type ({_kind_label(param.kind)}) cannot be carried in a URL",
                    service=service_name,
                    action=action.name,
                )
        elif param.kind is None:
            raise UnknownType(
                f"cannot classify the type of parameter '{param.name}'; "
                "annotate it or give it an explicit binding",
                service=service_name,
                action=action.name,
            )
        else:
            source = _infer(param, verb, tokens)

        token = route_token(param.name) if source is BindingSource.PATH else None
        bindings.append(ParameterBinding(name=param.name, source=source, token=token))

    body = [b.name for b in bindings if b.source is BindingSource.BODY]
    if len(body) > 1:
        raise UnboundParameter(
            f"parameters {', '.join(repr(n) for n in body)} would all bind to the request body; "
            "only one body parameter is allowed, give the others an explicit binding",
            service=service_name,
            action=action.name,
        )
    return bindings


def _kind_label(kind: Optional[TypeKind]) -> str:
    return kind.value if kind is not None else "unknown"
