"""
Declarations read by the reflection provider.

    @dynamic_api
    class UserAppService:
        def create_user_info(self, user: User) -> str: ...   # POST api/user/user-info

        @http_get("profile/{id}")
        def load(self, id: int) -> User: ...                  # GET api/profile/{id}

Markers only attach metadata; nothing here builds routes.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from dynapi.domain.models import BindingSource

T = TypeVar("T")

META_ATTR = "__dynapi__"


class DynamicApi:
    """Base class marking its subclasses as dynamic-API services."""


def get_meta(obj: Any) -> dict[str, Any]:
    # own attribute only: a subclass must not inherit a base's overrides
    return dict(getattr(obj, "__dict__", {}).get(META_ATTR, {}))


def _set(obj: T, **values: Any) -> T:
    meta = get_meta(obj)
    meta.update(values)
    setattr(obj, META_ATTR, meta)
    return obj


def dynamic_api(cls: type[T]) -> type[T]:
    return _set(cls, service=True)


def area(name: str) -> Callable[[type[T]], type[T]]:
    """Root path override for one service (used when root paths are enabled)."""

    def deco(cls: type[T]) -> type[T]:
        return _set(cls, root_path=name)

    return deco


def non_action(fn: T) -> T:
    return _set(fn, non_action=True)


def http_method(*verbs: str) -> Callable[[T], T]:
    def deco(fn: T) -> T:
        methods = tuple(get_meta(fn).get("http_methods", ())) + tuple(v.upper() for v in verbs)
        return _set(fn, http_methods=methods)

    return deco


def _shorthand(verb: str) -> Callable[..., Callable[[T], T]]:
    def factory(template: Optional[str] = None) -> Callable[[T], T]:
        def deco(fn: T) -> T:
            meta = get_meta(fn)
            methods = tuple(meta.get("http_methods", ())) + (verb,)
            values: dict[str, Any] = {"http_methods": methods}
            if template is not None:
                values["verb_template"] = template
            return _set(fn, **values)

        return deco

    factory.__name__ = f"http_{verb.lower()}"
    factory.__doc__ = f"Pin the action to {verb}, optionally with a template fragment."
    return factory


http_get = _shorthand("GET")
http_post = _shorthand("POST")
http_put = _shorthand("PUT")
http_patch = _shorthand("PATCH")
http_delete = _shorthand("DELETE")


def route(template: str) -> Callable[[T], T]:
    """Explicit route template; ``~/`` makes it absolute."""

    def deco(fn: T) -> T:
        return _set(fn, route_template=template)

    return deco


def host_route(template: str) -> Callable[[T], T]:
    """Record a route the host framework already declares for this callable."""

    def deco(fn: T) -> T:
        return _set(fn, host_route=template)

    return deco


def action_name(name: str) -> Callable[[T], T]:
    def deco(fn: T) -> T:
        return _set(fn, action_name=name)

    return deco


def bind(**sources: BindingSource) -> Callable[[T], T]:
    """Explicit binding sources by parameter name: ``@bind(payload=BindingSource.BODY)``."""

    def deco(fn: T) -> T:
        merged = dict(get_meta(fn).get("bindings", {}))
        merged.update({name: BindingSource(src) for name, src in sources.items()})
        return _set(fn, bindings=merged)

    return deco
