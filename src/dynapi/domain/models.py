from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TypeKind(str, Enum):
    PRIMITIVE = "primitive"
    PARSEABLE = "parseable"
    FILE = "file"
    COMPLEX = "complex"


class BindingSource(str, Enum):
    PATH = "path"
    BODY = "body"
    FILE = "file"
    FRAMEWORK_DEFAULT = "framework_default"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ParameterDescriptor(_Frozen):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: Optional[TypeKind] = None  # None: the classifier could not place the type
    binding: Optional[BindingSource] = None

    # live type, for host adapters only
    annotation: Any = Field(default=None, exclude=True, repr=False)

    def _key(self) -> tuple[str, Optional[TypeKind], Optional[BindingSource]]:
        return (self.name, self.kind, self.binding)

    # annotation is not part of identity
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterDescriptor):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())


class ActionDescriptor(_Frozen):
    name: str
    http_methods: tuple[str, ...] = ()
    route_template: Optional[str] = None
    verb_template: Optional[str] = None  # fragment given to a verb shorthand
    host_route: Optional[str] = None
    action_name: Optional[str] = None
    parameters: tuple[ParameterDescriptor, ...] = ()

    @property
    def template_override(self) -> Optional[str]:
        if self.route_template is not None:
            return self.route_template
        return self.verb_template


class ServiceDescriptor(_Frozen):
    name: str
    root_path: Optional[str] = None
    actions: tuple[ActionDescriptor, ...] = ()


class ParameterBinding(_Frozen):
    name: str
    source: BindingSource
    token: Optional[str] = None


class RouteEntry(_Frozen):
    service: str
    action: str
    controller: str
    action_segment: str = ""
    group_name: str = ""
    http_method: str
    template: str
    parameters: tuple[ParameterBinding, ...] = ()

    def binding_for(self, name: str) -> Optional[BindingSource]:
        for p in self.parameters:
            if p.name == name:
                return p.source
        return None

    @property
    def path_parameters(self) -> list[ParameterBinding]:
        return [p for p in self.parameters if p.source is BindingSource.PATH]
