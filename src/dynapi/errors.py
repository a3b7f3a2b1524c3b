"""dynapi exception hierarchy.

Every compilation failure is fatal: the compiler never returns a partial
route table. Each error names the service class, the action and the
template involved so it can be shown to the operator as-is.
"""

from __future__ import annotations

from typing import Any, Optional


class DynapiError(Exception):
    """Base for all dynapi errors."""


class CompilationError(DynapiError):
    """Raised when services cannot be compiled into a route table."""

    kind = "compilation error"

    def __init__(
        self,
        reason: str,
        *,
        service: str = "",
        action: str = "",
        template: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        self.reason = reason
        self.service = service
        self.action = action
        self.template = template
        self.context = context or {}
        super().__init__(self._render())

    def _render(self) -> str:
        where = []
        if self.service:
            where.append(f"service '{self.service}'")
        if self.action:
            where.append(f"action '{self.action}'")
        if self.template is not None:
            where.append(f"template '{self.template}'")
        head = f"{self.kind}: "
        if where:
            head += ", ".join(where) + ": "
        return head + self.reason


class ConfigurationConflict(CompilationError):
    """Explicit route or verb declarations that contradict each other."""

    kind = "configuration conflict"


class MalformedTemplate(CompilationError):
    """A route template breaks the path separator rules."""

    kind = "malformed template"


class UnboundParameter(CompilationError):
    """A parameter cannot be given exactly one binding source."""

    kind = "unbound parameter"


class UnknownType(CompilationError):
    """A parameter type the classifier cannot place, with no override."""

    kind = "unknown type"
