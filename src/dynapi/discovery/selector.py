from __future__ import annotations

import inspect
from typing import Any, Callable

from dynapi.discovery.markers import DynamicApi, get_meta

ServiceSelector = Callable[[type], bool]


def is_dynamic_api_service(obj: Any) -> bool:
    """
    Default selector: concrete classes deriving from DynamicApi or decorated
    with @dynamic_api.
    """
    if not inspect.isclass(obj) or obj is DynamicApi:
        return False
    if inspect.isabstract(obj):
        return False
    return issubclass(obj, DynamicApi) or bool(get_meta(obj).get("service"))
