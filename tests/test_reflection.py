import abc
import sys
from typing import Annotated

import pytest
from fastapi import UploadFile
from pydantic import BaseModel

from dynapi.discovery.markers import (
    DynamicApi,
    action_name,
    area,
    bind,
    dynamic_api,
    host_route,
    http_get,
    http_method,
    non_action,
    route,
)
from dynapi.discovery.reflection import describe_service, discover_service_classes, discover_services
from dynapi.discovery.selector import is_dynamic_api_service
from dynapi.domain.models import BindingSource, TypeKind
from dynapi.errors import UnboundParameter
from dynapi.orchestrator.compiler import compile_routes


class User(BaseModel):
    id: int
    name: str


@dynamic_api
class UserAppService:
    def create_user_info_async(self, user: User) -> str:
        return "created"

    def get_async(self, id: int) -> str:
        return f"user {id}"

    def _helper(self) -> None:
        pass

    @non_action
    def reset(self) -> None:
        pass

    @staticmethod
    def build() -> "UserAppService":
        return UserAppService()


@area("admin")
class ReportService(DynamicApi):
    @http_get("summary/{year}")
    def load(self, year: int, detailed: bool = False) -> dict:
        return {}

    @route("~/exports/{id}")
    @action_name("export")
    def save_export(self, id: int, upload: UploadFile) -> dict:
        return {}

    @bind(filters=BindingSource.FRAMEWORK_DEFAULT)
    def query_rows(self, filters: dict, page: Annotated[int, BindingSource.FRAMEWORK_DEFAULT] = 1) -> list:
        return []


class PlainHelper:
    def get(self) -> None:
        pass


class AbstractService(DynamicApi, abc.ABC):
    @abc.abstractmethod
    def get(self) -> None: ...


def test_selector():
    assert is_dynamic_api_service(UserAppService)
    assert is_dynamic_api_service(ReportService)
    assert not is_dynamic_api_service(PlainHelper)
    assert not is_dynamic_api_service(DynamicApi)
    assert not is_dynamic_api_service(AbstractService)
    assert not is_dynamic_api_service(len)


def test_describe_service_actions_in_declaration_order():
    svc = describe_service(UserAppService)
    assert svc.name == "UserAppService"
    assert [a.name for a in svc.actions] == ["create_user_info_async", "get_async"]

    create, get = svc.actions
    assert [(p.name, p.kind) for p in create.parameters] == [("user", TypeKind.COMPLEX)]
    assert [(p.name, p.kind) for p in get.parameters] == [("id", TypeKind.PRIMITIVE)]


def test_describe_service_reads_markers():
    svc = describe_service(ReportService)
    assert svc.root_path == "admin"
    load, save, query = svc.actions

    assert load.http_methods == ("GET",)
    assert load.verb_template == "summary/{year}"

    assert save.route_template == "~/exports/{id}"
    assert save.action_name == "export"
    assert [p.kind for p in save.parameters] == [TypeKind.PRIMITIVE, TypeKind.FILE]

    assert [p.binding for p in query.parameters] == [
        BindingSource.FRAMEWORK_DEFAULT,
        BindingSource.FRAMEWORK_DEFAULT,
    ]


def test_python_names_compile_like_pascal_names():
    entries = compile_routes([describe_service(UserAppService)])
    assert [(e.http_method, e.template) for e in entries] == [
        ("POST", "api/user/user-info"),
        ("GET", "api/user/{id}"),
    ]


def test_markers_compile_end_to_end():
    entries = compile_routes([describe_service(ReportService)])
    by_action = {e.action: e for e in entries}
    assert by_action["load"].template == "api/summary/{year}"
    assert by_action["load"].binding_for("detailed") is BindingSource.FRAMEWORK_DEFAULT
    assert by_action["save_export"].template == "exports/{id}"
    assert by_action["save_export"].binding_for("upload") is BindingSource.FILE
    assert by_action["query_rows"].http_method == "GET"
    assert by_action["query_rows"].template == "api/report/rows"


def test_subclass_overrides_do_not_leak_from_base():
    class Base(DynamicApi):
        @http_method("PUT")
        def get_items(self) -> list:
            return []

    class Child(Base):
        def get_items(self) -> list:
            return []

    (action,) = describe_service(Child).actions
    assert action.http_methods == ()


def test_host_route_and_variadic_params():
    class Legacy(DynamicApi):
        @host_route("api/legacy")
        def get_all(self) -> list:
            return []

    assert describe_service(Legacy).actions[0].host_route == "api/legacy"

    class Variadic(DynamicApi):
        def get_many(self, *ids: int) -> list:
            return []

    with pytest.raises(UnboundParameter):
        describe_service(Variadic)


def test_bind_unknown_parameter():
    class Broken(DynamicApi):
        @bind(nope=BindingSource.BODY)
        def get_one(self, id: int) -> int:
            return id

    with pytest.raises(UnboundParameter):
        describe_service(Broken)


def test_missing_annotation_is_unclassified():
    class Loose(DynamicApi):
        def get_one(self, id):
            return id

    (param,) = describe_service(Loose).actions[0].parameters
    assert param.kind is None


def test_discover_from_module():
    module = sys.modules[__name__]
    classes = discover_service_classes([module])
    assert classes == [UserAppService, ReportService]
    assert [s.name for s in discover_services([__name__])] == ["UserAppService", "ReportService"]


def test_descriptors_compare_without_live_types():
    class Ints(DynamicApi):
        def get_one(self, id: int) -> int:
            return id

    class Bools(DynamicApi):
        def get_one(self, id: bool) -> bool:
            return id

    (a,) = describe_service(Ints).actions[0].parameters
    (b,) = describe_service(Bools).actions[0].parameters
    assert a.annotation is int and b.annotation is bool
    assert a == b
    assert hash(a) == hash(b)
    assert describe_service(Ints).actions == describe_service(Bools).actions
