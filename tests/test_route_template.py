from dynapi.config import DynamicApiSettings
from dynapi.domain.models import ActionDescriptor, ServiceDescriptor
from dynapi.routing.template import (
    action_segment,
    build_override_template,
    build_template,
    controller_segment,
    template_tokens,
)

USER = ServiceDescriptor(name="UserAppService")


def test_controller_segment_strips_suffix_and_kebabs():
    settings = DynamicApiSettings()
    assert controller_segment(USER, settings) == "user"
    assert controller_segment(ServiceDescriptor(name="OrderLineController"), settings) == "order-line"


def test_controller_segment_keeps_suffix_when_disabled():
    settings = DynamicApiSettings(remove_controller_suffix=False)
    assert controller_segment(USER, settings) == "user-app-service"


def test_controller_segment_keeps_name_when_stripping_consumes_it():
    assert controller_segment(ServiceDescriptor(name="Service"), DynamicApiSettings()) == "service"


def test_action_segment_strips_async_and_verb_prefix():
    settings = DynamicApiSettings()
    assert action_segment(ActionDescriptor(name="CreateUserInfoAsync"), "POST", settings) == "user-info"
    assert action_segment(ActionDescriptor(name="GetAsync"), "GET", settings) == ""
    assert action_segment(ActionDescriptor(name="create_user_info"), "POST", settings) == "user-info"


def test_action_segment_only_strips_resolved_verb_prefixes():
    settings = DynamicApiSettings()
    # explicit GET on a "Create" name: nothing to strip
    assert action_segment(ActionDescriptor(name="CreateReport"), "GET", settings) == "create-report"


def test_action_segment_keeps_prefix_when_disabled():
    settings = DynamicApiSettings(remove_action_prefix=False)
    assert action_segment(ActionDescriptor(name="GetUserInfo"), "GET", settings) == "get-user-info"


def test_action_name_override_is_verbatim():
    settings = DynamicApiSettings()
    action = ActionDescriptor(name="GetUserInfo", action_name="WhoAmI")
    assert action_segment(action, "GET", settings) == "WhoAmI"


def test_build_template_prefix_and_root():
    action = ActionDescriptor(name="GetUserInfo")
    assert build_template(USER, action, "GET", [], DynamicApiSettings()) == "api/user/user-info"

    settings = DynamicApiSettings(add_root_path_to_route=True)
    assert build_template(USER, action, "GET", [], settings) == "api/app/user/user-info"

    area = ServiceDescriptor(name="UserAppService", root_path="admin")
    assert build_template(area, action, "GET", [], settings) == "api/admin/user/user-info"

    bare = DynamicApiSettings(add_route_prefix_to_route=False)
    assert build_template(USER, action, "GET", [], bare) == "user/user-info"


def test_build_template_blank_prefix_is_omitted():
    settings = DynamicApiSettings(default_route_prefix="  ", add_root_path_to_route=True, default_root_path="")
    assert build_template(USER, ActionDescriptor(name="GetItems"), "GET", [], settings) == "user/items"


def test_area_ignored_unless_root_paths_enabled():
    area = ServiceDescriptor(name="UserAppService", root_path="admin")
    assert build_template(area, ActionDescriptor(name="GetItems"), "GET", [], DynamicApiSettings()) == "api/user/items"


def test_build_template_appends_path_params_in_order():
    action = ActionDescriptor(name="GetAsync")
    template = build_template(USER, action, "GET", ["tenantId", "id"], DynamicApiSettings())
    assert template == "api/user/{tenant-id}/{id}"


def test_override_relative_fragment_keeps_prefix():
    action = ActionDescriptor(name="GetInfo", verb_template="user-info")
    assert build_override_template(USER, action, "GET", "user-info", DynamicApiSettings()) == "api/user-info"


def test_override_rooted_is_verbatim():
    action = ActionDescriptor(name="GetInfo")
    settings = DynamicApiSettings(add_root_path_to_route=True)
    assert build_override_template(USER, action, "GET", "~/health/{id}", settings) == "health/{id}"
    assert build_override_template(USER, action, "GET", "~/", settings) == "/"


def test_override_replaces_controller_and_action_tokens():
    action = ActionDescriptor(name="GetUserInfo")
    template = build_override_template(USER, action, "GET", "[controller]/v2/[Action]", DynamicApiSettings())
    assert template == "api/user/v2/user-info"


def test_template_tokens():
    assert template_tokens("api/{id}/x/{name:alpha}/{*rest}") == ["id", "name", "rest"]
    assert template_tokens("api/user") == []
