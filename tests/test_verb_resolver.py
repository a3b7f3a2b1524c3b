import pytest

from dynapi.config import DEFAULT_CONVENTIONAL_PREFIXES, DynamicApiSettings
from dynapi.domain.models import ActionDescriptor
from dynapi.routing.verbs import is_read_verb, resolve_http_method


@pytest.mark.parametrize(
    "verb,prefix",
    [(verb, prefix) for verb, prefixes in DEFAULT_CONVENTIONAL_PREFIXES.items() for prefix in prefixes],
)
def test_every_conventional_prefix_resolves_to_its_verb(verb, prefix):
    settings = DynamicApiSettings()
    action = ActionDescriptor(name=prefix + "Anything")
    assert resolve_http_method(action, settings) == verb


def test_prefix_match_is_case_insensitive():
    settings = DynamicApiSettings()
    assert resolve_http_method(ActionDescriptor(name="getUser"), settings) == "GET"
    assert resolve_http_method(ActionDescriptor(name="delete_user"), settings) == "DELETE"


def test_explicit_override_wins_over_prefix():
    settings = DynamicApiSettings()
    action = ActionDescriptor(name="GetReport", http_methods=("post",))
    assert resolve_http_method(action, settings) == "POST"


def test_default_method_when_nothing_matches():
    assert resolve_http_method(ActionDescriptor(name="SayHello"), DynamicApiSettings()) == "POST"
    settings = DynamicApiSettings(default_http_method="put")
    assert resolve_http_method(ActionDescriptor(name="SayHello"), settings) == "PUT"


def test_table_order_decides_not_prefix_length():
    settings = DynamicApiSettings(
        conventional_prefixes={"POST": ("Get",), "GET": ("GetAll",)},
    )
    assert resolve_http_method(ActionDescriptor(name="GetAllUsers"), settings) == "POST"


def test_read_verbs():
    assert is_read_verb("get")
    assert is_read_verb("DELETE")
    assert is_read_verb("HEAD")
    assert not is_read_verb("POST")
    assert not is_read_verb("PATCH")
