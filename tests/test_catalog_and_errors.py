import pytest

from blueprints.adapters import ADAPTERS, available_provider_ids, get_adapter_class
from blueprints.adapters.base import group_print_areas, slugify, stock_level
from blueprints.catalog import (
    get_provider_definition,
    get_provider_endpoint,
    get_provider_headers,
    list_provider_ids,
    provider_supports_feature,
)
from blueprints.errors import (
    AuthenticationError,
    BlueprintError,
    BlueprintNotFoundError,
    NetworkError,
    ProviderAPIError,
    ProviderUnavailableError,
    RateLimitError,
    UnknownProviderError,
    ValidationError,
)
from blueprints.models import IN_STOCK_SENTINEL, FieldError, PriceInfo


# === Catalog ===


def test_catalog_lists_every_adapter():
    assert list_provider_ids() == ["printify", "printful", "gooten", "gelato"]
    assert sorted(available_provider_ids()) == sorted(list_provider_ids())
    assert set(ADAPTERS) == set(list_provider_ids())


def test_endpoint_resolution():
    assert get_provider_endpoint("printify", "blueprints") == "https://api.printify.com/v1/catalog/blueprints"
    assert get_provider_endpoint("printful", "availability") == "https://api.printful.com/store"
    assert get_provider_endpoint("gelato", "base") == "https://product.gelatoapis.com/v3"
    assert get_provider_endpoint("gooten", "products", "https://proxy.test/") == "https://proxy.test/products"


def test_headers_carry_bearer_token():
    headers = get_provider_headers("gooten", "abc")
    assert headers["Authorization"] == "Bearer abc"
    assert headers["Accept"] == "application/json"


def test_definition_values():
    definition = get_provider_definition("gelato")
    assert definition.api_version == "v3"
    assert definition.rate_limit.requests_per_minute == 150
    assert definition.rate_limit.burst_limit == 200
    assert provider_supports_feature("printify", "bulk_operations") is True
    assert provider_supports_feature("gooten", "webhooks") is False


def test_unknown_provider_lookups():
    with pytest.raises(UnknownProviderError):
        get_provider_definition("acme")
    with pytest.raises(UnknownProviderError, match="Unsupported provider: acme"):
        get_adapter_class("acme")


# === Normalization helpers ===


def test_slugify():
    assert slugify("Direct To  Garment") == "direct-to-garment"


def test_stock_level():
    assert stock_level(True) == IN_STOCK_SENTINEL
    assert stock_level(False) == 0
    assert stock_level(False, 12) == 12
    assert stock_level(True, -3) == 0


def test_group_print_areas_defaults_file_types():
    (option,) = group_print_areas(
        [{"location": "Left Sleeve", "width": 3, "height": 4, "dpi": 150}], "print"
    )
    assert option.id == "left-sleeve"
    assert option.constraints.file_types == ["png", "jpg"]


def test_currency_codes_are_normalized():
    assert PriceInfo(amount=1, currency="eur").currency == "EUR"
    with pytest.raises(ValueError):
        PriceInfo(amount=1, currency="euro")


# === Errors ===


def test_taxonomy():
    for error in (
        ProviderAPIError("x", provider_id="p", status_code=500, endpoint="/"),
        RateLimitError(provider_id="p", endpoint="/", reset_at=0),
        ValidationError("x", []),
        BlueprintNotFoundError(blueprint_id="1", provider_id="p"),
        AuthenticationError(provider_id="p"),
        ProviderUnavailableError(provider_id="p"),
        NetworkError("x", provider_id="p"),
    ):
        assert isinstance(error, BlueprintError)
    assert issubclass(RateLimitError, ProviderAPIError)
    assert not issubclass(UnknownProviderError, BlueprintError)


def test_codes_and_defaults():
    assert AuthenticationError(provider_id="p").code == "AUTHENTICATION_ERROR"
    assert AuthenticationError(provider_id="p").message == "Authentication failed"
    assert ProviderUnavailableError(provider_id="p").message == "Provider service is currently unavailable"
    assert NetworkError("x", provider_id="p").retryable is True
    assert ProviderAPIError("x", provider_id="p", status_code=400, endpoint="/").retryable is False


def test_rate_limit_error_fields():
    error = RateLimitError(provider_id="printify", endpoint="/catalog", reset_at=1_704_110_400_000)

    assert error.status_code == 429
    assert error.retryable is True
    assert error.code == "RATE_LIMIT_EXCEEDED"
    assert "2024-01-01T12:00:00+00:00" in error.message
    assert error.to_dict()["reset_at"] == 1_704_110_400_000


def test_to_dict():
    error = ValidationError("Invalid blueprint", [FieldError(field="name", message="Name is required")])

    payload = error.to_dict()

    assert payload["error"] == "ValidationError"
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "Invalid blueprint"
    assert payload["errors"] == [{"field": "name", "message": "Name is required"}]
    assert isinstance(payload["timestamp"], int)


def test_not_found_message():
    error = BlueprintNotFoundError(blueprint_id="9", provider_id="gelato")
    assert str(error) == "Blueprint 9 not found for provider gelato"
    assert error.to_dict()["blueprint_id"] == "9"
