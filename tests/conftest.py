import copy
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from blueprints.models import ProviderConfig, RetryPolicy
from blueprints.settings import EnvironmentConfig, ProviderSettings


def make_response(
    status_code: int = 200,
    json_body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://api.test/resource",
    text: Optional[str] = None,
) -> httpx.Response:
    request = httpx.Request("GET", url)
    if text is not None:
        return httpx.Response(status_code, text=text, headers=headers, request=request)
    return httpx.Response(status_code, json=json_body, headers=headers, request=request)


@contextmanager
def patched_http(*outcomes: Any) -> Iterator[AsyncMock]:
    """Patch httpx.AsyncClient; each GET consumes the next response or raises the next exception."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client
        mock_client_class.return_value.__aexit__.return_value = False
        mock_client.get.side_effect = list(outcomes)
        yield mock_client


@pytest.fixture
def http_response():
    return make_response


@pytest.fixture
def mock_http():
    return patched_http


@pytest.fixture
def make_config():
    def build(base_url: str, max_retries: int = 0, timeout: float = 5.0) -> ProviderConfig:
        return ProviderConfig(
            api_key="test-key",
            base_url=base_url,
            timeout=timeout,
            retry=RetryPolicy(max_retries=max_retries, retry_delay=0),
        )

    return build


@pytest.fixture
def env_config():
    """Config with printify, printful and gooten enabled and keyed."""
    return EnvironmentConfig(
        providers={
            "printify": ProviderSettings(api_key="pfy-key", enabled=True),
            "printful": ProviderSettings(api_key="pfl-key", enabled=True),
            "gooten": ProviderSettings(api_key="gtn-key", enabled=True),
            "gelato": ProviderSettings(api_key="", enabled=False),
        }
    )


PRINTIFY_BLUEPRINT = {
    "id": "5",
    "title": "Unisex Heavy Cotton Tee",
    "description": "Classic fit tee",
    "blueprint_id": "BP-5",
    "created_at": "2024-01-02T10:00:00Z",
    "updated_at": "2024-03-04T10:00:00Z",
    "tags": ["tee", "cotton"],
    "variants": [
        {"id": 101, "sku": "TEE-S-BLK", "title": "S / Black", "options": {"size": "S", "color": "Black"}, "price": 1250, "is_enabled": True},
        {"id": 102, "sku": "TEE-M-BLK", "title": "M / Black", "options": {"size": "M", "color": "Black"}, "price": 1150, "is_enabled": True},
        {"id": 103, "sku": "TEE-L-BLK", "title": "L / Black", "options": {"size": "L", "color": "Black"}, "price": 1300, "is_enabled": False},
    ],
    "print_areas": [
        {
            "id": "front",
            "title": "Front",
            "position": "front",
            "constraints": {
                "dpi": {"min": 150, "max": 300},
                "width": {"min": 100, "max": 3600},
                "height": {"min": 100, "max": 4800},
            },
        },
        {
            "id": "back",
            "title": "Back",
            "position": "back",
            "constraints": {
                "dpi": {"min": 150, "max": 300},
                "width": {"min": 100, "max": 3600},
                "height": {"min": 100, "max": 4200},
            },
        },
    ],
    "images": [
        {"id": "img-b", "src": "https://images.printify.test/b.png", "position": "2", "type": "mockup"},
        {"id": "img-a", "src": "https://images.printify.test/a.png", "position": "front", "type": "preview"},
    ],
}

PRINTFUL_PRODUCT = {
    "id": 71,
    "type": "T-SHIRT",
    "title": "Bella + Canvas 3001",
    "brand": "Bella + Canvas",
    "model": "3001",
    "image": "https://files.printful.test/71.png",
    "currency": "EUR",
    "variants": [
        {"id": 4011, "product_id": 71, "name": "S White", "size": "S", "color": "White", "price": "9.25", "in_stock": True},
        {"id": 4012, "product_id": 71, "name": "M White", "size": "M", "color": "White", "price": "8.95", "in_stock": False},
    ],
    "techniques": [
        {
            "name": "Direct To Garment",
            "areas": [
                {"name": "front", "width": 12, "height": 16, "dpi": {"min": 150, "max": 300}},
                {"name": "back", "width": 14, "height": 18, "dpi": {"min": 120, "max": 240}},
            ],
        },
        {"name": "Embroidery", "areas": []},
    ],
}

GOOTEN_PRODUCT = {
    "id": "g-9",
    "name": "Ceramic Mug",
    "description": "11oz mug",
    "shortDescription": "Mug",
    "templateId": "TPL-9",
    "categoryId": "drinkware",
    "productType": "mug",
    "images": [
        {"url": "https://gooten.test/2.png", "type": "mockup", "index": 2},
        {"url": "https://gooten.test/1.png", "type": "preview", "index": 1},
    ],
    "variants": [
        {
            "id": "gv-1",
            "sku": "MUG-11",
            "name": "11oz",
            "price": {"amount": 7.5, "currency": "USD"},
            "options": {"size": "11oz"},
            "stock": {"available": True, "quantity": 42},
            "printableAreas": [
                {"id": "wrap-1", "name": "Wrap", "location": "wrap", "width": 8.5, "height": 3.5,
                 "fileSpecs": {"fileTypes": ["PNG"], "dpi": 300}},
            ],
        },
        {
            "id": "gv-2",
            "sku": "MUG-15",
            "name": "15oz",
            "price": {"amount": 9.0, "currency": "USD"},
            "options": {"size": "15oz"},
            "stock": {"available": False},
            "printableAreas": [
                {"id": "wrap-2", "name": "Wrap", "location": "wrap", "width": 9.0, "height": 4.0,
                 "fileSpecs": {"fileTypes": ["png", "pdf"], "dpi": 200}},
            ],
        },
    ],
}

GELATO_PRODUCT = {
    "id": "gel-3",
    "name": "Framed Poster",
    "description": "Museum quality poster",
    "productGroups": ["wall-art"],
    "productTypes": ["poster"],
    "merchantSku": "POSTER-FR",
    "assets": [
        {"id": "a1", "type": "image", "url": "https://gelato.test/a1.jpg", "usage": "mockup"},
        {"id": "a2", "type": "document", "url": "https://gelato.test/sizing.pdf", "usage": "sizing"},
    ],
    "variants": [
        {
            "id": "gelv-1",
            "sku": "POSTER-A4",
            "productId": "gel-3",
            "name": "A4",
            "attributes": {"size": "A4"},
            "prices": [{"amount": 21.0, "currency": "EUR"}, {"amount": 19.5, "currency": "USD"}],
            "availability": {"isAvailable": True},
            "printAreas": [
                {"id": "pa-1", "name": "Front", "position": "front", "dimensions": {"width": 210, "height": 297, "unit": "mm"},
                 "supportedFileTypes": ["pdf", "png"], "printQuality": {"dpi": 300}},
            ],
        },
        {
            "id": "gelv-2",
            "sku": "POSTER-A3",
            "productId": "gel-3",
            "name": "A3",
            "attributes": {"size": "A3"},
            "prices": [{"amount": 29.0, "currency": "EUR"}],
            "availability": {"isAvailable": True, "stockLevel": 7},
            "printAreas": [
                {"id": "pa-2", "name": "Front", "position": "front", "dimensions": {"width": 297, "height": 420, "unit": "mm"},
                 "supportedFileTypes": ["pdf"], "printQuality": {"dpi": 250}},
            ],
        },
    ],
}


@pytest.fixture
def printify_blueprint():
    return copy.deepcopy(PRINTIFY_BLUEPRINT)


@pytest.fixture
def printful_product():
    return copy.deepcopy(PRINTFUL_PRODUCT)


@pytest.fixture
def gooten_product():
    return copy.deepcopy(GOOTEN_PRODUCT)


@pytest.fixture
def gelato_product():
    return copy.deepcopy(GELATO_PRODUCT)
