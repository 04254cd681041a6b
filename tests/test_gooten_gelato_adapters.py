"""Tests for the Gooten and Gelato adapters."""

import pytest

from blueprints.adapters import GelatoAdapter, GootenAdapter
from blueprints.models import IN_STOCK_SENTINEL, BlueprintSearchParams


@pytest.fixture
def gooten(make_config):
    return GootenAdapter(make_config("https://api.gooten.test/v1"))


@pytest.fixture
def gelato(make_config):
    return GelatoAdapter(make_config("https://product.gelato.test/v3"))


class TestGootenAdapter:
    def test_normalize_product(self, gooten, gooten_product):
        blueprint = gooten.normalize_blueprint(gooten_product)

        assert blueprint.id == "g-9"
        assert blueprint.provider_id == "gooten"
        assert blueprint.sku == "TPL-9"
        assert blueprint.category == "mug"
        assert blueprint.subcategory == "drinkware"
        assert blueprint.pricing.base.amount == 7.5

    def test_real_quantity_wins_over_stock_proxy(self, gooten, gooten_product):
        blueprint = gooten.normalize_blueprint(gooten_product)
        assert [v.stock for v in blueprint.variants] == [42, 0]

    def test_print_areas_grouped_by_location(self, gooten, gooten_product):
        blueprint = gooten.normalize_blueprint(gooten_product)

        assert len(blueprint.printing_options) == 1
        wrap = blueprint.printing_options[0]
        assert wrap.locations == ["wrap"]
        assert wrap.constraints.min_dpi == 200
        assert wrap.constraints.max_dpi == 300
        assert wrap.constraints.width == 9.0
        assert wrap.constraints.height == 4.0
        assert wrap.constraints.file_types == ["png", "pdf"]

    def test_images_follow_index(self, gooten, gooten_product):
        blueprint = gooten.normalize_blueprint(gooten_product)
        assert [image.url for image in blueprint.sorted_images()] == [
            "https://gooten.test/1.png",
            "https://gooten.test/2.png",
        ]

    @pytest.mark.asyncio
    async def test_fetch_infers_total_when_missing(self, gooten, mock_http, http_response, gooten_product):
        with mock_http(http_response(200, {"items": [gooten_product]})) as client:
            result = await gooten.fetch_blueprints(BlueprintSearchParams(page=2, limit=5))

        assert client.get.call_args.kwargs["params"] == {"page": 2, "pageSize": 5}
        assert result.total == 6
        assert result.has_more is False


class TestGelatoAdapter:
    def test_normalize_product(self, gelato, gelato_product):
        blueprint = gelato.normalize_blueprint(gelato_product)

        assert blueprint.id == "gel-3"
        assert blueprint.sku == "POSTER-FR"
        assert blueprint.category == "wall-art"
        assert blueprint.subcategory == "poster"
        assert blueprint.metadata.tags == ["wall-art", "poster"]

    def test_prefers_usd_price(self, gelato, gelato_product):
        blueprint = gelato.normalize_blueprint(gelato_product)

        first, second = blueprint.variants
        assert first.price.amount == 19.5
        assert first.price.currency == "USD"
        assert second.price.currency == "EUR"

    def test_stock_level_used_when_reported(self, gelato, gelato_product):
        blueprint = gelato.normalize_blueprint(gelato_product)
        assert [v.stock for v in blueprint.variants] == [IN_STOCK_SENTINEL, 7]

    def test_only_image_assets_become_images(self, gelato, gelato_product):
        blueprint = gelato.normalize_blueprint(gelato_product)

        assert len(blueprint.images) == 1
        assert blueprint.images[0].url == "https://gelato.test/a1.jpg"
        assert blueprint.images[0].type == "mockup"

    def test_print_areas_grouped_by_position(self, gelato, gelato_product):
        blueprint = gelato.normalize_blueprint(gelato_product)

        (front,) = blueprint.printing_options
        assert front.locations == ["front"]
        assert front.constraints.min_dpi == 250
        assert front.constraints.max_dpi == 300
        assert front.constraints.width == 297
        assert front.constraints.height == 420
        assert front.constraints.file_types == ["pdf", "png"]

    @pytest.mark.asyncio
    async def test_fetch_uses_offset_and_catalog_availability(self, gelato, mock_http, http_response, gelato_product):
        listing = http_response(200, {"items": [gelato_product], "total": 30})
        probe = http_response(200, {"catalogs": []})
        with mock_http(listing, probe) as client:
            result = await gelato.fetch_blueprints(BlueprintSearchParams(page=1, limit=10))
            available = await gelato.check_availability()

        first_call, second_call = client.get.call_args_list
        assert first_call.args[0] == "https://product.gelato.test/v3/products"
        assert first_call.kwargs["params"] == {"offset": 0, "limit": 10}
        assert second_call.args[0] == "https://product.gelato.test/v3/catalogs"
        assert result.has_more is True
        assert available is True
