# tests/test_catalog.py
import asyncio

from docstore.database import StoreError
from storefront.catalog import category_names, filter_products, split_ingredient
from storefront.config import Settings
from storefront.context import ViewContext
from storefront.i18n import translate
from storefront.models import Category, Product


def product(pid, name, category, description="d"):
    return Product(id=pid, name=name, category=category, description=description, size="50ml")


PRODUCTS = [
    product("1", "Daily Shield", "sunscreen", "Mineral SPF 50"),
    product("2", "Night Cream", "Moisturizer", "Rich overnight care"),
    product("3", "Glow Serum", "serum", "Vitamin C boost"),
]


def test_filter_by_category_tab():
    assert [p.id for p in filter_products(PRODUCTS)] == ["1", "2", "3"]
    assert [p.id for p in filter_products(PRODUCTS, category="moisturizer")] == ["2"]
    assert filter_products(PRODUCTS, category="toner") == []


def test_search_matches_name_and_description():
    assert [p.id for p in filter_products(PRODUCTS, query="cream")] == ["2"]
    assert [p.id for p in filter_products(PRODUCTS, query="  VITAMIN ")] == ["3"]
    assert [p.id for p in filter_products(PRODUCTS, category="serum", query="shield")] == []


def test_category_names_include_dangling_references():
    names = category_names(PRODUCTS, [Category(name="sunscreen"), Category(name="toner")])
    assert names == ["all", "sunscreen", "toner", "moisturizer", "serum"]


def test_split_ingredient():
    assert split_ingredient("Vitamin C (500mg)") == ("Vitamin C", "500mg")
    assert split_ingredient("Vitamin D3 (2000 IU) ") == ("Vitamin D3", "2000 IU")
    assert split_ingredient("Aloe Vera") == ("Aloe Vera", None)
    assert split_ingredient("(10%)") == ("(10%)", None)
    assert split_ingredient("Niacinamide ()") == ("Niacinamide", None)


def test_translate_falls_back_to_english_then_key():
    assert translate("nav.about", "fr") == "À propos"
    assert translate("nav.about", "de") == "About"
    assert translate("no.such.key", "fr") == "no.such.key"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("STORE_URL", "http://store:9000")
    monkeypatch.setenv("STORE_TIMEOUT", "2.5")
    monkeypatch.setenv("MAX_IMAGE_BYTES", "1024")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings.from_env()
    assert s.store_url == "http://store:9000"
    assert s.timeout == 2.5
    assert s.max_image_bytes == 1024
    assert s.log_level == "DEBUG"
    assert s.image_max_edge == 2048


def test_context_from_identity():
    class Identity:
        def __init__(self, result):
            self.result = result

        async def is_admin(self):
            if isinstance(self.result, Exception):
                raise self.result
            return self.result

    admin = asyncio.run(ViewContext.from_identity(Identity(True), language="fr"))
    offline = asyncio.run(ViewContext.from_identity(Identity(StoreError("down"))))
    assert admin.is_admin is True
    assert admin.t("nav.products") == "Produits"
    assert offline.is_admin is False
    assert offline.confirm("Delete?") is False
