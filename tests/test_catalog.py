import unittest

from fake_server import PRODUCTS, StoreTestCase
from state.catalog import CatalogLoader, filter_products, recommend_purifier
from store import local
from store.models import Product
from utils.constants import CATALOG_CACHE_KEY
from utils.errors import InvalidInput

CATALOG = tuple(Product.from_json(p) for p in PRODUCTS)


class CatalogLoaderTestCase(StoreTestCase):
    async def test_loads_remote_and_caches(self):
        loader = CatalogLoader(self.remote)
        products = await loader.load()
        self.assertEqual([p.id for p in products], ["p001", "p002", "p003"])
        self.assertEqual(loader.source, "remote")
        self.assertEqual(len(await local.get_json(CATALOG_CACHE_KEY)), 3)

        self.assertEqual(loader.find("p002").price, 2000)
        self.assertFalse(loader.find("p002").in_stock)
        self.assertIsNone(loader.find("p999"))

    async def test_falls_back_to_cache_then_bundled_catalog(self):
        self.server.down = True
        loader = CatalogLoader(self.remote)
        products = await loader.load()
        self.assertEqual(loader.source, "fallback")
        self.assertEqual(len(products), 4)
        self.assertEqual(products[3].category, "gravity")

        self.server.down = False
        await loader.load()
        self.server.down = True
        products = await loader.load()
        self.assertEqual(loader.source, "cache")
        self.assertEqual(len(products), 3)

    async def test_records_without_id_are_skipped(self):
        self.server.records("products").append({"name": "Mystery filter", "price": 10})
        products = await CatalogLoader(self.remote).load()
        self.assertEqual(len(products), 3)


class FilterProductsTestCase(unittest.TestCase):
    def test_default_is_featured_by_rating(self):
        self.assertEqual(
            [p.id for p in filter_products(CATALOG)], ["p003", "p001", "p002"]
        )

    def test_category_and_search(self):
        self.assertEqual([p.id for p in filter_products(CATALOG, "uv")], ["p002"])
        self.assertEqual(filter_products(CATALOG, "gravity"), [])
        self.assertEqual(
            [p.id for p in filter_products(CATALOG, search="ELECTRICITY")], ["p003"]
        )
        self.assertEqual(
            [p.id for p in filter_products(CATALOG, "ro", search="aqua")], ["p001"]
        )

    def test_sorting(self):
        ids = lambda sort_by: [p.id for p in filter_products(CATALOG, sort_by=sort_by)]  # noqa: E731
        self.assertEqual(ids("price-low"), ["p003", "p002", "p001"])
        self.assertEqual(ids("price-high"), ["p001", "p002", "p003"])
        self.assertEqual(ids("name"), ["p001", "p003", "p002"])
        self.assertEqual(ids("rating"), ["p003", "p001", "p002"])

    def test_unknown_category_raises(self):
        with self.assertRaises(InvalidInput):
            filter_products(CATALOG, "alkaline")


class RecommendPurifierTestCase(unittest.TestCase):
    def test_band_edges(self):
        self.assertEqual(recommend_purifier(0)["band"], "low")
        self.assertEqual(recommend_purifier(200)["band"], "low")
        self.assertEqual(recommend_purifier(201)["band"], "medium")
        self.assertEqual(recommend_purifier(1000)["band"], "high")
        self.assertEqual(recommend_purifier(1001)["band"], "veryHigh")

    def test_recommendation_shape(self):
        rec = recommend_purifier(350)
        self.assertEqual(rec["range"], "201-500 ppm")
        self.assertTrue(rec["purifiers"])
        self.assertTrue(rec["description"])

    def test_negative_reading_raises(self):
        with self.assertRaises(InvalidInput):
            recommend_purifier(-1)


if __name__ == "__main__":
    unittest.main()
