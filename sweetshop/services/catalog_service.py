"""Product catalog with a session-lifetime cache."""

from collections import OrderedDict
from typing import Dict, List, Optional

from sweetshop.apis.Db import Db
from sweetshop.config.loader import AppConfig, get_cache_key, get_catalog_categories
from sweetshop.documents.products.Product import Product
from sweetshop.models.firestore_types import ProductDoc
from sweetshop.util.logger import get_logger
from sweetshop.util.session_cache import SessionCache

logger = get_logger(__name__)

OTHER_CATEGORY = "Other"


class CatalogService:
    """Reads products once per session and serves them from the cache afterwards."""

    def __init__(self, cache: SessionCache, config: Optional[AppConfig] = None):
        self.cache = cache
        self.config = config or {}
        self.cache_key = get_cache_key(self.config)
        self.db = Db.get_instance()

    def _fetch_products(self) -> List[dict]:
        try:
            snaps = self.db.collections["products"].get()
        except Exception as e:
            raise Db.translate_error(e, "products")

        products = []
        for snap in snaps:
            try:
                product = ProductDoc(**{**(snap.to_dict() or {}), "id": snap.id})
            except ValueError as e:
                logger.warning(f"Skipping malformed product {snap.id}: {e}")
                continue
            products.append(product.model_dump(mode="json"))

        logger.info(f"Fetched {len(products)} products")
        return products

    def list_products(self) -> List[ProductDoc]:
        cached = self.cache.get_or_load(self.cache_key, self._fetch_products)
        return [ProductDoc(**data) for data in cached]

    def invalidate_cache(self):
        self.cache.remove(self.cache_key)

    def home_products(self) -> List[ProductDoc]:
        return [product for product in self.list_products() if product.showOnHome]

    def categorized(self, products: Optional[List[ProductDoc]] = None) -> Dict[str, List[ProductDoc]]:
        """Group products by category in display order.

        Products whose category is not configured are grouped under "Other",
        after the configured categories. Empty categories are left out.
        """
        products = self.list_products() if products is None else products
        groups: Dict[str, List[ProductDoc]] = OrderedDict(
            (category, []) for category in get_catalog_categories(self.config)
        )
        for product in products:
            key = product.type if product.type in groups else OTHER_CATEGORY
            groups.setdefault(key, []).append(product)
        return OrderedDict((category, items) for category, items in groups.items() if items)

    def get_product(self, product_id: str) -> Optional[ProductDoc]:
        for product in self.list_products():
            if product.id == product_id:
                return product
        try:
            product = Product.find(product_id)
        except Exception as e:
            raise Db.translate_error(e, "products")
        return product.doc if product else None

    def products_by_id(self) -> Dict[str, ProductDoc]:
        return {product.id: product for product in self.list_products()}
