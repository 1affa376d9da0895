import logging

from foodapp.errors import Conflict, NotFound, ValidationError
from foodapp.models import Category, Product
from foodapp.schemas import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate, RatingIn, parse

logger = logging.getLogger(__name__)


class CatalogService:
    """Categories and products managed by administrators"""

    def __init__(self, catalog, images):
        self.catalog = catalog
        self.images = images

    # Categories

    def list_categories(self):
        return [category.to_dict() for category in self.catalog.list_categories()]

    def create_category(self, form, image=None):
        data = parse(CategoryCreate, form)
        if self.catalog.get_category_by_name(data.name):
            raise Conflict('Category already exists')

        path = self.images.save(image) if image else None
        category = self.catalog.add(Category(name=data.name, path=path))
        self.catalog.commit()
        logger.info(f"Created category {category.id} ({category.name})")
        return category.to_dict()

    def update_category(self, category_id, form, image=None):
        data = parse(CategoryUpdate, form)
        category = self.catalog.get_category(category_id)
        if category is None:
            raise NotFound('Category not found')

        if data.name:
            existing = self.catalog.get_category_by_name(data.name)
            if existing and existing.id != category.id:
                raise Conflict('Category already exists')
        path = self.images.save(image) if image else None

        if data.name:
            category.name = data.name
        if path:
            category.path = path

        self.catalog.commit()
        return category.to_dict()

    # Products

    def list_products(self):
        return [product.to_dict() for product in self.catalog.list_available_products()]

    def _check_category(self, category_id):
        if self.catalog.get_category(category_id) is None:
            raise ValidationError('Category not found', details=['category_id: category does not exist'])

    def create_product(self, form, image):
        data = parse(ProductCreate, form)
        self._check_category(data.category_id)
        path = self.images.save(image)

        product = self.catalog.add(Product(
            name=data.name,
            price=data.price,
            category_id=data.category_id,
            path=path,
            offer=data.offer,
            description=data.description,
            available=data.available,
        ))
        self.catalog.commit()
        logger.info(f"Created product {product.id} ({product.name})")
        return product.to_dict()

    def update_product(self, product_id, form, image=None):
        data = parse(ProductUpdate, form)
        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFound('Product not found')

        changes = data.model_dump(exclude_none=True)
        if 'category_id' in changes:
            self._check_category(changes['category_id'])
        if image:
            changes['path'] = self.images.save(image)
        for field, value in changes.items():
            setattr(product, field, value)

        self.catalog.commit()
        return product.to_dict()

    def deactivate_product(self, product_id):
        """Soft delete: the product disappears from listings, orders keep it"""
        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFound('Product not found')
        product.available = False
        self.catalog.commit()
        logger.info(f"Deactivated product {product_id}")

    def rate_product(self, product_id, payload):
        data = parse(RatingIn, payload)
        if self.catalog.get_product(product_id) is None:
            raise NotFound('Product not found')
        self.catalog.apply_rating(product_id, data.stars)
        self.catalog.commit()
        return self.catalog.get_product(product_id).to_dict()
