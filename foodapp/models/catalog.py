from flask import current_app

from foodapp import db
from foodapp.clock import utcnow


def _file_url(prefix, path):
    if not path:
        return None
    return f"{current_app.config['APP_URL']}/{prefix}/{path}"


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    path = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    products = db.relationship('Product', back_populates='category', lazy=True)

    @property
    def url(self):
        return _file_url('category-file', self.path)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'path': self.path,
            'url': self.url,
        }


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Integer, nullable=False)  # minor currency units
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'))
    path = db.Column(db.String(255))
    offer = db.Column(db.Boolean, default=False, nullable=False)
    description = db.Column(db.Text)
    available = db.Column(db.Boolean, default=True, nullable=False)
    sold_count = db.Column(db.Integer, default=0, nullable=False)
    rating_average = db.Column(db.Float, default=0.0, nullable=False)
    rating_count = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    category = db.relationship('Category', back_populates='products')

    @property
    def url(self):
        return _file_url('product-file', self.path)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'category_id': self.category_id,
            'category': {
                'id': self.category.id,
                'name': self.category.name,
            } if self.category else None,
            'path': self.path,
            'url': self.url,
            'offer': self.offer,
            'description': self.description,
            'available': self.available,
            'sold_count': self.sold_count,
            'rating_average': self.rating_average,
            'rating_count': self.rating_count,
        }


class DeliveryZone(db.Model):
    """Postal-code range served with a flat delivery fee"""
    __tablename__ = 'delivery_taxes'

    id = db.Column(db.Integer, primary_key=True)
    zip_code_start = db.Column(db.BigInteger, nullable=False, index=True)
    zip_code_end = db.Column(db.BigInteger, nullable=False, index=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint('zip_code_start <= zip_code_end', name='ck_delivery_taxes_range'),
    )

    @property
    def width(self):
        return self.zip_code_end - self.zip_code_start

    def to_dict(self):
        return {
            'id': self.id,
            'zip_code_start': self.zip_code_start,
            'zip_code_end': self.zip_code_end,
            'price': float(self.price),
        }


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    value = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'value': float(self.value),
            'date': self.date.isoformat(),
        }
