"""
Service container.

Builds repositories and services around one explicit session handle. A
request gets its own container (``get_services``); the sweeper builds one
per pass. Nothing here holds a connection of its own: the session's
lifecycle belongs to whoever constructed the container.
"""
from flask import current_app, g

from foodapp.clock import utcnow
from foodapp.repositories import (
    CatalogRepository,
    DeliveryZoneRepository,
    ExpenseRepository,
    OrderRepository,
)
from foodapp.services.notifications import NullPublisher


class ServiceContainer:
    def __init__(self, session, config, publisher=None, clock=utcnow):
        self.session = session
        self.config = config
        self.publisher = publisher or NullPublisher()
        self.clock = clock
        self._cache = {}

    def _get(self, name, factory):
        if name not in self._cache:
            self._cache[name] = factory()
        return self._cache[name]

    # Repositories

    @property
    def catalog_repo(self):
        return self._get('catalog_repo', lambda: CatalogRepository(self.session))

    @property
    def zone_repo(self):
        return self._get('zone_repo', lambda: DeliveryZoneRepository(self.session))

    @property
    def order_repo(self):
        return self._get('order_repo', lambda: OrderRepository(self.session))

    @property
    def expense_repo(self):
        return self._get('expense_repo', lambda: ExpenseRepository(self.session))

    # Services

    @property
    def zones(self):
        from foodapp.services.zones import DeliveryZoneService
        return self._get('zones', lambda: DeliveryZoneService(self.zone_repo))

    @property
    def pricing(self):
        from foodapp.services.pricing import PricingCalculator
        return self._get('pricing', lambda: PricingCalculator(self.catalog_repo, self.zones))

    @property
    def lifecycle(self):
        from foodapp.services.lifecycle import OrderLifecycleEngine
        return self._get('lifecycle', lambda: OrderLifecycleEngine(
            self.order_repo,
            self.catalog_repo,
            self.publisher,
            clock=self.clock,
            cancel_window_minutes=self.config['CANCEL_WINDOW_MINUTES'],
        ))

    @property
    def orders(self):
        from foodapp.services.orders import OrderService
        return self._get('orders', lambda: OrderService(
            self.order_repo, self.pricing, self.publisher, clock=self.clock,
        ))

    @property
    def catalog(self):
        from foodapp.services.catalog import CatalogService
        from foodapp.services.images import ImageStore
        return self._get('catalog', lambda: CatalogService(
            self.catalog_repo,
            ImageStore(self.config['UPLOAD_DIR'], self.config['ALLOWED_IMAGE_EXTENSIONS']),
        ))

    @property
    def dashboard(self):
        from foodapp.services.dashboard import DashboardService
        return self._get('dashboard', lambda: DashboardService(
            self.order_repo, self.expense_repo, clock=self.clock,
        ))

    @property
    def payments(self):
        from foodapp.services.payments import PaymentService
        return self._get('payments', lambda: PaymentService(
            self.config['STRIPE_SECRET_KEY'],
            currency=self.config['PAYMENT_CURRENCY'],
        ))


def build_container(app, session):
    return ServiceContainer(
        session,
        app.config,
        publisher=app.extensions.get('event_publisher'),
        clock=app.extensions.get('clock', utcnow),
    )


def get_services():
    """Container bound to the current request's session"""
    if 'services' not in g:
        from foodapp import db
        g.services = build_container(current_app, db.session)
    return g.services
