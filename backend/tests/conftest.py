"""
Pytest fixtures for the Jaguar back-office tests.

Provides the application (in-memory SQLite), a per-test clean database, a
repositories fixture that runs each service test against both storage
backends, and small factories that build entities through the services.
"""

from datetime import datetime

import pytest

from jaguar import create_app
from jaguar.extensions import db
from jaguar.models import PurchaseOrderState
from jaguar.repositories import MEMORY_EXTENSION_KEY, InMemoryRepositories, SqlRepositories
from jaguar.services import catalog_service, inventory_service, procurement_service, quotation_service
from jaguar.services.lifecycle_service import next_purchase_order_state
from jaguar.services.quotation_service import LineRequest

# Fixed clock for anything time-dependent
T0 = datetime(2024, 1, 20, 12, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'STORAGE_BACKEND': 'sql',
        'DEBUG_SEED_ENABLED': False,
    })

    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Test client against the SQL backend."""
    return app.test_client()


@pytest.fixture(scope='function')
def memory_app():
    """Application on the memory backend with the demo data loaded."""
    return create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'STORAGE_BACKEND': 'memory',
        'DEBUG_SEED_ENABLED': True,
    })


@pytest.fixture(scope='function')
def memory_repos(memory_app):
    return memory_app.extensions[MEMORY_EXTENSION_KEY]


@pytest.fixture(params=['sql', 'memory'])
def repos(request):
    """Every service test runs once per storage backend."""
    if request.param == 'memory':
        yield InMemoryRepositories()
        return
    session = request.getfixturevalue('db_session')
    yield SqlRepositories(session)


class Factory:
    """Builds valid entities through the services (never by hand)."""

    def __init__(self, repos):
        self.repos = repos

    def supplier(self, name="Textiles Fashion SAC", **kwargs):
        return procurement_service.create_supplier(self.repos, name=name, **kwargs)

    def order(self, supplier=None, state=PurchaseOrderState.CREATED, debt=None):
        supplier = supplier or self.supplier()
        order = procurement_service.create_purchase_order(self.repos, supplier_id=supplier.id, now=T0)
        while order.state != state:
            order = procurement_service.advance_purchase_order(
                self.repos, order.id, next_purchase_order_state(order.state)
            )
        if debt is not None:
            order = procurement_service.record_order_debt(self.repos, order.id, debt)
        return order

    def bundle(self, price="500.00", available=True, order=None, **overrides):
        fields = dict(
            garment_type="CASUAL_HOMBRE",
            season="VERANO",
            category="HOMBRE",
            sizes=["M", "L", "XL"],
            description="Saco de polos y shorts casuales",
            base_price=price,
            purchase_order_id=order.id if order else None,
            now=T0,
        )
        fields.update(overrides)
        bundle = inventory_service.receive_bundle(self.repos, **fields)
        if available:
            bundle = inventory_service.tag_bundle(self.repos, bundle.id, now=T0)
        return bundle

    def bundles(self, count, **kwargs):
        return [self.bundle(**kwargs) for _ in range(count)]

    def quotation(self, bundles=None, discounts=None, global_discount=0, reserve=False, now=T0):
        bundles = bundles if bundles is not None else self.bundles(2)
        discounts = discounts or [0] * len(bundles)
        quotation = quotation_service.issue_quotation(
            self.repos,
            customer_name="Rosa Quispe",
            customer_phone="987000111",
            lines=[
                LineRequest(bundle_id=b.id, line_discount=d)
                for b, d in zip(bundles, discounts)
            ],
            global_discount=global_discount,
            now=now,
        )
        if reserve:
            quotation = quotation_service.reserve_quotation(self.repos, quotation.id, now=now)
        return quotation

    def published_list(self, bundles, active=True):
        catalog = catalog_service.create_list(self.repos, name="Lista VIP Verano", list_type="VIP", now=T0)
        for bundle in bundles:
            catalog_service.add_bundle_to_list(self.repos, catalog.id, bundle.id, now=T0)
        catalog = catalog_service.publish_share_token(self.repos, catalog.id)
        if active:
            catalog = catalog_service.set_list_active(self.repos, catalog.id, True)
        return catalog


@pytest.fixture(scope='function')
def factory(repos):
    return Factory(repos)


@pytest.fixture(scope='function')
def t0():
    return T0
