import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from orderdesk import create_app
from orderdesk.database import create_tables, get_session
from orderdesk.models import LineItem, OrderDraft, OrderSubmission
from orderdesk.services.backend_client import OrderBackendClient


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestingConfig')
    create_tables()
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; the submission journal is emptied after each test."""
    session = get_session()
    yield session
    session.rollback()
    session.query(OrderSubmission).delete()
    session.commit()
    session.close()


@pytest.fixture(scope='function')
def backend(app):
    """Mocked ERP backend client used by the order endpoints."""
    mock_client = MagicMock(spec=OrderBackendClient)
    app.extensions['order_backend_client'] = mock_client
    yield mock_client
    app.extensions.pop('order_backend_client', None)


@pytest.fixture
def sales_line():
    """Single sales line: 2 x 100000, 10% discount, 5% tax."""
    return LineItem(
        product_id=1,
        quantity=Decimal('2'),
        unit_price=Decimal('100000'),
        discount_percent=Decimal('10'),
        tax_rate=Decimal('5'),
    )


@pytest.fixture
def purchase_draft():
    """Two purchase lines (3 x 50000, 1 x 20000) at an 8% order tax rate."""
    return OrderDraft(
        details=(
            LineItem(product_id=1, quantity=Decimal('3'), unit_price=Decimal('50000')),
            LineItem(product_id=2, quantity=Decimal('1'), unit_price=Decimal('20000')),
        ),
        order_level_tax_rate=Decimal('8'),
    )


@pytest.fixture
def purchase_payload():
    return {
        'supplierId': 7,
        'warehouseId': 3,
        'orderDate': '2024-05-01',
        'expectedDeliveryDate': '2024-05-10',
        'taxRate': 8,
        'notes': 'Monthly restock',
        'details': [
            {'productId': 1, 'quantity': 3, 'unitPrice': 50000},
            {'productId': 2, 'quantity': 1, 'unitPrice': '20000'},
        ],
    }


@pytest.fixture
def sales_payload():
    return {
        'customerId': 12,
        'warehouseId': 3,
        'orderDate': '2024-05-02',
        'salesChannel': 'retail',
        'paymentMethod': 'cash',
        'shippingFee': 15000,
        'paidAmount': 100000,
        'details': [
            {'productId': 1, 'quantity': 2, 'unitPrice': 100000, 'discountPercent': 10, 'taxRate': 5},
        ],
    }
