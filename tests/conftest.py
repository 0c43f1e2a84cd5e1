import pytest
import uuid
from datetime import datetime, timedelta, timezone

from salesboard import create_app
from salesboard.database import Base, create_tables, drop_tables, get_session
from salesboard.models import Location, Item, Order, OrderState, LineItem
from salesboard.services.auth_service import encode_session_cookie
from salesboard.services.supabase_auth import SupabaseAuthClient

AUTH_COOKIE = 'sb-testproject-auth-token'
TEST_USER = {'id': 'user-1111', 'email': 'owner@test.com'}
OTHER_USER = {'id': 'user-2222', 'email': 'other@test.com'}


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    drop_tables()
    create_tables()
    yield app
    drop_tables()


@pytest.fixture(autouse=True)
def clean_tables(app):
    """Empty every table after each test."""
    yield
    session = get_session()
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def app_context(app):
    with app.app_context():
        yield


@pytest.fixture(scope='function')
def session():
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def auth_user(mocker):
    """Make the auth provider accept any access token as TEST_USER."""
    return mocker.patch.object(SupabaseAuthClient, 'get_user', return_value=dict(TEST_USER))


@pytest.fixture(scope='function')
def authenticated_client(client, auth_user):
    """Client carrying a session cookie for TEST_USER."""
    client.set_cookie(AUTH_COOKIE, encode_session_cookie({
        'access_token': 'access-token-1',
        'refresh_token': 'refresh-token-1',
        'expires_at': 1999999999,
    }))
    return client


def create_order(session, location_id, date, total_amount, lines=(), state=OrderState.COMPLETED):
    """Create an order with (name, quantity, total cents) line items."""
    suffix = str(uuid.uuid4())[:8]
    order = Order(
        square_order_id=f'sq-order-{suffix}',
        location_id=location_id,
        date=date,
        state=state,
        total_amount=total_amount,
        currency='CAD'
    )
    session.add(order)
    session.flush()

    for name, quantity, total in lines:
        item = session.query(Item).filter_by(name=name).first()
        session.add(LineItem(
            square_line_item_uid=f'sq-line-{uuid.uuid4()}',
            order_id=order.id,
            item_id=item.id if item else None,
            name=name,
            quantity=quantity,
            unit_price_amount=total // max(quantity, 1),
            total_price_amount=total,
            currency='CAD'
        ))
    session.flush()
    return order


@pytest.fixture(scope='function')
def sales_data(session):
    """
    Two locations with completed orders "now" and one order from last week.

    Returns plain values so tests can use them after requests close the session.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    downtown = Location(square_location_id='LOC-DT', name='Downtown', timezone='UTC')
    harbour = Location(square_location_id='LOC-HB', name='Harbour', timezone='UTC')
    empty = Location(square_location_id='LOC-EM', name='Empty Corner', timezone='UTC')
    session.add_all([downtown, harbour, empty])
    session.add_all([
        Item(square_item_id='sq-item-latte', square_catalog_id='sq-cat-latte', name='Latte'),
        Item(square_item_id='sq-item-muffin', square_catalog_id='sq-cat-muffin', name='Muffin'),
    ])
    session.flush()

    create_order(session, 'LOC-DT', now, 1500, [('Latte', 2, 1000), ('Muffin', 1, 500)])
    create_order(session, 'LOC-DT', now, 900, [('Latte', 1, 500), ('Muffin', 1, 400)])
    create_order(session, 'LOC-HB', now, 700, [('Muffin', 2, 700)])
    create_order(session, 'LOC-HB', now, 5000, [('Latte', 10, 5000)], state=OrderState.CANCELED)
    create_order(session, 'LOC-DT', now - timedelta(days=7), 12000, [('Latte', 20, 12000)])
    session.commit()

    return {'now': now, 'locations': ['LOC-DT', 'LOC-HB', 'LOC-EM']}


@pytest.fixture(scope='function')
def order_factory(session):
    """create_order bound to the test session."""
    def factory(location_id, date, total_amount, lines=(), state=OrderState.COMPLETED):
        return create_order(session, location_id, date, total_amount, lines, state)
    return factory
