import os, sys, pytest
# Ensure the backend directory is on path so 'helpdesk' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
import httpx
from helpdesk import create_app
from tests.fake_backend import FakeBackend, BASE_URL


@pytest.fixture()
def fake():
    return FakeBackend()


@pytest.fixture()
def app_instance(fake):
    app = create_app({
        'TESTING': True,
        'JWT_SECRET_KEY': 'test-secret-key-long-enough-for-hs256-signing',
        'HELPDESK_API_URL': BASE_URL,
        'BACKEND_TRANSPORT': httpx.MockTransport(fake.handle),
        'SUMMARY_FETCH_LIMIT': 500,
    })
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance
