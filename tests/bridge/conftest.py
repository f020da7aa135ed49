import pytest
from bridge.catalog import set_catalog
from bridge.catalog.fake_adapter import FakeCatalog
from bridge.marketing import set_marketing
from bridge.marketing.fake_adapter import FakeMarketing
from bridge.processor import set_processor
from bridge.processor.fake_adapter import FakeProcessor
from bridge.settings import Settings, set_settings
from protean.integrations.pytest import DomainFixture

IPN_SECRET = "test-ipn-secret"
APP_URL = "https://bridge.example.test"
SHOP = "example.myshopify.com"


@pytest.fixture(scope="session")
def bridge_bed():
    from bridge.domain import bridge

    bed = DomainFixture(bridge)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(bridge_bed):
    with bridge_bed.domain_context():
        yield


@pytest.fixture()
def settings():
    active = Settings(app_url=APP_URL, shop=SHOP, nowpayments_ipn_secret=IPN_SECRET)
    set_settings(active)
    return active


@pytest.fixture()
def processor():
    fake = FakeProcessor()
    set_processor(fake)
    return fake


@pytest.fixture()
def catalog():
    fake = FakeCatalog()
    set_catalog(fake)
    return fake


@pytest.fixture()
def marketing():
    fake = FakeMarketing()
    set_marketing(fake)
    return fake


@pytest.fixture()
def collaborators(settings, processor, catalog, marketing):
    """Every external collaborator replaced by its fake."""
    return {"processor": processor, "catalog": catalog, "marketing": marketing}
