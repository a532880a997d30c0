import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Reset stores and swappable ports after every test."""
    yield

    from marketplace.customer import reset_user_directory
    from marketplace.notification import reset_notifier
    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()
    current_domain.event_store.store._data_reset()

    reset_notifier()
    reset_user_directory()


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def notifier():
    from marketplace.notification import set_notifier
    from marketplace.notification.adapters import RecordingNotifier

    recorder = RecordingNotifier()
    set_notifier(recorder)
    return recorder


@pytest.fixture()
def product():
    """Factory registering an ACTIVE inventory item; returns its id."""
    from marketplace.inventory.management import RegisterInventoryItem
    from protean import current_domain

    def _register(
        product_id="prod-001",
        price=10.0,
        stock=10,
        vendor_id="vendor-001",
        status="ACTIVE",
        name=None,
        sku=None,
    ):
        return current_domain.process(
            RegisterInventoryItem(
                product_id=product_id,
                vendor_id=vendor_id,
                name=name or f"Product {product_id}",
                sku=sku or f"SKU-{product_id}".upper(),
                image_url=f"https://img.example.com/{product_id}.png",
                price=price,
                stock_quantity=stock,
                status=status,
            ),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Asha Rao",
        "phone": "+1-555-0100",
        "email": "asha@example.com",
        "street": "123 Main St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    }
