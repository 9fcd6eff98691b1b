"""Global test fixtures."""

import logfire
import pytest

# Keep spans local: nothing is exported during tests.
logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def order_payload() -> dict:
    return {
        "employeeId": "e1",
        "bikeModel": "M",
        "startDate": "2024-01-01T00:00:00Z",
        "endDate": "2024-01-02T00:00:00Z",
        "price": 10,
        "currency": "USD",
        "companyId": "c1",
    }
