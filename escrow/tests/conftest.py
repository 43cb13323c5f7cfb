from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from escrow.config import Settings
from escrow.models import OpenDealRequest, TopUpRequest
from escrow.service import EscrowService

ADVERTISER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
CREATOR_ID = UUID("660e8400-e29b-41d4-a716-446655440001")
OUTSIDER_ID = UUID("770e8400-e29b-41d4-a716-446655440002")
ADMIN_ID = UUID("00000000-0000-0000-0000-00000000a0a0")


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    return Settings(
        platform_fee_rate=Decimal("0.10"),
        platform_actor_id=ADMIN_ID,
        seed_demo_data=False,
    )


@pytest.fixture
def service(settings, clock):
    return EscrowService(settings=settings, clock=clock)


@pytest.fixture
def deal(service):
    return service.open_deal(OpenDealRequest(
        title="Sponsored video integration",
        advertiser_id=ADVERTISER_ID,
        creator_id=CREATOR_ID,
    ))


@pytest.fixture
def funded_advertiser(service):
    service.top_up(ADVERTISER_ID, TopUpRequest(amount=Decimal("5000")))
    return ADVERTISER_ID
