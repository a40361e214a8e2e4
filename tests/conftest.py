import asyncio
from types import SimpleNamespace
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from blink.app import create_app
from blink.config import Settings

STAKE_RENT_EXEMPTION: int = 2_282_880
VOTE_ACCOUNT: str = "BeSov1og3sEYyH9JY3ap7QcQDvVX8f4sugfNPf9YLkcV"


def zero_bytes(n: int) -> bytes:
    return bytes(n)


class FakeClient:
    """Stands in for `AsyncClient`, answering the two queries a stake build needs."""

    def __init__(self, rent: int = STAKE_RENT_EXEMPTION, error: Optional[Exception] = None, delay: float = 0.0):
        self.rent = rent
        self.error = error
        self.delay = delay
        self.blockhash = Hash(bytes(range(32)))
        self.calls: List[str] = []
        self.connected = True
        self.closed = False

    async def _answer(self, name: str, value):
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(value=value)

    async def get_latest_blockhash(self, commitment=None):
        return await self._answer(
            "get_latest_blockhash",
            SimpleNamespace(blockhash=self.blockhash, last_valid_block_height=300),
        )

    async def get_minimum_balance_for_rent_exemption(self, usize, commitment=None):
        return await self._answer("get_minimum_balance_for_rent_exemption", self.rent)

    async def is_connected(self) -> bool:
        return self.connected

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def staker() -> Pubkey:
    return Keypair.from_seed(bytes([7] * 32)).pubkey()


@pytest.fixture
def vote() -> Pubkey:
    return Pubkey.from_string(VOTE_ACCOUNT)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def http_client(settings, fake_client) -> TestClient:
    return TestClient(create_app(settings, client=fake_client, random_bytes=zero_bytes))
