"""
Pytest fixtures for the party client tests.
"""
import pytest

from party_client.identity import MemoryIdentityStore
from party_client.navigation import QueueNavigator
from party_shared.config import Settings

from helpers import ControlledNotifier, FakeChannel


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        SERVER_URL="http://game.test",
        IDENTITY_STORE_PATH=tmp_path / "identity.json",
        PREVIEW_GAME_CODE="ffff",
        RECONNECT_BASE_DELAY_S=0.001,
        RECONNECT_MAX_DELAY_S=0.002,
    )


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def store() -> MemoryIdentityStore:
    return MemoryIdentityStore()


@pytest.fixture
def navigator() -> QueueNavigator:
    return QueueNavigator()


@pytest.fixture
def notifier() -> ControlledNotifier:
    return ControlledNotifier()
