import pytest

from ad_gateway.services.accounts import DirectoryAccountGateway

from .fakes import NOW, FakeDirectoryClient


@pytest.fixture
def directory() -> FakeDirectoryClient:
    return FakeDirectoryClient()


@pytest.fixture
def gateway(directory: FakeDirectoryClient) -> DirectoryAccountGateway:
    return DirectoryAccountGateway(directory, clock=lambda: NOW)
