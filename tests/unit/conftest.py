import pytest

from index_checker.services.index import LocalIndex

from helpers import FakeGitHub


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def index():
    return LocalIndex()
