import pytest

from helpers.environment import EnvironmentInfo
from helpers.reactive import Ref


@pytest.fixture
def make_environment():
    def _make(user_agent="", width=1920, height=1080):
        return EnvironmentInfo(user_agent, width, height)
    return _make


@pytest.fixture
def mode():
    return Ref("auto")
