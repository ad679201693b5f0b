import pytest

from tests.helpers import make_task


@pytest.fixture
def task():
    return make_task()
