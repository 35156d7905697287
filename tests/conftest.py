import pytest

from fakes import make_expense
from splitbook.models import User


@pytest.fixture
def users():
    return [User("A", "Alex"), User("B", "Maya"), User("C", "Sam")]


@pytest.fixture
def dinner():
    return make_expense("e1", 120.0, "A", ["A", "B", "C"], description="Dinner")
