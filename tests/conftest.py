import pytest

from helpers import NOW


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def stop_names():
    return {"101028": "Shelbourne St at Blair Ave", "101039": "Shelbourne St at Blair Ave"}
