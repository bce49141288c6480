from datetime import datetime

import pytest

from atacado.utils.clock import BRASILIA_TZ


@pytest.fixture
def at():
    """Brasília wall-clock datetime builder: ``at(2024, 6, 3, 9, 30)``."""
    def _at(year, month, day, hour=10, minute=0):
        return datetime(year, month, day, hour, minute, tzinfo=BRASILIA_TZ)
    return _at
