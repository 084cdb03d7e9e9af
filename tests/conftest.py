from __future__ import annotations

from datetime import datetime

import pytest

from src.shift_booking.shift_booking.container import build_container


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 20, 9, 0, 0)


@pytest.fixture
def container():
    return build_container(backend="memory")
