from __future__ import annotations

import pytest

from factories import make_record


@pytest.fixture
def healthy_years():
    return [
        make_record("2022", revenue=1000.0, ebitda=200.0, pat=100.0, ocf=180.0, ar=100.0, cash=200.0, equity=1000.0),
        make_record("2023", revenue=1100.0, ebitda=230.0, pat=115.0, ocf=200.0, ar=105.0, cash=220.0, equity=1100.0),
    ]
