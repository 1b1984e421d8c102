import pandas as pd
import pytest

from studyplanner import clock
from studyplanner.models import StudyBlock
from studyplanner.session import PlannerSession

MONDAY = pd.Timestamp("2025-11-17")
NOW = pd.Timestamp("2025-11-19 10:00")  # Wednesday


def block(block_id, start, end):
    return StudyBlock(id=block_id, start=pd.Timestamp(start), end=pd.Timestamp(end))


@pytest.fixture(autouse=True)
def reset_clock_offset():
    yield
    clock.set_clock_offset(0)


@pytest.fixture
def session():
    s = PlannerSession(now_fn=lambda: NOW)
    s.attach()
    yield s
    s.detach()
