"""
Pytest configuration and shared fixtures
"""

import random

import pyarrow as pa
import pytest


@pytest.fixture
def scenario_values():
    """Regression fixture: mode 1 (count 2), sample variance 52.875 / 7"""
    return [3, 1, 4, 1, 5, 9, 2, 6]


@pytest.fixture
def scenario_batch(scenario_values):
    """Scenario values as a single-column record batch"""
    return pa.RecordBatch.from_arrays([pa.array(scenario_values, type=pa.int64())], names=["x"])


@pytest.fixture
def sales_table():
    """Small table with a group column and nullable value columns"""
    return pa.table(
        {
            "city": ["NYC", "NYC", "LA", "LA", "NYC", "SF", "LA", "NYC"],
            "product": ["Widget", "Gadget", "Widget", "Widget", "Widget", None, "Gadget", "Gadget"],
            "amount": pa.array([100, 200, 150, None, 120, 300, 250, 200], type=pa.int64()),
        }
    )


@pytest.fixture
def rng():
    """Seeded random generator so property tests are reproducible"""
    return random.Random(20241019)
