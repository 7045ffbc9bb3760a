"""
Pytest configuration and shared fixtures for kernel tests.
"""
from pathlib import Path

import pytest

from jsii_kernel.kernel.engine import KernelEngine
from jsii_kernel.kernel.trace import TraceOptions

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def calc_path():
    """Filesystem locator of the calc type library."""
    return str(FIXTURES / "calc.py")


@pytest.fixture
def widgets_path():
    """Filesystem locator of the package-shaped widgets library."""
    return str(FIXTURES / "widgets")


@pytest.fixture
def engine():
    """A fresh kernel per test."""
    return KernelEngine()


@pytest.fixture
def calc_engine(engine, calc_path):
    """A kernel with the calc library loaded."""
    engine.load("calc", calc_path)
    return engine


@pytest.fixture
def traced_engine(calc_path):
    """A kernel with tracing on and calc loaded."""
    engine = KernelEngine(trace=TraceOptions(enabled=True))
    engine.load("calc", calc_path)
    return engine
