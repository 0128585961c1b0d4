import pytest

from calcscript.evaluator import evaluate_text
from calcscript.runtime import Runtime
from calcscript.values import reduce


@pytest.fixture
def runtime():
    return Runtime()


@pytest.fixture
def run(runtime):
    """Evaluate text against the shared runtime and return the reduced result."""
    def _run(text):
        return reduce(evaluate_text(text, runtime))
    return _run


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")
