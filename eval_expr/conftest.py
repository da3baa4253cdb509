import os

import pytest


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with no EVAL_EXPR_* variables and no .env file in the working directory."""
    for name in list(os.environ):
        if name.startswith("EVAL_EXPR_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    # load_dotenv writes straight into os.environ
    for name in list(os.environ):
        if name.startswith("EVAL_EXPR_"):
            del os.environ[name]


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")
