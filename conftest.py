import pytest


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--stress-test",
        action="store_true",
        default=False,
        help="Run stress tests (slow randomized round-trip checks).",
    )
    parser.addoption(
        "--stress-trees",
        type=int,
        default=2000,
        help="Tree count for randomized round-trip tests.",
    )
    parser.addoption(
        "--stress-depth",
        type=int,
        default=5,
        help="Max nesting depth for randomized predicate trees.",
    )
    parser.addoption(
        "--stress-seed",
        type=int,
        default=1234,
        help="Random seed for stress tests.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "stress: long-running randomized round-trip tests",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if config.getoption("--stress-test"):
        return
    skip_stress = pytest.mark.skip(
        reason="use --stress-test to run stress tests"
    )
    for item in items:
        if "stress" in item.keywords:
            item.add_marker(skip_stress)
