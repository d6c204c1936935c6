import random
import string
import sys
import time
from pathlib import Path

import pytest

# Allow tests to run without installing the package.
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_ROOT))

from runtime_cfg.evaluator import matches  # noqa: E402
from runtime_cfg.parser import parse_str  # noqa: E402
from runtime_cfg.predicate import (  # noqa: E402
    Predicate,
    all_,
    any_,
    name,
    name_value,
    not_,
)
from runtime_cfg.printer import to_text  # noqa: E402

KEYS = ["unix", "windows", "target_os", "feature", "all", "any", "not", "true"]
VALUE_CHARS = string.ascii_letters + string.digits + ' "\\\n\t\'=,()\x00\x7f'


def _random_value(rng: random.Random) -> str:
    return "".join(rng.choice(VALUE_CHARS) for _ in range(rng.randint(0, 6)))


def _random_predicate(rng: random.Random, depth: int) -> Predicate:
    choice = rng.randint(0, 4 if depth > 0 else 1)
    if choice == 0:
        return name(rng.choice(KEYS))
    if choice == 1:
        return name_value(rng.choice(KEYS), _random_value(rng))
    if choice == 4:
        return not_(_random_predicate(rng, depth - 1))
    items = [_random_predicate(rng, depth - 1) for _ in range(rng.randint(0, 3))]
    return all_(items) if choice == 2 else any_(items)


def _random_environment(rng: random.Random) -> list[tuple[str, str | None]]:
    flags: list[tuple[str, str | None]] = []
    for _ in range(rng.randint(0, 5)):
        value = None if rng.random() < 0.4 else _random_value(rng)
        flags.append((rng.choice(KEYS), value))
    return flags


def test_round_trip_small_sample() -> None:
    rng = random.Random(7)
    for _ in range(200):
        predicate = _random_predicate(rng, 3)
        text = to_text(predicate)
        assert parse_str(text) == predicate, text
        assert to_text(parse_str(text)) == text


@pytest.mark.stress
def test_round_trip_and_negation_stress(request: pytest.FixtureRequest) -> None:
    trees = request.config.getoption("--stress-trees")
    depth = request.config.getoption("--stress-depth")
    rng = random.Random(request.config.getoption("--stress-seed"))
    start = time.perf_counter()
    for _ in range(trees):
        predicate = _random_predicate(rng, depth)
        text = to_text(predicate)
        assert parse_str(text) == predicate, text
        env = _random_environment(rng)
        assert matches(not_(predicate), env) is (not matches(predicate, env))
    elapsed = time.perf_counter() - start
    print(f"checked {trees} trees in {elapsed:.2f}s")
