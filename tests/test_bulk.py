from __future__ import annotations

import threading
import time

import pytest

from ipocheck.bulk import CANCELLED_MESSAGE, fill_missing, run_parallel, run_sequential
from ipocheck.models import (
    CheckResult,
    allotted_result,
    not_allotted_result,
    parse_units,
    units_result,
)


def _check(boid: str) -> CheckResult:
    # later BOIDs finish first
    time.sleep(0.01 * (5 - int(boid)))
    if boid == "3":
        raise RuntimeError("portal exploded")
    return allotted_result("demo", boid, int(boid))


def test_run_parallel_keeps_input_order_and_isolates_errors() -> None:
    boids = ["1", "2", "3", "4"]

    results = run_parallel(_check, boids, provider_id="demo", max_workers=4)

    assert [result.boid for result in results] == boids
    assert [result.units for result in results] == [1, 2, None, 4]
    assert results[2].success is False
    assert results[2].message == "Check failed: portal exploded"


def test_run_parallel_handles_duplicates_and_empty_input() -> None:
    assert run_parallel(_check, [], provider_id="demo", max_workers=4) == []

    results = run_parallel(_check, ["1", "1"], provider_id="demo", max_workers=100)

    assert [result.boid for result in results] == ["1", "1"]


def test_run_parallel_rebinds_boid() -> None:
    results = run_parallel(
        lambda boid: not_allotted_result("demo", "someone-else"),
        ["A"],
        provider_id="demo",
        max_workers=1,
    )

    assert results[0].boid == "A"


def test_run_sequential_honours_cancel() -> None:
    cancel = threading.Event()
    seen: list[str] = []

    def check(boid: str) -> CheckResult:
        seen.append(boid)
        cancel.set()
        return not_allotted_result("demo", boid)

    results = run_sequential(check, ["A", "B", "C"], provider_id="demo", cancel=cancel)

    assert seen == ["A"]
    assert [result.boid for result in results] == ["A", "B", "C"]
    assert [result.message for result in results[1:]] == [CANCELLED_MESSAGE] * 2


def test_fill_missing() -> None:
    done = not_allotted_result("demo", "A")

    results = fill_missing([done, None], ["A", "B"], provider_id="demo", message="gave up")

    assert results[0] is done
    assert (results[1].boid, results[1].success, results[1].message) == ("B", False, "gave up")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (10, 10),
        ("20", 20),
        ("20.00", 20),
        (15.0, 15),
        ("1,000", 1000),
        ("", None),
        (None, None),
        ("n/a", None),
        (-1, None),
        (True, None),
    ],
)
def test_parse_units(value: object, expected: int | None) -> None:
    assert parse_units(value) == expected


def test_units_result() -> None:
    allotted = units_result("demo", "A", 10, company="Example")
    zero = units_result("demo", "A", 0)

    assert (allotted.success, allotted.allotted, allotted.units) == (True, True, 10)
    assert allotted.message == "Allotted 10 units"
    assert (zero.success, zero.allotted, zero.units, zero.message) == (
        True,
        False,
        None,
        "Allotted 0 units",
    )
    assert allotted.to_dict()["company"] == "Example"
