"""Benchmark: ability check and filter translation latency: p50/p99.

Measures per-call latency of Ability.can() against a realistic member rule
set, and of filter_for() on the same rules.
"""
from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_abilities.ability import Ability
from aumos_abilities.builder import AbilityBuilder
from aumos_abilities.principal import Principal

_WARMUP: int = 100
_ITERATIONS: int = 5_000
_RULE_COUNT: int = 30  # Tens of rules per principal is the expected scale.


def _make_ability() -> Ability:
    """Build a member ability with a mix of conditional rules."""
    principal = Principal(id="42", roles=["member"])
    builder = AbilityBuilder(principal)
    for i in range(_RULE_COUNT):
        subject = "Doc" if i % 2 == 0 else f"Other{i}"
        builder.allow("read", subject, {"team": {"$in": [f"team-{i}", "core"]}})
        if i % 5 == 0:
            builder.deny("read", subject, {"status": "archived", "level": {"$gte": 3}})
    builder.allow(["read", "update"], "Doc", {"owner_id": principal.id})
    return builder.build()


def _measure(operation: str, call: Callable[[], object]) -> dict[str, object]:
    for _ in range(_WARMUP):
        call()

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        call()
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": operation,
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_decision_latency] {operation}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def bench_can_latency() -> dict[str, object]:
    """Benchmark Ability.can() on a conditional instance check."""
    ability = _make_ability()
    instance = {"owner_id": "7", "team": "core", "status": "archived", "level": 1}
    return _measure("ability_can_latency", lambda: ability.can("read", "Doc", instance))


def bench_filter_latency() -> dict[str, object]:
    """Benchmark filter_for() over the same rule set."""
    ability = _make_ability()
    return _measure("filter_for_latency", lambda: ability.filter_for("read", "Doc"))


def run_benchmark() -> dict[str, object]:
    """Entry point returning the can() benchmark result dict."""
    return bench_can_latency()


if __name__ == "__main__":
    results = [bench_can_latency(), bench_filter_latency()]
    print(json.dumps(results, indent=2))
