#!/usr/bin/env python3
"""
datajoin Performance Benchmarks

Measures how binding and resolving scale with collection size and renders the
results with rich.

Usage:
    python scripts/benchmark.py            # Run all benchmarks
    python scripts/benchmark.py --config   # Show current benchmark configuration
    python scripts/benchmark.py --help     # Show help

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import sys
import time
from typing import Any, Callable, Dict

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from datajoin import DataJoin

# Configuration constants - adjust these to change benchmark behavior
TIME_LIMIT_SECONDS = 0.5  # Maximum time allowed per operation
STARTING_N = 100  # Starting collection size
SCALE_FACTOR = 2.0  # How much to multiply N by each iteration
CHURN_RATIO = 0.1  # Share of items replaced between versions


def _items(start: int, n: int):
    return [{"id": i, "value": i * 2} for i in range(start, start + n)]


def _bind_fresh(n: int) -> float:
    """Bind n items to an empty join."""
    items = _items(0, n)
    join = DataJoin()
    start = time.perf_counter()
    join.data(items, key="id")
    return time.perf_counter() - start


def _bind_churn(n: int) -> float:
    """Rebind with CHURN_RATIO of the items replaced, objects built by a factory."""
    join = DataJoin(create=dict, destroy=lambda obj: None)
    join.data(_items(0, n), key="id")
    join.all()

    shift = max(1, int(n * CHURN_RATIO))
    items = _items(shift, n)
    start = time.perf_counter()
    join.data(items, key="id")
    join.all()
    return time.perf_counter() - start


def _resolve_cached(n: int) -> float:
    """Read all() repeatedly on an unchanged version."""
    join = DataJoin(create=dict)
    join.data(_items(0, n), key="id")
    join.all()
    start = time.perf_counter()
    for _ in range(100):
        join.all()
    return time.perf_counter() - start


BENCHMARKS: Dict[str, Callable[[int], float]] = {
    "Fresh bind": _bind_fresh,
    "Churn rebind + resolve": _bind_churn,
    "Cached all() x100": _resolve_cached,
}


class DataJoinBenchmark:
    """Rich-formatted display for datajoin benchmarking."""

    def __init__(self):
        self.console = Console()
        self.results: Dict[str, Dict[str, Any]] = {}

    def run_benchmarks(self):
        """Run all benchmarks and display results."""
        started = time.time()
        self.console.print(
            Panel(Align.center("datajoin Benchmark Suite"), border_style="blue")
        )

        for name, operation in BENCHMARKS.items():
            self.console.print(f"[yellow]Running {name}...[/yellow]")
            self.results[name] = self._scale(operation)
            result = self.results[name]
            self.console.print(
                f"[green]✓[/green] {name}: {result['items_per_second']:,.0f} items/sec "
                f"({result['max_n']} items)"
            )

        self._display_final_results(started)

    def _scale(self, operation: Callable[[int], float]) -> Dict[str, Any]:
        """Grow N until one operation exceeds TIME_LIMIT_SECONDS."""
        n = STARTING_N
        best = {"max_n": 0, "operation_time": 0.0, "items_per_second": 0.0}

        while True:
            elapsed = operation(n)
            if elapsed > TIME_LIMIT_SECONDS:
                break
            best = {
                "max_n": n,
                "operation_time": elapsed,
                "items_per_second": n / elapsed if elapsed > 0 else float("inf"),
            }
            n = int(n * SCALE_FACTOR)

        return best

    def _display_final_results(self, started: float):
        table = Table(title="Final Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Max Workload", style="magenta")
        table.add_column("Time", style="green", justify="right")
        table.add_column("Throughput", style="green", justify="right")

        for name, result in self.results.items():
            table.add_row(
                name,
                f"{result['max_n']:,} items",
                f"{result['operation_time'] * 1000:.1f} ms",
                f"{result['items_per_second'] / 1000:.1f}K items/sec",
            )

        self.console.print()
        self.console.print(table)
        self.console.print(f"\nCompleted in {time.time() - started:.1f}s")


def show_config():
    console = Console()
    table = Table(title="Benchmark Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("TIME_LIMIT_SECONDS", str(TIME_LIMIT_SECONDS))
    table.add_row("STARTING_N", str(STARTING_N))
    table.add_row("SCALE_FACTOR", str(SCALE_FACTOR))
    table.add_row("CHURN_RATIO", str(CHURN_RATIO))
    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="datajoin performance benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show benchmark configuration"
    )
    args = parser.parse_args()

    if args.config:
        show_config()
        return

    DataJoinBenchmark().run_benchmarks()


if __name__ == "__main__":
    main()
