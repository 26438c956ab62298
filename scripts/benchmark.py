#!/usr/bin/env python3
"""
rstream Performance Benchmarks

Measures how fast streams are created, written, fanned out to many subscribers
and fed by asynchronous producers, and renders the results with rich.

Usage:
    python scripts/benchmark.py           # Run all benchmarks
    python scripts/benchmark.py --config  # Show current benchmark configuration
    python scripts/benchmark.py --help    # Show help

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import asyncio
import sys
import time
from typing import Any, Callable, Dict

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rstream import Deferred, Stream

TIME_LIMIT_SECONDS = 0.5
STARTING_N = 100
SCALE_FACTOR = 2.0


class StreamBenchmark:
    """Rich-formatted display for rstream performance benchmarking."""

    def __init__(self, quiet: bool = False):
        self.console = Console()
        self.quiet = quiet
        self.results: Dict[str, Dict[str, Any]] = {}

    def run_benchmarks(self):
        start_time = time.time()

        self._display_header()

        self._run("creation", "Stream Creation", self._creation)
        self._run("writes", "Sequential Writes", self._writes)
        self._run("fanout", "Subscriber Fan-out", self._fanout)
        self._run("producers", "Producer Resolution", self._producers)

        self._display_final_results(start_time)

    # ------------------------------------------------------------------
    # operations; each returns (operations performed, seconds measured)
    # ------------------------------------------------------------------

    @staticmethod
    def _creation(n: int):
        start_time = time.perf_counter()
        streams = [Stream(i) for i in range(n)]
        elapsed = time.perf_counter() - start_time
        assert streams[-1]() == n - 1
        return n, elapsed

    @staticmethod
    def _writes(n: int):
        s = Stream(0)
        s.map(lambda v: None)

        start_time = time.perf_counter()
        for i in range(n):
            s(i)
        elapsed = time.perf_counter() - start_time

        assert s() == n - 1
        return n, elapsed

    @staticmethod
    def _fanout(n: int):
        s = Stream()
        received = []
        for _ in range(n):
            s.map(received.append)

        start_time = time.perf_counter()
        s(100)
        elapsed = time.perf_counter() - start_time

        assert len(received) == n
        return n, elapsed

    @staticmethod
    def _producers(n: int):
        async def resolve_all():
            s = Stream()
            received = []
            s.map(received.append)
            deferreds = [Deferred() for _ in range(n)]
            for deferred in deferreds:
                s(deferred)

            start_time = time.perf_counter()
            for i, deferred in enumerate(deferreds):
                deferred.resolve(i)
            while len(received) < n:
                await asyncio.sleep(0)
            return time.perf_counter() - start_time

        return n, asyncio.run(resolve_all())

    # ------------------------------------------------------------------
    # driver
    # ------------------------------------------------------------------

    def _run(self, key: str, name: str, operation: Callable[[int], Any]):
        if not self.quiet:
            self.console.print(f"[yellow]Running {name}...[/yellow]")

        result = self._run_adaptive_benchmark(operation)
        self.results[key] = dict(result, name=name)

        if not self.quiet:
            self.console.print(
                f"[green]✓[/green] {name}: {result['operations_per_second']:,.0f} ops/sec ({result['max_n']} items)"
            )

    def _run_adaptive_benchmark(self, operation: Callable[[int], Any]):
        """Scale the workload until one run takes at least the time limit."""
        n = STARTING_N

        while True:
            start_time = time.time()
            performed, measured = operation(n)
            wall_time = time.time() - start_time

            result = {
                "max_n": n,
                "operation_time": measured,
                "operations_per_second": performed / max(measured, 1e-9),
            }

            if wall_time >= TIME_LIMIT_SECONDS:
                return result
            n = int(n * SCALE_FACTOR)

    def _display_header(self):
        header = Panel(
            Align.center("rstream Performance Benchmark Suite"),
            title="rstream Benchmarks",
            border_style="blue",
        )
        self.console.print(header)
        self.console.print()

    def _display_final_results(self, start_time: float):
        elapsed = time.time() - start_time

        table = Table(title="Final Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Max Workload", style="magenta", justify="right")
        table.add_column("Performance", style="green", justify="right")
        table.add_column("Latency", style="yellow", justify="right")

        for result in self.results.values():
            latency_us = result["operation_time"] / max(result["max_n"], 1) * 1e6
            table.add_row(
                result["name"],
                f"{result['max_n']:,}",
                f"{result['operations_per_second']:,.0f} ops/sec",
                f"{latency_us:.2f}μs",
            )

        self.console.print()
        self.console.print(table)
        self.console.print()
        self.console.print(f"[dim]Benchmark completed in {elapsed:.2f} seconds[/dim]")


def print_config():
    """Print the current benchmark configuration."""
    print("rstream Benchmark Configuration:")
    print(f"  TIME_LIMIT_SECONDS: {TIME_LIMIT_SECONDS}")
    print(f"  STARTING_N: {STARTING_N}")
    print(f"  SCALE_FACTOR: {SCALE_FACTOR}")


def main():
    """Main entry point for the benchmark script."""
    parser = argparse.ArgumentParser(description="rstream Performance Benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output, show only final results",
    )

    args = parser.parse_args()

    if args.config:
        print_config()
        return

    if not args.quiet:
        print_config()
        print()

    StreamBenchmark(quiet=args.quiet).run_benchmarks()


if __name__ == "__main__":
    main()
