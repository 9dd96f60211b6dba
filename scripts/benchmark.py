#!/usr/bin/env python3
"""
Pathwatch Benchmark Script.

Performance benchmarks for path operations and change watcher delivery.
Requires Python 3.11+.

Usage:
    python scripts/benchmark.py [--watchers 100] [--directory /tmp]
"""

import argparse
import shutil
import statistics
import sys
import tempfile
import threading
import time
from pathlib import Path as StdPath
from typing import Callable, TypeVar

# Add src to path
sys.path.insert(0, str(StdPath(__file__).parent.parent / "src"))

from paths import Path
from utils.logger import configure_logging, get_logger
from watcher import ChangeWatcher, WatchRegistrationError


configure_logging()
logger = get_logger("benchmark")

T = TypeVar("T")


def benchmark(name: str, func: Callable[[], T], iterations: int = 5) -> tuple[T, dict]:
    """
    Benchmark a function.

    Returns:
        Tuple of (result, stats)
    """
    times = []
    result = None

    for i in range(iterations):
        start = time.perf_counter()
        result = func()
        elapsed = time.perf_counter() - start
        times.append(elapsed * 1000)  # Convert to ms

    stats = {
        "name": name,
        "iterations": iterations,
        "min_ms": min(times),
        "max_ms": max(times),
        "mean_ms": statistics.mean(times),
        "median_ms": statistics.median(times),
        "stdev_ms": statistics.stdev(times) if len(times) > 1 else 0,
    }

    return result, stats


def print_stats(stats: dict) -> None:
    """Print benchmark statistics."""
    print(f"\n  {stats['name']}:")
    print(f"    Mean:   {stats['mean_ms']:.2f}ms")
    print(f"    Median: {stats['median_ms']:.2f}ms")
    print(f"    Min:    {stats['min_ms']:.2f}ms")
    print(f"    Max:    {stats['max_ms']:.2f}ms")
    if stats["stdev_ms"] > 0:
        print(f"    StdDev: {stats['stdev_ms']:.2f}ms")


def run_path_benchmarks(count: int) -> None:
    """Benchmark the pure Path operations."""
    raw = [f"~//projects/./repo{i}/src/module{i}.py/" for i in range(count)]

    paths, stats = benchmark(
        f"Construct and standardize {count} paths",
        lambda: [Path(r).standardized for r in raw],
    )
    print_stats(stats)

    base = Path("~/projects")
    _, stats = benchmark(
        f"Ancestor queries ({count})",
        lambda: sum(base.is_ancestor_of(p) for p in paths),
    )
    print_stats(stats)

    _, stats = benchmark(
        f"Common ancestor ({count})",
        lambda: [p & paths[0] for p in paths],
    )
    print_stats(stats)

    _, stats = benchmark(
        f"Join and parent ({count})",
        lambda: [(p + "extra").parent for p in paths],
    )
    print_stats(stats)


def run_watcher_benchmark(directory: Path, watcher_count: int, timeout: float) -> None:
    """Open many watchers on one file and measure the delivery rate."""
    target = directory + "fan_out.txt"
    target.create_file(exist_ok=True)

    hits = [threading.Event() for _ in range(watcher_count)]
    watchers: list[ChangeWatcher] = []

    start = time.perf_counter()
    try:
        for index in range(watcher_count):
            watcher = ChangeWatcher.open(
                target, lambda w, index=index: hits[index].set()
            )
            watcher.wait_ready(5)
            watchers.append(watcher)
    except WatchRegistrationError as e:
        # Usually the per-user inotify instance limit
        print(f"    Stopped opening watchers after {len(watchers)}: {e}")
    opened_ms = (time.perf_counter() - start) * 1000

    start = time.perf_counter()
    for _ in watchers:
        with open(target, "a") as f:
            f.write("x")

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline and not all(h.is_set() for h in hits[: len(watchers)]):
        time.sleep(0.01)
    delivery_ms = (time.perf_counter() - start) * 1000

    delivered = sum(h.is_set() for h in hits[: len(watchers)])
    for watcher in watchers:
        watcher.close()

    print(f"\n  Watcher fan-out ({len(watchers)} watchers):")
    print(f"    Open:      {opened_ms:.2f}ms")
    print(f"    Delivery:  {delivery_ms:.2f}ms")
    if watchers:
        print(f"    Delivered: {delivered}/{len(watchers)} ({delivered / len(watchers):.1%})")

    logger.info(
        "watcher_benchmark_complete",
        watchers=len(watchers),
        delivered=delivered,
        delivery_ms=round(delivery_ms, 2),
    )


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run Pathwatch performance benchmarks"
    )
    parser.add_argument(
        "--paths",
        type=int,
        default=10_000,
        help="Number of paths for the path benchmarks",
    )
    parser.add_argument(
        "--watchers",
        type=int,
        default=100,
        help="Number of watchers opened on one file",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for deliveries",
    )
    parser.add_argument(
        "--directory",
        type=StdPath,
        default=None,
        help="Directory for the watched file (default: a fresh temp dir)",
    )

    args = parser.parse_args()

    if args.directory is not None and not args.directory.is_dir():
        print(f"Error: Directory does not exist: {args.directory}")
        sys.exit(1)

    workdir = args.directory or StdPath(tempfile.mkdtemp(prefix="pathwatch-"))

    print("\n=== Pathwatch Benchmarks ===")
    try:
        run_path_benchmarks(args.paths)
        run_watcher_benchmark(Path(str(workdir)), args.watchers, args.timeout)
    except KeyboardInterrupt:
        print("\nCancelled by user")
        sys.exit(1)
    finally:
        if args.directory is None:
            shutil.rmtree(workdir, ignore_errors=True)

    print("\n=== Benchmark Complete ===\n")


if __name__ == "__main__":
    main()
