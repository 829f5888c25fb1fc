#!/usr/bin/env python3
"""
Performance benchmark for pushxml against other XML parsers.
Parses either generated documents or every *.xml file in a directory, all
loaded into memory before timing starts.
"""

# ruff: noqa: PLC0415, BLE001
from __future__ import annotations

import argparse
import multiprocessing
import os
import pathlib
import random
import sys
import threading
import time

try:
    import psutil

    _PSUTIL_AVAILABLE = True
except ImportError:
    psutil = None
    _PSUTIL_AVAILABLE = False


class MemoryMonitor:
    def __init__(self, pid: int | None = None, sample_interval: float = 0.01):
        """
        pid: process ID to monitor (default: current process).
        sample_interval: seconds between samples (default 10ms).
        """
        self.sample_interval = sample_interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        target_pid = pid if pid is not None else os.getpid()
        self._proc = psutil.Process(target_pid) if _PSUTIL_AVAILABLE else None
        self.start_rss = None
        self.end_rss = None
        self.peak_rss = None
        self.last_rss = None
        self.samples = 0

    def _get_rss(self) -> int | None:
        if not self._proc:
            return None
        try:
            return self._proc.memory_info().rss
        except psutil.Error:
            return None

    def start(self):
        if not _PSUTIL_AVAILABLE:
            return
        self.start_rss = self._get_rss()
        self.peak_rss = self.start_rss
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop.is_set():
            rss = self._get_rss()
            if rss is not None:
                self.last_rss = rss
                if self.peak_rss is None or rss > self.peak_rss:
                    self.peak_rss = rss
                self.samples += 1
            self._stop.wait(self.sample_interval)

    def stop(self):
        if not _PSUTIL_AVAILABLE:
            return
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=1.0)

        # The child may already be gone; fall back to the last sample.
        current = self._get_rss()
        if current and current > 0:
            self.end_rss = current
        else:
            self.end_rss = self.last_rss

    def to_dict(self) -> dict:
        if not _PSUTIL_AVAILABLE:
            return {"memory_note": "psutil not installed; memory metrics skipped"}

        def mb(x):
            return (x or 0) / (1024 * 1024)

        start_mb = mb(self.start_rss)
        end_mb = mb(self.end_rss)
        delta_mb = end_mb - start_mb if (self.end_rss is not None and self.start_rss is not None) else 0.0
        return {
            "rss_start_mb": start_mb,
            "rss_end_mb": end_mb,
            "rss_delta_mb": delta_mb,
            "rss_peak_mb": mb(self.peak_rss),
            "mem_samples": self.samples,
        }


def generate_document(rng: random.Random, elements: int) -> bytes:
    """Build a record-style document with attributes, text and entities."""
    parts = ['<?xml version="1.0" encoding="utf-8"?>\n<catalog>\n']
    for i in range(elements):
        parts.append(
            f'  <item id="{i}" sku="S-{rng.randint(1000, 9999)}" note="a &amp; b">\n'
            f"    <name>Item {i} &lt;{rng.choice(['red', 'green', 'blue'])}&gt;</name>\n"
            f"    <price currency='EUR'>{rng.random() * 100:.2f}</price>\n"
            f"    <![CDATA[raw <payload> {i}]]>\n"
            f"    <!-- comment {i} -->\n"
            "  </item>\n",
        )
    parts.append("</catalog>\n")
    return "".join(parts).encode("utf-8")


def load_documents(directory: pathlib.Path, limit: int | None = None) -> list[tuple[str, bytes]]:
    if not directory.exists():
        print(f"ERROR: Directory not found at {directory}")
        sys.exit(1)
    files = sorted(directory.glob("*.xml"))
    if limit:
        files = files[:limit]
    return [(path.name, path.read_bytes()) for path in files]


def _summarize(all_times: list, errors: int, error_files: list) -> dict:
    return {
        "total_time": sum(all_times),
        "mean_time": sum(all_times) / len(all_times) if all_times else 0,
        "min_time": min(all_times) if all_times else 0,
        "max_time": max(all_times) if all_times else 0,
        "errors": errors,
        "success_count": len(all_times),
        "error_files": error_files,
    }


def _time_each(parse_fn, documents: list, iterations: int) -> dict:
    all_times = []
    errors = 0
    error_files = []
    for _ in range(iterations):
        for filename, data in documents:
            try:
                start = time.perf_counter()
                parse_fn(data)
                all_times.append(time.perf_counter() - start)
            except Exception as e:
                errors += 1
                error_files.append((filename, str(e)))
    return _summarize(all_times, errors, error_files)


def benchmark_pushxml(documents: list, iterations: int = 1) -> dict:
    """Benchmark pushxml with a consumer that ignores every event."""
    from pushxml import Consumer, parse

    consumer = Consumer()
    return _time_each(lambda data: parse(consumer, data), documents, iterations)


def benchmark_pushxml_decoded(documents: list, iterations: int = 1) -> dict:
    """Benchmark pushxml with entity decoding of text and attribute values."""
    from pushxml import EventRecorder, parse

    return _time_each(lambda data: parse(EventRecorder(decode=True), data), documents, iterations)


def benchmark_lxml(documents: list, iterations: int = 1) -> dict:
    """Benchmark lxml building an element tree."""
    try:
        from lxml import etree
    except ImportError:
        return {"error": "lxml not installed (pip install lxml)"}
    return _time_each(etree.fromstring, documents, iterations)


def benchmark_expat(documents: list, iterations: int = 1) -> dict:
    """Benchmark the standard library's expat binding with no handlers."""
    from xml.parsers import expat

    def parse_fn(data):
        expat.ParserCreate().Parse(data, True)

    return _time_each(parse_fn, documents, iterations)


def _benchmark_worker(bench_fn, documents, iterations, queue):
    """Worker function to run benchmark in a separate process."""
    try:
        queue.put(bench_fn(documents, iterations))
    except Exception as e:
        queue.put({"error": str(e)})


def run_benchmark_isolated(bench_fn, documents, iterations, args):
    """Run benchmark in a separate process to isolate memory usage."""
    if args.no_mem or not _PSUTIL_AVAILABLE:
        return bench_fn(documents, iterations)

    import gc

    gc.collect()

    queue = multiprocessing.Queue()
    p = multiprocessing.Process(target=_benchmark_worker, args=(bench_fn, documents, iterations, queue))
    p.start()

    mon = MemoryMonitor(pid=p.pid, sample_interval=max(0.0005, args.mem_sample_ms / 1000.0))
    mon.start()

    res = None
    try:
        res = queue.get()
    finally:
        mon.stop()
        p.join()

    if res and "error" not in res:
        res.update(mon.to_dict())
    return res


BENCHMARKS = {
    "pushxml": benchmark_pushxml,
    "pushxml-decode": benchmark_pushxml_decoded,
    "lxml": benchmark_lxml,
    "expat": benchmark_expat,
}


def print_results(results: dict, file_count: int, iterations: int = 1):
    """Pretty print benchmark results."""
    print("\n" + "=" * 90)
    print(f"BENCHMARK RESULTS ({file_count} XML documents x {iterations} iterations)")
    print("=" * 90)
    print(f"\n{'Parser':<16} {'Total (s)':<10} {'Mean (ms)':<10} {'Peak (MB)':<10} {'Delta (MB)':<10} {'Errors':<8}")
    print("-" * 90)

    baseline = results.get("pushxml", {}).get("total_time", 0)
    for name, result in results.items():
        if "error" in result:
            print(f"{name:<16} {result['error']}")
            continue
        total = result["total_time"]
        mean_ms = result["mean_time"] * 1000
        if "rss_peak_mb" in result:
            mem_str = f"{result['rss_peak_mb']:>10.1f} {result['rss_delta_mb']:>10.1f}"
        else:
            mem_str = f"{'n/a':>10} {'n/a':>10}"
        ratio = ""
        if name != "pushxml" and baseline > 0 and total > 0:
            ratio = f" ({total / baseline:.2f}x)"
        print(f"{name:<16} {total:<10.3f} {mean_ms:<10.3f} {mem_str} {result['errors']:<8}{ratio}")

    print("\n" + "=" * 90)
    for name, result in results.items():
        error_files = result.get("error_files", [])
        if error_files:
            print(f"\nErrors for {name}:")
            for filename, error_msg in error_files:
                print(f"  {filename}: {error_msg}")


def main():
    parser = argparse.ArgumentParser(description="Benchmark pushxml against other XML parsers")
    parser.add_argument("--directory", type=pathlib.Path, help="Parse every *.xml file in this directory")
    parser.add_argument("--documents", type=int, default=50, help="Generated documents (default: 50)")
    parser.add_argument("--elements", type=int, default=500, help="Items per generated document (default: 500)")
    parser.add_argument("--limit", type=int, default=0, help="Limit number of files loaded from --directory")
    parser.add_argument("--iterations", type=int, default=5, help="Iterations to average over (default: 5)")
    parser.add_argument("--seed", type=int, default=1, help="Seed for generated documents")
    parser.add_argument(
        "--parsers",
        nargs="+",
        choices=sorted(BENCHMARKS),
        default=list(BENCHMARKS),
        help="Parsers to benchmark (default: all)",
    )
    parser.add_argument("--no-mem", action="store_true", help="Disable memory measurement (RSS sampling)")
    parser.add_argument(
        "--mem-sample-ms", type=float, default=10.0, help="Memory sampling interval in milliseconds (default: 10ms)",
    )
    args = parser.parse_args()

    if args.directory:
        print(f"Loading XML files from {args.directory}...")
        documents = load_documents(args.directory, args.limit or None)
    else:
        rng = random.Random(args.seed)
        documents = [(f"generated-{i}", generate_document(rng, args.elements)) for i in range(args.documents)]
    if not documents:
        print("ERROR: No XML documents loaded")
        sys.exit(1)

    total_bytes = sum(len(data) for _, data in documents)
    print(f"Loaded {len(documents)} documents, {total_bytes / 1024 / 1024:.2f} MB")
    if not _PSUTIL_AVAILABLE and not args.no_mem:
        print("Note: psutil not installed; memory metrics will be skipped. Install with: pip install psutil")

    results = {}
    for name in args.parsers:
        print(f"\nBenchmarking {name}...", end="", flush=True)
        res = run_benchmark_isolated(BENCHMARKS[name], documents, args.iterations, args)
        results[name] = res
        if "error" in res:
            print(f" SKIPPED ({res['error']})")
        else:
            print(f" DONE ({res['total_time']:.3f}s)")

    print_results(results, len(documents), args.iterations)


if __name__ == "__main__":
    main()
