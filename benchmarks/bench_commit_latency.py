"""Benchmark: Commit latency — per-commit p50/p99.

Measures the wall-clock latency of DocumentSession.commit() for a small
batch of stores against a file-backed store, with and without fsync.
"""
from __future__ import annotations

import json
import tempfile
import time
from pathlib import Path

from jsondoc import DocumentStore, FilePersistence

_WARMUP: int = 20
_ITERATIONS: int = 500
_BATCH: int = 5


def bench_commit_latency(fsync: bool) -> dict[str, object]:
    """Benchmark commit() latency for batches of ``_BATCH`` documents.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, commits_per_second,
    avg_latency_ms, p50_latency_ms, p99_latency_ms.
    """
    latencies_ms: list[float] = []
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(FilePersistence(tmpdir, fsync=fsync))
        with store.open_session("bench") as session:
            for i in range(_WARMUP + _ITERATIONS):
                for j in range(_BATCH):
                    session.store({"iteration": i, "n": j}, f"docs/d{j}")
                t0 = time.perf_counter()
                session.commit()
                if i >= _WARMUP:
                    latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": f"commit_latency_fsync_{'on' if fsync else 'off'}",
        "iterations": _ITERATIONS,
        "batch_size": _BATCH,
        "total_seconds": round(total, 4),
        "commits_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_commit_latency] {result['operation']}: "
        f"p50={result['p50_latency_ms']:.4f}ms  "
        f"p99={result['p99_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> list[dict[str, object]]:
    """Entry point returning one result dict per fsync setting."""
    return [bench_commit_latency(fsync=False), bench_commit_latency(fsync=True)]


if __name__ == "__main__":
    results = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "commit_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
