"""
Benchmark: sequential vs multi-threaded Huffman codec

Sweeps synthetic datasets, worker counts and both wire formats, with
repeated runs, and reports how the threaded frequency count and the
threaded decoder compare with their sequential baselines.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size_kb 1024 --workers 1,2,4,8,16
  python experiments.py --outdir results --generators uniform256,english_like --no_plots
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Callable, Sequence

import matplotlib.pyplot as plt

from codec import compress, decompress
from frequency import count_frequencies_sequential

WIRE_FORMATS = ("ascii", "packed")


def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


# Synthetic dataset generators

def _sample(size: int, weights: Sequence[float], symbols: Sequence[int], rng: random.Random) -> bytes:
    # inverse-CDF sampling with a binary search per byte
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = bytearray()
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        out.append(symbols[lo])
    return bytes(out)

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rest = (1.0 - dom_frac) / 255
    weights = [dom_frac if i == dominant else rest for i in range(256)]
    return _sample(size, weights, range(256), random.Random(seed))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(size, weights, range(alphabet), random.Random(seed))

def gen_english_like(size: int, seed: int = 0) -> bytes:
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample(size, weights, [ord(c) for c in chars], random.Random(seed))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: b"A" * size,
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(GENERATOR_REGISTRY)}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    dataset_name: str
    file_size_bytes: int
    run_id: int
    workers: int
    wire_format: str  # "ascii" or "packed"
    unique_symbols: int

    count_seq_ms: float
    count_par_ms: float
    decode_seq_ms: float
    decode_par_ms: float
    count_speedup: float
    decode_speedup: float

    compressed_bytes: int
    compression_ratio: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, workers: int, wire_format: str) -> MetricRow:
    if wire_format not in WIRE_FORMATS:
        raise ValueError(f"wire_format must be one of {WIRE_FORMATS}")
    packed = wire_format == "packed"

    compressed = compress(data, workers, packed=packed)
    restored = decompress(compressed.payload, workers, packed=packed)

    return MetricRow(
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        workers=workers,
        wire_format=wire_format,
        unique_symbols=len(count_frequencies_sequential(data)),
        count_seq_ms=compressed.stats.sequential_ms,
        count_par_ms=compressed.stats.parallel_ms,
        decode_seq_ms=restored.stats.sequential_ms,
        decode_par_ms=restored.stats.parallel_ms,
        count_speedup=compressed.stats.speedup,
        decode_speedup=restored.stats.speedup,
        compressed_bytes=len(compressed.payload),
        compression_ratio=len(compressed.payload) / max(1, len(data)),
        correctness_ok=1 if restored.buffer == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ("count_speedup", "decode_speedup", "count_par_ms", "decode_par_ms", "compression_ratio")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by dataset_name, file_size_bytes, workers, wire_format and compute mean/stdev
    """
    key_to: Dict[Tuple[str, int, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.dataset_name, r.file_size_bytes, r.workers, r.wire_format)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["dataset_name", "file_size_bytes", "workers", "wire_format", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            dataset_name, size_b, workers, wire_format = key
            row = {
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "workers": workers,
                "wire_format": wire_format,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def plot_speedup(rows: List[MetricRow], outdir: Path, field: str, label: str) -> None:
    ascii_rows = [r for r in rows if r.wire_format == "ascii"]
    if not ascii_rows:
        return

    datasets = sorted(set(r.dataset_name for r in ascii_rows))
    worker_counts = sorted(set(r.workers for r in ascii_rows))

    plt.figure()
    for d in datasets:
        y = []
        for n in worker_counts:
            vals = [getattr(r, field) for r in ascii_rows if r.dataset_name == d and r.workers == n]
            y.append(statistics.mean(vals) if vals else float("nan"))
        plt.plot(worker_counts, y, marker="o", label=d)
    plt.axhline(1.0, color="grey", linestyle="--", linewidth=0.8)
    plt.xticks(worker_counts)
    plt.xlabel("Worker Threads")
    plt.ylabel("Sequential Time / Threaded Time")
    plt.title(f"{label} Speedup vs Worker Count")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / f"{field}.png", dpi=200)
    plt.close()


def plot_compression_ratio(rows: List[MetricRow], outdir: Path) -> None:
    if not rows:
        return

    datasets = sorted(set(r.dataset_name for r in rows))
    x = list(range(len(datasets)))

    plt.figure()
    for fmt in WIRE_FORMATS:
        y = []
        for d in datasets:
            vals = [r.compression_ratio for r in rows if r.dataset_name == d and r.wire_format == fmt]
            y.append(statistics.mean(vals) if vals else float("nan"))
        plt.plot(x, y, marker="o", label=fmt)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Compressed Bytes / Original Bytes")
    plt.title("Compression Ratio by Dataset and Wire Format")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "compression_ratio.png", dpi=200)
    plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=3, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--size_kb", type=int, default=256, help="Dataset size in KB")
    ap.add_argument("--workers", type=str, default="1,2,4,8", help="Comma-separated worker counts")
    ap.add_argument("--generators", type=str, default="uniform256,zipf128,repetitive90,english_like",
                    help="Comma-separated dataset generator names")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")
    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    size_b = max(1, args.size_kb) * 1024
    worker_counts = [int(n) for n in parse_csv_list(args.workers)]
    if any(n < 1 for n in worker_counts):
        ap.error("worker counts must be at least 1")

    rows: List[MetricRow] = []
    for gen_name in parse_csv_list(args.generators):
        for run_id in range(1, args.runs + 1):
            data = generate_dataset(gen_name, size_b, args.seed + run_id)
            for workers in worker_counts:
                for wire_format in WIRE_FORMATS:
                    row = run_one(data, workers, wire_format)
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_speedup(rows, outdir, "count_speedup", "Frequency Count")
        plot_speedup(rows, outdir, "decode_speedup", "Decode")
        plot_compression_ratio(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
