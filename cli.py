"""
Command line front end

  mthuff compress input.txt output.huf -t 4
  mthuff decompress output.huf restored.txt -t 4
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from codec import TimingStats, compress, decompress
from errors import HuffmanError, InputNotFound
from frequency import DEFAULT_WORKERS


def read_input(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise InputNotFound(f"cannot open input file '{path}'") from None


def print_stats(title: str, stats: TimingStats) -> None:
    print(f"\n--- {title} Performance ---")
    print(f"Single-threaded time: {stats.sequential_ms:.3f} ms")
    print(f"Multi-threaded time:  {stats.parallel_ms:.3f} ms")
    print(f"Speedup factor:       {stats.speedup:.2f}x")


def run(args: argparse.Namespace) -> None:
    src = Path(args.input)
    dst = Path(args.output)
    data = read_input(src)

    if args.command == "compress":
        result = compress(data, args.threads, packed=args.packed)
        dst.write_bytes(result.payload)
        print_stats("Compression", result.stats)
        print(f"Compression completed. Output saved to '{dst}'.")
    else:
        result = decompress(data, args.threads, packed=args.packed)
        dst.write_bytes(result.buffer)
        print_stats("Decompression", result.stats)
        print(f"Decompression completed. Output saved to '{dst}'.")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mthuff", description="Multi-threaded Huffman compressor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log codec internals to stderr")
    sub = ap.add_subparsers(dest="command", required=True)

    for name, help_text in (("compress", "Compress a file"), ("decompress", "Decompress a file")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("input", help="Input file")
        p.add_argument("output", help="Output file")
        p.add_argument("-t", "--threads", type=int, default=DEFAULT_WORKERS, help="Number of worker threads")
        p.add_argument("--packed", action="store_true",
                       help="Pack payload bits 8 per byte (must match on decompress)")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.threads < 1:
        ap.error("--threads must be at least 1")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        run(args)
    except HuffmanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
