"""
Compress / decompress byte buffers with a Huffman code

Wire format:
    serialized tree (see treeio) | b"\\n" | payload

The payload is either one ASCII '0'/'1' byte per bit (the default, readable
with any text viewer) or, with packed=True, one byte giving the number of
zero pad bits followed by the bits packed MSB first. Nothing on the wire says
which one was used, so decompress must be given the same `packed` flag.

Both directions time a sequential and a parallel variant of their hot step
(frequency counting when compressing, bit stream decoding when
decompressing) and report the two timings alongside the result.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Tuple

from errors import MalformedPayload, MalformedTree, TruncatedPayload
from frequency import DEFAULT_WORKERS, count_frequencies, count_frequencies_sequential
from huffman import HuffmanNode, build_huffman_tree, generate_huffman_codes, huffman_decode, huffman_encode
from treeio import deserialize_tree, serialize_tree

logger = logging.getLogger(__name__)

DELIMITER = ord('\n')


def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0


@dataclass
class TimingStats:
    sequential_ms: float = 0.0
    parallel_ms: float = 0.0

    @property
    def speedup(self) -> float:
        if self.parallel_ms == 0:
            return 1.0 if self.sequential_ms == 0 else float("inf")
        return self.sequential_ms / self.parallel_ms


@dataclass
class CompressResult:
    payload: bytes
    stats: TimingStats = field(default_factory=TimingStats)


@dataclass
class DecompressResult:
    buffer: bytes
    stats: TimingStats = field(default_factory=TimingStats)


def _check_workers(workers: int) -> None:
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")


# Bit packing

def pack_bits(bits: str) -> Tuple[bytes, int]:
    """
    Packs a '0'/'1' string MSB first.
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    pad_bits = (8 - len(bits) % 8) % 8
    padded = bits + '0' * pad_bits
    packed = bytes(int(padded[i:i + 8], 2) for i in range(0, len(padded), 8))
    return packed, pad_bits


def unpack_bits(packed: bytes, pad_bits: int) -> str:
    if not 0 <= pad_bits <= 7:
        raise MalformedPayload(f"pad bit count {pad_bits} out of range")
    if pad_bits and not packed:
        raise MalformedPayload("pad bits given for an empty payload")
    bits = ''.join([format(byte, '08b') for byte in packed])
    return bits[:len(bits) - pad_bits]


# Parallel decoding

def find_split_points(bits: str, root: HuffmanNode, parts: int) -> List[int]:
    """
    Codeword-aligned boundaries for splitting bits into at most `parts` spans.

    Walks the tree without emitting anything and, for every target offset
    i * len(bits) // parts, records the first position at or after it where
    the walk is back at the root. Returns [0, ..., len(bits)]; spans between
    consecutive points are never empty and always start on a codeword.
    """
    length = len(bits)
    targets = [i * length // parts for i in range(1, parts)]

    if root.is_leaf:
        # every bit is a whole codeword
        points = targets
    else:
        points = []
        t = 0
        node = root
        for i, bit in enumerate(bits):
            if t == len(targets):
                break
            if node is root:
                while t < len(targets) and targets[t] <= i:
                    points.append(i)
                    t += 1
            if bit == '0':
                node = node.left
            elif bit == '1':
                node = node.right
            else:
                raise MalformedPayload(f"unexpected bit {bit!r} at offset {i}")
            if node.is_leaf:
                node = root

    inner = sorted({p for p in points if 0 < p < length})
    return [0] + inner + [length] if length else [0]


def decode_parallel(bits: str, root: HuffmanNode, workers: int = DEFAULT_WORKERS) -> bytes:
    """
    Decode bits with `workers` threads over root-aligned spans.

    Each worker walks its own span from the root with its own pointer and
    output buffer; outputs are joined in span order.
    """
    _check_workers(workers)
    if workers == 1:
        return huffman_decode(bits, root)

    points = find_split_points(bits, root, workers)
    spans = list(zip(points[:-1], points[1:]))
    logger.debug("decoding %d bits in %d spans: %s", len(bits), len(spans), points)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(huffman_decode, bits, root, start, end) for start, end in spans]
        segments = [f.result() for f in futures]
    return b''.join(segments)


# Public API

def compress(buffer: bytes, workers: int = DEFAULT_WORKERS, packed: bool = False) -> CompressResult:
    _check_workers(workers)
    if not buffer:
        return CompressResult(b'')

    t0 = now_ns()
    count_frequencies_sequential(buffer)
    t1 = now_ns()
    frequency_table = count_frequencies(buffer, workers)
    t2 = now_ns()
    stats = TimingStats(ns_to_ms(t1 - t0), ns_to_ms(t2 - t1))

    root = build_huffman_tree(frequency_table)
    code_map = generate_huffman_codes(root)
    bits = huffman_encode(buffer, code_map)

    out = bytearray(serialize_tree(root))
    out.append(DELIMITER)
    if packed:
        data, pad_bits = pack_bits(bits)
        out.append(pad_bits)
        out += data
    else:
        out += bits.encode('ascii')

    logger.debug("compressed %d bytes to %d (%d symbols, %d bits)",
                 len(buffer), len(out), len(frequency_table), len(bits))
    return CompressResult(bytes(out), stats)


def decompress(buffer: bytes, workers: int = DEFAULT_WORKERS, packed: bool = False) -> DecompressResult:
    _check_workers(workers)
    if not buffer:
        return DecompressResult(b'')

    root, pos = deserialize_tree(buffer)
    if pos >= len(buffer) or buffer[pos] != DELIMITER:
        raise MalformedTree(f"missing delimiter after tree at offset {pos}")
    body = buffer[pos + 1:]

    if packed:
        if not body:
            raise TruncatedPayload("packed payload is missing its pad byte")
        bits = unpack_bits(body[1:], body[0])
    else:
        bits = bytes(body).decode('latin-1')

    t0 = now_ns()
    huffman_decode(bits, root)
    t1 = now_ns()
    decoded = decode_parallel(bits, root, workers)
    t2 = now_ns()
    stats = TimingStats(ns_to_ms(t1 - t0), ns_to_ms(t2 - t1))

    logger.debug("decompressed %d bytes to %d", len(buffer), len(decoded))
    return DecompressResult(decoded, stats)
