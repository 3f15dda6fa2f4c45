import heapq
import logging
from typing import Dict, Optional

from errors import EmptyInput, MalformedPayload, TruncatedPayload, UnknownSymbol

logger = logging.getLogger(__name__)


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol: Optional[int], frequency: int, order: int = 0):
        self.symbol = symbol    # byte or None
        self.frequency = frequency
        self.order = order      # creation serial, breaks frequency ties
        self.left = None
        self.right = None

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None

    def __lt__(self, other):
        # equal frequencies: older node first, so the heap is deterministic
        return (self.frequency, self.order) < (other.frequency, other.order)

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode({self.symbol!r}, {self.frequency})"
        return f"HuffmanNode(None, {self.frequency}, {self.left!r}, {self.right!r})"


def build_huffman_tree(frequency_table: Dict[int, int]) -> HuffmanNode: # frequency_table: dict of symbol -> frequency
    """
    Greedy Huffman merge.

    Leaves are seeded in ascending symbol order with serials 0..k-1 and every
    merged node takes the next serial. The first node popped becomes the left
    child, the second the right child. With a single distinct symbol the leaf
    itself is returned as the root.
    """
    if not frequency_table:
        raise EmptyInput("cannot build a tree from an empty frequency table")

    priority_queue = [HuffmanNode(symbol, frequency, order)
                      for order, (symbol, frequency) in enumerate(sorted(frequency_table.items()))]
    heapq.heapify(priority_queue)
    serial = len(priority_queue)

    # Build the tree
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, left.frequency + right.frequency, serial) # internal node with combined frequency
        merged_node.left = left
        merged_node.right = right
        serial += 1
        heapq.heappush(priority_queue, merged_node)

    logger.debug("built tree over %d symbols (%d nodes)", len(frequency_table), serial)
    return priority_queue[0] # root of the tree


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]: # root: root of the Huffman tree
    # Single-symbol tree: the root is a leaf, force a one-bit code
    if root.is_leaf:
        return {root.symbol: "0"}

    codes = {}
    def generate_codes_helper(node, current_code): # depth is bounded by the 256-symbol alphabet
        if node.is_leaf:
            codes[node.symbol] = current_code
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    return codes


def huffman_encode(data: bytes, code_map: Dict[int, str]) -> str: # data: input bytes to encode, code_map: dict of symbol -> Huffman code
    try:
        return ''.join([code_map[byte] for byte in data])
    except KeyError as e:
        raise UnknownSymbol(e.args[0]) from None


def huffman_decode(bitstring: str, root: HuffmanNode, start: int = 0, end: Optional[int] = None) -> bytes:
    """
    Walk the tree once per bit of bitstring[start:end].

    The span must begin at a codeword boundary; it must also end on one, or
    TruncatedPayload is raised.
    """
    if end is None:
        end = len(bitstring)
    decoded_bytes = bytearray()

    if root.is_leaf:
        # every codeword is the single bit '0'
        for i in range(start, end):
            if bitstring[i] != '0':
                raise MalformedPayload(f"unexpected bit {bitstring[i]!r} at offset {i}")
        return bytes([root.symbol]) * (end - start)

    current_node = root
    for i in range(start, end):
        bit = bitstring[i]
        if bit == '0':
            current_node = current_node.left
        elif bit == '1':
            current_node = current_node.right
        else:
            raise MalformedPayload(f"unexpected bit {bit!r} at offset {i}")
        if current_node.is_leaf: # reached a leaf
            decoded_bytes.append(current_node.symbol)
            current_node = root # reset to the root for the next symbol

    if current_node is not root:
        raise TruncatedPayload(f"bit stream ends inside a codeword at offset {end}")
    return bytes(decoded_bytes)
