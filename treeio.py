"""
Tree persistence

Preorder marker stream: an internal node writes b'0' and is followed by its
left then right subtree, a leaf writes b'1' followed by its symbol byte.
The stream is self-delimiting so no length field is needed in front of it.
Both directions use an explicit stack instead of recursion.
"""

from typing import List, Tuple

from errors import MalformedTree
from huffman import HuffmanNode

INTERNAL_MARKER = ord('0')
LEAF_MARKER = ord('1')

# a full binary tree over 256 leaves has 255 internal nodes
MAX_INTERNAL_NODES = 255


def serialize_tree(root: HuffmanNode) -> bytes:
    out = bytearray()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            out.append(LEAF_MARKER)
            out.append(node.symbol)
        else:
            out.append(INTERNAL_MARKER)
            stack.append(node.right) # right is popped after the whole left subtree
            stack.append(node.left)
    return bytes(out)


def deserialize_tree(buffer: bytes, offset: int = 0) -> Tuple[HuffmanNode, int]:
    """
    Rebuild a tree from buffer[offset:].

    Returns the root and the offset of the first byte after the tree.
    Reconstructed nodes carry frequency 0. Raises MalformedTree on an unknown
    marker, on a stream that ends before the tree is complete, or on more
    internal nodes than an 8-bit alphabet allows.
    """
    root = None
    pending: List[HuffmanNode] = [] # internal nodes still waiting for their right child
    internal_count = 0
    pos = offset

    while True:
        if pos >= len(buffer):
            raise MalformedTree(f"tree stream truncated at offset {pos}")
        marker = buffer[pos]
        pos += 1

        if marker == LEAF_MARKER:
            if pos >= len(buffer):
                raise MalformedTree(f"leaf marker without a symbol at offset {pos - 1}")
            node = HuffmanNode(buffer[pos], 0)
            pos += 1
        elif marker == INTERNAL_MARKER:
            internal_count += 1
            if internal_count > MAX_INTERNAL_NODES:
                raise MalformedTree(f"more than {MAX_INTERNAL_NODES} internal nodes")
            node = HuffmanNode(None, 0)
        else:
            raise MalformedTree(f"unexpected marker {marker!r} at offset {pos - 1}")

        if root is None:
            root = node
        else:
            parent = pending[-1]
            if parent.left is None:
                parent.left = node
            else:
                parent.right = node
                pending.pop()

        if not node.is_leaf:
            pending.append(node)
        if not pending:
            return root, pos
