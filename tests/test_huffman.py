import random
from itertools import permutations

import pytest

from errors import EmptyInput, MalformedPayload, TruncatedPayload, UnknownSymbol
from frequency import count_frequencies_sequential
from huffman import build_huffman_tree, generate_huffman_codes, huffman_decode, huffman_encode


def leaves(root):
    out = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            out.append(node.symbol)
        else:
            stack += [node.right, node.left]
    return out


def test_empty_table_raises():
    with pytest.raises(EmptyInput):
        build_huffman_tree({})


def test_aaab_tree_shape():
    root = build_huffman_tree({ord('a'): 3, ord('b'): 1})
    assert root.frequency == 4
    assert root.left.symbol == ord('b')
    assert root.right.symbol == ord('a')
    assert generate_huffman_codes(root) == {ord('b'): '0', ord('a'): '1'}


def test_equal_frequencies_break_ties_by_symbol():
    root = build_huffman_tree({ord('c'): 1, ord('a'): 1, ord('b'): 1})
    # a and b merge first, c is popped before the merged node
    assert root.left.symbol == ord('c')
    assert [root.right.left.symbol, root.right.right.symbol] == [ord('a'), ord('b')]


def test_tree_independent_of_table_order():
    table = {1: 5, 2: 5, 3: 2, 4: 9}
    expected = generate_huffman_codes(build_huffman_tree(table))
    for items in permutations(table.items()):
        assert generate_huffman_codes(build_huffman_tree(dict(items))) == expected


def test_single_symbol_gets_one_bit_code():
    root = build_huffman_tree({65: 10})
    assert root.is_leaf
    assert generate_huffman_codes(root) == {65: '0'}


def test_leaf_count_matches_distinct_symbols():
    data = bytes(random.Random(1).randrange(0, 256) for _ in range(5000))
    table = count_frequencies_sequential(data)
    root = build_huffman_tree(table)
    assert sorted(leaves(root)) == sorted(table)
    assert root.frequency == len(data)


@pytest.mark.parametrize("seed", range(5))
def test_codes_are_prefix_free(seed):
    rng = random.Random(seed)
    table = {s: rng.randrange(1, 1000) for s in rng.sample(range(256), rng.randrange(2, 256))}
    codes = list(generate_huffman_codes(build_huffman_tree(table)).values())
    assert len(codes) == len(table)
    for i, a in enumerate(codes):
        assert a
        for j, b in enumerate(codes):
            if i != j:
                assert not b.startswith(a)


def test_skewed_frequencies_build_deep_tree():
    # Fibonacci weights give a maximally unbalanced tree
    fib = [1, 1]
    while len(fib) < 40:
        fib.append(fib[-1] + fib[-2])
    codes = generate_huffman_codes(build_huffman_tree(dict(enumerate(fib))))
    assert max(len(c) for c in codes.values()) == 39


def test_encode_decode():
    data = b"abracadabra"
    root = build_huffman_tree(count_frequencies_sequential(data))
    bits = huffman_encode(data, generate_huffman_codes(root))
    assert set(bits) <= {'0', '1'}
    assert huffman_decode(bits, root) == data


def test_encode_unknown_symbol():
    with pytest.raises(UnknownSymbol) as info:
        huffman_encode(b"abz", {ord('a'): '0', ord('b'): '1'})
    assert info.value.symbol == ord('z')


def test_decode_span():
    data = b"aaab"
    root = build_huffman_tree(count_frequencies_sequential(data))
    bits = huffman_encode(data, generate_huffman_codes(root))
    assert huffman_decode(bits, root, 2, 4) == b"ab"


def test_decode_truncated():
    data = b"hello world"
    root = build_huffman_tree(count_frequencies_sequential(data))
    codes = generate_huffman_codes(root)
    bits = huffman_encode(data, codes)
    # 'd' occurs once among eight symbols, so its code is longer than one bit
    assert len(codes[ord('d')]) > 1
    with pytest.raises(TruncatedPayload):
        huffman_decode(bits[:-1], root)


def test_decode_rejects_bad_bit():
    root = build_huffman_tree({1: 1, 2: 1})
    with pytest.raises(MalformedPayload):
        huffman_decode("01x", root)


def test_decode_single_leaf_root():
    root = build_huffman_tree({7: 3})
    assert huffman_decode("000", root) == bytes([7, 7, 7])
    with pytest.raises(MalformedPayload):
        huffman_decode("010", root)
