import io
import random

import pytest

from bit_stream import BitReader
from huffman_core import (
	ALPHABET_SIZE,
	FrequencyTable,
	Heap,
	HuffmanLogic,
	HuffmanTree,
	Internal,
	Leaf,
	Placeholder,
	decode_message,
	depth,
	encode_message,
	iter_leaves,
)
from huffman_errors import ContainerMalformed, StreamCorruption

SAMPLE = b"It was the best of times, it was the worst of times.\n" * 20


def _logic():
	return HuffmanLogic()


def _internal_nodes(node):
	stack = [node]
	while stack:
		current = stack.pop()
		if isinstance(current, Internal):
			yield current
			stack.append(current.left)
			stack.append(current.right)


def test_frequency_table_counts_bytes():
	freqs = FrequencyTable.from_bytes(b"aaab")
	assert freqs[ord("a")] == 3
	assert freqs[ord("b")] == 1
	assert freqs[0] == 0
	assert freqs.symbols() == [ord("a"), ord("b")]
	assert freqs.total() == 4
	assert len(freqs) == ALPHABET_SIZE


def test_frequency_table_empty():
	freqs = FrequencyTable.from_bytes(b"")
	assert freqs.is_empty()
	assert freqs.symbols() == []


def test_frequency_table_rejects_bad_counts():
	with pytest.raises(ValueError):
		FrequencyTable([0] * 255)
	with pytest.raises(ValueError):
		FrequencyTable([-1] + [0] * 255)


def test_heap_extracts_greatest_first():
	heap = Heap([5, 1, 9, 3, 7, 7])
	assert heap.size() == 6
	out = [heap.extract_top() for _ in range(6)]
	assert out == [9, 7, 7, 5, 3, 1]
	assert heap.extract_top() is None
	assert len(heap) == 0


def test_heap_matches_sorted_for_random_input():
	rng = random.Random(7)
	values = [rng.randint(0, 50) for _ in range(200)]
	heap = Heap()
	for v in values:
		heap.insert(v)
	out = [heap.extract_top() for _ in range(len(values))]
	assert out == sorted(values, reverse=True)


def test_tree_ordering_prefers_lower_weight_then_earlier_serial():
	light = HuffmanTree(Leaf(1, 2), serial=5)
	heavy = HuffmanTree(Leaf(2, 9), serial=0)
	early = HuffmanTree(Leaf(3, 2), serial=1)
	assert light > heavy
	assert early > light

	heap = Heap([heavy, light, early])
	assert heap.extract_top() is early
	assert heap.extract_top() is light
	assert heap.extract_top() is heavy


def test_build_tree_aaab():
	root = _logic().build_tree(FrequencyTable.from_bytes(b"aaab"))
	assert isinstance(root, Internal)
	assert root.weight == 4
	# lightest tree is extracted first and becomes the left child
	assert isinstance(root.left, Leaf) and root.left.symbol == ord("b")
	assert isinstance(root.right, Leaf) and root.right.symbol == ord("a")

	codes = _logic().generate_codes(root)
	assert codes[ord("b")] == "0"
	assert codes[ord("a")] == "1"
	assert encode_message(b"aaab", codes) == "1110"


def test_build_tree_accepts_raw_bytes():
	logic = _logic()
	from_bytes = logic.generate_codes(logic.build_tree(b"abracadabra"))
	from_table = logic.generate_codes(logic.build_tree(FrequencyTable.from_bytes(b"abracadabra")))
	assert from_bytes == from_table


def test_single_symbol_gets_placeholder_sibling():
	root = _logic().build_tree(FrequencyTable.from_bytes(b"a" * 10))
	assert isinstance(root, Internal)
	assert isinstance(root.left, Leaf) and root.left.symbol == ord("a")
	assert isinstance(root.right, Placeholder)
	assert root.weight == 10

	codes = _logic().generate_codes(root)
	assert codes[ord("a")] == "0"
	assert sum(1 for c in codes if c is not None) == 1


def test_empty_input_has_no_tree():
	logic = _logic()
	assert logic.build_tree(FrequencyTable.from_bytes(b"")) is None
	assert logic.generate_codes(None) == [None] * ALPHABET_SIZE
	assert encode_message(b"", logic.generate_codes(None)) == ""


def test_weight_invariant():
	root = _logic().build_tree(FrequencyTable.from_bytes(SAMPLE))
	for node in _internal_nodes(root):
		assert node.weight == node.left.weight + node.right.weight
	assert root.weight == len(SAMPLE)


def test_every_symbol_appears_once():
	freqs = FrequencyTable.from_bytes(SAMPLE)
	root = _logic().build_tree(freqs)
	symbols = [leaf.symbol for leaf in iter_leaves(root)]
	assert sorted(symbols) == freqs.symbols()
	for leaf in iter_leaves(root):
		assert leaf.weight == freqs[leaf.symbol]


def test_codes_are_prefix_free():
	data = bytes(range(256)) + SAMPLE
	codes = [c for c in _logic().generate_codes(_logic().build_tree(data)) if c is not None]
	assert len(codes) == 256
	for i, a in enumerate(codes):
		for j, b in enumerate(codes):
			if i != j:
				assert not b.startswith(a)


def test_frequent_symbols_get_shorter_codes():
	codes = _logic().generate_codes(_logic().build_tree(b"e" * 50 + b"t" * 10 + b"z"))
	assert len(codes[ord("e")]) < len(codes[ord("z")])


def test_build_is_deterministic():
	logic = _logic()
	data = bytes(range(32)) * 3
	assert logic.generate_codes(logic.build_tree(data)) == logic.generate_codes(logic.build_tree(data))


def test_depth():
	assert depth(None) == 0
	assert depth(_logic().build_tree(b"abc")) == 2


def test_encode_message_requires_code():
	codes = _logic().generate_codes(_logic().build_tree(b"ab"))
	with pytest.raises(ValueError):
		encode_message(b"abc", codes)


def test_decode_message_aaab():
	root = _logic().build_tree(b"aaab")
	reader = BitReader(io.BytesIO(bytes([0b11100000])))
	assert decode_message(reader, root, 4) == b"aaab"


def test_decode_message_reports_short_stream():
	root = _logic().build_tree(b"aaab")
	reader = BitReader(io.BytesIO(bytes([0b11100000])))
	with pytest.raises(StreamCorruption):
		decode_message(reader, root, 12)


def test_decode_message_rejects_partial_code_at_end():
	# codes for "abc": c -> 0, a -> 10, b -> 11
	root = _logic().build_tree(b"abc")
	reader = BitReader(io.BytesIO(bytes([0b10000000])))
	with pytest.raises(ContainerMalformed):
		decode_message(reader, root, 1)


def test_decode_message_rejects_placeholder_path():
	root = _logic().build_tree(b"aaa")
	reader = BitReader(io.BytesIO(bytes([0b01000000])))
	with pytest.raises(StreamCorruption):
		decode_message(reader, root, 2)


def test_decode_message_empty_tree():
	assert decode_message(BitReader(io.BytesIO(b"")), None, 0) == b""
	with pytest.raises(ContainerMalformed):
		decode_message(BitReader(io.BytesIO(b"\x00")), None, 1)
