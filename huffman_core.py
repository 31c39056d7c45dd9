# filename: huffman_core.py

import logging
from collections import Counter
from functools import total_ordering

from huffman_errors import ContainerMalformed, StreamCorruption

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 256


class FrequencyTable:
    """Occurrence count for each of the 256 byte values."""

    __slots__ = ("_counts",)

    def __init__(self, counts):
        counts = tuple(counts)
        if len(counts) != ALPHABET_SIZE:
            raise ValueError(f"expected {ALPHABET_SIZE} counts, got {len(counts)}")
        if any(not isinstance(c, int) or c < 0 for c in counts):
            raise ValueError("counts must be non-negative integers")
        self._counts = counts

    @classmethod
    def from_bytes(cls, data):
        # Frequency analysis of the input byte data
        freqs = Counter(data)
        return cls(freqs.get(byte, 0) for byte in range(ALPHABET_SIZE))

    def __getitem__(self, byte):
        return self._counts[byte]

    def __len__(self):
        return ALPHABET_SIZE

    def __eq__(self, other):
        if not isinstance(other, FrequencyTable):
            return NotImplemented
        return self._counts == other._counts

    def symbols(self):
        return [byte for byte, count in enumerate(self._counts) if count]

    def total(self):
        return sum(self._counts)

    def is_empty(self):
        return not any(self._counts)


class Heap:
    """Array-backed max-heap; ``extract_top`` returns the greatest item."""

    def __init__(self, items=()):
        self._items = []
        for item in items:
            self.insert(item)

    def insert(self, item):
        items = self._items
        items.append(item)
        index = len(items) - 1
        while index > 0:
            parent = (index - 1) // 2
            if items[index] > items[parent]:
                items[index], items[parent] = items[parent], items[index]
                index = parent
            else:
                break

    def extract_top(self):
        items = self._items
        if not items:
            return None
        top = items[0]
        last = items.pop()
        if not items:
            return top
        items[0] = last

        index = 0
        size = len(items)
        while True:
            left = 2 * index + 1
            right = left + 1
            if left >= size:
                break
            greater = left
            if right < size and items[right] > items[left]:
                greater = right
            if items[greater] > items[index]:
                items[index], items[greater] = items[greater], items[index]
                index = greater
            else:
                break
        return top

    def size(self):
        return len(self._items)

    __len__ = size


class Leaf:
    __slots__ = ("symbol", "weight")

    def __init__(self, symbol, weight):
        if not 0 <= symbol < ALPHABET_SIZE:
            raise ValueError(f"symbol out of range: {symbol}")
        self.symbol = symbol
        self.weight = weight

    def __repr__(self):
        return f"Leaf({self.symbol!r}, {self.weight})"


class Placeholder:
    """Zero-weight leaf paired with the only symbol of a one-symbol input."""

    __slots__ = ()
    weight = 0

    def __repr__(self):
        return "Placeholder()"


class Internal:
    __slots__ = ("weight", "left", "right")

    def __init__(self, weight, left, right):
        self.weight = weight
        self.left = left
        self.right = right

    @classmethod
    def join(cls, left, right):
        return cls(left.weight + right.weight, left, right)

    def __repr__(self):
        return f"Internal({self.weight}, {self.left!r}, {self.right!r})"


@total_ordering
class HuffmanTree:
    """Heap entry wrapping a root node.

    Lower weight compares as greater so the max-heap yields the lightest
    tree first; equal weights fall back to the creation serial, earliest
    first.
    """

    __slots__ = ("root", "serial")

    def __init__(self, root, serial):
        self.root = root
        self.serial = serial

    def _key(self):
        return (self.root.weight, self.serial)

    def __eq__(self, other):
        if not isinstance(other, HuffmanTree):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, HuffmanTree):
            return NotImplemented
        return self._key() > other._key()

    __hash__ = None


class HuffmanLogic:
    def build_tree(self, freqs):
        if not isinstance(freqs, FrequencyTable):
            freqs = FrequencyTable.from_bytes(freqs)
        if freqs.is_empty():
            return None

        # Build a priority queue for leaf nodes
        priority_queue = Heap()
        serial = 0
        for symbol in freqs.symbols():
            priority_queue.insert(HuffmanTree(Leaf(symbol, freqs[symbol]), serial))
            serial += 1

        if priority_queue.size() == 1:
            only = priority_queue.extract_top()
            return Internal.join(only.root, Placeholder())

        # Iteratively merge nodes to form the binary tree
        while priority_queue.size() > 1:
            left = priority_queue.extract_top()
            right = priority_queue.extract_top()
            priority_queue.insert(HuffmanTree(Internal.join(left.root, right.root), serial))
            serial += 1

        root = priority_queue.extract_top().root
        logger.debug("built tree: %d symbols, weight %d, depth %d",
                     len(freqs.symbols()), root.weight, depth(root))
        return root

    def generate_codes(self, node):
        codes = [None] * ALPHABET_SIZE
        if node is None:
            return codes
        # Explicit stack, left pushed last so it is visited first
        stack = [(node, "")]
        while stack:
            current, code = stack.pop()
            if isinstance(current, Internal):
                stack.append((current.right, code + "1"))
                stack.append((current.left, code + "0"))
            elif isinstance(current, Leaf):
                codes[current.symbol] = code
        return codes


def iter_leaves(node):
    """Yield the real leaves of the tree rooted at ``node``, left to right."""
    if node is None:
        return
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Internal):
            stack.append(current.right)
            stack.append(current.left)
        elif isinstance(current, Leaf):
            yield current


def depth(node):
    if not isinstance(node, Internal):
        return 0
    return 1 + max(depth(node.left), depth(node.right))


def encode_message(data, codes):
    parts = []
    for byte in data:
        code = codes[byte]
        if code is None:
            raise ValueError(f"no code for byte {byte}")
        parts.append(code)
    return "".join(parts)


def decode_message(reader, root, bit_length):
    """Walk ``root`` with ``bit_length`` bits from ``reader`` and return the decoded bytes."""
    if bit_length == 0:
        return b""
    if root is None:
        raise ContainerMalformed(f"{bit_length} message bits declared for an empty tree")
    if not isinstance(root, Internal):
        raise ContainerMalformed("tree root must be an internal node")

    out = bytearray()
    node = root
    for consumed in range(bit_length):
        bit = reader.read_bit()
        if bit is None:
            raise StreamCorruption(
                f"input ended after {consumed} of {bit_length} message bits")
        node = node.right if bit else node.left
        if isinstance(node, Leaf):
            out.append(node.symbol)
            node = root
        elif isinstance(node, Placeholder):
            raise StreamCorruption(f"bit {consumed} resolves to the placeholder leaf")

    if node is not root:
        raise ContainerMalformed("declared bit length ends inside a code")
    logger.debug("decoded %d bytes from %d bits", len(out), bit_length)
    return bytes(out)
