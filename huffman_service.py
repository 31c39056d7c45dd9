# filename: huffman_service.py

import io
import logging
import os
import tempfile
from dataclasses import dataclass

from bit_stream import BitReader, BitWriter
from huffman_core import (
    FrequencyTable,
    HuffmanLogic,
    Internal,
    Leaf,
    Placeholder,
    decode_message,
    encode_message,
    iter_leaves,
)
from huffman_errors import ContainerMalformed, EndOfStream, SourceUnavailable

logger = logging.getLogger(__name__)

MAGIC = b"HUFZ"
FORMAT_VERSION = 1
MAX_BIT_LENGTH = 0xFFFFFFFF

TAG_INTERNAL = 0x00
TAG_LEAF = 0x01
TAG_PLACEHOLDER = 0x02
TAG_EMPTY = 0x03

_SPECIAL_LABELS = {10: "New Line", 13: "CR"}


@dataclass
class CompressionResult:
    container: bytes
    frequencies: FrequencyTable
    codes: list

    @property
    def original_size(self):
        return self.frequencies.total()

    @property
    def compressed_size(self):
        return len(self.container)


@dataclass
class ContainerInfo:
    version: int
    tree: object
    codes: list
    bit_length: int
    payload_size: int

    @property
    def symbol_count(self):
        return sum(1 for _ in iter_leaves(self.tree))


def write_tree(writer, root):
    if root is None:
        writer.write_bytes(bytes([TAG_EMPTY]))
        return
    # Preorder: node tag, then left subtree, then right subtree
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Internal):
            writer.write_bytes(bytes([TAG_INTERNAL]))
            stack.append(node.right)
            stack.append(node.left)
        elif isinstance(node, Leaf):
            writer.write_bytes(bytes([TAG_LEAF, node.symbol]))
            writer.write_int(node.weight)
        elif isinstance(node, Placeholder):
            writer.write_bytes(bytes([TAG_PLACEHOLDER]))
        else:
            raise TypeError(f"unexpected node type: {type(node).__name__}")


def read_tree(reader):
    tag = reader.read_byte()
    if tag == TAG_EMPTY:
        return None

    seen = set()

    def read_node(tag, level):
        if level > 256:
            raise ContainerMalformed("tree is deeper than the byte alphabet allows")
        if tag == TAG_INTERNAL:
            left = read_node(reader.read_byte(), level + 1)
            right = read_node(reader.read_byte(), level + 1)
            return Internal.join(left, right)
        if tag == TAG_LEAF:
            symbol = reader.read_byte()
            if symbol in seen:
                raise ContainerMalformed(f"symbol {symbol} appears twice in the tree")
            seen.add(symbol)
            return Leaf(symbol, reader.read_int())
        if tag == TAG_PLACEHOLDER:
            return Placeholder()
        raise ContainerMalformed(f"unknown tree node tag 0x{tag:02x}")

    root = read_node(tag, 0)
    if not isinstance(root, Internal):
        raise ContainerMalformed("tree root must be an internal node")
    return root


def code_table_rows(freqs, codes):
    """Rows of (byte value, label, frequency, code) for every byte present."""
    rows = []
    for byte in freqs.symbols():
        label = _SPECIAL_LABELS.get(byte)
        if label is None:
            label = chr(byte) if 32 <= byte < 127 else f"0x{byte:02x}"
        rows.append((byte, label, freqs[byte], codes[byte]))
    return rows


def format_code_table(rows):
    lines = [f"{'Byte':<10}{'Character':<15}{'Frequency':<15}{'Encoding'}"]
    for byte, label, freq, code in rows:
        lines.append(f"{byte:<10}{label:<15}{freq:<15}{code}")
    return "\n".join(lines)


class HuffmanService:
    def __init__(self):
        self.logic = HuffmanLogic()

    def compress(self, data):
        return self.encode(data).container

    def encode(self, data):
        freqs = FrequencyTable.from_bytes(data)
        tree = self.logic.build_tree(freqs)
        codes = self.logic.generate_codes(tree)
        encoded_str = encode_message(data, codes)
        if len(encoded_str) > MAX_BIT_LENGTH:
            raise ValueError(f"message of {len(encoded_str)} bits does not fit the length header")

        out = io.BytesIO()
        writer = BitWriter(out)
        writer.write_bytes(MAGIC + bytes([FORMAT_VERSION]))
        write_tree(writer, tree)
        writer.write_int(len(encoded_str))
        with writer:
            writer.write_bits(encoded_str)
        logger.debug("compressed %d bytes into %d message bits", freqs.total(), writer.bits_written)
        return CompressionResult(out.getvalue(), freqs, codes)

    def _open(self, container):
        reader = BitReader(io.BytesIO(container))
        try:
            header = reader.read_exact(len(MAGIC) + 1)
            if header[:len(MAGIC)] != MAGIC:
                raise ContainerMalformed("not a huffzip container (bad magic)")
            version = header[len(MAGIC)]
            if version != FORMAT_VERSION:
                raise ContainerMalformed(f"unsupported container version {version}")
            tree = read_tree(reader)
            bit_length = reader.read_int()
        except EndOfStream as exc:
            raise ContainerMalformed(f"container truncated: {exc}") from exc

        payload = reader.read_remaining()
        expected = (bit_length + 7) // 8
        if len(payload) < expected:
            raise ContainerMalformed(
                f"header declares {bit_length} bits but only {len(payload) * 8} are present")
        if len(payload) > expected:
            raise ContainerMalformed(
                f"{len(payload) - expected} unexpected trailing bytes after the message")
        return version, tree, bit_length, payload

    def decompress(self, container):
        _, tree, bit_length, payload = self._open(container)
        return decode_message(BitReader(io.BytesIO(payload)), tree, bit_length)

    def inspect(self, container):
        version, tree, bit_length, payload = self._open(container)
        return ContainerInfo(
            version=version,
            tree=tree,
            codes=self.logic.generate_codes(tree),
            bit_length=bit_length,
            payload_size=len(payload),
        )

    def frequencies(self, tree):
        counts = [0] * 256
        for leaf in iter_leaves(tree):
            counts[leaf.symbol] = leaf.weight
        return FrequencyTable(counts)

    def compress_file(self, source, target):
        result = self.encode(read_source(source))
        write_target(target, result.container)
        logger.info("compressed %s (%d bytes) to %s (%d bytes)",
                    source, result.original_size, target, result.compressed_size)
        return result

    def decompress_file(self, source, target):
        container = read_source(source)
        data = self.decompress(container)
        write_target(target, data)
        logger.info("decompressed %s (%d bytes) to %s (%d bytes)",
                    source, len(container), target, len(data))
        return len(container), len(data)


def read_source(path):
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise SourceUnavailable(f"cannot read {path}: {exc.strerror or exc}") from exc


def write_target(path, data):
    # The target only appears once its full contents are on disk; a failed
    # write removes the temporary file and leaves any previous target intact.
    directory = os.path.dirname(os.path.abspath(path))
    tmp = tempfile.NamedTemporaryFile(dir=directory, prefix=".huffzip-", delete=False)
    try:
        with tmp as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp.name, 0o666 & ~_current_umask())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.unlink(tmp.name)
        except FileNotFoundError:
            pass
        raise


def _current_umask():
    mask = os.umask(0)
    os.umask(mask)
    return mask
