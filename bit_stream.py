# filename: bit_stream.py

import struct

from huffman_errors import EndOfStream

_UINT32 = struct.Struct(">I")


class BitWriter:
    """Packs single bits MSB-first into bytes written to ``sink``."""

    def __init__(self, sink):
        self.sink = sink
        self.buffer = 0
        self.n_bits = 0
        self.bits_written = 0

    def write_bit(self, bit):
        if bit not in (0, 1):
            raise ValueError(f"bit must be 0 or 1, got {bit!r}")
        self.buffer = (self.buffer << 1) | bit
        self.n_bits += 1
        self.bits_written += 1
        if self.n_bits == 8:
            self.sink.write(bytes([self.buffer]))
            self.buffer = 0
            self.n_bits = 0

    def write_bits(self, bit_string):
        for ch in bit_string:
            if ch == "0":
                self.write_bit(0)
            elif ch == "1":
                self.write_bit(1)
            else:
                raise ValueError("bit string may only contain '0' or '1'")

    def write_int(self, value):
        self._require_aligned()
        self.sink.write(_UINT32.pack(value))

    def write_bytes(self, raw):
        self._require_aligned()
        self.sink.write(raw)

    def flush(self):
        # Remaining bits go to the high end of the last byte.
        if self.n_bits > 0:
            self.sink.write(bytes([self.buffer << (8 - self.n_bits)]))
            self.buffer = 0
            self.n_bits = 0

    def close(self):
        self.flush()

    def _require_aligned(self):
        if self.n_bits:
            raise ValueError("cannot write whole bytes with a partial byte buffered")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class BitReader:
    """Reads bits MSB-first from ``source``; ``read_bit`` returns None at end of input."""

    def __init__(self, source):
        self.source = source
        self.current = 0
        self.n_bits = 0

    def read_bit(self):
        if self.n_bits == 0:
            chunk = self.source.read(1)
            if not chunk:
                return None
            self.current = chunk[0]
            self.n_bits = 8
        self.n_bits -= 1
        return (self.current >> self.n_bits) & 1

    def read_exact(self, count):
        # Aligned reads drop whatever is left of a partially consumed byte.
        self.n_bits = 0
        data = self.source.read(count)
        if len(data) < count:
            raise EndOfStream(f"expected {count} bytes, only {len(data)} available")
        return data

    def read_byte(self):
        return self.read_exact(1)[0]

    def read_int(self):
        return _UINT32.unpack(self.read_exact(4))[0]

    def read_remaining(self):
        self.n_bits = 0
        return self.source.read()
