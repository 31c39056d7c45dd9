# filename: huffman_cli.py

import argparse
import logging
import sys

from huffman_errors import HuffmanError
from huffman_service import (
    HuffmanService,
    code_table_rows,
    format_code_table,
    read_source,
)

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="huffzip", description="Lossless file compression with Huffman coding")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log progress (-v) or codec internals (-vv)")
    commands = parser.add_subparsers(dest="command", required=True)

    compress = commands.add_parser("compress", help="Compress SOURCE into TARGET")
    compress.add_argument("source")
    compress.add_argument("target")
    compress.add_argument("--table", action="store_true",
                          help="Print the byte/frequency/code table")

    decompress = commands.add_parser("decompress", help="Restore SOURCE container into TARGET")
    decompress.add_argument("source")
    decompress.add_argument("target")

    inspect = commands.add_parser("inspect", help="Describe a container without decoding it")
    inspect.add_argument("container")
    return parser


def configure_logging(verbosity):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def run_compress(service, args):
    result = service.compress_file(args.source, args.target)
    if args.table:
        print(format_code_table(code_table_rows(result.frequencies, result.codes)))
    original, compressed = result.original_size, result.compressed_size
    ratio = compressed / original if original else 0.0
    print(f"compressed {args.source} -> {args.target}: {original} -> {compressed} bytes ({ratio:.2%})")


def run_decompress(service, args):
    compressed, original = service.decompress_file(args.source, args.target)
    print(f"decompressed {args.source} -> {args.target}: {compressed} -> {original} bytes")


def run_inspect(service, args):
    info = service.inspect(read_source(args.container))
    print(f"format version: {info.version}")
    print(f"symbols:        {info.symbol_count}")
    print(f"message bits:   {info.bit_length}")
    print(f"payload bytes:  {info.payload_size}")
    if info.tree is not None:
        freqs = service.frequencies(info.tree)
        print(format_code_table(code_table_rows(freqs, info.codes)))


COMMANDS = {
    "compress": run_compress,
    "decompress": run_decompress,
    "inspect": run_inspect,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    service = HuffmanService()
    try:
        COMMANDS[args.command](service, args)
    except (HuffmanError, OSError) as exc:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
