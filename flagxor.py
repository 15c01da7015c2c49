#!/usr/bin/env python3
# flagxor.py
# Usage: python flagxor.py [--key HEX] [--output-dir DIR] [-v] [--] <flag>
#
# Encrypts a flag with a repeating-key XOR stream and writes the raw bytes
# to $OUTPUT_DIR/encrypted_output.txt. The hex key is reversed character by
# character before it is decoded.

import argparse
import os
import string
import sys

from Crypto.Util.strxor import strxor

DEFAULT_KEY = "c91d58581f2e65410bdf13adea111892"  # keep an even number of characters
OUTPUT_FILENAME = "encrypted_output.txt"
KEY_ENV = "MY_SECRET_KEY"
OUTPUT_DIR_ENV = "OUTPUT_DIR"

_HEXDIGITS = frozenset(string.hexdigits)


class KeyFormatError(ValueError):
    """Hex key could not be decoded."""


class InvalidHexDigit(KeyFormatError):
    def __init__(self, char, pos):
        super().__init__(f"invalid hex digit {char!r} at position {pos}")
        self.char = char
        self.pos = pos


class TruncatedInput(KeyFormatError):
    def __init__(self, length):
        super().__init__(f"hex key has odd length {length}")
        self.length = length


class EmptyKey(ValueError):
    def __init__(self):
        super().__init__("key must not be empty")


def decode_hex_key(hex_key: str) -> bytes:
    """Turn each pair of hex characters into one byte (first char = high nibble)."""
    if len(hex_key) % 2:
        raise TruncatedInput(len(hex_key))
    for pos, ch in enumerate(hex_key):
        if ch not in _HEXDIGITS:
            raise InvalidHexDigit(ch, pos)
    return bytes(int(hex_key[i:i + 2], 16) for i in range(0, len(hex_key), 2))


def reverse_key(hex_key: str) -> str:
    # character reversal, not byte-pair reversal: nibbles swap places too
    return hex_key[::-1]


def derive_key_bytes(hex_key: str) -> bytes:
    return decode_hex_key(reverse_key(hex_key))


def repeat_to_len(key: bytes, length: int) -> bytes:
    return bytes(key[i % len(key)] for i in range(length))


def xor_encode(data: bytes, key: bytes) -> bytes:
    """out[i] = data[i] ^ key[i % len(key)]. Applying it twice gives data back."""
    if not key:
        raise EmptyKey()
    if not data:
        return b""
    return strxor(bytes(data), repeat_to_len(key, len(data)))


def _as_bytes(value) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def encrypt_flag(flag, hex_key: str = DEFAULT_KEY) -> bytes:
    return xor_encode(_as_bytes(flag), derive_key_bytes(hex_key))


def decrypt_flag(ciphertext: bytes, hex_key: str = DEFAULT_KEY) -> bytes:
    # XOR is its own inverse
    return xor_encode(ciphertext, derive_key_bytes(hex_key))


def resolve_key(cli_key=None, environ=None) -> str:
    environ = os.environ if environ is None else environ
    if cli_key is not None:
        return cli_key
    return environ.get(KEY_ENV, DEFAULT_KEY)


def resolve_output_dir(cli_dir=None, environ=None) -> str:
    environ = os.environ if environ is None else environ
    if cli_dir is not None:
        return cli_dir
    return environ.get(OUTPUT_DIR_ENV) or "."


def write_output(path: str, data: bytes):
    with open(path, "wb") as fh:
        fh.write(data)


class _ArgumentParser(argparse.ArgumentParser):
    # usage errors exit with 1, not argparse's default 2
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_args(argv=None):
    """The last token is always the flag, so flags like "-abc" or "-v" need no "--".

    Options go before it. A lone -h/--help prints help; use "-- -h" to encrypt "-h".
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    p = _ArgumentParser(
        prog="flagxor",
        usage="%(prog)s [--key HEX] [--output-dir DIR] [-v] [--] <flag>",
        description="XOR-encrypt a flag with a reversed hex key",
        epilog="<flag> is always the last argument and is taken verbatim",
    )
    p.add_argument("--key", help=f"hex key (default: ${KEY_ENV} or the built-in key)")
    p.add_argument("--output-dir", help=f"output directory (default: ${OUTPUT_DIR_ENV} or .)")
    p.add_argument("-v", "--verbose", action="store_true", help="report what was written")

    if not argv:
        p.error("the following arguments are required: flag")
    if argv in (["-h"], ["--help"]):
        p.parse_args(argv)

    opts, flag = argv[:-1], argv[-1]
    if opts and opts[-1] == "--":
        opts = opts[:-1]
    args = p.parse_args(opts)
    args.flag = flag
    return args


def main(argv=None) -> int:
    args = parse_args(argv)

    hex_key = resolve_key(args.key)
    flag = os.fsencode(args.flag)
    try:
        key_bytes = derive_key_bytes(hex_key)
        encrypted = xor_encode(flag, key_bytes)
    except (KeyFormatError, EmptyKey) as e:
        print(f"[!] bad encryption key: {e}", file=sys.stderr)
        return 1

    out_path = os.path.join(resolve_output_dir(args.output_dir), OUTPUT_FILENAME)
    try:
        write_output(out_path, encrypted)
    except OSError as e:
        print(f"[!] Error opening output file: {out_path} ({e.strerror or e})", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"[*] key length: {len(key_bytes)} bytes")
        print(f"[+] encrypted flag ({len(encrypted)} bytes) written to {out_path}")
    return 0


def run():
    raise SystemExit(main())


if __name__ == "__main__":
    run()
