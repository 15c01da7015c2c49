#!/usr/bin/env python3
# flag_generator.py
# Usage:
#   python flag_generator.py key [--bytes 16]
#   python flag_generator.py flag --variant user_derived --secret S --task-id task1
#   python flag_generator.py verify --flag HEX --uuid UUID --secret S --task-id task1
#
# Produces the inputs for flagxor.py: hex keys for MY_SECRET_KEY and flags.

import argparse
import hashlib
import hmac
import random
import sys
import uuid

from Crypto.Random import get_random_bytes
from uuid6 import uuid7

FLAG_VARIANTS = ("pure_random", "user_derived", "rng_seed")
DEFAULT_KEY_BYTES = 16
DEFAULT_RANDOM_FLAG_LENGTH = 32


def generate_key(nbytes: int = DEFAULT_KEY_BYTES) -> str:
    """Random hex key, same shape as flagxor.DEFAULT_KEY for nbytes=16."""
    if nbytes < 1:
        raise ValueError("key must be at least 1 byte")
    return get_random_bytes(nbytes).hex()


def generate_pure_random(length: int = DEFAULT_RANDOM_FLAG_LENGTH) -> str:
    if not 1 <= length <= 255:
        raise ValueError(f"flag length must be in 1..255, got {length}")
    return get_random_bytes(length).hex()


def generate_flag32() -> str:
    return generate_pure_random(32)


def _hmac_key(uid: uuid.UUID, secret: str) -> bytes:
    return f"{secret}-{uid}".encode("utf-8")


def generate_hmac(uid: uuid.UUID, secret: str, task_id: str) -> str:
    """HMAC-SHA3-256 over the task id, keyed with '<secret>-<uuid>'."""
    mac = hmac.new(_hmac_key(uid, secret), task_id.encode("utf-8"), hashlib.sha3_256)
    return mac.hexdigest()


def compare_hmac(flag: str, uid: uuid.UUID, secret: str, task_id: str) -> bool:
    expected = generate_hmac(uid, secret, task_id)
    return hmac.compare_digest(flag.strip().lower(), expected)


def generate_userseed(uid: uuid.UUID) -> str:
    # seeded from the low 64 bits of the uuid: same uuid -> same seed
    rng = random.Random(uid.int & 0xFFFFFFFFFFFFFFFF)
    return rng.randbytes(32).hex()


def generate_uuid() -> uuid.UUID:
    # v7: time-ordered
    return uuid7()


def generate_flag(variant: str, uid=None, secret=None, task_id="", length=DEFAULT_RANDOM_FLAG_LENGTH) -> str:
    if variant == "pure_random":
        return generate_pure_random(length)
    if variant == "user_derived":
        if uid is None or secret is None:
            raise ValueError("user_derived flags need a uuid and a secret")
        return generate_hmac(uid, secret, task_id)
    if variant == "rng_seed":
        if uid is None:
            raise ValueError("rng_seed flags need a uuid")
        return generate_userseed(uid)
    raise ValueError(f"unknown flag variant {variant!r} (expected one of {', '.join(FLAG_VARIANTS)})")


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="flag-generator", description="Generate keys and flags for flagxor")
    sub = p.add_subparsers(dest="cmd", required=True)

    k = sub.add_parser("key", help="print a random hex key")
    k.add_argument("--bytes", type=int, default=DEFAULT_KEY_BYTES, help="key size in bytes (default: 16)")

    f = sub.add_parser("flag", help="print a flag")
    f.add_argument("--variant", choices=FLAG_VARIANTS, default="pure_random")
    f.add_argument("--uuid", type=uuid.UUID, help="user uuid (default: a new one)")
    f.add_argument("--secret", help="course secret (default: random hex)")
    f.add_argument("--task-id", default="", help="task identifier for user_derived flags")
    f.add_argument("--length", type=int, default=DEFAULT_RANDOM_FLAG_LENGTH, help="bytes for pure_random flags")

    v = sub.add_parser("verify", help="check a user_derived flag")
    v.add_argument("--flag", required=True)
    v.add_argument("--uuid", type=uuid.UUID, required=True)
    v.add_argument("--secret", required=True)
    v.add_argument("--task-id", required=True)
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        if args.cmd == "key":
            print(generate_key(args.bytes))

        elif args.cmd == "flag":
            uid = args.uuid or generate_uuid()
            secret = args.secret if args.secret is not None else generate_key(32)
            flag = generate_flag(args.variant, uid=uid, secret=secret, task_id=args.task_id, length=args.length)
            if args.variant != "pure_random":
                print("[*] uuid:", uid, file=sys.stderr)
            if args.variant == "user_derived" and args.secret is None:
                print("[*] generated secret:", secret, file=sys.stderr)
            print(flag)

        elif args.cmd == "verify":
            if compare_hmac(args.flag, args.uuid, args.secret, args.task_id):
                print("[+] flag OK")
            else:
                print("[-] flag does not match", file=sys.stderr)
                return 1
    except ValueError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    return 0


def run():
    raise SystemExit(main())


if __name__ == "__main__":
    run()
