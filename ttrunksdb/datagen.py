"""Fills a running database server with random records."""

from __future__ import annotations

import argparse
import os
import random
import string
import sys
import time
from typing import Optional

from dotenv import load_dotenv

from .client import DEFAULT_SERVER_ADDR, ClientError, DBClient

CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits
MAX_SENTENCE_WORDS = 15

WORDS = (
    "apple", "river", "stone", "cloud", "garden", "window", "silver", "forest",
    "bridge", "candle", "yellow", "market", "winter", "summer", "orange", "planet",
    "rocket", "thunder", "meadow", "harbor", "island", "pencil", "mirror", "castle",
    "shadow", "valley", "blanket", "ladder", "basket", "button", "copper", "desert",
    "engine", "feather", "glacier", "hammer", "jungle", "kettle", "lantern", "marble",
    "needle", "ocean", "pepper", "quartz", "rabbit", "saddle", "tunnel", "velvet",
    "wagon", "zebra", "anchor", "breeze", "cactus", "dolphin", "ember", "falcon",
    "granite", "horizon", "ivory", "jacket", "run", "jump", "write", "read",
    "quickly", "slowly", "bright", "quiet", "brave", "gentle",
)


def generate_random_value(size: int, rng: Optional[random.Random] = None) -> bytes:
    """Return ``size`` random alphanumeric bytes."""
    rng = rng or random.Random()
    return "".join(rng.choice(CHARSET) for _ in range(size)).encode("ascii")


def random_word(rng: Optional[random.Random] = None) -> str:
    """Return a random word."""
    return (rng or random.Random()).choice(WORDS)


def random_sentence(rng: Optional[random.Random] = None, word_count: int = 5) -> str:
    """Return a capitalised sentence of ``word_count`` words ending in a period."""
    if word_count <= 0:
        return ""
    rng = rng or random.Random()
    sentence = " ".join(random_word(rng) for _ in range(word_count))
    return sentence[0].upper() + sentence[1:] + "."


def main(argv: Optional[list[str]] = None) -> int:
    """Write random records to the server and report the write rate."""
    parser = argparse.ArgumentParser(prog="ttrunksdb-datagen", allow_abbrev=False)
    parser.add_argument("-n", type=int, default=1000, dest="num_records",
                        help="Number of records to generate")
    parser.add_argument("-size", "--size", type=int, default=64, dest="value_size",
                        help="Size of generated values in bytes")
    parser.add_argument("-server", "--server", default=DEFAULT_SERVER_ADDR,
                        dest="server_addr", help="Server address")

    env_path = os.path.join(os.getcwd(), ".env")
    if not os.path.isfile(env_path):
        print("Error loading .env file", file=sys.stderr)
        return 1
    load_dotenv(env_path)

    args = parser.parse_args(argv)
    if args.num_records <= 0:
        print("Number of records must be positive")
        return 0

    print(f"Connecting to server at {args.server_addr}...")
    client = DBClient(args.server_addr)
    try:
        client.connect()
    except ClientError as exc:
        print(f"Failed to connect to server: {exc}", file=sys.stderr)
        return 1

    rng = random.Random(time.time_ns())
    start = time.perf_counter()
    with client:
        for i in range(args.num_records):
            key = random_word(rng).lower()
            value = random_sentence(rng, rng.randrange(MAX_SENTENCE_WORDS))
            try:
                client.write(key, value.encode("utf-8"))
            except ClientError as exc:
                print(f"Error writing record {i}: {exc}")
                return 0
            if (i + 1) % 1000 == 0:
                print(f"Generated {i + 1} records...")

    duration = max(time.perf_counter() - start, 1e-9)
    print(f"Successfully generated {args.num_records} records in {duration:.6f}s")
    print(f"Rate: {args.num_records / duration:.2f} records/second")
    return 0


if __name__ == "__main__":
    sys.exit(main())