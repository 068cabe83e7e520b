"""
KMS RSA-OAEP Benchmark CLI.

Usage:
    kms-oaep-benchmark

Or run directly:
    python -m kms_oaep.benchmark

Uses the in-memory KMS backend. Logging follows KMS_OAEP_LOG_LEVEL. Set
KMS_OAEP_BENCH_ITERATIONS in the environment or a .env file to change the
number of wrap/unwrap operations per key size (default: 50).
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from typing import List, Tuple

from kms_oaep.backend import SUPPORTED_ALGORITHMS, InMemoryKmsBackend
from kms_oaep.config import Settings
from kms_oaep.crypto import generate_file_key
from kms_oaep.errors import ConfigError
from kms_oaep.identity import Identity
from kms_oaep.logging import configure_logging
from kms_oaep.recipient import Recipient
from kms_oaep.stanza import Stanza

DEFAULT_ITERATIONS = 50


def load_settings() -> Settings:
    """Load settings from the environment and .env, then configure logging."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return settings


def _rate(count: int, seconds: float) -> str:
    return f"{count / seconds:.2f}" if seconds > 0 else "inf"


async def run_benchmark() -> None:
    """Run the wrap/unwrap benchmark."""
    print("=== KMS RSA-OAEP Benchmark ===\n")

    try:
        load_settings()
    except ConfigError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    try:
        iterations = int(os.environ.get("KMS_OAEP_BENCH_ITERATIONS", DEFAULT_ITERATIONS))
    except ValueError:
        print("ERROR: KMS_OAEP_BENCH_ITERATIONS must be an integer")
        sys.exit(1)
    if iterations <= 0:
        print("ERROR: KMS_OAEP_BENCH_ITERATIONS must be positive")
        sys.exit(1)
    print(f"Testing with {iterations} operations per key size\n")

    backend = InMemoryKmsBackend()
    algorithms = sorted(SUPPORTED_ALGORITHMS, key=lambda a: a.key_size or 0)

    print("=" * 70)
    print("                    BENCHMARK START")
    print("=" * 70 + "\n")

    # ========================================================================
    # Demo 1: Create one KMS key per supported size
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 1: Create KMS Keys                                          |")
    print("+" + "-" * 68 + "+")

    recipients: List[Tuple[int, str, Recipient]] = []
    for algorithm in algorithms:
        name = f"projects/bench/locations/global/keyRings/bench/cryptoKeys/{algorithm.key_size}/cryptoKeyVersions/1"
        start = time.perf_counter()
        key = await backend.create_key(name, algorithm)
        duration = time.perf_counter() - start
        recipients.append((algorithm.key_size or 0, key.name, Recipient.from_pem(key.pem)))
        print(f"  {algorithm}: {duration * 1000:.3f}ms")

    identity = await Identity.new(backend, [name for _, name, _ in recipients])
    print(f"[OK] Registry built with {len(identity.registry)} keys\n")

    # ========================================================================
    # Demo 2: Wrap/Unwrap per key size
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 2: Wrap/Unwrap Benchmark                                    |")
    print("+" + "-" * 68 + "+")

    results: List[Tuple[int, str, str]] = []
    for key_size, _name, recipient in recipients:
        file_keys = [generate_file_key() for _ in range(iterations)]

        wrap_start = time.perf_counter()
        wrapped: List[List[Stanza]] = [recipient.wrap(fk) for fk in file_keys]
        wrap_duration = time.perf_counter() - wrap_start

        unwrap_start = time.perf_counter()
        for fk, stanzas in zip(file_keys, wrapped):
            if await identity.unwrap(stanzas) != fk:
                print(f"[ERROR] RSA-{key_size}: recovered file key mismatch")
                sys.exit(1)
        unwrap_duration = time.perf_counter() - unwrap_start

        wrap_rate = _rate(iterations, wrap_duration)
        unwrap_rate = _rate(iterations, unwrap_duration)
        results.append((key_size, wrap_rate, unwrap_rate))
        print(f"  RSA-{key_size}: wrap {wrap_rate} ops/sec | unwrap {unwrap_rate} ops/sec")

    print("[OK] All file keys recovered\n")

    # ========================================================================
    # Demo 3: Concurrent unwrap against the shared registry
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 3: Concurrent Unwrap                                        |")
    print("+" + "-" * 68 + "+")

    _, _, recipient = recipients[0]
    file_keys = [generate_file_key() for _ in range(iterations)]
    wrapped = [recipient.wrap(fk) for fk in file_keys]

    concurrent_start = time.perf_counter()
    recovered = await asyncio.gather(*(identity.unwrap(s) for s in wrapped))
    concurrent_duration = time.perf_counter() - concurrent_start

    if list(recovered) != file_keys:
        print("[ERROR] Concurrent unwrap returned mismatched file keys")
        sys.exit(1)
    concurrent_rate = _rate(iterations, concurrent_duration)
    print(f"[OK] {iterations} concurrent unwraps")
    print(f"[PERF] Rate: {concurrent_rate} ops/sec\n")

    # ========================================================================
    # Summary
    # ========================================================================
    print("=" * 70)
    print("                    BENCHMARK SUMMARY")
    print("=" * 70 + "\n")

    print("+- Performance Summary ----------------------------------------------+")
    print("|                                                                    |")
    for key_size, wrap_rate, unwrap_rate in results:
        line = f"|  RSA-{key_size}: wrap {wrap_rate} ops/sec, unwrap {unwrap_rate} ops/sec"
        print(line + " " * max(0, 69 - len(line)) + "|")
    print("|                                                                    |")
    print("+--------------------------------------------------------------------+")

    print("\nTest Configuration:")
    print(f"  - Operations per key size: {iterations}")
    print("  - Crypto: RSA-OAEP, SHA-256 hash and MGF1, no label")
    print(f"  - Backend decrypt calls: {backend.decrypt_calls}")

    print("\n" + "=" * 70)
    print("                    BENCHMARK COMPLETE")
    print("=" * 70 + "\n")

    await identity.close()


def main() -> None:
    """CLI entry point for kms-oaep-benchmark command."""
    asyncio.run(run_benchmark())


if __name__ == "__main__":
    main()
