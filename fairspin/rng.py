"""
FAIRSPIN — Provably Fair Reel Derivation

Seed + nonce system for verifiable reel outcomes.

Architecture:
    Before a spin the engine holds a fresh seed and publishes SHA-256(seed).
    For the spin:
        commitment = seed + str(nonce)          (nonce = ms timestamp)
        digest     = SHA-256(commitment)
        cell k     = int(digest[k*8:(k+1)*8], 16) % N
    After the spin the seed and nonce are disclosed with the result and the
    seed is rotated, so the player can recompute the grid independently.

    A 3x3 grid needs 72 hex characters; SHA-256 yields 64. Extra blocks are
    chained as SHA-256(commitment + ":" + i) for i = 1, 2, ...

Usage:
    from fairspin.rng import new_seed, derive_grid, verify_grid

    seed = new_seed()
    grid = derive_grid(seed, catalog_size=9)
    print(grid.cells, grid.evaluation_line)
    assert verify_grid(grid.seed, grid.nonce, 9, grid.cells)
"""

from __future__ import annotations

import hashlib
import itertools
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

from fairspin.errors import ConfigurationError

logger = logging.getLogger("fairspin.rng")

SLICE_WIDTH = 8          # hex chars per cell → 32-bit unsigned int
EVALUATION_POSITION = 1  # middle row

_seed_counter = itertools.count()


# ═══════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SpinGrid:
    """Reels × positions matrix of payout-table indices, with its audit trail."""
    cells: tuple               # tuple of per-reel tuples
    seed: str
    nonce: int
    combined_hash: str         # digest stream used for the cells
    catalog_size: int

    @property
    def reels(self) -> int:
        return len(self.cells)

    @property
    def positions(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @property
    def evaluation_line(self) -> tuple:
        """One index per reel — the middle position."""
        return tuple(reel[EVALUATION_POSITION] for reel in self.cells)

    def as_lists(self) -> list[list[int]]:
        return [list(reel) for reel in self.cells]

    def verification_data(self) -> dict:
        """Data needed to independently verify this spin."""
        return {
            "seed": self.seed,
            "seed_hash": seed_commitment(self.seed),
            "nonce": self.nonce,
            "catalog_size": self.catalog_size,
            "combined_hash": self.combined_hash,
            "grid": self.as_lists(),
            "evaluation_line": list(self.evaluation_line),
            "verification_steps": [
                "1. Check: SHA-256(seed) == seed_hash published before the spin",
                "2. Compute: digest = SHA-256(seed + str(nonce))",
                "3. If more hex is needed, append SHA-256(seed + str(nonce) + ':' + i) for i = 1, 2, ...",
                f"4. Cell k = int(digest[k*{SLICE_WIDTH}:(k+1)*{SLICE_WIDTH}], 16) % catalog_size",
                "5. Fill reel by reel: cell k → reel k // positions, position k % positions",
            ],
        }

    def to_audit_json(self) -> str:
        return json.dumps(self.verification_data(), indent=2, ensure_ascii=False)


# ═══════════════════════════════════════════════════════════════
# Seeds & Nonces
# ═══════════════════════════════════════════════════════════════

def new_seed() -> str:
    """Fresh, unguessable seed: 128 random bits + ns clock + process counter."""
    return f"{os.urandom(16).hex()}{time.time_ns():x}{next(_seed_counter):x}"


def seed_commitment(seed: str) -> str:
    """SHA-256 of the seed, publishable before the spin without revealing it."""
    return hashlib.sha256(seed.encode()).hexdigest()


def current_nonce() -> int:
    """Millisecond timestamp used as the per-spin nonce."""
    return time.time_ns() // 1_000_000


# ═══════════════════════════════════════════════════════════════
# Derivation
# ═══════════════════════════════════════════════════════════════

def digest_stream(seed: str, nonce: int, hex_chars: int) -> str:
    """Hex digest of seed+nonce, chained with extra blocks until hex_chars long."""
    commitment = f"{seed}{nonce}"
    stream = hashlib.sha256(commitment.encode()).hexdigest()
    block = 1
    while len(stream) < hex_chars:
        stream += hashlib.sha256(f"{commitment}:{block}".encode()).hexdigest()
        block += 1
    return stream


def derive_grid(seed: str, catalog_size: int, reels: int = 3,
                positions: int = 3, nonce: Optional[int] = None) -> SpinGrid:
    """Map the hash of (seed, nonce) onto a reels × positions grid of indices.

    Pure for a fixed nonce. When nonce is None the current ms timestamp is used
    and recorded on the returned grid.
    """
    if catalog_size <= 0:
        raise ConfigurationError(
            f"Cannot derive outcomes from an empty payout table (size {catalog_size})"
        )
    if reels <= 0 or positions <= EVALUATION_POSITION:
        raise ConfigurationError(
            f"Grid must have at least 1 reel and {EVALUATION_POSITION + 1} positions"
        )
    if nonce is None:
        nonce = current_nonce()

    cell_count = reels * positions
    stream = digest_stream(seed, nonce, cell_count * SLICE_WIDTH)

    cells = []
    for reel in range(reels):
        reel_cells = []
        for pos in range(positions):
            k = reel * positions + pos
            chunk = stream[k * SLICE_WIDTH:(k + 1) * SLICE_WIDTH]
            reel_cells.append(int(chunk, 16) % catalog_size)
        cells.append(tuple(reel_cells))

    grid = SpinGrid(
        cells=tuple(cells),
        seed=seed,
        nonce=nonce,
        combined_hash=stream,
        catalog_size=catalog_size,
    )
    logger.debug(f"Derived grid nonce={nonce} line={grid.evaluation_line}")
    return grid


# ═══════════════════════════════════════════════════════════════
# Verification
# ═══════════════════════════════════════════════════════════════

def verify_grid(seed: str, nonce: int, catalog_size: int, cells) -> bool:
    """Re-derive a grid and compare it to the reported cells."""
    reported = [list(reel) for reel in cells]
    if not reported:
        return False
    recomputed = derive_grid(seed, catalog_size, reels=len(reported),
                             positions=len(reported[0]), nonce=nonce)
    return recomputed.as_lists() == reported


def verify_seed(seed: str, expected_hash: str) -> bool:
    """Verify the disclosed seed matches the commitment shared before the spin."""
    return seed_commitment(seed) == expected_hash


def generate_verification_js() -> str:
    """JavaScript a player can run in the browser to re-derive a spin."""
    return '''
// ═══ FAIRSPIN VERIFICATION ═══
async function sha256Hex(text) {
    const buf = await crypto.subtle.digest('SHA-256', new TextEncoder().encode(text));
    return Array.from(new Uint8Array(buf)).map(b => b.toString(16).padStart(2, '0')).join('');
}

async function deriveGrid(seed, nonce, catalogSize, reels = 3, positions = 3) {
    const commitment = seed + String(nonce);
    let stream = await sha256Hex(commitment);
    for (let block = 1; stream.length < reels * positions * %%WIDTH%%; block++) {
        stream += await sha256Hex(commitment + ':' + block);
    }
    const grid = [];
    for (let reel = 0; reel < reels; reel++) {
        const cells = [];
        for (let pos = 0; pos < positions; pos++) {
            const k = reel * positions + pos;
            cells.push(parseInt(stream.slice(k * %%WIDTH%%, (k + 1) * %%WIDTH%%), 16) % catalogSize);
        }
        grid.push(cells);
    }
    return grid;
}

async function verifySeed(seed, expectedHash) {
    return (await sha256Hex(seed)) === expectedHash;
}
'''.replace("%%WIDTH%%", str(SLICE_WIDTH))
