#!/usr/bin/env python3
"""
FAIRSPIN — Unit & Integration Test Suite

Run: python tests.py
     python tests.py -v               # verbose
     python tests.py TestLedger       # run specific class

Test categories:
  TestPayoutTable     — catalog validation, JSON loading
  TestOutcomeDeriver  — determinism, range safety, digest slicing, verification
  TestWinEvaluator    — middle-line classification
  TestLedger          — settlement arithmetic, jackpot lock, bet clamping
  TestSlotEngine      — orchestration, seed rotation, re-entrancy, audit trail
  TestSimulation      — theoretical edge + Monte Carlo
  TestSettings        — env-driven constants, logging setup
"""

import hashlib
import json
import os
import random
import sys
import tempfile
import sqlite3
import unittest
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.database import JackpotStore
from fairspin.engine import MSG_INSUFFICIENT, MSG_TRY_AGAIN, SlotEngine
from fairspin.errors import ConfigurationError, InsufficientFunds, SpinInProgress
from fairspin.evaluator import OutcomeKind, WinOutcome, evaluate
from fairspin.ledger import JackpotState, Ledger, LedgerRules
from fairspin.paytable import (
    build_payout_table, default_payout_table, load_payout_table,
)
from fairspin.rng import (
    SpinGrid, derive_grid, digest_stream, new_seed, seed_commitment,
    verify_grid, verify_seed,
)
from fairspin.wallet_bridge import CallbackWallet

TODAY = date(2026, 10, 18)


def _grid(cells, n=9) -> SpinGrid:
    return SpinGrid(cells=tuple(tuple(r) for r in cells), seed="s", nonce=0,
                    combined_hash="", catalog_size=n)


def _single_symbol_table(is_jackpot=False, multiplier="10"):
    # N = 1 → every cell is index 0, so every line matches
    return build_payout_table([
        {"id": 7, "name": "Only", "is_jackpot": is_jackpot, "multiplier": multiplier},
    ])


def _engine(table=None, **kw):
    kw.setdefault("rules", LedgerRules())
    kw.setdefault("today_fn", lambda: TODAY)
    kw.setdefault("reveal_ms", 0)
    kw.setdefault("currency", "Pi")
    return SlotEngine(payout_table=table or default_payout_table(), **kw)


# ============================================================
# Payout Table
# ============================================================

class TestPayoutTable(unittest.TestCase):

    def test_default_catalog(self):
        """Built-in strip has nine symbols with unique ids 0..8."""
        table = default_payout_table()
        self.assertEqual(len(table), 9)
        self.assertEqual([s.id for s in table.symbols], list(range(9)))
        self.assertEqual(table.jackpot_ids(), [1, 4, 6, 8])

    def test_max_multiplier_ignores_jackpot(self):
        self.assertEqual(default_payout_table().max_multiplier(), Decimal("10"))

    def test_empty_table_rejected(self):
        with self.assertRaises(ConfigurationError):
            build_payout_table([])

    def test_duplicate_ids_rejected(self):
        with self.assertRaises(ConfigurationError):
            build_payout_table([
                {"id": 1, "name": "A", "multiplier": "2"},
                {"id": 1, "name": "B", "multiplier": "3"},
            ])

    def test_negative_multiplier_rejected(self):
        with self.assertRaises(ConfigurationError):
            build_payout_table([{"id": 1, "name": "A", "multiplier": "-1"}])

    def test_symbol_at_out_of_range(self):
        with self.assertRaises(ConfigurationError):
            default_payout_table().symbol_at(9)

    def test_load_from_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "paytable.json"
            path.write_text(json.dumps({"symbols": [
                {"id": 10, "name": "Bell", "multiplier": "4"},
                {"id": 11, "name": "Crown", "is_jackpot": True},
            ]}))
            table = load_payout_table(path)
        self.assertEqual(len(table), 2)
        self.assertEqual(table.by_id(10).multiplier, Decimal("4"))
        self.assertTrue(table.symbol_at(1).is_jackpot)

    def test_load_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_payout_table("/nonexistent/paytable.json")


# ============================================================
# Outcome Deriver
# ============================================================

class TestOutcomeDeriver(unittest.TestCase):

    def test_deterministic(self):
        """Same (seed, nonce, N) → same grid every time."""
        a = derive_grid("abc123", 9, nonce=1700000000000)
        b = derive_grid("abc123", 9, nonce=1700000000000)
        self.assertEqual(a.cells, b.cells)
        self.assertEqual(a.combined_hash, b.combined_hash)

    def test_nonce_changes_grid(self):
        seed = "fixed-seed"
        grids = {derive_grid(seed, 9, nonce=n).cells for n in range(50)}
        self.assertGreater(len(grids), 40)

    def test_shape(self):
        g = derive_grid("x", 9, nonce=1)
        self.assertEqual(g.reels, 3)
        self.assertEqual(g.positions, 3)
        self.assertEqual(len(g.evaluation_line), 3)

    def test_range_safety(self):
        """Every cell is in [0, N) across 10,000 random seeds."""
        rng = random.Random(7)
        for n in (1, 2, 9):
            for _ in range(10_000 if n == 9 else 500):
                seed = f"{rng.getrandbits(64):x}"
                g = derive_grid(seed, n, nonce=rng.getrandbits(41))
                for reel in g.cells:
                    for cell in reel:
                        self.assertTrue(0 <= cell < n)

    def test_cells_follow_digest_slices(self):
        """Cell k = int(digest[k*8:(k+1)*8], 16) % N, reel-major."""
        seed, nonce = "slice-check", 1234567890123
        digest = hashlib.sha256(f"{seed}{nonce}".encode()).hexdigest()
        g = derive_grid(seed, 9, nonce=nonce)
        self.assertTrue(g.combined_hash.startswith(digest))
        for k in range(8):
            expected = int(digest[k * 8:(k + 1) * 8], 16) % 9
            self.assertEqual(g.cells[k // 3][k % 3], expected)
        # Middle line lives entirely inside the first digest
        self.assertEqual(g.evaluation_line[2], int(digest[56:64], 16) % 9)

    def test_digest_stream_extension(self):
        """Ninth cell comes from SHA-256(commitment + ':1')."""
        seed, nonce = "ext", 42
        stream = digest_stream(seed, nonce, 72)
        second = hashlib.sha256(f"{seed}{nonce}:1".encode()).hexdigest()
        self.assertEqual(len(stream), 128)
        self.assertEqual(stream[64:], second)
        g = derive_grid(seed, 9, nonce=nonce)
        self.assertEqual(g.cells[2][2], int(second[:8], 16) % 9)

    def test_empty_catalog_is_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            derive_grid("seed", 0, nonce=1)

    def test_nonce_captured_when_omitted(self):
        g = derive_grid("seed", 9)
        self.assertGreater(g.nonce, 1_600_000_000_000)  # ms since epoch
        self.assertTrue(verify_grid("seed", g.nonce, 9, g.cells))

    def test_verify_grid(self):
        g = derive_grid("seed-v", 9, nonce=99)
        self.assertTrue(verify_grid("seed-v", 99, 9, g.cells))
        tampered = g.as_lists()
        tampered[1][1] = (tampered[1][1] + 1) % 9
        self.assertFalse(verify_grid("seed-v", 99, 9, tampered))
        self.assertFalse(verify_grid("seed-v", 100, 9, g.cells))

    def test_seeds_never_collide(self):
        seeds = {new_seed() for _ in range(10_000)}
        self.assertEqual(len(seeds), 10_000)

    def test_seed_commitment(self):
        s = new_seed()
        h = seed_commitment(s)
        self.assertEqual(h, hashlib.sha256(s.encode()).hexdigest())
        self.assertTrue(verify_seed(s, h))
        self.assertFalse(verify_seed(s + "x", h))

    def test_audit_json(self):
        g = derive_grid("audit", 9, nonce=5)
        data = json.loads(g.to_audit_json())
        self.assertEqual(data["nonce"], 5)
        self.assertEqual(data["grid"], g.as_lists())
        self.assertEqual(data["seed_hash"], seed_commitment("audit"))
        self.assertGreaterEqual(len(data["verification_steps"]), 4)


# ============================================================
# Win Evaluator
# ============================================================

class TestWinEvaluator(unittest.TestCase):

    def setUp(self):
        self.table = default_payout_table()

    def test_no_match(self):
        g = _grid([[0, 3, 0], [0, 3, 0], [0, 2, 0]])
        self.assertEqual(evaluate(g, self.table).kind, OutcomeKind.NO_WIN)

    def test_only_middle_line_counts(self):
        """Matching top/bottom rows do not win."""
        g = _grid([[3, 0, 3], [3, 2, 3], [3, 5, 3]])
        self.assertEqual(evaluate(g, self.table).kind, OutcomeKind.NO_WIN)

    def test_symbol_win(self):
        g = _grid([[0, 3, 1], [5, 3, 2], [8, 3, 4]])
        out = evaluate(g, self.table)
        self.assertEqual(out.kind, OutcomeKind.SYMBOL_WIN)
        self.assertEqual(out.symbol_id, 3)
        self.assertEqual(out.multiplier, Decimal("10"))

    def test_jackpot_win(self):
        g = _grid([[0, 4, 0], [1, 4, 1], [2, 4, 2]])
        out = evaluate(g, self.table)
        self.assertEqual(out.kind, OutcomeKind.JACKPOT_WIN)
        self.assertEqual(out.symbol_id, 4)

    def test_zero_multiplier_match_is_no_win(self):
        table = build_payout_table([
            {"id": 0, "name": "Blank", "multiplier": "0"},
            {"id": 1, "name": "Bar", "multiplier": "2"},
        ])
        g = _grid([[1, 0, 1], [1, 0, 1], [1, 0, 1]], n=2)
        out = evaluate(g, table)
        self.assertEqual(out.kind, OutcomeKind.NO_WIN)
        self.assertEqual(out.symbol_id, 0)

    def test_same_name_different_ids_do_not_match(self):
        """Indices 2 and 5 are both '3.14' but are different symbols."""
        g = _grid([[0, 2, 0], [0, 5, 0], [0, 2, 0]])
        self.assertEqual(evaluate(g, self.table).kind, OutcomeKind.NO_WIN)


# ============================================================
# Ledger
# ============================================================

class TestLedger(unittest.TestCase):

    def setUp(self):
        self.rules = LedgerRules()
        self.ledger = Ledger(self.rules)

    def test_initial_state(self):
        self.assertEqual(self.ledger.credit, Decimal("100"))
        self.assertEqual(self.ledger.bet, Decimal("0.5"))
        self.assertEqual(self.ledger.jackpot_amount, Decimal("50"))
        self.assertEqual(self.ledger.jackpot_state(TODAY), JackpotState.ARMED)

    def test_effective_bet_rate(self):
        self.assertEqual(self.rules.effective_bet_rate, Decimal("0.90"))

    def test_no_win_scenario(self):
        s = self.ledger.apply_spin(WinOutcome.no_win(), TODAY)
        self.assertEqual(s.credit_after, Decimal("99.5"))
        self.assertEqual(self.ledger.jackpot_amount, Decimal("50.025"))
        self.assertEqual(s.payout, 0)

    def test_symbol_win_scenario(self):
        """0.5 bet, 10x symbol: payout 0.5 × 0.9 × 10 = 4.5 → credit 104.0."""
        s = self.ledger.apply_spin(WinOutcome.symbol_win(3, Decimal("10")), TODAY)
        self.assertEqual(s.payout, Decimal("4.5"))
        self.assertEqual(self.ledger.credit, Decimal("104.0"))
        self.assertEqual(self.ledger.jackpot_amount, Decimal("50.025"))

    def test_jackpot_scenario(self):
        """Armed jackpot: credit 99.5 + 50.025 = 149.525, pool back to 50."""
        s = self.ledger.apply_spin(WinOutcome.jackpot_win(4), TODAY)
        self.assertEqual(s.outcome.kind, OutcomeKind.JACKPOT_WIN)
        self.assertEqual(s.jackpot_before, Decimal("50.025"))
        self.assertEqual(self.ledger.credit, Decimal("149.525"))
        self.assertEqual(self.ledger.jackpot_amount, Decimal("50"))
        self.assertEqual(self.ledger.last_jackpot_win_date, TODAY)
        self.assertEqual(self.ledger.jackpot_state(TODAY), JackpotState.CLAIMED)

    def test_second_jackpot_same_day_unavailable(self):
        self.ledger.apply_spin(WinOutcome.jackpot_win(4), TODAY)
        credit = self.ledger.credit
        s = self.ledger.apply_spin(WinOutcome.jackpot_win(1), TODAY)
        self.assertEqual(s.outcome.kind, OutcomeKind.JACKPOT_UNAVAILABLE)
        self.assertEqual(s.payout, 0)
        self.assertEqual(self.ledger.credit, credit - Decimal("0.5"))
        self.assertEqual(self.ledger.jackpot_amount, Decimal("50.025"))

    def test_insufficient_funds_no_mutation(self):
        ledger = Ledger(self.rules, credit=Decimal("0.25"))
        before = ledger.to_dict()
        with self.assertRaises(InsufficientFunds):
            ledger.apply_spin(WinOutcome.symbol_win(3, Decimal("10")), TODAY)
        self.assertEqual(ledger.to_dict(), before)

    def test_credit_never_negative(self):
        ledger = Ledger(self.rules, credit=Decimal("0.5"))
        ledger.apply_spin(WinOutcome.no_win(), TODAY)
        self.assertEqual(ledger.credit, Decimal("0"))
        with self.assertRaises(InsufficientFunds):
            ledger.apply_spin(WinOutcome.no_win(), TODAY)

    def test_refresh_day_rearms_and_resets_pool(self):
        self.ledger.apply_spin(WinOutcome.jackpot_win(4), TODAY)
        self.ledger.apply_spin(WinOutcome.no_win(), TODAY)
        self.assertGreater(self.ledger.jackpot_amount, Decimal("50"))
        tomorrow = TODAY + timedelta(days=1)
        self.assertFalse(self.ledger.refresh_day(TODAY))
        self.assertTrue(self.ledger.refresh_day(tomorrow))
        self.assertEqual(self.ledger.jackpot_amount, Decimal("50"))
        self.assertEqual(self.ledger.jackpot_state(tomorrow), JackpotState.ARMED)

    def test_bet_clamping(self):
        """adjust_bet never leaves [MIN_BET, MAX_BET]."""
        rng = random.Random(3)
        for _ in range(1000):
            delta = rng.choice([-1000, -10, -0.5, 0, 0.5, 3.25, 10, 1e6]) * rng.random()
            bet = self.ledger.adjust_bet(delta)
            self.assertGreaterEqual(bet, self.rules.min_bet)
            self.assertLessEqual(bet, self.rules.max_bet)
        self.assertEqual(self.ledger.set_max_bet(), Decimal("10"))
        self.assertEqual(self.ledger.adjust_bet(5), Decimal("10"))
        self.assertEqual(self.ledger.set_min_bet(), Decimal("0.5"))
        self.assertEqual(self.ledger.adjust_bet(-5), Decimal("0.5"))

    def test_non_finite_bet_rejected(self):
        """NaN / infinity / garbage never reach the Decimal comparisons."""
        for bad in (float("nan"), float("inf"), "-Infinity", "abc"):
            with self.assertRaises(ValueError):
                self.ledger.adjust_bet(bad)
            with self.assertRaises(ValueError):
                self.rules.clamp_bet(bad)
        self.assertEqual(self.ledger.bet, Decimal("0.5"))

    def test_invalid_rules(self):
        with self.assertRaises(ConfigurationError):
            LedgerRules(min_bet=Decimal("5"), max_bet=Decimal("1"))
        with self.assertRaises(ConfigurationError):
            LedgerRules(house_edge=Decimal("0.6"), jackpot_contribution_rate=Decimal("0.5"))
        with self.assertRaises(ConfigurationError):
            LedgerRules(min_bet=Decimal("0"))


# ============================================================
# Slot Engine
# ============================================================

class TestSlotEngine(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.tmpdir, "fairspin.db")

    def test_symbol_win_end_to_end(self):
        engine = _engine(_single_symbol_table())
        r = engine.spin()
        self.assertEqual(r.outcome.kind, OutcomeKind.SYMBOL_WIN)
        self.assertEqual(r.evaluation_line, (0, 0, 0))
        self.assertEqual(r.credit_after, Decimal("104.0"))
        self.assertEqual(r.jackpot_after, Decimal("50.025"))
        self.assertEqual(r.message, "Winner! +4.50 Pi")
        self.assertEqual(engine.snapshot().last_message, r.message)

    def test_no_win_message(self):
        table = build_payout_table([{"id": 0, "name": "Blank", "multiplier": "0"}])
        r = _engine(table).spin()
        self.assertEqual(r.outcome.kind, OutcomeKind.NO_WIN)
        self.assertEqual(r.message, MSG_TRY_AGAIN)
        self.assertEqual(r.credit_after, Decimal("99.5"))

    def test_seed_rotates_and_is_disclosed(self):
        engine = _engine()
        committed = engine.next_seed_hash
        r = engine.spin()
        self.assertEqual(seed_commitment(r.seed), committed)
        self.assertNotEqual(engine.next_seed_hash, committed)
        self.assertEqual(r.next_seed_hash, engine.next_seed_hash)
        r2 = engine.spin()
        self.assertNotEqual(r.seed, r2.seed)

    def test_verify_result(self):
        engine = _engine()
        for _ in range(20):
            r = engine.spin()
            self.assertTrue(engine.verify(r))

    def test_verify_detects_tampering(self):
        engine = _engine()
        r = engine.spin()
        cells = r.grid.as_lists()
        cells[0][1] = (cells[0][1] + 1) % 9
        forged = replace(r, grid=replace(r.grid, cells=tuple(tuple(c) for c in cells)))
        self.assertFalse(engine.verify(forged))
        self.assertFalse(engine.verify(replace(r, grid=replace(r.grid, nonce=r.nonce + 1))))

    def test_insufficient_funds(self):
        engine = _engine(ledger=Ledger(LedgerRules(), credit=Decimal("0.4")))
        with self.assertRaises(InsufficientFunds):
            engine.spin()
        snap = engine.snapshot()
        self.assertEqual(snap.credit, Decimal("0.4"))
        self.assertEqual(snap.jackpot_amount, Decimal("50"))
        self.assertEqual(snap.last_message, MSG_INSUFFICIENT)
        self.assertFalse(snap.is_spinning)

    def test_reentrant_spin_rejected(self):
        """A spin started while another is resolving fails fast."""
        seen = {}

        def reenter(result):
            seen["spinning"] = engine.is_spinning
            try:
                engine.spin()
            except SpinInProgress as e:
                seen["error"] = e
            seen["bet"] = engine.adjust_bet(5)
            seen["max"] = engine.set_max_bet()

        engine = _engine(wallet=CallbackWallet(reenter))
        r = engine.spin()
        self.assertTrue(seen["spinning"])
        self.assertIsInstance(seen["error"], SpinInProgress)
        self.assertEqual(seen["bet"], Decimal("0.5"))
        self.assertEqual(seen["max"], Decimal("0.5"))
        self.assertEqual(engine.ledger.credit, r.credit_after)
        self.assertFalse(engine.is_spinning)

    def test_wallet_failure_keeps_result(self):
        def boom(result):
            raise RuntimeError("payment gateway down")

        engine = _engine(_single_symbol_table(), wallet=CallbackWallet(boom))
        r = engine.spin()
        self.assertEqual(r.credit_after, Decimal("104.0"))
        self.assertEqual(engine.ledger.credit, Decimal("104.0"))

    def test_wallet_receives_settled_result(self):
        got = []
        wallet = CallbackWallet(got.append)
        engine = _engine(wallet=wallet)
        r = engine.spin()
        self.assertEqual(got, [r])
        self.assertEqual(wallet.settled, 1)

    def test_bet_controls(self):
        engine = _engine()
        self.assertEqual(engine.increase_bet(), Decimal("1.0"))
        self.assertEqual(engine.decrease_bet(), Decimal("0.5"))
        self.assertEqual(engine.decrease_bet(), Decimal("0.5"))
        self.assertEqual(engine.set_max_bet(), Decimal("10"))
        self.assertEqual(engine.adjust_bet(100), Decimal("10"))
        r = engine.spin()
        self.assertEqual(r.bet, Decimal("10"))

    def test_audit_trail(self):
        store = JackpotStore(self.db_path)
        engine = _engine(store=store, user_id="u1")
        r = engine.spin()
        self.assertIsNotNone(r.round_id)
        check = engine.verify_round(r.round_id)
        self.assertTrue(check["verified"])
        self.assertEqual(check["grid"], r.grid.as_lists())
        recent = store.recent_rounds("u1")
        self.assertEqual(recent[0]["id"], r.round_id)
        with self.assertRaises(ValueError):
            engine.verify_round(9999)

    def test_audit_failure_keeps_settlement(self):
        """A failing audit write must not turn a settled spin into an error."""
        store = JackpotStore(self.db_path)
        engine = _engine(_single_symbol_table(is_jackpot=True), store=store, user_id="u1")
        committed = engine.next_seed_hash
        with patch.object(store, "record_round",
                          side_effect=sqlite3.OperationalError("disk I/O error")):
            r = engine.spin()
        self.assertIsNone(r.round_id)
        self.assertEqual(r.outcome.kind, OutcomeKind.JACKPOT_WIN)
        self.assertEqual(r.credit_after, Decimal("149.525"))
        self.assertEqual(engine.ledger.credit, Decimal("149.525"))
        self.assertEqual(store.load_last_win_date("u1"), TODAY)
        self.assertNotEqual(engine.next_seed_hash, committed)
        self.assertFalse(engine.is_spinning)
        self.assertTrue(engine.spin().round_id)

    def test_payout_table_from_settings(self):
        engine = SlotEngine(today_fn=lambda: TODAY, reveal_ms=0)
        self.assertEqual(len(engine.payout_table), 9)
        self.assertEqual(engine.snapshot().credit, engine.ledger.rules.initial_credit)


# ============================================================
# Simulation
# ============================================================

class TestSimulation(unittest.TestCase):

    def test_theoretical_edge(self):
        from sim_engine.rmg import get_game_engine
        sim = get_game_engine("slots")
        config = sim.generate_config()
        # non-jackpot multipliers 5+2+10+2+3 = 22, P(line) = 1/729, effective 0.9
        expected = 1 - 22 / 729 * 0.9
        self.assertAlmostEqual(sim.compute_house_edge(config), expected, places=9)

    def test_simulate(self):
        from sim_engine.rmg import get_game_engine
        sim = get_game_engine("slots")
        config = sim.generate_config()
        res = sim.simulate(config, rounds=3000, seed=1)
        self.assertEqual(res.rounds, 3000)
        self.assertGreaterEqual(res.rtp, 0)
        self.assertLessEqual(res.max_multiplier_hit, 9.0)
        self.assertAlmostEqual(sum(res.distribution.values()), 1.0, places=2)
        self.assertEqual(res.to_dict()["game_type"], "slots")

    def test_simulate_single_symbol(self):
        from sim_engine.rmg.slots import SlotsEngine
        sim = SlotsEngine()
        config = sim.generate_config(payout_table=_single_symbol_table(multiplier="2"))
        res = sim.simulate(config, rounds=100)
        self.assertAlmostEqual(res.rtp, 1.8)
        self.assertEqual(res.hit_rate, 1.0)

    def test_unknown_game(self):
        from sim_engine.rmg import get_game_engine
        with self.assertRaises(ValueError):
            get_game_engine("roulette")


# ============================================================
# CLI
# ============================================================

class TestCLI(unittest.TestCase):

    def _play(self, *argv):
        """Run `play` without a store; returns (exit code, engine used)."""
        from fairspin import cli
        created = []

        def make(*a, **kw):
            engine = SlotEngine(*a, **kw)
            created.append(engine)
            return engine

        with patch.object(cli, "SlotEngine", side_effect=make):
            code = cli.main(["play", "--db", "", *argv])
        return code, created[0]

    def test_play(self):
        code, engine = self._play("--spins", "3")
        self.assertEqual(code, 0)
        self.assertIsNone(engine.store)
        self.assertEqual(engine.ledger.bet, engine.ledger.rules.min_bet)

    def test_play_bet_translation(self):
        code, engine = self._play("--spins", "2", "--bet", "2.5")
        self.assertEqual(code, 0)
        self.assertEqual(engine.ledger.bet, Decimal("2.5"))
        code, engine = self._play("--spins", "1", "--bet", "500")
        self.assertEqual(engine.ledger.bet, engine.ledger.rules.max_bet)

    def test_play_stops_when_broke(self):
        from config.settings import SlotConfig
        with patch.object(SlotConfig, "INITIAL_CREDIT", Decimal("0.4")):
            code, engine = self._play("--spins", "5")
        self.assertEqual(code, 0)
        self.assertEqual(engine.ledger.credit, Decimal("0.4"))

    def test_verify_exit_codes(self):
        from fairspin.cli import main
        g = derive_grid("cli-seed", 9, nonce=1700000000123)
        self.assertEqual(main(["verify", "--seed", "cli-seed", "--nonce", "1700000000123",
                               "--grid", json.dumps(g.as_lists())]), 0)
        tampered = g.as_lists()
        tampered[2][0] = (tampered[2][0] + 1) % 9
        self.assertEqual(main(["verify", "--seed", "cli-seed", "--nonce", "1700000000123",
                               "--grid", json.dumps(tampered)]), 1)
        self.assertEqual(main(["verify", "--seed", "cli-seed", "--nonce", "1"]), 0)

    def test_simulate_and_paytable(self):
        from fairspin.cli import main
        self.assertEqual(main(["simulate", "--rounds", "200", "--json"]), 0)
        self.assertEqual(main(["paytable"]), 0)

    def test_engine_error_exits_1(self):
        from config.settings import SlotConfig
        from fairspin.cli import main
        with patch.object(SlotConfig, "PAYTABLE_PATH", "/nonexistent/paytable.json"):
            self.assertEqual(main(["paytable"]), 1)
            self.assertEqual(main(["play", "--db", "", "--spins", "1"]), 1)


# ============================================================
# Settings
# ============================================================

class TestSettings(unittest.TestCase):

    def test_rules_from_settings(self):
        from config.settings import SlotConfig
        rules = SlotConfig.rules()
        self.assertEqual(rules.min_bet, SlotConfig.MIN_BET)
        self.assertEqual(rules.initial_jackpot, SlotConfig.INITIAL_JACKPOT)

    def test_setup_logging_idempotent(self):
        from config.settings import setup_logging
        a = setup_logging("DEBUG")
        b = setup_logging("WARNING")
        self.assertIs(a, b)
        self.assertEqual(len(a.handlers), 1)


# ============================================================
# Main
# ============================================================

if __name__ == "__main__":
    # Configure logging to suppress noise during tests
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
