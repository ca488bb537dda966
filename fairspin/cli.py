#!/usr/bin/env python3
"""
FAIRSPIN — Command Line

Usage:
    python -m fairspin.cli play --spins 20 --bet 1
    python -m fairspin.cli verify --seed <seed> --nonce <nonce>
    python -m fairspin.cli simulate --rounds 100000
    python -m fairspin.cli paytable
"""

import argparse
import json
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.database import JackpotStore
from config.settings import SlotConfig, setup_logging
from fairspin.engine import SlotEngine
from fairspin.errors import InsufficientFunds, SlotEngineError
from fairspin.evaluator import OutcomeKind, evaluate
from fairspin.rng import derive_grid

console = Console()

_OUTCOME_STYLE = {
    OutcomeKind.NO_WIN: "dim",
    OutcomeKind.SYMBOL_WIN: "green",
    OutcomeKind.JACKPOT_WIN: "bold magenta",
    OutcomeKind.JACKPOT_UNAVAILABLE: "yellow",
}


def _line_names(table, line) -> str:
    return " | ".join(table.symbol_at(i).name for i in line)


def cmd_play(args) -> int:
    store = JackpotStore(args.db) if args.db else None
    engine = SlotEngine(store=store, user_id=args.user)
    if args.bet is not None:
        engine.set_min_bet()
        engine.adjust_bet(args.bet - float(engine.ledger.rules.min_bet))

    snap = engine.snapshot()
    console.print(Panel(
        f"Credit: {snap.credit:.2f} {engine.currency}\n"
        f"Bet: {snap.bet:.2f} {engine.currency}\n"
        f"Jackpot: {snap.jackpot_amount:.2f} {engine.currency} ({snap.jackpot_state.value})\n"
        f"Next seed hash: {engine.next_seed_hash}",
        title="FairSpin", border_style="cyan",
    ))

    table = Table(title=f"{args.spins} spins")
    for col in ("#", "Line", "Outcome", "Payout", "Credit", "Jackpot"):
        table.add_column(col)

    for i in range(args.spins):
        try:
            r = engine.spin()
        except InsufficientFunds as e:
            console.print(f"[red]Stopped after {i} spins: {e}[/red]")
            break
        table.add_row(
            str(i + 1),
            _line_names(engine.payout_table, r.evaluation_line),
            f"[{_OUTCOME_STYLE[r.outcome.kind]}]{r.message}[/]",
            f"{r.payout:.2f}",
            f"{r.credit_after:.2f}",
            f"{r.jackpot_after:.2f}",
        )
        if args.audit:
            console.print_json(r.grid.to_audit_json())

    console.print(table)
    return 0


def cmd_verify(args) -> int:
    payout_table = SlotConfig.payout_table()
    grid = derive_grid(args.seed, len(payout_table), nonce=args.nonce)
    outcome = evaluate(grid, payout_table)
    console.print_json(grid.to_audit_json())
    console.print(f"Line: {_line_names(payout_table, grid.evaluation_line)} → "
                  f"[bold]{outcome.kind.value}[/bold]")
    if args.grid:
        expected = json.loads(args.grid)
        ok = grid.as_lists() == expected
        console.print("[green]✅ PASS[/green]" if ok else "[red]❌ FAIL[/red]")
        return 0 if ok else 1
    return 0


def cmd_simulate(args) -> int:
    from sim_engine.rmg import get_game_engine

    sim = get_game_engine("slots")
    config = sim.generate_config(
        payout_table=SlotConfig.payout_table(),
        house_edge=float(SlotConfig.HOUSE_EDGE),
        jackpot_rate=float(SlotConfig.JACKPOT_CONTRIBUTION_RATE),
    )
    console.print(f"[cyan]Running {args.rounds:,}-round {sim.display_name} simulation...[/cyan]")
    res = sim.simulate(config, rounds=args.rounds, seed=args.seed)
    console.print(f"[green]✅ Simulation complete:[/green]")
    console.print(f"   House Edge: theoretical={res.house_edge_theoretical*100:.2f}% "
                  f"measured={res.house_edge_measured*100:.2f}%")
    console.print(f"   RTP (symbol wins): {res.rtp*100:.2f}%")
    console.print(f"   Hit Rate: {res.hit_rate*100:.2f}%")
    console.print(f"   Jackpot lines: {res.jackpot_hits}")
    if args.json:
        console.print_json(json.dumps(res.to_dict()))
    return 0


def cmd_paytable(args) -> int:
    payout_table = SlotConfig.payout_table()
    rules = SlotConfig.rules()
    table = Table(title=f"Payout table (effective bet {rules.effective_bet_rate})")
    for col in ("Index", "Id", "Name", "Pays"):
        table.add_column(col)
    for idx, s in enumerate(payout_table.symbols):
        pays = "JACKPOT POOL" if s.is_jackpot else f"{s.multiplier}x"
        table.add_row(str(idx), str(s.id), s.name, pays)
    console.print(table)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Provably fair slot engine")
    parser.add_argument("--log-level", type=str, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("play", help="Spin the reels")
    p.add_argument("--spins", type=int, default=10)
    p.add_argument("--bet", type=float, default=None)
    p.add_argument("--user", type=str, default="local")
    p.add_argument("--db", type=str, default=SlotConfig.DB_PATH,
                   help="SQLite path for jackpot claims + audit trail ('' to disable)")
    p.add_argument("--audit", action="store_true", help="Print the audit record of each spin")
    p.set_defaults(func=cmd_play)

    v = sub.add_parser("verify", help="Re-derive a spin from its seed and nonce")
    v.add_argument("--seed", type=str, required=True)
    v.add_argument("--nonce", type=int, required=True)
    v.add_argument("--grid", type=str, default=None, help="Reported grid as JSON, e.g. [[1,2,3],...]")
    v.set_defaults(func=cmd_verify)

    s = sub.add_parser("simulate", help="Monte Carlo RTP of the payout table")
    s.add_argument("--rounds", type=int, default=100_000)
    s.add_argument("--seed", type=int, default=42)
    s.add_argument("--json", action="store_true")
    s.set_defaults(func=cmd_simulate)

    t = sub.add_parser("paytable", help="Show the payout table")
    t.set_defaults(func=cmd_paytable)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        return args.func(args)
    except SlotEngineError as e:
        console.print(f"[red]❌ {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
