"""Allocation tree CLI.

Provides commands for:
- show: Print the allocation tree with values, variances and grand total
- apply: Apply one absolute or percentage edit to a node
- batch: Apply a sequence of edits in order
"""
from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import List, Optional, Tuple

import yaml

from budget.tree import to_snapshot
from common.config_loader import LoadedConfig, load_all
from common.errors import AllocationError
from engine.allocation_engine import AllocationEngine
from reporting.explainability import diff_trees, explain_changes
from reporting.summary import tree_summary
from reporting.table import format_table, rows_frame


def parse_amount(raw: str) -> float:
    """Parse user-entered text into a finite number.

    Raises:
        ValueError: If the text is empty, not numeric, or not finite.
    """
    text = (raw or "").strip().replace(",", "")
    if not text:
        raise ValueError("Empty amount")
    try:
        amount = float(text)
    except ValueError:
        raise ValueError(f"Invalid amount: {raw!r}") from None
    if not math.isfinite(amount):
        raise ValueError(f"Amount must be finite: {raw!r}")
    return amount


def parse_edit(item: str) -> Tuple[str, float, bool]:
    """Parse a batch edit: ``id=value`` (absolute) or ``id=+10%`` (percentage)."""
    node_id, sep, raw = item.partition("=")
    if not sep or not node_id.strip():
        raise ValueError(f"Invalid edit format: {item!r} (expected id=value or id=pct%)")
    raw = raw.strip()
    if raw.endswith("%"):
        return node_id.strip(), parse_amount(raw[:-1]), True
    return node_id.strip(), parse_amount(raw), False


def configure_logging(cfg: LoadedConfig, level: Optional[str]) -> None:
    """Configure the root logger from --log-level or the config's logging.level."""
    name = level or str(cfg.policy.get("logging", {}).get("level", "WARNING"))
    logging.basicConfig(
        level=getattr(logging, name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_engine(cfg: LoadedConfig) -> AllocationEngine:
    """Build the engine from the loaded snapshot and policy."""
    return AllocationEngine.from_snapshot(cfg.tree, cfg.policy)


def render(engine: AllocationEngine, fmt: str) -> None:
    if fmt == "yaml":
        # Same shape as the --tree input, so the output can be loaded again.
        output = {"nodes": to_snapshot(engine.snapshot())}
        print(yaml.safe_dump(output, default_flow_style=False, sort_keys=False), end="")
        return
    rows = engine.rows()
    if fmt == "csv":
        print(rows_frame(rows).to_csv(index=False), end="")
        return
    for line in format_table(rows, engine.grand_total()):
        print(line)


def _load(args) -> Tuple[LoadedConfig, AllocationEngine]:
    cfg = load_all(args.config, args.tree)
    configure_logging(cfg, args.log_level)
    return cfg, build_engine(cfg)


def cmd_show(args) -> int:
    """Handle show command: print the current tree."""
    try:
        _, engine = _load(args)
    except (AllocationError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1

    render(engine, args.format)

    if args.summary:
        summary = tree_summary(engine.snapshot())
        print("\nSummary:")
        for k, v in summary.items():
            if k == "top_level":
                for item in v:
                    var = "n/a" if item["variance"] is None else f"{item['variance']:.2f}%"
                    print(f"  {item['label']}: {item['value']:,.2f} ({var})")
            elif k == "grand_total":
                print(f"  {k}: {v:,.2f}")
            else:
                print(f"  {k}: {v}")
    return 0


def _apply_edits(args, edits: List[Tuple[str, float, bool]]) -> int:
    try:
        _, engine = _load(args)
        before = engine.snapshot()
        for node_id, amount, is_percent in edits:
            if is_percent:
                engine.apply_percentage_delta(node_id, amount)
            else:
                engine.apply_absolute(node_id, amount)
    except (AllocationError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1

    render(engine, args.format)

    if args.explain:
        changes = diff_trees(before, engine.snapshot())
        print("\nChanges:")
        if changes:
            for line in explain_changes(changes):
                print("  " + line)
        else:
            print("  No values changed.")
    return 0


def cmd_apply(args) -> int:
    """Handle apply command: a single edit on one node."""
    try:
        amount = parse_amount(args.amount)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    return _apply_edits(args, [(args.node_id, amount, args.percent)])


def cmd_batch(args) -> int:
    """Handle batch command: several edits applied in order."""
    try:
        edits = [parse_edit(item) for item in args.edits]
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    return _apply_edits(args, edits)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    p = argparse.ArgumentParser(
        prog="cli.main",
        description="Allocation tree CLI: hierarchical budget recalculation",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # Common arguments for all commands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default="config/engine.yaml", help="Engine policy file")
    common.add_argument("--tree", default="config/budget_tree.yaml", help="Initial tree snapshot file")
    common.add_argument("--format", choices=["table", "csv", "yaml"], default="table", help="Output format")
    common.add_argument("--log-level", default=None, help="Logging level (overrides config)")

    # Show command
    show_p = sub.add_parser("show", parents=[common], help="Show the allocation tree")
    show_p.add_argument("--summary", action="store_true", help="Also print a tree summary")
    show_p.set_defaults(func=cmd_show)

    # Apply command
    apply_p = sub.add_parser("apply", parents=[common], help="Apply one edit to a node")
    apply_p.add_argument("node_id", help="Id of the node to edit")
    apply_p.add_argument("amount", help="New value, or percentage change with --percent")
    apply_p.add_argument(
        "--percent",
        action="store_true",
        help="Treat amount as a percentage change of the current value",
    )
    apply_p.add_argument("--explain", action="store_true", help="List every node that changed")
    apply_p.set_defaults(func=cmd_apply)

    # Batch command
    batch_p = sub.add_parser("batch", parents=[common], help="Apply several edits in order")
    batch_p.add_argument(
        "edits",
        nargs="+",
        help="Edits as id=value (absolute) or id=+10%% / id=-5%% (percentage)",
    )
    batch_p.add_argument("--explain", action="store_true", help="List every node that changed")
    batch_p.set_defaults(func=cmd_batch)

    args = p.parse_args(argv if argv is not None else sys.argv[1:])
    raise SystemExit(args.func(args))


if __name__ == "__main__":
    main()
