"""
Protocol Engine CLI - Command-line interface for the engine.

Usage:
    protocol-engine catalog [triggers|actions|constructs|enemies|masteries]
    protocol-engine simulate <construct> <enemy> --pair always:shoot --seed 7
    protocol-engine validate-table <table.json>
    protocol-engine progress [--reset]
"""

import argparse
import json
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Protocol Engine - trigger/action combat engine",
        prog="protocol-engine",
    )
    parser.add_argument("--log-level", help="Override PROTOCOL_ENGINE_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Catalog command
    catalog_parser = subparsers.add_parser("catalog", help="List catalog entries")
    catalog_parser.add_argument(
        "kind",
        nargs="?",
        default="triggers",
        choices=["triggers", "actions", "constructs", "enemies", "masteries"],
    )

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Simulate one battle")
    simulate_parser.add_argument("construct", help="Player construct id")
    simulate_parser.add_argument("enemy", help="Enemy archetype id")
    simulate_parser.add_argument(
        "--pair",
        action="append",
        default=[],
        metavar="TRIGGER:ACTION[:PRIORITY]",
        help="Protocol to load (repeatable); the action decides the core",
    )
    simulate_parser.add_argument("--seed", type=int, default=0, help="Random seed")
    simulate_parser.add_argument("--duration", type=int, default=60_000, help="Time limit in ms")
    simulate_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")

    # Validate table command
    validate_parser = subparsers.add_parser("validate-table", help="Validate an interaction table")
    validate_parser.add_argument("table_file", help="Path to table JSON")

    # Progress command
    progress_parser = subparsers.add_parser("progress", help="Show saved progress")
    progress_parser.add_argument("--reset", action="store_true", help="Delete saved progress")

    args = parser.parse_args(argv)

    from .config import EngineConfig, configure_logging
    config = EngineConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    if args.command == "catalog":
        cmd_catalog(args, config)
    elif args.command == "simulate":
        cmd_simulate(args, config)
    elif args.command == "validate-table":
        cmd_validate_table(args)
    elif args.command == "progress":
        cmd_progress(args, config)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_catalog(args, config):
    """List catalog entries."""
    from .api.service import EngineService
    from .catalog import EnemyCatalog

    service = EngineService(table=config.load_table())
    if args.kind == "triggers":
        for t in service.list_triggers().triggers:
            print(f"{t.id:<24} {t.category:<14} {t.description}")
    elif args.kind == "actions":
        for a in service.list_actions().actions:
            print(f"{a.id:<24} {a.core_type:<9} {a.cooldown_ms:>6.0f}ms  {a.description}")
    elif args.kind == "constructs":
        for c in service.list_constructs().constructs:
            print(f"{c.id:<12} HP {c.base_hp:<4} SH {c.base_shields:<4} AR {c.base_armor:<4} "
                  f"slots {c.max_movement_slots}/{c.max_tactical_slots}")
    elif args.kind == "enemies":
        for e in EnemyCatalog.default():
            print(f"{e.id:<16} {e.tier.value:<6} HP {e.base_hp:<4} {e.description}")
    else:
        for m in service.list_masteries().masteries:
            print(f"{m.id:<22} +{m.flat_bonus:<4} x{m.multiplier:<5} {m.description}")


def _parse_pair(text):
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Expected TRIGGER:ACTION[:PRIORITY], got {text!r}")
    priority = float(parts[2]) if len(parts) == 3 else 1
    return parts[0], parts[1], priority


def cmd_simulate(args, config):
    """Simulate one battle and print the result."""
    from .api.service import EngineService
    from .api.schemas import ErrorResponse, LoadoutProtocol, SimulateRequest
    from .catalog import ActionCatalog
    from .engine_core.action import CoreType

    actions = ActionCatalog.default()
    movement, tactical = [], []
    for text in args.pair:
        try:
            trigger_id, action_id, priority = _parse_pair(text)
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)
        protocol = LoadoutProtocol(trigger_id=trigger_id, action_id=action_id, priority=priority)
        action = actions.lookup(action_id)
        if action.found and action.value.core_type is CoreType.MOVEMENT:
            movement.append(protocol)
        else:
            tactical.append(protocol)

    service = EngineService(actions=actions, table=config.load_table(), tick_ms=config.tick_ms)
    result = service.simulate(SimulateRequest(
        construct_id=args.construct,
        enemy_id=args.enemy,
        movement_protocols=movement,
        tactical_protocols=tactical,
        seed=args.seed,
        duration_ms=args.duration,
    ))

    if isinstance(result, ErrorResponse):
        print(f"Error: {result.error}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.model_dump(), indent=2))
        return

    print(f"Outcome: {result.outcome} after {result.duration_s:.1f}s")
    print(f"Player HP: {result.player_hp:.1f}  Enemy HP: {result.enemy_hp:.1f}")
    print(f"Protocols fired: {len(result.executed)}")
    for damage_type, amount in sorted(result.damage_by_type.items()):
        print(f"  {damage_type:<11} {amount:.1f}")
    if result.completed_masteries:
        print("Masteries: " + ", ".join(result.completed_masteries))
    if result.dropped:
        print("\nDropped:")
        for d in result.dropped:
            print(f"  - {d.trigger_id}:{d.action_id} ({d.reason})")


def cmd_validate_table(args):
    """Validate an interaction table file."""
    from .balance import load_table, validate_table

    try:
        table = load_table(args.table_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.table_file}")
        sys.exit(1)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        print(f"Error: Could not read table: {e}")
        sys.exit(1)

    result = validate_table(table)
    print(f"Table version: {table.version}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("Valid")


def cmd_progress(args, config):
    """Show or reset saved progress."""
    from .persistence import JsonFileProgressStore

    store = JsonFileProgressStore(config.data_dir)
    if args.reset:
        store.clear()
        print(f"Cleared {store.path}")
        return

    progress = store.load_progress()
    print(f"Cipher fragments: {progress.cipher_fragments}")
    print(f"Runs: {progress.total_runs}  Nodes: {progress.total_nodes_completed}")
    print(f"Masteries: {', '.join(progress.completed_masteries) or '-'}")
    for slot_id, slot in progress.slots.items():
        print(f"  {slot_id}: {slot.construct_id or '-'} "
              f"({len(slot.movement_protocols)} movement, {len(slot.tactical_protocols)} tactical)")


if __name__ == "__main__":
    main()
