#!/usr/bin/env python3
"""
nftmarket CLI

Command-line interface to a marketplace ledger kept in a state directory:
  nftmarket actor <name>                 Create an identity
  nftmarket init --admin <name>          Deploy a ledger
  nftmarket create <uri> --as <name>     Mint an asset
  nftmarket list <id> <price> --as <name>
  nftmarket buy <id> --payment <n> --as <name>
  nftmarket cancel <id> --as <name>
  nftmarket withdraw --as <name>
  nftmarket transfer <id> <to> --as <name>
  nftmarket owner <id> | uri <id> | listings | log | balance <name>

Identities are referred to by username; they are resolved to ledger
addresses through the actor store in <state-dir>/actors.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from .config import MarketConfig
from .errors import MarketError
from .identity import ActorStore
from .market import Marketplace

DEFAULT_STATE_DIR = "./market"


def _state_dir(args) -> Path:
    return Path(args.state_dir)


def _actors(args) -> ActorStore:
    return ActorStore(_state_dir(args) / "actors")


def resolve_identity(actors: ActorStore, name: str) -> str:
    """
    Resolve a username or raw address to a ledger address.

    Addresses (0x...) are passed through unchanged.
    """
    if name.startswith("0x"):
        return name
    actor = actors.get(name)
    if actor is None:
        raise ValueError(f"Unknown actor: {name}. Create it with 'nftmarket actor {name}'")
    return actor.id


def _open_market(args) -> Marketplace:
    state_dir = _state_dir(args)
    if not (state_dir / "ledger.json").exists():
        raise ValueError(f"No ledger in {state_dir}. Deploy one with 'nftmarket init'")
    return Marketplace(state_dir=state_dir)


def _caller(args) -> str:
    return resolve_identity(_actors(args), args.caller)


def cmd_actor(args):
    """Create an identity."""
    actor = _actors(args).create(args.name, args.display_name)
    print(f"Created {actor.handle}")
    print(f"  Address: {actor.id}")


def cmd_actors(args):
    """List identities."""
    for actor in _actors(args).list():
        print(f"{actor.username:<16} {actor.id}")


def cmd_init(args):
    """Deploy a new ledger."""
    state_dir = _state_dir(args)
    if (state_dir / "ledger.json").exists():
        raise ValueError(f"A ledger already exists in {state_dir}")

    admin = resolve_identity(_actors(args), args.admin)
    config = MarketConfig(fee_percent=args.fee_percent)

    state_dir.mkdir(parents=True, exist_ok=True)
    with open(state_dir / "config.yaml", "w") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)

    market = Marketplace(administrator=admin, state_dir=state_dir, config=config)
    print(f"Deployed ledger to {market.address}")
    print(f"  Administrator: {market.administrator}")
    print(f"  Fee: {config.fee_percent}%")


def cmd_create(args):
    market = _open_market(args)
    asset_id = market.create(args.uri, caller=_caller(args))
    print(f"Created asset {asset_id}")


def cmd_list(args):
    market = _open_market(args)
    listing = market.list(args.asset_id, args.price, caller=_caller(args))
    print(f"Listed asset {listing.asset_id} at {listing.price}")


def cmd_buy(args):
    market = _open_market(args)
    listing = market.buy(args.asset_id, caller=_caller(args), payment=args.payment)
    print(f"Bought asset {listing.asset_id} for {listing.price}")


def cmd_cancel(args):
    market = _open_market(args)
    listing = market.cancel_listing(args.asset_id, caller=_caller(args))
    print(f"Cancelled listing of asset {listing.asset_id}")


def cmd_withdraw(args):
    market = _open_market(args)
    amount = market.withdraw_funds(caller=_caller(args))
    print(f"Withdrew {amount}")


def cmd_transfer(args):
    market = _open_market(args)
    to = resolve_identity(_actors(args), args.to)
    market.transfer(args.asset_id, to, caller=_caller(args))
    print(f"Transferred asset {args.asset_id} to {to}")


def cmd_owner(args):
    print(_open_market(args).owner_of(args.asset_id))


def cmd_uri(args):
    print(_open_market(args).uri_of(args.asset_id))


def cmd_listings(args):
    market = _open_market(args)
    listings = market.active_listings()
    if not listings:
        print("No active listings")
        return
    for listing in listings:
        print(f"{listing.asset_id:>6}  {listing.price:>12}  {listing.seller}")


def cmd_log(args):
    market = _open_market(args)
    if args.asset is not None:
        records = market.log.find_by_asset(args.asset)
    else:
        records = market.log.list()

    public_key = market.ledger_actor.public_key
    for record in records:
        line = (
            f"{record.sequence:>5}  {record.operation:<8} asset={record.asset_id} "
            f"owner={record.new_owner} price={record.price}"
        )
        if record.uri:
            line += f" uri={record.uri}"
        if args.verify:
            line += "  [ok]" if record.verify(public_key) else "  [BAD SIGNATURE]"
        print(line)


def cmd_balance(args):
    market = _open_market(args)
    identity = resolve_identity(_actors(args), args.name)
    print(f"Assets: {market.balance_of(identity)}")
    print(f"Funds received: {market.funds_of(identity)}")
    if identity == market.administrator:
        print(f"Fee balance: {market.fee_balance()}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="nftmarket",
        description="nftmarket - Non-fungible asset marketplace ledger",
    )
    parser.add_argument("--state-dir", default=DEFAULT_STATE_DIR,
                        help=f"Ledger state directory (default: {DEFAULT_STATE_DIR})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    actor_parser = subparsers.add_parser("actor", help="Create an identity")
    actor_parser.add_argument("name", help="Username")
    actor_parser.add_argument("--display-name", help="Human-readable name")

    subparsers.add_parser("actors", help="List identities")

    init_parser = subparsers.add_parser("init", help="Deploy a new ledger")
    init_parser.add_argument("--admin", required=True, help="Administrator username or address")
    init_parser.add_argument("--fee-percent", type=int, default=5,
                             help="Protocol fee in whole percent (default: 5)")

    create_parser = subparsers.add_parser("create", help="Mint an asset")
    create_parser.add_argument("uri", help="Metadata URI")

    list_parser = subparsers.add_parser("list", help="List an asset for sale")
    list_parser.add_argument("asset_id", type=int)
    list_parser.add_argument("price", type=int)

    buy_parser = subparsers.add_parser("buy", help="Buy a listed asset")
    buy_parser.add_argument("asset_id", type=int)
    buy_parser.add_argument("--payment", type=int, required=True,
                            help="Amount paid (must equal the listing price)")

    cancel_parser = subparsers.add_parser("cancel", help="Cancel a listing")
    cancel_parser.add_argument("asset_id", type=int)

    subparsers.add_parser("withdraw", help="Withdraw collected fees (administrator)")

    transfer_parser = subparsers.add_parser("transfer", help="Give an asset to another identity")
    transfer_parser.add_argument("asset_id", type=int)
    transfer_parser.add_argument("to", help="Recipient username or address")

    owner_parser = subparsers.add_parser("owner", help="Show an asset's owner")
    owner_parser.add_argument("asset_id", type=int)

    uri_parser = subparsers.add_parser("uri", help="Show an asset's metadata URI")
    uri_parser.add_argument("asset_id", type=int)

    subparsers.add_parser("listings", help="Show active listings")

    log_parser = subparsers.add_parser("log", help="Show the transition log")
    log_parser.add_argument("--asset", type=int, help="Only records for this asset")
    log_parser.add_argument("--verify", action="store_true", help="Check record signatures")

    balance_parser = subparsers.add_parser("balance", help="Show holdings of an identity")
    balance_parser.add_argument("name", help="Username or address")

    for name in ("create", "list", "buy", "cancel", "withdraw", "transfer"):
        subparsers.choices[name].add_argument("--as", dest="caller", required=True,
                                              help="Calling identity (username or address)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    commands = {
        "actor": cmd_actor,
        "actors": cmd_actors,
        "init": cmd_init,
        "create": cmd_create,
        "list": cmd_list,
        "buy": cmd_buy,
        "cancel": cmd_cancel,
        "withdraw": cmd_withdraw,
        "transfer": cmd_transfer,
        "owner": cmd_owner,
        "uri": cmd_uri,
        "listings": cmd_listings,
        "log": cmd_log,
        "balance": cmd_balance,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except MarketError as e:
        print(f"error: {e.kind.value}: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
