"""Command-line entrypoint.

  mcrep init [ecc|rsa]                       generate keypair, create ledger
  mcrep register                             register this server
  mcrep sync                                 submit new bans from the ban list
  mcrep manual <player> <points> <comment>   submit a manual report
  mcrep revoke <submission> <comment>        withdraw a submission
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import bittensor as bt
from dotenv import load_dotenv

from mcrep import __version__
from mcrep.client import SubmissionSync, register, revoke, submit_manual
from mcrep.config import ClientConfig, load_config
from mcrep.errors import ConfigurationError, ReputationClientError
from mcrep.ledger.signer import KEY_KINDS, GPGSigner, generate_keypair
from mcrep.ledger.store.filesystem import (
    BANLIST_FILENAME,
    LEDGER_FILENAME,
    SERVER_UUID_FILENAME,
    DedupLedger,
    ServerIdentityStore,
)
from mcrep.ledger.store.http_client import ReputationAPIClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcrep",
        description="Sync a Minecraft server ban list with a shared reputation service",
    )
    parser.add_argument("--version", action="version", version=f"mcrep {__version__}")
    parser.add_argument("--data-dir", type=str, default=None, help="Directory holding keys, ban list and ledger.")
    parser.add_argument("--endpoint", type=str, default=None, help="Reputation service host.")
    parser.add_argument("--wait", type=float, dest="wait_seconds", default=None, help="Seconds between submissions.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Generate a signing keypair and an empty ledger.")
    init.add_argument("kind", nargs="?", choices=KEY_KINDS, default="rsa")
    init.add_argument("--force", action="store_true", help="Replace an existing keypair.")

    sub.add_parser("register", aliases=["reg"], help="Register this server.")
    sub.add_parser("sync", help="Submit bans not yet in the ledger.")

    manual = sub.add_parser("manual", help="Submit a manual report.")
    manual.add_argument("player_uuid")
    manual.add_argument("points")
    manual.add_argument("comment", nargs="*")

    revoke_cmd = sub.add_parser("revoke", help="Revoke a submission.")
    revoke_cmd.add_argument("submission_id")
    revoke_cmd.add_argument("comment", nargs="*")

    return parser


def _signer(config: ClientConfig) -> GPGSigner:
    return GPGSigner(key_dir=config.data_path, passphrase=config.passphrase)


def _transport(config: ClientConfig, operation: str) -> ReputationAPIClient:
    config.require(operation, "endpoint")
    return ReputationAPIClient(config.base_url, timeout=config.timeout_seconds)


def _init(config: ClientConfig, kind: str, force: bool) -> None:
    if not config.user_ids:
        raise ConfigurationError("init", "no user id configured (set MCREP_USER__NAME)")
    generate_keypair(
        key_dir=config.data_path,
        kind=kind,
        user_id=config.user_ids[0],
        passphrase=config.passphrase,
        force=force,
    )
    DedupLedger(config.data_path / LEDGER_FILENAME).initialize()


async def _dispatch(args: argparse.Namespace, config: ClientConfig) -> None:
    command = "register" if args.command == "reg" else args.command

    if command == "init":
        _init(config, args.kind, args.force)
        return

    if command == "register":
        config.require("register", "server_name", "passphrase")
        async with _transport(config, "register") as transport:
            await register(
                config.server_name,
                _signer(config),
                transport,
                ServerIdentityStore(config.data_path / SERVER_UUID_FILENAME),
            )
        return

    if command == "sync":
        config.require("sync", "passphrase")
        async with _transport(config, "sync") as transport:
            sync = SubmissionSync(
                signer=_signer(config),
                transport=transport,
                ledger=DedupLedger(config.data_path / LEDGER_FILENAME),
                banlist_path=config.data_path / BANLIST_FILENAME,
                wait_seconds=config.wait_seconds,
            )
            report = await sync.run()
        print(
            f"submitted {len(report.submitted)}, rejected {len(report.rejected)}, "
            f"skipped {len(report.skipped)} of {report.work_list}"
        )
        return

    if command == "manual":
        async with _transport(config, "manual") as transport:
            record, remote_id = await submit_manual(
                args.player_uuid,
                args.points,
                " ".join(args.comment),
                _signer(config),
                transport,
            )
        print(f"submitted {record.uuid} -> {remote_id}")
        return

    if command == "revoke":
        async with _transport(config, "revoke") as transport:
            await revoke(args.submission_id, " ".join(args.comment), _signer(config), transport)
        print(f"revoked {args.submission_id}")
        return

    raise ConfigurationError(command, "unknown command")


def main(argv: list[str] | None = None) -> int:
    # Load .env if not in test mode
    if os.environ.get("MCREP_TEST_MODE") != "true":
        load_dotenv()

    args = build_parser().parse_args(argv)
    if args.debug:
        bt.logging.set_debug(True)

    try:
        config = load_config(
            data_dir=args.data_dir,
            endpoint=args.endpoint,
            wait_seconds=args.wait_seconds,
        )
        asyncio.run(_dispatch(args, config))
    except ReputationClientError as e:
        bt.logging.error({"mcrep_error": e.to_log()})
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        bt.logging.info({"mcrep": "interrupted"})
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
