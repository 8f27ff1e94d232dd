"""Command-line entry point for operating bridge vault deployments."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from .bridge import BridgeOrchestrator
from .config import ClientConfig, ConfigStore
from .contract import VaultContract
from .exceptions import BridgeVaultError, NotFoundError, ValidationError
from .fees import FeeResolver, submission_value
from .pyth import PriceServiceClient
from .types import BridgeResult, NetworkConfig
from .utils import format_ether, format_units
from .validation import validate_address, validate_price_feed_id
from .whitelist import WhitelistReconciler

logger = logging.getLogger("bridge_vault")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _open_vault(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> VaultContract:
    return VaultContract.from_network(args.network, store, client_config=client, logger=logger)


def _lookup_price_feed(store: ConfigStore, network: str, token: str) -> str:
    whitelist = store.get_token_whitelist(network)
    for address, price_feed_id in whitelist.items():
        if address.lower() == token.lower():
            return price_feed_id
    raise NotFoundError(
        f"Token {token} has no configured price feed on network '{network}'",
        resource=token,
        available=list(whitelist),
    )


def _fetch_price_update(
    store: ConfigStore, client: ClientConfig, network: str, token: str
) -> list[str]:
    price_feed_id = _lookup_price_feed(store, network, token)
    chain_id = store.get_network(network).chain_id
    service = PriceServiceClient(
        base_url=client.hermes_url, request_timeout=client.request_timeout, logger=logger
    )
    return service.fetch_price_update_data(price_feed_id, chain_id)


def _resolve_price_update(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig, token: str | None
) -> list[str]:
    if args.price_update:
        return list(args.price_update)
    if args.fetch_price:
        if token is None:
            raise ValidationError("--fetch-price requires --token", field="token")
        return _fetch_price_update(store, client, args.network, token)
    return []


def _print_summary(result: BridgeResult) -> None:
    summary = result.summary
    if summary is None:
        return
    token = summary.token
    fee_note = "" if summary.fee_estimated else " (fee query failed, assuming zero)"
    print(f"Signer:            {summary.signer}")
    print(f"Vault:             {summary.vault_address}")
    print(f"Token:             {token.address} ({token.symbol})")
    print(f"Balance:           {format_units(token.balance, token.decimals)} {token.symbol}")
    fee = format_units(summary.fee, token.decimals)
    print(f"Fee:               {fee} {token.symbol}{fee_note}")
    print(
        f"Bridge amount:     {format_units(summary.bridge_amount, token.decimals)} {token.symbol}"
    )
    print(f"Required native:   {format_ether(summary.required_native)} ETH")
    print(f"Native balance:    {format_ether(summary.native_balance)} ETH")
    if result.value is not None:
        print(f"Submission value:  {format_ether(result.value)} ETH")


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------
def cmd_deploy(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    vault = _open_vault(args, store, client)
    address = vault.deploy(args.fee_recipient, args.bridge_contract, args.pyth_oracle)
    print(f"Vault contract deployed at: {address}")


def cmd_network_list(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    config = store.load_config()
    for name, network in config.networks.items():
        deployed = network.contracts.vault if network.contracts else "not deployed"
        print(f"{name}: {network.name} (chain {network.chain_id}) vault={deployed}")


def cmd_network_show(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    network = store.get_network(args.network)
    print(json.dumps(network.to_dict(), indent=2))


def cmd_network_add(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    network = NetworkConfig(
        rpc_url=args.rpc_url,
        chain_id=args.chain_id,
        name=args.display_name or args.network,
    )
    store.add_network(args.network, network)
    print(f"Network '{args.network}' added")


def cmd_network_remove(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    store.remove_network(args.network)
    print(f"Network '{args.network}' removed")


def cmd_token_add(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    validate_address(args.token, "Token")
    validate_price_feed_id(args.price_id)
    store.add_token(args.network, args.token, args.price_id)
    print(f"Token {args.token} added to the {args.network} whitelist with feed {args.price_id}")


def cmd_token_remove(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    validate_address(args.token, "Token")
    if args.on_chain:
        vault = _open_vault(args, store, client)
        vault.remove_token(args.token)
        print(f"Token {args.token} removed from the vault whitelist")
    if store.remove_token(args.network, args.token):
        print(f"Token {args.token} removed from the {args.network} whitelist")
    elif not args.on_chain:
        print(f"Token {args.token} is not in the {args.network} whitelist")


def cmd_token_update_whitelist(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> None:
    vault = _open_vault(args, store, client)
    report = WhitelistReconciler(vault, store, logger=logger).update_whitelist()
    print(
        f"Whitelist updated: {report.transaction_count} submitted, "
        f"{len(report.skipped)} unchanged, {len(report.failed)} failed"
    )
    for token, error in report.failed.items():
        print(f"  {token}: {error}", file=sys.stderr)


def cmd_token_show(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    configured = store.get_token_whitelist(args.network)
    if not configured:
        print(f"No tokens configured for {args.network}")
        return
    recorded: dict[str, str] = {}
    if args.on_chain:
        vault = _open_vault(args, store, client)
        recorded = WhitelistReconciler(vault, store, logger=logger).get_whitelisted_tokens()
    for token, price_feed_id in configured.items():
        line = f"{token}: {price_feed_id}"
        if args.on_chain:
            state = "whitelisted" if token in recorded else "not whitelisted"
            line = f"{line} [{state}]"
        print(line)


def cmd_token_fee(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    vault = _open_vault(args, store, client)
    fee = vault.view_fee_amount(args.token)
    print(f"Fee amount for token {args.token}: {fee}")


def cmd_bridge_execute(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    vault = _open_vault(args, store, client)
    price_update = _resolve_price_update(args, store, client, args.token)
    result =BridgeOrchestrator(vault, logger=logger).execute(
        args.receiver, args.token, price_update, dry_run=args.dry_run
    )
    if result.dry_run:
        print("Dry run: all checks passed, no transaction submitted")
        _print_summary(result)
        return
    _print_summary(result)
    print(f"Bridge executed successfully: {result.transaction_hash}")


def cmd_bridge_estimate_fee(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> None:
    vault = _open_vault(args, store, client)
    estimate = FeeResolver(vault, logger=logger).estimate_bridge_fee(
        args.use_alternate_fee_token, args.adapter_params
    )
    print(f"Native fee: {estimate.native_fee} ({format_ether(estimate.native_fee)} ETH)")
    print(f"Alternate token fee: {estimate.alternate_fee}")


def cmd_bridge_quote(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    vault = _open_vault(args, store, client)
    price_update = _resolve_price_update(args, store, client, args.token)
    quote =FeeResolver(vault, logger=logger).quote(
        price_update, args.use_alternate_fee_token, args.adapter_params
    )
    print(f"Price update fee:  {format_ether(quote.price_update_fee)} ETH")
    print(f"Messaging fee:     {format_ether(quote.messaging_fee)} ETH")
    print(f"Buffer:            {format_ether(quote.buffer)} ETH")
    print(f"Total required:    {format_ether(quote.total)} ETH")
    print(f"Submission value:  {format_ether(submission_value(quote.total))} ETH")


def cmd_admin_status(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    vault = _open_vault(args, store, client)
    contracts = store.get_contract_set(args.network)
    print(f"Vault:          {vault.address}")
    print(f"Bridge:         {contracts.bridge}")
    print(f"Pyth oracle:    {vault.pyth_oracle_address()}")
    print(f"Paused:         {'yes' if vault.is_paused() else 'no'}")
    print(f"Signer:         {vault.signer_address}")
    print(f"Native balance: {format_ether(vault.native_balance())} ETH")


def cmd_admin_pause(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    _open_vault(args, store, client).pause()
    print("Vault paused")


def cmd_admin_unpause(args: argparse.Namespace, store: ConfigStore, client: ClientConfig) -> None:
    _open_vault(args, store, client).unpause()
    print("Vault unpaused")


def cmd_admin_update_bridge(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> None:
    _open_vault(args, store, client).update_bridge(args.address)
    print(f"Bridge contract updated to {args.address}")


def cmd_admin_update_oracle(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> None:
    _open_vault(args, store, client).update_pyth_oracle(args.address)
    print(f"Pyth oracle updated to {args.address}")


def cmd_admin_update_fee_recipient(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> None:
    _open_vault(args, store, client).update_fee_recipient(args.address)
    print(f"Fee recipient updated to {args.address}")


def cmd_admin_update_chain_id(
    args: argparse.Namespace, store: ConfigStore, client: ClientConfig
) -> None:
    _open_vault(args, store, client).update_remote_chain_id(args.chain_id)
    print(f"Remote chain ID updated to {args.chain_id}")


# ----------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------
def _add_network(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--network", required=True, help="Network name from the config file.")


def _add_fee_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--use-alternate-fee-token",
        "--use-zro",
        action="store_true",
        help="Quote the messaging fee in the alternate fee token.",
    )
    parser.add_argument(
        "--adapter-params", default="0x", help="Hex encoded messaging adapter parameters."
    )


def _add_price_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--price-update", nargs="+", help="Hex encoded price update blobs.", default=None
    )
    parser.add_argument(
        "--fetch-price",
        action="store_true",
        help="Fetch the latest price update for the token's configured feed.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bridge-vault",
        description="Deploy and operate cross-chain bridge vault contracts.",
        allow_abbrev=False,
    )
    parser.add_argument("--config", help="Path to a config file to use instead of the defaults.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    deploy = sub.add_parser("deploy", help="Deploy the vault contract")
    _add_network(deploy)
    deploy.add_argument("--fee-recipient", required=True, help="Fee recipient address.")
    deploy.add_argument("--bridge-contract", required=True, help="Bridge contract address.")
    deploy.add_argument("--pyth-oracle", required=True, help="Pyth oracle address.")
    deploy.set_defaults(func=cmd_deploy)

    network = sub.add_parser("network", help="Manage configured networks")
    network_sub = network.add_subparsers(dest="network_cmd", required=True)
    network_list = network_sub.add_parser("list", help="List configured networks")
    network_list.set_defaults(func=cmd_network_list)
    network_show = network_sub.add_parser("show", help="Show one network")
    _add_network(network_show)
    network_show.set_defaults(func=cmd_network_show)
    network_add = network_sub.add_parser("add", help="Add or replace a network")
    _add_network(network_add)
    network_add.add_argument("--rpc-url", required=True, help="JSON-RPC endpoint URL.")
    network_add.add_argument("--chain-id", required=True, type=int, help="EVM chain id.")
    network_add.add_argument("--display-name", help="Human readable network name.")
    network_add.set_defaults(func=cmd_network_add)
    network_remove = network_sub.add_parser("remove", help="Remove a network")
    _add_network(network_remove)
    network_remove.set_defaults(func=cmd_network_remove)

    token = sub.add_parser("token", help="Manage whitelisted tokens")
    token_sub = token.add_subparsers(dest="token_cmd", required=True)
    token_add = token_sub.add_parser("add", help="Add a token to the configured whitelist")
    _add_network(token_add)
    token_add.add_argument("--token", required=True, help="Token address.")
    token_add.add_argument("--price-id", required=True, help="Pyth price feed id (bytes32).")
    token_add.set_defaults(func=cmd_token_add)
    token_remove = token_sub.add_parser("remove", help="Remove a token from the whitelist")
    _add_network(token_remove)
    token_remove.add_argument("--token", required=True, help="Token address.")
    token_remove.add_argument(
        "--on-chain", action="store_true", help="Also remove the token from the vault contract."
    )
    token_remove.set_defaults(func=cmd_token_remove)
    token_update = token_sub.add_parser(
        "update-whitelist", help="Whitelist configured tokens on the vault"
    )
    _add_network(token_update)
    token_update.set_defaults(func=cmd_token_update_whitelist)
    token_show = token_sub.add_parser("show", help="Show the configured whitelist")
    _add_network(token_show)
    token_show.add_argument(
        "--on-chain", action="store_true", help="Compare with the feeds recorded on the vault."
    )
    token_show.set_defaults(func=cmd_token_show)
    token_fee = token_sub.add_parser("fee", help="View the vault fee for a token")
    _add_network(token_fee)
    token_fee.add_argument("--token", required=True, help="Token address.")
    token_fee.set_defaults(func=cmd_token_fee)

    bridge = sub.add_parser("bridge", help="Bridge tokens from vaults")
    bridge_sub = bridge.add_subparsers(dest="bridge_cmd", required=True)
    bridge_exec = bridge_sub.add_parser("execute", help="Bridge a vault's token balance")
    _add_network(bridge_exec)
    bridge_exec.add_argument("--receiver", required=True, help="Receiver address.")
    bridge_exec.add_argument("--token", required=True, help="Token address.")
    _add_price_options(bridge_exec)
    bridge_exec.add_argument(
        "--dry-run", action="store_true", help="Run every check without submitting."
    )
    bridge_exec.set_defaults(func=cmd_bridge_execute)
    bridge_estimate = bridge_sub.add_parser("estimate-fee", help="Estimate the messaging fee")
    _add_network(bridge_estimate)
    _add_fee_options(bridge_estimate)
    bridge_estimate.set_defaults(func=cmd_bridge_estimate_fee)
    bridge_quote = bridge_sub.add_parser("quote", help="Quote the native value a bridge needs")
    _add_network(bridge_quote)
    bridge_quote.add_argument("--token", help="Token address, required with --fetch-price.")
    _add_price_options(bridge_quote)
    _add_fee_options(bridge_quote)
    bridge_quote.set_defaults(func=cmd_bridge_quote)

    admin = sub.add_parser("admin", help="Administrative vault operations")
    admin_sub = admin.add_subparsers(dest="admin_cmd", required=True)
    for name, func, help_text in (
        ("status", cmd_admin_status, "Show vault status"),
        ("pause", cmd_admin_pause, "Pause the vault"),
        ("unpause", cmd_admin_unpause, "Unpause the vault"),
    ):
        admin_parser = admin_sub.add_parser(name, help=help_text)
        _add_network(admin_parser)
        admin_parser.set_defaults(func=func)
    for name, func, help_text in (
        ("update-bridge", cmd_admin_update_bridge, "Point the vault at a new bridge"),
        ("update-oracle", cmd_admin_update_oracle, "Point the vault at a new Pyth oracle"),
        ("update-fee-recipient", cmd_admin_update_fee_recipient, "Change the fee recipient"),
    ):
        admin_parser = admin_sub.add_parser(name, help=help_text)
        _add_network(admin_parser)
        admin_parser.add_argument("--address", required=True, help="New address.")
        admin_parser.set_defaults(func=func)
    update_chain = admin_sub.add_parser("update-chain-id", help="Change the remote chain id")
    _add_network(update_chain)
    update_chain.add_argument("--chain-id", required=True, type=int, help="New remote chain id.")
    update_chain.set_defaults(func=cmd_admin_update_chain_id)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level="DEBUG" if args.verbose else os.getenv("LOGLEVEL", "INFO").upper(),
        format=LOG_FORMAT,
    )

    try:
        store = ConfigStore([args.config] if args.config else None, logger=logger)
        client = ClientConfig.from_env()
        args.func(args, store, client)
    except BridgeVaultError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except Exception as exc:  # pylint: disable=broad-except
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
