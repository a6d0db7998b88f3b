"""CLI entry point for ethr-did.

Invoked as::

    ethr-did [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m ethr_did.cli.main

Commands
--------
normalize                  Normalize identifiers to DIDs
token issue                Create a signed ES256K-R / ES256K token
token decode               Show a token's header and payload without verifying
token verify               Verify a token against the on-chain registry
registry owner             Look up the current owner of an identity
registry change-owner      Transfer ownership of an identity
registry add-delegate      Add a delegate
registry revoke-delegate   Revoke a delegate
registry set-attribute     Set an attribute
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.table import Table

from ethr_did.config import get_settings
from ethr_did.did.key_types import DEFAULT_DELEGATE_TYPE
from ethr_did.did.normalize import normalize_known_did
from ethr_did.errors import EthrDIDError
from ethr_did.jwt.signature import ES256K, ES256K_R
from ethr_did.jwt.token import create_token, parse_token, verify_token
from ethr_did.registry.client import DEFAULT_VALIDITY_SECONDS, DelegateOptions, RegistryClient
from ethr_did.registry.resolver import IdentityResolver
from ethr_did.signer import KeyPairSigner

console = Console()

T = TypeVar("T")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

_rpc_url_option = click.option(
    "--rpc-url",
    default=None,
    help="Ethereum JSON-RPC endpoint (default: ETHR_DID_RPC_URL).",
)
_registry_option = click.option(
    "--registry-address",
    default=None,
    help="EIP-1056 registry address (default: ETHR_DID_REGISTRY_ADDRESS).",
)
_private_key_option = click.option(
    "--private-key",
    envvar="ETHR_DID_PRIVATE_KEY",
    required=True,
    help="Hex private key of the signer (or ETHR_DID_PRIVATE_KEY).",
)


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="ethr-did")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: ETHR_DID_LOG_LEVEL or WARNING).",
)
def cli(log_level: str | None) -> None:
    """ethr DID tokens and EIP-1056 registry management"""
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING))


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from ethr_did import __version__

    console.print(f"[bold]ethr-did[/bold] v{__version__}")


# ------------------------------------------------------------------
# normalize
# ------------------------------------------------------------------


@cli.command(name="normalize")
@click.argument("identifiers", nargs=-1, required=True)
def normalize_command(identifiers: tuple[str, ...]) -> None:
    """Normalize IDENTIFIERS (addresses, MNIDs, DIDs) to DID form."""
    for identifier in identifiers:
        console.print(normalize_known_did(identifier), highlight=False)


# ------------------------------------------------------------------
# token command group
# ------------------------------------------------------------------


@cli.group(name="token")
def token_group() -> None:
    """Issue, inspect and verify tokens."""


@token_group.command(name="issue")
@_private_key_option
@click.option(
    "--payload",
    "-p",
    default="{}",
    show_default=True,
    help="JSON object of claims.",
)
@click.option(
    "--alg",
    type=click.Choice([ES256K_R, ES256K]),
    default=ES256K_R,
    show_default=True,
    help="Signature algorithm.",
)
@click.option(
    "--expires-in",
    type=int,
    default=None,
    help="Token lifetime in seconds (default: ETHR_DID_TOKEN_EXPIRES_IN).",
)
@click.option(
    "--issuer",
    default=None,
    help="Issuer identity (default: the signer's did:ethr).",
)
def issue_command(
    private_key: str,
    payload: str,
    alg: str,
    expires_in: int | None,
    issuer: str | None,
) -> None:
    """Create a token signed with PRIVATE_KEY."""
    try:
        claims = json.loads(payload)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/red] --payload is not valid JSON: {exc}")
        sys.exit(1)
    if not isinstance(claims, dict):
        console.print("[red]Error:[/red] --payload must be a JSON object")
        sys.exit(1)

    try:
        signer = KeyPairSigner(private_key)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    lifetime = expires_in if expires_in is not None else get_settings().token_expires_in
    token = create_token(
        claims,
        issuer=issuer or signer.did,
        signer=signer,
        expires_in=lifetime,
        alg=alg,
    )
    click.echo(token)


@token_group.command(name="decode")
@click.argument("token")
def decode_command(token: str) -> None:
    """Show TOKEN's header and payload without verifying the signer."""
    try:
        decoded = parse_token(token)
    except EthrDIDError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    table = Table(title="Token", show_header=True)
    table.add_column("Part", style="cyan")
    table.add_column("Value")
    table.add_row("typ", decoded.header.typ)
    table.add_row("alg", decoded.header.alg)
    for claim, value in decoded.payload.items():
        table.add_row(claim, json.dumps(value))
    console.print(table)


@token_group.command(name="verify")
@click.argument("token")
@_rpc_url_option
@_registry_option
def verify_command(token: str, rpc_url: str | None, registry_address: str | None) -> None:
    """Verify TOKEN against the issuer's registry owner."""
    client = _build_client(rpc_url, registry_address)
    payload = _run(lambda: verify_token(token, IdentityResolver(client)))
    console.print(f"[green]Valid[/green] token issued by [bold]{payload['iss']}[/bold]")
    console.print_json(json.dumps(payload))


# ------------------------------------------------------------------
# registry command group
# ------------------------------------------------------------------


@cli.group(name="registry")
def registry_group() -> None:
    """Read and change identity records on the EIP-1056 registry."""


@registry_group.command(name="owner")
@click.argument("identity")
@_rpc_url_option
@_registry_option
def owner_command(identity: str, rpc_url: str | None, registry_address: str | None) -> None:
    """Print the current owner of IDENTITY."""
    client = _build_client(rpc_url, registry_address)
    owner = _run(lambda: client.lookup_owner(identity))
    console.print(f"Owner of {normalize_known_did(identity)}: [bold]{owner}[/bold]", highlight=False)


@registry_group.command(name="change-owner")
@click.argument("identity")
@click.argument("new_owner")
@_private_key_option
@_rpc_url_option
@_registry_option
def change_owner_command(
    identity: str,
    new_owner: str,
    private_key: str,
    rpc_url: str | None,
    registry_address: str | None,
) -> None:
    """Transfer ownership of IDENTITY to NEW_OWNER."""
    client = _build_client(rpc_url, registry_address, private_key)
    _report_tx(_run(lambda: client.change_owner(identity, new_owner)))


@registry_group.command(name="add-delegate")
@click.argument("identity")
@click.argument("delegate")
@click.option(
    "--delegate-type",
    default=DEFAULT_DELEGATE_TYPE,
    show_default=True,
    help="Delegate key type tag.",
)
@click.option(
    "--expires-in",
    type=int,
    default=DEFAULT_VALIDITY_SECONDS,
    show_default=True,
    help="Delegation validity in seconds.",
)
@_private_key_option
@_rpc_url_option
@_registry_option
def add_delegate_command(
    identity: str,
    delegate: str,
    delegate_type: str,
    expires_in: int,
    private_key: str,
    rpc_url: str | None,
    registry_address: str | None,
) -> None:
    """Add DELEGATE as a delegate of IDENTITY."""
    client = _build_client(rpc_url, registry_address, private_key)
    options = DelegateOptions(delegate_type=delegate_type, expires_in=expires_in)
    _report_tx(_run(lambda: client.add_delegate(identity, delegate, options)))


@registry_group.command(name="revoke-delegate")
@click.argument("identity")
@click.argument("delegate")
@click.option(
    "--delegate-type",
    default=DEFAULT_DELEGATE_TYPE,
    show_default=True,
    help="Delegate key type tag.",
)
@_private_key_option
@_rpc_url_option
@_registry_option
def revoke_delegate_command(
    identity: str,
    delegate: str,
    delegate_type: str,
    private_key: str,
    rpc_url: str | None,
    registry_address: str | None,
) -> None:
    """Revoke DELEGATE of IDENTITY."""
    client = _build_client(rpc_url, registry_address, private_key)
    _report_tx(_run(lambda: client.revoke_delegate(identity, delegate, delegate_type)))


@registry_group.command(name="set-attribute")
@click.argument("identity")
@click.argument("key")
@click.argument("value")
@click.option(
    "--expires-in",
    type=int,
    default=DEFAULT_VALIDITY_SECONDS,
    show_default=True,
    help="Attribute validity in seconds.",
)
@_private_key_option
@_rpc_url_option
@_registry_option
def set_attribute_command(
    identity: str,
    key: str,
    value: str,
    expires_in: int,
    private_key: str,
    rpc_url: str | None,
    registry_address: str | None,
) -> None:
    """Set attribute KEY to VALUE on IDENTITY."""
    client = _build_client(rpc_url, registry_address, private_key)
    _report_tx(_run(lambda: client.set_attribute(identity, key, value, expires_in)))


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _build_client(
    rpc_url: str | None,
    registry_address: str | None,
    private_key: str | None = None,
) -> RegistryClient:
    """Return a RegistryClient from settings overridden by CLI options."""
    overrides: dict[str, Any] = {}
    if rpc_url:
        overrides["rpc_url"] = rpc_url
    if registry_address:
        overrides["registry_address"] = registry_address
    settings = get_settings().model_copy(update=overrides)

    signer = None
    if private_key:
        try:
            signer = KeyPairSigner(private_key)
        except ValueError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            sys.exit(1)
    return RegistryClient.from_settings(settings, signer=signer)


def _run(operation: Callable[[], Awaitable[T]]) -> T:
    """Run an async operation, exiting with status 1 on a known failure."""
    try:
        return asyncio.run(_await(operation))
    except (EthrDIDError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


async def _await(operation: Callable[[], Awaitable[T]]) -> T:
    return await operation()


def _report_tx(tx_hash: str) -> None:
    console.print(f"[green]Sent[/green] transaction [bold]{tx_hash}[/bold]", highlight=False)


if __name__ == "__main__":
    cli()
