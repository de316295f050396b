"""CLI entrypoint for lorebuild."""

import sys
from pathlib import Path

import click

from . import __version__
from .config import AUDIT_LOG_ENV, CONFIG_ENV, OUTPUT_ENV, PUBLIC_ENV, VAULT_ENV, ConfigError, load_config


@click.group()
@click.version_option(__version__, prog_name="lorebuild")
@click.option(
    "--vault",
    "-v",
    envvar=VAULT_ENV,
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help=f"Path to the Obsidian vault root (env: {VAULT_ENV})",
)
@click.option(
    "--out",
    "output_dir",
    envvar=OUTPUT_ENV,
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Content output directory for documents and manifest (default: src/content, env: {OUTPUT_ENV})",
)
@click.option(
    "--public-dir",
    envvar=PUBLIC_ENV,
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Public directory for search indices and manifest copy (default: public/content, env: {PUBLIC_ENV})",
)
@click.option(
    "--config",
    "config_path",
    envvar=CONFIG_ENV,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"YAML file overriding categories, tier aliases and snippet sizes (env: {CONFIG_ENV})",
)
@click.option(
    "--audit-log",
    "audit_log_path",
    envvar=AUDIT_LOG_ENV,
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Append a JSON-lines record of every build's writes to this file (env: {AUDIT_LOG_ENV})",
)
@click.pass_context
def cli(
    ctx: click.Context,
    vault: Path | None,
    output_dir: Path | None,
    public_dir: Path | None,
    config_path: Path | None,
    audit_log_path: Path | None,
) -> None:
    """lorebuild - compile an Obsidian lore vault into tiered JSON content.

    Produces per-document JSON, a manifest with the link registry, and
    separate player and DM search indices.
    """
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(
            vault_path=vault.resolve() if vault else None,
            output_dir=output_dir,
            public_dir=public_dir,
            config_path=config_path,
            audit_log_path=audit_log_path,
        )
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without writing (diagnostic only)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Also print info-level notes (fallback partitioning, missing titles)",
)
@click.pass_context
def build(ctx: click.Context, dry_run: bool, verbose: bool) -> None:
    """Compile the vault into JSON artifacts.

    If the vault is missing but a previous manifest exists, the build is
    skipped and exits successfully.

    Examples:

        lorebuild --vault ~/Vaults/Exilium build

        OBSIDIAN_VAULT_PATH=~/Vaults/Exilium lorebuild build --dry-run
    """
    from .commands.build import run_build

    exit_code = run_build(ctx.obj["config"], dry_run=dry_run, verbose=verbose)
    sys.exit(exit_code)


@cli.command()
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default="error",
    help="Exit with error if this level or higher found",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def check(ctx: click.Context, fail_on: str, output_json: bool) -> None:
    """Report broken references, collisions and unreadable files.

    Nothing is written.
    """
    from .commands.check import run_check

    exit_code = run_check(ctx.obj["config"], fail_on=fail_on, output_json=output_json)
    sys.exit(exit_code)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def inspect(ctx: click.Context, path: Path) -> None:
    """Parse a single markdown file and print it as JSON."""
    from .commands.inspect_cmd import run_inspect

    exit_code = run_inspect(path, ctx.obj["config"])
    sys.exit(exit_code)


@cli.command()
@click.argument("category")
@click.argument("slug", required=False)
@click.option(
    "--tier",
    type=click.Choice(["player", "dm"]),
    default="dm",
    show_default=True,
    help="Access tier to view the content as",
)
@click.pass_context
def show(ctx: click.Context, category: str, slug: str | None, tier: str) -> None:
    """Browse built content.

    Examples:

        lorebuild show geography

        lorebuild show geography veraheim --tier player
    """
    from .commands.show import run_show

    exit_code = run_show(ctx.obj["config"], category, slug, tier=tier)
    sys.exit(exit_code)


@cli.command()
@click.option("-n", "last_n", type=click.IntRange(min=1), default=10, show_default=True, help="Number of entries")
@click.pass_context
def history(ctx: click.Context, last_n: int) -> None:
    """Show recent builds recorded in the audit log."""
    from .commands.history import run_history

    exit_code = run_history(ctx.obj["config"], last_n=last_n)
    sys.exit(exit_code)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
