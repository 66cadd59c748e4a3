"""CLI for managing stored feature flag values."""

import asyncio
import json
from typing import Any, Awaitable, Callable, NoReturn

import click
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .core.config import FlagSettings
from .features.manager import FlagManager


async def _with_manager(ctx: click.Context, action: Callable[[FlagManager], Awaitable[Any]]) -> Any:
    """Run action against a fresh manager, disposing the engine afterwards."""
    settings: FlagSettings = ctx.obj["settings"]

    engine = None
    db = None
    if settings.database_url:
        engine = create_async_engine(settings.database_url)
        db = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        return await action(FlagManager(settings, db=db))
    finally:
        if engine is not None:
            await engine.dispose()


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return click.style("active", fg="green") if value else click.style("inactive", fg="red")
    return click.style(json.dumps(value), fg="yellow")


def _fail(error: Exception) -> NoReturn:
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    raise SystemExit(1)


@click.group()
@click.option("--driver", default=None, help="Driver name to use (default: FLAG_DEFAULT)")
@click.option("--database-url", default=None, help="SQLAlchemy async URL (default: FLAG_DATABASE_URL)")
@click.pass_context
def cli(ctx, driver, database_url):
    """Feature flag administration."""
    overrides = {}
    if driver:
        overrides["default"] = driver
    if database_url:
        overrides["database_url"] = database_url

    ctx.ensure_object(dict)
    ctx.obj["settings"] = FlagSettings(**overrides)


@cli.command()
@click.pass_context
def setup(ctx):
    """Create the feature flag storage table."""
    async def run(manager: FlagManager):
        await manager.ensure_schema()

    click.echo(click.style("Creating features table...", dim=True))
    try:
        asyncio.run(_with_manager(ctx, run))
    except Exception as e:
        _fail(e)
    click.echo(click.style("Features table created successfully.", fg="green"))


@cli.command(name="list")
@click.pass_context
def list_features(ctx):
    """List all stored feature flags."""
    async def run(manager: FlagManager):
        store = manager.store()
        names = await manager.stored()
        return [(name, await store.all_for(name)) for name in names]

    try:
        features = asyncio.run(_with_manager(ctx, run))
    except Exception as e:
        _fail(e)

    if not features:
        click.echo(click.style("No stored feature flags.", dim=True))
        return

    click.echo(click.style(f"Stored feature flags ({len(features)}):\n", bold=True))
    for name, records in features:
        plural = "" if len(records) == 1 else "s"
        click.echo(
            f"  {click.style(name, fg='cyan')} "
            + click.style(f"({len(records)} scope{plural})", dim=True)
        )
        for record in records:
            click.echo(f"    {click.style(record.scope, dim=True)} -> {_format_value(record.value)}")


@cli.command()
@click.argument("feature", required=False)
@click.option("--all", "purge_all", is_flag=True, help="Purge all features")
@click.pass_context
def purge(ctx, feature, purge_all):
    """Purge stored feature flag values (all of them without FEATURE)."""
    everything = purge_all or not feature

    async def run(manager: FlagManager):
        if everything:
            await manager.purge_all()
        else:
            await manager.purge(feature)

    if everything:
        click.echo(click.style("Purging all feature flags...", dim=True))
    else:
        click.echo(click.style(f"Purging feature '{feature}'...", dim=True))

    try:
        asyncio.run(_with_manager(ctx, run))
    except Exception as e:
        _fail(e)

    if everything:
        click.echo(click.style("All feature flags purged.", fg="green"))
    else:
        click.echo(click.style(f"Feature '{feature}' purged.", fg="green"))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
