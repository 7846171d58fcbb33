# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.cli",
#   "purpose": "Typer CLI: inspect configuration and page through a resource.",
#   "sections": [
#     {
#       "id": "config-show",
#       "name": "config_show",
#       "anchor": "function-config-show",
#       "kind": "function"
#     },
#     {
#       "id": "fetch-items",
#       "name": "fetch_items",
#       "anchor": "function-fetch-items",
#       "kind": "function"
#     },
#     {
#       "id": "fetch",
#       "name": "fetch",
#       "anchor": "function-fetch",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Command-line entry point.

Example:
    $ restscroll config show -c restscroll.yaml
    $ restscroll fetch records --pages 2 --size 10 --sort-by datePublished
    $ restscroll fetch drive --token-based --size 25
"""

import asyncio
import json
import logging
from typing import Any, Callable, List, Optional

import typer

from .client import EntityClient
from .config import RestScrollConfig, ScrollConfig, load_config
from .logging_config import configure_logging
from .pagination import PageStrategy, PaginationEngine, ScrollPhase, ScrollState, TokenStrategy
from .transport import HttpTransport

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    name="restscroll",
    help="Resilient REST client with scroll-driven pagination",
    no_args_is_help=True,
)
config_app = typer.Typer(name="config", help="Inspect configuration")
app.add_typer(config_app, name="config")

TOKEN_ENV = "RESTSCROLL_TOKEN"


def _load(ctx: typer.Context, config_path: Optional[str]) -> RestScrollConfig:
    try:
        config = load_config(config_path)
    except ValueError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    # command-line logging flags win over the logging section
    options = ctx.obj or {}
    configure_logging(
        options.get("log_level") or config.logging.level,
        options.get("json_logs") or config.logging.json_format,
    )
    return config


def build_transport(config: RestScrollConfig, token: Optional[str]) -> HttpTransport:
    """Create the transport used by ``fetch``."""
    return HttpTransport(
        token_provider=(lambda: token) if token else None,
        default_headers=config.http.headers,
    )


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines"),
) -> None:
    ctx.obj = {"log_level": log_level, "json_logs": json_logs}


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML/JSON config file"),
) -> None:
    """Print the merged configuration (file < env < CLI) as JSON."""
    config = _load(ctx, config_path)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, sort_keys=True))


async def fetch_items(
    client: EntityClient,
    *,
    pages: int,
    token_based: bool,
    size: int,
    sort_by: Optional[str] = None,
    emit: Callable[[Any], None],
    scroll: Optional[ScrollConfig] = None,
) -> ScrollState:
    """Drive a :class:`PaginationEngine` for up to ``pages`` pages.

    Each newly loaded item is passed to ``emit`` in arrival order.
    """
    if token_based:
        strategy: Any = TokenStrategy(page_size=str(size), order_by=sort_by)

        # data may be a bare list or a {"files": [...], "nextPageToken": ...} object
        async def fetch_page(params: Any) -> Any:
            return await client.get(None, params=params.to_query())

    else:
        strategy = PageStrategy(size=size, sort_by=sort_by)
        fetch_page = client.list
    engine = PaginationEngine.from_config(fetch_page, strategy, scroll or ScrollConfig())

    emitted = 0
    for _ in range(pages):
        await engine.request_more()
        items = engine.state.items
        for item in items[emitted:]:
            emit(item)
        emitted = len(items)
        if engine.state.phase is not ScrollPhase.IDLE:
            break
    return engine.state


def _dump_item(item: Any) -> str:
    if hasattr(item, "model_dump"):
        item = item.model_dump(mode="json")
    return json.dumps(item, default=str)


@app.command()
def fetch(
    ctx: typer.Context,
    entity: str = typer.Argument(..., help="Resource name, e.g. records"),
    pages: int = typer.Option(1, "--pages", min=1, help="Maximum pages to load"),
    size: Optional[int] = typer.Option(None, "--size", min=1, help="Page size (default from config)"),
    sort_by: Optional[str] = typer.Option(None, "--sort-by", help="sortBy / orderBy value"),
    token_based: bool = typer.Option(False, "--token-based", help="Use pageToken pagination"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML/JSON config file"),
    token: Optional[str] = typer.Option(None, "--token", envvar=TOKEN_ENV, help="Bearer token"),
) -> None:
    """Page through ENTITY and print one JSON line per item."""
    config = _load(ctx, config_path)
    page_size = size or config.scroll.page_size
    lines: List[str] = []

    async def run() -> ScrollState:
        async with build_transport(config, token) as transport:
            client = EntityClient.from_config(transport, entity, config.http)
            return await fetch_items(
                client,
                pages=pages,
                token_based=token_based,
                size=page_size,
                sort_by=sort_by,
                emit=lambda item: lines.append(_dump_item(item)),
                scroll=config.scroll,
            )

    state = asyncio.run(run())
    for line in lines:
        typer.echo(line)
    if state.phase is ScrollPhase.ERROR:
        typer.echo(f"Error: {state.error_message}", err=True)
        raise typer.Exit(code=1)
    LOGGER.info("fetched %d item(s) from %s phase=%s", len(state.items), entity, state.phase.value)


if __name__ == "__main__":
    app()
