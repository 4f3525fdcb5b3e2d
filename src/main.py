from __future__ import annotations

import asyncio
import json
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live

from src.config import get_settings
from src.content import create_chatbot, create_generator
from src.content.prompts import (
    crop_recommendations_request,
    fertilizer_request,
    practices_request,
    recipes_request,
    weather_request,
)
from src.domain.events import RowFilter
from src.domain.models import known_tables
from src.infrastructure.db_factory import PoolManager
from src.infrastructure.record_store import create_record_store
from src.reporter import build_table, print_notices
from src.screens import SCREENS, DomainScreen
from src.utils.logging import configure_from_settings, logging_config

app = typer.Typer(help="Kisan Sync CLI.")
console = Console()

DOMAINS = ("fertilizer", "recipes", "practices", "weather", "crops")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    providers = [
        name
        for name, key in (("openai", settings.openai_api_key), ("gemini", settings.gemini_api_key))
        if key
    ]
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"providers={','.join(providers) or 'none'} cache_ttl={settings.content_cache_ttl_seconds}s | "
        f"api={settings.api_host}:{settings.api_port}"
    )


async def _watch(table: str, row_filter: Optional[RowFilter]) -> None:
    store = await create_record_store()
    screen_cls = SCREENS.get(table)
    screen = screen_cls(store) if screen_cls else DomainScreen(store, table=table)

    def render():
        caption = f"{screen.view.status.value}"
        if screen.showing_fallback:
            caption += " | fallback content"
        return build_table(screen.display_rows, table, caption=caption)

    try:
        await screen.open(row_filter.as_dict() if row_filter else None, row_filter)
        print_notices(screen.notices, console)
        with Live(render(), console=console, refresh_per_second=4) as live:
            screen.view.on_change(lambda view: live.update(render()))
            await asyncio.Event().wait()
    finally:
        await screen.close()
        await PoolManager().close_all()


@app.command()
def watch(
    table: str = typer.Argument(..., help="Table to watch (e.g. community_posts, weather_data)."),
    filter_: Optional[str] = typer.Option(
        None,
        "--filter",
        "-f",
        help="Row filter, e.g. 'state=eq.Punjab~district=eq.Ludhiana'.",
    ),
) -> None:
    """
    Show a live table that follows the change feed until Ctrl-C.
    """
    configure_from_settings()
    if table not in known_tables():
        raise typer.BadParameter(f"Unknown table '{table}'. Known: {', '.join(known_tables())}")
    try:
        row_filter = RowFilter.parse(filter_) if filter_ else None
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    asyncio.run(_watch(table, row_filter))


@app.command()
def generate(
    domain: str = typer.Argument(..., help=f"One of: {', '.join(DOMAINS)}."),
    crop: Optional[str] = typer.Option(None, "--crop", help="Crop name (fertilizer)."),
    state: Optional[str] = typer.Option(None, "--state", help="State (weather, crops)."),
    district: Optional[str] = typer.Option(None, "--district", help="District (weather)."),
    soil: Optional[str] = typer.Option(None, "--soil", help="Soil type (crops)."),
    climate: Optional[str] = typer.Option(None, "--climate", help="Climate zone (crops)."),
    season: Optional[str] = typer.Option(None, "--season", help="Season (crops)."),
) -> None:
    """
    Generate content for a domain and print it as JSON.
    """
    configure_from_settings()
    if domain == "fertilizer":
        request = fertilizer_request(crop)
    elif domain == "recipes":
        request = recipes_request()
    elif domain == "practices":
        request = practices_request()
    elif domain == "weather":
        if not state:
            raise typer.BadParameter("--state is required for weather")
        request = weather_request(state, district)
    elif domain == "crops":
        if not (state and soil and climate and season):
            raise typer.BadParameter("--state, --soil, --climate and --season are required for crops")
        request = crop_recommendations_request(state, soil, climate, season)
    else:
        raise typer.BadParameter(f"Unknown domain '{domain}'. Choose from: {', '.join(DOMAINS)}")

    generator = create_generator()
    records = asyncio.run(generator.generate_many(request))
    payload = [record.model_dump(mode="json", by_alias=True, exclude_none=True) for record in records]
    typer.echo(json.dumps(payload if request.expect_list else payload[0], indent=2))
    typer.echo(f"source={generator.last_source}", err=True)


@app.command()
def ask(message: str = typer.Argument(..., help="Question for the agricultural assistant.")) -> None:
    """
    Ask the agricultural chatbot a question.
    """
    configure_from_settings()
    try:
        answer = asyncio.run(create_chatbot().ask(message))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(answer)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default from settings)."),
) -> None:
    """
    Serve the content-generation HTTP endpoints with uvicorn.
    """
    import uvicorn

    from src.api import create_app

    settings = get_settings()
    configure_from_settings(settings)
    uvicorn.run(
        create_app(),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=logging_config(settings.log_level, settings.log_json),
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
