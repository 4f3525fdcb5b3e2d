from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.table import Table

from src.domain.models import DomainRecord
from src.screens.base import DESTRUCTIVE, Notice

# Columns shown per table; unknown tables show every field.
COLUMNS: Dict[str, Tuple[str, ...]] = {
    "community_posts": ("title", "topic", "likes", "created_at"),
    "community_comments": ("post_id", "user_id", "content", "created_at"),
    "recipes": ("title", "cooking_time", "ingredients"),
    "traditional_practices": ("title", "category", "season"),
    "fertilizer_recommendations": ("crop_name", "chemical_fertilizers", "dosage_per_acre"),
    "crop_recommendations": ("crop_name", "season", "growing_duration", "water_requirement"),
    "market_prices": ("crop_name", "market_name", "district", "min_price", "max_price", "modal_price"),
    "weather_data": ("forecast_date", "district", "temperature", "humidity", "rainfall", "forecast"),
}


def _cell(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def build_table(
    rows: Sequence[DomainRecord],
    table_name: str,
    columns: Optional[Sequence[str]] = None,
    caption: Optional[str] = None,
) -> Table:
    """
    Render a record collection as a rich table, in collection order
    (most recent first).
    """
    if columns is None:
        columns = COLUMNS.get(table_name)
    if columns is None:
        columns = tuple(type(rows[0]).model_fields) if rows else ("id",)

    table = Table(title=table_name, box=box.ROUNDED, caption=caption)
    table.add_column("id", style="cyan", no_wrap=True)
    for column in columns:
        if column == "id":
            continue
        justify = "right" if column.endswith(("price", "likes", "temperature", "humidity", "rainfall")) else "left"
        table.add_column(column, justify=justify)

    for row in rows:
        table.add_row(row.id, *(_cell(getattr(row, column, None)) for column in columns if column != "id"))
    return table


def print_notices(notices: Iterable[Notice], console: Optional[Console] = None) -> None:
    console = console or Console()
    for notice in notices:
        style = "bold red" if notice.variant == DESTRUCTIVE else "bold green"
        console.print(f"[{style}]{notice.title}[/{style}] {notice.description}")


__all__ = ["COLUMNS", "build_table", "print_notices"]
