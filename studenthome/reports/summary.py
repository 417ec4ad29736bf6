# studenthome/reports/summary.py
from __future__ import annotations

from collections.abc import Sequence

from studenthome.schemas.models import CatalogStats, MaintenanceResult, PipelineRunResult, PriceStats


def _fmt_gbp(x: float | None) -> str:
    """
    Format a float as GBP with thousands separators.

    Example:
        1234.5 -> £1,234.50
        None   -> n/a
    """
    if x is None:
        return "n/a"
    return f"£{x:,.2f}"


def _fmt_pct(x: float) -> str:
    """0.625 -> 62.5%"""
    return f"{x * 100:.1f}%"


def _section(title: str) -> str:
    return f"\n## {title}\n"


def _render_prices(p: PriceStats) -> str:
    return "\n".join(
        [
            _section("Prices"),
            f"- Count: {p.count}",
            f"- Min: {_fmt_gbp(p.min)}",
            f"- Avg: {_fmt_gbp(p.avg)}",
            f"- Max: {_fmt_gbp(p.max)}",
        ]
    )


def _render_counts_table(title: str, label: str, rows: Sequence[tuple[str, int]]) -> str:
    if not rows:
        return ""
    lines = [_section(title), f"| {label} | Count |", "| :--- | ---: |"]
    lines.extend(f"| {name} | {n} |" for name, n in rows)
    return "\n".join(lines)


# -----------------------
# Public API
# -----------------------


def render_run_summary(result: PipelineRunResult, *, title: str = "Import Summary", top_n: int = 15) -> str:
    """
    Markdown summary of one pipeline run.

    Sections:
      - Totals: files, items seen, normalized, invalid, duplicates, imported, errors
      - Skipped: per-reason counts
      - Prices of the records written
      - Locations: top N
    """
    status = "interrupted" if result.interrupted else "complete"
    totals = [
        f"# {title}",
        "",
        f"Status: **{status}**",
        _section("Totals"),
        f"- Files: {len(result.files)}",
        f"- Items seen: {result.items_seen}",
        f"- Normalized: {result.normalized}",
        f"- Invalid: {result.invalid}",
        f"- Duplicates removed: {result.duplicates_removed}",
        f"- Imported: {result.imported}",
        f"- Images imported: {result.images_imported}",
        f"- Universities imported: {result.universities_imported}",
        f"- Errors: {result.errors}",
    ]
    if result.finished_at is not None:
        secs = (result.finished_at - result.started_at).total_seconds()
        totals.append(f"- Duration: {secs:.1f}s")

    skipped = sorted(result.skipped.items(), key=lambda kv: (-kv[1], kv[0]))
    locations = list(result.location_breakdown.items())[:top_n]
    parts = [
        "\n".join(totals),
        _render_counts_table("Skipped", "Reason", skipped),
        _render_prices(result.price_stats) if result.price_stats.count else "",
        _render_counts_table("Locations", "Location", locations),
    ]
    return "\n".join(part for part in parts if part).strip() + "\n"


def render_catalog_stats(stats: CatalogStats, *, title: str = "Catalog Statistics") -> str:
    known_share = stats.known_city_locations / stats.properties if stats.properties else 0.0
    overview = [
        f"# {title}",
        _section("Overview"),
        f"- Properties: {stats.properties}",
        f"- Images: {stats.images} ({stats.avg_images_per_property:.1f} per property)",
        f"- Universities: {stats.universities}",
        f"- Distinct locations: {stats.distinct_locations}",
        f"- Postcode coverage: {_fmt_pct(stats.postcode_coverage)} ({stats.with_postcode}/{stats.properties})",
        f"- Image coverage: {_fmt_pct(stats.image_coverage)} ({stats.with_images}/{stats.properties})",
        f"- In known UK cities: {_fmt_pct(known_share)}",
        f"- Available: {stats.available}",
        f"- Furnished: {stats.furnished}",
    ]
    types = sorted(stats.property_types.items(), key=lambda kv: (-kv[1], kv[0]))
    parts = [
        "\n".join(overview),
        _render_prices(stats.price),
        _render_counts_table("Top Locations", "Location", stats.top_locations),
        _render_counts_table("Property Types", "Type", types),
    ]
    return "\n".join(part for part in parts if part).strip() + "\n"


def render_maintenance(results: Sequence[MaintenanceResult]) -> str:
    lines = ["# Maintenance", "", "| Operation | Examined | Changed |", "| :--- | ---: | ---: |"]
    lines.extend(f"| {r.operation} | {r.examined} | {r.changed} |" for r in results)
    return "\n".join(lines) + "\n"


def write_summary(path: str, markdown: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(markdown)
