"""Google Sheets hareline adapter.

Type: GOOGLE_SHEETS
Source URL: the public sheet URL (used as each event's source link)

Some kennels keep their run history in a spreadsheet with one tab per year
("2025", "2024-25"...). Tabs are discovered through the Sheets API (newest
first) unless listed in config, and each tab is read as CSV through the
public gviz export. Dates are US order ("6-15-25", "7/1/2024").

Config:
    sheetId: Spreadsheet ID
    tabs: Explicit tab names (skips discovery)
    columns: Zero-based column indexes (runNumber, specialRun, date, hares,
        location, title, description)
    kennelTagRules: default tag, specialRunMap {cell: tag}, numericSpecialTag
    startTimeRules: byDayOfWeek {"Mon": "19:00"}, default

Requires GOOGLE_CALENDAR_API_KEY.
"""

import csv
import io
from datetime import date

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import AdapterConfig, BaseAdapter, FetchContext
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.exceptions import FetchError
from hashtracks.core.scrape_result import FetchErrorDetail, ItemOutcome, PageResult, ScrapeResult
from hashtracks.utils.dates import in_window, resolve_date
from hashtracks.utils.locations import google_maps_url
from hashtracks.utils.text import clip

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
GVIZ_CSV_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq"
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class SheetColumns(AdapterConfig):
    run_number: int
    date: int
    hares: int
    location: int
    title: int
    special_run: int | None = None
    description: int | None = None


class KennelTagRules(AdapterConfig):
    default: str
    special_run_map: dict[str, str] = {}
    numeric_special_tag: str | None = None


class StartTimeRules(AdapterConfig):
    by_day_of_week: dict[str, str] = {}
    default: str | None = None

    def for_date(self, iso_date: str) -> str | None:
        weekday = WEEKDAYS[date.fromisoformat(iso_date).weekday()]
        return self.by_day_of_week.get(weekday, self.default)


class GoogleSheetsConfig(AdapterConfig):
    sheet_id: str
    columns: SheetColumns
    kennel_tag_rules: KennelTagRules
    tabs: list[str] | None = None
    start_time_rules: StartTimeRules | None = None


def parse_csv(text: str) -> list[list[str]]:
    """Parse CSV text, dropping blank lines."""
    return [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]


def cell(row: list[str], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip()


def year_tabs(titles: list[str]) -> list[str]:
    """Year-prefixed data tabs, newest first."""
    return sorted((title for title in titles if title[:1].isdigit()), reverse=True)


@register_adapter(SourceType.GOOGLE_SHEETS)
class GoogleSheetsAdapter(BaseAdapter):
    """Adapter for spreadsheet-based harelines."""

    type_id = "google_sheets"
    config_model = GoogleSheetsConfig

    def parse_row(self, row: list[str], config: GoogleSheetsConfig, source_url: str | None) -> ItemOutcome:
        """Build an event from one data row; rows without a date or run are skipped."""
        columns = config.columns
        rules = config.kennel_tag_rules

        date_cell = cell(row, columns.date)
        event_date = resolve_date(date_cell, locale="us") if date_cell else None
        if not event_date:
            return None

        run_cell = cell(row, columns.run_number)
        special_cell = cell(row, columns.special_run)

        if special_cell and special_cell in rules.special_run_map:
            kennel_tag = rules.special_run_map[special_cell]
            run_number = int(run_cell) if run_cell.isdigit() else None
        elif special_cell.isdigit() and rules.numeric_special_tag:
            kennel_tag = rules.numeric_special_tag
            run_number = int(special_cell)
        elif run_cell.isdigit():
            kennel_tag = rules.default
            run_number = int(run_cell)
        else:
            # Blank, note or repeated header row
            return None

        location = cell(row, columns.location) or None
        start_time_rules = config.start_time_rules

        return RawEventData(
            date=event_date,
            kennel_tag=kennel_tag,
            run_number=run_number or None,
            title=cell(row, columns.title) or None,
            description=clip(cell(row, columns.description)),
            hares=cell(row, columns.hares) or None,
            location=location,
            location_url=google_maps_url(location) if location else None,
            start_time=start_time_rules.for_date(event_date) if start_time_rules else None,
            source_url=source_url,
        )

    async def discover_tabs(self, config: GoogleSheetsConfig, api_key: str, ctx: FetchContext) -> list[str]:
        data = await self.fetch_json(
            f"{SHEETS_API_BASE}/{config.sheet_id}",
            params={"fields": "sheets.properties.title"},
            headers={"X-Goog-Api-Key": api_key},
            deadline=ctx.deadline,
        )
        sheets = data.get("sheets", []) if isinstance(data, dict) else []
        titles = [(sheet.get("properties") or {}).get("title") or "" for sheet in sheets]
        return year_tabs(titles)

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        api_key = self.require_api_key(ctx.source)
        config: GoogleSheetsConfig = ctx.config

        tabs = config.tabs or await self.discover_tabs(config, api_key, ctx)
        csv_url = GVIZ_CSV_URL.format(sheet_id=config.sheet_id)

        result = PageResult()
        tabs_processed: list[str] = []
        rows_per_tab: dict[str, int] = {}
        in_window_so_far = 0

        for tab in tabs:
            try:
                response = await self.fetch_url(
                    csv_url,
                    params={"tqx": "out:csv", "sheet": tab},
                    deadline=ctx.deadline,
                )
            except FetchError as e:
                self.logger.warning("tab_fetch_failed", tab=tab, error=str(e))
                result = result.with_fetch_error(FetchErrorDetail(
                    url=csv_url,
                    status=e.status_code,
                    message=f'Failed to fetch tab "{tab}": {e}',
                ))
                continue

            tabs_processed.append(tab)
            rows = parse_csv(response.text)
            rows_per_tab[tab] = len(rows)

            # First row is the header
            tab_page = PageResult.collect(
                self.guarded(
                    lambda row=row: self.parse_row(row, config, ctx.source.url or None),
                    index,
                    tab,
                    raw_text=",".join(row),
                )
                for index, row in enumerate(rows[1:], start=1)
            )
            result = result.merge(tab_page)

            tab_in_window = sum(1 for event in tab_page.events if in_window(event.date, ctx.window))
            # Tabs are newest first: an older tab with nothing in the window ends the scan
            if not tab_in_window and in_window_so_far:
                break
            in_window_so_far += tab_in_window

        return self.finish(
            ctx,
            result,
            diagnostics={
                "tabsDiscovered": tabs,
                "tabsProcessed": tabs_processed,
                "rowsPerTab": rows_per_tab,
            },
        )
