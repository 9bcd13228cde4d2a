"""Tests for the structured-API and feed adapters."""

from datetime import date

import httpx
import pytest


def make_source(slug: str, source_type, url: str = "", config: dict | None = None):
    from hashtracks.core.event_model import Source

    return Source(id=slug, name=slug, url=url, type=source_type, config=config or {})


class TestGoogleCalendar:
    """Tests for the Google Calendar API adapter."""

    ITEMS_PAGE_1 = [
        {
            "summary": "BH3 #2781: Valentine's Trail",
            "start": {"dateTime": "2026-02-14T14:00:00-05:00"},
            "description": "Hare: Speedy<br>Where: Fenway",
            "location": "Fenway Park, Boston",
            "htmlLink": "https://calendar.google.com/event?eid=1",
        },
        {"summary": "Beantown #12: Pub Crawl", "start": {"date": "2026-02-20"}},
        {"summary": "Cancelled trail", "status": "cancelled", "start": {"date": "2026-02-21"}},
        {"summary": "Bad start", "start": {"dateTime": "not-a-date"}},
    ]
    ITEMS_PAGE_2 = [
        {"summary": "Boston Moon Hash", "start": {"dateTime": "2026-03-03T19:00:00-05:00"}},
    ]

    def source(self, config: dict | None = None):
        from hashtracks.core.event_model import SourceType

        return make_source("boston-calendar", SourceType.GOOGLE_CALENDAR, "bostonhash@gmail.com", config)

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, make_adapter):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter
        from hashtracks.core.exceptions import MissingCredentialError

        adapter = make_adapter(GoogleCalendarAdapter, lambda request: httpx.Response(200, json={}))

        with pytest.raises(MissingCredentialError) as exc_info:
            await adapter.fetch(self.source())
        assert exc_info.value.env_var == "GOOGLE_CALENDAR_API_KEY"

    @pytest.mark.asyncio
    async def test_follows_page_tokens(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            assert request.headers["X-Goog-Api-Key"] == "test-key"
            assert request.url.path.startswith("/calendar/v3/calendars/bostonhash")
            assert request.url.path.endswith("/events")
            if request.url.params.get("pageToken") == "p2":
                return httpx.Response(200, json={"items": self.ITEMS_PAGE_2})
            return httpx.Response(200, json={"items": self.ITEMS_PAGE_1, "nextPageToken": "p2"})

        adapter = make_adapter(GoogleCalendarAdapter, handler, settings_with_key)
        result = await adapter.fetch(self.source())

        assert len(requests) == 2
        assert requests[0].url.params["timeMin"] == "2025-11-12T00:00:00Z"
        assert requests[0].url.params["timeMax"] == "2026-05-11T23:59:59Z"
        assert "key" not in requests[0].url.params

        assert [e.kennel_tag for e in result.events] == ["BoH3", "Beantown", "Bos Moon"]
        first = result.events[0]
        assert first.date == "2026-02-14"
        assert first.start_time == "14:00"
        assert first.run_number == 2781
        assert first.title == "Valentine's Trail"
        assert first.hares == "Speedy"
        assert first.location == "Fenway Park, Boston"
        assert first.source_url == "https://calendar.google.com/event?eid=1"
        assert result.events[1].start_time is None
        assert result.events[1].run_number == 12

        assert len(result.parse_errors) == 1
        assert result.parse_errors[0].section == "calendar_events"
        assert result.diagnostic_context["pagesProcessed"] == 2
        assert result.diagnostic_context["itemsReturned"] == 5

    @pytest.mark.asyncio
    async def test_config_patterns_keep_full_title(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        items = [
            {"summary": "CH3 #2580: Groundhog", "start": {"date": "2026-02-14"}},
            {"summary": "Social", "start": {"date": "2026-02-15"}},
        ]
        adapter = make_adapter(
            GoogleCalendarAdapter,
            lambda request: httpx.Response(200, json={"items": items}),
            settings_with_key,
        )
        result = await adapter.fetch(
            self.source({"kennelPatterns": [["^CH3", "CH3"]], "defaultKennelTag": "CHI"})
        )

        assert [(e.kennel_tag, e.title) for e in result.events] == [
            ("CH3", "CH3 #2580: Groundhog"),
            ("CHI", "Social"),
        ]

    @pytest.mark.asyncio
    async def test_later_page_failure_keeps_events(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("pageToken"):
                return httpx.Response(500)
            return httpx.Response(200, json={"items": self.ITEMS_PAGE_1, "nextPageToken": "p2"})

        adapter = make_adapter(GoogleCalendarAdapter, handler, settings_with_key)
        result = await adapter.fetch(self.source())

        assert len(result.events) == 2
        assert len(result.fetch_errors) == 1
        assert result.fetch_errors[0].status == 500

    @pytest.mark.asyncio
    async def test_first_page_failure_short_circuits(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        adapter = make_adapter(
            GoogleCalendarAdapter,
            lambda request: httpx.Response(404, json={"error": {"code": 404}}),
            settings_with_key,
        )
        result = await adapter.fetch(self.source())

        assert result.events == []
        assert result.parse_errors == []
        assert result.fetch_errors[0].status == 404

    @pytest.mark.asyncio
    async def test_invalid_pattern_is_fetch_tier_error(self, make_adapter, settings_with_key):
        """Test a bad config regex gives an error result without any request."""
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"items": []})

        adapter = make_adapter(GoogleCalendarAdapter, handler, settings_with_key)
        result = await adapter.fetch(self.source({"kennelPatterns": [["(unclosed", "X"]]}))

        assert requests == []
        assert result.events == []
        assert len(result.fetch_errors) == 1
        assert result.fetch_errors[0].message.startswith("Invalid source config")

    @pytest.mark.parametrize(
        "body,status,fragment",
        [
            ({"error": "quota"}, None, "quota"),
            ({"error": {"code": 403, "message": "Forbidden"}}, 403, "Forbidden"),
            ({"error": {"code": "RATE", "message": "Slow down"}}, None, "Slow down"),
        ],
    )
    @pytest.mark.asyncio
    async def test_error_body_is_fetch_error(self, make_adapter, settings_with_key, body, status, fragment):
        """Test an error object in a 200 response is reported whatever its shape."""
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        adapter = make_adapter(
            GoogleCalendarAdapter,
            lambda request: httpx.Response(200, json=body),
            settings_with_key,
        )
        result = await adapter.fetch(self.source())

        assert result.events == []
        assert len(result.fetch_errors) == 1
        assert result.fetch_errors[0].status == status
        assert fragment in result.fetch_errors[0].message

    @pytest.mark.asyncio
    async def test_unexpected_payload_shape_is_fetch_error(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        adapter = make_adapter(
            GoogleCalendarAdapter,
            lambda request: httpx.Response(200, json={"items": 5}),
            settings_with_key,
        )
        result = await adapter.fetch(self.source())

        assert result.events == []
        assert len(result.fetch_errors) == 1
        assert result.fetch_errors[0].message.startswith("Unexpected response shape")

    @pytest.mark.asyncio
    async def test_unparseable_start_is_date_error(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_calendar import GoogleCalendarAdapter

        items = [{"summary": "Bad start", "start": {"dateTime": "not-a-date"}}]
        adapter = make_adapter(
            GoogleCalendarAdapter,
            lambda request: httpx.Response(200, json={"items": items}),
            settings_with_key,
        )
        result = await adapter.fetch(self.source())

        error = result.parse_errors[0]
        assert error.field == "date"
        assert error.error.startswith("Invalid date: not-a-date")
        assert error.partial_data == {"title": "Bad start"}


class TestGoogleSheets:
    """Tests for the Google Sheets hareline adapter."""

    CONFIG = {
        "sheetId": "SHEET1",
        "columns": {
            "runNumber": 0,
            "specialRun": 1,
            "date": 2,
            "hares": 3,
            "location": 4,
            "title": 6,
            "description": 9,
        },
        "kennelTagRules": {
            "default": "Summit",
            "specialRunMap": {"ASSSH3": "ASSSH3"},
            "numericSpecialTag": "SFM",
        },
        "startTimeRules": {"byDayOfWeek": {"Mon": "19:00", "Sat": "15:00"}, "default": "15:00"},
    }

    CSV_2026 = "\n".join([
        "Run,Special,Date,Hares,Location,x,Title,,,Notes",
        "1200,,2/14/26,Alice,The Bull,,Valentines,,,Bring cash",
        "1201,ASSSH3,2/21/26,Bob,The Crown,,Special,,,",
        ",5,3/2/26,Carl,Park,,Full moon,,,",
        ",,notes row,,,,,,,",
        ",,,,,,,,,",
    ])
    CSV_2025 = "\n".join([
        "Run,Special,Date,Hares,Location,x,Title,,,Notes",
        "1150,,6/15/25,Dave,The Oak,,Summer,,,",
    ])

    def source(self):
        from hashtracks.core.event_model import SourceType

        return make_source(
            "summit-sheet",
            SourceType.GOOGLE_SHEETS,
            "https://docs.google.com/spreadsheets/d/SHEET1",
            self.CONFIG,
        )

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, make_adapter):
        from hashtracks.adapters.google_sheets import GoogleSheetsAdapter
        from hashtracks.core.exceptions import MissingCredentialError

        adapter = make_adapter(GoogleSheetsAdapter, lambda request: httpx.Response(200))

        with pytest.raises(MissingCredentialError):
            await adapter.fetch(self.source())

    @pytest.mark.asyncio
    async def test_discovers_tabs_and_stops_at_empty_year(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_sheets import GoogleSheetsAdapter

        fetched_tabs = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "sheets.googleapis.com":
                assert request.headers["X-Goog-Api-Key"] == "test-key"
                return httpx.Response(200, json={"sheets": [
                    {"properties": {"title": "Instructions"}},
                    {"properties": {"title": "2024"}},
                    {"properties": {"title": "2025"}},
                    {"properties": {"title": "2026"}},
                ]})
            tab = request.url.params["sheet"]
            fetched_tabs.append(tab)
            return httpx.Response(200, text={"2026": self.CSV_2026, "2025": self.CSV_2025}.get(tab, ""))

        adapter = make_adapter(GoogleSheetsAdapter, handler, settings_with_key)
        result = await adapter.fetch(self.source())

        assert fetched_tabs == ["2026", "2025"]
        assert [(e.kennel_tag, e.run_number) for e in result.events] == [
            ("Summit", 1200),
            ("ASSSH3", 1201),
            ("SFM", 5),
        ]
        first = result.events[0]
        assert first.date == "2026-02-14"
        assert first.start_time == "15:00"
        assert first.hares == "Alice"
        assert first.title == "Valentines"
        assert first.description == "Bring cash"
        assert first.source_url == "https://docs.google.com/spreadsheets/d/SHEET1"
        assert result.events[2].start_time == "19:00"

        context = result.diagnostic_context
        assert context["tabsDiscovered"] == ["2026", "2025", "2024"]
        assert context["tabsProcessed"] == ["2026", "2025"]
        assert context["eventsOutsideWindow"] == 1

    @pytest.mark.asyncio
    async def test_failed_tab_is_recorded_and_scan_continues(self, make_adapter, settings_with_key):
        from hashtracks.adapters.google_sheets import GoogleSheetsAdapter

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["sheet"] == "2025":
                return httpx.Response(500)
            return httpx.Response(200, text=self.CSV_2026)

        config = {**self.CONFIG, "tabs": ["2025", "2026"]}
        source = self.source().model_copy(update={"config": config})
        adapter = make_adapter(GoogleSheetsAdapter, handler, settings_with_key)
        result = await adapter.fetch(source)

        assert len(result.events) == 3
        assert len(result.fetch_errors) == 1
        assert result.fetch_errors[0].message.startswith('Failed to fetch tab "2025"')


class TestMeetup:
    """Tests for the Meetup adapter."""

    CONFIG = {"groupUrlname": "brooklyn-hash-house-harriers", "kennelTag": "BrH3"}

    def source(self):
        from hashtracks.core.event_model import SourceType

        return make_source("brooklyn-meetup", SourceType.MEETUP, "", self.CONFIG)

    @pytest.mark.asyncio
    async def test_parses_events(self, make_adapter):
        from hashtracks.adapters.meetup import MeetupAdapter

        events = [
            {
                "id": "1",
                "name": "BrH3 Trail #900",
                "status": "upcoming",
                "local_date": "2026-02-15",
                "local_time": "14:00",
                "description": "<p>Fun</p>",
                "venue": {"name": "Prospect Park", "address_1": "Grand Army Plaza", "city": "Brooklyn", "state": "NY"},
                "link": "https://www.meetup.com/brooklyn-hash-house-harriers/events/1/",
            },
            {"id": "2", "name": "Called off", "status": "cancelled", "local_date": "2026-02-16"},
            {"id": "3", "name": "No date", "status": "upcoming"},
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "api.meetup.com"
            assert request.url.path == "/brooklyn-hash-house-harriers/events"
            return httpx.Response(200, json=events)

        adapter = make_adapter(MeetupAdapter, handler)
        result = await adapter.fetch(self.source())

        assert len(result.events) == 1
        event = result.events[0]
        assert event.kennel_tag == "BrH3"
        assert event.date == "2026-02-15"
        assert event.start_time == "14:00"
        assert event.description == "Fun"
        assert event.location == "Prospect Park, Grand Army Plaza, Brooklyn, NY"
        assert len(result.parse_errors) == 1
        assert result.parse_errors[0].partial_data == {"kennelTag": "BrH3", "title": "No date"}
        assert result.parse_errors[0].field == "local_date"
        assert result.parse_errors[0].error == "Missing required field: local_date (3)"

    @pytest.mark.asyncio
    async def test_non_list_response_is_fetch_error(self, make_adapter):
        from hashtracks.adapters.meetup import MeetupAdapter

        adapter = make_adapter(MeetupAdapter, lambda request: httpx.Response(200, json={"errors": ["nope"]}))
        result = await adapter.fetch(self.source())

        assert result.events == []
        assert len(result.fetch_errors) == 1

    @pytest.mark.asyncio
    async def test_missing_group_is_config_error(self, make_adapter):
        from hashtracks.adapters.meetup import MeetupAdapter
        from hashtracks.core.event_model import SourceType

        adapter = make_adapter(MeetupAdapter, lambda request: httpx.Response(200, json=[]))
        result = await adapter.fetch(make_source("bad-meetup", SourceType.MEETUP, "", {"kennelTag": "X"}))

        assert "groupUrlname" in result.errors[0]


class TestHashRego:
    """Tests for the Hash Rego index and detail page adapter."""

    INDEX_URL = "https://hashrego.com/events"

    INDEX_HTML = """
<html><body><table id="eventListTable">
<thead><tr><th>Event</th><th>Type</th><th>Host</th><th>Start</th><th>Cost</th><th>Rego'd</th></tr></thead>
<tbody>
<tr><td><a href="/events/ewh3-1506-groundhog-trail">EWH3 #1506: Groundhog Trail</a></td><td>Trail</td>
<td><a href="/kennels/EWH3/">EWH3</a></td><td>02/19/26<br>6:45 PM</td><td>$10</td><td>23</td></tr>
<tr><td><a href="/events/bfmh3-spring-campout">BFM Spring Campout</a></td><td>Hash Campout</td>
<td><a href="/kennels/BFMH3/">BFMH3</a></td><td>03/06/26<br>6:00 PM</td><td>$85</td><td>40</td></tr>
<tr><td><a href="/events/dch4-trail">DCH4 Trail</a></td><td>Trail</td>
<td><a href="/kennels/DCH4/">DCH4</a></td><td>02/21/26<br>2:00 PM</td><td>$5</td><td>10</td></tr>
<tr><td><a href="/events/ewh3-1507">EWH3 #1507</a></td><td>Trail</td>
<td><a href="/kennels/EWH3/">EWH3</a></td><td>02/26/26<br>11:59 PM</td><td>$10</td><td>3</td></tr>
<tr><td>Sold out</td></tr>
</tbody></table></body></html>
"""

    TRAIL_HTML = """
<html><head><title>Hash Rego</title>
<meta property="og:title" content="02/19 EWH3 #1506: Groundhog Trail">
<meta property="og:description" content="**Hare(s):** Alice and Bob
**Where:** Union Station
**Cost:** $10
Shiggy level 3, bring a headlamp.
https://maps.google.com/maps?q=Union+Station+DC">
</head><body><a href="/kennels/EWH3/">EWH3</a></body></html>
"""

    CAMPOUT_HTML = """
<html><head>
<meta property="og:title" content="03/06 BFM Spring Campout">
<meta property="og:description" content="3/6 6:00 PM to 3/8 11:00 AM
Friday 6:00 show, Saturday 1:30 go, Sunday 10:00 start
**Hares:** Mudflap
Camping at Lums Pond State Park, 1068 Howell School Rd, Bear, DE 19701">
</head><body><a href="/kennels/BFMH3/">BFMH3</a></body></html>
"""

    def source(self, config: dict | None = None):
        from hashtracks.core.event_model import SourceType

        return make_source("hashrego", SourceType.HASHREGO, self.INDEX_URL, config)

    def handler(self, requests: list):
        def handle(request: httpx.Request) -> httpx.Response:
            requests.append(request.url.path)
            pages = {
                "/events": self.INDEX_HTML,
                "/events/ewh3-1506-groundhog-trail": self.TRAIL_HTML,
                "/events/bfmh3-spring-campout": self.CAMPOUT_HTML,
            }
            if request.url.path in pages:
                return httpx.Response(200, text=pages[request.url.path])
            return httpx.Response(500)

        return handle

    @pytest.mark.asyncio
    async def test_fetches_details_of_configured_kennels(self, make_adapter):
        from hashtracks.adapters.hashrego import HashRegoAdapter

        requests = []
        adapter = make_adapter(HashRegoAdapter, self.handler(requests))

        result = await adapter.fetch(self.source({"kennelSlugs": ["ewh3", "BFMH3"]}))

        assert requests == [
            "/events",
            "/events/ewh3-1506-groundhog-trail",
            "/events/bfmh3-spring-campout",
            "/events/ewh3-1507",
        ]
        assert [e.date for e in result.events] == [
            "2026-02-19",
            "2026-03-06",
            "2026-03-07",
            "2026-03-08",
            "2026-02-26",
        ]

        trail = result.events[0]
        assert trail.kennel_tag == "EWH3"
        assert trail.title == "EWH3 #1506: Groundhog Trail"
        assert trail.hares == "Alice and Bob"
        assert trail.location == "Union Station"
        assert trail.location_url == "https://maps.google.com/maps?q=Union+Station+DC"
        assert trail.start_time == "18:45"
        assert trail.description == "**Cost:** $10\nShiggy level 3, bring a headlamp."
        assert trail.source_url == "https://hashrego.com/events/ewh3-1506-groundhog-trail"

        assert result.diagnostic_context["totalIndexEntries"] == 4
        assert result.diagnostic_context["matchingEntries"] == 3
        assert result.diagnostic_context["kennelSlugsConfigured"] == ["ewh3", "BFMH3"]
        assert result.structure_hash

    @pytest.mark.asyncio
    async def test_multi_day_event_is_split_per_day(self, make_adapter):
        from hashtracks.adapters.hashrego import HashRegoAdapter

        adapter = make_adapter(HashRegoAdapter, self.handler([]))

        result = await adapter.fetch(self.source({"kennelSlugs": ["BFMH3"]}))

        assert [e.title for e in result.events] == [
            "BFM Spring Campout (Day 1)",
            "BFM Spring Campout (Day 2)",
            "BFM Spring Campout (Day 3)",
        ]
        assert [e.start_time for e in result.events] == ["18:00", "13:30", "10:00"]
        assert {e.kennel_tag for e in result.events} == {"BFMH3"}
        assert {e.hares for e in result.events} == {"Mudflap"}
        assert result.events[0].location == "1068 Howell School Rd, Bear, DE 19701"
        assert result.events[0].location_url.startswith("https://")
        assert "Lums Pond" in result.events[0].description

    @pytest.mark.asyncio
    async def test_failed_detail_falls_back_to_index_row(self, make_adapter):
        from hashtracks.adapters.hashrego import HashRegoAdapter

        adapter = make_adapter(HashRegoAdapter, self.handler([]))

        result = await adapter.fetch(self.source({"kennelSlugs": ["EWH3"]}))

        fallback = result.events[-1]
        assert fallback.date == "2026-02-26"
        assert fallback.kennel_tag == "EWH3"
        assert fallback.title == "EWH3 #1507"
        # 11:59 PM means no time was set
        assert fallback.start_time is None
        assert fallback.source_url == "https://hashrego.com/events/ewh3-1507"

        assert len(result.fetch_errors) == 1
        error = result.fetch_errors[0]
        assert error.url == "https://hashrego.com/events/ewh3-1507"
        assert error.status == 500
        assert error.message.startswith("Detail fetch failed")
        assert result.parse_errors == []

    @pytest.mark.asyncio
    async def test_index_failure_short_circuits(self, make_adapter):
        from hashtracks.adapters.hashrego import HashRegoAdapter

        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(503)

        adapter = make_adapter(HashRegoAdapter, handler)

        result = await adapter.fetch(self.source({"kennelSlugs": ["EWH3"]}))

        assert len(requests) == 1
        assert result.events == []
        assert len(result.fetch_errors) == 1
        assert result.fetch_errors[0].status == 503

    @pytest.mark.asyncio
    @pytest.mark.parametrize("config", [{}, {"kennelSlugs": []}, {"kennelSlugs": [" "]}])
    async def test_kennel_slugs_are_required(self, make_adapter, config):
        from hashtracks.adapters.hashrego import HashRegoAdapter

        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text=self.INDEX_HTML)

        adapter = make_adapter(HashRegoAdapter, handler)

        result = await adapter.fetch(self.source(config))

        assert requests == []
        assert result.events == []
        assert result.fetch_errors[0].message.startswith("Invalid source config")

    def test_index_row_without_date_is_date_error(self):
        from hashtracks.adapters.hashrego import IndexEntry, index_event

        outcome = index_event(IndexEntry(slug="tbd", kennel_slug="EWH3", title="Mystery Trail", start_date="TBD"), 4)

        assert outcome.field == "date"
        assert outcome.row == 4
        assert outcome.error.startswith("Invalid date: TBD")
        assert outcome.partial_data == {"title": "Mystery Trail", "kennelTag": "EWH3"}

    @pytest.mark.parametrize(
        "text,reference_year,expected",
        [
            ("02/19/26", None, "2026-02-19"),
            ("2/19/2026", None, "2026-02-19"),
            ("02/30/26", None, None),
            ("02/19", None, None),
            ("02/19", 2026, "2026-02-19"),
            ("soon", None, None),
        ],
    )
    def test_parse_hashrego_date(self, text, reference_year, expected):
        from hashtracks.adapters.hashrego import parse_hashrego_date

        assert parse_hashrego_date(text, reference_year) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [("7:00 PM", "19:00"), ("12:00 AM", "00:00"), ("12:30 pm", "12:30"), ("11:59 PM", None), ("", None)],
    )
    def test_parse_hashrego_time(self, text, expected):
        from hashtracks.adapters.hashrego import parse_hashrego_time

        assert parse_hashrego_time(text) == expected

    def test_range_crossing_new_year(self):
        from hashtracks.adapters.hashrego import date_range

        assert date_range("12/31 4:00 PM to 1/1 11:00 AM", 2026) == ["2026-12-31", "2027-01-01"]
        assert date_range("no range here", 2026) == []


class TestICal:
    """Tests for the iCalendar feed adapter."""

    ICS = "\r\n".join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Test//EN",
        "BEGIN:VEVENT",
        "UID:1@sfh3",
        "DTSTART:20260216T183000",
        "SUMMARY:SFH3 #2285: A Very Heated Rivalry",
        "DESCRIPTION:Hare: Tinkle Bell\\nWhere: Dolores Park",
        "LOCATION:Dolores Park\\, San Francisco",
        "URL:https://www.sfh3.com/runs/2285",
        "GEO:37.7596;-122.4269",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:2@sfh3",
        "DTSTART;VALUE=DATE:20260221",
        "SUMMARY:GPH3 #500: Saturday Trail",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:3@sfh3",
        "DTSTART;VALUE=DATE:20260222",
        "SUMMARY:Hand Pump Workday",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:4@sfh3",
        "DTSTART;VALUE=DATE:20260223",
        "SUMMARY:SFH3 #2286: Rained Out",
        "STATUS:CANCELLED",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:5@sfh3",
        "DTSTART;VALUE=DATE:20260224",
        "SUMMARY:Mystery Hash",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ])

    CONFIG = {
        "kennelPatterns": [["^SFH3", "SFH3"], ["^GPH3", "GPH3"]],
        "skipPatterns": ["^Hand Pump"],
    }

    def source(self, config: dict | None = None):
        from hashtracks.core.event_model import SourceType

        return make_source(
            "sfh3-ical",
            SourceType.ICAL_FEED,
            "https://www.sfh3.com/calendar.ics",
            self.CONFIG if config is None else config,
        )

    @pytest.mark.asyncio
    async def test_parses_vevents(self, make_adapter):
        from hashtracks.adapters.ical import ICalAdapter

        adapter = make_adapter(ICalAdapter, lambda request: httpx.Response(200, text=self.ICS))
        result = await adapter.fetch(self.source())

        assert [e.kennel_tag for e in result.events] == ["SFH3", "GPH3", "UNKNOWN"]
        first = result.events[0]
        assert first.date == "2026-02-16"
        assert first.start_time == "18:30"
        assert first.run_number == 2285
        assert first.title == "A Very Heated Rivalry"
        assert first.hares == "Tinkle Bell"
        assert first.location == "Dolores Park, San Francisco"
        assert "37.7596" in first.location_url
        assert first.source_url == "https://www.sfh3.com/runs/2285"

        assert result.events[1].start_time is None
        assert result.events[2].title == "Mystery Hash"
        assert result.diagnostic_context["totalVEvents"] == 5
        assert result.diagnostic_context["skippedPattern"] == 1

    @pytest.mark.asyncio
    async def test_malformed_feed_is_parse_error(self, make_adapter):
        from hashtracks.adapters.ical import ICalAdapter

        adapter = make_adapter(ICalAdapter, lambda request: httpx.Response(200, text="not a calendar"))
        result = await adapter.fetch(self.source())

        assert result.events == []
        assert result.fetch_errors == []
        assert len(result.parse_errors) == 1
        assert result.parse_errors[0].error.startswith("iCal parse error")

    @pytest.mark.asyncio
    async def test_invalid_skip_pattern_is_config_error(self, make_adapter):
        from hashtracks.adapters.ical import ICalAdapter

        adapter = make_adapter(ICalAdapter, lambda request: httpx.Response(200, text=self.ICS))
        result = await adapter.fetch(self.source({"skipPatterns": ["[unclosed"]}))

        assert result.events == []
        assert "skipPatterns" in result.errors[0]


class TestRss:
    """Tests for the RSS/Atom feed adapter."""

    FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
<title>City Hash</title>
<link>https://cityhash.org.uk/</link>
<description>Runs</description>
<item>
  <title>Run 1900: Borough</title>
  <link>https://cityhash.org.uk/run-1900/</link>
  <pubDate>Tue, 17 Feb 2026 19:00:00 +0000</pubDate>
  <description>&lt;p&gt;Hare: Someone&lt;/p&gt;</description>
</item>
<item>
  <title>Run 1870: Old one</title>
  <link>https://cityhash.org.uk/run-1870/</link>
  <pubDate>Mon, 01 Sep 2025 19:00:00 +0000</pubDate>
</item>
<item>
  <title>Undated note</title>
</item>
</channel></rss>
"""

    def source(self):
        from hashtracks.core.event_model import SourceType

        return make_source("city-hash-rss", SourceType.RSS_FEED, "https://cityhash.org.uk/feed/", {"kennelTag": "CityH3"})

    @pytest.mark.asyncio
    async def test_parses_items_in_window(self, make_adapter):
        from hashtracks.adapters.rss import RssAdapter

        adapter = make_adapter(RssAdapter, lambda request: httpx.Response(200, text=self.FEED))
        result = await adapter.fetch(self.source())

        assert len(result.events) == 1
        event = result.events[0]
        assert event.date == "2026-02-17"
        assert event.kennel_tag == "CityH3"
        assert event.title == "Run 1900: Borough"
        assert event.description == "Hare: Someone"
        assert event.source_url == "https://cityhash.org.uk/run-1900/"

        context = result.diagnostic_context
        assert context["feedTitle"] == "City Hash"
        assert context["itemCount"] == 3
        assert context["eventsOutsideWindow"] == 1

    @pytest.mark.asyncio
    async def test_unreadable_feed_is_parse_error(self, make_adapter):
        from hashtracks.adapters.rss import RssAdapter

        adapter = make_adapter(RssAdapter, lambda request: httpx.Response(200, text="this is not a feed"))
        result = await adapter.fetch(self.source())

        assert result.events == []
        assert len(result.parse_errors) == 1
        assert result.parse_errors[0].section == "feed"


class TestStaticSchedule:
    """Tests for the recurrence-rule adapter."""

    def source(self, config: dict):
        from hashtracks.core.event_model import SourceType

        return make_source("w3h3-schedule", SourceType.STATIC_SCHEDULE, "", config)

    @pytest.mark.asyncio
    async def test_weekly_rule(self, make_adapter):
        from hashtracks.adapters.static_schedule import StaticScheduleAdapter

        requests = []
        adapter = make_adapter(StaticScheduleAdapter, lambda request: requests.append(request))
        result = await adapter.fetch(
            self.source({"kennelTag": "W3H3", "rrule": "FREQ=WEEKLY;BYDAY=WE", "startTime": "7pm"}),
            days=14,
        )

        assert requests == []
        assert [e.date for e in result.events] == ["2026-01-28", "2026-02-04", "2026-02-11", "2026-02-18"]
        assert all(e.start_time == "19:00" and e.kennel_tag == "W3H3" for e in result.events)
        assert result.events[0].source_url is None

    @pytest.mark.asyncio
    async def test_nth_weekday_monthly_rule(self, make_adapter):
        from hashtracks.adapters.static_schedule import StaticScheduleAdapter

        adapter = make_adapter(StaticScheduleAdapter, lambda request: httpx.Response(500))
        result = await adapter.fetch(
            self.source({"kennelTag": "X", "rrule": "RRULE:FREQ=MONTHLY;BYDAY=2SA", "defaultTitle": "Second Saturday"})
        )

        assert [e.date for e in result.events] == [
            "2025-12-13",
            "2026-01-10",
            "2026-02-14",
            "2026-03-14",
            "2026-04-11",
            "2026-05-09",
        ]
        assert result.events[0].title == "Second Saturday"
        assert result.events[0].start_time is None

    @pytest.mark.parametrize(
        "rule,window,expected",
        [
            (
                "FREQ=MONTHLY;BYMONTHDAY=31",
                (date(2026, 1, 1), date(2026, 4, 30)),
                ["2026-01-31", "2026-02-28", "2026-03-31", "2026-04-30"],
            ),
            (
                "FREQ=MONTHLY; BYMONTHDAY=30",
                (date(2028, 1, 1), date(2028, 3, 31)),
                ["2028-01-30", "2028-02-29", "2028-03-30"],
            ),
            (
                "FREQ=MONTHLY;BYMONTHDAY=15",
                (date(2026, 1, 1), date(2026, 3, 31)),
                ["2026-01-15", "2026-02-15", "2026-03-15"],
            ),
        ],
    )
    def test_month_day_is_clamped_to_month_end(self, rule, window, expected):
        from hashtracks.adapters.static_schedule import occurrences

        assert occurrences(rule, window) == expected

    def test_clamp_leaves_other_rules_alone(self):
        from hashtracks.adapters.static_schedule import clamp_month_day

        assert clamp_month_day("FREQ=MONTHLY;BYDAY=2SA") == "FREQ=MONTHLY;BYDAY=2SA"
        assert clamp_month_day("FREQ=MONTHLY;BYMONTHDAY=28") == "FREQ=MONTHLY;BYMONTHDAY=28"
        assert clamp_month_day("FREQ=MONTHLY;BYMONTHDAY=31") == "FREQ=MONTHLY;BYMONTHDAY=31,-1;BYSETPOS=1"

    @pytest.mark.parametrize("rule", ["BYDAY=SA", "FREQ=SOMETIMES", "FREQ=WEEKLY;BYDAY"])
    @pytest.mark.asyncio
    async def test_invalid_rule_is_config_error(self, make_adapter, rule):
        from hashtracks.adapters.static_schedule import StaticScheduleAdapter

        adapter = make_adapter(StaticScheduleAdapter, lambda request: httpx.Response(500))
        result = await adapter.fetch(self.source({"kennelTag": "X", "rrule": rule}))

        assert result.events == []
        assert len(result.fetch_errors) == 1
        assert "Invalid source config" in result.errors[0]
