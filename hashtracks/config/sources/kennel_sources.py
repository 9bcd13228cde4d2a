"""Built-in kennel source configurations.

Each entry is one external origin. ``url`` is the page, feed or calendar
ID the adapter reads; ``config`` is validated by the adapter for that type.
"""

from hashtracks.core.event_model import Source, SourceType

# ============================================================
# HTML SCRAPERS (site-specific, URL routed)
# ============================================================

HTML_SOURCES: list[Source] = [
    Source(
        id="london-hash",
        name="London Hash Run List",
        url="https://www.londonhash.org/runlist.php",
        type=SourceType.HTML_SCRAPER,
    ),
    Source(
        id="barnes-hash",
        name="Barnes Hash Hareline",
        url="http://www.barnesh3.com/HareLine.htm",
        type=SourceType.HTML_SCRAPER,
    ),
    Source(
        id="enfield-hash",
        name="Enfield Hash Blog",
        url="http://www.enfieldhash.org/",
        type=SourceType.HTML_SCRAPER,
    ),
    Source(
        id="ewh3",
        name="Everyday Is Wednesday H3 Website",
        url="https://www.ewh3.com/",
        type=SourceType.HTML_SCRAPER,
    ),
    Source(
        id="chicago-hash",
        name="Chicago Hash Website",
        url="https://chicagohash.org/",
        type=SourceType.HTML_SCRAPER,
        config={"kennelTag": "CH3"},
    ),
    Source(
        id="hashnyc",
        name="HashNYC Website",
        url="https://hashnyc.com",
        type=SourceType.HTML_SCRAPER,
    ),
]

# ============================================================
# CALENDAR, SPREADSHEET AND PLATFORM APIS
# ============================================================

API_SOURCES: list[Source] = [
    Source(
        id="boston-calendar",
        name="Boston Hash Calendar",
        url="bostonhash@gmail.com",
        type=SourceType.GOOGLE_CALENDAR,
    ),
    Source(
        id="chicagoland-calendar",
        name="Chicagoland Hash Calendar",
        url="30c33n8c8s46icrd334mm5p3vc@group.calendar.google.com",
        type=SourceType.GOOGLE_CALENDAR,
        config={
            "kennelPatterns": [
                ["CH3|Chicago Hash|Chicago H3", "CH3"],
                ["TH3|Thirstday|Thursday Hash", "TH3"],
                ["CFMH3|Chicago Full Moon|Full Moon Hash|Moon Hash", "CFMH3"],
                ["BDH3|Big Dogs", "BDH3"],
                ["2CH3|Second City", "2CH3"],
            ],
            "defaultKennelTag": "CH3",
        },
    ),
    Source(
        id="summit-sheet",
        name="Summit H3 Spreadsheet",
        url="https://docs.google.com/spreadsheets/d/1wG-BNb5ekMHM5euiPJT1nxQXZ3UxNqFZMdQtCBbYaMk",
        type=SourceType.GOOGLE_SHEETS,
        config={
            "sheetId": "1wG-BNb5ekMHM5euiPJT1nxQXZ3UxNqFZMdQtCBbYaMk",
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
            "startTimeRules": {
                "byDayOfWeek": {"Mon": "19:00", "Sat": "15:00", "Fri": "19:00"},
                "default": "15:00",
            },
        },
    ),
    Source(
        id="brooklyn-meetup",
        name="Brooklyn H3 Meetup",
        url="https://www.meetup.com/brooklyn-hash-house-harriers/",
        type=SourceType.MEETUP,
        config={"groupUrlname": "brooklyn-hash-house-harriers", "kennelTag": "BrH3"},
    ),
    Source(
        id="hashrego",
        name="Hash Rego Events",
        url="https://hashrego.com/events",
        type=SourceType.HASHREGO,
        config={"kennelSlugs": ["EWH3", "BFMH3"]},
    ),
]

# ============================================================
# FEEDS AND FIXED SCHEDULES
# ============================================================

FEED_SOURCES: list[Source] = [
    Source(
        id="sfh3-ical",
        name="SFH3 MultiHash iCal Feed",
        url="https://www.sfh3.com/calendar.ics?kennels=all",
        type=SourceType.ICAL_FEED,
        config={
            "kennelPatterns": [
                ["^SFH3", "SFH3"],
                ["^GPH3", "GPH3"],
                ["^EBH3", "EBH3"],
                ["^SVH3", "SVH3"],
                ["^FHAC-U", "FHAC-U"],
                ["^Agnews", "Agnews"],
                ["^Marin H3", "MarinH3"],
                ["^FMH3", "SFFMH3"],
            ],
            "defaultKennelTag": "SFH3",
            "skipPatterns": ["^Hand Pump", "^Workday"],
        },
    ),
    Source(
        id="city-hash-rss",
        name="City Hash News Feed",
        url="https://cityhash.org.uk/feed/",
        type=SourceType.RSS_FEED,
        config={"kennelTag": "CityH3"},
    ),
    Source(
        id="w3h3-schedule",
        name="West London Wednesday Schedule",
        url="https://westlondonhash.com/runs/",
        type=SourceType.STATIC_SCHEDULE,
        config={
            "kennelTag": "W3H3",
            "rrule": "FREQ=WEEKLY;BYDAY=WE",
            "startTime": "7pm",
            "defaultTitle": "Wednesday Hash",
            "defaultDescription": "Weekly run; check the website for the pub.",
        },
    ),
]

SOURCES: list[Source] = [*HTML_SOURCES, *API_SOURCES, *FEED_SOURCES]
