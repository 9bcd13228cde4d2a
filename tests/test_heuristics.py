"""Tests for location, kennel and text heuristics."""

import pytest


class TestPostcode:
    """Tests for UK postcode extraction."""

    def test_postcode_in_text(self):
        from hashtracks.utils.locations import extract_postcode

        assert extract_postcode("The Sun Inn, Richmond, TW9 1TH near the river") == "TW9 1TH"

    def test_no_postcode(self):
        from hashtracks.utils.locations import extract_postcode

        assert extract_postcode("The Pub, Richmond") is None
        assert extract_postcode(None) is None

    def test_postcode_uppercased(self):
        from hashtracks.utils.locations import extract_postcode

        assert extract_postcode("the bell, se11 5ja") == "SE11 5JA"


class TestSelectVenue:
    """Tests for picking the venue cell from a table row."""

    def test_postcode_cell_wins(self):
        from hashtracks.utils.locations import select_venue

        venue = select_venue(["19/02/2026", "The Red Lion", "The Bull, N1 9AA"])
        assert venue.location == "The Bull, N1 9AA"
        assert venue.postcode == "N1 9AA"

    def test_venue_noun_without_postcode(self):
        from hashtracks.utils.locations import select_venue

        venue = select_venue(["19/02/2026", "Dave", "The Red Lion"])
        assert venue.location == "The Red Lion"
        assert venue.postcode is None

    def test_nothing_qualifies(self):
        from hashtracks.utils.locations import select_venue

        assert select_venue(["19/02/2026", "TBA"]) == (None, None)

    def test_maps_url_is_encoded(self):
        from hashtracks.utils.locations import google_maps_url

        assert google_maps_url("TW9 1TH") == "https://www.google.com/maps/search/?api=1&query=TW9%201TH"


class TestKennelTags:
    """Tests for kennel tag resolution order."""

    def test_config_pattern_first(self):
        from hashtracks.utils.kennels import builtin_patterns, compile_patterns, resolve_kennel_tag

        tag = resolve_kennel_tag(
            "Beantown #12: Trail",
            config_patterns=compile_patterns([["Beantown", "Custom"]]),
            builtin=builtin_patterns([("Beantown", "Beantown")]),
            default="BoH3",
        )
        assert tag == "Custom"

    def test_config_default_before_builtin(self):
        from hashtracks.utils.kennels import builtin_patterns, compile_patterns, resolve_kennel_tag

        tag = resolve_kennel_tag(
            "Beantown #12: Trail",
            config_patterns=compile_patterns([["^SFH3", "SFH3"]]),
            config_default="Fallback",
            builtin=builtin_patterns([("Beantown", "Beantown")]),
            default="BoH3",
        )
        assert tag == "Fallback"

    def test_builtin_then_default(self):
        from hashtracks.utils.kennels import builtin_patterns, resolve_kennel_tag

        builtin = builtin_patterns([("Beantown", "Beantown")])
        assert resolve_kennel_tag("beantown social", builtin=builtin, default="BoH3") == "Beantown"
        assert resolve_kennel_tag("Some trail", builtin=builtin, default="BoH3") == "BoH3"

    def test_invalid_regex_is_config_error(self):
        from hashtracks.core.exceptions import InvalidConfigError
        from hashtracks.utils.kennels import compile_patterns

        with pytest.raises(InvalidConfigError):
            compile_patterns([["(unclosed", "X"]])

    def test_malformed_pair_is_config_error(self):
        from hashtracks.core.exceptions import InvalidConfigError
        from hashtracks.utils.kennels import compile_patterns

        with pytest.raises(InvalidConfigError):
            compile_patterns([["only-regex"]])


class TestRunDetails:
    """Tests for run number, hare and prefix heuristics."""

    def test_run_number(self):
        from hashtracks.utils.kennels import extract_run_number

        assert extract_run_number("BH3 #2781: Valentine's Trail") == 2781
        assert extract_run_number("No number") is None
        assert extract_run_number("#0") is None

    def test_hares(self):
        from hashtracks.utils.kennels import extract_hares

        assert extract_hares("Hare: Fred\nWhere: The Bull") == "Fred"
        assert extract_hares("Details\nHare(s): Just Kevin") == "Just Kevin"
        assert extract_hares("Who: that be you") is None
        assert extract_hares("Hares: TBA") is None

    def test_placeholder(self):
        from hashtracks.utils.kennels import is_placeholder

        assert is_placeholder("Hare needed")
        assert is_placeholder("TBA")
        assert not is_placeholder("Dave and Jo")

    def test_strip_kennel_prefix(self):
        from hashtracks.utils.kennels import strip_kennel_prefix

        assert strip_kennel_prefix("BoH3 #2781: Trail") == "Trail"
        assert strip_kennel_prefix("Plain title") == "Plain title"


class TestText:
    """Tests for text cleaning helpers."""

    def test_strip_html_keeps_lines(self):
        from hashtracks.utils.text import strip_html

        assert strip_html("<p>Hare: Fred</p><p>Where: The&nbsp;Bull &amp; Bush</p>") == (
            "Hare: Fred\n\nWhere: The Bull & Bush"
        )

    def test_labeled_field_stops_at_next_label(self):
        from hashtracks.utils.text import labeled_field

        text = "Hares: Foo and Bar Venue: The Bull"
        assert labeled_field(text, "Hares?", "Venue") == "Foo and Bar"
        assert labeled_field(text, "Venue") == "The Bull"
        assert labeled_field(text, "Station") is None

    def test_labeled_field_multiline(self):
        from hashtracks.utils.text import labeled_field

        text = "Venue: The Bull\nHigh Street\nHare: Fred"
        assert labeled_field(text, "Venue", "Hare") == "The Bull"
        assert labeled_field(text, "Venue", "Hare", multiline=True) == "The Bull High Street"

    def test_clip(self):
        from hashtracks.utils.text import clip

        assert clip("x" * 2500) == "x" * 2000
        assert clip("") is None
