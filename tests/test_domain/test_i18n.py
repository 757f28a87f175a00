"""
Tests for message rendering and locale resolution
"""
from event_locator.i18n import TRANSLATIONS, render, resolve_locale


class TestRender:
    def test_interpolates(self):
        assert render("events.reminder", "en", {"event": "Jazz Night", "time": "20:00"}) == (
            "Reminder: Jazz Night is starting at 20:00"
        )

    def test_explicit_locale(self):
        assert render("events.reminder", "es", {"event": "Jazz Night", "time": "20:00"}) == (
            "Recordatorio: Jazz Night comienza a las 20:00"
        )

    def test_region_suffix_is_ignored(self):
        assert render("notifications.deleted", "fr-CA") == "Notification supprimée"

    def test_unknown_locale_falls_back_to_english(self):
        assert render("notifications.deleted", "de") == "Notification deleted"

    def test_unknown_key_returns_key(self):
        assert render("no.such.key", "en") == "no.such.key"

    def test_missing_variable_stays_placeholder(self):
        assert render("events.reminder", "en", {"event": "Jazz Night"}) == (
            "Reminder: Jazz Night is starting at {time}"
        )

    def test_every_language_has_every_key(self):
        keys = set(TRANSLATIONS["en"])
        for lang, table in TRANSLATIONS.items():
            assert set(table) == keys, lang


class TestResolveLocale:
    def test_first_supported(self):
        assert resolve_locale("fr-CA,en;q=0.8") == "fr"

    def test_quality_order(self):
        assert resolve_locale("de, es;q=0.5, fr;q=0.7") == "fr"

    def test_unsupported_only(self):
        assert resolve_locale("de-DE") == "en"

    def test_missing_header(self):
        assert resolve_locale(None) == "en"
        assert resolve_locale("") == "en"
