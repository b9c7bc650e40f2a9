"""Tests for storage key derivation."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from recording_sync.domain.keys import derive_key, parse_business_date, production_id_from_key


class TestDeriveKey:
    """Test canonical key derivation."""

    def test_canonical_layout(self) -> None:
        key = derive_key("S1", "P1", "2024-06-15T18:00:00Z")
        assert key == "recordings/2024-06-15/S1/P1.mp4"

    def test_same_inputs_same_key(self) -> None:
        start = datetime(2024, 6, 15, 18, 0, tzinfo=UTC)
        assert derive_key("S1", "P1", start) == derive_key("S1", "P1", start)

    def test_time_of_day_does_not_change_key(self) -> None:
        morning = datetime(2024, 6, 15, 0, 5, tzinfo=UTC)
        evening = datetime(2024, 6, 15, 23, 55, tzinfo=UTC)
        assert derive_key("S1", "P1", morning) == derive_key("S1", "P1", evening)

    def test_date_uses_utc_calendar_day(self) -> None:
        # 01:30 in UTC+3 is still the previous day in UTC
        local = datetime(2024, 6, 16, 1, 30, tzinfo=timezone(timedelta(hours=3)))
        assert derive_key("S1", "P1", local) == "recordings/2024-06-15/S1/P1.mp4"

    def test_changed_date_changes_key(self) -> None:
        assert derive_key("S2", "P2", "2024-06-14T20:00:00Z") != derive_key(
            "S2", "P2", "2024-06-15T20:00:00Z"
        )

    def test_custom_extension(self) -> None:
        assert derive_key("S1", "P1", "2024-06-15", ext=".mkv") == "recordings/2024-06-15/S1/P1.mkv"

    def test_accepts_date(self) -> None:
        assert derive_key("S1", "P1", date(2024, 6, 15)) == "recordings/2024-06-15/S1/P1.mp4"

    @pytest.mark.parametrize("session_id,production_id", [("", "P1"), ("S1", "")])
    def test_empty_ids_rejected(self, session_id: str, production_id: str) -> None:
        with pytest.raises(ValueError):
            derive_key(session_id, production_id, "2024-06-15")


class TestParseBusinessDate:
    """Test business date parsing."""

    def test_naive_datetime_is_utc(self) -> None:
        parsed = parse_business_date(datetime(2024, 6, 15, 18, 0))
        assert parsed.tzinfo is not None
        assert parsed == datetime(2024, 6, 15, 18, 0, tzinfo=UTC)

    def test_iso_string_with_z(self) -> None:
        parsed = parse_business_date("2024-06-15T18:00:00Z")
        assert parsed == datetime(2024, 6, 15, 18, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", ["", "   ", "next tuesday", "15/06/2024"])
    def test_unparseable_strings(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_business_date(value)

    def test_other_types_rejected(self) -> None:
        with pytest.raises(TypeError):
            parse_business_date(1718474400)  # type: ignore[arg-type]


class TestProductionIdFromKey:
    """Test recovering the production id from a stored key."""

    def test_canonical_key(self) -> None:
        assert production_id_from_key("recordings/2024-06-14/S2/P2.mp4") == "P2"

    @pytest.mark.parametrize(
        "key",
        ["legacy/S2/P2.mp4", "recordings/S2/P2.mp4", "recordings/2024-06-14/S2/.mp4"],
    )
    def test_non_canonical_keys(self, key: str) -> None:
        assert production_id_from_key(key) is None
