"""Tests for submission record builders and points validation."""

import math

import pytest
from datetime import datetime, timezone

from mcrep.errors import ValidationError
from mcrep.ledger.builder import (
    BAN_POINTS,
    manual_record,
    record_from_ban,
    validate_points,
)
from mcrep.ledger.encoder import encode_message
from mcrep.ledger.models import BanEntry


def _ban(**overrides) -> BanEntry:
    data = {
        "uuid": "A",
        "created": "2024-01-01T00:00:00Z",
        "reason": "cheating",
    }
    data.update(overrides)
    return BanEntry.model_validate(data)


class TestValidatePoints:

    @pytest.mark.parametrize("points", [-1, -0.5, -0.1, 0.1, 0.5, 1, "0.3", "-1"])
    def test_accepts_allowed_range(self, points):
        assert validate_points(points) == float(points)

    @pytest.mark.parametrize("points", [0, 0.05, -0.05, 1.5, -1.5, "0", 0.099])
    def test_rejects_out_of_range(self, points):
        with pytest.raises(ValidationError):
            validate_points(points)

    @pytest.mark.parametrize("points", ["abc", None, "", math.nan, "nan"])
    def test_rejects_non_numeric(self, points):
        with pytest.raises(ValidationError):
            validate_points(points)

    def test_error_names_operation(self):
        with pytest.raises(ValidationError) as exc:
            validate_points(0)
        assert exc.value.operation == "manual"


class TestRecordFromBan:

    def test_fields(self):
        record = record_from_ban(_ban())
        assert record.player_uuid == "A"
        assert record.timestamp == 1704067200
        assert record.points == BAN_POINTS
        assert record.comment == "cheating"

    def test_fresh_id_per_record(self):
        ban = _ban()
        assert record_from_ban(ban).uuid != record_from_ban(ban).uuid

    def test_encoded_message_layout(self):
        record = record_from_ban(_ban())
        text = encode_message(record.message_fields())
        assert text == (
            f"uuid: {record.uuid}\n"
            "timestamp: 1704067200\n"
            "player_uuid: A\n"
            "points: -1\n"
            "comment: cheating\n"
        )

    def test_minecraft_time_format_same_timestamp(self):
        iso = record_from_ban(_ban())
        native = record_from_ban(_ban(created="2024-01-01 00:00:00 +0000"))
        assert iso.timestamp == native.timestamp


class TestManualRecord:

    def test_uses_given_time(self):
        record = manual_record("B", "0.5", "griefing", now=1700000000)
        assert record.timestamp == 1700000000
        assert record.points == 0.5
        assert record.comment == "griefing"

    def test_defaults_to_current_time(self):
        before = int(datetime.now(timezone.utc).timestamp())
        record = manual_record("B", -0.2, "spam")
        assert before - 1 <= record.timestamp <= before + 2

    def test_rejects_zero_points(self):
        with pytest.raises(ValidationError):
            manual_record("B", 0, "nothing")

    def test_rejects_missing_player(self):
        with pytest.raises(ValidationError):
            manual_record("", 1, "x")
