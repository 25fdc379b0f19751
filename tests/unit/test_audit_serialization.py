"""Unit tests for audit value serialization."""

import json
import uuid
from datetime import date

from growthlab.kernel.audit import serialize_changes, serialize_value
from growthlab.kernel.models.experiment import Channel, ExperimentStatus


class TestSerializeValue:

    def test_none_stays_none(self):
        assert serialize_value(None) is None

    def test_strings_pass_through(self):
        assert serialize_value("running") == "running"

    def test_enums_use_their_value(self):
        assert serialize_value(ExperimentStatus.CONCLUDED) == "concluded"

    def test_scalars(self):
        assert serialize_value(2.5) == "2.5"
        assert serialize_value(date(2026, 3, 10)) == "2026-03-10"
        some_id = uuid.uuid4()
        assert serialize_value(some_id) == str(some_id)

    def test_dicts_become_sorted_json(self):
        text = serialize_value({"b": Channel.EMAIL, "a": date(2026, 1, 2)})
        assert text == '{"a": "2026-01-02", "b": "email"}'


class TestSerializeChanges:

    def test_splits_into_columns(self):
        field, previous, new = serialize_changes({
            "name": ("Old", "New"),
            "channel": (Channel.SEARCH, Channel.EMAIL),
        })
        assert field == "channel,name"
        assert json.loads(previous) == {"channel": "search", "name": "Old"}
        assert json.loads(new) == {"channel": "email", "name": "New"}

    def test_cleared_value_is_null(self):
        _, previous, new = serialize_changes({"funnel": ("Webinar", None)})
        assert json.loads(previous) == {"funnel": "Webinar"}
        assert json.loads(new) == {"funnel": None}
