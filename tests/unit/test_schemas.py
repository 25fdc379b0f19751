"""Unit tests for request schemas and domain error conversion."""

import uuid

import pytest

from growthlab.kernel.errors import ValidationError
from growthlab.kernel.models.experiment import Experiment
from growthlab.schemas.experiment import ExperimentDraft, ExperimentUpdate


class TestExperimentDraft:

    def test_blank_name_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ExperimentDraft.build({"name": "   ", "owner_id": str(uuid.uuid4())})
        assert exc_info.value.field == "name"

    def test_missing_owner_is_reported_by_field(self):
        with pytest.raises(ValidationError) as exc_info:
            ExperimentDraft.build({"name": "Headline"})
        assert exc_info.value.field == "owner_id"
        assert exc_info.value.message == "owner_id is required"

    def test_name_is_trimmed_and_blanks_become_none(self):
        draft = ExperimentDraft.build({
            "name": "  Headline A/B ",
            "owner_id": str(uuid.uuid4()),
            "ad_link": "  ",
            "funnel": "",
        })
        assert draft.name == "Headline A/B"
        assert draft.ad_link is None
        assert draft.funnel is None

    def test_unknown_channel_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ExperimentDraft.build({"name": "x", "owner_id": str(uuid.uuid4()), "channel": "tv"})
        assert exc_info.value.field == "channel"

    def test_require_complete(self):
        draft = ExperimentDraft.build({"name": "x", "owner_id": str(uuid.uuid4()), "channel": "email"})
        with pytest.raises(ValidationError) as exc_info:
            draft.require_complete()
        assert exc_info.value.field == "experiment_type"


class TestExperimentUpdate:

    def test_status_is_not_editable(self):
        with pytest.raises(ValidationError) as exc_info:
            ExperimentUpdate.build({"status": "concluded"})
        assert exc_info.value.field == "status"

    def test_changes_exclude_unset_and_version(self):
        update = ExperimentUpdate.build({"notes": "n", "expected_version": 3})
        assert update.changes() == {"notes": "n"}
        assert update.expected_version == 3


class TestTargetProgress:

    def test_percentage_is_capped(self):
        assert Experiment(target_value=2.0, observed_value=1.0).target_progress == 50
        assert Experiment(target_value=2.0, observed_value=5.0).target_progress == 100

    def test_missing_values(self):
        assert Experiment(target_value=None, observed_value=1.0).target_progress is None
        assert Experiment(target_value=0.0, observed_value=1.0).target_progress is None
