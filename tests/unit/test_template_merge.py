"""Unit tests for merging templates into drafts."""

import uuid

from growthlab.engines.templates import apply_template
from growthlab.kernel.models.experiment import Channel, ExperimentType, TargetMetric
from growthlab.kernel.models.template import ExperimentTemplate
from growthlab.schemas.experiment import ExperimentDraft


def _template(**fields) -> ExperimentTemplate:
    return ExperimentTemplate(id=uuid.uuid4(), name="Preset", **fields)


class TestApplyTemplate:

    def test_template_fields_overwrite_draft(self):
        draft = ExperimentDraft(
            name="Headline",
            owner_id=uuid.uuid4(),
            experiment_type=ExperimentType.COPY,
            channel=Channel.EMAIL,
            hypothesis="mine",
        )
        template = _template(
            experiment_type=ExperimentType.CREATIVE,
            hypothesis="from preset",
            target_metric=TargetMetric.CTR,
            target_value=3.0,
        )

        merged = apply_template(draft, template)

        assert merged.experiment_type == ExperimentType.CREATIVE
        assert merged.hypothesis == "from preset"
        assert merged.target_metric == TargetMetric.CTR
        assert merged.target_value == 3.0
        assert merged.template_id == template.id

    def test_undefined_template_fields_keep_draft(self):
        owner = uuid.uuid4()
        draft = ExperimentDraft(
            name="Audience test",
            owner_id=owner,
            channel=Channel.SEARCH,
            funnel="Webinar",
        )
        merged = apply_template(draft, _template(experiment_type=ExperimentType.AUDIENCE))

        assert merged.name == "Audience test"
        assert merged.owner_id == owner
        assert merged.channel == Channel.SEARCH
        assert merged.funnel == "Webinar"
        assert merged.experiment_type == ExperimentType.AUDIENCE

    def test_inputs_are_not_mutated(self):
        draft = ExperimentDraft(name="X", owner_id=uuid.uuid4())
        template = _template(channel=Channel.ORGANIC)

        apply_template(draft, template)

        assert draft.channel is None
        assert draft.template_id is None
        assert template.channel == Channel.ORGANIC

    def test_template_supplies_required_fields(self):
        draft = ExperimentDraft(name="X", owner_id=uuid.uuid4())
        merged = apply_template(
            draft,
            _template(experiment_type=ExperimentType.LANDING_PAGE, channel=Channel.PAID_SOCIAL),
        )
        merged.require_complete()
