"""Step adapters: one class per high-level intent.

Each step turns client calls into a pass/fail/error ``StepResult``.
"""

from mktocli.core.steps.activity_steps import CheckLeadActivityByIdStep, CheckLeadActivityStep, CheckLeadsActivityStep
from mktocli.core.steps.base_step import BaseStep
from mktocli.core.steps.custom_object_steps import (
    CreateOrUpdateCustomObjectStep,
    CustomObjectFieldEqualsStep,
    DeleteCustomObjectStep,
)
from mktocli.core.steps.email_steps import SendSampleEmailStep
from mktocli.core.steps.lead_steps import (
    CreateLeadStep,
    CreateOrUpdateLeadStep,
    DeleteLeadStep,
    LeadFieldEqualsStep,
    UpdateLeadStep,
)
from mktocli.core.steps.static_list_steps import (
    AddLeadsToStaticListStep,
    RemoveLeadsFromStaticListStep,
    StaticListMemberCountStep,
)

__all__ = [
    'AddLeadsToStaticListStep',
    'BaseStep',
    'CheckLeadActivityByIdStep',
    'CheckLeadActivityStep',
    'CheckLeadsActivityStep',
    'CreateLeadStep',
    'CreateOrUpdateCustomObjectStep',
    'CreateOrUpdateLeadStep',
    'CustomObjectFieldEqualsStep',
    'DeleteCustomObjectStep',
    'DeleteLeadStep',
    'LeadFieldEqualsStep',
    'RemoveLeadsFromStaticListStep',
    'SendSampleEmailStep',
    'StaticListMemberCountStep',
    'UpdateLeadStep',
]
