"""Template duplication.

A template estimate is a reusable scope, not a reusable price: new
estimates start from a copy of the template's scope and are always priced
against the live configs.
"""

from models.estimate import EstimateRecord, EstimateStatus
from models.scope import ScopeModel
from config.errors import InvalidTemplateError


def instantiate_from_template(template: EstimateRecord) -> ScopeModel:
    """Copy a template's scope for use as a new estimate's input.

    Raises:
        InvalidTemplateError: If the record is not a template.
    """
    if not template.is_template or template.status != EstimateStatus.TEMPLATE.value:
        raise InvalidTemplateError(
            f"Estimate {template.id or template.title!r} is not a template",
            estimate_id=template.id,
        )
    return template.scope.model_copy(deep=True)
