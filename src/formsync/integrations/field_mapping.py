"""Field mapping: form submission -> integration field values.

Admins map each integration field to a template over form fields, e.g.
``{"email": "{email_address}", "first_name": "{name.first}"}``.
A template that is exactly one ``{token}`` yields the raw submitted value;
anything else is rendered as text.
"""

import re
from typing import Any, Dict, Mapping, Optional

from formsync.integrations.models import Submission

_TOKEN = re.compile(r"\{([\w.\-]+)\}")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(item) for item in value)
    return str(value)


def render_mapped_value(template: str, submission: Submission) -> Any:
    """Resolve one mapping template against a submission."""
    whole = _TOKEN.fullmatch(template.strip())
    if whole:
        return submission.get_field_value(whole.group(1))
    return _TOKEN.sub(lambda m: _as_text(submission.get_field_value(m.group(1))), template)


def get_field_mapping_values(
    submission: Submission,
    field_mapping: Optional[Mapping[str, Optional[str]]],
) -> Dict[str, Any]:
    """Build the Field Value Mapping for one submission.

    Args:
        submission: The submitted form
        field_mapping: Integration field handle -> template; empty templates
            mean "not mapped" and are skipped

    Returns:
        New dict of integration field handle -> value
    """
    values: Dict[str, Any] = {}
    for handle, template in (field_mapping or {}).items():
        if not template:
            continue
        values[handle] = render_mapped_value(template, submission)
    return values
