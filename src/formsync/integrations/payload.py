"""Submission payload mapping for the Drip subscribers endpoint."""

from typing import Any, Dict, Iterable, Mapping, Tuple

# Top-level subscriber attributes; everything else is a custom field
SUBSCRIBER_FIELDS: Tuple[str, ...] = (
    "email",
    "first_name",
    "last_name",
    "address1",
    "address2",
    "city",
    "state",
    "zip",
    "country",
    "phone",
)


def partition_fields(
    values: Mapping[str, Any],
    handles: Iterable[str],
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split ``values`` into the named handles and everything else.

    Works on a copy; the caller's mapping is left untouched. Every handle is
    present in the first dict, with None or missing values as "".

    Returns:
        (extracted, remainder)
    """
    remainder = dict(values)
    extracted: Dict[str, Any] = {}
    for handle in handles:
        value = remainder.pop(handle, None)
        extracted[handle] = "" if value is None else value
    return extracted, remainder


def build_subscriber_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Build the create-or-update subscribers body from field values.

    The API rejects null attributes, so known fields are never None.
    """
    subscriber, custom_fields = partition_fields(values, SUBSCRIBER_FIELDS)
    subscriber["custom_fields"] = custom_fields
    return {"subscribers": [subscriber]}
