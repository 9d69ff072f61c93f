"""Email-marketing integrations.

Each integration subclasses EmailMarketingIntegration and registers itself
with IntegrationRegistry here.
"""

from formsync.integrations.base import (
    EmailMarketingIntegration,
    ErrorEntry,
    ErrorReporter,
    IntegrationConfigError,
    LoggingErrorReporter,
    SendIntegrationPayloadEvent,
)
from formsync.integrations.drip import DripIntegration, DripSettings
from formsync.integrations.field_mapping import get_field_mapping_values
from formsync.integrations.models import (
    EmailMarketingList,
    FormSettings,
    IntegrationField,
    Submission,
)
from formsync.integrations.payload import (
    SUBSCRIBER_FIELDS,
    build_subscriber_payload,
    partition_fields,
)
from formsync.integrations.registry import (
    IntegrationFactory,
    IntegrationRegistry,
    IntegrationRegistryError,
)

IntegrationRegistry.register("drip", DripIntegration)

__all__ = [
    "EmailMarketingIntegration",
    "ErrorEntry",
    "ErrorReporter",
    "IntegrationConfigError",
    "LoggingErrorReporter",
    "SendIntegrationPayloadEvent",
    "DripIntegration",
    "DripSettings",
    "get_field_mapping_values",
    "EmailMarketingList",
    "FormSettings",
    "IntegrationField",
    "Submission",
    "SUBSCRIBER_FIELDS",
    "build_subscriber_payload",
    "partition_fields",
    "IntegrationFactory",
    "IntegrationRegistry",
    "IntegrationRegistryError",
]
