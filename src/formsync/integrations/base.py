"""Email-marketing integration base class.

Shared by every marketing connector:
- settings validation at configuration time
- before/after send hooks that can veto a send or reject a response
- error reporting for administrators
- field mapping from a submission to integration field values
"""

from __future__ import annotations

import logging
import traceback
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from formsync.connectors.base import BaseConnector, RequestPolicy
from formsync.integrations.field_mapping import get_field_mapping_values
from formsync.integrations.models import FormSettings, Submission

logger = logging.getLogger(__name__)


class IntegrationConfigError(ValueError):
    """Integration settings failed validation."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        self.field_errors = field_errors or {}
        super().__init__(message)


# =============================================================================
# Error Reporting
# =============================================================================


@dataclass
class ErrorEntry:
    """One reported integration error."""

    integration: str
    message: str
    fatal: bool


class ErrorReporter(Protocol):
    """Receives integration errors meant for administrators."""

    def error(self, integration: "EmailMarketingIntegration", message: str, fatal: bool) -> None:
        ...


class LoggingErrorReporter:
    """Logs integration errors and keeps them for later display."""

    def __init__(self, logger_name: str = "formsync.integrations"):
        self._logger = logging.getLogger(logger_name)
        self.entries: List[ErrorEntry] = []

    def error(self, integration: "EmailMarketingIntegration", message: str, fatal: bool) -> None:
        self.entries.append(ErrorEntry(integration=integration.name, message=message, fatal=fatal))
        self._logger.error("[%s] %s", integration.display_name(), message)


def describe_exception(exc: BaseException) -> str:
    """Render ``API error: “message” file:line`` for the raising frame."""
    frames = traceback.extract_tb(exc.__traceback__)
    location = f"{frames[-1].filename}:{frames[-1].lineno}" if frames else ""
    return f"API error: “{exc}” {location}".rstrip()


# =============================================================================
# Send Hooks
# =============================================================================


@dataclass
class SendIntegrationPayloadEvent:
    """Passed to send hooks. Set ``is_valid = False`` to stop the send.

    Listeners may also edit ``payload`` in place before it goes out.
    """

    integration: "EmailMarketingIntegration"
    submission: Submission
    payload: Dict[str, Any]
    response: Any = None
    is_valid: bool = True


PayloadListener = Callable[[SendIntegrationPayloadEvent], None]


@dataclass
class _Listeners:
    before_send: List[PayloadListener] = field(default_factory=list)
    after_send: List[PayloadListener] = field(default_factory=list)


# =============================================================================
# Base Class
# =============================================================================


class EmailMarketingIntegration(BaseConnector):
    """Base class for email-marketing integrations."""

    #: Pydantic model the integration's settings must satisfy
    settings_model: Optional[Type[BaseModel]] = None

    def __init__(
        self,
        handle: str = "",
        list_id: Optional[str] = None,
        field_mapping: Optional[Dict[str, str]] = None,
        error_reporter: Optional[ErrorReporter] = None,
        policy: Optional[RequestPolicy] = None,
    ):
        """Initialize the integration.

        Args:
            handle: Host-side identifier for this configured instance
            list_id: Remote list submissions are sent to
            field_mapping: Integration field handle -> submission template
            error_reporter: Destination for errors (logs by default)
            policy: Request policy for remote calls
        """
        super().__init__(policy=policy)
        self.handle = handle or self.name
        self.list_id = list_id
        self.field_mapping: Dict[str, str] = dict(field_mapping or {})
        self.error_reporter: ErrorReporter = error_reporter or LoggingErrorReporter()
        self._listeners = _Listeners()

    @classmethod
    def display_name(cls) -> str:
        return cls._name.title()

    @property
    def description(self) -> str:
        return ""

    @classmethod
    def validate_settings(cls, **settings: Any) -> BaseModel:
        """Validate settings against ``settings_model``.

        Raises:
            IntegrationConfigError: If a setting is missing or invalid
        """
        if cls.settings_model is None:
            raise IntegrationConfigError(f"{cls.__name__} has no settings model")
        try:
            return cls.settings_model(**settings)
        except PydanticValidationError as e:
            field_errors = {
                ".".join(str(part) for part in err["loc"]): err["msg"] for err in e.errors()
            }
            raise IntegrationConfigError(
                f"Invalid {cls.display_name()} settings: {', '.join(sorted(field_errors))}",
                field_errors=field_errors,
            ) from e

    # -- hooks ---------------------------------------------------------------

    def on_before_send_payload(self, listener: PayloadListener) -> None:
        """Register a listener run before the payload is sent."""
        self._listeners.before_send.append(listener)

    def on_after_send_payload(self, listener: PayloadListener) -> None:
        """Register a listener run after the remote API answered."""
        self._listeners.after_send.append(listener)

    def before_send_payload(self, submission: Submission, payload: Dict[str, Any]) -> bool:
        """Run before-send listeners. False means do not send."""
        event = SendIntegrationPayloadEvent(self, submission, payload)
        for listener in self._listeners.before_send:
            listener(event)
        return event.is_valid

    def after_send_payload(
        self, submission: Submission, payload: Dict[str, Any], response: Any
    ) -> bool:
        """Run after-send listeners. False means treat the send as failed."""
        event = SendIntegrationPayloadEvent(self, submission, payload, response=response)
        for listener in self._listeners.after_send:
            listener(event)
        return event.is_valid

    # -- helpers -------------------------------------------------------------

    def get_field_mapping_values(self, submission: Submission) -> Dict[str, Any]:
        return get_field_mapping_values(submission, self.field_mapping)

    def error(self, message: str, fatal: bool = False) -> None:
        self.error_reporter.error(self, message, fatal)

    # -- operations ----------------------------------------------------------

    @abstractmethod
    def fetch_form_settings(self) -> FormSettings:
        """Discover lists and fields. Empty settings on failure."""
        pass

    @abstractmethod
    def send_payload(self, submission: Submission) -> bool:
        """Push one submission. False on any failure or veto."""
        pass
