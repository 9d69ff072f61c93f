"""Integration Registry and Factory.

Provides a config-driven registry for integrations.

Usage:
    # Build from environment
    integration = IntegrationFactory.from_config("drip")

    # Or look up the class
    cls = IntegrationRegistry.get("drip")

Environment:
    FORMSYNC_DRIP_CLIENT_ID / FORMSYNC_DRIP_CLIENT_SECRET
    FORMSYNC_DRIP_ACCESS_TOKEN / FORMSYNC_DRIP_REFRESH_TOKEN
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from formsync.config import Config, config
from formsync.connectors.base import RequestPolicy

if TYPE_CHECKING:
    from formsync.integrations.base import EmailMarketingIntegration


class IntegrationRegistryError(ValueError):
    """Error raised by the integration registry."""

    pass


class IntegrationRegistry:
    """Registry of available integrations.

    Integrations register themselves when the package is imported.
    """

    _integrations: Dict[str, Type[EmailMarketingIntegration]] = {}

    @classmethod
    def register(cls, name: str, integration_class: Type[EmailMarketingIntegration]) -> None:
        """Register an integration class.

        Args:
            name: Integration name (e.g., "drip")
            integration_class: EmailMarketingIntegration subclass
        """
        cls._integrations[name.lower()] = integration_class

    @classmethod
    def unregister(cls, name: str) -> None:
        """Unregister an integration (mainly for testing)."""
        cls._integrations.pop(name.lower(), None)

    @classmethod
    def get(cls, name: str) -> Optional[Type[EmailMarketingIntegration]]:
        """Get an integration class by name, or None."""
        return cls._integrations.get(name.lower())

    @classmethod
    def list_integrations(cls) -> list[str]:
        """List all registered integration names."""
        return list(cls._integrations.keys())

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if an integration is registered."""
        return name.lower() in cls._integrations


def policy_from_config(cfg: Config) -> RequestPolicy:
    """Request policy built from the FORMSYNC_HTTP_* settings."""
    return RequestPolicy(
        connect_timeout=cfg.http.connect_timeout,
        read_timeout=cfg.http.read_timeout,
        max_retries=cfg.http.max_retries,
        requests_per_second=cfg.http.requests_per_second,
    )


class IntegrationFactory:
    """Builds configured integration instances from environment config."""

    @classmethod
    def from_config(
        cls, name: str, cfg: Optional[Config] = None, **kwargs: Any
    ) -> EmailMarketingIntegration:
        """Create an integration instance from configuration.

        Args:
            name: Registered integration name
            cfg: Configuration (global config if omitted)
            **kwargs: Passed to the integration constructor

        Raises:
            IntegrationRegistryError: If the integration is unknown
            IntegrationConfigError: If its settings are invalid
        """
        cfg = cfg or config
        integration_class = IntegrationRegistry.get(name)
        if integration_class is None:
            available = ", ".join(IntegrationRegistry.list_integrations()) or "none"
            raise IntegrationRegistryError(
                f"Unknown integration: {name!r} (available: {available})"
            )

        builder = _BUILDERS.get(name.lower())
        if builder is None:
            raise IntegrationRegistryError(f"Integration {name!r} cannot be built from config")
        return builder(integration_class, cfg, **kwargs)


def _build_drip(integration_class: Type[Any], cfg: Config, **kwargs: Any) -> Any:
    from formsync.integrations.drip import ACCESS_TOKEN_URL
    from formsync.tokens import OAuthToken, OAuthTokenProvider

    token_provider = kwargs.pop("token_provider", None) or OAuthTokenProvider(
        token_url=ACCESS_TOKEN_URL,
        client_id=cfg.drip.client_id,
        client_secret=cfg.drip.client_secret,
        token=OAuthToken(
            access_token=cfg.drip.access_token,
            refresh_token=cfg.drip.refresh_token,
        ),
    )
    kwargs.setdefault("policy", policy_from_config(cfg))
    return integration_class(
        client_id=cfg.drip.client_id,
        client_secret=cfg.drip.client_secret,
        token_provider=token_provider,
        **kwargs,
    )


_BUILDERS = {
    "drip": _build_drip,
}
