"""Resolution of BMC credentials and config-step sources for hosts."""
import logging
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, ValidationError

from metalhost import config
from metalhost.config.settings import ResolverSettings
from metalhost.core.errors import HostResolutionError
from metalhost.core.host import BMCCredentials, CleanStep, Host

logger = logging.getLogger(__name__)


class HostResolver(Protocol):
    """Contract for resolving a host's out-of-band prerequisites.

    Every method raises HostResolutionError on failure, with the host
    identity embedded in the message.
    """

    def resolve_bmc_credentials(self, host: Host) -> BMCCredentials: ...

    def resolve_config_steps(self, host: Host) -> list[CleanStep]: ...

    def save_secret_owner(self, host: Host, secret_name: str) -> None: ...


def validate_bmc_details(host: Host) -> None:
    """Check the host carries a BMC address and credentials reference.

    Raises:
        HostResolutionError: EMPTY_BMC_ADDRESS or EMPTY_BMC_SECRET
    """
    bmc = host.spec.bmc
    if bmc is None or not bmc.address:
        raise HostResolutionError.empty_bmc_address(host.identity)
    if not bmc.credentials_name:
        raise HostResolutionError.empty_bmc_secret(host.identity)


class StoredSecret(BaseModel):
    """Secret held by the in-memory resolver."""

    data: dict[str, str] = {}
    version: str = "1"
    owner: str | None = None


class InMemoryResolver:
    """Resolve credentials and config steps from in-memory mappings.

    Secrets and config sources are keyed by (namespace, name). Config
    sources map data keys to text; the steps key holds a YAML list of
    clean steps:

        - interface: raid
          step: delete_configuration
        - interface: deploy
          step: erase_devices_metadata
          args:
            force: true
    """

    def __init__(
        self,
        secrets: dict[tuple[str, str], StoredSecret] | None = None,
        config_sources: dict[tuple[str, str], dict[str, str]] | None = None,
        settings: ResolverSettings | None = None,
    ):
        self.secrets = secrets if secrets is not None else {}
        self.config_sources = config_sources if config_sources is not None else {}
        self.settings = settings or config.settings.resolver

    def add_secret(
        self,
        namespace: str,
        name: str,
        data: dict[str, str],
        version: str = "1",
    ) -> StoredSecret:
        secret = StoredSecret(data=data, version=version)
        self.secrets[(namespace, name)] = secret
        return secret

    def add_config_source(self, namespace: str, name: str, data: dict[str, str]) -> None:
        self.config_sources[(namespace, name)] = data

    def resolve_bmc_credentials(self, host: Host) -> BMCCredentials:
        """Look up the BMC credentials secret referenced by the host."""
        validate_bmc_details(host)

        secret = self.secrets.get(host.credentials_key)
        if secret is None:
            raise HostResolutionError.resolve_bmc_secret_ref(host.identity)

        return BMCCredentials(
            username=secret.data.get(self.settings.username_key, ""),
            password=secret.data.get(self.settings.password_key, ""),
            secret_name=host.credentials_key[1],
            version=secret.version,
        )

    def save_secret_owner(self, host: Host, secret_name: str) -> None:
        """Mark the host as the owner of its credentials secret."""
        secret = self.secrets.get((host.namespace, secret_name))
        if secret is None:
            raise HostResolutionError.save_bmc_secret_owner(
                f"{host.identity}: secret {secret_name} not found"
            )
        if secret.owner is not None and secret.owner != host.identity:
            raise HostResolutionError.save_bmc_secret_owner(
                f"{host.identity}: secret {secret_name} already owned by {secret.owner}"
            )
        if secret.owner is None:
            secret.owner = host.identity
            logger.debug(f"Host {host.identity} now owns secret {secret_name}")

    def resolve_config_steps(self, host: Host) -> list[CleanStep]:
        """Load the clean steps from the host's config-step source.

        Returns an empty list when the host names no source.
        """
        name = host.spec.config_steps_name
        if not name:
            return []

        source = self.config_sources.get((host.namespace, name))
        if source is None:
            raise HostResolutionError.resolve_config_steps_ref(host.identity)

        content = source.get(self.settings.config_steps_key)
        if content is None:
            raise HostResolutionError.resolve_config_steps_ref(
                f"{host.identity}: key {self.settings.config_steps_key} missing from {name}"
            )
        return self._parse_steps(host, name, content)

    def _parse_steps(self, host: Host, name: str, content: str) -> list[CleanStep]:
        try:
            raw: Any = yaml.safe_load(content) or []
            if not isinstance(raw, list):
                raise ValueError("steps must be a list")
            return [CleanStep.model_validate(item) for item in raw]
        except (yaml.YAMLError, ValidationError, ValueError) as e:
            raise HostResolutionError.resolve_config_steps_ref(
                f"{host.identity}: invalid steps in {name}: {e}"
            ) from e
