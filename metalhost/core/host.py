"""Host state model: desired spec and observed status of one machine."""
from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Image(BaseModel):
    """Deployable OS image identified by URL and checksum."""

    url: str = ""
    checksum: str = ""


class ObjectReference(BaseModel):
    """Weak reference to an external resource, e.g. the bound consumer."""

    kind: str = ""
    name: str = ""
    namespace: str = ""


class BMCDetails(BaseModel):
    """Out-of-band management controller connection descriptor."""

    address: str = ""
    credentials_name: str = ""


class BMCCredentials(BaseModel):
    """Resolved BMC credentials."""

    username: str = ""
    password: str = ""
    secret_name: str = ""
    # Version of the secret the credentials were read from
    version: str = ""

    @property
    def is_valid(self) -> bool:
        """Check if both username and password are present."""
        return bool(self.username) and bool(self.password)


class CleanStep(BaseModel):
    """A single out-of-band cleaning operation."""

    interface: str
    step: str
    args: dict[str, Any] = {}

    @property
    def identity(self) -> tuple[str, str]:
        return (self.interface, self.step)


def same_clean_steps(a: Sequence[CleanStep], b: Sequence[CleanStep]) -> bool:
    """Compare two clean-step sequences by interface and step, in order.

    Arguments are not compared.
    """
    if len(a) != len(b):
        return False
    return all(x.identity == y.identity for x, y in zip(a, b))


class CPU(BaseModel):
    arch: str = ""
    model: str = ""
    clock_megahertz: float = 0.0
    count: int = 0


class NIC(BaseModel):
    name: str = ""
    mac: str = ""
    ip: str = ""
    speed_gbps: int = 0


class Storage(BaseModel):
    name: str = ""
    size_bytes: int = 0
    rotational: bool = False


class SystemVendor(BaseModel):
    manufacturer: str = ""
    product_name: str = ""
    serial_number: str = ""


class HardwareDetails(BaseModel):
    """Hardware inventory collected by inspection.

    Presence of this object, even empty, means inspection completed.
    """

    hostname: str = ""
    cpu: CPU = Field(default_factory=CPU)
    ram_mebibytes: int = 0
    nics: list[NIC] = []
    storage: list[Storage] = []
    system_vendor: SystemVendor = Field(default_factory=SystemVendor)


class OperationalStatus(str, Enum):
    """Derived health indicator of a host."""

    OK = "OK"
    DISCOVERED = "discovered"
    ERROR = "error"


class CredentialsStatus(BaseModel):
    """Last BMC credentials known to work."""

    reference: ObjectReference | None = None
    version: str = ""


class ProvisionStatus(BaseModel):
    """Recorded provisioning state and the image last actually deployed."""

    state: str = "registering"
    image: Image = Field(default_factory=Image)


class HostSpec(BaseModel):
    """Desired state, authored outside the engine."""

    bmc: BMCDetails | None = None
    image: Image | None = None
    online: bool = False
    consumer_ref: ObjectReference | None = None
    externally_provisioned: bool = False
    # Name of the config-step source; empty means no steps are configured
    config_steps_name: str = ""


class HostStatus(BaseModel):
    """Observed state, written by the engine and the hardware driver."""

    provisioning: ProvisionStatus = Field(default_factory=ProvisionStatus)
    hardware_details: HardwareDetails | None = None
    clean_steps: list[CleanStep] = []
    error_message: str = ""
    operational_status: OperationalStatus = OperationalStatus.OK
    good_credentials: CredentialsStatus = Field(default_factory=CredentialsStatus)
    last_updated: datetime | None = None


class Host(BaseModel):
    """One physical machine under management.

    Example:
        ```python
        host = Host(
            name="worker-0",
            namespace="metal",
            spec=HostSpec(
                bmc=BMCDetails(address="ipmi://10.0.0.5", credentials_name="worker-0-bmc"),
                image=Image(url="http://images/ubuntu.qcow2", checksum="abc123"),
                online=True,
            ),
        )
        ```
    """

    name: str
    namespace: str = "default"
    deletion_timestamp: datetime | None = None
    spec: HostSpec = Field(default_factory=HostSpec)
    status: HostStatus = Field(default_factory=HostStatus)

    @property
    def identity(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def is_deleted(self) -> bool:
        return self.deletion_timestamp is not None

    @property
    def has_error(self) -> bool:
        return self.status.error_message != ""

    @property
    def desired_image(self) -> Image | None:
        """The image the host should run, or None if no usable one is set."""
        if self.spec.image is None or not self.spec.image.url:
            return None
        return self.spec.image

    @property
    def deployed_image(self) -> Image | None:
        """The image last deployed, or None if nothing is deployed."""
        if not self.status.provisioning.image.url:
            return None
        return self.status.provisioning.image

    @property
    def credentials_key(self) -> tuple[str, str]:
        """Namespace and name of the BMC credentials secret."""
        name = self.spec.bmc.credentials_name if self.spec.bmc else ""
        return (self.namespace, name)

    def credentials_need_validation(self, credentials: BMCCredentials) -> bool:
        """Check if credentials differ from the last known-good ones."""
        good = self.status.good_credentials
        if good.reference is None:
            return True
        return (
            good.reference.name != credentials.secret_name
            or good.reference.namespace != self.namespace
            or good.version != credentials.version
        )

    def update_good_credentials(self, credentials: BMCCredentials) -> None:
        """Record credentials as known-good."""
        self.status.good_credentials = CredentialsStatus(
            reference=ObjectReference(
                kind="Secret",
                name=credentials.secret_name,
                namespace=self.namespace,
            ),
            version=credentials.version,
        )
