"""Errors raised while resolving host prerequisites."""
from enum import Enum


class ResolutionErrorKind(str, Enum):
    """Closed set of reasons a host's out-of-band prerequisites failed."""

    EMPTY_BMC_ADDRESS = "EmptyBMCAddress"
    EMPTY_BMC_SECRET = "EmptyBMCSecret"
    RESOLVE_BMC_SECRET_REF = "ResolveBMCSecretRef"
    SAVE_BMC_SECRET_OWNER = "SaveBMCSecretOwner"
    RESOLVE_CONFIG_STEPS_REF = "ResolveConfigStepsRef"


ERROR_PREFIXES: dict[ResolutionErrorKind, str] = {
    ResolutionErrorKind.EMPTY_BMC_ADDRESS: "Empty BMC address",
    ResolutionErrorKind.EMPTY_BMC_SECRET: "No BMC CredentialsName defined",
    ResolutionErrorKind.RESOLVE_BMC_SECRET_REF: "BMC CredentialsName secret doesn't exist",
    ResolutionErrorKind.SAVE_BMC_SECRET_OWNER: "Failed to set owner of BMC secret",
    ResolutionErrorKind.RESOLVE_CONFIG_STEPS_REF: "Config steps ConfigMap doesn't exist",
}


class HostResolutionError(Exception):
    """Raised when BMC credentials or config steps for a host can't be resolved.

    The kind is fixed and the message is free-form diagnostic text, usually
    the host identity plus whatever detail the resolver has.

    Example:
        >>> err = HostResolutionError.empty_bmc_address("myns/myhost")
        >>> str(err)
        'Empty BMC address myns/myhost'
    """

    def __init__(self, kind: ResolutionErrorKind, message: str = ""):
        self.kind = ResolutionErrorKind(kind)
        self.message = message
        super().__init__(f"{ERROR_PREFIXES[self.kind]} {message}")

    @property
    def is_missing_bmc_details(self) -> bool:
        """Check if the host simply has no usable BMC descriptor yet."""
        return self.kind in (
            ResolutionErrorKind.EMPTY_BMC_ADDRESS,
            ResolutionErrorKind.EMPTY_BMC_SECRET,
        )

    @classmethod
    def empty_bmc_address(cls, message: str) -> "HostResolutionError":
        return cls(ResolutionErrorKind.EMPTY_BMC_ADDRESS, message)

    @classmethod
    def empty_bmc_secret(cls, message: str) -> "HostResolutionError":
        return cls(ResolutionErrorKind.EMPTY_BMC_SECRET, message)

    @classmethod
    def resolve_bmc_secret_ref(cls, message: str) -> "HostResolutionError":
        return cls(ResolutionErrorKind.RESOLVE_BMC_SECRET_REF, message)

    @classmethod
    def save_bmc_secret_owner(cls, message: str) -> "HostResolutionError":
        return cls(ResolutionErrorKind.SAVE_BMC_SECRET_OWNER, message)

    @classmethod
    def resolve_config_steps_ref(cls, message: str) -> "HostResolutionError":
        return cls(ResolutionErrorKind.RESOLVE_CONFIG_STEPS_REF, message)
