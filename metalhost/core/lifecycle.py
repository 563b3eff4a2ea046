"""Host lifecycle decision engine."""
from collections.abc import Sequence
from enum import Enum
from typing import ClassVar

from metalhost.core.host import CleanStep, Host, OperationalStatus


class LifecyclePhase(str, Enum):
    """Phase a host must enter on the current reconciliation pass."""

    DELETING = "deleting"
    BLOCKED = "blocked"
    INSPECTING = "inspecting"
    CLEANING = "cleaning"
    EXTERNALLY_PROVISIONED = "externally_provisioned"
    DEPROVISIONING = "deprovisioning"
    PROVISIONING = "provisioning"
    IDLE = "idle"


class HostLifecycle:
    """Decide which lifecycle action a host needs from its spec and status.

    Predicates are pure and read only the host passed in. next_phase()
    evaluates them in priority order and returns a single phase:

        deleting: Deletion marker set
        blocked: Prerequisite resolution left an error on the host
        inspecting: Hardware inventory never collected
        cleaning: Manual clean steps requested and none recorded yet
        externally_provisioned: Host is provisioned outside this system
        deprovisioning: Deployed image removed or replaced in the spec
        provisioning: Desired image not yet deployed on an online host
        idle: Nothing to do
    """

    PHASE_ORDER: ClassVar[list[LifecyclePhase]] = [
        LifecyclePhase.DELETING,
        LifecyclePhase.BLOCKED,
        LifecyclePhase.INSPECTING,
        LifecyclePhase.CLEANING,
        LifecyclePhase.EXTERNALLY_PROVISIONED,
        LifecyclePhase.DEPROVISIONING,
        LifecyclePhase.PROVISIONING,
        LifecyclePhase.IDLE,
    ]

    @classmethod
    def available(cls, host: Host) -> bool:
        """Check if the host can be handed out for new work.

        Args:
            host: Host to check

        Returns:
            True if not deleted, not in error and not bound to a consumer
        """
        if host.is_deleted:
            return False
        if host.has_error:
            return False
        return host.spec.consumer_ref is None

    @classmethod
    def needs_hardware_inspection(cls, host: Host) -> bool:
        """Check if the host's hardware inventory must be collected.

        A bound consumer does not suppress first-time inspection, but a
        deployed image does.
        """
        if host.status.hardware_details is not None:
            return False
        return host.deployed_image is None

    @classmethod
    def needs_manual_cleaning(
        cls, host: Host, requested_clean_steps: Sequence[CleanStep]
    ) -> bool:
        """Check if requested clean steps must be run.

        One-shot gate: once any steps are recorded in status, no further
        cleaning is requested, whatever the requested steps are.
        """
        if not requested_clean_steps:
            return False
        return len(host.status.clean_steps) == 0

    @classmethod
    def needs_provisioning(cls, host: Host) -> bool:
        """Check if the desired image must be written to the host."""
        if not host.spec.online:
            return False
        if host.desired_image is None:
            return False
        return host.deployed_image is None

    @classmethod
    def needs_deprovisioning(cls, host: Host) -> bool:
        """Check if the deployed image must be removed.

        True when an image is deployed and the spec either no longer
        names an image or names a different URL. Power changes alone
        never trigger deprovisioning.
        """
        deployed = host.deployed_image
        if deployed is None:
            return False
        desired = host.desired_image
        if desired is None:
            return True
        return desired.url != deployed.url

    @classmethod
    def was_externally_provisioned(cls, host: Host) -> bool:
        """Check if provisioning of the host is managed elsewhere.

        Requires the flag, no image of our own and a bound consumer.
        """
        return (
            host.spec.externally_provisioned
            and host.desired_image is None
            and host.spec.consumer_ref is not None
        )

    @classmethod
    def set_error_message(cls, host: Host, message: str) -> Host:
        """Record an error on the host, overwriting any previous one."""
        host.status.error_message = message
        if message:
            host.status.operational_status = OperationalStatus.ERROR
        return host

    @classmethod
    def clear_error(cls, host: Host) -> Host:
        """Clear the error after a successful resolution pass."""
        host.status.error_message = ""
        host.status.operational_status = OperationalStatus.OK
        return host

    @classmethod
    def next_phase(
        cls, host: Host, requested_clean_steps: Sequence[CleanStep] = ()
    ) -> LifecyclePhase:
        """Compute the single phase the host must enter next.

        Args:
            host: Host to evaluate
            requested_clean_steps: Clean steps resolved for this pass

        Returns:
            The first phase in PHASE_ORDER whose condition holds
        """
        if host.is_deleted:
            return LifecyclePhase.DELETING
        if host.has_error:
            return LifecyclePhase.BLOCKED
        if cls.needs_hardware_inspection(host):
            return LifecyclePhase.INSPECTING
        if cls.needs_manual_cleaning(host, requested_clean_steps):
            return LifecyclePhase.CLEANING
        if cls.was_externally_provisioned(host):
            return LifecyclePhase.EXTERNALLY_PROVISIONED
        if cls.needs_deprovisioning(host):
            return LifecyclePhase.DEPROVISIONING
        if cls.needs_provisioning(host):
            return LifecyclePhase.PROVISIONING
        return LifecyclePhase.IDLE
