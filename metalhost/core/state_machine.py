"""Recorded provisioning state machine for hosts."""
from typing import ClassVar

from metalhost.core.host import Host
from metalhost.core.lifecycle import LifecyclePhase


class InvalidStateTransition(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid state transition from '{from_state}' to '{to_state}'"
        )


class HostStateMachine:
    """State machine for the provisioning state recorded on a host.

    States:
        registering: Host is new, nothing decided yet
        registration_error: BMC credentials or config steps could not be resolved
        inspecting: Hardware inventory is being collected
        cleaning: Manual clean steps are running
        ready: Inspected and idle, no image deployed
        provisioning: Desired image is being written
        provisioned: Desired image is deployed
        externally_provisioned: Provisioning is managed outside this system
        deprovisioning: Deployed image is being removed
        deleting: Host is being removed from management
    """

    STATES: ClassVar[list[str]] = [
        "registering",
        "registration_error",
        "inspecting",
        "cleaning",
        "ready",
        "provisioning",
        "provisioned",
        "externally_provisioned",
        "deprovisioning",
        "deleting",
    ]

    TRANSITIONS: ClassVar[dict[str, list[str]]] = {
        "inspecting": ["cleaning", "ready", "provisioning", "externally_provisioned"],
        "cleaning": [
            "inspecting",
            "ready",
            "provisioning",
            "provisioned",
            "externally_provisioned",
            "deprovisioning",
        ],
        "ready": ["inspecting", "cleaning", "provisioning", "externally_provisioned"],
        "provisioning": [
            "inspecting",
            "cleaning",
            "provisioned",
            "ready",
            "deprovisioning",
            "externally_provisioned",
        ],
        "provisioned": [
            "inspecting",
            "cleaning",
            "deprovisioning",
            "ready",
            "externally_provisioned",
        ],
        "externally_provisioned": [
            "inspecting",
            "cleaning",
            "ready",
            "provisioning",
            "provisioned",
            "deprovisioning",
        ],
        "deprovisioning": [
            "ready",
            "inspecting",
            "cleaning",
            "provisioning",
            "externally_provisioned",
        ],
        "deleting": [],
    }

    # States a host may leave for any non-terminal state
    RECOVERY_STATES: ClassVar[tuple[str, ...]] = ("registering", "registration_error")

    @classmethod
    def can_transition(cls, from_state: str, to_state: str) -> bool:
        """Check if a state transition is valid.

        Args:
            from_state: Current state
            to_state: Target state

        Returns:
            True if transition is valid, False otherwise
        """
        if from_state not in cls.STATES or to_state not in cls.STATES:
            return False
        if from_state == to_state or from_state == "deleting":
            return False

        # Deletion and resolution failures can interrupt any state
        if to_state in ("deleting", "registration_error"):
            return True

        if from_state in cls.RECOVERY_STATES:
            return True

        return to_state in cls.TRANSITIONS.get(from_state, [])

    @classmethod
    def transition(cls, from_state: str, to_state: str) -> str:
        """Perform a state transition.

        Raises:
            InvalidStateTransition: If the transition is not valid
        """
        if not cls.can_transition(from_state, to_state):
            raise InvalidStateTransition(from_state, to_state)
        return to_state

    @classmethod
    def get_valid_transitions(cls, from_state: str) -> list[str]:
        """Get list of valid transitions from a state."""
        return [s for s in cls.STATES if cls.can_transition(from_state, s)]


PHASE_STATES: dict[LifecyclePhase, str] = {
    LifecyclePhase.DELETING: "deleting",
    LifecyclePhase.BLOCKED: "registration_error",
    LifecyclePhase.INSPECTING: "inspecting",
    LifecyclePhase.CLEANING: "cleaning",
    LifecyclePhase.EXTERNALLY_PROVISIONED: "externally_provisioned",
    LifecyclePhase.DEPROVISIONING: "deprovisioning",
    LifecyclePhase.PROVISIONING: "provisioning",
}


def state_for_phase(phase: LifecyclePhase, host: Host) -> str:
    """Map a lifecycle phase to the provisioning state to record."""
    if phase == LifecyclePhase.IDLE:
        return "provisioned" if host.deployed_image is not None else "ready"
    return PHASE_STATES[phase]
