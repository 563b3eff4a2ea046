"""Single reconciliation pass for a host: resolve prerequisites, decide, record."""
import logging
from datetime import datetime, timezone

from pydantic import BaseModel

from metalhost.core.errors import HostResolutionError, ResolutionErrorKind
from metalhost.core.host import BMCCredentials, CleanStep, Host, OperationalStatus, same_clean_steps
from metalhost.core.lifecycle import HostLifecycle, LifecyclePhase
from metalhost.core.resolver import HostResolver
from metalhost.core.state_machine import HostStateMachine, InvalidStateTransition, state_for_phase

logger = logging.getLogger(__name__)


class ReconcileResult(BaseModel):
    """Outcome of one reconciliation pass."""

    phase: LifecyclePhase
    state: str
    error_kind: ResolutionErrorKind | None = None
    credentials: BMCCredentials | None = None
    clean_steps: list[CleanStep] = []


class StateTransitionService:
    """Records provisioning state changes on a host with validation and logging."""

    @staticmethod
    def transition(host: Host, to_state: str, force: bool = False) -> Host:
        """
        Record a new provisioning state on the host.

        Args:
            host: Host to update
            to_state: Target state
            force: Skip transition validation

        Returns:
            Updated host

        Raises:
            InvalidStateTransition: If transition is not valid
        """
        from_state = host.status.provisioning.state
        if from_state == to_state:
            return host

        if not force and not HostStateMachine.can_transition(from_state, to_state):
            raise InvalidStateTransition(from_state, to_state)

        host.status.provisioning.state = to_state
        host.status.last_updated = datetime.now(timezone.utc)

        logger.info(f"Host {host.identity} transitioned: {from_state} -> {to_state}")
        return host


class HostReconciler:
    """Runs one reconciliation pass per call for a single host.

    The caller must serialize passes per host identity; two concurrent
    passes over stale status could both trigger the same out-of-band
    action. Nothing here retries; a failed pass leaves its error on the
    host until a later pass resolves cleanly.
    """

    def __init__(self, resolver: HostResolver) -> None:
        self.resolver = resolver

    def reconcile(self, host: Host) -> ReconcileResult:
        """
        Resolve prerequisites and compute the next phase for a host.

        Args:
            host: Host to reconcile, mutated in place

        Returns:
            ReconcileResult with the phase and recorded state
        """
        if host.is_deleted:
            return self._record(host, LifecyclePhase.DELETING)

        try:
            credentials = self.resolver.resolve_bmc_credentials(host)
            self.resolver.save_secret_owner(host, credentials.secret_name)
            clean_steps = self.resolver.resolve_config_steps(host)
        except HostResolutionError as e:
            return self._fail(host, e)

        HostLifecycle.clear_error(host)

        if not credentials.is_valid:
            logger.warning(
                f"Host {host.identity} BMC secret {credentials.secret_name} "
                "is missing a username or password"
            )
        elif host.credentials_need_validation(credentials):
            logger.info(
                f"Host {host.identity} using new BMC credentials "
                f"from {credentials.secret_name} (version {credentials.version})"
            )
            host.update_good_credentials(credentials)

        if clean_steps and host.status.clean_steps and not same_clean_steps(
            clean_steps, host.status.clean_steps
        ):
            logger.debug(
                f"Host {host.identity} requested clean steps differ from recorded ones; "
                "cleaning already ran"
            )

        phase = HostLifecycle.next_phase(host, clean_steps)
        result = self._record(host, phase)
        result.credentials = credentials
        result.clean_steps = clean_steps
        return result

    def _fail(self, host: Host, error: HostResolutionError) -> ReconcileResult:
        HostLifecycle.set_error_message(host, str(error))
        if error.is_missing_bmc_details:
            host.status.operational_status = OperationalStatus.DISCOVERED

        logger.warning(f"Host {host.identity} prerequisites unresolved ({error.kind.value}): {error}")

        result = self._record(host, LifecyclePhase.BLOCKED)
        result.error_kind = error.kind
        return result

    def _record(self, host: Host, phase: LifecyclePhase) -> ReconcileResult:
        state = state_for_phase(phase, host)
        from_state = host.status.provisioning.state
        # Observed status is authoritative; the recorded state follows it
        force = from_state != state and not HostStateMachine.can_transition(from_state, state)
        if force:
            logger.warning(
                f"Host {host.identity} status implies {from_state} -> {state}, "
                "outside the usual transitions; recording it anyway"
            )
        StateTransitionService.transition(host, state, force=force)
        logger.debug(f"Host {host.identity} phase {phase.value} (state={state})")
        return ReconcileResult(phase=phase, state=state)
