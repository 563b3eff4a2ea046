"""Host lifecycle core: state model, decision engine and prerequisite resolution."""
from metalhost.core.errors import HostResolutionError, ResolutionErrorKind
from metalhost.core.host import BMCCredentials, CleanStep, Host, HostSpec, HostStatus, Image
from metalhost.core.lifecycle import HostLifecycle, LifecyclePhase
from metalhost.core.reconcile_service import HostReconciler, ReconcileResult
from metalhost.core.resolver import HostResolver, InMemoryResolver
from metalhost.core.state_machine import HostStateMachine, InvalidStateTransition

__all__ = [
    "HostResolutionError",
    "ResolutionErrorKind",
    "BMCCredentials",
    "CleanStep",
    "Host",
    "HostSpec",
    "HostStatus",
    "Image",
    "HostLifecycle",
    "LifecyclePhase",
    "HostReconciler",
    "ReconcileResult",
    "HostResolver",
    "InMemoryResolver",
    "HostStateMachine",
    "InvalidStateTransition",
]
