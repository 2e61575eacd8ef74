"""
cube5d/errors.py - Closed Pipeline Error Hierarchy

Every failure the core can produce is one of four tagged kinds, all rooted
at receipts.StopRule. Stoprule helpers emit an anomaly receipt, attach it to
the error and raise. Never catch silently.
"""

from typing import Any, Dict, Optional

from receipts import StopRule, emit_receipt

from .constants import ErrorKind

__all__ = [
    "PipelineError",
    "EmptyTrajectory",
    "InvalidState",
    "SpectralAnalysisError",
    "RouteSelectionError",
    "stoprule_empty_trajectory",
    "stoprule_invalid_state",
    "stoprule_empty_sequence",
    "stoprule_route_failure",
]


# =============================================================================
# ERROR CLASSES
# =============================================================================

class PipelineError(StopRule):
    """Base of the closed error hierarchy. Subclasses set `kind`."""

    kind: ErrorKind

    def __init__(self, message: str, receipt: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.receipt = receipt


class EmptyTrajectory(PipelineError):
    """Integration configuration invalid or produced zero samples."""
    kind = ErrorKind.EMPTY_TRAJECTORY


class InvalidState(PipelineError):
    """Non-finite value encountered in input or during field evaluation."""
    kind = ErrorKind.INVALID_STATE


class SpectralAnalysisError(PipelineError):
    """Analyzer invoked on an empty sequence."""
    kind = ErrorKind.SPECTRAL_ANALYSIS


class RouteSelectionError(PipelineError):
    """Route selector collaborator failed. Original error is __cause__."""
    kind = ErrorKind.ROUTE_SELECTION


# =============================================================================
# STOPRULES
# =============================================================================

def _anomaly(metric: str, kind: ErrorKind, detail: Dict[str, Any]) -> Dict[str, Any]:
    return emit_receipt("anomaly", {
        "metric": metric,
        "error_kind": kind.value,
        "action": "halt",
        **detail,
    })


def stoprule_empty_trajectory(h: float, t_final: float) -> None:
    """
    Stoprule for an integration request that cannot yield samples.
    Triggers on non-positive or non-finite step size or horizon.
    """
    receipt = _anomaly("integration_config", ErrorKind.EMPTY_TRAJECTORY, {
        "step_size": repr(h),
        "t_final": repr(t_final),
    })
    raise EmptyTrajectory(
        f"Integration needs h > 0 and t_final > 0, got h={h!r}, t_final={t_final!r}",
        receipt,
    )


def stoprule_invalid_state(where: str, values: Any, step: Optional[int] = None) -> None:
    """
    Stoprule for non-finite values.
    Triggers when an input, a derivative or an integrated state is NaN/Inf.
    """
    receipt = _anomaly("finite_state", ErrorKind.INVALID_STATE, {
        "where": where,
        "values": repr(values),
        "step": step,
    })
    suffix = f" at step {step}" if step is not None else ""
    raise InvalidState(f"Non-finite value in {where}{suffix}: {values!r}", receipt)


def stoprule_empty_sequence() -> None:
    """Stoprule for spectral analysis of zero samples."""
    receipt = _anomaly("spectral_input", ErrorKind.SPECTRAL_ANALYSIS, {"n_samples": 0})
    raise SpectralAnalysisError("Spectral analysis requires at least one sample", receipt)


def stoprule_route_failure(cause: BaseException) -> None:
    """
    Stoprule for a failing route selector.
    The collaborator's exception is chained, never swallowed.
    """
    receipt = _anomaly("route_selection", ErrorKind.ROUTE_SELECTION, {
        "cause_type": type(cause).__name__,
        "cause": str(cause),
    })
    raise RouteSelectionError(f"Route selection failed: {cause}", receipt) from cause
