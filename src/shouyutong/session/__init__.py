"""Per-user lookup session state.

Modules
-------
models
    ``LookupState`` value object and the actions that change it.
state
    ``reduce(state, action)``, the pure transition function.
handlers
    ``LookupSession``, which runs orchestrator calls through the reducer.
validation
    Checks for curator edits against the editable field set.
"""

from shouyutong.session.handlers import LookupSession
from shouyutong.session.models import ImageSource, ImageStatus, LookupState, Phase
from shouyutong.session.state import reduce
from shouyutong.session.validation import apply_patch, normalize_patch

__all__ = [
    "ImageSource",
    "ImageStatus",
    "LookupSession",
    "LookupState",
    "Phase",
    "apply_patch",
    "normalize_patch",
    "reduce",
]
