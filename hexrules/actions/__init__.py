"""Action system: per-variant handlers, the executor and the commit helper."""

from hexrules.actions.base import ActionContext, ActionOutcome, AppliedChange, CellWrite, commit
from hexrules.actions.executor import ActionExecutor

__all__ = ["ActionContext", "ActionExecutor", "ActionOutcome", "AppliedChange", "CellWrite", "commit"]
