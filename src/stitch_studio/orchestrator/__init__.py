"""Clip generation and auto-stitch orchestration."""

from stitch_studio.orchestrator.controller import ActionController
from stitch_studio.orchestrator.merge import MergeTrigger
from stitch_studio.orchestrator.state import (
    ErrorKind,
    Failed,
    Finalized,
    Generating,
    Idle,
    Merging,
    OrchestratorState,
    Ready,
    transition,
)

__all__ = [
    "ActionController",
    "ErrorKind",
    "Failed",
    "Finalized",
    "Generating",
    "Idle",
    "MergeTrigger",
    "Merging",
    "OrchestratorState",
    "Ready",
    "transition",
]
