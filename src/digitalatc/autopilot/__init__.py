"""Autopilot inputs: pilot intents and their mapping onto engine targets."""

from digitalatc.autopilot.intent import (
    RESUME_OWN_NAVIGATION,
    IntentApplier,
    IntentProvider,
    PilotIntent,
    ScriptedIntentProvider,
)

__all__ = [
    "RESUME_OWN_NAVIGATION",
    "IntentApplier",
    "IntentProvider",
    "PilotIntent",
    "ScriptedIntentProvider",
]
