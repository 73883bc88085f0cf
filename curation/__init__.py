"""Video curation decision engine."""
from curation.config import RouterConfig, RouterThresholds, Settings, get_settings
from curation.database import InMemoryRegistry, RegistryStore, SupabaseRegistry, get_registry
from curation.effects import apply_effects
from curation.evaluator import CurationEvaluator, summarize_decisions
from curation.models import Decision, Outcome, VideoCandidate
from curation.router import DecisionRouter

__all__ = [
    "CurationEvaluator",
    "Decision",
    "DecisionRouter",
    "InMemoryRegistry",
    "Outcome",
    "RegistryStore",
    "RouterConfig",
    "RouterThresholds",
    "Settings",
    "SupabaseRegistry",
    "VideoCandidate",
    "apply_effects",
    "get_registry",
    "get_settings",
    "summarize_decisions",
]
