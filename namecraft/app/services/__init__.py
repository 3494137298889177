"""Pipeline services coordinating providers, patterns and filters."""

from .fallback_manager import FallbackManager, FallbackStrategy
from .orchestrator import GenerationOrchestrator
from .variety_optimizer import VarietyOptimizer

__all__ = ["FallbackManager", "FallbackStrategy", "GenerationOrchestrator", "VarietyOptimizer"]
