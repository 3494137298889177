"""Public API for the name pattern package."""

from .dataclasses import PatternDefinition, PatternOutcome, SelectionCriteria, WordSources
from .fusion import PatternFusionRule, fuse_words
from .library import PatternLibrary, build_pattern_library
from .selector import PatternSelector, resolve_word_count
from .sources import build_word_sources
from .themes import ContextualTheme, DynamicPatternSpec, score_themes, select_theme
from .validation import adjust_to_word_count, validate_word_count

__all__ = [
    "ContextualTheme",
    "DynamicPatternSpec",
    "PatternDefinition",
    "PatternFusionRule",
    "PatternLibrary",
    "PatternOutcome",
    "PatternSelector",
    "SelectionCriteria",
    "WordSources",
    "adjust_to_word_count",
    "build_pattern_library",
    "build_word_sources",
    "fuse_words",
    "resolve_word_count",
    "score_themes",
    "select_theme",
    "validate_word_count",
]
