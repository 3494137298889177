"""Domain models, vocabulary and scoring for name generation."""

from .errors import (
    AllSourcesExhausted,
    FilterExhaustion,
    NamecraftError,
    PatternGenerationError,
    ProviderError,
    ProviderTimeout,
    ValidationError,
)
from .genre_matrix import CompatibilityScore, FusionRule, GenreCompatibilityMatrix
from .models import (
    FusedResult,
    GenerationRequest,
    GenerationResponse,
    GenerationResult,
    NormalizedArtist,
    NormalizedEntity,
    NormalizedGenre,
    NormalizedTrack,
    NormalizedVocabulary,
    VocabularyWord,
)
from .name_memory import GlobalNameMemory, NameMemoryConfig
from .normalizer import DataNormalizer, data_quality, normalize_genres, normalize_string
from .phonetic_flow import PhoneticFlowAnalyzer, PhoneticScore, quality_label
from .word_filter import WordFilter, WordFilterConfig
from .word_stores import DEFAULT_WORD_STORES, WordStores

__all__ = [
    "AllSourcesExhausted",
    "FilterExhaustion",
    "NamecraftError",
    "PatternGenerationError",
    "ProviderError",
    "ProviderTimeout",
    "ValidationError",
    "CompatibilityScore",
    "FusionRule",
    "GenreCompatibilityMatrix",
    "FusedResult",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationResult",
    "NormalizedArtist",
    "NormalizedEntity",
    "NormalizedGenre",
    "NormalizedTrack",
    "NormalizedVocabulary",
    "VocabularyWord",
    "GlobalNameMemory",
    "NameMemoryConfig",
    "DataNormalizer",
    "data_quality",
    "normalize_genres",
    "normalize_string",
    "PhoneticFlowAnalyzer",
    "PhoneticScore",
    "quality_label",
    "WordFilter",
    "WordFilterConfig",
    "DEFAULT_WORD_STORES",
    "WordStores",
]
