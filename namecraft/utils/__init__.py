"""Utility helpers shared across the :mod:`namecraft` package."""

from __future__ import annotations

from .logging_config import configure_logging
from .observability import (
    StructuredLoggerAdapter,
    add_span_attributes,
    create_counter,
    create_histogram,
    get_logger,
    record_exception,
    start_span,
)
from .randomness import pick, resolve_rng, sample_distinct, weighted_choice
from .scheduling import PeriodicTask
from .syllables import count_syllables, estimate_syllable_count, phonetic_key, vowel_skeleton
from .telemetry import StructuredTelemetry, TelemetryLogger

__all__ = [
    "configure_logging",
    "StructuredLoggerAdapter",
    "add_span_attributes",
    "create_counter",
    "create_histogram",
    "get_logger",
    "record_exception",
    "start_span",
    "pick",
    "resolve_rng",
    "sample_distinct",
    "weighted_choice",
    "PeriodicTask",
    "count_syllables",
    "estimate_syllable_count",
    "phonetic_key",
    "vowel_skeleton",
    "StructuredTelemetry",
    "TelemetryLogger",
]
