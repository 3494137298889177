"""Combine two fixed patterns into a fused pattern of an exact length."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from namecraft.core.errors import PatternGenerationError

from .dataclasses import PatternDefinition, WordSources

FUSION_METHODS = ("combine", "interweave", "transform")


@dataclass(frozen=True)
class PatternFusionRule:
    name: str
    source_patterns: Tuple[str, str]
    method: str
    target_word_count: int
    compatibility: Tuple[str, ...]


def build_fusion_rules() -> Tuple[PatternFusionRule, ...]:
    return (
        PatternFusionRule(
            "abstract_narrative_fusion", ("abstract_concept", "narrative_sequence"), "combine", 3,
            ("conceptual", "narrative"),
        ),
        PatternFusionRule(
            "temporal_emotional_weave", ("temporal_concept", "emotional_landscape"), "interweave", 4,
            ("temporal", "emotional"),
        ),
        PatternFusionRule(
            "tech_nature_transform", ("techno_organic", "sensory_experience"), "transform", 3,
            ("fusion", "sensory"),
        ),
        PatternFusionRule(
            "question_action_combine", ("question_format", "action_object"), "combine", 5,
            ("interrogative", "narrative"),
        ),
    )


FUSION_RULES = build_fusion_rules()


def _fill(words: List[str], spare: Sequence[str], target: int) -> List[str]:
    for word in spare:
        if len(words) >= target:
            break
        words.append(word)
    while len(words) < target:
        words.append(words[0] if words else "Echo")
    return words[:target]


def fuse_words(method: str, first: Sequence[str], second: Sequence[str], target: int) -> List[str]:
    """Merge two word lists into exactly ``target`` words using ``method``.

    ``combine`` concatenates, ``interweave`` takes the head of ``first`` and
    the tail of ``second``, and ``transform`` alternates positions between
    the two. Unused words backfill short results.
    """

    first, second = list(first), list(second)
    if method == "combine":
        return _fill(first + second, (), target)
    if method == "interweave":
        head = first[: (target + 1) // 2]
        tail_size = target // 2
        tail = second[-tail_size:] if tail_size else []
        spare = first[len(head):] + second[: len(second) - len(tail)]
        return _fill(head + tail, spare, target)
    if method == "transform":
        words: List[str] = []
        used_first, used_second = set(), set()
        for index in range(target):
            if index % 2 == 0 and index < len(first):
                words.append(first[index])
                used_first.add(index)
            elif index < len(second):
                words.append(second[index])
                used_second.add(index)
            elif index < len(first):
                words.append(first[index])
                used_first.add(index)
        spare = [w for i, w in enumerate(first) if i not in used_first]
        spare += [w for i, w in enumerate(second) if i not in used_second]
        return _fill(words, spare, target)
    raise ValueError(f"unknown fusion method: {method}")


def rules_for(word_count: int, rules: Tuple[PatternFusionRule, ...] = FUSION_RULES) -> List[PatternFusionRule]:
    return [rule for rule in rules if rule.target_word_count == word_count]


def build_fused_pattern(
    rule: PatternFusionRule,
    first: PatternDefinition,
    second: PatternDefinition,
) -> PatternDefinition:
    pattern_id = f"fused_{first.id}_{second.id}"

    def generate(sources: WordSources, rng: random.Random, target: int) -> str:
        words = fuse_words(
            rule.method,
            first.generate(sources, rng).split(),
            second.generate(sources, rng).split(),
            rule.target_word_count,
        )
        if len(words) != rule.target_word_count:
            raise PatternGenerationError(pattern_id, f"fused {len(words)} words, wanted {rule.target_word_count}")
        return " ".join(words)

    return PatternDefinition(
        id=pattern_id,
        category="fused",
        subcategory=rule.method,
        min_word_count=rule.target_word_count,
        max_word_count=rule.target_word_count,
        weight=(first.weight + second.weight) / 2,
        template=f"Fusion of {first.template} and {second.template}",
        generator=generate,
        description=f"Fused pattern: {first.description} + {second.description}",
        examples=first.examples[:2] + second.examples[:2],
        complexity="complex",
        origin="fused",
    )


__all__ = [
    "FUSION_METHODS",
    "FUSION_RULES",
    "PatternFusionRule",
    "build_fused_pattern",
    "build_fusion_rules",
    "fuse_words",
    "rules_for",
]
