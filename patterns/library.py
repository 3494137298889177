"""Fixed, hand-authored pattern templates grouped by word count."""

from __future__ import annotations

import random
from collections import Counter
from typing import Dict, List, Optional, Tuple

from .dataclasses import PatternDefinition, WordSources
from .wording import capitalize, choose, gerund, singularize, title_words


def _words(text: str) -> Tuple[str, ...]:
    return tuple(text.split())


# ---------------------------------------------------------------------------
# Genre modifiers
# ---------------------------------------------------------------------------


def build_genre_modifiers() -> Dict[str, Dict[str, Tuple[str, ...]]]:
    return {
        "rock": {
            "adjectives": _words("Raw Wild Electric Fierce Bold Heavy Hard Rough Loud Strong"),
            "nouns": _words("Thunder Storm Fire Steel Stone Mountain Lightning Power Force Energy"),
            "verbs": _words("Rock Roll Smash Crash Bang Roar Scream Shake Break Burn"),
            "themes": _words("rebellion freedom power energy raw_emotion"),
        },
        "jazz": {
            "adjectives": _words("Smooth Cool Blue Mellow Sweet Sophisticated Elegant Rich Deep Velvet"),
            "nouns": _words("Note Rhythm Harmony Melody Tempo Groove Soul Spirit Heart Blues"),
            "verbs": _words("Swing Flow Improvise Glide Weave Dance Sing Play Feel Express"),
            "themes": _words("improvisation sophistication emotion soul expression"),
        },
        "electronic": {
            "adjectives": _words("Digital Synthetic Electric Neon Cyber Virtual Binary Quantum Neural Holographic"),
            "nouns": _words("Code Signal Frequency Wave Pulse Circuit Data System Matrix Network"),
            "verbs": _words("Process Compile Generate Transmit Upload Download Stream Sync Connect Interface"),
            "themes": _words("technology future digital synthetic artificial"),
        },
        "folk": {
            "adjectives": _words("Ancient Wise Simple Pure Natural Gentle Peaceful Earthy Rustic Traditional"),
            "nouns": _words("Story Tale Song Ballad Legend Myth Memory Heritage Root Branch"),
            "verbs": _words("Tell Sing Remember Share Pass Keep Honor Preserve Celebrate Cherish"),
            "themes": _words("tradition storytelling heritage nature simplicity"),
        },
        "pop": {
            "adjectives": _words("Bright Catchy Fun Happy Upbeat Colorful Sparkling Shining Glowing Radiant"),
            "nouns": _words("Star Dream Love Heart Life World Sky Sun Moon Rainbow"),
            "verbs": _words("Shine Glow Sparkle Dance Sing Love Dream Hope Wish Celebrate"),
            "themes": _words("accessibility mainstream catchy memorable uplifting"),
        },
    }


GENRE_MODIFIERS = build_genre_modifiers()


# ---------------------------------------------------------------------------
# Single word
# ---------------------------------------------------------------------------

_CONCEPTS = _words("Paradox Nexus Zenith Void Prism Echo Flux Cipher Apex Vortex Enigma Spectrum Resonance Catalyst Synthesis")
_PREFIXES = _words("neo hyper ultra meta proto omni anti poly multi pseudo")
_SUFFIXES = _words("ism ology esque onic atic morphic core wave sphere verse")
_NUMBERS = _words("Zero Seven Eleven XIII XXIV 404 808 Binary Infinite Omega Alpha")
_RARE_WORDS = _words("Lumina Tempest Aurora Cosmos Ethereal Nebula Solaris Vesper Celeste Astral Phantom Mirage Radiant Sublime")


def _abstract_concept(sources: WordSources, rng: random.Random, target: int) -> str:
    return capitalize(choose(rng, _CONCEPTS, sources.musical_terms, fallback="Echo"))


def _compound_creation(sources: WordSources, rng: random.Random, target: int) -> str:
    prefix = choose(rng, _PREFIXES, fallback="neo")
    base = choose(rng, sources.nouns, sources.genre_terms, sources.musical_terms, fallback="wave")
    return capitalize(prefix + base.lower())


def _suffix_evolution(sources: WordSources, rng: random.Random, target: int) -> str:
    short_nouns = [noun for noun in sources.nouns if len(noun) < 8]
    base = choose(rng, short_nouns, sources.genre_terms, fallback="rhythm")
    return capitalize(base.lower() + choose(rng, _SUFFIXES, fallback="core"))


def _numeric_mystique(sources: WordSources, rng: random.Random, target: int) -> str:
    return choose(rng, _NUMBERS, fallback="808")


def _rare_singular(sources: WordSources, rng: random.Random, target: int) -> str:
    long_words = [word for word in sources.long_words if len(word) < 9]
    return capitalize(choose(rng, _RARE_WORDS, long_words, fallback="Aurora"))


# ---------------------------------------------------------------------------
# Two words
# ---------------------------------------------------------------------------

_DYNAMIC_ADJECTIVES = _words("Electric Sonic Primal Vital Raw Pure Fierce Wild Blazing Liquid Crystalline Volatile Kinetic Magnetic")
_POWERFUL_NOUNS = _words("Storm Bloom Echo Fire Wave Force Energy Pulse Surge Rhythm Current Flow Impact Resonance")
_CONTRASTS = (
    ("Fire", "Ice"), ("Silent", "Thunder"), ("Dark", "Light"), ("Smooth", "Edge"),
    ("Gentle", "Storm"), ("Bright", "Shadow"), ("Fast", "Slow"), ("High", "Low"),
    ("Ancient", "Future"), ("Natural", "Digital"), ("Warm", "Cold"), ("Soft", "Steel"),
)
_ACTIONS = _words("Chasing Breaking Riding Crossing Climbing Diving Flying Dancing Singing Burning Flowing Rising Falling Spinning")
_TARGETS = _words("Shadows Chains Thunder Dreams Stars Waves Mountains Rivers Clouds Fire Light Time Space Hearts")
_TECH = _words("Digital Cyber Neon Pixel Binary Quantum Neural Virtual Hologram Laser Circuit Data Code Signal")
_ORGANIC = _words("Forest Rain Garden Ocean Mountain River Desert Valley Meadow Grove Lake Storm Wind Earth")
_EMOTIONS = _words("Melancholy Euphoric Restless Serene Passionate Nostalgic Turbulent Peaceful Intense Gentle Fierce Tender")
_LANDSCAPES = _words("Hills Valleys Seas Plains Peaks Shores Fields Cliffs Canyons Meadows Horizons Depths Heights Paths")
_TIME_ELEMENTS = _words("Forever Yesterday Tomorrow Midnight Dawn Twilight Eternal Timeless Ancient Future Present Infinite")
_TIME_CONCEPTS = _words("Young Dreams Calling Memories Hopes Echoes Shadows Light Love Peace Fire Storm Rain Sun")
_COUNTS = _words("Zero One Seven Thirteen Hundred Thousand Million First Last")
_COUNTED = _words("Sins Moons Hour Stars Dreams Hearts Souls Lives Chances Wishes Tears Smiles Songs Stories")


def _dynamic_adjective_noun(sources: WordSources, rng: random.Random, target: int) -> str:
    long_adjectives = [adjective for adjective in sources.adjectives if len(adjective) > 5]
    adjective = choose(rng, _DYNAMIC_ADJECTIVES, long_adjectives, fallback="Electric")
    noun = choose(rng, _POWERFUL_NOUNS, sources.nouns, fallback="Storm")
    return title_words((adjective, singularize(noun)))


def _contrasting_elements(sources: WordSources, rng: random.Random, target: int) -> str:
    first, second = _CONTRASTS[rng.randrange(len(_CONTRASTS))]
    return f"{first} {second}"


def _action_object(sources: WordSources, rng: random.Random, target: int) -> str:
    action = choose(rng, _ACTIONS, [gerund(verb) for verb in sources.verbs], fallback="Chasing")
    return title_words((action, choose(rng, _TARGETS, sources.nouns, fallback="Shadows")))


def _techno_organic(sources: WordSources, rng: random.Random, target: int) -> str:
    organic = choose(rng, _ORGANIC, sources.contextual_words, fallback="Forest")
    return title_words((choose(rng, _TECH, fallback="Digital"), organic))


def _emotional_landscape(sources: WordSources, rng: random.Random, target: int) -> str:
    landscape = choose(rng, _LANDSCAPES, sources.contextual_words, fallback="Hills")
    return title_words((choose(rng, _EMOTIONS, fallback="Melancholy"), landscape))


def _temporal_concept(sources: WordSources, rng: random.Random, target: int) -> str:
    concept = choose(rng, _TIME_CONCEPTS, sources.nouns, fallback="Young")
    return title_words((choose(rng, _TIME_ELEMENTS, fallback="Forever"), concept))


def _numbered_concept(sources: WordSources, rng: random.Random, target: int) -> str:
    concept = choose(rng, _COUNTED, sources.nouns, fallback="Stars")
    return title_words((choose(rng, _COUNTS, fallback="Seven"), concept))


# ---------------------------------------------------------------------------
# Three words
# ---------------------------------------------------------------------------

_SUBJECTS = _words("Hearts Dreams Fire Stars Waves Winds Souls Eyes Hands Voices")
_SUBJECT_VERBS = _words("Beat Come Burns Shine Flow Dance Sing Rise Fall Call")
_OBJECTS = _words("Fast True Bright High Deep Strong Free Wild Pure Bold")
_QUESTION_WORDS = _words("Who What Where When Why How")
_QUESTION_VERBS = _words("Are Is Were Was Do Did Can Will Should")
_QUESTION_NOUNS = _words("You Love Serious This That We They Time Life Hope")
_PREPOSITIONS = _words("Beyond Under Through Above Below Within Behind Across")
_LOCATIONS = _words("Horizons Starlight Fire Water Mountains Valleys Skies Seas")
_LOCATION_ACTIONS = _words("Dancing Walking Running Flying Singing Dreaming Waiting Calling")
_JOURNEY_EMOTIONS = _words("Love Joy Hope Fear Pain Peace Rage Calm Doubt Faith")
_TRANSITIONS = _words("Becomes Turns Finds Meets Brings Takes Makes Gives")
_OUTCOMES = _words("Pain Sorrow Light Dark Peace War Life Death Truth Lies")
_COMPOUNDS = _words("Firelight Moonbeam Stardust Sunlight Rainfall Snowfall Windstorm")
_MODIFIERS = _words("Dancing Silver Golden Crystal Diamond Velvet Silk Steel")
_COMPOUND_NOUNS = _words("Shadows Dreams Rain Snow Wind Fire Water Earth Sky Stars")
_SENSES = _words("Taste Feel Hear See Touch Smell Sense Know")
_INTENSITIES = _words("Sweet Deep Silent Loud Soft Hard Sharp Smooth")
_EXPERIENCES = _words("Victory Rhythm Screams Colors Music Love Pain Joy")


def _classic_the_adjective_noun(sources: WordSources, rng: random.Random, target: int) -> str:
    adjective = choose(rng, sources.adjectives, fallback="Electric")
    noun = choose(rng, sources.nouns, fallback="Storm")
    return "The " + title_words((adjective, singularize(noun)))


def _narrative_sequence(sources: WordSources, rng: random.Random, target: int) -> str:
    return title_words(
        (
            choose(rng, _SUBJECTS, sources.nouns, fallback="Hearts"),
            choose(rng, _SUBJECT_VERBS, sources.verbs, fallback="Beat"),
            choose(rng, _OBJECTS, sources.adjectives, fallback="Fast"),
        )
    )


def _question_format(sources: WordSources, rng: random.Random, target: int) -> str:
    return title_words(
        (
            choose(rng, _QUESTION_WORDS, fallback="Who"),
            choose(rng, _QUESTION_VERBS, fallback="Are"),
            choose(rng, _QUESTION_NOUNS, sources.nouns, fallback="You"),
        )
    )


def _location_action(sources: WordSources, rng: random.Random, target: int) -> str:
    return title_words(
        (
            choose(rng, _PREPOSITIONS, fallback="Beyond"),
            choose(rng, _LOCATIONS, sources.contextual_words, fallback="Horizons"),
            choose(rng, _LOCATION_ACTIONS, [gerund(verb) for verb in sources.verbs], fallback="Dancing"),
        )
    )


def _emotional_journey(sources: WordSources, rng: random.Random, target: int) -> str:
    return title_words(
        (
            choose(rng, _JOURNEY_EMOTIONS, fallback="Love"),
            choose(rng, _TRANSITIONS, fallback="Becomes"),
            choose(rng, _OUTCOMES, sources.nouns, fallback="Pain"),
        )
    )


def _compound_modifier(sources: WordSources, rng: random.Random, target: int) -> str:
    return title_words(
        (
            choose(rng, _COMPOUNDS, fallback="Firelight"),
            choose(rng, _MODIFIERS, sources.adjectives, fallback="Dancing"),
            choose(rng, _COMPOUND_NOUNS, sources.nouns, fallback="Shadows"),
        )
    )


def _sensory_experience(sources: WordSources, rng: random.Random, target: int) -> str:
    return title_words(
        (
            choose(rng, _SENSES, fallback="Feel"),
            choose(rng, _INTENSITIES, sources.adjectives, fallback="Deep"),
            choose(rng, _EXPERIENCES, sources.nouns, fallback="Rhythm"),
        )
    )


# ---------------------------------------------------------------------------
# Four or more words
# ---------------------------------------------------------------------------

_ARTICLES = _words("The A This That Every Each")
_ADVERBS = _words("Forever Always Never Sometimes Often Rarely Softly Loudly")
_LOWER_PREPOSITIONS = _words("through in on under over beside beyond within")
_PHILOSOPHY_CONCEPTS = _words("Truth Love Hope Faith Peace Joy Light Time Life Death")
_PHILOSOPHY_VERBS = _words("Speaks Grows Shines Burns Flows Rises Falls Lives Dies Wins")
_COMPARATIVES = _words("Louder Stronger Brighter Deeper Higher Faster Slower Better")
_COMPARISONS = _words("Words Fear Darkness Hate War Pain Sorrow Death Time")
_TIME_STARTS = _words("Yesterday Dawn Midnight Twilight Morning Evening Today")
_TIME_CONNECTORS = (("Breaks", "Into"), ("Flows", "Into"), ("Turns", "Into"), ("Leads", "To"), ("Drifts", "Toward"))
_TIME_ENDS = _words("Endless Eternal Infinite Golden Silver Crystal")
_TIME_OUTCOMES = _words("Dream Day Night Light Hope Peace Love Song Dance")
_CONDITIONS = (
    "When Hearts Stop Beating",
    "If Dreams Could Fly",
    "Should Time Stand Still",
    "Where Love Goes Deep",
    "While Stars Keep Shining",
)
_CONDITIONAL_OUTCOMES = {
    2: ("Love Remains", "Hope Survives", "Silence Answers"),
    3: ("We'd Touch Stars", "We'd Dance Forever", "Hope Lives On", "Peace Will Come"),
}
_TAILS = {
    1: ("Again", "Tonight", "Forever"),
    2: ("Once More", "After All", "Until Dawn"),
    3: ("Until The End", "Beyond The Stars", "Across The Sea"),
}


def _tail(rng: random.Random, length: int) -> List[str]:
    words: List[str] = []
    while length > 0:
        size = min(3, length)
        options = _TAILS[size]
        words.extend(options[rng.randrange(len(options))].split())
        length -= size
    return words


def _complete_narrative(sources: WordSources, rng: random.Random, target: int) -> str:
    article = choose(rng, _ARTICLES, fallback="The")
    adjective = capitalize(choose(rng, sources.adjectives, fallback="Wild"))
    noun = capitalize(singularize(choose(rng, sources.nouns, fallback="Heart")))
    verb = capitalize(choose(rng, sources.verbs, fallback="Beats"))
    adverb = choose(rng, _ADVERBS, fallback="Forever")
    if target <= 4:
        return " ".join((article, noun, verb, adverb))
    words = [article, adjective, noun, verb, adverb]
    extra = target - 5
    if extra >= 2:
        words[-1:-1] = [choose(rng, _PREPOSITIONS, fallback="Beyond"), capitalize(choose(rng, sources.nouns, fallback="Light"))]
        extra -= 2
    if extra:
        words.insert(2, capitalize(choose(rng, [a for a in sources.adjectives if a.lower() != adjective.lower()], fallback="Golden")))
    return " ".join(words)


def _poetic_sequence(sources: WordSources, rng: random.Random, target: int) -> str:
    first = capitalize(choose(rng, sources.nouns, fallback="Dreams"))
    verb = capitalize(choose(rng, sources.verbs, fallback="Flow"))
    preposition = choose(rng, _LOWER_PREPOSITIONS, fallback="through")
    last = capitalize(singularize(choose(rng, sources.nouns, fallback="Night")))
    if target <= 4:
        return " ".join((first, verb, preposition, last))
    words = [first, verb, preposition, "the", last]
    if target >= 6:
        words.insert(4, capitalize(choose(rng, sources.adjectives, fallback="Silent")))
    return " ".join(words)


def _philosophical_statement(sources: WordSources, rng: random.Random, target: int) -> str:
    concept = capitalize(choose(rng, _PHILOSOPHY_CONCEPTS, sources.nouns, fallback="Truth"))
    verb = capitalize(choose(rng, _PHILOSOPHY_VERBS, sources.verbs, fallback="Speaks"))
    comparative = choose(rng, _COMPARATIVES, fallback="Louder")
    comparison = capitalize(choose(rng, _COMPARISONS, sources.nouns, fallback="Words"))
    words = [concept, verb, comparative, "Than", comparison]
    extra = target - 5
    if extra >= 1:
        words.insert(4, capitalize(choose(rng, sources.adjectives, fallback="Silent")))
    if extra >= 2:
        words.insert(0, "The")
    if extra >= 3:
        words.insert(1, capitalize(choose(rng, sources.adjectives, fallback="Quiet")))
    return " ".join(words)


def _temporal_journey(sources: WordSources, rng: random.Random, target: int) -> str:
    connector = _TIME_CONNECTORS[rng.randrange(len(_TIME_CONNECTORS))]
    words = [
        choose(rng, _TIME_STARTS, fallback="Dawn"),
        *connector,
        choose(rng, _TIME_ENDS, fallback="Endless"),
        capitalize(choose(rng, _TIME_OUTCOMES, sources.nouns, fallback="Day")),
    ]
    words.extend(_tail(rng, target - len(words)))
    return " ".join(words)


def _conditional_narrative(sources: WordSources, rng: random.Random, target: int) -> str:
    condition = _CONDITIONS[rng.randrange(len(_CONDITIONS))].split()
    outcome_size = 2 if target <= 6 else 3
    outcomes = _CONDITIONAL_OUTCOMES[outcome_size]
    words = condition + outcomes[rng.randrange(len(outcomes))].split()
    words.extend(_tail(rng, target - len(words)))
    return " ".join(words)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _pattern(pattern_id: str, category: str, subcategory: str, weight: float, span: Tuple[int, int],
             template: str, generator, description: str, examples: Tuple[str, ...],
             complexity: str = "medium") -> PatternDefinition:
    return PatternDefinition(
        id=pattern_id,
        category=category,
        subcategory=subcategory,
        min_word_count=span[0],
        max_word_count=span[1],
        weight=weight,
        template=template,
        generator=generator,
        description=description,
        examples=examples,
        complexity=complexity,
    )


def build_pattern_library() -> Tuple[PatternDefinition, ...]:
    return (
        _pattern("abstract_concept", "conceptual", "abstract", 0.25, (1, 1), "{concept}",
                 _abstract_concept, "Single abstract concept words", ("Paradox", "Nexus", "Zenith"), "simple"),
        _pattern("compound_creation", "linguistic", "compound", 0.3, (1, 1), "{prefix}{base}",
                 _compound_creation, "Created compound words with prefixes", ("Neowave", "Hypercore", "Metasound")),
        _pattern("suffix_evolution", "linguistic", "morphology", 0.2, (1, 1), "{base}{suffix}",
                 _suffix_evolution, "Words with evolved suffixes", ("Beatology", "Soundism", "Rhythmcore")),
        _pattern("numeric_mystique", "symbolic", "numeric", 0.15, (1, 1), "{number}",
                 _numeric_mystique, "Meaningful numbers and codes", ("XIII", "808", "Binary"), "simple"),
        _pattern("rare_singular", "vocabulary", "rare", 0.1, (1, 1), "{rare_word}",
                 _rare_singular, "Rare but accessible words", ("Lumina", "Tempest", "Aurora"), "simple"),
        _pattern("dynamic_adjective_noun", "descriptive", "quality", 0.2, (2, 2), "{dynamic_adjective} {powerful_noun}",
                 _dynamic_adjective_noun, "Dynamic adjectives with powerful nouns", ("Electric Storm", "Sonic Bloom", "Primal Echo")),
        _pattern("contrasting_elements", "conceptual", "contrast", 0.15, (2, 2), "{element1} {element2}",
                 _contrasting_elements, "Contrasting or complementary elements", ("Fire Ice", "Silent Thunder", "Dark Light"), "simple"),
        _pattern("action_object", "narrative", "action", 0.18, (2, 2), "{action_verb} {target_noun}",
                 _action_object, "Action verbs with target objects", ("Chasing Shadows", "Breaking Chains", "Riding Thunder")),
        _pattern("techno_organic", "fusion", "tech_nature", 0.12, (2, 2), "{tech_element} {organic_element}",
                 _techno_organic, "Technology fused with nature", ("Digital Forest", "Cyber Rain", "Neon Garden")),
        _pattern("emotional_landscape", "emotional", "landscape", 0.15, (2, 2), "{emotion} {landscape}",
                 _emotional_landscape, "Emotions paired with landscapes", ("Melancholy Hills", "Euphoric Valleys", "Restless Seas")),
        _pattern("temporal_concept", "temporal", "time", 0.1, (2, 2), "{time_element} {concept}",
                 _temporal_concept, "Time-based concepts", ("Forever Young", "Yesterday Dreams", "Tomorrow Calling")),
        _pattern("numbered_concept", "symbolic", "enumerated", 0.1, (2, 2), "{number} {concept}",
                 _numbered_concept, "Numbers with meaningful concepts", ("Seven Sins", "Thirteen Moons", "Zero Hour")),
        _pattern("classic_the_adjective_noun", "traditional", "band_classic", 0.25, (3, 3), "The {adjective} {noun}",
                 _classic_the_adjective_noun, 'Classic "The [Adjective] [Noun]" band pattern',
                 ("The Electric Storm", "The Broken Hearts", "The Rising Sun"), "simple"),
        _pattern("narrative_sequence", "narrative", "story", 0.2, (3, 3), "{subject} {verb} {object}",
                 _narrative_sequence, "Simple narrative sequences", ("Hearts Beat Fast", "Dreams Come True", "Fire Burns Bright")),
        _pattern("question_format", "interrogative", "question", 0.15, (3, 3), "{question_word} {verb} {noun}",
                 _question_format, "Question-based patterns", ("Who Are You", "Where Is Love", "Why So Serious")),
        _pattern("location_action", "spatial", "place_action", 0.15, (3, 3), "{preposition} {location} {action}",
                 _location_action, "Location-based actions", ("Beyond Horizons Dancing", "Under Starlight Dancing", "Through Fire Walking")),
        _pattern("emotional_journey", "emotional", "progression", 0.12, (3, 3), "{emotion} {transition} {outcome}",
                 _emotional_journey, "Emotional progression patterns", ("Love Becomes Pain", "Joy Turns Sorrow", "Hope Finds Light")),
        _pattern("compound_modifier", "linguistic", "compound", 0.08, (3, 3), "{compound_word} {modifier} {noun}",
                 _compound_modifier, "Compound words with modifiers", ("Firelight Dancing Shadows", "Moonbeam Silver Dreams", "Stardust Golden Rain")),
        _pattern("sensory_experience", "sensory", "perception", 0.05, (3, 3), "{sense} {intensity} {experience}",
                 _sensory_experience, "Sensory perception patterns", ("Taste Sweet Victory", "Feel Deep Rhythm", "Hear Silent Screams")),
        _pattern("complete_narrative", "narrative", "story", 0.3, (4, 8), "{article} {adjective} {noun} {verb} {adverb}",
                 _complete_narrative, "Complete narrative sentences",
                 ("The Wild Heart Beats Forever", "A Broken Dream Shines Bright"), "complex"),
        _pattern("poetic_sequence", "poetic", "verse", 0.25, (4, 6), "{noun} {verb} {preposition} {article} {noun}",
                 _poetic_sequence, "Poetic sequences with natural flow",
                 ("Dreams Flow through the Night", "Love Burns in the Dark"), "complex"),
        _pattern("philosophical_statement", "philosophical", "wisdom", 0.2, (5, 8), "{concept} {verb} {modifier} Than {comparison}",
                 _philosophical_statement, "Philosophical or wisdom-based statements",
                 ("Truth Speaks Louder Than Words", "Love Grows Stronger Than Fear"), "complex"),
        _pattern("temporal_journey", "temporal", "journey", 0.15, (5, 7), "{time_start} {connector} {time_end} {outcome}",
                 _temporal_journey, "Temporal journey patterns",
                 ("Dawn Breaks Into Endless Day", "Midnight Flows Into Golden Light"), "complex"),
        _pattern("conditional_narrative", "conditional", "if_then", 0.1, (6, 10), "{condition} {outcome}",
                 _conditional_narrative, "Conditional narrative structures",
                 ("When Hearts Stop Beating Love Remains", "If Dreams Could Fly We'd Touch Stars"), "complex"),
    )


class PatternLibrary:
    """Read-only registry of the fixed patterns."""

    def __init__(self, patterns: Optional[Tuple[PatternDefinition, ...]] = None) -> None:
        self._patterns: Tuple[PatternDefinition, ...] = tuple(patterns or build_pattern_library())
        self._by_id = {pattern.id: pattern for pattern in self._patterns}

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self):
        return iter(self._patterns)

    def get(self, pattern_id: str) -> Optional[PatternDefinition]:
        return self._by_id.get(pattern_id)

    def patterns_for(self, word_count: int) -> List[PatternDefinition]:
        return [pattern for pattern in self._patterns if pattern.supports(word_count)]

    def categories(self) -> List[str]:
        return list(dict.fromkeys(pattern.category for pattern in self._patterns))

    def simplest_for(self, word_count: int) -> Optional[PatternDefinition]:
        """The highest-weight pattern for ``word_count``, preferring simple ones."""

        candidates = self.patterns_for(word_count)
        if not candidates:
            return None
        rank = {"simple": 0, "medium": 1, "complex": 2}
        return min(candidates, key=lambda pattern: (rank.get(pattern.complexity, 1), -pattern.weight))

    def stats(self) -> Dict[str, object]:
        by_count: Counter = Counter()
        for pattern in self._patterns:
            for count in range(pattern.min_word_count, pattern.max_word_count + 1):
                by_count[count] += 1
        return {
            "total_patterns": len(self._patterns),
            "by_word_count": dict(sorted(by_count.items())),
            "by_category": dict(Counter(pattern.category for pattern in self._patterns)),
        }


__all__ = [
    "GENRE_MODIFIERS",
    "build_genre_modifiers",
    "build_pattern_library",
    "PatternLibrary",
]
