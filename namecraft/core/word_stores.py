"""Static vocabulary tables used to seed, validate and backfill candidates."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from namecraft.utils.randomness import pick


def _words(text: str) -> Tuple[str, ...]:
    return tuple(text.split())


# ---------------------------------------------------------------------------
# Base vocabulary
# ---------------------------------------------------------------------------

ADJECTIVES = _words(
    """
    ancient amber arcane ashen atomic bitter blazing blind boundless brazen
    broken burning cardinal careless celestial cobalt crimson crooked crystal
    cursed dazzling distant drifting dusty electric empty endless eternal
    faded fallen feral fervent fragile frozen gentle gilded glass golden
    hollow hidden hungry iron jagged kinetic lonely lucid lunar midnight
    molten neon northern obsidian painted pale phantom quiet radiant ragged
    restless rusted sacred savage scarlet shattered silent silver solar
    static sterling stolen sudden tender twisted velvet violet wandering
    wicked wild wired woven
    """
)

NOUNS = _words(
    """
    anchor anthem arrow ash avalanche beacon blade bloom bridge canyon
    cathedral chorus cinder circuit comet compass crown current cyclone
    dawn desert diamond dream echo ember engine falcon fever fire flame
    forest fortress frontier garden ghost glacier harbor harvest heart
    horizon hurricane island lantern legend lightning machine meadow
    mirror monarch moon mountain nebula ocean oracle orbit palace pilgrim
    prism prophet pulse raven relic river rocket saint satellite serpent
    shadow signal siren sky spark sparrow spirit storm summit tide tower
    thunder valley vessel voltage wave wilderness wolf
    """
)

VERBS = _words(
    """
    awaken bleed break burn carry chase collide conquer crash dance drift
    echo fade fall fly follow gather glow haunt hunt ignite kindle
    linger melt move reach remember return ride rise roam run scatter
    shatter shine sing sleep soar spin surrender swim tremble wander
    whisper
    """
)

MUSICAL_TERMS = _words(
    """
    anthem aria ballad beat cadence chord chorus coda crescendo drum
    echo groove harmony hymn lullaby melody overture pulse refrain rhythm
    riff serenade sonata symphony tempo tone verse waltz
    """
)

CONNECTORS = ("of", "and", "in", "the", "beyond", "under", "through", "without")
MUSICAL_SUFFIXES = ("Collective", "Ensemble", "Society", "Union", "Orchestra", "Project")
STOP_WORDS = frozenset(
    _words(
        """
        a an and are as at be but by for from had has have he her his i if in
        into is it its me my no not of on or our she so that the their them
        then there these they this to too up us was we were what when which
        who will with you your
        """
    )
)


def build_genre_terms() -> Dict[str, Tuple[str, ...]]:
    return {
        "rock": _words("stone fire thunder storm wild rebel amp riot static highway"),
        "metal": _words("steel iron dark shadow blade forge abyss doom throne venom"),
        "pop": _words("bright shine star gold crystal diamond candy glitter neon heart"),
        "electronic": _words("digital cyber neon pulse wave frequency circuit laser synth grid"),
        "folk": _words("earth wood river mountain valley meadow lantern harvest cabin ember"),
        "jazz": _words("blue smooth cool night moon swing velvet smoke brass lounge"),
        "hip-hop": _words("block crown hustle cipher concrete flow gold street verse mic"),
        "indie": _words("paper postcard bicycle attic polaroid garden cassette window"),
        "country": _words("dust highway whiskey porch prairie boots barn creek"),
        "blues": _words("crossroads delta muddy levee midnight train hollow"),
        "classical": _words("sonata cathedral marble overture requiem nocturne"),
        "punk": _words("riot safety gutter anarchy spit static brick"),
        "ambient": _words("drift haze tide vapor aurora glacier hush"),
    }


def build_mood_words() -> Dict[str, Tuple[str, ...]]:
    return {
        "dark": _words("shadow midnight obsidian grave hollow raven ash"),
        "bright": _words("sun golden radiant dawn spark shine glow"),
        "mysterious": _words("cipher veil phantom oracle riddle fog mirror"),
        "energetic": _words("electric rush voltage blaze sprint thunder kinetic"),
        "melancholy": _words("rain faded lonely winter ghost tide letters"),
        "ethereal": _words("aurora halo vapor celestial drift feather lunar"),
        "peaceful": _words("meadow still harbor quiet breeze lantern calm"),
        "aggressive": _words("fury blade venom riot savage iron strike"),
        "romantic": _words("velvet rose candle heart moonlit tender kiss"),
        "nostalgic": _words("polaroid cassette summer attic yesterday faded porch"),
        "uplifting": _words("rise summit wings bright anthem horizon hope"),
    }


def build_thematic_words() -> Dict[str, Tuple[str, ...]]:
    return {
        "urban_nightlife": _words("neon street city midnight taxi rooftop alley skyline club"),
        "natural_serenity": _words("forest river meadow dawn moss willow tide breeze"),
        "cosmic_exploration": _words("nebula orbit comet galaxy stardust satellite void"),
        "industrial_power": _words("steel factory piston furnace rivet engine smoke gear"),
        "romantic_intimacy": _words("velvet candle whisper rose silk embrace heartbeat"),
    }


def build_famous_names() -> Tuple[str, ...]:
    return (
        "The Beatles", "Radiohead", "Nirvana", "Pink Floyd", "Led Zeppelin",
        "The Rolling Stones", "Queen", "Metallica", "Coldplay", "Arctic Monkeys",
        "The Killers", "Daft Punk", "Fleetwood Mac", "The Doors", "Pearl Jam",
        "Foo Fighters", "Black Sabbath", "Iron Maiden", "The Strokes", "Gorillaz",
        "Imagine Dragons", "Muse", "Tame Impala", "Bon Iver", "The National",
        "Stairway to Heaven", "Bohemian Rhapsody", "Hotel California", "Purple Rain",
        "Smells Like Teen Spirit", "Wonderwall", "Yesterday", "Imagine",
    )


def build_static_pools() -> Dict[str, Tuple[str, ...]]:
    """Hand-curated offline names, used only when generation cannot fill a batch."""

    return {
        "band": (
            "Stormglass", "Emberline", "Velvet Comet", "Cobalt Harbor", "Hollow Saints",
            "Neon Pilgrims", "Iron Meadow", "The Quiet Voltage", "The Paper Lanterns",
            "The Midnight Orchard", "Ghosts of Silver Canyon", "Echoes Under Northern Skies",
            "The Lantern and the Tide", "Wolves Beyond the Amber Sea",
        ),
        "song": (
            "Afterglow", "Static Hearts", "Paper Moon", "Salt and Thunder",
            "Letters to the Tide", "Dancing in Copper Rain", "Where the Rivers Sleep",
            "All the Lights Went Gold", "Before the Comet Falls Again",
            "We Were Kings of the Empty Highway",
        ),
    }


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WordStores:
    """Read-only vocabulary tables; generators draw from them, never write."""

    adjectives: Tuple[str, ...] = ADJECTIVES
    nouns: Tuple[str, ...] = NOUNS
    verbs: Tuple[str, ...] = VERBS
    musical_terms: Tuple[str, ...] = MUSICAL_TERMS
    connectors: Tuple[str, ...] = CONNECTORS
    musical_suffixes: Tuple[str, ...] = MUSICAL_SUFFIXES
    genre_terms: Mapping[str, Tuple[str, ...]] = field(default_factory=build_genre_terms)
    mood_words: Mapping[str, Tuple[str, ...]] = field(default_factory=build_mood_words)
    thematic: Mapping[str, Tuple[str, ...]] = field(default_factory=build_thematic_words)
    famous_names: Tuple[str, ...] = field(default_factory=build_famous_names)
    static_pools: Mapping[str, Tuple[str, ...]] = field(default_factory=build_static_pools)
    _famous_index: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_famous_index", {name.strip().lower() for name in self.famous_names}
        )

    def is_famous_name(self, name: str) -> bool:
        return " ".join(name.lower().split()) in self._famous_index

    def genre_words(self, genre: Optional[str]) -> Tuple[str, ...]:
        if not genre:
            return ()
        return self.genre_terms.get(genre.strip().lower(), ())

    def mood_terms(self, mood: Optional[str]) -> Tuple[str, ...]:
        if not mood:
            return ()
        return self.mood_words.get(mood.strip().lower(), ())

    def thematic_words(self, theme: Optional[str]) -> Tuple[str, ...]:
        if not theme:
            return ()
        return self.thematic.get(theme, ())

    def all_words(self) -> Set[str]:
        words: Set[str] = set(self.adjectives) | set(self.nouns) | set(self.verbs)
        words.update(self.musical_terms)
        for table in (self.genre_terms, self.mood_words, self.thematic):
            for entries in table.values():
                words.update(entries)
        return words

    # -- static fallback ---------------------------------------------------

    def structured_phrase(self, word_count: int, rng: random.Random, genre: Optional[str] = None) -> str:
        """Assemble a grammatical-looking phrase of exactly ``word_count`` words."""

        nouns: Tuple[str, ...] = self.genre_words(genre) + self.nouns
        adjectives = self.adjectives

        def noun() -> str:
            return pick(rng, nouns).title()

        def adjective() -> str:
            return pick(rng, adjectives).title()

        count = max(1, int(word_count))
        if count == 1:
            return pick(rng, adjectives).title() + pick(rng, nouns).lower()
        if count == 2:
            return f"{adjective()} {noun()}"
        if count == 3:
            return f"The {adjective()} {noun()}"

        tail_len = (count - 1) // 2
        head_len = count - 1 - tail_len
        if head_len >= 3:
            head = ["The"] + [adjective() for _ in range(head_len - 2)] + [noun()]
        else:
            head = [adjective() for _ in range(head_len - 1)] + [noun()]
        tail = [adjective() for _ in range(tail_len - 1)] + [noun()]
        return " ".join(head + ["of"] + tail)

    def static_fallback_names(
        self,
        content_type: str,
        word_count: int,
        count: int,
        rng: random.Random,
        *,
        genre: Optional[str] = None,
        exclude: Iterable[str] = (),
    ) -> List[str]:
        """Return ``count`` distinct offline names with exactly ``word_count`` words."""

        taken = {name.lower() for name in exclude}
        pool = [
            name
            for name in self.static_pools.get(content_type, ())
            if len(name.split()) == word_count and name.lower() not in taken
        ]
        rng.shuffle(pool)
        names: List[str] = []
        for name in pool[:count]:
            names.append(name)
            taken.add(name.lower())

        attempts = 0
        while len(names) < count and attempts < count * 50:
            attempts += 1
            candidate = self.structured_phrase(word_count, rng, genre)
            if candidate.lower() in taken or self.is_famous_name(candidate):
                continue
            names.append(candidate)
            taken.add(candidate.lower())

        suffixes = list(self.musical_suffixes) or ["Project"]
        index = 0
        while len(names) < count:
            # Vocabulary exhausted: make the structured phrase unique by
            # replacing its final word with a numbered suffix.
            base = self.structured_phrase(word_count, rng, genre).split()
            base[-1] = f"{suffixes[index % len(suffixes)]}{index // len(suffixes) + 2}"
            candidate = " ".join(base)
            index += 1
            if candidate.lower() in taken:
                continue
            names.append(candidate)
            taken.add(candidate.lower())
        return names


def build_default_stores() -> WordStores:
    return WordStores()


DEFAULT_WORD_STORES = build_default_stores()


__all__ = [
    "ADJECTIVES",
    "NOUNS",
    "VERBS",
    "MUSICAL_TERMS",
    "CONNECTORS",
    "MUSICAL_SUFFIXES",
    "STOP_WORDS",
    "WordStores",
    "build_default_stores",
    "build_genre_terms",
    "build_mood_words",
    "build_thematic_words",
    "build_famous_names",
    "build_static_pools",
    "DEFAULT_WORD_STORES",
]
