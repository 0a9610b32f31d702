"""Random, human friendly names for instances, clusters and the like."""

from __future__ import annotations

import random

# Words are grouped by initial letter. Repeated words are deliberate: they
# make those words a little more likely to be picked.
_ADJECTIVE_WORDS = """
    aged ancient autumn
    billowing bitter black blue bold broad broken
    calm cold cool crimson curly
    damp dark dawn delicate divine dry
    empty
    falling fancy flat floral fragrant frosty
    gentle green
    hidden holy
    icy
    jolly
    late lingering little lively long lucky
    misty morning muddy mute
    nameless noisy
    odd old orange
    patient plain polished proud purple
    quiet
    rapid raspy red restless rough round royal
    shiny shrill shy silent small snowy soft solitary sparkling spring square
    steep still summer super sweet
    throbbing tight tiny twilight
    wandering weathered white wild winter wispy withered
    yellow young
"""

_NOUN_WORDS = """
    abyss arrow avalanche
    badger bastion bayou beam bird blaze blossom boulder breeze brook brook
    bush butterfly
    cave cavern chamber cherry citadel cliff cloud crag creek
    darkness dawn deer dew ditch dream dust
    eagle earth echo
    feather field fire firefly firn flame flower fog forest fox frog frost
    garden glacier glade glitter glow gorge grass
    hail harbor haze hawk heap hill
    ibex ice island
    lake leaf
    marsh meadow mist moon moor morning mountain
    night nightingale
    oak oasis ocean owl
    peak pine pond puddle
    rabbit rain raven ray reed reef resonance ridge river rock roe
    savannah sea shadow shape shore silence sky smoke snow snowflake sound
    spark spring star stone stream summit sun sun sunset surf swamp
    thunder thunderstorm tree twilight
    violet voice
    water water waterfall wave wetland whale wildflower wind wolf wood
"""

ADJECTIVES: tuple[str, ...] = tuple(_ADJECTIVE_WORDS.split())
NOUNS: tuple[str, ...] = tuple(_NOUN_WORDS.split())


def random_name() -> str:
    """Return an ``adjective-noun`` name chosen at random."""
    return f"{random.choice(ADJECTIVES)}-{random.choice(NOUNS)}"