"""
The "clean filename" heuristic.

Copies made by file managers, browsers and sync tools tend to pick up a
suffix such as "-1", " (2)" or " copy". Each rule below adds a penalty when
the filename stem (the name without its final extension) ends with one of
those suffixes, and every name pays one point per ten characters so that, all
else equal, the shorter name wins. The lowest score in a duplicate group is
the most likely original.
"""

import collections
import re

from dupestash.fs import split_extension


__all__ = (
    "ScoreRule",
    "RULES",
    "clean_score",
    "penalties",
)


LENGTH_DIVISOR = 10


class ScoreRule(collections.namedtuple("ScoreRule", ("name", "pattern", "weight"))):
    __slots__ = ()

    def matches(self, stem):
        return self.pattern.search(stem) is not None


def _rule(name, pattern, weight, flags=0):
    return ScoreRule(name, re.compile(pattern, flags), weight)


RULES = (
    # "song-1", "song-23"
    _rule("hyphen-number", r"-[0-9]+\Z", 100),
    # "song (1)"
    _rule("parenthesized-number", r" \([0-9]+\)\Z", 100),
    # "song copy", "song Copy 2"
    _rule("copy", r"\scopy(?:\s[0-9]+)?\Z", 80, re.IGNORECASE),
    # "song - Copy", "song - copy 3"; these also match "copy" above
    _rule("dash-copy", r"\s-\scopy(?:\s[0-9]+)?\Z", 80, re.IGNORECASE),
    # "song_copy", "song_copy2", "song_Copy 2"
    _rule("underscore-copy", r"_copy(?:\s?[0-9]+)?\Z", 80, re.IGNORECASE),
)


def penalties(basename, rules=RULES):
    """The rules matching `basename`, as (name, weight) pairs in rule order."""
    stem, _ = split_extension(basename)
    return [ (rule.name, rule.weight) for rule in rules if rule.matches(stem) ]


def clean_score(basename, rules=RULES):
    """Score a basename; lower means more likely to be the original.

    >>> clean_score("song.mp3")
    0
    >>> clean_score("song (1).mp3")
    101
    """
    return (
        sum(weight for _, weight in penalties(basename, rules)) +
        len(basename) // LENGTH_DIVISOR
    )
