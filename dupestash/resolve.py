import collections
import os

from dupestash.score import clean_score


__all__ = (
    "Resolution",
    "resolve",
)


Resolution = collections.namedtuple(
    "Resolution", (
        "group",
        "keeper",
        "keeper_score",
        "candidates",
    )
)
Resolution.__doc__ = """The decision for one DuplicateGroup.

`keeper` stays where it is. `candidates` lists (path, score) for every other
member, in group order; they are the files to move to quarantine.
"""


def resolve(group, score_func=clean_score):
    """Choose the member of `group` to keep.

    Every member is scored by basename. The lowest score wins; among equal
    scores the member that comes first in the group wins, and groups are
    ordered lexicographically by path.

    Raises:
        ValueError: if the group has fewer than two members.
    """
    if len(group) < 2:
        raise ValueError("A duplicate group needs at least two members")

    scored = [ (path, score_func(os.path.basename(path))) for path in group ]

    keeper_index = 0
    for index, (_, score) in enumerate(scored):
        if score < scored[keeper_index][1]:
            keeper_index = index

    keeper, keeper_score = scored[keeper_index]
    candidates = scored[:keeper_index] + scored[keeper_index + 1:]

    return Resolution(group, keeper, keeper_score, candidates)
