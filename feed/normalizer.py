"""Join feed rows with their reactions, comments and follow state into RoundViews.

Each input collection is walked once and grouped by round id, so building a
page is linear in the total number of rows rather than rounds x rows.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional

from models import Comment, CommentView, FeedEntry, Reaction, RoundView
from models.social import zero_reaction_counts
from display.course_names import CourseNameResolver, default_resolver
from display.vs_par import calculate_vs_par


def group_reaction_counts(reactions: Iterable[Reaction]) -> Dict[str, dict]:
    counts: Dict[str, dict] = defaultdict(zero_reaction_counts)
    for reaction in reactions:
        counts[reaction.round_id][reaction.reaction_type] += 1
    return counts


def group_user_reactions(reactions: Iterable[Reaction]) -> Dict[str, set]:
    mine: Dict[str, set] = defaultdict(set)
    for reaction in reactions:
        mine[reaction.round_id].add(reaction.reaction_type)
    return mine


def group_comments(comments: Iterable[Comment]) -> Dict[str, List[CommentView]]:
    grouped: Dict[str, List[Comment]] = defaultdict(list)
    for comment in comments:
        grouped[comment.round_id].append(comment)
    # Comments without a timestamp (just posted) sort last.
    return {
        round_id: [
            CommentView.from_comment(c)
            for c in sorted(items, key=lambda c: (c.created_at is None, c.created_at or 0))
        ]
        for round_id, items in grouped.items()
    }


def build_round_view(
    entry: FeedEntry,
    *,
    reaction_counts: Optional[dict] = None,
    comments: Optional[List[CommentView]] = None,
    user_reacted: Iterable = (),
    is_following: bool = False,
    resolver: CourseNameResolver = default_resolver,
) -> RoundView:
    round_ = entry.round
    return RoundView(
        **round_.model_dump(),
        author=entry.author,
        reactions=reaction_counts or zero_reaction_counts(),
        comments=comments or [],
        user_reacted=frozenset(user_reacted),
        is_following=is_following,
        source=entry.source or "following",
        reason=entry.reason,
        vs_par=calculate_vs_par(round_),
        display_name=resolver.display_name(round_.course_name, round_.club_name),
    )


def build_round_views(
    entries: Iterable[FeedEntry],
    reactions: Iterable[Reaction] = (),
    comments: Iterable[Comment] = (),
    user_reactions: Iterable[Reaction] = (),
    follow_statuses: Optional[Mapping[str, bool]] = None,
    *,
    resolver: CourseNameResolver = default_resolver,
) -> List[RoundView]:
    """One RoundView per entry, in entry order."""
    counts = group_reaction_counts(reactions)
    mine = group_user_reactions(user_reactions)
    threads = group_comments(comments)
    follow_statuses = follow_statuses or {}

    views = []
    for entry in entries:
        round_id = entry.round.id
        views.append(build_round_view(
            entry,
            reaction_counts=counts.get(round_id),
            comments=threads.get(round_id),
            user_reacted=mine.get(round_id, ()),
            is_following=bool(follow_statuses.get(entry.round.user_id, False)),
            resolver=resolver,
        ))
    return views
