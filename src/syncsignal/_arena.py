"""Data arena — plain Python structures that hold all signal state.

SyncSignal instances are thin handles holding an _id; everything they
own lives here, keyed by that id. Entries live as long as the handle:
a finalizer on the handle forgets them. Parent/child edges are id
relations; a derived signal is kept alive only by the edge listener it
registers on each of its parents.
"""

import itertools
import weakref

# Register state
values: dict[int, object] = {}
revisions: dict[int, int] = {}
revision_ids: dict[int, str] = {}
frozen: dict[int, bool] = {}
disposed: dict[int, bool] = {}
type_tags: dict[int, type | None] = {}  # strict signals only
strict: dict[int, bool] = {}

# Collaborators injected at construction
schedulers: dict[int, object] = {}  # sig_id -> NotificationScheduler
id_sources: dict[int, object] = {}
error_handlers: dict[int, object] = {}  # sig_id -> callable | absent

# Dependency graph
children: dict[int, list[int]] = {}  # parent_id -> derived ids, insertion order
parents: dict[int, tuple[int, ...]] = {}  # derived_id -> source ids
edge_unsubscribers: dict[int, list] = {}  # derived_id -> unsubscribe fns on parents

# Live handles, for introspection. Weak: never keeps a signal alive.
handles: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

_tables = (
    values, revisions, revision_ids, frozen, disposed, type_tags, strict,
    schedulers, id_sources, error_handlers, children, parents, edge_unsubscribers,
)

# ID generation — itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def forget(sig_id: int) -> None:
    """Drop every entry for sig_id. Idempotent."""
    for table in _tables:
        table.pop(sig_id, None)
