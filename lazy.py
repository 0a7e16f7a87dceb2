"""
Pull-based lazy sequences built on step functions.

A step function has the shape step(state, cursor) -> (next_cursor, value),
or None once the sequence is exhausted. A (step, state, cursor) triple
describes a whole sequence; nothing is produced until somebody pulls.
"""

from itertools import islice


class LazySequence:
    """
    A (step, state, cursor) triple with iteration and chaining on top.

    Iterating yields (cursor, value) pairs by repeatedly calling
    step(state, cursor). The triple itself is never modified, so a sequence is
    restartable exactly when its underlying producer is.
    """
    __slots__ = ("step", "state", "cursor")

    def __init__(self, step, state=None, cursor=None):
        if not callable(step):
            raise TypeError("step must be callable")
        self.step = step
        self.state = state
        self.cursor = cursor

    # --------- chainable adapters (lazy) ----------
    def filter(self, pred):
        return lazy_filter(pred, self)

    def transform(self, fn):
        return lazy_transform(fn, self)

    # --------- pulling ----------
    def advance(self, cursor):
        """Run one step from cursor; None when exhausted"""
        return self.step(self.state, cursor)

    def __iter__(self):
        step, state, cursor = self.step, self.state, self.cursor
        while True:
            pair = step(state, cursor)
            if pair is None:
                return
            cursor = pair[0]
            yield pair

    def values(self):
        for _, value in self:
            yield value

    def to_list(self):
        return list(self)

    def first(self, default=None):
        """Return the first (cursor, value) pair, or default if empty"""
        for pair in self:
            return pair
        return default

    def take(self, n):
        """Return at most n pairs without pulling further"""
        return list(islice(self, int(n)))

    def count(self):
        count = 0
        for _ in self:
            count += 1
        return count

    def __repr__(self):
        name = getattr(self.step, "__name__", repr(self.step))
        return f"LazySequence({name}, cursor={self.cursor!r})"


def _source(step, state, cursor):
    if isinstance(step, LazySequence):
        return step.step, step.state, step.cursor
    return step, state, cursor


# --------- producers ----------
def _count_down_step(value, i):
    if i > 0:
        return i - 1, value
    return None


def count_down(value, n=1):
    """Yield (n-1, value), (n-2, value) ... (0, value)"""
    return LazySequence(_count_down_step, value, 1 if n is None else n)


def _indexed_step(seq, i):
    i += 1
    if i < len(seq):
        return i, seq[i]
    return None


def indexed(sequence):
    """Yield (index, item) over a sequence, starting at index 0"""
    return LazySequence(_indexed_step, sequence, -1)


# Start cursor for items_of; mappings may use None as a key.
ITEMS_START = object()


def _items_step(state, key):
    mapping, keys, positions = state
    nxt = 0 if key is ITEMS_START else positions[key] + 1
    if nxt < len(keys):
        k = keys[nxt]
        return k, mapping[k]
    return None


def items_of(mapping):
    """Yield (key, value) over a mapping in its current key order"""
    keys = tuple(mapping)
    positions = {k: i for i, k in enumerate(keys)}
    return LazySequence(_items_step, (mapping, keys, positions), ITEMS_START)


def _iterable_step(it, i):
    for value in it:
        return i + 1, value
    return None


def from_iterable(iterable):
    """
    Wrap an arbitrary iterable; cursors are positions.

    The state is the live iterator and every step advances it, so unlike the
    other producers this one mutates its state and is single pass only.
    """
    return LazySequence(_iterable_step, iter(iterable), -1)


# --------- adapters ----------
def _filter_step(s, i):
    pred, step, state = s
    while True:
        pair = step(state, i)
        if pair is None:
            return None
        i, value = pair
        if pred(value):
            return pair


def lazy_filter(pred, step, state=None, cursor=None):
    """
    Keep only values for which pred(value) is true.

    step may be a LazySequence or a raw step function with its state and start
    cursor. Each candidate is tested exactly once, in source order.
    """
    step, state, cursor = _source(step, state, cursor)
    return LazySequence(_filter_step, (pred, step, state), cursor)


def _transform_step(s, i):
    fn, step, state = s
    pair = step(state, i)
    if pair is None:
        return None
    return pair[0], fn(pair[1])


def lazy_transform(fn, step, state=None, cursor=None):
    """Map fn over values, keeping the source cursors"""
    step, state, cursor = _source(step, state, cursor)
    return LazySequence(_transform_step, (fn, step, state), cursor)
