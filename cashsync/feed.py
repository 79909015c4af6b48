"""In-process live feed of each owner's expense snapshot.

A subscriber gets the owner's full record set once on subscribe and again
after every change published for that owner. Snapshots are lists of plain
dicts so they can cross threads after the publishing request's session is
gone.

Every load takes a sequence number before it reads, and a subscription never
delivers a snapshot older than one it already delivered, so a slow load can't
overwrite a newer one that finished first.
"""
import itertools
import threading
from collections import defaultdict


class Subscription:
    def __init__(self, feed, owner_id, callback):
        self.feed = feed
        self.owner_id = owner_id
        self.callback = callback
        self.active = True
        self.last_seq = 0
        # reentrant so a callback may unsubscribe itself
        self._lock = threading.RLock()

    def deliver(self, snapshot, seq):
        with self._lock:
            if not self.active or seq <= self.last_seq:
                return False
            self.last_seq = seq
            self.callback(snapshot)
            return True

    def unsubscribe(self):
        with self._lock:
            if not self.active:
                return
            self.active = False
        self.feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()


class ExpenseFeed:
    def __init__(self, app=None, loader=None):
        self._loader = loader
        self._subscribers = defaultdict(list)
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        if app is not None:
            self.init_app(app, loader)

    def init_app(self, app, loader=None):
        if loader is not None:
            self._loader = loader
        app.extensions["expense_feed"] = self

    def _load(self, owner_id):
        with self._lock:
            seq = next(self._seq)
        return self._loader(owner_id), seq

    def subscribe(self, owner_id, callback) -> Subscription:
        subscription = Subscription(self, owner_id, callback)
        with self._lock:
            self._subscribers[owner_id].append(subscription)
        subscription.deliver(*self._load(owner_id))
        return subscription

    def subscriber_count(self, owner_id):
        with self._lock:
            return len(self._subscribers.get(owner_id, ()))

    def publish(self, owner_id):
        with self._lock:
            targets = list(self._subscribers.get(owner_id, ()))
        if not targets:
            return 0
        snapshot, seq = self._load(owner_id)
        for subscription in targets:
            subscription.deliver(snapshot, seq)
        return len(targets)

    def _remove(self, subscription):
        with self._lock:
            subscribers = self._subscribers.get(subscription.owner_id)
            if subscribers and subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.owner_id, None)
