"""
In-process change feed.

Routes publish row changes after their commit succeeds; consumers
subscribe per table (optionally filtered on one column) and get back a
Subscription handle they must close when they are done with it. The feed
lives on ``app.extensions["change_feed"]``, one per application.
"""
import logging
import threading

from flask import current_app

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
ALL_EVENTS = "*"


class ChangeEvent:
    __slots__ = ("table", "event", "new", "old")

    def __init__(self, table, event, new, old=None):
        self.table = table
        self.event = event
        self.new = new or {}
        self.old = old or {}

    def __repr__(self):
        return f"<ChangeEvent {self.event} {self.table} id={self.new.get('id')}>"


class Subscription:
    def __init__(self, feed, table, callback, event=ALL_EVENTS, filter=None):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.event = event
        self.filter = filter
        self.active = True

    def matches(self, change):
        if change.table != self.table:
            return False
        if self.event != ALL_EVENTS and change.event != self.event:
            return False
        if self.filter:
            column, value = self.filter
            return change.new.get(column) == value or change.old.get(column) == value
        return True

    def close(self):
        if self.active:
            self.active = False
            self.feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class ChangeFeed:
    def __init__(self, app=None):
        self._subscriptions = []
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions["change_feed"] = self

    def subscribe(self, table, callback, event=ALL_EVENTS, filter=None):
        """
        Call `callback(change)` for every matching change on `table`.

        event: INSERT, UPDATE or "*".
        filter: optional (column, value); matches when the new or the old
        row has that value.
        """
        subscription = Subscription(self, table, callback, event=event, filter=filter)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def subscriber_count(self, table=None):
        with self._lock:
            return sum(1 for s in self._subscriptions if table is None or s.table == table)

    def publish(self, table, event, new, old=None):
        change = ChangeEvent(table, event, new, old)
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]

        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.callback(change)
                delivered += 1
            except Exception:
                # one broken listener must not break the publishing request
                logger.exception("Change listener failed for %r", change)
        return delivered


def get_change_feed(app=None):
    app = app or current_app
    return app.extensions["change_feed"]


def publish_change(table, event, new, old=None):
    return get_change_feed().publish(table, event, new, old)
