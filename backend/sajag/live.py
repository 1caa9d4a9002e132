"""
Live widgets for the dashboard: the recent field-updates feed and the
active (ongoing) trainings monitor. Each one owns its subscription: it is
created by `start()` and released by `close()`, nothing is shared between
instances.
"""
import logging
import threading

from flask import current_app, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from sqlalchemy.orm import joinedload

from sajag.extensions import db, socketio
from sajag.models import TrainingUpdate, TrainingProgram, TrainingStatusEnum
from sajag.realtime import INSERT, ALL_EVENTS, get_change_feed
from utils.serialization import to_dict, update_to_dict

logger = logging.getLogger(__name__)

DEFAULT_CAP = 5


def load_recent_updates(limit=DEFAULT_CAP):
    updates = (
        TrainingUpdate.query
        .options(joinedload(TrainingUpdate.training), joinedload(TrainingUpdate.poster))
        .order_by(TrainingUpdate.created_at.desc())
        .limit(limit)
        .all()
    )
    return [update_to_dict(u, include_training=True) for u in updates]


def load_update(update_id):
    update = db.session.get(TrainingUpdate, update_id)
    if update is None:
        return None
    return update_to_dict(update, include_training=True)


def load_active_trainings():
    trainings = (
        TrainingProgram.query
        .filter(TrainingProgram.status == TrainingStatusEnum.ongoing)
        .order_by(TrainingProgram.start_date.desc())
        .all()
    )
    return [to_dict(t) for t in trainings]


class RecentUpdatesFeed:
    """
    Newest-first list of at most `cap` training updates.

    On every INSERT into training_updates the full record (with program
    title and location) is fetched again by id and put at the front.
    Records are de-duplicated by id, so an update seen both in the initial
    load and through the feed shows up once.
    """

    def __init__(self, feed, fetch_recent=load_recent_updates, fetch_one=load_update,
                 cap=DEFAULT_CAP, listener=None):
        self.feed = feed
        self.fetch_recent = fetch_recent
        self.fetch_one = fetch_one
        self.cap = cap
        self.listener = listener
        self.new_count = 0
        self._updates = []
        self._subscription = None
        self._lock = threading.Lock()

    @property
    def updates(self):
        with self._lock:
            return list(self._updates)

    @property
    def active(self):
        return self._subscription is not None and self._subscription.active

    def start(self):
        if self.active:
            return self
        # subscribe before loading so nothing published in between is lost
        self._subscription = self.feed.subscribe("training_updates", self._on_insert, event=INSERT)
        initial = self.fetch_recent(self.cap) or []
        with self._lock:
            self._merge(self._updates + list(initial))
        return self

    def _merge(self, records):
        # caller holds self._lock
        seen = set()
        merged = []
        for record in records:
            if record["id"] in seen:
                continue
            seen.add(record["id"])
            merged.append(record)
        self._updates = merged[:self.cap]

    def _on_insert(self, change):
        update_id = change.new.get("id")
        if update_id is None:
            return
        record = self.fetch_one(update_id)
        if record is None:
            return
        with self._lock:
            self._merge([record] + self._updates)
            self.new_count += 1
        if self.listener:
            self.listener(record)

    def clear_new_count(self):
        with self._lock:
            self.new_count = 0

    def close(self):
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc_info):
        self.close()


class ActiveTrainingsMonitor:
    """Ongoing programs, reloaded whenever an ongoing program changes."""

    def __init__(self, feed, fetch_active=load_active_trainings, listener=None):
        self.feed = feed
        self.fetch_active = fetch_active
        self.listener = listener
        self.trainings = []
        self._subscription = None

    def start(self):
        if self._subscription is None:
            self._subscription = self.feed.subscribe(
                "training_programs", self._on_change,
                event=ALL_EVENTS, filter=("status", TrainingStatusEnum.ongoing.value),
            )
            self.refresh()
        return self

    def refresh(self):
        self.trainings = list(self.fetch_active() or [])
        return self.trainings

    def _on_change(self, change):
        self.refresh()
        if self.listener:
            self.listener(self.trainings)

    def close(self):
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc_info):
        self.close()


# One RecentUpdatesFeed and one ActiveTrainingsMonitor per socket
# connection, both closed on disconnect.

def _live_sessions():
    return current_app.extensions.setdefault("live_sessions", {})


@socketio.on("connect")
def on_connect(auth=None):
    try:
        verify_jwt_in_request()
    except Exception:
        logger.info("Rejected live connection without a valid token")
        return False

    sid = request.sid
    feed = get_change_feed()
    recent = RecentUpdatesFeed(
        feed,
        cap=current_app.config.get("RECENT_UPDATES_CAP", DEFAULT_CAP),
        listener=lambda record: socketio.emit("training_update", record, to=sid),
    )
    monitor = ActiveTrainingsMonitor(
        feed,
        listener=lambda trainings: socketio.emit("active_trainings", trainings, to=sid),
    )
    _live_sessions()[sid] = (recent.start(), monitor.start())
    logger.debug("Live session %s opened for profile %s", sid, get_jwt_identity())

    socketio.emit("recent_updates", recent.updates, to=sid)
    socketio.emit("active_trainings", monitor.trainings, to=sid)


@socketio.on("clear_new_count")
def on_clear_new_count():
    widgets = _live_sessions().get(request.sid)
    if widgets:
        widgets[0].clear_new_count()


@socketio.on("disconnect")
def on_disconnect(*args):
    widgets = _live_sessions().pop(request.sid, None)
    if widgets:
        for widget in widgets:
            widget.close()
        logger.debug("Live session %s closed", request.sid)
