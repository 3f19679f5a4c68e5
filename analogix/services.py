"""Build the stores for the running application."""

import os
import secrets

from flask import current_app, session

from .cache import FileCache, MemoryCache, ScopedCache
from .extensions import bus, db
from .models import TABLES
from .remote import SQLAlchemyRemote
from .schemas import TimerSettings
from .stores import DeadlineStore, EventStore, StatsStore, SubjectStore
from .timer import TimerStore
from .utils import current_user_id

CACHE_EXTENSION = "analogix.cache"


def init_cache(app):
    """Attach the local cache configured by LOCAL_CACHE_PATH to ``app``."""
    path = app.config.get("LOCAL_CACHE_PATH")
    if path:
        if not os.path.isabs(path):
            path = os.path.join(app.instance_path, path)
        cache = FileCache(path)
    else:
        cache = MemoryCache()
    app.extensions[CACHE_EXTENSION] = cache
    return cache


def client_scope():
    """
    Name of the local cache partition of the current client.

    A signed-in user gets one partition keyed by their user id. Anonymous
    visitors get a random client id held in their session.
    """
    user_id = current_user_id()
    if user_id is not None:
        return f"user:{user_id}"
    if "client_id" not in session:
        session["client_id"] = secrets.token_hex(16)
    return f"client:{session['client_id']}"


def get_cache():
    """Local cache of the current client."""
    return ScopedCache(current_app.extensions[CACHE_EXTENSION], client_scope())


def get_remote():
    return SQLAlchemyRemote(db, TABLES)


def get_event_store():
    return EventStore(get_remote(), get_cache(), current_user_id, bus)


def get_deadline_store():
    return DeadlineStore(get_remote(), get_cache(), current_user_id, bus)


def get_stats_store():
    return StatsStore(get_remote(), get_cache(), current_user_id, bus)


def get_subject_store():
    return SubjectStore(get_cache(), bus)


def get_timer_store():
    settings = TimerSettings(
        study=current_app.config["TIMER_STUDY_SECONDS"],
        rest=current_app.config["TIMER_BREAK_SECONDS"],
    )
    return TimerStore(get_cache(), settings)
