"""
Resumable study/break countdown kept in the local cache.

The persisted ``time_left`` is only true as of ``last_tick``. While the
timer is active, ``load`` subtracts the wall-clock time elapsed since then,
so a reload or a run of skipped ticks resumes at the right second.

``save`` deliberately publishes nothing. Other processes watching the
cache learn about the write from the cache itself; a notification sent
back to the writer would make it reload and save again, forever.
"""

import logging
import time
from dataclasses import replace

from .consts import TIMER_KEY, TIMER_PHASES
from .errors import DeserializationError
from .schemas import TimerSchema, TimerSettings, TimerState, clamp_sessions_target

logger = logging.getLogger(__name__)


class TimerStore:
    """
    Args:
        cache (LocalCache): Where the state is kept.
        default_settings (TimerSettings): Durations used for a fresh state.
        clock (callable): Returns the current epoch time in seconds.
    """

    def __init__(self, cache, default_settings, clock=time.time):
        self.cache = cache
        self.default_settings = default_settings
        self.clock = clock
        self.schema = TimerSchema(default_settings)

    def default_state(self):
        settings = replace(self.default_settings)
        return TimerState(
            phase="study",
            time_left=settings.study,
            is_active=False,
            sessions_completed=0,
            settings=settings,
            last_tick=self.clock(),
        )

    def _read(self):
        raw = self.cache.get(TIMER_KEY)
        if not raw:
            return None
        try:
            return self.schema.decode_one(raw)
        except DeserializationError as exc:
            logger.warning("Stored timer state is corrupt, starting fresh: %s", exc)
            return None

    def _reconcile(self):
        """
        Read the stored state and apply the time elapsed since ``last_tick``.

        Returns:
            tuple: (state, elapsed whole seconds consumed, True if the
            countdown ran out while nobody was watching).
        """
        saved = self._read()
        if saved is None:
            return self.default_state(), 0, False
        if not saved.is_active:
            return saved, 0, False

        elapsed = max(0, int(self.clock() - saved.last_tick))
        time_left = max(0, saved.time_left - elapsed)
        state = replace(saved, time_left=time_left, is_active=time_left > 0)
        return state, elapsed, time_left == 0

    def load(self):
        """Return the current state, corrected for elapsed wall-clock time."""
        state, _, _ = self._reconcile()
        return state

    def save(self, state):
        """Persist ``state`` with ``last_tick`` stamped to now; returns the stamped state."""
        stamped = replace(state, last_tick=self.clock())
        self._write(stamped)
        return stamped

    def _write(self, state):
        try:
            self.cache.set(TIMER_KEY, self.schema.encode_one(state))
        except OSError:
            logger.exception("Could not persist timer state")

    # --- Controls ---

    def tick(self):
        """
        Periodic callback. Reconciles, finishes the phase when it ran out, persists.

        ``last_tick`` advances by the whole seconds consumed rather than to
        now, so the sub-second remainder is carried into the next tick.
        """
        state, elapsed, expired = self._reconcile()
        if expired:
            return self.save(self._next_phase(state))
        if state.is_active:
            state = replace(state, last_tick=state.last_tick + elapsed)
            self._write(state)
        return state

    def start(self):
        state = self.load()
        if state.time_left == 0:
            state = replace(state, time_left=state.settings.duration(state.phase))
        return self.save(replace(state, is_active=True))

    def pause(self):
        return self.save(replace(self.load(), is_active=False))

    def reset(self):
        state = self.load()
        return self.save(
            replace(state, is_active=False, time_left=state.settings.duration(state.phase))
        )

    def skip(self):
        """Finish the current phase now."""
        return self.save(self._next_phase(self.load()))

    def update_settings(self, study=None, rest=None, sessions_target=None):
        """
        Change the phase durations (seconds, at least 1) and the sessions target.

        Stops the timer and restarts the current phase at its new duration.
        """
        state = self.load()
        settings = TimerSettings(
            study=max(1, int(study)) if study is not None else state.settings.study,
            rest=max(1, int(rest)) if rest is not None else state.settings.rest,
        )
        target = state.sessions_target
        if sessions_target is not None:
            target = clamp_sessions_target(sessions_target)
        return self.save(
            replace(
                state,
                settings=settings,
                sessions_target=target,
                is_active=False,
                time_left=settings.duration(state.phase),
            )
        )

    @staticmethod
    def _next_phase(state):
        following = TIMER_PHASES[1] if state.phase == "study" else TIMER_PHASES[0]
        completed = state.sessions_completed + (1 if state.phase == "study" else 0)
        return replace(
            state,
            phase=following,
            is_active=False,
            sessions_completed=completed,
            time_left=state.settings.duration(following),
        )
