"""
Tracking coordinator.

The Tracker owns the capture source, the landmark processor and the protocol
senders, runs the per-frame loop on a background thread at the configured
frame rate, smooths every landmark set and fans each snapshot out to the
senders and to any number of subscriptions without ever blocking on a slow
consumer.

Typical use:

    tracker = Tracker(Config("config.json"))
    tracker.set_camera_source(camera)
    tracker.set_processor(processor)
    tracker.set_vmc_sender(VMCSender("127.0.0.1", 39539))
    frames = tracker.subscribe()
    tracker.start()
    for snapshot in frames:
        ...
    tracker.close()
"""
import queue
import threading
import time
from typing import List, Optional

from .config import Config
from .errors import (
    SubscriptionClosed,
    TrackerCloseError,
    TrackerClosedError,
    TrackerNotRunningError,
    TrackerRunningError,
    TrackerStateError,
)
from .kalman import LandmarkSmoother
from .types import TrackerState, TrackingSnapshot

SUBSCRIBER_BUFFER_SIZE = 10

_CLOSED = object()


class Subscription:
    """
    Read side of a tracker subscription.

    Holds at most ``capacity`` undelivered snapshots; frames arriving while
    it is full are dropped for this subscriber only. Iterating yields
    snapshots until the tracker is closed.
    """

    def __init__(self, capacity=SUBSCRIBER_BUFFER_SIZE):
        self.capacity = capacity
        self.dropped = 0
        self._queue = queue.Queue()
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def get(self, block=True, timeout=None) -> TrackingSnapshot:
        """
        Return the next snapshot.

        Raises:
            queue.Empty: nothing arrived before the timeout
            SubscriptionClosed: the subscription is closed and drained
        """
        item = self._queue.get(block=block, timeout=timeout)
        if item is _CLOSED:
            # Put the marker back so every later reader is released too
            self._queue.put_nowait(_CLOSED)
            raise SubscriptionClosed("subscription is closed")
        return item

    def __iter__(self):
        while True:
            try:
                yield self.get()
            except SubscriptionClosed:
                return

    # Producer side, used by the tracker only. A single thread offers at a
    # time, so the size check cannot race with another put.

    def _offer(self, snapshot) -> bool:
        if self._closed:
            return False
        if self._queue.qsize() >= self.capacity:
            self.dropped += 1
            return False
        self._queue.put_nowait(snapshot)
        return True

    def _close(self):
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)


class Tracker:
    """Main coordinator for capture, detection, smoothing and output"""

    def __init__(self, config: Optional[Config] = None):
        """
        Args:
            config: Configuration; defaults plus environment overrides when None

        Raises:
            ConfigError: the configuration is invalid
        """
        if config is None:
            config = Config(config_file=None)
        config.validate()
        self._config = config

        # _lock guards state, dependencies and subscriptions.
        # _lifecycle_lock serializes start/stop/close, including the loop join.
        self._lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()

        self._state = TrackerState.IDLE
        self._camera = None
        self._processor = None
        self._vmc_sender = None
        self._osc_sender = None
        self._preview = None
        self._subscribers: List[Subscription] = []

        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._frame_count = 0
        self._last_error: Optional[str] = None
        self._reported_errors = {}

        factor = config.get("tracking", "smoothing_factor")
        self._smoothers = {
            "face": LandmarkSmoother(factor),
            "left_hand": LandmarkSmoother(factor),
            "right_hand": LandmarkSmoother(factor),
            "pose": LandmarkSmoother(factor),
        }

    # ------------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------------

    @property
    def config(self) -> Config:
        return self._config

    @property
    def state(self) -> TrackerState:
        with self._lock:
            return self._state

    @property
    def last_error(self) -> Optional[str]:
        """Most recent per-frame failure since start(), or None"""
        with self._lock:
            return self._last_error

    @property
    def frame_count(self) -> int:
        with self._lock:
            return self._frame_count

    # ------------------------------------------------------------------------
    # Dependency registration (idle only)
    # ------------------------------------------------------------------------

    def set_camera_source(self, camera):
        self._set_dependency("_camera", camera, "camera source")

    def set_processor(self, processor):
        self._set_dependency("_processor", processor, "processor")

    def set_vmc_sender(self, sender):
        self._set_dependency("_vmc_sender", sender, "VMC sender")

    def set_osc_sender(self, sender):
        self._set_dependency("_osc_sender", sender, "OSC sender")

    def set_preview_window(self, preview):
        """Show every captured frame in a debug window (see PreviewWindow)"""
        self._set_dependency("_preview", preview, "preview window")

    def _set_dependency(self, attr, value, label):
        with self._lock:
            if self._state is TrackerState.CLOSED:
                raise TrackerClosedError(f"cannot set {label}: tracker is closed")
            if self._state is not TrackerState.IDLE:
                raise TrackerStateError(f"cannot set {label}: tracker is {self._state}")
            setattr(self, attr, value)

    def subscribe(self) -> Subscription:
        """
        Return a new subscription receiving every snapshot from now on.

        Delivery never blocks the tracker: a full subscription misses frames.
        All subscriptions are closed by close().
        """
        with self._lock:
            if self._state is TrackerState.CLOSED:
                raise TrackerClosedError("cannot subscribe: tracker is closed")
            subscription = Subscription(SUBSCRIBER_BUFFER_SIZE)
            self._subscribers.append(subscription)
            return subscription

    # ------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------

    def start(self):
        """Begin the tracking loop in the background and return immediately"""
        with self._lifecycle_lock:
            with self._lock:
                if self._state is TrackerState.RUNNING:
                    raise TrackerRunningError()
                if self._state is TrackerState.CLOSED:
                    raise TrackerClosedError()

                self._frame_count = 0
                self._last_error = None
                self._reported_errors = {}
                for smoother in self._smoothers.values():
                    smoother.reset()

                stop_event = threading.Event()
                self._stop_event = stop_event
                self._thread = threading.Thread(
                    target=self._tracking_loop,
                    args=(stop_event,),
                    name="mpvmc-tracker",
                    daemon=True,
                )
                self._state = TrackerState.RUNNING
                self._thread.start()

    def stop(self):
        """Stop the tracking loop; returns once the loop thread has exited"""
        with self._lifecycle_lock:
            with self._lock:
                if self._state is TrackerState.CLOSED:
                    raise TrackerClosedError()
                if self._state is not TrackerState.RUNNING:
                    raise TrackerNotRunningError()
                thread = self._cancel_loop()
                self._state = TrackerState.STOPPED
            self._join(thread)

    def close(self):
        """
        Stop tracking, release every dependency and close all subscriptions.

        Teardown continues past individual failures; they are raised together
        as TrackerCloseError once everything has been released.
        """
        with self._lifecycle_lock:
            with self._lock:
                if self._state is TrackerState.CLOSED:
                    raise TrackerClosedError()
                thread = None
                if self._state is TrackerState.RUNNING:
                    thread = self._cancel_loop()
                self._state = TrackerState.CLOSED
            if thread is not None:
                self._join(thread)

            with self._lock:
                dependencies = (
                    ("camera", self._camera),
                    ("processor", self._processor),
                    ("VMC sender", self._vmc_sender),
                    ("OSC sender", self._osc_sender),
                    ("preview window", self._preview),
                )
                subscribers, self._subscribers = self._subscribers, []

            errors = []
            for label, dependency in dependencies:
                if dependency is None:
                    continue
                try:
                    dependency.close()
                except Exception as e:
                    error = RuntimeError(f"closing {label}: {e}")
                    error.__cause__ = e
                    errors.append(error)

            for subscription in subscribers:
                subscription._close()

        if errors:
            raise TrackerCloseError(errors)

    def _cancel_loop(self):
        """Signal the loop to exit. Caller holds _lock."""
        self._stop_event.set()
        thread, self._thread = self._thread, None
        return thread

    @staticmethod
    def _join(thread):
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.state is not TrackerState.CLOSED:
            self.close()

    # ------------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------------

    def _tracking_loop(self, stop_event):
        """Run one frame per tick until stop_event is set"""
        period = 1.0 / self._config.get("camera", "fps")
        next_tick = time.monotonic() + period

        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            self._process_frame(stop_event)

            next_tick += period
            now = time.monotonic()
            if next_tick <= now:
                # Skip ticks missed by a slow frame instead of bursting
                next_tick += (int((now - next_tick) / period) + 1) * period

    def _process_frame(self, stop_event):
        """Capture, detect, smooth and fan out a single frame"""
        with self._lock:
            camera = self._camera
            processor = self._processor
            vmc_sender = self._vmc_sender
            osc_sender = self._osc_sender
            preview = self._preview

        if camera is not None and processor is not None:
            try:
                frame, width, height = camera.read()
            except Exception as e:
                self._report("camera read", e)
                return
            if preview is not None:
                try:
                    preview.show(frame, width, height)
                except Exception as e:
                    self._report("preview", e)
            try:
                snapshot = processor.process(stop_event, frame, width, height)
            except Exception as e:
                self._report("processing", e)
                return
            if snapshot is None:
                return
        else:
            # Placeholder frames keep the pipeline testable without hardware
            snapshot = TrackingSnapshot()

        self._stabilize(snapshot)

        with self._lock:
            self._frame_count += 1
            snapshot.frame_number = self._frame_count
        snapshot.timestamp = time.time()

        for label, sender in (("VMC send", vmc_sender), ("OSC send", osc_sender)):
            if sender is None:
                continue
            try:
                sender.send(snapshot)
            except Exception as e:
                self._report(label, e)

        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription._offer(snapshot)

    def _stabilize(self, snapshot):
        """Drop disabled channels and smooth the remaining landmark sets"""
        tracking = self._config.get("tracking")
        if not tracking.get("enable_face", True):
            snapshot.face = None
        if not tracking.get("enable_hands", True):
            snapshot.left_hand = None
            snapshot.right_hand = None
        if not tracking.get("enable_pose", True):
            snapshot.pose = None

        for channel in ("face", "left_hand", "right_hand", "pose"):
            part = getattr(snapshot, channel)
            if part is not None:
                part.landmarks = self._smoothers[channel].smooth(part.landmarks)

    def _report(self, operation, error):
        """Record a per-frame failure; print it only when the message changes"""
        message = f"{operation} failed: {error}"
        with self._lock:
            self._last_error = message
            if self._reported_errors.get(operation) == message:
                return
            self._reported_errors[operation] = message
        print(f"⚠️  {message}")
