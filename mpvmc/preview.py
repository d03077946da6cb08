"""
Debug preview window.

Shows the captured camera frames in an OpenCV window. All HighGUI calls run
on one dedicated thread; the tracking loop hands frames over through a
single-slot queue and never waits for the window to repaint.
"""
import queue
import threading

import cv2
import numpy as np

from .errors import PreviewError

DEFAULT_TITLE = "mp-vmc Preview"


class PreviewWindow:
    """OpenCV window fed with RGB frames from the tracking loop"""

    def __init__(self, title=DEFAULT_TITLE):
        """
        Args:
            title: Window title

        Raises:
            PreviewError: OpenCV could not create the window, e.g. a
                headless build or no display available
        """
        self.title = title
        self.dropped = 0
        self._frames = queue.Queue(maxsize=1)
        self._closing = threading.Event()
        self._quit = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False

        self._ready = threading.Event()
        self._init_error = None
        self._thread = threading.Thread(target=self._preview_loop, name="mpvmc-preview", daemon=True)
        self._thread.start()
        self._ready.wait()

        if self._init_error is not None:
            self._thread.join()
            self._closed = True
            raise PreviewError(f"creating preview window: {self._init_error}") from self._init_error

    @property
    def quit_requested(self):
        """True once 'q' was pressed in the window"""
        return self._quit.is_set()

    def _preview_loop(self):
        try:
            cv2.namedWindow(self.title)
        except cv2.error as e:
            self._init_error = e
            self._ready.set()
            return
        self._ready.set()

        try:
            while not self._closing.is_set():
                try:
                    image = self._frames.get(timeout=0.1)
                except queue.Empty:
                    continue
                cv2.imshow(self.title, image)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    self._quit.set()
        except cv2.error as e:
            print(f"⚠️  Preview window error: {e}")
        finally:
            try:
                cv2.destroyWindow(self.title)
            except cv2.error as e:
                print(f"⚠️  Preview window error: {e}")

    def show(self, frame, width, height):
        """
        Queue an RGB24 frame for display.

        Empty or mis-sized frames are ignored. When the window still has a
        frame pending the new one is dropped.
        """
        if self._closing.is_set() or not frame or width <= 0 or height <= 0:
            return
        if len(frame) != width * height * 3:
            return

        rgb = np.frombuffer(frame, dtype=np.uint8).reshape(height, width, 3)
        image = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
        try:
            self._frames.put_nowait(image)
        except queue.Full:
            self.dropped += 1

    def close(self):
        """Destroy the window and stop the preview thread"""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._closing.set()
        if self._thread is not threading.current_thread():
            self._thread.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
