"""
JSON-over-OSC landmark sender.

Publishes raw landmark sets as compact JSON strings to plain OSC listeners.
Network writes happen on a background thread so a slow network never blocks
the tracking loop.
"""
import json
import queue
import threading

from pythonosc import udp_client

from .errors import SenderError
from .landmark_utils import get_bounds_with_values, landmarks_to_dicts

STATUS_ADDRESS = "/mp/status"


def compact_json(data):
    """Serialize without whitespace to keep datagrams small"""
    return json.dumps(data, separators=(',', ':'))


class ThreadedOSCSender:
    """Threaded OSC sender to prevent network operations from blocking frame processing"""

    def __init__(self, client, queue_size=10):
        self.client = client
        self.message_queue = queue.Queue(maxsize=queue_size)
        self.dropped = 0
        self.running = True
        self.thread = threading.Thread(target=self._send_messages, name="mpvmc-osc", daemon=True)
        self.thread.start()

    def _send_messages(self):
        """Background thread to send OSC messages"""
        while self.running or not self.message_queue.empty():
            try:
                # Timeout lets the loop notice stop()
                address, message = self.message_queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self.client.send_message(address, message)
            except Exception as e:
                print(f"⚠️  OSC send error on {address}: {e}")
            finally:
                self.message_queue.task_done()

    def send_message(self, address, message):
        """Queue a message; dropped when the queue is full"""
        if not self.running:
            return
        try:
            self.message_queue.put_nowait((address, message))
        except queue.Full:
            self.dropped += 1

    def stop(self, timeout=1.0):
        """Stop the sender thread after flushing queued messages"""
        self.running = False
        if self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)


class LandmarkOSCSender:
    """Sender that publishes each snapshot's landmark sets as JSON OSC messages"""

    def __init__(self, host, port, queue_size=10, client=None):
        """
        Args:
            host: OSC listener host
            port: OSC listener port
            queue_size: Messages buffered before new ones are dropped
            client: Optional python-osc client, mainly for tests
        """
        if client is None:
            try:
                client = udp_client.SimpleUDPClient(host, port)
            except (OSError, OverflowError, ValueError) as e:
                raise SenderError(f"creating OSC client for {host}:{port}: {e}") from e
        self.host = host
        self.port = port
        self._threaded = ThreadedOSCSender(client, queue_size=queue_size)
        self._closed = False

    @property
    def dropped(self):
        return self._threaded.dropped

    def send(self, snapshot):
        if self._closed:
            return

        def payload(landmarks, landmark_type):
            return compact_json({
                "timestamp": snapshot.timestamp,
                "frame": snapshot.frame_number,
                "landmarks": landmarks_to_dicts(landmarks, landmark_type),
            })

        if snapshot.face is not None:
            self._threaded.send_message("/face/raw", payload(snapshot.face.landmarks, "face"))
        if snapshot.left_hand is not None:
            self._threaded.send_message("/hand/left/raw", payload(snapshot.left_hand.landmarks, "left_hand"))
        if snapshot.right_hand is not None:
            self._threaded.send_message("/hand/right/raw", payload(snapshot.right_hand.landmarks, "right_hand"))
        if snapshot.pose is not None:
            self._threaded.send_message("/pose/raw", payload(snapshot.pose.landmarks, "pose"))
            self._threaded.send_message("/pose/raw_bounds", compact_json(get_bounds_with_values(snapshot.pose.landmarks)))

        status = 1 if snapshot.has_detections() else 0
        self._threaded.send_message(STATUS_ADDRESS, compact_json({"status": status}))

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._threaded.stop()
