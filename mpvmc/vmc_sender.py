"""
VMC (Virtual Motion Capture) protocol sender.

VMC is the OSC-based protocol spoken by VTuber applications. Each snapshot
becomes a sequence of OSC datagrams written to a connected UDP socket.
"""
import socket
import threading

from .errors import SenderError
from .osc_codec import build_osc_message
from .types import HAND_LANDMARK_COUNT

DEFAULT_VMC_ADDRESS = "127.0.0.1"
DEFAULT_VMC_PORT = 39539

BONE_POS_ADDRESS = "/VMC/Ext/Bone/Pos"
BLEND_VAL_ADDRESS = "/VMC/Ext/Blend/Val"
BLEND_APPLY_ADDRESS = "/VMC/Ext/Blend/Apply"

HEAD_BONE = "Head"

# (bone suffix, MediaPipe hand landmark index). Fingertips (4, 8, 12, 16, 20)
# have no rigid bone and are not sent.
HAND_BONE_LANDMARKS = (
    ("Hand", 0),
    ("ThumbProximal", 1),
    ("ThumbIntermediate", 2),
    ("ThumbDistal", 3),
    ("IndexProximal", 5),
    ("IndexIntermediate", 6),
    ("IndexDistal", 7),
    ("MiddleProximal", 9),
    ("MiddleIntermediate", 10),
    ("MiddleDistal", 11),
    ("RingProximal", 13),
    ("RingIntermediate", 14),
    ("RingDistal", 15),
    ("LittleProximal", 17),
    ("LittleIntermediate", 18),
    ("LittleDistal", 19),
)


def bone_pos_message(bone_name, position, rotation=(0.0, 0.0, 0.0, 1.0)):
    """Build a /VMC/Ext/Bone/Pos message from a position and an (x, y, z, w) rotation"""
    px, py, pz = position
    rx, ry, rz, rw = rotation
    return build_osc_message(
        BONE_POS_ADDRESS,
        bone_name,
        float(px), float(py), float(pz),
        float(rx), float(ry), float(rz), float(rw),
    )


class VMCSender:
    """Sends tracking snapshots to one VMC endpoint over UDP"""

    def __init__(self, address=DEFAULT_VMC_ADDRESS, port=DEFAULT_VMC_PORT):
        """
        Resolve the endpoint and connect a UDP socket to it.

        Raises:
            SenderError: the address cannot be resolved or connected
        """
        self._lock = threading.Lock()
        self._sock = None
        self._enabled = False
        self.address = address
        self.port = port

        try:
            addr_infos = socket.getaddrinfo(address, port, type=socket.SOCK_DGRAM)
        except (OSError, OverflowError, UnicodeError) as e:
            raise SenderError(f"resolving VMC address {address}:{port}: {e}") from e

        last_error = None
        for family, sock_type, proto, _canonname, sockaddr in addr_infos:
            try:
                sock = socket.socket(family, sock_type, proto)
            except OSError as e:
                last_error = e
                continue
            try:
                sock.connect(sockaddr)
            except OSError as e:
                sock.close()
                last_error = e
                continue
            self._sock = sock
            break

        if self._sock is None:
            raise SenderError(f"connecting to VMC endpoint {address}:{port}: {last_error}") from last_error
        self._enabled = True

    @property
    def enabled(self):
        with self._lock:
            return self._enabled and self._sock is not None

    def send(self, snapshot):
        """
        Transmit a snapshot as VMC messages.

        Face data produces the head bone, one blend value per blend shape
        (sorted by name) and a single blend apply signal. Each hand with a
        full landmark set produces 16 bone messages. The first failed write
        raises SenderError; messages already written stay sent.
        """
        with self._lock:
            if not self._enabled or self._sock is None:
                return

            face = snapshot.face
            if face is not None:
                pos = face.head_position
                rot = face.head_rotation
                self._write(
                    bone_pos_message(HEAD_BONE, (pos.x, pos.y, pos.z), (rot.x, rot.y, rot.z, rot.w)),
                    "head bone",
                )
                for name in sorted(face.blend_shapes):
                    self._write(
                        build_osc_message(BLEND_VAL_ADDRESS, name, float(face.blend_shapes[name])),
                        f"blend shape {name}",
                    )
                self._write(build_osc_message(BLEND_APPLY_ADDRESS), "blend apply")

            if snapshot.left_hand is not None:
                self._send_hand_bones("Left", snapshot.left_hand)
            if snapshot.right_hand is not None:
                self._send_hand_bones("Right", snapshot.right_hand)

    def _send_hand_bones(self, side, hand):
        if len(hand.landmarks) < HAND_LANDMARK_COUNT:
            return
        for suffix, idx in HAND_BONE_LANDMARKS:
            point = hand.landmarks[idx].point
            bone_name = side + suffix
            self._write(bone_pos_message(bone_name, (point.x, point.y, point.z)), f"{bone_name} bone")

    def _write(self, message, what):
        try:
            self._sock.send(message)
        except OSError as e:
            raise SenderError(f"sending {what}: {e}") from e

    def close(self):
        """Disable the sender and release the socket. Safe to call repeatedly."""
        with self._lock:
            self._enabled = False
            sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.close()
            except OSError as e:
                raise SenderError(f"closing VMC socket: {e}") from e

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
