from __future__ import annotations

import json
import socket
import threading
from typing import Iterator

import pytest
from pythonosc.osc_message import OscMessage

from mpvmc.errors import SenderError
from mpvmc.osc_sender import LandmarkOSCSender, ThreadedOSCSender, compact_json
from mpvmc.types import FaceData, Landmark, Point3D, PoseData, TrackingSnapshot


@pytest.fixture
def receiver() -> Iterator[socket.socket]:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(1.0)
    yield sock
    sock.close()


def _collect_until_status(sock: socket.socket) -> dict[str, object]:
    messages: dict[str, object] = {}
    while "/mp/status" not in messages:
        data, _addr = sock.recvfrom(65536)
        msg = OscMessage(data)
        messages[msg.address] = json.loads(msg.params[0])
    return messages


def test_compact_json_has_no_whitespace() -> None:
    assert compact_json({"a": [1, 2], "b": "c"}) == '{"a":[1,2],"b":"c"}'


def test_landmark_sender_publishes_json_payloads(receiver: socket.socket) -> None:
    _host, port = receiver.getsockname()
    sender = LandmarkOSCSender("127.0.0.1", port, queue_size=16)
    landmarks = [Landmark(point=Point3D(0.1 * i, 0.2, 0.3), visibility=0.5) for i in range(3)]
    snapshot = TrackingSnapshot(
        timestamp=12.5,
        frame_number=4,
        face=FaceData(landmarks=landmarks),
        pose=PoseData(landmarks=landmarks),
    )
    try:
        sender.send(snapshot)
        messages = _collect_until_status(receiver)
    finally:
        sender.close()

    face = messages["/face/raw"]
    assert face["frame"] == 4
    assert face["timestamp"] == 12.5
    assert [lm["id"] for lm in face["landmarks"]] == [0, 1, 2]
    assert face["landmarks"][2]["x"] == pytest.approx(0.2)
    assert face["landmarks"][0]["type"] == "face"

    bounds = messages["/pose/raw_bounds"]
    assert bounds["max_x"]["id"] == 2
    assert bounds["min_x"]["id"] == 0
    assert messages["/mp/status"] == {"status": 1}
    assert "/hand/left/raw" not in messages


def test_empty_snapshot_reports_status_zero(receiver: socket.socket) -> None:
    _host, port = receiver.getsockname()
    sender = LandmarkOSCSender("127.0.0.1", port)
    try:
        sender.send(TrackingSnapshot())
        messages = _collect_until_status(receiver)
    finally:
        sender.close()
    assert messages == {"/mp/status": {"status": 0}}


def test_closed_sender_ignores_snapshots() -> None:
    class RecordingClient:
        def __init__(self) -> None:
            self.sent: list[str] = []

        def send_message(self, address: str, value: str) -> None:
            self.sent.append(address)

    client = RecordingClient()
    sender = LandmarkOSCSender("127.0.0.1", 9000, client=client)
    sender.close()
    sender.close()
    sender.send(TrackingSnapshot())
    assert client.sent == []


def test_threaded_sender_drops_when_queue_full() -> None:
    gate = threading.Event()

    class BlockingClient:
        def __init__(self) -> None:
            self.sent: list[str] = []

        def send_message(self, address: str, value: str) -> None:
            gate.wait(timeout=2.0)
            self.sent.append(address)

    client = BlockingClient()
    threaded = ThreadedOSCSender(client, queue_size=2)
    for i in range(10):
        threaded.send_message(f"/m/{i}", "x")
    assert threaded.dropped > 0

    gate.set()
    threaded.stop(timeout=2.0)
    assert len(client.sent) == 10 - threaded.dropped
    assert not threaded.thread.is_alive()


def test_unresolvable_host_fails_construction() -> None:
    with pytest.raises(SenderError):
        LandmarkOSCSender("host.invalid", 9000)


def test_threaded_sender_survives_client_errors() -> None:
    class FlakyClient:
        def __init__(self) -> None:
            self.sent: list[str] = []

        def send_message(self, address: str, value: str) -> None:
            if address == "/bad":
                raise ValueError("cannot build message")
            self.sent.append(address)

    client = FlakyClient()
    threaded = ThreadedOSCSender(client, queue_size=10)
    threaded.send_message("/bad", "x")
    threaded.send_message("/good", "x")
    threaded.stop(timeout=2.0)

    assert client.sent == ["/good"]
    assert not threaded.thread.is_alive()
