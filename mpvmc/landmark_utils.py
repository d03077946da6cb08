"""
Utility functions for converting and summarizing landmark sets.
"""
from .types import FaceData, HandData, Landmark, Point3D, PoseData, TrackingSnapshot

# MediaPipe face mesh index of the nose tip
NOSE_TIP_INDEX = 1


def landmarks_from_mediapipe(landmark_list):
    """Convert a MediaPipe landmark list (proto or iterable) into Landmark objects"""
    if landmark_list is None:
        return []
    if hasattr(landmark_list, "landmark"):
        landmark_list = landmark_list.landmark

    return [
        Landmark(
            point=Point3D(float(lm.x), float(lm.y), float(lm.z)),
            visibility=float(getattr(lm, "visibility", 0.0)),
        )
        for lm in landmark_list
    ]


def snapshot_from_holistic(results):
    """
    Build a TrackingSnapshot from MediaPipe Holistic results.

    Holistic produces no blend shapes or head rotation, so the face carries
    an empty blend shape map, the identity rotation and the nose tip as the
    head position.
    """
    snapshot = TrackingSnapshot()

    face_landmarks = landmarks_from_mediapipe(getattr(results, "face_landmarks", None))
    if face_landmarks:
        face = FaceData(landmarks=face_landmarks)
        if len(face_landmarks) > NOSE_TIP_INDEX:
            nose = face_landmarks[NOSE_TIP_INDEX].point
            face.head_position = Point3D(nose.x, nose.y, nose.z)
        snapshot.face = face

    left = landmarks_from_mediapipe(getattr(results, "left_hand_landmarks", None))
    if left:
        # Holistic reports no per-hand score
        snapshot.left_hand = HandData(is_left=True, landmarks=left, confidence=1.0)

    right = landmarks_from_mediapipe(getattr(results, "right_hand_landmarks", None))
    if right:
        snapshot.right_hand = HandData(is_left=False, landmarks=right, confidence=1.0)

    pose = landmarks_from_mediapipe(getattr(results, "pose_landmarks", None))
    if pose:
        snapshot.pose = PoseData(landmarks=pose)

    return snapshot


def get_bounds_with_values(landmarks):
    """Get the bounds of a landmark set with the landmarks at each bound"""
    max_x = max_y = max_z = float('-inf')
    min_x = min_y = min_z = float('inf')
    max_x_idx = max_y_idx = min_x_idx = min_y_idx = max_z_idx = min_z_idx = -1

    for idx, landmark in enumerate(landmarks):
        if landmark.x > max_x:
            max_x = landmark.x
            max_x_idx = idx
        if landmark.x < min_x:
            min_x = landmark.x
            min_x_idx = idx
        if landmark.y > max_y:
            max_y = landmark.y
            max_y_idx = idx
        if landmark.y < min_y:
            min_y = landmark.y
            min_y_idx = idx
        if landmark.z > max_z:
            max_z = landmark.z
            max_z_idx = idx
        if landmark.z < min_z:
            min_z = landmark.z
            min_z_idx = idx

    if max_x_idx < 0:
        return {}

    return {
        "max_x": landmark_dict(landmarks, max_x_idx),
        "min_x": landmark_dict(landmarks, min_x_idx),
        "max_y": landmark_dict(landmarks, max_y_idx),
        "min_y": landmark_dict(landmarks, min_y_idx),
        "max_z": landmark_dict(landmarks, max_z_idx),
        "min_z": landmark_dict(landmarks, min_z_idx)
    }


def landmark_dict(landmarks, idx):
    """Create a dictionary from a landmark at the given index"""
    lm = landmarks[idx]
    return {
        "id": idx,
        "x": round(lm.x, 3),
        "y": round(lm.y, 3),
        "z": round(lm.z, 3),
        "visibility": round(lm.visibility, 3)
    }


def landmarks_to_dicts(landmarks, landmark_type="pose"):
    """Convert landmarks to dictionary format for OSC transmission"""
    return [
        dict(landmark_dict(landmarks, idx), type=landmark_type)
        for idx in range(len(landmarks))
    ]
