#!/usr/bin/env python3
"""
Test script for the utils module: form validation, photo checks, photo
capture and the fan-out helper.
"""
import sys
import os
import tempfile

import cv2
import numpy as np

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from attendance_portal.config.settings import MAX_PHOTO_BYTES
from attendance_portal.errors import ApiError, ValidationError
from attendance_portal.utils import (
    CaptureSession, CaptureState, encode_jpeg, read_photo, run_all_settled,
    validate_login, validate_photo, validate_registration
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def expect_validation_error(func, *args, text=None):
    try:
        func(*args)
    except ValidationError as e:
        if text is not None:
            assert text in e.message, e.message
        return e
    raise AssertionError("expected ValidationError")


def test_login_validation():
    assert validate_login("  teacher@uni.edu ", "secret1") == {"email": "teacher@uni.edu", "password": "secret1"}
    expect_validation_error(validate_login, "", "secret1", text="required")
    expect_validation_error(validate_login, "not-an-email", "secret1", text="valid e-mail")
    expect_validation_error(validate_login, "teacher@uni.edu", "12345", text="at least 6")


def test_registration_validation():
    data = {
        "first_name": " Ayşe ", "last_name": "Yılmaz", "student_number": "2021001",
        "department": "Computer Engineering", "email": "ayse@uni.edu", "password": "secret1",
    }
    cleaned = validate_registration(data)
    assert cleaned["first_name"] == "Ayşe"
    error = expect_validation_error(validate_registration, dict(data, department=""))
    assert error.field == "department"


def test_photo_type_and_size():
    photo = validate_photo("face.png", PNG_BYTES)
    assert photo.mime_type == "image/png"
    assert photo.as_upload() == ("face.png", PNG_BYTES, "image/png")

    expect_validation_error(validate_photo, "face.gif", b"GIF89a", "image/gif", text="JPEG and PNG")
    expect_validation_error(validate_photo, "face.jpg", b"", "image/jpeg", text="empty")
    exact = validate_photo("face.jpg", b"\xff" * MAX_PHOTO_BYTES, "image/jpeg")
    assert exact.size == MAX_PHOTO_BYTES
    too_big = b"\xff" * (MAX_PHOTO_BYTES + 1)
    expect_validation_error(validate_photo, "face.jpg", too_big, "image/jpeg", text="5 MB")
    print("✓ Photo checks work")


def test_read_photo_from_disk():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "class.png")
        with open(path, "wb") as f:
            f.write(PNG_BYTES)
        photo = read_photo(path)
    assert photo.name == "class.png"
    assert photo.size == len(PNG_BYTES)


def test_encode_jpeg_roundtrip():
    frame = np.full((48, 64, 3), 127, dtype=np.uint8)
    data = encode_jpeg(frame)
    assert data[:2] == b"\xff\xd8"
    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape == (48, 64, 3)
    expect_validation_error(encode_jpeg, None, text="No camera frame")


def test_capture_session_modes():
    capture = CaptureSession()
    assert capture.mode == CaptureState.IDLE
    expect_validation_error(capture.capture, np.zeros((8, 8, 3), dtype=np.uint8), text="Open the camera")

    capture.open_camera()
    assert capture.mode == CaptureState.STREAMING
    assert not capture.has_photo

    photo = capture.capture(np.zeros((48, 64, 3), dtype=np.uint8))
    assert capture.mode == CaptureState.CAPTURED
    assert photo.mime_type == "image/jpeg"
    assert capture.has_photo

    # Opening the camera again drops the captured frame
    capture.open_camera()
    assert capture.photo is None

    capture.reset()
    capture.accept_upload("face.png", PNG_BYTES, "image/png")
    assert capture.mode == CaptureState.UPLOADED

    # A rejected upload keeps the previous photo
    expect_validation_error(capture.accept_upload, "face.gif", b"GIF89a", "image/gif")
    assert capture.mode == CaptureState.UPLOADED
    assert capture.photo.name == "face.png"

    capture.reset()
    assert capture.mode == CaptureState.IDLE and capture.photo is None


class FakeStream:
    def __init__(self, opens=True):
        self.opens = opens
        self.stopped = False

    def start(self):
        return self.opens

    def read(self, timeout=0.0):
        return True, np.zeros((48, 64, 3), dtype=np.uint8)

    def stop(self):
        self.stopped = True


def test_capture_releases_local_stream():
    stream = FakeStream()
    capture = CaptureSession()
    capture.open_camera(stream)
    capture.capture()
    assert stream.stopped
    assert capture.stream is None

    capture = CaptureSession()
    expect_validation_error(capture.open_camera, FakeStream(opens=False), text="camera")
    assert capture.mode == CaptureState.IDLE


def test_run_all_settled_keeps_order_and_errors():
    def call(n):
        if n % 2:
            raise ApiError(f"odd {n}", status=400)
        return n * 10

    outcomes = run_all_settled(call, [1, 2, 3, 4])
    assert [o.item for o in outcomes] == [1, 2, 3, 4]
    assert [o.ok for o in outcomes] == [False, True, False, True]
    assert outcomes[1].value == 20
    assert outcomes[2].error.message == "odd 3"
    assert run_all_settled(call, []) == []


if __name__ == "__main__":
    print("Testing utils module...")
    test_login_validation()
    test_registration_validation()
    test_photo_type_and_size()
    test_read_photo_from_disk()
    test_encode_jpeg_roundtrip()
    test_capture_session_modes()
    test_capture_releases_local_stream()
    test_run_all_settled_keeps_order_and_errors()
    print("\n✅ Utils module tests passed!")
