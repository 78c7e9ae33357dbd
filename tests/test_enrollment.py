from unittest import mock

import numpy as np
import pytest

from attendance_service.backend import BackendError
from attendance_service.enrollment import EnrollmentError, capture_descriptor, enroll_student

from .conftest import FakeDetector, FakeFrameSource, landmarks_from_descriptor, make_entry


DESCRIPTOR = np.array([1.0, 2.0, 3.0, 4.0])


def test_enroll_student_saves_once_and_returns_entry():
    save_face = mock.Mock(return_value={'message': 'ok', 'student': {'id': 42}})

    entry = enroll_student(' Ada ', 'R1', DESCRIPTOR, [], save_face)

    save_face.assert_called_once()
    name, roll_number, descriptor = save_face.call_args.args
    assert (name, roll_number) == ('Ada', 'R1')
    assert descriptor.tolist() == DESCRIPTOR.tolist()
    assert entry.student_id == 42
    assert entry.name == 'Ada'
    assert entry.descriptor.tolist() == DESCRIPTOR.tolist()


@pytest.mark.parametrize('name,roll_number,descriptor', [
    ('', 'R1', DESCRIPTOR),
    ('Ada', '  ', DESCRIPTOR),
    ('Ada', 'R1', None),
    ('Ada', 'R1', np.array([])),
])
def test_incomplete_enrollment_is_rejected(name, roll_number, descriptor):
    save_face = mock.Mock()

    with pytest.raises(EnrollmentError, match='Please enter student details'):
        enroll_student(name, roll_number, descriptor, [], save_face)

    save_face.assert_not_called()


def test_duplicate_roll_number_rejected_before_saving():
    save_face = mock.Mock()
    gallery = [make_entry(1, [0, 0], roll_number='R1')]

    with pytest.raises(EnrollmentError, match='Roll number already exists'):
        enroll_student('Ada', 'R1', DESCRIPTOR, gallery, save_face)

    save_face.assert_not_called()


def test_backend_rejection_becomes_enrollment_error():
    save_face = mock.Mock(side_effect=BackendError('Roll number already exists', 400))

    with pytest.raises(EnrollmentError, match='Roll number already exists'):
        enroll_student('Ada', 'R1', DESCRIPTOR, [], save_face)


def test_capture_descriptor_uses_key_points():
    detector = FakeDetector(landmarks_from_descriptor([1, 2, 3, 4]))

    descriptor = capture_descriptor(FakeFrameSource(), detector, (0, 1))

    assert descriptor.tolist() == [1.0, 2.0, 3.0, 4.0]


def test_capture_descriptor_without_face():
    with pytest.raises(EnrollmentError, match='No face detected'):
        capture_descriptor(FakeFrameSource(), FakeDetector(None), (0, 1))


def test_capture_descriptor_camera_failure():
    frame_source = FakeFrameSource()
    frame_source.fail_read = True

    with pytest.raises(EnrollmentError, match='Error accessing camera'):
        capture_descriptor(frame_source, FakeDetector(None), (0, 1))


def test_capture_descriptor_detector_failure():
    detector = FakeDetector(None)
    detector.error = RuntimeError('model not loaded')

    with pytest.raises(EnrollmentError, match='Error analyzing face'):
        capture_descriptor(FakeFrameSource(), detector, (0, 1))
