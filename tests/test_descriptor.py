import numpy as np
import pytest

from attendance_service.recognition.descriptor import descriptor_distance, extract_descriptor


def test_extract_descriptor_takes_x_then_y_in_key_point_order():
    landmarks = [(1.0, 2.0, 0.5), (3.0, 4.0, 0.5), (5.0, 6.0, 0.5)]

    descriptor = extract_descriptor(landmarks, [2, 0])

    assert descriptor.tolist() == [5.0, 6.0, 1.0, 2.0]


def test_extract_descriptor_accepts_numpy_landmarks():
    landmarks = np.arange(20, dtype=np.float64).reshape(10, 2)

    descriptor = extract_descriptor(landmarks, range(10))

    assert len(descriptor) == 20
    assert descriptor.tolist() == list(range(20))


@pytest.mark.parametrize('landmarks', [None, [], np.empty((0, 2))])
def test_extract_descriptor_without_landmarks_is_none(landmarks):
    assert extract_descriptor(landmarks, [0, 1]) is None


def test_skip_policy_drops_out_of_range_indices():
    landmarks = [(1.0, 1.0), (2.0, 2.0)]

    descriptor = extract_descriptor(landmarks, [0, 1, 7], policy='skip')

    assert descriptor.tolist() == [1.0, 1.0, 2.0, 2.0]


def test_reject_policy_discards_frame_with_missing_index():
    landmarks = [(1.0, 1.0), (2.0, 2.0)]

    assert extract_descriptor(landmarks, [0, 1, 7], policy='reject') is None
    assert extract_descriptor(landmarks, [0, 1], policy='reject').tolist() == [1.0, 1.0, 2.0, 2.0]


def test_distance_is_symmetric_and_zero_on_itself():
    a = np.array([0.0, 0.0, 10.0, 10.0])
    b = np.array([3.0, 4.0, 10.0, 10.0])

    assert descriptor_distance(a, a) == 0.0
    assert descriptor_distance(a, b) == pytest.approx(5.0)
    assert descriptor_distance(a, b) == descriptor_distance(b, a)


def test_unequal_lengths_get_maximal_distance_regardless_of_content():
    a = np.array([0.0, 0.0, 10.0, 10.0])
    b = np.array([0.0, 0.0])

    assert descriptor_distance(a, b) == 1.0
    assert descriptor_distance(b, a, scale=100.0) == 100.0


@pytest.mark.parametrize('other', [None, np.array([])])
def test_missing_descriptor_gets_maximal_distance(other):
    a = np.array([1.0, 2.0])

    assert descriptor_distance(a, other, scale=100.0) == 100.0
    assert descriptor_distance(other, a, scale=100.0) == 100.0
