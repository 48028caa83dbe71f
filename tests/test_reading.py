"""
Sensor Reading Tests
====================

Tests for classifying raw host values.
"""

import numpy as np

from battmon.models import ABSENT, Absent, Scalar, Vector, classify_reading


class TestClassifyReading:
    """Tests for classify_reading()."""

    def test_absent_values(self):
        """None, strings and empty tables are Absent."""
        assert classify_reading(None) is ABSENT
        assert classify_reading("") is ABSENT
        assert isinstance(classify_reading([]), Absent)
        assert isinstance(classify_reading({}), Absent)

    def test_number_is_scalar(self):
        """A number becomes a Scalar."""
        reading = classify_reading(16.4)
        assert reading == Scalar(16.4)
        assert reading.total == 16.4
        assert reading.cells == (16.4,)

    def test_integer_is_scalar(self):
        """Integers are accepted as scalars."""
        assert classify_reading(400) == Scalar(400.0)

    def test_bool_and_nan_are_absent(self):
        """Booleans and NaN are not sensor values."""
        assert isinstance(classify_reading(True), Absent)
        assert isinstance(classify_reading(float("nan")), Absent)

    def test_sequence_is_vector(self):
        """A list of numbers becomes a Vector."""
        reading = classify_reading([3.9, 3.8, 4.0])
        assert isinstance(reading, Vector)
        assert reading.values == (3.9, 3.8, 4.0)
        assert abs(reading.total - 11.7) < 1e-9
        assert len(reading) == 3

    def test_table_ordered_by_key(self):
        """A 1-based table is ordered by key."""
        reading = classify_reading({2: 3.8, 1: 3.9, 3: 4.0})
        assert reading == Vector((3.9, 3.8, 4.0))

    def test_numpy_array_is_vector(self):
        """numpy arrays are converted to vectors."""
        reading = classify_reading(np.array([4.1, 4.2]))
        assert reading == Vector((4.1, 4.2))

    def test_non_numeric_element_is_absent(self):
        """A table with a non-numeric element is unusable."""
        assert isinstance(classify_reading([3.9, "x"]), Absent)

    def test_absent_totals_zero(self):
        """Absent readings total 0 and have no cells."""
        assert ABSENT.total == 0.0
        assert ABSENT.cells == ()
