"""Tests for gradeflow.grading.average."""

from __future__ import annotations

import decimal

from gradeflow.grading import subject_average

D = decimal.Decimal


class TestSubjectAverage(object):
    def test_weighted_average(self) -> None:
        # (8 + 7 + 2*8 + 3*9) / (2 + 2 + 3) = 58 / 7 = 8.2857...
        assert subject_average([D(8), D(7)], D(8), D(9)) == D("8.3")

    def test_summary_takes_precedence(self) -> None:
        assert subject_average([D(2)], D(3), D(4), summary=D("9.5")) == D("9.5")

    def test_missing_components_drop_out(self) -> None:
        assert subject_average([D(6), None, D(8)]) == D("7.0")
        assert subject_average([], final=D("7.25")) == D("7.3")

    def test_rounds_half_up(self) -> None:
        # 8.25 would round to 8.2 under banker's rounding
        assert subject_average([D("8.25")]) == D("8.3")
        assert subject_average([D("8.24")]) == D("8.2")

    def test_nothing_recorded(self) -> None:
        assert subject_average([]) is None
        assert subject_average([None, None]) is None
