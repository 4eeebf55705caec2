from __future__ import annotations

import decimal
import typing as t

from gradeflow.model import GradeValue

MidtermWeight: t.Final[int] = 2
FinalWeight: t.Final[int] = 3
AverageQuantum: t.Final[decimal.Decimal] = decimal.Decimal("0.1")


def subject_average(
    regular: t.Iterable[GradeValue | None],
    midterm: GradeValue | None = None,
    final: GradeValue | None = None,
    summary: GradeValue | None = None,
) -> GradeValue | None:
    """Weighted subject average, rounded half-up to one decimal place.

    A recorded summary grade takes precedence. Otherwise regular grades count
    once, the midterm twice and the final three times; missing components
    drop out of both the total and the weight.

    >>> subject_average([decimal.Decimal(8), decimal.Decimal(7)], decimal.Decimal(8), decimal.Decimal(9))
    Decimal('8.3')
    """
    if summary is not None:
        return summary

    values = [v for v in regular if v is not None]
    total = sum(values, decimal.Decimal(0))
    weight = len(values)
    if midterm is not None:
        total += MidtermWeight * midterm
        weight += MidtermWeight
    if final is not None:
        total += FinalWeight * final
        weight += FinalWeight

    if weight == 0:
        return None
    return (total / weight).quantize(AverageQuantum, rounding=decimal.ROUND_HALF_UP)
