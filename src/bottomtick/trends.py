"""Trend classification via a quadratic (parabolic) least-squares fit.

For a series y_0 … y_{n-1} (oldest first, x = index) we fit
y = a + b·x + c·x² by solving the 3×3 normal equations with Cramer's rule:

    | n    Σx   Σx² | |a|   | Σy   |
    | Σx   Σx²  Σx³ | |b| = | Σxy  |
    | Σx²  Σx³  Σx⁴ | |c|   | Σx²y |

The determinant depends only on x (i.e. on n), so the degenerate cutoff
only ever trips for n < 3.  y is divided by max|y| before fitting; the
fitted curve is scaled back afterwards, which keeps the sums well inside
float range for billion-dollar series and changes no signs.

Two signals come out of this, and they can legitimately disagree:
  - overall trend     : fitted curve at the last point vs. the first;
  - short-term trend  : raw % change across the last N points (±5% band).
Extended views also get the fitted curve's quarter-over-quarter % deltas.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

from bottomtick.models import ProcessedMetric, QuarterlyTrend, Trend, TrendResult

DEGENERATE_DET = 0.001
SHORT_TERM_THRESHOLD = 5.0      # percent
MIN_WINDOW, MAX_WINDOW = 1, 6
QUARTERLY_TREND_POINTS = 7      # fitted positions → 6 deltas
MIN_POINTS_FOR_QUARTERLY = 6

# Relative tolerance under which two fitted values count as equal
_FLAT_TOLERANCE = 1e-9


class QuadraticFit(NamedTuple):
    a: float
    b: float
    c: float

    def at(self, x: float) -> float:
        return self.a + self.b * x + self.c * x * x


def _det3(m: Sequence[Sequence[float]]) -> float:
    return (
        m[0][0] * (m[1][1] * m[2][2] - m[1][2] * m[2][1])
        - m[0][1] * (m[1][0] * m[2][2] - m[1][2] * m[2][0])
        + m[0][2] * (m[1][0] * m[2][1] - m[1][1] * m[2][0])
    )


def _with_column(m: list[list[float]], col: int, values: list[float]) -> list[list[float]]:
    return [
        [values[r] if c == col else m[r][c] for c in range(3)]
        for r in range(3)
    ]


def fit_quadratic(ys: Sequence[float]) -> QuadraticFit | None:
    """Least-squares quadratic through (i, ys[i]).  None when the system is degenerate."""
    n = len(ys)
    if n == 0:
        return None

    scale = max(abs(y) for y in ys) or 1.0
    norm = [y / scale for y in ys]

    sx = sx2 = sx3 = sx4 = 0.0
    sy = sxy = sx2y = 0.0
    for x, y in enumerate(norm):
        x2 = x * x
        sx += x
        sx2 += x2
        sx3 += x2 * x
        sx4 += x2 * x2
        sy += y
        sxy += x * y
        sx2y += x2 * y

    a_mat = [
        [float(n), sx, sx2],
        [sx, sx2, sx3],
        [sx2, sx3, sx4],
    ]
    rhs = [sy, sxy, sx2y]

    det = _det3(a_mat)
    if abs(det) < DEGENERATE_DET:
        return None

    a = _det3(_with_column(a_mat, 0, rhs)) / det
    b = _det3(_with_column(a_mat, 1, rhs)) / det
    c = _det3(_with_column(a_mat, 2, rhs)) / det
    return QuadraticFit(a * scale, b * scale, c * scale)


def _overall(ys: Sequence[float], fit: QuadraticFit | None) -> Trend:
    if fit is None:
        return "neutral"
    first, last = fit.at(0), fit.at(len(ys) - 1)
    tolerance = _FLAT_TOLERANCE * max(1.0, max(abs(y) for y in ys))
    if abs(last - first) <= tolerance:
        return "neutral"
    return "up" if last > first else "down"


def _short_term(ys: Sequence[float], window: int) -> Trend:
    recent = ys[-window:]
    if len(recent) < 2:
        return "neutral"
    first, last = recent[0], recent[-1]
    if first == 0:
        # Any move off zero is an unbounded % change
        if last == 0:
            return "neutral"
        return "up" if last > 0 else "down"
    change = (last - first) / abs(first) * 100
    if change > SHORT_TERM_THRESHOLD:
        return "up"
    if change < -SHORT_TERM_THRESHOLD:
        return "down"
    return "neutral"


def quarterly_trends(n: int, fit: QuadraticFit) -> list[QuarterlyTrend]:
    """% change of the fitted curve between consecutive recent quarters, oldest first."""
    xs = range(max(0, n - QUARTERLY_TREND_POINTS), n)
    fitted = [fit.at(x) for x in xs]
    deltas: list[float] = []
    for prev, cur in zip(fitted, fitted[1:]):
        deltas.append(0.0 if prev == 0 else round((cur - prev) / abs(prev) * 100, 2))
    return [
        QuarterlyTrend(quarter=f"{len(deltas) - i}Q ago", trend_percent=delta)
        for i, delta in enumerate(deltas)
    ]


def clamp_window(window: int | None, default: int = 3) -> int:
    if window is None:
        window = default
    return max(MIN_WINDOW, min(MAX_WINDOW, int(window)))


def classify_values(
    ys: Sequence[float],
    short_term_window: int = 3,
    extended: bool = False,
) -> TrendResult:
    """Classify an oldest-first value series.  Never raises."""
    n = len(ys)
    if n < 2:
        return TrendResult(latest_value=ys[0] if ys else 0.0)

    window = clamp_window(short_term_window)
    flat = max(ys) - min(ys) <= _FLAT_TOLERANCE * max(1.0, max(abs(y) for y in ys))
    fit = fit_quadratic(ys)

    result = TrendResult(
        overall_trend="neutral" if flat else _overall(ys, fit),
        short_term_trend=_short_term(ys, window),
        latest_value=ys[-1],
    )
    if extended and fit is not None and n >= MIN_POINTS_FOR_QUARTERLY:
        result.quarterly_trends = quarterly_trends(n, fit)
    return result


def classify(
    metric: ProcessedMetric,
    short_term_window: int = 3,
    extended: bool = False,
) -> TrendResult:
    ys = [p.value for p in metric.ascending()]
    return classify_values(ys, short_term_window=short_term_window, extended=extended)
