"""
Input data for the seroprevalence correction.

Calibration counts from known-positive and known-negative panels, the ordered
field test outcomes, and a few classical estimates to compare the Bayesian
correction against.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats


class DataValidationError(ValueError):
    """Raised when calibration or field data fails validation."""
    pass


def _check_count(name, value):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise DataValidationError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise DataValidationError(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True)
class CalibrationData:
    """Test results on samples of known antibody status.

    Args:
        known_positive_n: Number of known-positive samples tested
        known_positive_tested_positive: How many of those tested positive
        known_negative_n: Number of known-negative samples tested
        known_negative_tested_negative: How many of those tested negative
    """
    known_positive_n: int
    known_positive_tested_positive: int
    known_negative_n: int
    known_negative_tested_negative: int

    def __post_init__(self):
        for name in ('known_positive_n', 'known_positive_tested_positive',
                     'known_negative_n', 'known_negative_tested_negative'):
            _check_count(name, getattr(self, name))

        if self.known_positive_tested_positive > self.known_positive_n:
            raise DataValidationError(
                f"known_positive_tested_positive ({self.known_positive_tested_positive}) "
                f"exceeds known_positive_n ({self.known_positive_n})"
            )
        if self.known_negative_tested_negative > self.known_negative_n:
            raise DataValidationError(
                f"known_negative_tested_negative ({self.known_negative_tested_negative}) "
                f"exceeds known_negative_n ({self.known_negative_n})"
            )

    @property
    def sensitivity_estimate(self) -> float:
        if self.known_positive_n == 0:
            return float('nan')
        return self.known_positive_tested_positive / self.known_positive_n

    @property
    def specificity_estimate(self) -> float:
        if self.known_negative_n == 0:
            return float('nan')
        return self.known_negative_tested_negative / self.known_negative_n


@dataclass(frozen=True, eq=False)
class FieldSample:
    """Ordered 0/1 test outcomes, one per tested individual."""
    outcomes: np.ndarray

    def __post_init__(self):
        values = np.asarray(self.outcomes)
        if values.ndim != 1:
            raise DataValidationError(f"Field outcomes must be one-dimensional, got shape {values.shape}")
        if values.size == 0:
            raise DataValidationError("Field sample is empty")
        if not np.isin(values, (0, 1)).all():
            raise DataValidationError("Field outcomes must be 0 (negative) or 1 (positive)")

        values = values.astype(np.int64)
        values.flags.writeable = False
        object.__setattr__(self, 'outcomes', values)

    @classmethod
    def from_counts(cls, n: int, n_positive: int) -> "FieldSample":
        """Build the outcome vector from totals, positives first."""
        _check_count('n', n)
        _check_count('n_positive', n_positive)
        if n_positive > n:
            raise DataValidationError(f"n_positive ({n_positive}) exceeds n ({n})")

        outcomes = np.zeros(n, dtype=np.int64)
        outcomes[:n_positive] = 1
        return cls(outcomes)

    def __len__(self):
        return int(self.outcomes.size)

    @property
    def n(self) -> int:
        return len(self)

    @property
    def n_positive(self) -> int:
        return int(self.outcomes.sum())

    @property
    def raw_prevalence(self) -> float:
        return self.n_positive / self.n


# Study numbers: 122 known positives (103 detected), 401 known negatives
# (399 correctly negative), 50 positives among 3330 field tests.
STUDY_CALIBRATION = CalibrationData(
    known_positive_n=122,
    known_positive_tested_positive=103,
    known_negative_n=401,
    known_negative_tested_negative=399,
)
STUDY_FIELD_SIZE = 3330
STUDY_FIELD_POSITIVES = 50


def study_field_sample() -> FieldSample:
    return FieldSample.from_counts(STUDY_FIELD_SIZE, STUDY_FIELD_POSITIVES)


_POSITIVE_LABELS = {'1', 'positive', 'pos', 'true', 'yes'}
_NEGATIVE_LABELS = {'0', 'negative', 'neg', 'false', 'no'}


def load_field_sample(filename: Union[str, Path], column: str = 'result') -> FieldSample:
    """
    Load field test outcomes from a CSV file.

    The outcome column may hold 0/1, booleans, or positive/negative labels.

    Raises:
        DataValidationError: If the file is empty or malformed, or the column
            is missing or holds unknown values
    """
    try:
        df = pd.read_csv(filename)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise DataValidationError(f"Could not read {filename}: {e}") from e

    if column not in df.columns:
        raise DataValidationError(
            f"Column '{column}' not found in {filename}. Available: {list(df.columns)}"
        )
    if df[column].isna().any():
        n_missing = int(df[column].isna().sum())
        raise DataValidationError(f"{n_missing} missing values in column '{column}' of {filename}")

    labels = df[column].astype(str).str.strip().str.lower()
    # pandas renders integer columns read as floats like "1.0"
    labels = labels.str.replace(r'\.0+$', '', regex=True)

    unknown = sorted(set(labels) - _POSITIVE_LABELS - _NEGATIVE_LABELS)
    if unknown:
        raise DataValidationError(f"Unrecognised test outcomes in column '{column}': {unknown[:5]}")

    return FieldSample(labels.isin(_POSITIVE_LABELS).to_numpy(dtype=np.int64))


def generate_synthetic_field_sample(n, prevalence, sensitivity, specificity, random_seed=None):
    """
    Simulate field outcomes for a population with known prevalence and test accuracy.

    Each individual's true status is drawn first; the test then reports it
    correctly with probability sensitivity (true positives) or specificity
    (true negatives).
    """
    for name, value in (('prevalence', prevalence), ('sensitivity', sensitivity),
                        ('specificity', specificity)):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be in [0, 1], got {value}")

    rng = np.random.default_rng(random_seed)
    true_status = rng.random(n) < prevalence
    detected = rng.random(n) < sensitivity
    false_alarm = rng.random(n) >= specificity

    outcomes = np.where(true_status, detected, false_alarm)
    return FieldSample(outcomes.astype(np.int64))


def clopper_pearson_ci(successes: int, n: int, alpha: float = 0.05) -> Tuple[float, float]:
    """
    Exact binomial confidence interval from Beta quantiles.

    Returns:
        tuple: (lower_bound, upper_bound) as proportions in [0, 1]
    """
    if n == 0:
        return (0.0, 1.0)

    lower = 0.0 if successes == 0 else stats.beta.ppf(alpha / 2, successes, n - successes + 1)
    upper = 1.0 if successes == n else stats.beta.ppf(1 - alpha / 2, successes + 1, n - successes)

    return (float(lower), float(upper))


def naive_prevalence(field: FieldSample, alpha: float = 0.05) -> dict:
    """Raw positive rate, ignoring test error, with its exact interval."""
    lower, upper = clopper_pearson_ci(field.n_positive, field.n, alpha=alpha)
    return {
        'estimate': field.raw_prevalence,
        'lower': lower,
        'upper': upper,
    }


def rogan_gladen_estimate(field: FieldSample, sensitivity: float, specificity: float) -> float:
    """
    Classical moment correction of the raw rate for test accuracy.

    Clipped to [0, 1]; the unclipped estimate goes negative whenever the raw
    rate is below the false positive rate.
    """
    youden = sensitivity + specificity - 1
    if not youden > 0:
        raise DataValidationError(
            f"sensitivity + specificity must exceed 1, got {sensitivity + specificity:.3f}"
        )

    corrected = (field.raw_prevalence + specificity - 1) / youden
    return float(np.clip(corrected, 0.0, 1.0))
