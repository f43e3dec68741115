"""
Log likelihood of calibration and field data for given prevalence,
sensitivity and specificity.

Each individual's true antibody status is summed out: a positive test is
either a true positive (probability sensitivity * prevalence) or a false
positive ((1 - specificity) * (1 - prevalence)). The model therefore has three
parameters however many people were tested.
"""

from typing import Any, Mapping, Union

import numpy as np
from scipy import stats

from seroprev.data import CalibrationData, FieldSample

EPSILON = 1e-12

PARAMETER_NAMES = ('prevalence', 'sensitivity', 'specificity')


def clamp_probability(p):
    """Keep probabilities inside (0, 1) so their logs stay finite."""
    return np.clip(p, EPSILON, 1 - EPSILON)


def _check_probability(name, value):
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")
    return value


def positive_test_probability(prevalence, sensitivity, specificity):
    """Marginal probability that a randomly chosen individual tests positive."""
    return sensitivity * prevalence + (1 - specificity) * (1 - prevalence)


def calibration_log_likelihood(calibration: CalibrationData, sensitivity, specificity) -> float:
    """Binomial log likelihood of the known-status panels."""
    sensitivity = clamp_probability(_check_probability('sensitivity', sensitivity))
    specificity = clamp_probability(_check_probability('specificity', specificity))

    return float(
        stats.binom.logpmf(calibration.known_positive_tested_positive,
                           calibration.known_positive_n, sensitivity)
        + stats.binom.logpmf(calibration.known_negative_tested_negative,
                             calibration.known_negative_n, specificity)
    )


def field_log_likelihood(field: FieldSample, prevalence, sensitivity, specificity) -> float:
    """Sum of per-individual Bernoulli log probabilities of the field outcomes."""
    prevalence = _check_probability('prevalence', prevalence)
    sensitivity = _check_probability('sensitivity', sensitivity)
    specificity = _check_probability('specificity', specificity)

    p_positive = clamp_probability(positive_test_probability(prevalence, sensitivity, specificity))
    return float(np.sum(stats.bernoulli.logpmf(field.outcomes, p_positive)))


def _get(params, name):
    if isinstance(params, Mapping):
        return params[name]
    return getattr(params, name)


def log_likelihood(calibration: CalibrationData, field: FieldSample,
                   params: Union[Mapping[str, float], Any]) -> float:
    """
    Joint log likelihood of all observed data.

    Args:
        calibration: Known-status panel counts
        field: Field test outcomes
        params: Mapping (or object with attributes) holding prevalence,
            sensitivity and specificity

    Raises:
        ValueError: If a parameter lies outside [0, 1]
        FloatingPointError: If the result is not finite
    """
    prevalence, sensitivity, specificity = (_get(params, name) for name in PARAMETER_NAMES)

    total = (
        calibration_log_likelihood(calibration, sensitivity, specificity)
        + field_log_likelihood(field, prevalence, sensitivity, specificity)
    )
    if not np.isfinite(total):
        raise FloatingPointError(
            f"Non-finite log likelihood ({total}) at prevalence={prevalence}, "
            f"sensitivity={sensitivity}, specificity={specificity}"
        )
    return total
