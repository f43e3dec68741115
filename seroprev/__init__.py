"""Antibody prevalence corrected for imperfect test sensitivity and specificity."""

from seroprev.data import (
    STUDY_CALIBRATION,
    STUDY_FIELD_POSITIVES,
    STUDY_FIELD_SIZE,
    CalibrationData,
    DataValidationError,
    FieldSample,
    generate_synthetic_field_sample,
    load_field_sample,
    naive_prevalence,
    rogan_gladen_estimate,
    study_field_sample,
)
from seroprev.likelihood import PARAMETER_NAMES, log_likelihood, positive_test_probability
from seroprev.model import build_prevalence_model
from seroprev.sampling import fit_model, posterior_draws
from seroprev.summary import (
    ConvergenceWarning,
    check_convergence,
    fit_statistics,
    summarize_draws,
    summarize_posterior,
)

__version__ = "0.1.0"
