import numpy as np
import pymc as pm
import pytensor.tensor as pt

from seroprev.data import CalibrationData, FieldSample
from seroprev.likelihood import EPSILON, PARAMETER_NAMES


def build_prevalence_model(calibration: CalibrationData, field: FieldSample):
    """Build PyMC model for test-adjusted prevalence"""

    coords = {'individual': np.arange(field.n)}

    with pm.Model(coords=coords) as model:
        # Uniform priors, no preference for any value
        prevalence = pm.Beta('prevalence', alpha=1, beta=1)
        sensitivity = pm.Beta('sensitivity', alpha=1, beta=1)
        specificity = pm.Beta('specificity', alpha=1, beta=1)

        # Calibration panels inform test accuracy
        pm.Binomial('known_positive_obs',
                    n=calibration.known_positive_n,
                    p=sensitivity,
                    observed=calibration.known_positive_tested_positive)
        pm.Binomial('known_negative_obs',
                    n=calibration.known_negative_n,
                    p=specificity,
                    observed=calibration.known_negative_tested_negative)

        # True status summed out: true positive or false positive path
        p_positive = pm.Deterministic(
            'p_positive',
            pt.clip(sensitivity * prevalence + (1 - specificity) * (1 - prevalence),
                    EPSILON, 1 - EPSILON)
        )

        pm.Bernoulli('field_obs',
                     p=p_positive,
                     observed=field.outcomes,
                     dims='individual')

    return model


def parameter_value_names(model):
    """Map each parameter to the name of its (transformed) value variable."""
    return {name: model.rvs_to_values[model[name]].name for name in PARAMETER_NAMES}
