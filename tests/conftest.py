import matplotlib

matplotlib.use('Agg')

import numpy as np
import pytest

from seroprev.data import STUDY_CALIBRATION, study_field_sample
from seroprev.model import build_prevalence_model
from seroprev.sampling import fit_model
from tests.helpers import FAST_SAMPLING


@pytest.fixture(scope="function", autouse=False)
def seeded_test():
    np.random.seed(20160911)


@pytest.fixture(scope="session")
def study_trace():
    model = build_prevalence_model(STUDY_CALIBRATION, study_field_sample())
    return fit_model(model, random_seed=20160911, **FAST_SAMPLING)
