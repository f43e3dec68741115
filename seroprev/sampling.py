"""
Running the external MCMC sampler and reading its draws back.

PyMC's NUTS does the sampling; this module only fixes the configuration
(chains, draws, tuning, seed) and exposes the posterior as a plain table.
"""

import pandas as pd
import pymc as pm

from seroprev.likelihood import PARAMETER_NAMES


def fit_model(model, draws=2000, tune=1000, chains=3, target_accept=0.9,
              random_seed=42, cores=None, progressbar=True, log_likelihood=True):
    """
    Fit the prevalence model using MCMC.

    Args:
        model: PyMC model from build_prevalence_model
        draws: Posterior draws kept per chain
        tune: Tuning (burn-in) iterations per chain, discarded
        chains: Number of independent chains
        target_accept: NUTS step size adaptation target
        random_seed: Seed for reproducible draws, None for fresh entropy
        cores: Chains run in parallel on this many cores (PyMC default if None)
        progressbar: Show PyMC's progress bar
        log_likelihood: Store pointwise log likelihood for WAIC/LOO

    Returns:
        arviz.InferenceData with the posterior draws and sampler statistics
    """
    with model:
        trace = pm.sample(
            draws=draws,
            tune=tune,
            chains=chains,
            cores=cores,
            target_accept=target_accept,
            random_seed=random_seed,
            progressbar=progressbar,
            return_inferencedata=True,
        )

        if log_likelihood:
            pm.compute_log_likelihood(trace, var_names=['field_obs'], progressbar=False)

    return trace


def posterior_draws(trace, var_names=PARAMETER_NAMES) -> pd.DataFrame:
    """One row per posterior draw with chain and draw index columns"""
    posterior = trace.posterior[list(var_names)]
    return posterior.to_dataframe().reset_index()[['chain', 'draw', *var_names]]
