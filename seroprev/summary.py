"""
Posterior summaries: point estimates, credible intervals, convergence
diagnostics and an overall fit statistic.
"""

import warnings
from typing import Dict, List, Mapping, Optional

import arviz as az
import numpy as np
import pandas as pd

from seroprev.likelihood import PARAMETER_NAMES

SUMMARY_QUANTILES = (0.025, 0.25, 0.5, 0.75, 0.975)

RHAT_THRESHOLD = 1.01
MIN_ESS = 400


class ConvergenceWarning(UserWarning):
    """Issued when chains look unconverged or too few effective draws remain."""
    pass


def _quantile_label(q):
    return f"{100 * q:g}%"


def summarize_draws(draws: Mapping[str, np.ndarray], quantiles=SUMMARY_QUANTILES) -> pd.DataFrame:
    """
    Reduce posterior draws to mean, standard deviation and quantiles.

    Args:
        draws: Parameter name -> array of draws, any shape (e.g. chain x draw)
        quantiles: Probabilities at which to report quantiles

    Returns:
        DataFrame indexed by parameter with columns mean, sd, 2.5%, ... 97.5%
    """
    rows = {}
    for name, values in draws.items():
        flat = np.asarray(values, dtype=float).ravel()
        if flat.size == 0:
            raise ValueError(f"No draws for {name}")

        row = {'mean': flat.mean(), 'sd': flat.std(ddof=1) if flat.size > 1 else 0.0}
        for q, value in zip(quantiles, np.quantile(flat, quantiles)):
            row[_quantile_label(q)] = value
        rows[name] = row

    summary = pd.DataFrame.from_dict(rows, orient='index')
    summary.index.name = 'parameter'
    return summary


def summarize_posterior(trace, var_names=PARAMETER_NAMES) -> pd.DataFrame:
    """Posterior summary table with R-hat and effective sample sizes."""
    var_names = list(var_names)
    draws = {name: trace.posterior[name].values for name in var_names}
    summary = summarize_draws(draws)

    rhat = az.rhat(trace, var_names=var_names)
    ess_bulk = az.ess(trace, var_names=var_names, method='bulk')
    ess_tail = az.ess(trace, var_names=var_names, method='tail')

    summary['r_hat'] = [float(rhat[name]) for name in var_names]
    summary['ess_bulk'] = [float(ess_bulk[name]) for name in var_names]
    summary['ess_tail'] = [float(ess_tail[name]) for name in var_names]

    return summary


def check_convergence(summary: pd.DataFrame, rhat_threshold=RHAT_THRESHOLD,
                      min_ess=MIN_ESS) -> List[str]:
    """
    List convergence problems found in a posterior summary.

    Problems are also issued as ConvergenceWarning. Whether to re-run with
    more draws is up to the caller.
    """
    problems = []
    for name, row in summary.iterrows():
        diagnostics = row.reindex(['r_hat', 'ess_bulk', 'ess_tail'])
        if diagnostics.isna().any():
            missing = ', '.join(diagnostics[diagnostics.isna()].index)
            problems.append(f"{name}: diagnostics missing ({missing})")
            continue

        if diagnostics['r_hat'] > rhat_threshold:
            problems.append(f"{name}: R-hat {diagnostics['r_hat']:.3f} exceeds {rhat_threshold}")
        for column in ('ess_bulk', 'ess_tail'):
            if diagnostics[column] < min_ess:
                problems.append(f"{name}: {column} {diagnostics[column]:.0f} below {min_ess}")

    for problem in problems:
        warnings.warn(problem, ConvergenceWarning, stacklevel=2)

    return problems


def fit_statistics(trace) -> Dict[str, float]:
    """
    WAIC and PSIS-LOO over the field observations.

    Empty when the trace holds no pointwise log likelihood.
    """
    if 'log_likelihood' not in trace.groups():
        return {}

    waic = az.waic(trace, var_name='field_obs')
    loo = az.loo(trace, var_name='field_obs')

    return {
        'elpd_waic': float(waic['elpd_waic']),
        'p_waic': float(waic['p_waic']),
        'waic_se': float(waic['se']),
        'elpd_loo': float(loo['elpd_loo']),
        'p_loo': float(loo['p_loo']),
        'loo_se': float(loo['se']),
    }


def format_summary(summary: pd.DataFrame, naive: Optional[dict] = None,
                   fit: Optional[Dict[str, float]] = None) -> str:
    """Text report of a posterior summary, probabilities shown as percentages"""
    lines = []
    lines.append("=" * 60)
    lines.append("PREVALENCE ESTIMATION SUMMARY")
    lines.append("=" * 60)

    if naive is not None:
        lines.append(
            f"Raw positive rate: {100 * naive['estimate']:.2f}% "
            f"(95% CI {100 * naive['lower']:.2f}% - {100 * naive['upper']:.2f}%)"
        )
        lines.append("")

    for name, row in summary.iterrows():
        lines.append(f"{name}:")
        lines.append(f"  Mean: {100 * row['mean']:.2f}%  (sd {100 * row['sd']:.2f}%)")
        lines.append(f"  Median: {100 * row['50%']:.2f}%  (IQR {100 * row['25%']:.2f}% - {100 * row['75%']:.2f}%)")
        lines.append(f"  95% credible interval: {100 * row['2.5%']:.2f}% - {100 * row['97.5%']:.2f}%")
        if 'r_hat' in row:
            lines.append(
                f"  R-hat: {row['r_hat']:.3f}  ESS bulk: {row['ess_bulk']:.0f}  ESS tail: {row['ess_tail']:.0f}"
            )

    if fit:
        lines.append("")
        lines.append(f"WAIC elpd: {fit['elpd_waic']:.1f} (se {fit['waic_se']:.1f}, p_waic {fit['p_waic']:.2f})")
        lines.append(f"LOO elpd: {fit['elpd_loo']:.1f} (se {fit['loo_se']:.1f}, p_loo {fit['p_loo']:.2f})")

    lines.append("=" * 60)
    return "\n".join(lines)


def print_summary(summary: pd.DataFrame, naive: Optional[dict] = None,
                  fit: Optional[Dict[str, float]] = None):
    print("\n" + format_summary(summary, naive=naive, fit=fit))
