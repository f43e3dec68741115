import arviz as az
import numpy as np
import pandas as pd
import pytest

from numpy.testing import assert_allclose

from seroprev.summary import (
    SUMMARY_QUANTILES,
    ConvergenceWarning,
    check_convergence,
    fit_statistics,
    format_summary,
    summarize_draws,
    summarize_posterior,
)

QUANTILE_COLUMNS = ['2.5%', '25%', '50%', '75%', '97.5%']


def test_uniform_draws_match_analytic_quantiles(seeded_test):
    draws = {'prevalence': np.random.uniform(0, 1, size=1000)}
    summary = summarize_draws(draws)

    assert list(summary.columns) == ['mean', 'sd'] + QUANTILE_COLUMNS
    assert_allclose(summary.loc['prevalence', QUANTILE_COLUMNS].to_numpy(dtype=float),
                    SUMMARY_QUANTILES, atol=0.05)
    assert_allclose(summary.loc['prevalence', 'mean'], 0.5, atol=0.05)
    assert_allclose(summary.loc['prevalence', 'sd'], np.sqrt(1 / 12), atol=0.02)


def test_multidimensional_draws_are_pooled():
    values = np.arange(12, dtype=float).reshape(3, 4)
    summary = summarize_draws({'x': values})
    assert_allclose(summary.loc['x', 'mean'], 5.5)
    assert_allclose(summary.loc['x', '50%'], 5.5)
    assert_allclose(summary.loc['x', 'sd'], np.std(np.arange(12), ddof=1))


def test_inputs_not_mutated():
    values = np.array([0.3, 0.1, 0.2])
    summarize_draws({'x': values})
    assert list(values) == [0.3, 0.1, 0.2]


def test_empty_draws_rejected():
    with pytest.raises(ValueError):
        summarize_draws({'x': np.array([])})


def test_single_draw_has_zero_sd():
    summary = summarize_draws({'x': np.array([0.4])})
    assert summary.loc['x', 'sd'] == 0.0


def good_summary():
    return pd.DataFrame(
        {'mean': [0.01], 'sd': [0.005], 'r_hat': [1.0], 'ess_bulk': [2000.0], 'ess_tail': [1500.0]},
        index=pd.Index(['prevalence'], name='parameter'),
    )


def test_converged_summary_has_no_problems():
    assert check_convergence(good_summary()) == []


def test_high_rhat_warns():
    summary = good_summary()
    summary.loc['prevalence', 'r_hat'] = 1.2
    with pytest.warns(ConvergenceWarning, match="R-hat"):
        problems = check_convergence(summary)
    assert len(problems) == 1


def test_low_ess_warns():
    summary = good_summary()
    summary.loc['prevalence', 'ess_tail'] = 50.0
    with pytest.warns(ConvergenceWarning, match="ess_tail"):
        problems = check_convergence(summary, min_ess=100)
    assert problems == ["prevalence: ess_tail 50 below 100"]


def test_missing_diagnostics_reported_once():
    summary = summarize_draws({'prevalence': np.linspace(0.0, 0.02, 101),
                               'sensitivity': np.linspace(0.8, 0.9, 101)})
    with pytest.warns(ConvergenceWarning, match="diagnostics missing"):
        problems = check_convergence(summary)
    assert problems == [
        "prevalence: diagnostics missing (r_hat, ess_bulk, ess_tail)",
        "sensitivity: diagnostics missing (r_hat, ess_bulk, ess_tail)",
    ]


def test_partially_missing_diagnostics():
    summary = good_summary()
    summary.loc['prevalence', 'ess_bulk'] = np.nan
    with pytest.warns(ConvergenceWarning):
        problems = check_convergence(summary)
    assert problems == ["prevalence: diagnostics missing (ess_bulk)"]


def test_fit_statistics_without_log_likelihood():
    trace = az.from_dict(posterior={'prevalence': np.random.uniform(size=(2, 100))})
    assert fit_statistics(trace) == {}


def test_format_summary_shows_percentages():
    summary = summarize_draws({'prevalence': np.linspace(0.0, 0.02, 101)})
    text = format_summary(summary, naive={'estimate': 0.015, 'lower': 0.011, 'upper': 0.0197})
    assert "PREVALENCE ESTIMATION SUMMARY" in text
    assert "Raw positive rate: 1.50%" in text
    assert "Mean: 1.00%" in text
    assert "R-hat" not in text


@pytest.mark.slow
def test_summarize_posterior(study_trace):
    summary = summarize_posterior(study_trace)

    assert list(summary.index) == ['prevalence', 'sensitivity', 'specificity']
    for column in ['mean', 'sd'] + QUANTILE_COLUMNS + ['r_hat', 'ess_bulk', 'ess_tail']:
        assert column in summary.columns
    assert (summary['2.5%'] <= summary['50%']).all()
    assert (summary['50%'] <= summary['97.5%']).all()
    assert (summary['r_hat'] < 1.05).all()
    assert (summary['ess_bulk'] > 200).all()


@pytest.mark.slow
def test_fit_statistics(study_trace):
    fit = fit_statistics(study_trace)
    assert set(fit) == {'elpd_waic', 'p_waic', 'waic_se', 'elpd_loo', 'p_loo', 'loo_se'}
    assert all(np.isfinite(value) for value in fit.values())
    assert fit['elpd_loo'] < 0
    # three parameters, at most a handful of effective parameters
    assert 0 < fit['p_loo'] < 5

    text = format_summary(summarize_posterior(study_trace), fit=fit)
    assert "LOO elpd" in text
