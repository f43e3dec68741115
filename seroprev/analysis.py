"""
Test-adjusted seroprevalence estimation.

Runs the whole analysis: load or construct the data, build the model, sample,
summarise and save. With no arguments it reproduces the study numbers
(50 positives out of 3330, calibration 103/122 and 399/401).

Usage:
    seroprev
    seroprev --field-csv results.csv --known-positive-n 85 \\
        --known-positive-tested-positive 78 --known-negative-n 371 \\
        --known-negative-tested-negative 368
"""

import argparse
from pathlib import Path

from seroprev.data import (
    STUDY_CALIBRATION,
    CalibrationData,
    DataValidationError,
    load_field_sample,
    naive_prevalence,
    rogan_gladen_estimate,
    study_field_sample,
)
from seroprev.model import build_prevalence_model
from seroprev.plots import plot_results
from seroprev.sampling import fit_model, posterior_draws
from seroprev.summary import check_convergence, fit_statistics, print_summary, summarize_posterior


def build_parser():
    parser = argparse.ArgumentParser(
        description="Estimate antibody prevalence corrected for test sensitivity and specificity"
    )
    parser.add_argument("--field-csv", default=None,
                        help="CSV of field test outcomes (default: study data)")
    parser.add_argument("--column", default="result",
                        help="Outcome column in the field CSV")
    parser.add_argument("--known-positive-n", type=int,
                        default=STUDY_CALIBRATION.known_positive_n)
    parser.add_argument("--known-positive-tested-positive", type=int,
                        default=STUDY_CALIBRATION.known_positive_tested_positive)
    parser.add_argument("--known-negative-n", type=int,
                        default=STUDY_CALIBRATION.known_negative_n)
    parser.add_argument("--known-negative-tested-negative", type=int,
                        default=STUDY_CALIBRATION.known_negative_tested_negative)
    parser.add_argument("--draws", type=int, default=2000,
                        help="Posterior draws per chain")
    parser.add_argument("--tune", type=int, default=1000,
                        help="Tuning iterations per chain")
    parser.add_argument("--chains", type=int, default=3)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--cores", type=int, default=None,
                        help="Run chains in parallel on this many cores")
    parser.add_argument("--output-dir", default=".",
                        help="Where to write posterior_summary.csv and posterior.png")
    parser.add_argument("--no-plot", action="store_true",
                        help="Skip the posterior figure")
    parser.add_argument("--no-progress", action="store_true",
                        help="Hide the sampler progress bar")
    return parser


def run_analysis(argv=None):
    """Run the full analysis, returning the posterior summary and trace"""
    parser = build_parser()
    args = parser.parse_args(argv)

    print("Test-Adjusted Seroprevalence Estimation")
    print("=" * 50)

    print("\n1. Loading data...")
    try:
        calibration = CalibrationData(
            known_positive_n=args.known_positive_n,
            known_positive_tested_positive=args.known_positive_tested_positive,
            known_negative_n=args.known_negative_n,
            known_negative_tested_negative=args.known_negative_tested_negative,
        )
        if args.field_csv is None:
            field = study_field_sample()
        else:
            field = load_field_sample(args.field_csv, column=args.column)
    except (DataValidationError, FileNotFoundError) as e:
        parser.error(str(e))

    naive = naive_prevalence(field)
    print(f"   Field sample: {field.n_positive} positive out of {field.n}")
    print(f"   Calibration sensitivity: {calibration.known_positive_tested_positive}/{calibration.known_positive_n}"
          f", specificity: {calibration.known_negative_tested_negative}/{calibration.known_negative_n}")
    print(f"   Raw positive rate: {100 * naive['estimate']:.2f}%")
    try:
        rg = rogan_gladen_estimate(field, calibration.sensitivity_estimate, calibration.specificity_estimate)
        print(f"   Rogan-Gladen corrected rate: {100 * rg:.2f}%")
    except DataValidationError as e:
        print(f"   Rogan-Gladen correction unavailable: {e}")

    print("\n2. Building model...")
    model = build_prevalence_model(calibration, field)
    print(f"   Free parameters: {', '.join(rv.name for rv in model.free_RVs)}")

    print("\n3. Fitting model using MCMC...")
    trace = fit_model(model, draws=args.draws, tune=args.tune, chains=args.chains,
                      random_seed=args.seed, cores=args.cores, progressbar=not args.no_progress)

    print("\n4. Summarizing posterior...")
    summary = summarize_posterior(trace)
    problems = check_convergence(summary)
    if problems:
        print("   Convergence problems, consider more draws:")
        for problem in problems:
            print(f"     {problem}")
    else:
        print("   All chains converged (R-hat and ESS within thresholds)")

    fit = fit_statistics(trace)
    print_summary(summary, naive=naive, fit=fit)

    print("\n5. Saving results...")
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    summary_path = output_dir / 'posterior_summary.csv'
    summary.to_csv(summary_path)
    print(f"   Summary saved to '{summary_path}'")

    if not args.no_plot:
        figure_path = output_dir / 'posterior.png'
        plot_results(posterior_draws(trace), summary, naive=naive, filename=figure_path)
        print(f"   Figure saved to '{figure_path}'")

    return summary, trace


def main(argv=None):
    """Main execution function"""
    run_analysis(argv)


if __name__ == "__main__":
    main()
