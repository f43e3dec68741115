import matplotlib.pyplot as plt
import seaborn as sns

from seroprev.likelihood import PARAMETER_NAMES


def plot_results(draws, summary, naive=None, filename=None):
    """
    Posterior densities of prevalence, sensitivity and specificity.

    Args:
        draws: DataFrame from posterior_draws
        summary: DataFrame from summarize_posterior
        naive: Raw rate estimate to mark on the prevalence panel
        filename: Save the figure here; shown interactively if None
    """
    sns.set_palette("husl")
    fig, axes = plt.subplots(1, len(PARAMETER_NAMES), figsize=(15, 4.5))

    for ax, name in zip(axes, PARAMETER_NAMES):
        values = 100 * draws[name]
        sns.histplot(values, bins=50, stat='density', alpha=0.4, ax=ax)
        sns.kdeplot(values, color='steelblue', linewidth=2, ax=ax)

        lower = 100 * summary.loc[name, '2.5%']
        upper = 100 * summary.loc[name, '97.5%']
        ax.axvspan(lower, upper, alpha=0.1, color='blue', label='95% credible interval')
        ax.axvline(100 * summary.loc[name, 'mean'], color='blue', linewidth=2, label='Posterior mean')

        if name == 'prevalence' and naive is not None:
            ax.axvline(100 * naive['estimate'], color='red', linestyle='--', alpha=0.8,
                       label='Raw positive rate')

        ax.set_title(name.capitalize(), fontsize=12, fontweight='bold')
        ax.set_xlabel('Percent')
        ax.set_ylabel('Density')
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=8)

    plt.tight_layout()

    if filename is not None:
        fig.savefig(filename, dpi=150)
        plt.close(fig)
    else:
        plt.show()

    return fig
