"""
Two-Group Sentiment Comparison

Parametric comparisons between exactly two groups of per-record aggregates:

- compare_counts: Poisson regression of a per-record label count on the group
  indicator. The estimate is on the log scale; ComparisonResult.rate_ratio
  exponentiates it into a multiplicative effect.
- compare_means_lm: ordinary least squares of a per-record mean on the group
  indicator.
- compare_means_ttest: independent two-sample t-test of the same means.

With equal variances assumed, the OLS coefficient equals the t-test mean
difference and both report the same p-value.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.05


class ComparisonError(Exception):
    """Base class for comparison failures."""


class InsufficientDataError(ComparisonError):
    """A group has fewer than two observations."""


class InvalidGroupSelectionError(ComparisonError):
    """The selection does not leave exactly two distinct groups."""


@dataclass
class ComparisonResult:
    """Effect of the comparison group relative to the reference group."""

    method: str
    response: str
    reference_group: Any
    comparison_group: Any
    estimate: float
    std_error: float
    conf_int: Tuple[float, float]
    statistic: float
    p_value: float
    n_reference: int
    n_comparison: int
    alpha: float = DEFAULT_ALPHA

    @property
    def significant(self) -> bool:
        """True when p_value < alpha; False for an undefined p-value."""
        return bool(self.p_value < self.alpha)

    @property
    def rate_ratio(self) -> float:
        """exp(estimate); the multiplicative effect for a count comparison."""
        return math.exp(self.estimate)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["significant"] = self.significant
        return result


def select_two_groups(
    df: pd.DataFrame,
    response: str,
    group_col: str,
    groups: Optional[Sequence[Any]] = None,
) -> Tuple[pd.DataFrame, Any, Any]:
    """
    Restrict a frame to exactly two groups with enough observations.

    Args:
        df: Per-record aggregates
        response: Response column; rows with a missing response are dropped
        group_col: Column holding the group label
        groups: (reference, comparison) labels. Defaults to the two distinct
            values in the frame, sorted, with the first as reference.

    Returns:
        (filtered frame, reference label, comparison label)

    Raises:
        ValueError: If response or group_col is not a column
        InvalidGroupSelectionError: If other than two distinct groups remain
        InsufficientDataError: If either group has fewer than two observations
    """
    missing = [col for col in (response, group_col) if col not in df.columns]
    if missing:
        raise ValueError(f"Comparison input is missing columns: {missing}")

    data = df.dropna(subset=[response, group_col])

    if groups is not None:
        groups = list(dict.fromkeys(groups))
        if len(groups) != 2:
            raise InvalidGroupSelectionError(
                f"Exactly two groups must be selected, got {len(groups)}: {groups}"
            )
        data = data[data[group_col].isin(groups)]

    present = sorted(data[group_col].unique(), key=str)
    if len(present) != 2:
        raise InvalidGroupSelectionError(
            f"Expected exactly two distinct values of '{group_col}', found {len(present)}: {present}"
        )

    reference, comparison = groups if groups is not None else present

    sizes = data[group_col].value_counts()
    for label in (reference, comparison):
        if sizes.get(label, 0) < 2:
            raise InsufficientDataError(
                f"Group '{label}' has {sizes.get(label, 0)} observations; at least 2 are required"
            )

    return data, reference, comparison


def _design(data: pd.DataFrame, group_col: str, comparison: Any) -> pd.DataFrame:
    """Intercept plus a 0/1 indicator for the comparison group."""
    indicator = (data[group_col] == comparison).astype(float).rename("comparison")
    return sm.add_constant(indicator, has_constant="add")


def _model_result(
    method: str,
    fit,
    data: pd.DataFrame,
    response: str,
    group_col: str,
    reference: Any,
    comparison: Any,
    alpha: float,
) -> ComparisonResult:
    low, high = fit.conf_int(alpha=alpha).loc["comparison"]
    return ComparisonResult(
        method=method,
        response=response,
        reference_group=reference,
        comparison_group=comparison,
        estimate=float(fit.params["comparison"]),
        std_error=float(fit.bse["comparison"]),
        conf_int=(float(low), float(high)),
        statistic=float(fit.tvalues["comparison"]),
        p_value=float(fit.pvalues["comparison"]),
        n_reference=int((data[group_col] == reference).sum()),
        n_comparison=int((data[group_col] == comparison).sum()),
        alpha=alpha,
    )


def compare_counts(
    df: pd.DataFrame,
    response: str,
    group_col: str,
    groups: Optional[Sequence[Any]] = None,
    alpha: float = DEFAULT_ALPHA,
) -> ComparisonResult:
    """
    Poisson regression of a count response on a two-level group predictor.

    Args:
        df: Per-record counts, e.g. from SentimentAggregator.record_label_counts
        response: Count column
        group_col: Group label column
        groups: Optional (reference, comparison) labels
        alpha: Significance level

    Returns:
        ComparisonResult with the log-scale coefficient of the comparison group
    """
    data, reference, comparison = select_two_groups(df, response, group_col, groups)

    y = data[response].astype(float)
    if (y < 0).any():
        raise ValueError(f"Count response '{response}' contains negative values")

    # log rate of a group with no events is -inf, the fit cannot converge
    totals = y.groupby(data[group_col]).sum()
    empty = [group for group in (reference, comparison) if totals.get(group, 0) == 0]
    if empty:
        raise InsufficientDataError(
            f"No '{response}' events in group(s) {empty}, rate ratio is undefined"
        )

    fit = sm.GLM(y, _design(data, group_col, comparison), family=sm.families.Poisson()).fit()
    result = _model_result("poisson", fit, data, response, group_col, reference, comparison, alpha)

    logger.info(
        f"Poisson {response} ~ {group_col}: {comparison} vs {reference} "
        f"coef={result.estimate:.4f} (rate ratio {result.rate_ratio:.3f}), p={result.p_value:.4g}"
    )
    return result


def compare_means_lm(
    df: pd.DataFrame,
    response: str,
    group_col: str,
    groups: Optional[Sequence[Any]] = None,
    alpha: float = DEFAULT_ALPHA,
) -> ComparisonResult:
    """
    Linear model of a numeric response on a two-level group predictor.

    Args:
        df: Per-record means, e.g. from SentimentAggregator.record_polarity
        response: Numeric column
        group_col: Group label column
        groups: Optional (reference, comparison) labels
        alpha: Significance level

    Returns:
        ComparisonResult with the comparison-group coefficient
    """
    data, reference, comparison = select_two_groups(df, response, group_col, groups)

    fit = sm.OLS(data[response].astype(float), _design(data, group_col, comparison)).fit()
    result = _model_result("ols", fit, data, response, group_col, reference, comparison, alpha)

    logger.info(
        f"OLS {response} ~ {group_col}: {comparison} vs {reference} "
        f"coef={result.estimate:.4f}, p={result.p_value:.4g}"
    )
    return result


def compare_means_ttest(
    df: pd.DataFrame,
    response: str,
    group_col: str,
    groups: Optional[Sequence[Any]] = None,
    alpha: float = DEFAULT_ALPHA,
    equal_var: bool = True,
) -> ComparisonResult:
    """
    Independent two-sample t-test of a numeric response between two groups.

    Args:
        df: Per-record means
        response: Numeric column
        group_col: Group label column
        groups: Optional (reference, comparison) labels
        alpha: Significance level
        equal_var: Pooled-variance test if True, Welch's test otherwise

    Returns:
        ComparisonResult whose estimate is mean(comparison) - mean(reference)
    """
    data, reference, comparison = select_two_groups(df, response, group_col, groups)

    ref_values = data.loc[data[group_col] == reference, response].astype(float).to_numpy()
    cmp_values = data.loc[data[group_col] == comparison, response].astype(float).to_numpy()
    n_ref, n_cmp = len(ref_values), len(cmp_values)
    var_ref, var_cmp = ref_values.var(ddof=1), cmp_values.var(ddof=1)

    t_stat, p_value = stats.ttest_ind(cmp_values, ref_values, equal_var=equal_var)

    if equal_var:
        dof = n_ref + n_cmp - 2
        pooled = ((n_ref - 1) * var_ref + (n_cmp - 1) * var_cmp) / dof
        std_error = np.sqrt(pooled * (1 / n_ref + 1 / n_cmp))
    else:
        se_ref, se_cmp = var_ref / n_ref, var_cmp / n_cmp
        std_error = np.sqrt(se_ref + se_cmp)
        denom = se_ref**2 / (n_ref - 1) + se_cmp**2 / (n_cmp - 1)
        dof = (se_ref + se_cmp) ** 2 / denom if denom > 0 else np.nan

    estimate = float(cmp_values.mean() - ref_values.mean())
    margin = stats.t.ppf(1 - alpha / 2, dof) * std_error

    result = ComparisonResult(
        method="ttest" if equal_var else "welch",
        response=response,
        reference_group=reference,
        comparison_group=comparison,
        estimate=estimate,
        std_error=float(std_error),
        conf_int=(float(estimate - margin), float(estimate + margin)),
        statistic=float(t_stat),
        p_value=float(p_value),
        n_reference=n_ref,
        n_comparison=n_cmp,
        alpha=alpha,
    )

    logger.info(
        f"t-test {response}: {comparison} vs {reference} "
        f"diff={result.estimate:.4f}, t={result.statistic:.3f}, p={result.p_value:.4g}"
    )
    return result


def compare_means(
    df: pd.DataFrame,
    response: str,
    group_col: str,
    groups: Optional[Sequence[Any]] = None,
    alpha: float = DEFAULT_ALPHA,
) -> Tuple[ComparisonResult, ComparisonResult]:
    """Run both the linear-model and t-test mean comparisons on the same data."""
    lm_result = compare_means_lm(df, response, group_col, groups, alpha)
    ttest_result = compare_means_ttest(df, response, group_col, groups, alpha)

    if np.sign(lm_result.estimate) != np.sign(ttest_result.estimate):
        logger.warning(
            f"Linear model and t-test disagree in sign for {response}: "
            f"{lm_result.estimate:.4f} vs {ttest_result.estimate:.4f}"
        )
    return lm_result, ttest_result
