"""Bayesian random-effects meta-analysis.

The model is ``y_i ~ N(delta, se_i^2 + tau^2)`` with priors
``delta ~ N(0, 0.3)`` and ``tau ~ InvGamma(1, 0.15)``.  Marginal
likelihoods under ``H1`` (delta free) and ``H0`` (delta = 0) are computed
by integrating over a grid, which also yields the posterior of
``delta``.
"""

from __future__ import annotations

from typing import List

import numpy as np
from scipy import special, stats

from ..core.errors import MetaAnalysisError
from ..utils.logging import get_logger
from .analyzer import EffectSize, MetaAnalysisResult, MetaAnalyzer, effect_arrays

logger = get_logger(__name__)


class BayesianMetaAnalyzer:
    """Bayes factor and posterior summary for the pooled effect."""

    def __init__(
        self,
        conf_level: float = 0.95,
        delta_sd: float = 0.3,
        tau_shape: float = 1.0,
        tau_scale: float = 0.15,
        n_delta: int = 801,
        n_tau: int = 300,
    ) -> None:
        self.conf_level = conf_level
        self.delta_prior = stats.norm(loc=0.0, scale=delta_sd)
        self.tau_prior = stats.invgamma(a=tau_shape, scale=tau_scale)
        self.n_delta = n_delta
        self.n_tau = n_tau

    def _delta_grid(self, effect_sizes: List[EffectSize]) -> np.ndarray:
        """Non-uniform grid, dense where the prior, the likelihood and the
        approximate posterior have mass and coarse in between.

        The approximate posterior is the normal-normal update of the prior
        with the classical random-effects estimate.
        """
        classical = MetaAnalyzer().compute_pooled_effect(effect_sizes, method="random")
        prior_mean = float(self.delta_prior.mean())
        prior_sd = float(self.delta_prior.std())
        se = max(classical.std_error or 0.0, 1e-6)
        tau = classical.tau or 0.0
        post_var = 1.0 / (1.0 / prior_sd ** 2 + 1.0 / se ** 2)
        post_mean = post_var * (prior_mean / prior_sd ** 2 + classical.estimate / se ** 2)

        regions = [
            (prior_mean, 5.0 * prior_sd),
            (classical.estimate, 8.0 * se + 4.0 * tau),
            (post_mean, 8.0 * np.sqrt(post_var) + 4.0 * tau),
        ]
        parts = [np.linspace(center - width, center + width, self.n_delta) for center, width in regions]
        low = min(part[0] for part in parts)
        high = max(part[-1] for part in parts)
        parts.append(np.linspace(low, high, self.n_delta))
        return np.unique(np.concatenate(parts))

    def _tau_grid(self, effects: np.ndarray) -> np.ndarray:
        upper = max(float(self.tau_prior.ppf(0.999)), 5.0 * float(np.std(effects)) + 1.0)
        return np.geomspace(1e-4, upper, self.n_tau)

    @staticmethod
    def _log_prior_weights(dist, grid: np.ndarray) -> np.ndarray:
        """Log prior mass per grid point, renormalised over the grid."""
        mass = dist.pdf(grid) * np.gradient(grid)
        with np.errstate(divide="ignore"):
            log_mass = np.log(mass)
        return log_mass - special.logsumexp(log_mass)

    def compute_pooled_effect(self, effect_sizes: List[EffectSize]) -> MetaAnalysisResult:
        """Posterior mean and credible interval of delta, plus log(BF01)."""
        if not effect_sizes:
            raise MetaAnalysisError("No effect sizes provided")
        effects, ses = effect_arrays(effect_sizes)
        delta = self._delta_grid(effect_sizes)
        tau = self._tau_grid(effects)
        log_w_delta = self._log_prior_weights(self.delta_prior, delta)
        log_w_tau = self._log_prior_weights(self.tau_prior, tau)

        # log-likelihood on the (delta, tau) grid, summed over studies
        log_lik = np.zeros((delta.size, tau.size))
        for effect, se in zip(effects, ses):
            scale = np.sqrt(se ** 2 + tau ** 2)
            log_lik += stats.norm.logpdf(effect, loc=delta[:, None], scale=scale[None, :])

        log_joint = log_lik + log_w_delta[:, None] + log_w_tau[None, :]
        log_m1 = special.logsumexp(log_joint)

        null_scale = np.sqrt(ses[None, :] ** 2 + tau[:, None] ** 2)
        log_lik_null = stats.norm.logpdf(effects[None, :], loc=0.0, scale=null_scale).sum(axis=1)
        log_m0 = special.logsumexp(log_lik_null + log_w_tau)
        if not (np.isfinite(log_m1) and np.isfinite(log_m0)):
            raise MetaAnalysisError("Bayesian meta-analysis produced a non-finite marginal likelihood")

        log_post_delta = special.logsumexp(log_joint, axis=1) - log_m1
        posterior = np.exp(log_post_delta)
        posterior /= posterior.sum()
        cdf = np.cumsum(posterior)
        tail = (1.0 - self.conf_level) / 2.0
        conf_low = float(np.interp(tail, cdf, delta))
        conf_high = float(np.interp(1.0 - tail, cdf, delta))
        estimate = float(np.sum(posterior * delta))

        log_post_tau = special.logsumexp(log_joint, axis=0) - log_m1
        tau_mean = float(np.sum(np.exp(log_post_tau) * tau))

        result = MetaAnalysisResult(
            method="bayes",
            estimate=estimate,
            conf_low=conf_low,
            conf_high=conf_high,
            conf_level=self.conf_level,
            tau=tau_mean,
            n_studies=len(effect_sizes),
            log_bf01=float(log_m0 - log_m1),
        )
        logger.debug(f"Bayesian meta-analysis: log(BF01) = {result.log_bf01:.3f}")
        return result
