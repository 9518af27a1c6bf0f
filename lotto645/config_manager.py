"""
LOTTO645 Configuration Manager
Reads runtime settings from config/config.ini with per-key fallbacks to the
defaults in lotto645.config, and exposes them as a typed PipelineSettings.
"""

import configparser
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from loguru import logger

from lotto645 import config as defaults
from lotto645.exceptions import ConfigurationError

SELECTORS = ("mcmc", "genetic")


@dataclass(frozen=True)
class PipelineSettings:
    """Typed view of the runtime configuration; PipelineSettings() gives the built-in defaults."""
    data_file: str = defaults.DATA_FILE_PATH
    log_file: str = defaults.LOG_FILE_PATH
    selector: str = "mcmc"
    parallel: bool = True
    monte_carlo_trials: int = defaults.MONTE_CARLO_TRIALS
    mcmc_chains: int = defaults.MCMC_CHAINS
    mcmc_burn_in: int = defaults.MCMC_BURN_IN
    mcmc_samples: int = defaults.MCMC_SAMPLES
    mcmc_r_hat_threshold: float = defaults.MCMC_R_HAT_THRESHOLD
    mcmc_rejection_draws: int = defaults.MCMC_REJECTION_DRAWS
    ga_population_size: int = defaults.GA_POPULATION_SIZE
    ga_generations: int = defaults.GA_GENERATIONS
    ga_mutation_rate: float = defaults.GA_MUTATION_RATE
    ga_tournament_size: int = defaults.GA_TOURNAMENT_SIZE
    ga_elitism_rate: float = defaults.GA_ELITISM_RATE
    fallback_attempts: int = defaults.FALLBACK_ATTEMPTS
    fallback_temperature: float = defaults.FALLBACK_TEMPERATURE
    rrf_k: int = defaults.RRF_K
    rrf_weight: float = defaults.RRF_BLEND_WEIGHT
    weekly_sales: float = defaults.ESTIMATED_WEEKLY_SALES
    population_bias_weights: Dict[str, float] = field(
        default_factory=lambda: dict(defaults.POPULATION_BIAS_WEIGHTS))
    structural_bounds: Dict[str, Tuple[float, float]] = field(
        default_factory=lambda: dict(defaults.STRUCTURAL_BOUNDS))

    def __post_init__(self):
        if self.selector not in SELECTORS:
            raise ConfigurationError(f"Unknown selector '{self.selector}', expected one of {SELECTORS}")
        if self.mcmc_chains < 1 or self.ga_population_size < 2:
            raise ConfigurationError("MCMC needs at least one chain and the GA at least two chromosomes")
        missing = set(defaults.STRUCTURAL_BOUNDS) - set(self.structural_bounds)
        if missing:
            raise ConfigurationError(f"Structural bounds missing for: {sorted(missing)}")


class ConfigurationManager:
    def __init__(self, config_file: str = defaults.CONFIG_FILE_PATH):
        self.config_file = config_file
        self.parser = configparser.ConfigParser()
        self.config: Dict[str, Dict[str, str]] = {}
        self.load_configuration()

    def load_configuration(self) -> Dict[str, Dict[str, str]]:
        """Load configuration from the ini file with fallback to the defaults"""
        self.config = self._get_default_config()
        if not os.path.exists(self.config_file):
            logger.warning(f"Config file {self.config_file} not found, using default configuration")
            return self.config

        try:
            self.parser.read(self.config_file, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Could not parse {self.config_file}: {e}") from e

        for section in self.parser.sections():
            self.config.setdefault(section, {}).update(dict(self.parser.items(section)))
        logger.info(f"Configuration loaded from {self.config_file}")
        return self.config

    def get_config_value(self, section: str, key: str, default: Any = None) -> Any:
        """Get specific configuration value with fallback"""
        return self.config.get(section, {}).get(key, default)

    def _get_typed(self, section: str, key: str, cast, default):
        raw = self.get_config_value(section, key)
        if raw is None:
            return default
        try:
            return cast(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for [{section}] {key}: {raw!r}") from e

    @staticmethod
    def _to_bool(value: str) -> bool:
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(value)

    @staticmethod
    def _to_bounds(value: str) -> Tuple[float, float]:
        parts = [p.strip() for p in value.split(",")]
        if len(parts) != 2:
            raise ValueError(value)
        return float(parts[0]), float(parts[1])

    def get_settings(self, overrides: Optional[Dict[str, Any]] = None) -> PipelineSettings:
        """Builds PipelineSettings from the loaded configuration plus optional overrides."""
        base = PipelineSettings()
        bias_weights = {
            name: self._get_typed("population_bias", name, float, weight)
            for name, weight in base.population_bias_weights.items()
        }
        bounds = {
            name: self._get_typed("structural_bounds", name, self._to_bounds, bound)
            for name, bound in base.structural_bounds.items()
        }
        values = dict(
            data_file=self._get_typed("paths", "data_file", str, base.data_file),
            log_file=self._get_typed("paths", "log_file", str, base.log_file),
            selector=self._get_typed("pipeline", "selector", str, base.selector).strip().lower(),
            parallel=self._get_typed("pipeline", "parallel", self._to_bool, base.parallel),
            monte_carlo_trials=self._get_typed("pipeline", "monte_carlo_trials", int, base.monte_carlo_trials),
            fallback_attempts=self._get_typed("pipeline", "fallback_attempts", int, base.fallback_attempts),
            fallback_temperature=self._get_typed("pipeline", "fallback_temperature", float,
                                                 base.fallback_temperature),
            mcmc_chains=self._get_typed("mcmc", "chains", int, base.mcmc_chains),
            mcmc_burn_in=self._get_typed("mcmc", "burn_in", int, base.mcmc_burn_in),
            mcmc_samples=self._get_typed("mcmc", "samples", int, base.mcmc_samples),
            mcmc_r_hat_threshold=self._get_typed("mcmc", "r_hat_threshold", float, base.mcmc_r_hat_threshold),
            mcmc_rejection_draws=self._get_typed("mcmc", "rejection_draws", int, base.mcmc_rejection_draws),
            ga_population_size=self._get_typed("genetic", "population_size", int, base.ga_population_size),
            ga_generations=self._get_typed("genetic", "generations", int, base.ga_generations),
            ga_mutation_rate=self._get_typed("genetic", "mutation_rate", float, base.ga_mutation_rate),
            ga_tournament_size=self._get_typed("genetic", "tournament_size", int, base.ga_tournament_size),
            ga_elitism_rate=self._get_typed("genetic", "elitism_rate", float, base.ga_elitism_rate),
            rrf_k=self._get_typed("fusion", "rrf_k", int, base.rrf_k),
            rrf_weight=self._get_typed("fusion", "rrf_weight", float, base.rrf_weight),
            weekly_sales=self._get_typed("expected_value", "weekly_sales", float, base.weekly_sales),
            population_bias_weights=bias_weights,
            structural_bounds=bounds,
        )
        values.update(overrides or {})
        return PipelineSettings(**values)

    def _get_default_config(self) -> Dict[str, Dict[str, str]]:
        """Get default configuration"""
        return {
            "paths": {
                "data_file": defaults.DATA_FILE_PATH,
                "log_file": defaults.LOG_FILE_PATH,
            },
            "pipeline": {
                "selector": "mcmc",
                "parallel": "True",
            },
        }


def get_settings(config_file: str = defaults.CONFIG_FILE_PATH,
                 overrides: Optional[Dict[str, Any]] = None) -> PipelineSettings:
    """Factory function returning the settings of a config file."""
    return ConfigurationManager(config_file).get_settings(overrides)
