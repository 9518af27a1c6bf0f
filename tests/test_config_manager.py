"""
Tests for the Configuration Manager and CLI - LOTTO645
======================================================
"""

import json
import math

import pytest
from loguru import logger

from lotto645.cli import build_parser, main
from lotto645.config_manager import ConfigurationManager, PipelineSettings, get_settings
from lotto645.exceptions import ConfigurationError


def write_config(tmp_path, body):
    path = tmp_path / "config.ini"
    path.write_text(body, encoding="utf-8")
    return str(path)


class TestConfigurationManager:
    """ini parsing with per-key fallbacks."""

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = get_settings(str(tmp_path / "missing.ini"))
        assert settings == PipelineSettings()

    def test_values_are_typed(self, tmp_path):
        path = write_config(tmp_path, (
            "[pipeline]\nselector = Genetic\nparallel = no\n"
            "[mcmc]\nchains = 6\nr_hat_threshold = 1.05\n"
            "[genetic]\npopulation_size = 50\n"
            "[population_bias]\nbirthday = 0.5\n"
            "[structural_bounds]\nmax_consecutive = -inf, 3.5\n"
        ))
        settings = ConfigurationManager(path).get_settings()
        assert settings.selector == "genetic"
        assert settings.parallel == False
        assert settings.mcmc_chains == 6
        assert settings.mcmc_r_hat_threshold == pytest.approx(1.05)
        assert settings.ga_population_size == 50
        assert settings.population_bias_weights["birthday"] == pytest.approx(0.5)
        assert settings.population_bias_weights["cultural"] == pytest.approx(0.10)
        low, high = settings.structural_bounds["max_consecutive"]
        assert math.isinf(low) and low < 0
        assert high == pytest.approx(3.5)
        # untouched keys keep their defaults
        assert settings.mcmc_burn_in == 5000

    def test_overrides_win(self, tmp_path):
        path = write_config(tmp_path, "[pipeline]\nselector = genetic\n")
        settings = get_settings(path, overrides={"selector": "mcmc", "data_file": "other.csv"})
        assert settings.selector == "mcmc"
        assert settings.data_file == "other.csv"

    def test_get_config_value(self, tmp_path):
        path = write_config(tmp_path, "[paths]\nlog_file = somewhere.log\n")
        manager = ConfigurationManager(path)
        assert manager.get_config_value("paths", "log_file") == "somewhere.log"
        assert manager.get_config_value("paths", "unknown", "fallback") == "fallback"
        assert manager.get_config_value("pipeline", "selector") == "mcmc"

    @pytest.mark.parametrize("body", [
        "[pipeline]\nselector = random\n",
        "[mcmc]\nchains = four\n",
        "[mcmc]\nchains = 0\n",
        "[pipeline]\nparallel = maybe\n",
        "[structural_bounds]\nsum = 80\n",
    ])
    def test_invalid_values_raise(self, tmp_path, body):
        path = write_config(tmp_path, body)
        with pytest.raises(ConfigurationError):
            ConfigurationManager(path).get_settings()

    def test_unparseable_file_raises(self, tmp_path):
        path = write_config(tmp_path, "this is not an ini file\n")
        with pytest.raises(ConfigurationError):
            ConfigurationManager(path)

    def test_settings_validation(self):
        with pytest.raises(ConfigurationError):
            PipelineSettings(structural_bounds={"sum": (80, 200)})
        with pytest.raises(ConfigurationError):
            PipelineSettings(ga_population_size=1)


class TestCommandLine:
    """argparse front end."""

    @pytest.fixture(autouse=True)
    def reset_logger(self):
        yield
        logger.remove()

    @pytest.fixture
    def cli_config(self, tmp_path, draw_factory):
        lines = ["draw_number,date,n1,n2,n3,n4,n5,n6,bonus"]
        for draw in draw_factory(60):
            lines.append(",".join(str(v) for v in (draw.draw_number, draw.date, *draw.numbers, draw.bonus)))
        data_file = tmp_path / "draws.csv"
        data_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return write_config(tmp_path, (
            f"[paths]\ndata_file = {data_file}\nlog_file = {tmp_path / 'logs' / 'test.log'}\n"
            "[pipeline]\nparallel = false\nmonte_carlo_trials = 200\n"
            "[mcmc]\nchains = 2\nburn_in = 100\nsamples = 50\nrejection_draws = 100\n"
            "[genetic]\npopulation_size = 20\ngenerations = 3\n"
        ))

    @staticmethod
    def _json_output(out):
        return json.loads(out[out.index("{\n"):])

    def test_parser(self):
        args = build_parser().parse_args(["generate", "--carryover", "2", "--selector", "genetic", "--json"])
        assert args.command == "generate"
        assert args.carryover == 2
        assert args.selector == "genetic"
        assert args.json == True

    def test_negative_carryover_is_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["ev", "--carryover", "-1"])
        with pytest.raises(SystemExit):
            build_parser().parse_args(["generate", "--carryover", "three"])

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_ev_command(self, cli_config, capsys):
        main(["--config", cli_config, "ev", "--carryover", "0", "--co-winners", "10", "--json"])
        payload = self._json_output(capsys.readouterr().out)
        assert payload["recommendation"] == "skip"
        assert set(payload["ev_by_rank"]) == {"1", "2", "3", "4", "5"}

    def test_generate_command(self, cli_config, capsys):
        main(["--config", cli_config, "generate", "--timestamp", "1754000000000", "--json"])
        payload = self._json_output(capsys.readouterr().out)
        assert len(payload["combination"]) == 6
        assert payload["seed"] > 0

    def test_analyze_command(self, cli_config, capsys):
        main(["--config", cli_config, "analyze", "--timestamp", "1754000000000", "--top", "3"])
        out = capsys.readouterr().out
        assert "Draw History Analysis" in out
        assert "Recommended Combination" in out

    def test_missing_draw_file_exits(self, cli_config, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", cli_config, "generate", "--draws", str(tmp_path / "missing.csv")])
        assert excinfo.value.code == 1
