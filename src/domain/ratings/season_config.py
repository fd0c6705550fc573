"""Load season definitions (phases, baselines, EPA rates) from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import tomllib

from domain.ratings.epa.calculator import EpaParameters
from domain.ratings.season import DECODE_PHASE_BASELINE, SeasonBaseline


@dataclass(frozen=True)
class SeasonConfig:
    """Configuration for rating one season's events."""

    name: str
    description: str | None
    file_path: Path
    baseline: SeasonBaseline
    epa_parameters: EpaParameters

    @property
    def phase_names(self) -> tuple[str, ...]:
        return self.baseline.phase_names

    def as_config_json(self) -> dict[str, Any]:
        return {
            "phases": list(self.baseline.phase_names),
            "baseline_total": self.baseline.total_score,
            "baseline_phases": dict(self.baseline.phase_scores),
            "min_learning_rate": self.epa_parameters.min_learning_rate,
            "max_learning_rate": self.epa_parameters.max_learning_rate,
            "learning_rate_decay": self.epa_parameters.learning_rate_decay,
        }


def load_season_configs(config_dir: Path) -> list[SeasonConfig]:
    """Load and validate every season TOML file in a directory."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Season config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Season config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    seasons = [_parse_season_config(_read_toml(file_path), file_path) for file_path in config_files]

    seen: dict[str, Path] = {}
    for season in seasons:
        if season.name in seen:
            raise ValueError(
                f"Duplicate season config names found in {config_dir}: "
                f"'{season.name}' in {seen[season.name].name} and {season.file_path.name}"
            )
        seen[season.name] = season.file_path
    return seasons


def load_season_config(config_dir: Path, name: str) -> SeasonConfig:
    """Load one season config by its [system].name."""
    configs = load_season_configs(config_dir)
    for config in configs:
        if config.name == name:
            return config
    available = ", ".join(config.name for config in configs)
    raise KeyError(f"No season config named '{name}' in {config_dir}. Available: {available}")


def _read_toml(file_path: Path) -> dict[str, Any]:
    with file_path.open("rb") as file:
        try:
            return tomllib.load(file)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"{file_path}: invalid TOML ({exc})") from exc


def _parse_season_config(raw: dict[str, Any], file_path: Path) -> SeasonConfig:
    system_raw = raw.get("system", {})
    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")
    description = system_raw.get("description")

    season_raw = raw.get("season", {})
    epa_raw = raw.get("epa", {})

    baseline = _parse_baseline(season_raw, file_path)
    parameters = EpaParameters(
        min_learning_rate=float(epa_raw.get("min_learning_rate", 0.1)),
        max_learning_rate=float(epa_raw.get("max_learning_rate", 0.4)),
        learning_rate_decay=float(epa_raw.get("learning_rate_decay", 0.1)),
    )
    _validate_parameters(file_path=file_path, parameters=parameters)

    return SeasonConfig(
        name=name,
        description=None if description is None else str(description),
        file_path=file_path,
        baseline=baseline,
        epa_parameters=parameters,
    )


def _parse_baseline(season_raw: dict[str, Any], file_path: Path) -> SeasonBaseline:
    phases_value = season_raw.get("phases", list(DECODE_PHASE_BASELINE))
    if not isinstance(phases_value, list) or not all(isinstance(item, str) for item in phases_value):
        raise ValueError(f"{file_path}: [season].phases must be a list of strings")
    phases = [item.strip() for item in phases_value]
    if any(not phase for phase in phases):
        raise ValueError(f"{file_path}: [season].phases must not contain empty names")
    if len(phases) != len(set(phases)):
        raise ValueError(f"{file_path}: [season].phases must be unique")

    baseline_raw = season_raw.get("baseline", {})
    phase_scores: dict[str, float] = {}
    for phase in phases:
        default = DECODE_PHASE_BASELINE.get(phase, 0.0)
        phase_scores[phase] = float(baseline_raw.get(phase, default))
        if phase_scores[phase] < 0.0:
            raise ValueError(f"{file_path}: [season.baseline].{phase} must be >= 0")

    unknown = sorted(set(baseline_raw) - set(phases) - {"total"})
    if unknown:
        raise ValueError(f"{file_path}: [season.baseline] has unknown phases {unknown}")

    if "total" in baseline_raw:
        total_score = float(baseline_raw["total"])
        if total_score < 0.0:
            raise ValueError(f"{file_path}: [season.baseline].total must be >= 0")
        return SeasonBaseline(total_score=total_score, phase_scores=phase_scores)
    return SeasonBaseline.from_phase_averages(phase_scores)


def _validate_parameters(*, file_path: Path, parameters: EpaParameters) -> None:
    if parameters.min_learning_rate <= 0.0:
        raise ValueError(f"{file_path}: [epa].min_learning_rate must be > 0")
    if parameters.max_learning_rate < parameters.min_learning_rate:
        raise ValueError(f"{file_path}: [epa].max_learning_rate must be >= min_learning_rate")
    if parameters.max_learning_rate > 1.0:
        raise ValueError(f"{file_path}: [epa].max_learning_rate must be <= 1")
    if parameters.learning_rate_decay < 0.0:
        raise ValueError(f"{file_path}: [epa].learning_rate_decay must be >= 0")


__all__ = ["SeasonConfig", "load_season_config", "load_season_configs"]
