"""
Application configuration for the Fleet Anomaly Engine.

Provides environment-aware settings with conservative defaults. All rule
thresholds and baseline defaults are configurable to avoid hard-coded
"magic numbers" inside detectors.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class RuleThresholds(BaseModel):
	"""
	Trigger thresholds for the classifier rules.

	Rationale:
	- Engine temperature uses both an absolute limit and a z-score limit.
	- Oil pressure, battery voltage and tire pressure use fixed safe ranges.
	"""

	zscore: float = Field(2.5, gt=0.0, description="Z-score limit for engine temperature")
	engine_temp_max: float = Field(100.0, description="Absolute engine temperature limit (C)")

	oil_pressure_min: float = Field(25.0, ge=0.0, description="Oil pressure alert limit (psi)")
	oil_pressure_reference: float = Field(30.0, description="Lower edge of normal oil pressure")
	oil_pressure_scale: float = Field(5.0, gt=0.0, description="psi per deviation unit")

	battery_voltage_min: float = Field(12.0, ge=0.0, description="Undercharging limit (V)")
	battery_voltage_max: float = Field(14.8, ge=0.0, description="Overcharging limit (V)")
	battery_voltage_nominal: float = Field(12.6, description="Resting voltage of a healthy battery")
	battery_voltage_scale: float = Field(0.5, gt=0.0, description="Volts per deviation unit")

	tire_variance_max: float = Field(9.0, ge=0.0, description="Max variance across four tires (psi^2)")
	tire_pressure_min: float = Field(28.0, ge=0.0, description="Low tire pressure limit (psi)")
	tire_pressure_reference: float = Field(30.0, description="Lower edge of normal tire pressure")
	tire_pressure_scale: float = Field(3.0, gt=0.0, description="psi per deviation unit")

	fuel_efficiency_sigma: float = Field(2.0, gt=0.0, description="Std devs below mean to alert")
	overdue_days_scale: float = Field(7.0, gt=0.0, description="Days per deviation unit")

	@model_validator(mode="after")
	def _check_ranges(self) -> "RuleThresholds":
		if self.battery_voltage_min > self.battery_voltage_max:
			raise ConfigurationError(
				f"battery_voltage_min ({self.battery_voltage_min}) exceeds "
				f"battery_voltage_max ({self.battery_voltage_max})"
			)
		return self


class RuleConfidence(BaseModel):
	"""
	Base confidence for each rule.

	Boolean rules get fixed values above the acceptance threshold. Engine
	temperature confidence grows with the z-score and is capped.
	"""

	engine_temp_base: float = Field(0.5, ge=0.0, le=1.0)
	engine_temp_per_sigma: float = Field(0.15, ge=0.0)
	engine_temp_cap: float = Field(0.95, ge=0.0, le=1.0)
	oil_pressure: float = Field(0.90, ge=0.0, le=1.0)
	battery_voltage: float = Field(0.85, ge=0.0, le=1.0)
	tire_imbalance: float = Field(0.80, ge=0.0, le=1.0)
	tire_low: float = Field(0.85, ge=0.0, le=1.0)
	fuel_efficiency: float = Field(0.75, ge=0.0, le=1.0)
	overdue_maintenance: float = Field(0.95, ge=0.0, le=1.0)


class NominalRange(BaseModel):
	"""Known-good range for a safety-critical sensor."""

	mean: float
	std_dev: float = Field(gt=0.0)
	min: float
	max: float

	@model_validator(mode="after")
	def _check_bounds(self) -> "NominalRange":
		if self.min > self.max:
			raise ConfigurationError(f"Nominal range min ({self.min}) exceeds max ({self.max})")
		return self


class BaselineConfig(BaseModel):
	"""
	Configuration for baseline estimation.

	Notes:
	- std_floor: lower bound for std_dev so z-scores never divide by zero.
	- default_*: synthetic sample used when a metric has no data at all.
	- oil_pressure / battery_voltage: nominal ranges, not sample-derived.
	"""

	std_floor: float = Field(1.0, gt=0.0)
	default_engine_temp: float = 80.0
	default_fuel_efficiency: float = 8.0
	default_avg_speed: float = 50.0
	default_idle_time: float = 10.0
	oil_pressure: NominalRange = NominalRange(mean=40.0, std_dev=5.0, min=30.0, max=60.0)
	battery_voltage: NominalRange = NominalRange(mean=12.6, std_dev=0.5, min=11.5, max=14.5)


class LifecycleConfig(BaseModel):
	"""
	Acceptance, retention and reporting settings.
	"""

	confidence_threshold: float = Field(0.70, ge=0.0, le=1.0)
	retention_days: int = Field(30, ge=0)
	recent_limit: int = Field(20, ge=1)
	top_vehicles: int = Field(5, ge=1)
	trend_days: int = Field(7, ge=1)


class AnomalyConfig(BaseModel):
	"""
	Fleet anomaly engine configuration.
	"""

	thresholds: RuleThresholds = RuleThresholds()
	confidence: RuleConfidence = RuleConfidence()
	baselines: BaselineConfig = BaselineConfig()
	lifecycle: LifecycleConfig = LifecycleConfig()


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.

	Nested values use a double underscore, e.g.
	FLEET_ANOMALY__LIFECYCLE__RETENTION_DAYS=14.
	"""

	model_config = SettingsConfigDict(
		env_prefix="FLEET_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	anomaly: AnomalyConfig = AnomalyConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
