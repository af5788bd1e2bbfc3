# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for flatparam.

Every config section gets its own frozen pydantic model. Frozen means once you
create it, you cannot mutate it. Layer configs are read-only for the whole
lifetime of a network, and so is the YAML they come from.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flatparam.init.weights import WeightInit

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: reproducibility (seed), observability (log_level,
    log_file) and project identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="flatparam", description="Human-readable project identifier"
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Global random seed; layer i initializes with seed + i",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"unknown log_level '{value}', must be one of {list(_LOG_LEVELS)}")
        return upper


class DistributionConfig(BaseModel):
    """
    Sampler used by the 'distribution' weight init scheme. Only the fields
    relevant to ``type`` are read.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    type: Literal["normal", "uniform", "binomial"] = Field(
        description="Distribution family",
    )
    mean: float = Field(default=0.0, description="Normal: mean")
    std: float = Field(default=1.0, ge=0.0, description="Normal: standard deviation")
    lower: float = Field(default=0.0, description="Uniform: lower bound")
    upper: float = Field(default=1.0, description="Uniform: upper bound")
    trials: int = Field(default=1, ge=0, description="Binomial: number of trials")
    probability: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Binomial: success probability"
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> "DistributionConfig":
        if self.type == "uniform" and self.lower > self.upper:
            raise ValueError(f"uniform lower bound {self.lower} exceeds upper bound {self.upper}")
        return self


class LayerSection(BaseModel):
    """
    One element-wise layer. Its weight and bias each take n_in slots of the
    network parameter buffer.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    name: str = Field(description="Layer identifier, used in logs and parameter keys")
    n_in: int = Field(ge=0, description="Number of inputs")
    n_out: int = Field(ge=0, description="Number of outputs, must equal n_in")
    weight_init: str = Field(
        default=WeightInit.XAVIER.value,
        description="Weight init scheme, one of the WeightInit values",
    )
    bias_init: float = Field(default=0.0, description="Constant every bias element starts at")
    distribution: Optional[DistributionConfig] = Field(
        default=None,
        description="Required when weight_init is 'distribution'",
    )

    @field_validator("weight_init")
    @classmethod
    def _known_scheme(cls, value: str) -> str:
        lowered = value.lower()
        allowed = {member.value for member in WeightInit}
        if lowered not in allowed:
            raise ValueError(f"unknown weight_init '{value}', must be one of {sorted(allowed)}")
        return lowered

    @model_validator(mode="after")
    def _check_layout(self) -> "LayerSection":
        if self.n_in != self.n_out:
            raise ValueError(
                f"element-wise layer '{self.name}' needs n_in == n_out, "
                f"got n_in={self.n_in}, n_out={self.n_out}"
            )
        if self.weight_init == WeightInit.DISTRIBUTION.value and self.distribution is None:
            raise ValueError(f"layer '{self.name}' uses weight_init 'distribution' but has none")
        if self.weight_init == WeightInit.XAVIER_LEGACY.value:
            raise ValueError(
                f"layer '{self.name}': xavier_legacy needs a 2-d weight shape, "
                "element-wise weights are 1-d"
            )
        return self


class NetworkConfig(BaseModel):
    """The layers sharing one flat parameter buffer, in buffer order."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    dtype: Literal["float32", "float64"] = Field(
        default="float32",
        description="Element dtype of the parameter and gradient buffers",
    )
    init_workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Threads used to initialize layers; 1 means sequential",
    )
    layers: list[LayerSection] = Field(
        default_factory=list,
        description="Layers in the order their slices appear in the buffer",
    )

    @model_validator(mode="after")
    def _unique_names(self) -> "NetworkConfig":
        names = [layer.name for layer in self.layers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate layer names: {duplicates}")
        return self


class FlatParamConfig(BaseModel):
    """
    Top-level config container. A YAML file may contain just ``global:`` or
    ``global:`` + ``network:``; commands check they have what they need.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    network: Optional[NetworkConfig] = Field(default=None)
