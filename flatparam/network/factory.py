# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Builds NetworkParams from a validated ``network:`` config section.

The YAML schema has already rejected unknown schemes and unsupported shapes,
so this module only maps config values onto layer and distribution objects.
"""

import logging

import torch

from flatparam.config.schema import DistributionConfig, LayerSection, NetworkConfig
from flatparam.init.distributions import (
    BinomialDistribution,
    Distribution,
    NormalDistribution,
    UniformDistribution,
)
from flatparam.layers.config import ElementWiseLayerConfig, NeuralNetConfiguration
from flatparam.network.core import NetworkParams

logger = logging.getLogger(__name__)

_DTYPES: dict[str, torch.dtype] = {
    "float32": torch.float32,
    "float64": torch.float64,
}


def distribution_from_config(config: DistributionConfig) -> Distribution:
    """Instantiate the sampler described by a distribution section."""
    if config.type == "normal":
        return NormalDistribution(mean=config.mean, std=config.std)
    if config.type == "uniform":
        return UniformDistribution(lower=config.lower, upper=config.upper)
    return BinomialDistribution(trials=config.trials, probability=config.probability)


def build_layer(section: LayerSection) -> NeuralNetConfiguration:
    """Turn one layer section into a NeuralNetConfiguration."""
    distribution = (
        distribution_from_config(section.distribution) if section.distribution is not None else None
    )
    layer = ElementWiseLayerConfig(
        n_in=section.n_in,
        n_out=section.n_out,
        weight_init=section.weight_init,
        distribution=distribution,
        bias_init=section.bias_init,
        name=section.name,
    )
    return NeuralNetConfiguration(layer)


def build_network(config: NetworkConfig) -> NetworkParams:
    """
    Build the network buffers for every configured layer.

    Parameters are not initialized yet; call ``NetworkParams.init``.
    """
    confs = [build_layer(section) for section in config.layers]
    network = NetworkParams(confs, dtype=_DTYPES[config.dtype])
    logger.debug(
        "network built",
        extra={"layers": [section.name for section in config.layers], "dtype": config.dtype},
    )
    return network
