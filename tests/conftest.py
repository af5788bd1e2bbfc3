# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for flatparam tests.

Fixtures here are available to every test file automatically.
We keep them minimal: just the stuff that multiple test modules need.
"""

import textwrap
from pathlib import Path

import pytest
import torch

from flatparam.layers.config import ElementWiseLayerConfig, NeuralNetConfiguration


@pytest.fixture()
def generator() -> torch.Generator:
    """A seeded generator so statistical tests are reproducible."""
    gen = torch.Generator()
    gen.manual_seed(1234)
    return gen


@pytest.fixture()
def make_conf():
    """Factory for a NeuralNetConfiguration wrapping an element-wise layer."""

    def _make(n_in: int, n_out: int | None = None, **kwargs) -> NeuralNetConfiguration:
        layer = ElementWiseLayerConfig(n_in=n_in, n_out=n_in if n_out is None else n_out, **kwargs)
        return NeuralNetConfiguration(layer)

    return _make


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    The smallest config that passes schema validation: just ``global:``.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "flatparam-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def network_config_file(tmp_path: Path) -> Path:
    """A config with a small three-layer network."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          seed: 7
          log_level: "INFO"
        network:
          config_version: "1.0.0"
          dtype: float64
          init_workers: 2
          layers:
            - name: first
              n_in: 4
              n_out: 4
              weight_init: uniform
            - name: second
              n_in: 3
              n_out: 3
              weight_init: zero
              bias_init: 0.5
            - name: third
              n_in: 2
              n_out: 2
              weight_init: distribution
              distribution:
                type: uniform
                lower: -0.1
                upper: 0.1
    """)
    config_file = tmp_path / "network.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file
