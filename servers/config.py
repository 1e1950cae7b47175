"""
Server Configuration for the SFL Studio API

Re-exports sfl_studio.config for server use.
This allows servers to import from a local config module.
"""

from sfl_studio.config import AVAILABLE_MODELS, StudioConfig, config

# Re-export for convenience
__all__ = ['config', 'StudioConfig', 'AVAILABLE_MODELS']
