"""
Logging configuration for SFL Studio servers.

Re-exports sfl_studio.logging_config for server use.
"""

from sfl_studio.logging_config import StudioLogger, get_logger, session_logger, set_debug_mode

# Re-export for convenience
__all__ = ['get_logger', 'StudioLogger', 'session_logger', 'set_debug_mode']
