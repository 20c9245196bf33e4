"""
observability/ — StreamScribe logging setup.
"""

from streamscribe.observability.logger import bind_channel, clear_context, get_logger, setup_logging

__all__ = ["setup_logging", "get_logger", "bind_channel", "clear_context"]
