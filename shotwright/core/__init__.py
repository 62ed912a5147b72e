"""
Shotwright Core Module

Contains core systems including configuration, credentials, constants, exceptions, and logging.
"""

from .config import ShotwrightConfig, HostedConfig, LocalConfig, load_config, get_config, set_config
from .constants import *
from .credentials import CredentialStore
from .exceptions import *
from .logging_config import setup_logging, get_logger, LogLevel

__all__ = [
    'ShotwrightConfig',
    'HostedConfig',
    'LocalConfig',
    'load_config',
    'get_config',
    'set_config',
    'CredentialStore',
    'setup_logging',
    'get_logger',
    'LogLevel',
]
