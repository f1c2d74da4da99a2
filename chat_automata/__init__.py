# chat_automata/__init__.py

from .config import AutomataConfig, get_default_config
from .api import *

__version__ = "0.1.0"

__all__ = [
    'AutomataConfig',
    'get_default_config',
] + api.__all__
