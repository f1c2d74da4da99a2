# chat_automata/config.py

import os
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_ALPHABET: List[str] = list(string.ascii_letters + string.digits + " ")


@dataclass
class AutomataConfig:
    """Configuration for automaton construction and the structural scanners"""
    default_alphabet: List[str] = field(default_factory=lambda: list(DEFAULT_ALPHABET))
    max_stack_depth: int = 1024
    max_nesting_depth: int = 10
    default_max_edits: int = 2
    max_scan_window: Optional[int] = None
    custom_settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.max_stack_depth < 1:
            raise ValueError(f"max_stack_depth must be positive, got {self.max_stack_depth}")
        if self.max_scan_window is not None and self.max_scan_window < 1:
            raise ValueError(f"max_scan_window must be positive, got {self.max_scan_window}")

    def get_setting(self, key: str, default=None):
        return self.custom_settings.get(key, default)

    @classmethod
    def from_env(cls) -> 'AutomataConfig':
        """
        Build a configuration from ``CHAT_AUTOMATA_*`` environment variables.

        Unset variables keep their dataclass defaults.

        Returns:
            AutomataConfig instance
        """
        kwargs: Dict[str, Any] = {}

        alphabet = os.getenv('CHAT_AUTOMATA_DEFAULT_ALPHABET')
        if alphabet:
            kwargs['default_alphabet'] = sorted(set(alphabet))

        int_settings = {
            'max_stack_depth': 'CHAT_AUTOMATA_MAX_STACK_DEPTH',
            'max_nesting_depth': 'CHAT_AUTOMATA_MAX_NESTING_DEPTH',
            'default_max_edits': 'CHAT_AUTOMATA_DEFAULT_MAX_EDITS',
            'max_scan_window': 'CHAT_AUTOMATA_MAX_SCAN_WINDOW',
        }
        for attr, env_name in int_settings.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                kwargs[attr] = int(value)

        return cls(**kwargs)


_default_config: Optional[AutomataConfig] = None


def get_default_config() -> AutomataConfig:
    """Return the process-wide configuration, loading it from the environment once."""
    global _default_config
    if _default_config is None:
        _default_config = AutomataConfig.from_env()
    return _default_config
