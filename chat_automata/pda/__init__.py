# chat_automata/pda/__init__.py

from .pda_engine import PDA, PDAFactory, PDANode, PDATransition, BOTTOM_MARKER
from .structure_validators import (
    FrameKind,
    StackFrame,
    FormattingResult,
    InjectionScanResult,
    ToxicityScanResult,
    FormattingValidator,
    check_balanced,
    validate_formatting,
    detect_injection,
    scan_bracket_toxicity,
)

__all__ = [
    'PDA',
    'PDAFactory',
    'PDANode',
    'PDATransition',
    'BOTTOM_MARKER',
    'FrameKind',
    'StackFrame',
    'FormattingResult',
    'InjectionScanResult',
    'ToxicityScanResult',
    'FormattingValidator',
    'check_balanced',
    'validate_formatting',
    'detect_injection',
    'scan_bracket_toxicity',
]
