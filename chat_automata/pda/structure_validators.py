"""
Direct stack simulators for chat message structure.

Each check walks the whole message once and reports structured findings
(booleans, position spans, messages). Malformed input is a finding, never
an exception.
"""

from enum import Enum
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple

from chat_automata.config import AutomataConfig, get_default_config
from chat_automata.fuzzy.approximate_matcher import ApproximateMatcher
from chat_automata.pda.pda_engine import BRACKET_PAIRS, CLOSING_BRACKETS, OPENING_BRACKETS
from chat_automata.utils.logging_config import get_logger

# Module logger
logger = get_logger(__name__)

Span = Tuple[int, int]

SCRIPT_INJECTION_MARKERS = ("<script", "javascript:", "onload=", "onclick=")
SQL_INJECTION_MARKERS = ("' OR '1'='1", "DROP TABLE", "UNION SELECT")
ENCODED_BRACKET_MARKERS = ("%3C", "%3E", "&lt;", "&gt;")

VALID_FORMATTING_MESSAGE = "Valid formatting structure"


class FrameKind(Enum):
    BOTTOM = "$"
    BOLD = "**"
    ITALIC = "*"
    STRIKETHROUGH = "~~"
    BRACKET = "bracket"


UNCLOSED_MESSAGES = {
    FrameKind.BOLD: "Unclosed bold formatting (**)",
    FrameKind.ITALIC: "Unclosed italic formatting (*)",
    FrameKind.STRIKETHROUGH: "Unclosed strikethrough formatting (~~)",
    FrameKind.BRACKET: "Unclosed bracket",
}


@dataclass(frozen=True)
class StackFrame:
    """
    One open construct on the formatting stack.

    Attributes:
        kind: What was opened
        position: Index of the opening marker (-1 for the bottom frame)
        depth: Number of open constructs, this one included
        symbol: The opening text (the bracket character for brackets)
    """
    kind: FrameKind
    position: int
    depth: int
    symbol: str = ""

    def unclosed_span(self) -> Span:
        # Two-character markers report both characters
        width = 1 if self.kind in (FrameKind.BOLD, FrameKind.STRIKETHROUGH) else 0
        return (self.position, self.position + width)


class FormattingResult(NamedTuple):
    valid: bool
    error_spans: List[Span]
    message: str


class InjectionScanResult(NamedTuple):
    detected: bool
    warnings: List[str]


class ToxicityScanResult(NamedTuple):
    balanced: bool
    findings: List[str]


def check_balanced(text: str) -> bool:
    """
    Bracket balance over ``()[]{}<>``; every other character is ignored.

    Rejects as soon as a closer meets an empty stack or the wrong opener.
    """
    stack: List[str] = []
    for char in text:
        if char in OPENING_BRACKETS:
            stack.append(char)
        elif char in CLOSING_BRACKETS:
            if not stack or stack[-1] != BRACKET_PAIRS[char]:
                return False
            stack.pop()
    return not stack


class FormattingValidator:
    """
    Validates nested bold, italic, strikethrough and bracket structure.

    ``**``, ``*`` and ``~~`` toggle: a marker closes the construct on top of
    the stack when it is the same kind, otherwise it opens a new one. Errors
    accumulate in ``error_spans``; ``message`` holds the most recent one.
    """

    def __init__(self):
        self.stack: List[StackFrame] = []
        self.error_spans: List[Span] = []
        self.message = VALID_FORMATTING_MESSAGE

    def _reset(self) -> None:
        self.stack = [StackFrame(FrameKind.BOTTOM, -1, 0, "$")]
        self.error_spans = []
        self.message = VALID_FORMATTING_MESSAGE

    @property
    def top(self) -> StackFrame:
        return self.stack[-1]

    def _push(self, kind: FrameKind, position: int, symbol: str) -> None:
        self.stack.append(StackFrame(kind, position, len(self.stack), symbol))

    def _record(self, span: Span, message: str) -> None:
        self.error_spans.append(span)
        self.message = message

    def _record_unclosed(self, frame: StackFrame) -> None:
        self._record(frame.unclosed_span(), UNCLOSED_MESSAGES[frame.kind])

    def _result(self) -> FormattingResult:
        if self.error_spans:
            logger.debug(f"Formatting errors at {self.error_spans}: {self.message}")
        return FormattingResult(not self.error_spans, list(self.error_spans), self.message)

    def _handle_bold(self, position: int) -> bool:
        """Returns False on the hard nesting error."""
        if self.top.kind == FrameKind.BOLD:
            self.stack.pop()
            return True

        if any(frame.kind == FrameKind.BOLD for frame in self.stack):
            # Closing bold over still-open constructs
            while self.top.kind != FrameKind.BOLD:
                self._record_unclosed(self.stack.pop())
            self.stack.pop()
            return True

        if self.top.kind == FrameKind.ITALIC:
            self._record((position, position + 1),
                         "Invalid nesting: bold (**) cannot be inside italic (*)")
            return False

        self._push(FrameKind.BOLD, position, "**")
        return True

    def _handle_toggle(self, kind: FrameKind, position: int, symbol: str) -> None:
        if self.top.kind == kind:
            self.stack.pop()
        else:
            self._push(kind, position, symbol)

    def _handle_closer(self, char: str, position: int) -> None:
        top = self.top
        if top.kind != FrameKind.BRACKET:
            self._record((position, position), "Mismatch closing bracket")
            return
        if top.symbol != BRACKET_PAIRS[char]:
            self._record((top.position, position), "Bracket type mismatch")
        self.stack.pop()

    def validate(self, text: str) -> FormattingResult:
        self._reset()

        i = 0
        while i < len(text):
            char = text[i]
            pair = text[i:i + 2]

            if pair == "**":
                if not self._handle_bold(i):
                    return self._result()
                i += 2
                continue
            if pair == "~~":
                self._handle_toggle(FrameKind.STRIKETHROUGH, i, "~~")
                i += 2
                continue

            if char == '*':
                self._handle_toggle(FrameKind.ITALIC, i, "*")
            elif char in OPENING_BRACKETS:
                self._push(FrameKind.BRACKET, i, char)
            elif char in CLOSING_BRACKETS:
                self._handle_closer(char, i)
            i += 1

        while self.top.kind != FrameKind.BOTTOM:
            self._record_unclosed(self.stack.pop())

        return self._result()


def validate_formatting(text: str) -> FormattingResult:
    return FormattingValidator().validate(text)


def max_bracket_depth(text: str) -> int:
    """Deepest bracket nesting, counting closers without matching them."""
    level = 0
    deepest = 0
    for char in text:
        if char in OPENING_BRACKETS:
            level += 1
            deepest = max(deepest, level)
        elif char in CLOSING_BRACKETS:
            level -= 1
    return deepest


def detect_injection(text: str, config: Optional[AutomataConfig] = None) -> InjectionScanResult:
    """
    Scan for injection attempts and suspicious structure.

    Script and SQL markers raise an alert and end the scan; the remaining
    checks only add warnings.

    Returns:
        InjectionScanResult with detected=True iff any warning or alert was recorded
    """
    config = config or get_default_config()
    warnings: List[str] = []

    formatting = validate_formatting(text)
    if not formatting.valid:
        warnings.append(f"Invalid formatting structure: {formatting.message}")

    asterisks = text.count('*')
    if asterisks % 2 != 0:
        warnings.append("Warning: Odd number of asterisks - possible broken formatting")

    if any(marker in text for marker in SCRIPT_INJECTION_MARKERS):
        warnings.append("ALERT: Potential script injection detected")
        logger.warning("Script injection marker found in message")
        return InjectionScanResult(True, warnings)

    if any(marker in text for marker in SQL_INJECTION_MARKERS):
        warnings.append("ALERT: Potential SQL injection pattern")
        logger.warning("SQL injection marker found in message")
        return InjectionScanResult(True, warnings)

    depth = max_bracket_depth(text)
    if depth > config.max_nesting_depth:
        warnings.append(f"Warning: Excessive nesting depth ({depth} levels)")

    if any(marker in text for marker in ENCODED_BRACKET_MARKERS):
        warnings.append("Warning: Mixed encoding detected")

    return InjectionScanResult(bool(warnings), warnings)


def scan_bracket_toxicity(text: str, patterns: Sequence[str], max_edits: int,
                          matcher: Optional[ApproximateMatcher] = None) -> ToxicityScanResult:
    """
    Check the content of each outermost bracket pair against toxic patterns.

    Content collects every character inside the outermost pair except the
    bracket characters that open or close a pair. When a pair closes, the
    first pattern found in the content (substring or approximate word
    match) is reported and the remaining patterns are skipped for that pair.
    Brackets nested inside a pair never yield content of their own.

    Returns:
        ToxicityScanResult(balanced, findings); the scan runs even when the
        brackets are unbalanced
    """
    matcher = matcher or ApproximateMatcher()
    balanced = check_balanced(text)
    findings: List[str] = []

    stack: List[Tuple[int, str]] = []
    content: List[str] = []

    for position, char in enumerate(text):
        if char in OPENING_BRACKETS:
            if not stack:
                content = []
            stack.append((position, char))
        elif char in CLOSING_BRACKETS and stack and stack[-1][1] == BRACKET_PAIRS[char]:
            stack.pop()
            if not stack and content:
                finding = _first_toxic_pattern("".join(content), patterns, max_edits, matcher)
                if finding is not None:
                    findings.append(finding)
        elif stack:
            content.append(char)

    if findings:
        logger.info(f"Toxic content found in {len(findings)} bracket group(s)")
    return ToxicityScanResult(balanced, findings)


def _first_toxic_pattern(content: str, patterns: Sequence[str], max_edits: int,
                         matcher: ApproximateMatcher) -> Optional[str]:
    lowered = content.lower()
    for pattern in patterns:
        if pattern.lower() in lowered or matcher.find_matches(content, pattern, max_edits):
            return f"Found '{pattern}' in: {content}"
    return None
