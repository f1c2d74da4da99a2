"""
Tests for the direct structure simulators: bracket balance, nested
formatting, injection scan and bracketed toxicity scan.
"""

import pytest

from chat_automata.config import AutomataConfig
from chat_automata.pda.structure_validators import (
    FrameKind, StackFrame, FormattingValidator, check_balanced, validate_formatting,
    detect_injection, scan_bracket_toxicity, max_bracket_depth
)


class TestCheckBalanced:

    @pytest.mark.parametrize("text,expected", [
        ("()", True),
        ("(())", True),
        ("()()", True),
        ("(", False),
        (")", False),
        ("())", False),
        ("(()", False),
        ("(a[b]c)", True),
        ("(a[b)c]", False),
        ("<{}>", True),
        ("", True),
    ])
    def test_bracket_cases(self, text, expected):
        assert check_balanced(text) == expected


class TestFormattingValidator:

    def test_bold_with_nested_italic_is_valid(self):
        valid, spans, message = validate_formatting("**bold *italic* still bold**")
        assert valid
        assert spans == []
        assert message == "Valid formatting structure"

    def test_bold_closed_over_open_italic(self):
        result = validate_formatting("**bold *italic**")
        assert not result.valid
        assert (7, 7) in result.error_spans
        assert result.message == "Unclosed italic formatting (*)"

    def test_bold_closed_over_open_strikethrough(self):
        result = validate_formatting("**a ~~b** c~~")
        assert not result.valid
        assert result.error_spans == [(4, 5), (11, 12)]
        assert result.message == "Unclosed strikethrough formatting (~~)"

    def test_bold_closed_over_open_bracket(self):
        result = validate_formatting("**a (b** c")
        assert result.error_spans == [(4, 4)]
        assert result.message == "Unclosed bracket"

    def test_bold_inside_italic_is_hard_error(self):
        result = validate_formatting("*italic **bold** text*")
        assert not result.valid
        assert result.error_spans == [(8, 9)]
        assert result.message == "Invalid nesting: bold (**) cannot be inside italic (*)"

    @pytest.mark.parametrize("text,span,message", [
        ("**unclosed", (0, 1), "Unclosed bold formatting (**)"),
        ("~~unclosed", (0, 1), "Unclosed strikethrough formatting (~~)"),
        ("an *unclosed", (3, 3), "Unclosed italic formatting (*)"),
        ("**a** (b", (6, 6), "Unclosed bracket"),
    ])
    def test_unclosed_constructs(self, text, span, message):
        result = validate_formatting(text)
        assert not result.valid
        assert result.error_spans == [span]
        assert result.message == message

    def test_last_unclosed_item_sets_message(self):
        result = validate_formatting("(**x")
        assert result.error_spans == [(1, 2), (0, 0)]
        assert result.message == "Unclosed bracket"

    def test_bracket_type_mismatch_reports_both_positions(self):
        result = validate_formatting("(a]")
        assert not result.valid
        assert result.error_spans == [(0, 2)]
        assert result.message == "Bracket type mismatch"

    def test_stray_closer(self):
        result = validate_formatting("ok)")
        assert result.error_spans == [(2, 2)]
        assert result.message == "Mismatch closing bracket"

    def test_scan_continues_after_bracket_errors(self):
        result = validate_formatting("(a] ]")
        assert result.error_spans == [(0, 2), (4, 4)]

    @pytest.mark.parametrize("text", [
        "~~done~~",
        "*a* and *b*",
        "**[link](url)**",
        "single ~ tilde",
        "",
    ])
    def test_valid_structures(self, text):
        assert validate_formatting(text).valid

    def test_validator_is_reusable(self):
        validator = FormattingValidator()
        assert not validator.validate("**open").valid
        assert validator.validate("**closed**").valid

    def test_stack_frame_spans(self):
        assert StackFrame(FrameKind.BOLD, 4, 1, "**").unclosed_span() == (4, 5)
        assert StackFrame(FrameKind.ITALIC, 4, 1, "*").unclosed_span() == (4, 4)
        assert StackFrame(FrameKind.BRACKET, 2, 3, "(").unclosed_span() == (2, 2)


class TestDetectInjection:

    def test_script_injection(self, chat_messages):
        detected, warnings = detect_injection(chat_messages['script'])
        assert detected
        assert "ALERT: Potential script injection detected" in warnings

    def test_sql_injection(self, chat_messages):
        detected, warnings = detect_injection(chat_messages['sql'])
        assert detected
        assert warnings == ["ALERT: Potential SQL injection pattern"]

    def test_clean_message(self, chat_messages):
        assert detect_injection(chat_messages['clean']) == (False, [])

    def test_broken_formatting_warnings(self):
        detected, warnings = detect_injection("hello *world")
        assert detected
        assert warnings == [
            "Invalid formatting structure: Unclosed italic formatting (*)",
            "Warning: Odd number of asterisks - possible broken formatting",
        ]

    def test_excessive_nesting(self):
        text = "(" * 11 + ")" * 11
        assert detect_injection(text) == (True, ["Warning: Excessive nesting depth (11 levels)"])
        assert detect_injection("(" * 10 + ")" * 10) == (False, [])

    def test_nesting_limit_from_config(self):
        config = AutomataConfig(max_nesting_depth=2)
        detected, warnings = detect_injection("((()))", config=config)
        assert warnings == ["Warning: Excessive nesting depth (3 levels)"]

    def test_mixed_encoding(self):
        assert detect_injection("%3Cb%3E") == (True, ["Warning: Mixed encoding detected"])

    def test_alert_stops_remaining_checks(self):
        detected, warnings = detect_injection("DROP TABLE users; &lt;")
        assert detected
        assert "Warning: Mixed encoding detected" not in warnings

    def test_max_bracket_depth(self):
        assert max_bracket_depth("(a)(b(c))") == 2
        assert max_bracket_depth("))((") == 0
        assert max_bracket_depth("") == 0


class TestScanBracketToxicity:

    def test_exact_word_in_brackets(self, toxic_words):
        balanced, findings = scan_bracket_toxicity("(you are stupid)", toxic_words, 2)
        assert balanced
        assert findings == ["Found 'stupid' in: you are stupid"]

    def test_leetspeak_in_brackets(self, chat_messages):
        balanced, findings = scan_bracket_toxicity(chat_messages['bracketed_insult'], ["stupid"], 2)
        assert balanced
        assert findings == ["Found 'stupid' in: you are st0p1d"]

    def test_text_outside_brackets_is_ignored(self):
        balanced, findings = scan_bracket_toxicity("idiot (nice day)", ["idiot"], 1)
        assert balanced
        assert findings == []

    def test_only_outermost_pair_yields_content(self):
        balanced, findings = scan_bracket_toxicity("(a (idiot) b)", ["idiot"], 0)
        assert balanced
        assert findings == ["Found 'idiot' in: a idiot b"]

    def test_first_pattern_wins(self):
        _, findings = scan_bracket_toxicity("(stupid idiot)", ["stupid", "idiot"], 0)
        assert findings == ["Found 'stupid' in: stupid idiot"]

    def test_one_finding_per_pair(self):
        _, findings = scan_bracket_toxicity("[dumb] {ugly}", ["dumb", "ugly"], 0)
        assert findings == ["Found 'dumb' in: dumb", "Found 'ugly' in: ugly"]

    def test_clean_brackets(self):
        assert scan_bracket_toxicity("(nice day) (good game)", ["stupid", "idiot"], 2) == (True, [])

    def test_unbalanced_input_still_scanned(self):
        balanced, findings = scan_bracket_toxicity("(dumb] x)", ["dumb"], 0)
        assert not balanced
        assert findings == ["Found 'dumb' in: dumb] x"]

    def test_unclosed_pair_yields_nothing(self):
        assert scan_bracket_toxicity("((idiot)", ["idiot"], 2) == (False, [])

    def test_empty_brackets(self):
        assert scan_bracket_toxicity("() []", ["idiot"], 2) == (True, [])
