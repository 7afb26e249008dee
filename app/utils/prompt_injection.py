"""Screening of free text (special requests, analysis input) before it is embedded in a prompt"""
import re
from typing import List, Optional, Tuple


class PromptInjectionDetector:
    """Detect and prevent prompt injection attempts in user input"""

    # Phrases that try to override the system prompt, grouped by what they attempt
    INSTRUCTION_OVERRIDES = (
        'ignore previous instructions',
        'ignore all previous',
        'ignore the above',
        'new instructions',
        'ignore as instruções',
        'ignore as instrucoes',
        'ignore todas as instruções',
        'esqueça as instruções',
        'novas instruções',
    )
    ROLE_MARKERS = (
        'system:',
        'assistant:',
        'sistema:',
        'assistente:',
        '```system',
        '```instruction',
    )
    ROLE_ASSERTIONS = (
        'you are now',
        'pretend to be',
        'você agora é',
        'voce agora e',
        'finja ser',
    )
    # Chat template tokens are matched case-sensitively
    SPECIAL_TOKENS = ('<|im_start|>', '<|im_end|>', '<|endoftext|>', '[INST]', '[/INST]')

    # Markup that should never reach the prompt or be echoed back to a page
    MARKUP_PATTERNS = (
        re.compile(r'<\s*(script|iframe|embed|object)\b', re.IGNORECASE),
        re.compile(r'\b(javascript|vbscript)\s*:', re.IGNORECASE),
        re.compile(r'\bon\w+\s*=', re.IGNORECASE),
    )

    @classmethod
    def detect_injection(cls, text: Optional[str]) -> Tuple[bool, List[str]]:
        """
        Detect potential prompt injection in text

        Returns:
            (is_safe, detected): is_safe is False when anything matched;
            detected lists the matched phrases and markup patterns
        """
        if not text:
            return True, []

        text_lower = text.lower()
        phrases = cls.INSTRUCTION_OVERRIDES + cls.ROLE_MARKERS + cls.ROLE_ASSERTIONS
        detected = [phrase for phrase in phrases if phrase in text_lower]
        detected += [token for token in cls.SPECIAL_TOKENS if token in text]
        detected += [regex.pattern for regex in cls.MARKUP_PATTERNS if regex.search(text)]

        return not detected, detected

    @classmethod
    def sanitize_text(cls, text: Optional[str], max_length: int = 500) -> str:
        """Truncate, drop control characters and collapse whitespace"""
        if not text:
            return ""

        text = ''.join(c for c in text[:max_length] if c.isprintable() or c.isspace())
        return ' '.join(text.split())

    @classmethod
    def screen(cls, text: Optional[str], max_length: int = 500) -> Tuple[str, List[str]]:
        """
        Sanitize text and report injection attempts in one pass

        Detection runs on the raw text so truncation cannot hide a match.

        Returns:
            (sanitized_text, detected); detected is empty for safe text
        """
        _, detected = cls.detect_injection(text)
        return cls.sanitize_text(text, max_length=max_length), detected
