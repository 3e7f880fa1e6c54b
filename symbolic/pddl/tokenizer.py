from typing import List
import re


def tokenize(text: str) -> List[str]:
    """
    Convert PDDL text into a flat token list.
    - '(' and ')' are tokens of their own
    - ';' starts a comment that runs to the end of the line
    - everything else is split on whitespace
    """
    clean_lines = []
    for line in text.split('\n'):
        comment_pos = line.find(';')
        if comment_pos >= 0:
            line = line[:comment_pos]
        clean_lines.append(line)

    clean_text = '\n'.join(clean_lines)
    clean_text = re.sub(r'([()])', r' \1 ', clean_text)

    return clean_text.split()


def is_keyword(token, keyword: str) -> bool:
    """Case-insensitive comparison of a token against a PDDL keyword."""
    return isinstance(token, str) and token.lower() == keyword
