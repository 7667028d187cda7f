"""Framing of script text into commands and tokenization of their arguments."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import IO, Iterator, List
import re


COMMENT_MARKER = "#"
_STRIP_CHARS = " \t\r\n"
_TOKEN_PATTERN = re.compile(r'(?P<word>(?:[^\s"]|"[^"]*")+)|"(?P<string>[^"]*)')


def read_command(stream: IO[str]) -> str | None:
    """Read the next command from *stream*, or ``None`` at end of stream.

    Physical lines are joined while parentheses stay unbalanced, so one
    command may span several lines. A command still unbalanced when the
    stream ends is returned as read.
    """

    buffer: List[str] = []
    depth = 0
    seen_open = False
    for line in stream:
        hash_index = line.find(COMMENT_MARKER)
        if hash_index >= 0:
            line = line[:hash_index]
        depth += line.count("(") - line.count(")")
        buffer.append(line)
        if "(" in line:
            seen_open = True
        if seen_open and depth <= 0:
            break

    text = "".join(buffer).strip(_STRIP_CHARS)
    return text or None


def iter_commands(stream: IO[str]) -> Iterator[str]:
    while True:
        text = read_command(stream)
        if text is None:
            return
        yield text


class TokenKind(Enum):
    WORD = "word"
    STRING = "string"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str

    def __str__(self) -> str:
        return self.value


def _is_wrapped(word: str) -> bool:
    return len(word) >= 2 and word[0] == word[-1] == '"' and '"' not in word[1:-1]


def split_arguments(text: str) -> List[Token]:
    """Split *text* on whitespace, keeping quoted runs inside their token.

    Quotes are removed only when they wrap the whole token, so
    ``-DVERSION="1.0"`` stays one word with its quotes. A quote left open at
    the end of *text* runs to the end.
    """

    tokens: List[Token] = []
    for match in _TOKEN_PATTERN.finditer(text):
        string_value = match.group("string")
        if string_value is not None:
            tokens.append(Token(TokenKind.STRING, string_value))
            continue
        word = match.group("word")
        if not _is_wrapped(word):
            word = word.rstrip(")")
        if _is_wrapped(word):
            tokens.append(Token(TokenKind.STRING, word[1:-1]))
        elif word:
            tokens.append(Token(TokenKind.WORD, word))
    return tokens


def split_words(text: str) -> List[str]:
    return [token.value for token in split_arguments(text)]


@dataclass(frozen=True, slots=True)
class Command:
    """One ``name(arguments)`` unit after variable expansion."""

    name: str
    arguments: str
    text: str

    @property
    def words(self) -> List[str]:
        return split_words(self.arguments)


def parse_command(text: str) -> Command:
    open_index = text.find("(")
    if open_index < 0:
        return Command(name=text.strip(_STRIP_CHARS), arguments="", text=text)
    name = text[:open_index].strip(_STRIP_CHARS)
    close_index = text.rfind(")")
    if close_index > open_index:
        arguments = text[open_index + 1:close_index]
    else:
        arguments = text[open_index + 1:]
    return Command(name=name, arguments=arguments.strip(_STRIP_CHARS), text=text)
