"""Evaluation of ``if``/``elseif`` expressions and nested conditional state."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from .reader import Token, TokenKind, split_arguments


FALSE_VALUES = frozenset({"", "OFF", "0"})


class VariableLookup(Protocol):
    def get(self, key: str) -> str: ...


def is_truthy(value: str) -> bool:
    return value not in FALSE_VALUES


def _is_keyword(token: Token, keyword: str) -> bool:
    return token.kind is TokenKind.WORD and token.value == keyword


def _split_on(tokens: Sequence[Token], keyword: str) -> List[List[Token]]:
    groups: List[List[Token]] = [[]]
    for token in tokens:
        if _is_keyword(token, keyword):
            groups.append([])
        else:
            groups[-1].append(token)
    return groups


@dataclass(slots=True)
class ExpressionEvaluator:
    """Evaluates ``A AND NOT B OR X STREQUAL "y"`` style expressions.

    ``OR`` binds loosest, then ``AND``; ``NOT`` applies to the single term
    that follows it. A comparison reads the variable on its left; a bare word
    is tested for truthiness through the variable table.
    """

    variables: VariableLookup

    def evaluate(self, expression: str) -> bool:
        tokens = split_arguments(expression)
        if not tokens:
            return False
        result = False
        for clause in _split_on(tokens, "OR"):
            result = self._evaluate_clause(clause) or result
        return result

    def _evaluate_clause(self, tokens: Sequence[Token]) -> bool:
        result = True
        for term in _split_on(tokens, "AND"):
            result = self._evaluate_term(term) and result
        return result

    def _evaluate_term(self, tokens: Sequence[Token]) -> bool:
        invert = False
        if tokens and _is_keyword(tokens[0], "NOT"):
            invert = True
            tokens = tokens[1:]
        return self._evaluate_operand(tokens) != invert

    def _evaluate_operand(self, tokens: Sequence[Token]) -> bool:
        if len(tokens) == 3 and _is_keyword(tokens[1], "STREQUAL"):
            return self.variables.get(tokens[0].value) == tokens[2].value
        if len(tokens) == 1:
            return is_truthy(self.variables.get(tokens[0].value))
        return False


@dataclass(slots=True)
class ConditionStack:
    """Activation state of nested ``if`` blocks; the root frame is always on."""

    _frames: List[bool] = field(default_factory=lambda: [True])

    @property
    def active(self) -> bool:
        return self._frames[-1]

    @property
    def depth(self) -> int:
        return len(self._frames) - 1

    def push(self, active: bool) -> None:
        self._frames.append(active and self._frames[-1])

    def pop(self) -> None:
        if len(self._frames) > 1:
            self._frames.pop()

    def flip(self) -> None:
        if len(self._frames) > 1:
            self._frames[-1] = not self._frames[-1]

    def replace(self, active: bool) -> None:
        """Close the current branch and open an ``elseif`` branch."""

        self.pop()
        self.push(active)
