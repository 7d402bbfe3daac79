"""
Problem File Parser

Reads planning problems written in a small Prolog-like language:

    % shopping
    kup :: mam(penize), zbozi(X) => not mam(penize), mam(X).
    prodej :: mam(X), zbozi(X) => not mam(X), mam(penize).

    mam(orezavatko).
    zbozi(orezavatko).
    zbozi(brambory).

    goal mam(brambory).

Statements:
- fact: `name.` or `name(a, b).`
- action schema: `name :: pre1, pre2 => [not] eff1, [not] eff2.`
- `goal` before a fact marks that fact as a goal
- `goals` marks every following fact as a goal until the next action schema

Arguments starting with an uppercase letter are variables, scoped to their
statement. Everything else is a constant. `%` starts a comment that runs to
the end of the line.
"""

import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action, ActionSchemaError
from graphplan.binding import Binding, BindingArena
from graphplan.predicate import FactSet, Predicate


GOAL_KEYWORD = "goal"
GOALS_KEYWORD = "goals"
NEGATION_KEYWORD = "not"


class ProblemFormatError(ValueError):
    """Raised when a problem file does not follow the problem grammar"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        if line is not None:
            message = f"line {line}, column {column}: {message}"
        super().__init__(message)


class UnexpectedTokenError(ProblemFormatError):
    """A token appeared where the grammar does not allow it"""

    def __init__(self, token: 'Token', expected: str):
        self.token = token
        super().__init__(f"{expected}, got {token.describe()}", token.line, token.column)


class UnexpectedEndOfInputError(ProblemFormatError):
    """The input ended in the middle of a statement"""

    def __init__(self, message: str = "Unexpected end of input, statement is not complete",
                 line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message, line, column)


class TokenType(Enum):
    IDENTIFIER = "identifier"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    COMMA = ","
    DOT = "."
    QUADDOT = "::"
    ARROW = "=>"


@dataclass
class Token:
    """
    Single lexical token

    Attributes:
        type: Token type
        text: Identifier text (None for punctuation)
        line: 1-based line number
        column: 1-based column number
    """
    type: TokenType
    text: Optional[str] = None
    line: int = 1
    column: int = 1

    def is_identifier(self, text: Optional[str] = None) -> bool:
        if self.type != TokenType.IDENTIFIER:
            return False
        return text is None or self.text == text

    def describe(self) -> str:
        if self.type == TokenType.IDENTIFIER:
            return f"identifier '{self.text}'"
        return f"'{self.type.value}'"


def _is_identifier_char(char: str) -> bool:
    return char.isalnum() or char in "-_"


def tokenize(text: str) -> List[Token]:
    """
    Split problem text into tokens

    Raises:
        ProblemFormatError: on a character that starts no token
    """
    tokens: List[Token] = []
    position = 0
    line = 1
    line_start = 0
    length = len(text)

    while position < length:
        char = text[position]
        column = position - line_start + 1

        if char == "\n":
            position += 1
            line += 1
            line_start = position
            continue
        if char.isspace():
            position += 1
            continue
        if char == "%":
            while position < length and text[position] != "\n":
                position += 1
            continue

        if char in "(),.":
            tokens.append(Token(TokenType(char), None, line, column))
            position += 1
            continue

        pair = text[position:position + 2]
        if pair == "::":
            tokens.append(Token(TokenType.QUADDOT, None, line, column))
            position += 2
            continue
        if pair == "=>":
            tokens.append(Token(TokenType.ARROW, None, line, column))
            position += 2
            continue

        if char.isalnum():
            end = position + 1
            while end < length and _is_identifier_char(text[end]):
                end += 1
            tokens.append(Token(TokenType.IDENTIFIER, text[position:end], line, column))
            position = end
            continue

        raise ProblemFormatError(f"Unexpected character {char!r}", line, column)

    return tokens


class StatementKind(Enum):
    ACTION = "action"
    FACT = "fact"
    GOAL = "goal"


@dataclass
class Statement:
    """
    One parsed statement: an action schema, an initial fact or a goal fact

    Exactly one of `action` / `predicate` is set, according to `kind`.
    """
    kind: StatementKind
    action: Optional[Action] = None
    predicate: Optional[Predicate] = None

    @property
    def value(self) -> Union[Action, Predicate]:
        return self.action if self.kind == StatementKind.ACTION else self.predicate


@dataclass
class ParsedProblem:
    """Action schemas, initial state and goals of one problem file"""
    actions: List[Action] = field(default_factory=list)
    initial_state: FactSet = field(default_factory=FactSet)
    goals: FactSet = field(default_factory=FactSet)

    def summary(self) -> str:
        return (f"{len(self.actions)} action schemas, {len(self.initial_state)} initial facts, "
                f"{len(self.goals)} goals")


class ProblemParser:
    """
    Recursive-descent parser over a token list

    Use `ProblemParser.parse(text)` or `ProblemParser.parse_file(path)` for a
    whole problem, or iterate `ProblemParser(text).statements()`.
    """

    def __init__(self, text: str):
        self.tokens = tokenize(text)
        self.position = 0
        self._goal_mode = False

    @staticmethod
    def parse(text: str) -> ParsedProblem:
        """
        Parse a complete problem description

        Args:
            text: Problem text

        Returns:
            ParsedProblem

        Raises:
            ProblemFormatError: on any syntax error
        """
        problem = ParsedProblem()
        for statement in ProblemParser(text).statements():
            if statement.kind == StatementKind.ACTION:
                problem.actions.append(statement.action)
            elif statement.kind == StatementKind.GOAL:
                problem.goals.add(statement.predicate)
            else:
                problem.initial_state.add(statement.predicate)
        return problem

    @staticmethod
    def parse_file(file_path: Union[str, Path]) -> ParsedProblem:
        """Parse a problem file (UTF-8)"""
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return ProblemParser.parse(content)

    def statements(self) -> Iterator[Statement]:
        """Yield statements until the end of input"""
        while True:
            statement = self.next_statement()
            if statement is None:
                return
            yield statement

    def next_statement(self) -> Optional[Statement]:
        """
        Parse the next statement

        Returns:
            Statement, or None at the end of input
        """
        token = self._peek()
        if token is None:
            return None

        is_goal = self._goal_mode
        if token.is_identifier(GOAL_KEYWORD):
            self._advance()
            is_goal = True
        elif token.is_identifier(GOALS_KEYWORD):
            self._advance()
            self._goal_mode = True
            is_goal = True

        name_token = self._expect(TokenType.IDENTIFIER, "Identifier (action or predicate name) expected")
        following = self._peek()
        if following is None:
            raise self._end_of_input()

        if following.type == TokenType.QUADDOT:
            if is_goal and not self._goal_mode:
                raise UnexpectedTokenError(following, "A goal must be a fact, not an action")
            self._goal_mode = False
            return Statement(StatementKind.ACTION, action=self._parse_action(name_token))

        if following.type in (TokenType.DOT, TokenType.LEFT_PAREN):
            predicate = self._parse_predicate(name_token, {}, BindingArena())
            self._expect(TokenType.DOT, "Dot expected")
            if not predicate.is_grounded():
                raise ProblemFormatError(
                    f"Fact {predicate.name} must not contain variables",
                    name_token.line, name_token.column
                )
            kind = StatementKind.GOAL if is_goal else StatementKind.FACT
            return Statement(kind, predicate=predicate)

        raise UnexpectedTokenError(following, "Dot, left parenthesis or '::' expected after the name")

    def _parse_action(self, name_token: Token) -> Action:
        variables: Dict[str, Binding] = {}
        arena = BindingArena()
        self._expect(TokenType.QUADDOT, "'::' expected")

        preconditions: List[Predicate] = []
        for literal_token in self._literal_tokens(TokenType.ARROW):
            preconditions.append(self._parse_predicate(literal_token, variables, arena))

        negative_effects: List[Predicate] = []
        positive_effects: List[Predicate] = []
        for literal_token in self._literal_tokens(TokenType.DOT):
            if literal_token.is_identifier(NEGATION_KEYWORD):
                literal_token = self._expect(TokenType.IDENTIFIER, "Predicate name expected after 'not'")
                negative_effects.append(self._parse_predicate(literal_token, variables, arena))
            else:
                positive_effects.append(self._parse_predicate(literal_token, variables, arena))

        try:
            return Action(name_token.text, preconditions, negative_effects, positive_effects)
        except ActionSchemaError as e:
            raise ProblemFormatError(str(e), name_token.line, name_token.column) from e

    def _literal_tokens(self, terminator: TokenType) -> Iterator[Token]:
        """
        Yield the name token of every literal in a comma separated list

        Consumes the terminator that ends the list.
        """
        first = True
        while True:
            token = self._next()
            if token.type == terminator and first:
                return
            if not first:
                if token.type == terminator:
                    return
                if token.type != TokenType.COMMA:
                    raise UnexpectedTokenError(token, f"Comma or '{terminator.value}' expected")
                token = self._next()
            if token.type != TokenType.IDENTIFIER:
                raise UnexpectedTokenError(token, "Predicate starting with an identifier expected")
            first = False
            yield token

    def _parse_predicate(self, name_token: Token, variables: Dict[str, Binding],
                         arena: BindingArena) -> Predicate:
        """Parse the optional argument list after an already consumed name"""
        following = self._peek()
        if following is None or following.type != TokenType.LEFT_PAREN:
            return Predicate(name_token.text, [])
        self._advance()

        parameters: List[Binding] = []
        token = self._next()
        while token.type != TokenType.RIGHT_PAREN:
            if parameters:
                if token.type != TokenType.COMMA:
                    raise UnexpectedTokenError(token, "Comma or right parenthesis expected")
                token = self._next()
            if token.type != TokenType.IDENTIFIER:
                raise UnexpectedTokenError(token, "Identifier expected")
            parameters.append(self._argument(token.text, variables, arena))
            token = self._next()
        return Predicate(name_token.text, parameters)

    @staticmethod
    def _argument(text: str, variables: Dict[str, Binding], arena: BindingArena) -> Binding:
        if text[0].isupper():
            if text not in variables:
                variables[text] = arena.new_binding()
            return variables[text]
        return arena.new_binding(text)

    def _peek(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self):
        self.position += 1

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            raise self._end_of_input()
        self.position += 1
        return token

    def _expect(self, token_type: TokenType, message: str) -> Token:
        token = self._next()
        if token.type != token_type:
            raise UnexpectedTokenError(token, message)
        return token

    def _end_of_input(self) -> UnexpectedEndOfInputError:
        if self.tokens:
            last = self.tokens[-1]
            return UnexpectedEndOfInputError(line=last.line, column=last.column)
        return UnexpectedEndOfInputError()
