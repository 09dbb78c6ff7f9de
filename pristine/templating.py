"""A small SQL template grammar for schema and migration scripts.

Two kinds of substitutions are understood:

* ``#{name}`` renders a driver placeholder and binds the value as a parameter
* ``!{name}`` splices the value's string form directly into the SQL text

Names may be dotted (``#{user.email}``) to reach into mappings or attributes.
"""

from typing import Mapping, Tuple

from pristine.errors import TemplateError
from pristine.mung import MungSymbolProvider

# fmt: off
from pyparsing import (  # noqa: I101
    alphanums, alphas, printables,
    Combine, Forward, Group, OneOrMore, ParseBaseException, ParseResults, Suppress, White, Word, ZeroOrMore
)
# fmt: on


class Substitution:
    """A single ``#{...}`` or ``!{...}`` occurrence in a template."""

    def __init__(self, path: Tuple[str, ...], splice: bool = False):
        """Construct a substitution.

        :param path: the dotted name split into its parts
        :param splice: True for ``!{...}`` (inline text), False for ``#{...}`` (bound parameter)
        """
        self.path = path
        self.splice = splice

    def resolve(self, values: Mapping):
        """Look up this substitution's value.

        :param values: the root mapping of values
        :returns: the value found at this substitution's path
        :raises: TemplateError
        """
        node = values
        for part in self.path:
            try:
                node = node[part] if isinstance(node, Mapping) else getattr(node, part)
            except (KeyError, AttributeError) as x:
                raise TemplateError(f"No value supplied for '{'.'.join(self.path)}'") from x
        return node


def _mark_kind(subject: str, position: int, result: ParseResults):
    result[0].insert(0, subject[position])


def _build_grammar():
    open_bind = Suppress("#{")
    open_splice = Suppress("!{")
    opens = open_bind | open_splice
    close = Suppress("}")
    loners = (~opens + "#") | (~opens + "!") | (~opens + "{") | (~opens + "}")
    identifier = Word(alphas, alphanums + "_")
    path = identifier + ZeroOrMore(Suppress(".") + identifier)
    plain = Word(printables, exclude_chars="#!{}")
    space = ZeroOrMore(White())
    bind = Forward()
    splice = Forward()
    fragment = Combine(space + OneOrMore(plain | loners) + space)
    bind <<= Group(open_bind + path + close).add_parse_action(_mark_kind)
    splice <<= Group(open_splice + path + close).add_parse_action(_mark_kind)
    return OneOrMore(space + (bind | splice) + space | fragment)


class Template:
    """A parsed SQL template that renders to a statement and its bound parameters."""

    GRAMMAR = _build_grammar()

    def __init__(self, sql_template: str):
        """Parse a SQL template.

        :param sql_template: the raw template text
        :raises: TemplateError
        """
        self._sql_template = sql_template
        self._parts = []
        if not sql_template.strip():
            raise TemplateError("Cannot parse an empty SQL template")
        try:
            nodes = self.GRAMMAR.parse_string(sql_template, parse_all=True)
        except ParseBaseException as x:
            raise TemplateError(f"{x.msg}:\n{x.line}\n{(' ' * (x.col - 1))}^") from x
        for node in nodes:
            if isinstance(node, str):
                # Consecutive text fragments are merged so rendering only walks alternating parts
                if self._parts and isinstance(self._parts[-1], str):
                    self._parts[-1] += node
                else:
                    self._parts.append(node)
                continue
            kind = node.pop(0)
            self._parts.append(Substitution(tuple(map(str, node)), splice=kind == "!"))

    @property
    def substitutions(self) -> Tuple[Substitution, ...]:
        """Return the substitutions found in the template, in order of appearance."""
        return tuple(p for p in self._parts if isinstance(p, Substitution))

    def __str__(self) -> str:
        """Return the raw template text."""
        return self._sql_template

    def render(self, mung_symbol: MungSymbolProvider, values: Mapping) -> Tuple[str, tuple]:
        """Render the template into a statement for a specific driver.

        :param mung_symbol: the placeholder provider of the target driver
        :param values: the root mapping substitutions are resolved from
        :returns: the SQL statement and a tuple of its parameters
        """
        mung_symbol = mung_symbol.fresh()
        sql = []
        params = []
        for part in self._parts:
            if isinstance(part, str):
                sql.append(part)
                continue
            value = part.resolve(values)
            if part.splice:
                sql.append(str(value))
            else:
                params.append(value)
                sql.append(mung_symbol())
        return "".join(sql), tuple(params)
