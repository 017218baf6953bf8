# Copyright 2014 Matt Chaput. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY MATT CHAPUT ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL MATT CHAPUT OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of Matt Chaput.

"""
Abstract syntax trees for regular expressions without the Kleene star.

Expressions are built directly out of the node classes, or with the ``+``
(sequence) and ``|`` (alternation) operators::

    r = (Symb("a") | Symb("b")) + Symb("c")

There is no text syntax. :func:`language` gives the set of words an
expression denotes, computed structurally from the tree. That set is always
finite, because nothing here can repeat.
"""

from renfa.automata.fsa import EPSILON

# Exceptions


class MalformedRegexError(ValueError):
    """
    Raised when a regular expression tree cannot be compiled, for example a
    symbol node holding the ``EPSILON`` marker.

    Attributes:
        message (str): Explanation of the error.
    """

    def __init__(self, message):
        self.message = message
        super().__init__(message)


# Nodes


class Regex:
    """
    Base class for regular expression nodes. Nodes are immutable and compare
    by structure.
    """

    __slots__ = ()

    def children(self):
        return ()

    def _key(self):
        return (type(self).__name__,) + tuple(self.children())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} nodes are immutable")

    def __add__(self, other):
        if not isinstance(other, Regex):
            return NotImplemented
        return Seq(self, other)

    def __or__(self, other):
        if not isinstance(other, Regex):
            return NotImplemented
        return Alt(self, other)


class Empty(Regex):
    """Matches nothing at all."""

    __slots__ = ()

    def __repr__(self):
        return "Empty()"


class Eps(Regex):
    """Matches only the empty word."""

    __slots__ = ()

    def __repr__(self):
        return "Eps()"


class Symb(Regex):
    """
    Matches a single symbol.

    Args:
        symbol: Any hashable value except ``EPSILON``.

    Raises:
        MalformedRegexError: If ``symbol`` is ``EPSILON``.
    """

    __slots__ = ("symbol",)

    def __init__(self, symbol):
        if symbol is EPSILON:
            raise MalformedRegexError("Symb() cannot hold EPSILON, use Eps()")
        object.__setattr__(self, "symbol", symbol)

    def children(self):
        return (self.symbol,)

    def __repr__(self):
        return f"Symb({self.symbol!r})"


class _Binary(Regex):
    __slots__ = ("left", "right")

    def __init__(self, left, right):
        for node in (left, right):
            if not isinstance(node, Regex):
                raise MalformedRegexError(f"{node!r} is not a Regex node")
        object.__setattr__(self, "left", left)
        object.__setattr__(self, "right", right)

    def children(self):
        return (self.left, self.right)

    def __repr__(self):
        return f"{type(self).__name__}({self.left!r}, {self.right!r})"


class Seq(_Binary):
    """Matches a word of ``left`` followed by a word of ``right``."""

    __slots__ = ()


class Alt(_Binary):
    """Matches a word of either ``left`` or ``right``."""

    __slots__ = ()


# Alternation is also written "+" in the literature
Plus = Alt


# Semantics


def _concat_languages(first, second):
    return frozenset(u + v for u in first for v in second)


def language(r):
    """
    Returns the language of the expression: the set of words it matches,
    each word a tuple of symbols.

    Example:
        >>> sorted(language((Symb("a") | Symb("b")) + Symb("c")))
        [('a', 'c'), ('b', 'c')]
    """
    if isinstance(r, Empty):
        return frozenset()
    elif isinstance(r, Eps):
        return frozenset([()])
    elif isinstance(r, Symb):
        return frozenset([(r.symbol,)])
    elif isinstance(r, Seq):
        return _concat_languages(language(r.left), language(r.right))
    elif isinstance(r, Alt):
        return language(r.left) | language(r.right)
    raise TypeError(f"Don't know the language of {r!r}")


def alphabet(r):
    """
    Returns the set of symbols appearing in the expression.
    """
    if isinstance(r, Symb):
        return frozenset([r.symbol])
    symbols = frozenset()
    for child in r.children():
        symbols |= alphabet(child)
    return symbols
