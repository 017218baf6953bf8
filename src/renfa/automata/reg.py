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

from threading import Lock

from loguru import logger

from renfa.automata.expr import Alt, Empty, Eps, MalformedRegexError, Regex, Seq, Symb
from renfa.automata.fsa import EPSILON, NFA, remap_states


class StateCounter:
    """
    Hands out fresh state numbers. A number is never issued twice by the same
    counter, even when several threads share it.
    """

    def __init__(self, start=0):
        self._last = start
        self._lock = Lock()

    def next_val(self):
        """
        Returns a state number this counter has never returned before.
        """
        with self._lock:
            self._last += 1
            return self._last


# Shared by the module level functions, so that automata built with them
# never have states in common
default_counter = StateCounter()


class RegexBuilder:
    """
    Builds epsilon-NFAs out of smaller ones.

    Every state the builder creates comes from its counter, so automata built
    by the same builder can always be combined.

    Usage:
    rb = RegexBuilder()
    nfa = rb.symbol('a')  # Create an NFA for the symbol 'a'
    nfa2 = rb.concat(nfa, rb.symbol('b'))  # Concatenate two NFAs
    """

    def __init__(self, counter=None):
        """
        Initialize the RegexBuilder object.

        Args:
            counter (StateCounter, optional): Where new state numbers come
                from. Defaults to a new counter private to this builder.
        """
        self.counter = StateCounter() if counter is None else counter

    def new_state(self):
        """
        Generate a new state number.

        Returns:
        int: The new state number.
        """
        return self.counter.next_val()

    def empty(self):
        """
        Create an NFA that accepts nothing: a single state without
        transitions or final states.
        """
        s = self.new_state()
        return NFA([s], (), s, (), ())

    def epsilon(self):
        """
        Create an NFA that accepts only the empty word.

        Returns:
        NFA: Two states joined by an epsilon transition.
        """
        s = self.new_state()
        e = self.new_state()
        return NFA([s, e], (), s, [(s, EPSILON, e)], [e])

    def symbol(self, label):
        """
        Create an NFA for a single symbol.

        Args:
        label: The symbol. It must not be ``EPSILON``.

        Returns:
        NFA: The NFA accepting only the one-symbol word ``label``.
        """
        if label is EPSILON:
            raise MalformedRegexError("Use epsilon() for the empty word")
        s = self.new_state()
        e = self.new_state()
        return NFA([s, e], [label], s, [(s, label, e)], [e])

    def string(self, word):
        """
        Create an NFA accepting exactly ``word``, by concatenating one
        automaton per symbol.
        """
        nfa = None
        for label in word:
            part = self.symbol(label)
            nfa = part if nfa is None else self.concat(nfa, part)
        return self.epsilon() if nfa is None else nfa

    def concat(self, n1, n2):
        """
        Create an NFA for the concatenation of two NFAs.

        Every final state of ``n1`` gets an epsilon transition to the start
        of ``n2``. The result starts where ``n1`` starts and accepts in the
        final states of ``n2``.

        Args:
        n1 (NFA): The first NFA.
        n2 (NFA): The second NFA.

        Returns:
        NFA: The NFA accepting every word of ``n1`` followed by a word of
        ``n2``.

        If the NFAs have states in common, ``n2`` is first moved onto
        fresh states.
        """
        n2 = self._separate(n1, n2)
        links = [(f, EPSILON, n2.initial) for f in n1.final_states]
        nfa = NFA(
            n1.states | n2.states,
            n1.alphabet | n2.alphabet,
            n1.initial,
            n1.transitions.union(n2.transitions, links),
            n2.final_states,
        )
        logger.trace("concat -> {!r}", nfa)
        return nfa

    def union(self, n1, n2):
        """
        Create an NFA for the choice between two NFAs.

        A new start state has epsilon transitions to the starts of both.

        Args:
        n1 (NFA): The first NFA.
        n2 (NFA): The second NFA.

        Returns:
        NFA: The NFA accepting the words of either.

        If the NFAs have states in common, ``n2`` is first moved onto
        fresh states.
        """
        n2 = self._separate(n1, n2)
        s = self._fresh_state(n1.states | n2.states)
        nfa = NFA(
            n1.states.union(n2.states, [s]),
            n1.alphabet | n2.alphabet,
            s,
            n1.transitions.union(
                n2.transitions, [(s, EPSILON, n1.initial), (s, EPSILON, n2.initial)]
            ),
            n1.final_states | n2.final_states,
        )
        logger.trace("union -> {!r}", nfa)
        return nfa

    def _fresh_state(self, taken):
        # Automata from other counters may already use the next numbers
        s = self.new_state()
        while s in taken:
            s = self.new_state()
        return s

    def _separate(self, n1, n2):
        """
        Returns ``n2``, or a copy of it on fresh states if it has states in
        common with ``n1``.
        """
        if n1.states.isdisjoint(n2.states):
            return n2
        taken = set(n1.states | n2.states)
        mapping = {}
        for state in sorted(n2.states):
            mapping[state] = self._fresh_state(taken)
            taken.add(mapping[state])
        logger.trace("Moving {} shared states onto fresh ones", len(mapping))
        return remap_states(n2, mapping)

    def build(self, r):
        """
        Create the NFA for a regular expression tree, by structural
        recursion over the tree.

        Raises:
        TypeError: If ``r`` is not a :class:`~renfa.automata.expr.Regex`.
        """
        if isinstance(r, Empty):
            return self.empty()
        elif isinstance(r, Eps):
            return self.epsilon()
        elif isinstance(r, Symb):
            return self.symbol(r.symbol)
        elif isinstance(r, Seq):
            return self.concat(self.build(r.left), self.build(r.right))
        elif isinstance(r, Alt):
            return self.union(self.build(r.left), self.build(r.right))
        raise TypeError(f"Can't compile {r!r}, expected a Regex node")


def compile(r, builder=None):
    """
    Compiles a regular expression tree into an epsilon-NFA that accepts
    exactly the words of the expression's language.

    Args:
        r (Regex): The expression.
        builder (RegexBuilder, optional): The builder to use. By default a
            new one is made for each call, so compiling the same expression
            twice gives equal automata.

    Returns:
        NFA: The compiled automaton.

    Example:
        >>> nfa = compile(Seq(Symb("a"), Symb("b")))
        >>> nfa.accept("ab"), nfa.accept("ba")
        (True, False)
    """
    if not isinstance(r, Regex):
        raise TypeError(f"Can't compile {r!r}, expected a Regex node")
    if builder is None:
        builder = RegexBuilder()
    nfa = builder.build(r)
    logger.debug(
        "Compiled {!r} into {} states, {} transitions",
        r,
        len(nfa.states),
        len(nfa.transitions),
    )
    return nfa


# Construction functions

_builder = RegexBuilder(default_counter)


def from_empty():
    return _builder.empty()


def from_epsilon():
    return _builder.epsilon()


def from_symbol(label):
    return _builder.symbol(label)


def string_nfa(word):
    """
    Creates an NFA that accepts exactly ``word``.

    Example:
    >>> string_nfa("abc").accept("abc")
    True
    """
    return _builder.string(word)


def concat(n1, n2):
    """
    Concatenates two NFAs. See :meth:`RegexBuilder.concat`.
    """
    return _builder.concat(n1, n2)


def union(n1, n2):
    """
    Creates the union of two NFAs. See :meth:`RegexBuilder.union`.
    """
    return _builder.union(n1, n2)
