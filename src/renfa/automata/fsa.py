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

import json
import sys

from cached_property import cached_property
from loguru import logger

# Marker constants


class Marker:
    """
    Represents a marker object.

    Markers are named sentinels that can never be confused with an ordinary
    alphabet symbol, because they only compare equal to themselves.

    Attributes:
        name (str): The name of the marker.

    Example:
        >>> marker = Marker("EPSILON")
        >>> marker.name
        'EPSILON'
        >>> repr(marker)
        '<EPSILON>'
    """

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"<{self.name}>"

    def __reduce__(self):
        # Unpickling must give back the module singleton
        return (_marker, (self.name,))


EPSILON = Marker("EPSILON")

_MARKERS = {EPSILON.name: EPSILON}


def _marker(name):
    return _MARKERS[name]


# Exceptions


class AutomatonError(Exception):
    """
    Base class for errors raised when an automaton is used incorrectly.

    Attributes:
        message (str): Explanation of the error.
    """

    def __init__(self, message):
        self.message = message
        super().__init__(message)


class InvalidStateError(AutomatonError, ValueError):
    """
    Raised when a state passed to a query does not belong to the automaton
    being queried.
    """


# Helpers


def _label_key(label):
    # Sort key that puts EPSILON first and never compares unrelated types
    if label is EPSILON:
        return (0, "", 0)
    return (1, type(label).__name__, label)


def _triple_key(triple):
    src, label, dest = triple
    return (src, _label_key(label), dest)


def _encode(value):
    # JSON form of a state or symbol that _decode turns back into an equal value
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, tuple):
        return [_encode(v) for v in value]
    raise AutomatonError(f"{value!r} can't be stored as JSON")


def _decode(value):
    if isinstance(value, list):
        return tuple(_decode(v) for v in value)
    return value


# Implementation


class NFA:
    """
    An immutable nondeterministic finite automaton with epsilon transitions.

    An NFA is the tuple ``(states, alphabet, start, transitions,
    final_states)``. Transitions are ``(src, label, dest)`` triples where the
    label is either a symbol of the alphabet or :data:`EPSILON`, which moves
    between states without consuming input.

    Every value satisfies these invariants, which are checked when the value
    is created:

    1. ``start`` is in ``states``.
    2. ``states`` is not empty.
    3. ``EPSILON`` is not in ``alphabet``.
    4. every symbol of ``alphabet`` labels at least one transition.
    5. ``final_states`` is a subset of ``states``.
    6. every transition connects two members of ``states`` and is labelled
       with ``EPSILON`` or a member of ``alphabet``.

    Automata are never modified in place. The construction functions in
    :mod:`renfa.automata.reg` build new automata out of old ones.

    Attributes:
        states (frozenset): All states of the automaton.
        alphabet (frozenset): The input symbols.
        initial: The start state.
        transitions (frozenset): The ``(src, label, dest)`` triples.
        final_states (frozenset): The accepting states.
    """

    _fields = ("states", "alphabet", "initial", "transitions", "final_states")

    def __init__(self, states, alphabet, initial, transitions, final_states):
        """
        Initializes an NFA and checks its invariants.

        Args:
            states (iterable): The states of the automaton.
            alphabet (iterable): The input symbols.
            initial: The start state.
            transitions (iterable): ``(src, label, dest)`` triples.
            final_states (iterable): The accepting states.

        Raises:
            AssertionError: If the arguments break one of the invariants.
        """
        setattr_ = object.__setattr__
        setattr_(self, "states", frozenset(states))
        setattr_(self, "alphabet", frozenset(alphabet))
        setattr_(self, "initial", initial)
        setattr_(self, "transitions", frozenset(tuple(t) for t in transitions))
        setattr_(self, "final_states", frozenset(final_states))
        self.check()

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} objects are immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} objects are immutable")

    def __repr__(self):
        return "<%s %d states, %d transitions, start=%r, final=%r>" % (
            type(self).__name__,
            len(self.states),
            len(self.transitions),
            self.initial,
            sorted(self.final_states),
        )

    def __len__(self):
        """
        Returns the number of states in the automaton.
        """
        return len(self.states)

    def __eq__(self, other):
        if not isinstance(other, NFA):
            return NotImplemented
        return self._astuple() == other._astuple()

    def __hash__(self):
        return hash(self._astuple())

    def _astuple(self):
        return tuple(getattr(self, name) for name in self._fields)

    # Invariants

    def invariant_violations(self):
        """
        Returns a list of ``(number, description)`` pairs, one for each of
        the structural invariants this automaton breaks. A well-formed
        automaton returns an empty list.
        """
        problems = []
        states = self.states
        alphabet = self.alphabet

        if self.initial not in states:
            problems.append((1, f"start state {self.initial!r} is not a state"))
        if not states:
            problems.append((2, "the automaton has no states"))
        if EPSILON in alphabet:
            problems.append((3, "EPSILON is in the alphabet"))

        used = {label for _, label, _ in self.transitions}
        for symbol in alphabet - used:
            problems.append((4, f"symbol {symbol!r} labels no transition"))

        for state in self.final_states - states:
            problems.append((5, f"final state {state!r} is not a state"))

        for src, label, dest in self.transitions:
            if src not in states or dest not in states:
                problems.append(
                    (6, f"transition {(src, label, dest)!r} leaves the states")
                )
            elif label is not EPSILON and label not in alphabet:
                problems.append(
                    (6, f"transition label {label!r} is not in the alphabet")
                )
        return problems

    def check(self):
        """
        Fails fast when this automaton breaks an invariant. A broken
        invariant always means a construction function has a bug, so this
        raises ``AssertionError`` rather than a user-facing error.
        """
        problems = self.invariant_violations()
        assert not problems, "; ".join(f"({n}) {d}" for n, d in problems)

    # Lookup tables

    @cached_property
    def _epsilon_table(self):
        table = {}
        for src, label, dest in self.transitions:
            if label is EPSILON:
                table.setdefault(src, set()).add(dest)
        return {src: frozenset(dests) for src, dests in table.items()}

    @cached_property
    def _symbol_table(self):
        table = {}
        for src, label, dest in self.transitions:
            if label is not EPSILON:
                table.setdefault((src, label), set()).add(dest)
        return {key: frozenset(dests) for key, dests in table.items()}

    def epsilon_successors(self, state):
        """
        Returns the states reachable from ``state`` by exactly one epsilon
        transition.
        """
        return self._epsilon_table.get(state, frozenset())

    def symbol_successors(self, state, symbol):
        """
        Returns the states reachable from ``state`` by exactly one transition
        labelled ``symbol``. Epsilon transitions are not followed.
        """
        if symbol is EPSILON:
            return self.epsilon_successors(state)
        return self._symbol_table.get((state, symbol), frozenset())

    def triples(self):
        """
        Yields the ``(src, label, dest)`` transitions in a stable order.
        """
        yield from sorted(self.transitions, key=_triple_key)

    def get_labels(self, states):
        """
        Returns the set of non-epsilon labels on transitions leaving any of
        the given states.
        """
        labels = set()
        for src, label, _ in self.transitions:
            if src in states and label is not EPSILON:
                labels.add(label)
        return labels

    def is_final(self, states):
        """
        Checks if any of the given states is a final state.

        Args:
            states (set): The set of states to check.

        Returns:
            bool: True if any of the states is a final state, False otherwise.
        """
        return not self.final_states.isdisjoint(states)

    # Queries

    def start(self):
        """
        Returns the epsilon closure of the start state as a frozenset.
        """
        from renfa.automata.closure import eclose

        return eclose(self.initial, self)

    def next_state(self, states, label):
        """
        Returns the closed set of states reached from ``states`` by one
        transition labelled ``label``.
        """
        from renfa.automata.closure import eclose, step

        return eclose(step(states, label, self), self)

    def accept(self, word):
        """
        Checks if the automaton accepts ``word``, read left to right.

        Args:
            word (iterable): The symbols of the word. A string is read one
                character at a time.

        Returns:
            bool: True if the word is accepted, False otherwise.
        """
        from renfa.automata.closure import accepts_word

        return accepts_word(self, word)

    # Serialization

    def to_dict(self):
        """
        Returns a JSON-compatible dictionary holding all five fields of the
        automaton. Epsilon labels are stored as ``None`` and tuples as lists.

        Raises:
            AutomatonError: If a state or symbol has no lossless JSON form.
                Strings, numbers, booleans and tuples of them do.

        Example:
            >>> from renfa.automata.reg import RegexBuilder
            >>> RegexBuilder().symbol("a").to_dict()
            {'states': [1, 2], 'alphabet': ['a'], 'start': 1, 'transitions': [[1, 'a', 2]], 'final_states': [2]}
        """
        return {
            "states": [_encode(s) for s in sorted(self.states)],
            "alphabet": [_encode(x) for x in sorted(self.alphabet, key=_label_key)],
            "start": _encode(self.initial),
            "transitions": [
                [_encode(src), None if label is EPSILON else _encode(label),
                 _encode(dest)]
                for src, label, dest in self.triples()
            ],
            "final_states": [_encode(s) for s in sorted(self.final_states)],
        }

    @classmethod
    def from_dict(cls, data):
        """
        Rebuilds an automaton from the output of :meth:`to_dict`. Lists are
        turned back into tuples.

        Raises:
            AutomatonError: If a required key is missing or a transition is
                not a triple.
        """
        missing = [key for key in ("states", "alphabet", "start",
                                   "transitions", "final_states")
                   if key not in data]
        if missing:
            raise AutomatonError(f"Missing automaton fields: {missing}")

        transitions = []
        for item in data["transitions"]:
            if len(item) != 3:
                raise AutomatonError(f"Transition {item!r} is not a triple")
            src, label, dest = item
            label = EPSILON if label is None else _decode(label)
            transitions.append((_decode(src), label, _decode(dest)))

        return cls(
            (_decode(s) for s in data["states"]),
            (_decode(x) for x in data["alphabet"]),
            _decode(data["start"]),
            transitions,
            (_decode(s) for s in data["final_states"]),
        )

    def to_json(self, **kwargs):
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))

    def dump(self, stream=sys.stdout):
        """
        Prints a textual representation of the automaton to the given stream.
        The start state is marked with ``@`` and final states with ``||``.
        """
        outgoing = {}
        for src, label, dest in self.triples():
            outgoing.setdefault(src, []).append((label, dest))

        for state in sorted(self.states):
            beg = "@" if state == self.initial else " "
            end = "||" if state in self.final_states else ""
            print(beg, state, end, file=stream)
            for label, dest in outgoing.get(state, ()):
                name = "ε" if label is EPSILON else repr(label)
                print("   ", name, "->", dest, file=stream)


def renumber(nfa, base=0):
    """
    Returns a copy of the automaton whose states are renumbered consecutively
    starting at ``base``, in the sorted order of the original states.

    Args:
        nfa (NFA): The automaton to renumber.
        base (int): The number of the lowest state.

    Returns:
        NFA: An automaton with the same shape and language.
    """
    mapping = {state: base + i for i, state in enumerate(sorted(nfa.states))}
    logger.trace("Renumbering {} states from {}", len(mapping), base)
    return remap_states(nfa, mapping)


def remap_states(nfa, mapping):
    """
    Returns a copy of the automaton with every state replaced by
    ``mapping[state]``. The mapping must be one-to-one.
    """
    return NFA(
        mapping.values(),
        nfa.alphabet,
        mapping[nfa.initial],
        ((mapping[src], label, mapping[dest])
         for src, label, dest in nfa.transitions),
        (mapping[state] for state in nfa.final_states),
    )
