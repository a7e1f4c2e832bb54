from collections import Counter
from random import Random
from unittest import TestCase, main

from src.compiler import compile_document
from src.errors import ExpansionLimitExceeded, UnknownRule
from src.ir import Lexicon
from src.parser import parse
from src.resolver import Resolver, resolve


def lexicon(source: str) -> Lexicon:
    return compile_document(parse(source))


class ScriptedRandom:
    """Hands out a fixed sequence of picks, then `fallback` forever."""

    def __init__(self, picks: list[int], fallback: int | None = None) -> None:
        self._picks = list(picks)
        self._fallback = fallback

    def randrange(self, stop: int) -> int:
        pick = self._picks.pop(0) if self._picks else self._fallback
        assert pick is not None and 0 <= pick < stop, f"Bad pick {pick} for {stop} items"
        return pick


POEM = """
* place
[
    an agony of imagination,
    my bed,
    the racecourse,
]
* animals
[ bears, flies, sheep,
    gazelles,
    eels

]

* verb
[ cauterize, eat, jump ]

* vision
[
    "#animals #verb as they #verb",
    "#animals that now #verb in #place",
]

* line
[ "#vision", "i lay in #place" ]

* poem
"#line
#line"
"""


class TestResolveTemplates(TestCase):
    def test_literal_template_round_trips(self) -> None:
        self.assertEqual("hello, world!", resolve(lexicon('* greet\n"hello, world!"'), "greet"))

    def test_literal_template_ignores_the_seed(self) -> None:
        lex = lexicon('* greet\n"  odd, spacing!\n and lines "')
        outputs = {resolve(lex, "greet", Random(seed)) for seed in range(20)}
        self.assertEqual({"  odd, spacing!\n and lines "}, outputs)

    def test_references_compose(self) -> None:
        lex = lexicon('* a\n[x, y]\n* b\n"#a-#a"')
        outputs = {resolve(lex, "b", Random(seed)) for seed in range(50)}
        self.assertTrue(outputs <= {"x-x", "x-y", "y-x", "y-y"})
        self.assertEqual("x-y", resolve(lex, "b", ScriptedRandom([0, 1])))

    def test_expansion_is_depth_first(self) -> None:
        lex = lexicon('* s\n"<#a|#b>"\n* a\n"A#b"\n* b\n"B"')
        self.assertEqual("<AB|B>", resolve(lex, "s"))

    def test_lexicon_resolves_its_own_rules(self) -> None:
        lex = lexicon('* a\n[x, y]\n* b\n"#a-#a"')
        self.assertEqual("y-x", lex.resolve("b", ScriptedRandom([1, 0])))
        self.assertEqual("x", lexicon('* a\n"x"').resolve("a"))

        with self.assertRaises(ExpansionLimitExceeded):
            lexicon('* loop\n"#loop"').resolve("loop", max_steps=10)

    def test_forward_references(self) -> None:
        lex = lexicon('* first\n"#second!"\n* second\n"later"')
        self.assertEqual("later!", resolve(lex, "first"))


class TestResolveLists(TestCase):
    def test_inline_list(self) -> None:
        self.assertEqual("x q y", resolve(lexicon('* a\n"x [p, q] y"'), "a", ScriptedRandom([1])))

    def test_template_alternative_is_expanded(self) -> None:
        lex = lexicon('* a\n["one #b two", z]\n* b\n[mid]')
        self.assertEqual("one mid two", resolve(lex, "a", ScriptedRandom([0, 0])))

    def test_each_visit_is_a_fresh_pick(self) -> None:
        lex = lexicon('* a\n"[x, y][x, y]"')
        self.assertEqual("xy", resolve(lex, "a", ScriptedRandom([0, 1])))

    def test_empty_list_adds_nothing(self) -> None:
        self.assertEqual("xy", resolve(lexicon('* a\n"x[]y"'), "a", ScriptedRandom([])))

    def test_alternatives_are_picked_uniformly(self) -> None:
        resolver = Resolver(lexicon("* a\n[x, y, z]"), Random(1234))
        counts = Counter(resolver.resolve("a") for _ in range(3000))

        self.assertEqual({"x", "y", "z"}, set(counts))
        for value, count in counts.items():
            self.assertTrue(850 < count < 1150, f"'{value}' was picked {count} times out of 3000")

    def test_full_poem(self) -> None:
        lines = resolve(lexicon(POEM), "poem", Random(7)).split("\n")
        self.assertEqual(2, len(lines))
        self.assertTrue(all(line for line in lines))
        self.assertNotIn("#", "".join(lines))


class TestResolveErrors(TestCase):
    def test_unknown_rule(self) -> None:
        with self.assertRaises(UnknownRule) as ctx:
            resolve(lexicon("* a\n[x]"), "b")

        self.assertIsInstance(ctx.exception, LookupError)
        self.assertEqual("b", ctx.exception.name)

    def test_unknown_reference(self) -> None:
        with self.assertRaises(UnknownRule) as ctx:
            resolve(lexicon('* a\n"#missing"'), "a")

        self.assertEqual("missing", ctx.exception.name)

    def test_failure_leaves_lexicon_usable(self) -> None:
        lex = lexicon('* a\n"#missing"\n* b\n"fine"')
        before = dict(lex)

        with self.assertRaises(UnknownRule):
            resolve(lex, "a")

        self.assertEqual(before, dict(lex))
        self.assertEqual("fine", resolve(lex, "b"))

    def test_step_limit(self) -> None:
        with self.assertRaises(ExpansionLimitExceeded):
            resolve(lexicon('* loop\n"#loop"'), "loop", max_steps=100)

    def test_step_limit_allows_finished_work(self) -> None:
        self.assertEqual("done", resolve(lexicon('* a\n"done"'), "a", max_steps=1))


class TestResolveDepth(TestCase):
    def test_deep_self_reference_does_not_recurse(self) -> None:
        lex = lexicon('* count\n["#count.", done]')
        text = resolve(lex, "count", ScriptedRandom([0] * 5000, fallback=1))
        self.assertEqual("done" + "." * 5000, text)


if __name__ == '__main__':
    main()
