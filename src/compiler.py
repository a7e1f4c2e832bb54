from __future__ import annotations

from src.errors import CompileError
from src.ir import Alternative, Choice, Lexicon, Part, Ref, Rule, Text
import src.st as st


def compile_document(document: st.Document) -> Lexicon:
    rules: dict[str, Rule] = {}

    # Later definitions of a name replace earlier ones
    for block in document.blocks:
        rules[block.name] = compile_block(block)

    return Lexicon(rules)


def compile_block(block: st.Block) -> Rule:
    body = block.body

    if isinstance(body, st.List):
        return (compile_list(body),)

    if isinstance(body, st.Expansion):
        return compile_expansion(body)

    raise CompileError(f"{block.location} Error: Rule '{block.name}' has a body of unknown kind {type(body).__name__}.")


def compile_expansion(expansion: st.Expansion) -> Rule:
    # Nothing to resolve in a template without references or lists, join it up front
    if all(isinstance(part, st.Literal) for part in expansion.parts):
        return (Text("".join(part.value for part in expansion.parts)),)

    return tuple(compile_part(part) for part in expansion.parts)


def compile_part(part: st.Literal | st.Reference | st.List) -> Part:
    if isinstance(part, st.Literal):
        return Text(part.value)

    if isinstance(part, st.Reference):
        return Ref(part.name)

    if isinstance(part, st.List):
        return compile_list(part)

    raise CompileError(f"{part.location} Error: Unhandled template part {type(part).__name__}.")


def compile_list(lst: st.List) -> Choice:
    return Choice(tuple(compile_alternative(item) for item in lst.items))


def compile_alternative(item: st.Literal | st.Expansion) -> Alternative:
    if isinstance(item, st.Literal):
        return Text(item.value)

    if isinstance(item, st.Expansion):
        # Alternatives keep their parts so every pick is expanded independently
        return tuple(compile_part(part) for part in item.parts)

    raise CompileError(f"{item.location} Error: Unhandled list item {type(item).__name__}.")
