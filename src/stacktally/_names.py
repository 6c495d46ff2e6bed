"""Readable display names for the symbols found in managed profiler traces.

Raw frame names carry namespaces, generic arity markers, argument lists and
compiler generated state machine or closure types. The helpers here turn
them into the short names shown to users, and :func:`matches_name` lets
searches hit either form.
"""
import functools
import re
from typing import Optional

UNMANAGED_CODE_NAME = "Unmanaged Code"

RE_QUALIFIED_TYPE = re.compile(
    r"\b(?:[A-Za-z_][A-Za-z0-9_]*\.)+(?P<type>[A-Za-z_][A-Za-z0-9_]*)"
)
RE_GENERIC_ARITY = re.compile(r"`\d+")
ARRAY_MARKER = "\0"


def _clean_type_name(name: str) -> str:
    name = RE_QUALIFIED_TYPE.sub(r"\g<type>", name)
    name = RE_GENERIC_ARITY.sub("", name)
    name = name.replace("[]", ARRAY_MARKER)
    name = name.replace("[", "<").replace("]", ">")
    name = name.replace(ARRAY_MARKER, "[]")
    return name.replace("+", ".")


def _trim_generated_name(name: str) -> Optional[str]:
    name = name.strip()
    while name.startswith("<") or name.endswith(">"):
        name = name.strip("<>")
    while name.endswith("$"):
        name = name[:-1].rstrip(">")
    return name or None


def _state_machine_method(type_part: str) -> Optional[str]:
    local_function = type_part.rfind("g__")
    if local_function >= 0:
        start = local_function + len("g__")
        ends = [
            index
            for index in (type_part.find("|", start), type_part.find(">", start))
            if index >= 0
        ]
        end = min(ends) if ends else len(type_part)
        return _trim_generated_name(type_part[start:end])

    end = type_part.rfind(">d__")
    if end < 0:
        end = type_part.rfind(">d")
    if end < 0:
        end = type_part.rfind(">")
    if end <= 0:
        return None
    start = type_part.rfind("<", 0, end)
    if start < 0:
        return None
    return _trim_generated_name(type_part[start + 1 : end])


def _lambda_owner(method_part: str) -> Optional[str]:
    start = method_part.find("<")
    end = method_part.find(">")
    if start < 0 or end <= start + 1:
        return None
    return method_part[start + 1 : end]


def _outer_type(type_part: str) -> str:
    for marker in ("+<", "+<>c"):
        index = type_part.find(marker)
        if index > 0:
            return type_part[:index]
    return type_part


def _compiler_generated_name(type_part: str, method_part: str) -> Optional[str]:
    if method_part == "MoveNext":
        method = _state_machine_method(type_part)
        if method:
            return f"StateMachine.{method}.MoveNext"

    owner = _lambda_owner(method_part)
    if owner is None:
        return None
    if "<>c__DisplayClass" in type_part or "+<>c" in type_part:
        type_part = _outer_type(type_part)
    prefix = _clean_type_name(type_part)
    return f"{prefix}.{owner} lambda" if prefix else f"{owner} lambda"


def format_type_display_name(name: str) -> str:
    """Shorten a type name: ``System.String[]`` becomes ``String[]``."""
    if not name or not name.strip():
        return name
    return _clean_type_name(name)


def format_method_display_name(name: str) -> str:
    """Shorten a method name, naming async state machines and lambdas.

    The module prefix (``module!``) and the argument list are dropped, the
    declaring type is cleaned like :func:`format_type_display_name`, and
    compiler generated members are named after the method they came from.
    """
    if not name or not name.strip():
        return name

    bang = name.rfind("!")
    if bang >= 0:
        name = name[bang + 1 :]
    # Argument lists follow the name directly, "Thread (12)" keeps its id
    paren = name.find("(")
    if paren > 0 and not name[paren - 1].isspace():
        name = name[:paren]

    last_dot = name.rfind(".")
    if 0 < last_dot < len(name) - 1:
        type_part = name[:last_dot].rstrip(".")
        method_part = name[last_dot + 1 :]
        generated = _compiler_generated_name(type_part, method_part)
        if generated:
            return generated
        return f"{_clean_type_name(type_part)}.{method_part}"
    return _clean_type_name(name)


def is_unmanaged_frame(name: str) -> bool:
    name = name.strip()
    if not name:
        return False
    lowered = name.lower()
    if "unmanaged_code_time" in lowered or "unmanaged code" in lowered:
        return True
    return not any(char.isalpha() for char in name)


@functools.lru_cache(maxsize=4096)
def format_function_display_name(name: str) -> str:
    """The name a call tree or function table shows for a raw frame name."""
    display = format_method_display_name(name)
    if is_unmanaged_frame(display):
        return UNMANAGED_CODE_NAME
    return display


def matches_name(name: str, needle: str) -> bool:
    """Case-insensitive substring match on the raw or the display name.

    ``needle`` is expected to be lowercased already. An empty needle matches
    every name.
    """
    if not needle:
        return True
    if needle in name.lower():
        return True
    return needle in format_function_display_name(name).lower()
