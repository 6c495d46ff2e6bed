"""Tools for classifying stack frames as runtime or application code."""
import functools
import re

from stacktally._samples import StackFrame

RUNTIME_MODULE_LABELS = {
    "framework",
    "gc",
    "jit",
    "kernel",
    "native",
    "runtime",
    "stdlib",
    "system",
}

NAME_IGNORELIST = {
    "(non-activities)",
    "unmanaged code",
    "unmanaged_code_time",
}

RE_PSEUDO_FRAME = re.compile(r"^(Threads?|Process\d*)(\s|\(|$)")
RE_HAS_LETTER = re.compile(r"[^\W\d_]")


@functools.lru_cache(maxsize=1000)
def _is_runtime_symbol(name: str) -> bool:
    trimmed = name.strip()
    if not trimmed:
        return False
    lowered = trimmed.lower()
    if any(marker in lowered for marker in NAME_IGNORELIST):
        return True
    # Unresolved addresses such as "0x7f3a2c" or "?!+12".
    if trimmed[0].isdigit() or RE_HAS_LETTER.search(trimmed) is None:
        return True
    return RE_PSEUDO_FRAME.match(trimmed) is not None


def is_runtime_module(module: str) -> bool:
    return module.strip().lower() in RUNTIME_MODULE_LABELS


def is_runtime_frame(frame: StackFrame) -> bool:
    """Tell whether a frame belongs to the runtime rather than the program.

    The module label wins when the upstream decoder supplied one; otherwise
    the name is checked against the pseudo-frames that tracers inject
    (thread and process roots, unresolved addresses, unmanaged code).
    """
    return is_runtime_module(frame.module) or _is_runtime_symbol(frame.name)
