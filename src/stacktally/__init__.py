from ._call_tree import CallTree
from ._call_tree import CallTreeBuilder
from ._call_tree import CallTreeNode
from ._call_tree import CallTreeResult
from ._call_tree import TypeShare
from ._call_tree import build_call_tree
from ._errors import InvalidConfigurationError
from ._errors import RootNotFoundError
from ._errors import StacktallyError
from ._functions import FunctionRow
from ._functions import FunctionTable
from ._functions import aggregate_functions
from ._heap import HeapProfile
from ._heap import HeapTypeEntry
from ._heap import aggregate_heap_types
from ._heap import aggregate_sample_types
from ._hotspots import HotFunction
from ._hotspots import find_hot_functions
from ._hotspots import hotness
from ._logging import set_log_level
from ._names import format_function_display_name
from ._names import format_type_display_name
from ._options import ShapeOptions
from ._report import ProfileReport
from ._report import build_report
from ._samples import UNKNOWN_FRAME
from ._samples import Sample
from ._samples import StackFrame
from ._shaping import ShapedNode
from ._shaping import ShapedTree
from ._shaping import find_root
from ._shaping import shape_tree
from ._version import __version__

__all__ = [
    "CallTree",
    "CallTreeBuilder",
    "CallTreeNode",
    "CallTreeResult",
    "TypeShare",
    "build_call_tree",
    "InvalidConfigurationError",
    "RootNotFoundError",
    "StacktallyError",
    "FunctionRow",
    "FunctionTable",
    "aggregate_functions",
    "HeapProfile",
    "HeapTypeEntry",
    "aggregate_heap_types",
    "aggregate_sample_types",
    "HotFunction",
    "find_hot_functions",
    "hotness",
    "ShapeOptions",
    "ProfileReport",
    "build_report",
    "UNKNOWN_FRAME",
    "Sample",
    "StackFrame",
    "ShapedNode",
    "ShapedTree",
    "find_root",
    "shape_tree",
    "set_log_level",
    "format_function_display_name",
    "format_type_display_name",
    "__version__",
]
