# vsmb_designer/codegen/__init__.py
from .code_generator import generate_code, code_filename, GENERATORS
from .use_reducer_generator import generate_use_reducer
from .xstate_generator import generate_xstate
from .zustand_generator import generate_zustand
from .tanstack_query_generator import generate_tanstack_query
from .unit_test_generator import export_tests

__all__ = [
    "generate_code",
    "code_filename",
    "GENERATORS",
    "generate_use_reducer",
    "generate_xstate",
    "generate_zustand",
    "generate_tanstack_query",
    "export_tests",
]
