# vsmb_designer/__init__.py
"""
Visual State Machine Builder: a state machine model with validation, code
generation for React state libraries, and exporters.
"""
from .utils.config import APP_VERSION
from .core.machine_model import (
    StateMachineModel, StateNode, Transition, Position, StateNodeType, OutputFormat, OutputLanguage,
)
from .core.model_parser import parse_model_dict, model_to_dict
from .core.validation import (
    VsmbError, ModelValidationError, ValidationError, ValidationResult, validate_model, require_valid_model,
)
from .core.analysis import analyze_model, suggest_improvements, explain_model
from .core.editor_history import MachineEditor
from .codegen import generate_code, export_tests
from .export_utils import export_to_mermaid, generate_snippet_for_agent
from .services.serialization import encode_state, decode_state, build_file_payload, parse_file_payload

__version__ = APP_VERSION

__all__ = [
    "StateMachineModel",
    "StateNode",
    "Transition",
    "Position",
    "StateNodeType",
    "OutputFormat",
    "OutputLanguage",
    "parse_model_dict",
    "model_to_dict",
    "VsmbError",
    "ModelValidationError",
    "ValidationError",
    "ValidationResult",
    "validate_model",
    "require_valid_model",
    "analyze_model",
    "suggest_improvements",
    "explain_model",
    "MachineEditor",
    "generate_code",
    "export_tests",
    "export_to_mermaid",
    "generate_snippet_for_agent",
    "encode_state",
    "decode_state",
    "build_file_payload",
    "parse_file_payload",
]
