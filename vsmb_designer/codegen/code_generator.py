# vsmb_designer/codegen/code_generator.py
import logging
from typing import Callable, Dict

from ..core.machine_model import StateMachineModel, OutputFormat
from .common import machine_name
from .use_reducer_generator import generate_use_reducer
from .xstate_generator import generate_xstate
from .zustand_generator import generate_zustand
from .tanstack_query_generator import generate_tanstack_query

logger = logging.getLogger(__name__)

GENERATORS: Dict[OutputFormat, Callable[..., str]] = {
    OutputFormat.USE_REDUCER: generate_use_reducer,
    OutputFormat.XSTATE: generate_xstate,
    OutputFormat.ZUSTAND: generate_zustand,
    OutputFormat.TANSTACK_QUERY: generate_tanstack_query,
}


def generate_code(model: StateMachineModel) -> str:
    """
    Generates source for the model's configured output format and language.

    Callers are expected to validate the model first; generators degrade on
    borderline input but do not check it.
    """
    generator = GENERATORS.get(model.output_format)
    if generator is None:
        logger.warning(f"No generator for output format '{model.output_format}', using useReducer.")
        generator = generate_use_reducer
    logger.debug(f"Generating {model.output_format.value}/{model.output_language.value} code for '{model.name}'")
    return generator(model, model.output_language)


def code_filename(model: StateMachineModel) -> str:
    return f"{machine_name(model)}.{model.output_language.value}"
