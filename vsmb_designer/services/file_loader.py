# vsmb_designer/services/file_loader.py

import json
import logging
import os
from typing import Optional, Tuple

from ..core.machine_model import StateMachineModel
from .serialization import decode_payload, dump_file_payload

logger = logging.getLogger(__name__)


def load_model_file(file_path: str, strict: bool = True) -> Tuple[Optional[StateMachineModel], str]:
    """
    Reads, parses, and validates a diagram file.

    Accepts the versioned envelope or the legacy bare-model shape. With
    `strict`, the model must also pass structural validation.

    Args:
        file_path (str): Path of the JSON file to load.
        strict (bool): Reject structurally invalid models.

    Returns:
        (model, "") on success, or (None, error message) on failure.
    """
    logger.info(f"FileLoader: Starting to load and validate '{file_path}'...")
    try:
        # 1. Read the file content
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        if not content.strip():
            logger.warning(f"FileLoader: File is empty: '{file_path}'.")
            return None, "File is empty."

        # 2. Parse the JSON data
        data = json.loads(content)

    except FileNotFoundError:
        error_msg = f"The file could not be found at the specified path:\n{file_path}"
        logger.error(f"FileLoader: {error_msg}")
        return None, error_msg
    except json.JSONDecodeError as e:
        logger.error(f"FileLoader: JSON decode error in '{file_path}': {e}")
        return None, f"The file is not a valid JSON file.\n\nDetails: {e}"
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"FileLoader: Could not read '{file_path}': {e}", exc_info=True)
        return None, f"An unexpected error occurred while loading the file:\n{e}"

    # 3. Check the envelope and validate the model
    result = decode_payload(data, strict=strict, allow_legacy=True)
    if not result.ok:
        first = result.errors[0] if result.errors else None
        location = (first.path if first else '') or 'Root'
        message = (f"The diagram file has an invalid structure.\n\n"
                   f"Error: {result.reason}\n"
                   f"Location: {location}")
        logger.error(f"FileLoader: Validation failed for '{file_path}': {result.reason}")
        return None, message

    logger.info(f"FileLoader: Successfully loaded and validated '{file_path}'.")
    return result.model, ""


def save_model_file(file_path: str, model: StateMachineModel) -> None:
    """Writes the model as a versioned envelope. OSError propagates to the caller."""
    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(dump_file_payload(model))
    logger.info(f"FileLoader: Saved '{model.name}' to '{file_path}'.")
