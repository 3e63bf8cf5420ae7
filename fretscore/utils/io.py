import json
import os
import logging
from dataclasses import fields, is_dataclass
from enum import Enum
from fractions import Fraction
from typing import Any

logger = logging.getLogger(__name__)

def to_plain(value: Any) -> Any:
    """
    Recursively converts layout and tab records into JSON-compatible data.
    Enums become their values and fractions become "num/den" strings.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Fraction):
        return f"{value.numerator}/{value.denominator}"
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value

def save_text_file(content: str, output_path: str):
    """
    Saves string content to a text file.

    Args:
        content: The string content to save.
        output_path: The path to the file to be created.

    Raises:
        IOError: If the file cannot be written to the specified path.
    """
    try:
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.info(f"Successfully saved to {output_path}")

    except IOError as e:
        logger.error(f"Error: Could not write to file at {output_path}")
        raise e

def load_json_file(file_path: str) -> Any:
    """
    Reads a JSON document.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the content is not valid JSON.
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error(f"Error: File not found at {file_path}")
        raise
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

def dump_json(data: Any) -> str:
    return json.dumps(to_plain(data), indent=2, ensure_ascii=False)
