"""
Shared helpers: configuration loading and LLM response parsing.
"""
import json
import logging
import re
from pathlib import Path
from types import SimpleNamespace as config
from typing import Any, Optional

import yaml


class ConfigLoader:
    """Loads default options from config.yaml and merges user overrides."""

    def __init__(self, default_path: Optional[str] = None):
        if default_path is None:
            default_path = Path(__file__).parent / "config.yaml"
        self._default_dict = self._load_yaml(default_path)

    @staticmethod
    def _load_yaml(path) -> dict:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _validate_keys(self, user_dict: dict):
        unknown_keys = set(user_dict) - set(self._default_dict)
        if unknown_keys:
            raise ValueError(f"Unknown config keys: {sorted(unknown_keys)}")

    def load(self, user_opt=None) -> config:
        """
        Load the configuration, merging user options with the defaults.

        Args:
            user_opt: None, a dict of overrides, or an existing config namespace

        Returns:
            config namespace with every known option set
        """
        if user_opt is None:
            user_dict = {}
        elif isinstance(user_opt, config):
            user_dict = vars(user_opt)
        elif isinstance(user_opt, dict):
            user_dict = user_opt
        else:
            raise TypeError("user_opt must be a dict, a config namespace or None")

        self._validate_keys(user_dict)
        merged = {**self._default_dict, **user_dict}
        return config(**merged)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block (```json ... ```) if present."""
    stripped = text.strip()
    match = re.match(r"^```[A-Za-z0-9_-]*\s*\n?(.*?)\n?```$", stripped, re.DOTALL)
    if match:
        return match.group(1).strip()
    return stripped


def parse_json_array(text: Any, logger: Optional[logging.Logger] = None) -> list:
    """
    Parse an LLM answer that should contain a JSON array.

    Never raises: anything that is not a JSON array comes back as an empty list.

    Args:
        text: Raw LLM response
        logger: Optional logger instance

    Returns:
        The decoded list, or [] on any failure
    """
    logger = logger or logging.getLogger(__name__)
    if not isinstance(text, str) or not text.strip():
        return []

    json_text = strip_code_fences(text)
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        # Some models wrap the array in prose; fall back to the outermost brackets
        start_idx = json_text.find('[')
        end_idx = json_text.rfind(']')
        if start_idx == -1 or end_idx <= start_idx:
            logger.warning(f"Failed to parse JSON response: {e}")
            logger.debug(f"Response text: {text[:500]}")
            return []
        try:
            data = json.loads(json_text[start_idx:end_idx + 1])
        except json.JSONDecodeError as inner:
            logger.warning(f"Failed to parse JSON response: {inner}")
            logger.debug(f"Response text: {text[:500]}")
            return []

    if not isinstance(data, list):
        logger.warning(f"Expected a JSON array, got {type(data).__name__}")
        return []
    return data
