"""Environment backed configuration for the document archive."""

import logging
import os
from typing import Any, Callable

_TRUE_VALUES = ("true", "1", "yes")


class HelperConfig:
    """
    Reads archive settings from environment variables and hands out the application logger.

    Keys are case-insensitive (looked up upper-cased). Empty or whitespace-only
    values count as unset. A getter without default treats its key as required.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _resolve(self, key: str, default: Any, parse: Callable[[str], Any]) -> Any:
        raw = (os.getenv(key.upper()) or "").strip()
        if not raw:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return default
        return parse(raw)

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """
        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        return self._resolve(key, default, lambda raw: raw)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float when the value contains a dot.

        Raises:
            ValueError: If the variable is not set and no default is provided, or is not a number.
        """
        def parse(raw: str) -> float | int:
            try:
                return float(raw) if "." in raw else int(raw)
            except ValueError:
                raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

        return self._resolve(key, default, parse)

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a flag. "true", "1" and "yes" (any case) are true, everything else is false.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        return self._resolve(key, default, lambda raw: raw.lower() in _TRUE_VALUES)

    def get_list_val(self, key: str, default: list[str] | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list written as "[elem1,elem2,...]", e.g. ARCHIVE_ADMIN_EMAILS=[admin@test.com].

        Args:
            key (str): Environment variable name.
            default (list[str] | None): Fallback if unset.
            separator (str): Element delimiter.
            element_type (type): Type each element is cast to.

        Returns:
            list: The elements, trimmed, blank ones dropped. "[]" gives an empty list.

        Raises:
            ValueError: If the variable is unset without default, is not bracketed, or an element does not cast.
        """
        def parse(raw: str) -> list:
            if not (raw.startswith("[") and raw.endswith("]")):
                raise ValueError(f"Environment variable '{key.upper()}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")
            elements = [v.strip() for v in raw[1:-1].split(separator) if v.strip()]
            try:
                return [element_type(elem) for elem in elements]
            except ValueError as e:
                raise ValueError(f"Environment variable '{key.upper()}' contains an element that is not a {element_type.__name__}: {e}")

        return self._resolve(key, default, parse)

    def get_logger(self) -> logging.Logger:
        return self._logger
