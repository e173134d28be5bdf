"""${ENV_VAR} substitution over parsed YAML data."""

import os
import re

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def collect_missing_vars(data: RawValue) -> list[str]:
    """Names of every referenced variable that is unset, in first-seen order."""
    missing: list[str] = []
    _collect(data, missing)
    return missing


def _collect(data: RawValue, missing: list[str]) -> None:
    if isinstance(data, dict):
        for value in data.values():
            _collect(value, missing)
        return
    if isinstance(data, list):
        for item in data:
            _collect(item, missing)
        return
    if isinstance(data, str):
        for name in _ENV_VAR_PATTERN.findall(data):
            if name not in os.environ and name not in missing:
                missing.append(name)


def interpolate(data: RawValue) -> RawValue:
    """Return a copy with every ${ENV_VAR} replaced by its value.

    Call `collect_missing_vars` first; an unset variable raises KeyError here.
    """
    if isinstance(data, dict):
        return {key: interpolate(value) for key, value in data.items()}
    if isinstance(data, list):
        return [interpolate(item) for item in data]
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(lambda match: os.environ[match.group(1)], data)
    return data
