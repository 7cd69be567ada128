"""Schema validation of parsed commands."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import (
    BoolVal,
    FlagDefinition,
    FlagType,
    FlagValue,
    NumberVal,
    ParsedCommand,
    StringVal,
    to_native,
)
from .registry import CommandRegistry


logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validating a parsed command."""

    valid: bool
    errors: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def parse_number(text: str) -> Optional[float]:
    """Parse numeric text, returning None for anything that is not a number.

    Only finite values are accepted: ``nan``, ``inf`` and values that overflow
    a float are rejected, as are digit-group underscores such as ``1_000``.
    """
    text = text.strip()
    if "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


class CommandValidator:
    """Checks parsed commands against registered schemas.

    Every applicable problem is reported; the only early exit is an unknown
    command, which leaves nothing to validate against.
    """

    def __init__(self, registry: CommandRegistry):
        self.registry = registry

    def validate(self, parsed: ParsedCommand) -> ValidationResult:
        """Validate a parsed command.

        Args:
            parsed: Output of the parser

        Returns:
            ValidationResult with every error found
        """
        definition = self.registry.get_command(parsed.command)
        if definition is None:
            return ValidationResult(valid=False, errors=[f"Unknown command: {parsed.command}"])

        errors: List[str] = []

        if parsed.subcommand is not None:
            if not definition.subcommands:
                errors.append(
                    f"Command '{parsed.command}' does not support subcommands"
                )
            elif definition.get_subcommand(parsed.subcommand) is None:
                available = ", ".join(sc.name for sc in definition.subcommands)
                errors.append(
                    f"Unknown subcommand '{parsed.subcommand}' for command "
                    f"'{parsed.command}'. Available: {available}"
                )

        applicable = definition.applicable_flags(parsed.subcommand)

        for key, value in parsed.flags.items():
            flag_def = _find_flag(applicable, key)
            if flag_def is None:
                errors.append(f"Unknown flag: --{key}")
                continue
            type_error = self._check_type(key, flag_def, value)
            if type_error:
                errors.append(type_error)

        for flag_def in applicable:
            if flag_def.required and not self._is_present(flag_def, parsed):
                errors.append(f"Required flag --{flag_def.name} is missing")

        if errors:
            logger.debug(f"Validation of '{parsed.raw_input}' failed: {errors}")
        return ValidationResult(valid=not errors, errors=errors)

    def coerce_flags(self, parsed: ParsedCommand) -> Dict[str, Any]:
        """Native flag values keyed by canonical name, with defaults applied.

        Call only after a successful validation; unknown keys are skipped and
        numeric strings are converted for ``number`` flags.
        """
        definition = self.registry.get_command(parsed.command)
        if definition is None:
            return {}

        values: Dict[str, Any] = {}
        for flag_def in definition.applicable_flags(parsed.subcommand):
            value = _lookup(flag_def, parsed)
            if value is None:
                if flag_def.default_value is not None:
                    values[flag_def.name] = flag_def.default_value
                continue
            if flag_def.type is FlagType.NUMBER and isinstance(value, StringVal):
                values[flag_def.name] = parse_number(value.value)
            else:
                values[flag_def.name] = to_native(value)
        return values

    @staticmethod
    def _check_type(key: str, flag_def: FlagDefinition, value: FlagValue) -> Optional[str]:
        if flag_def.type is FlagType.BOOLEAN:
            if isinstance(value, BoolVal):
                return None
            return f"Flag --{key} should be a boolean"
        if flag_def.type is FlagType.STRING:
            if isinstance(value, StringVal):
                return None
            return f"Flag --{key} should be a string"
        if flag_def.type is FlagType.NUMBER:
            if isinstance(value, NumberVal) and math.isfinite(value.value):
                return None
            if isinstance(value, StringVal) and parse_number(value.value) is not None:
                return None
            return f"Flag --{key} should be a number"
        raise ValueError(f"Unhandled flag type: {flag_def.type}")

    @staticmethod
    def _is_present(flag_def: FlagDefinition, parsed: ParsedCommand) -> bool:
        return _lookup(flag_def, parsed) is not None


def _find_flag(flags: List[FlagDefinition], key: str) -> Optional[FlagDefinition]:
    for flag_def in flags:
        if flag_def.matches(key):
            return flag_def
    return None


def _lookup(flag_def: FlagDefinition, parsed: ParsedCommand) -> Optional[FlagValue]:
    if flag_def.name in parsed.flags:
        return parsed.flags[flag_def.name]
    if flag_def.short_name is not None and flag_def.short_name in parsed.flags:
        return parsed.flags[flag_def.short_name]
    return None
