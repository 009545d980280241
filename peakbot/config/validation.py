"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_trading_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate trading parameters."""
        errors = []

        for name in ("buy_threshold", "sell_threshold"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0 or value > 100:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive percentage no greater than 100",
                        value=value
                    ))

        if "trade_amount_percent" in params:
            value = params["trade_amount_percent"]
            if not _is_number(value) or value <= 0 or value > 100:
                errors.append(ValidationError(
                    field="trade_amount_percent",
                    message="Must be a percentage in (0, 100]",
                    value=value
                ))

        if "min_trade_amount" in params:
            value = params["min_trade_amount"]
            if not _is_number(value) or value < 0:
                errors.append(ValidationError(
                    field="min_trade_amount",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "initial_balance" in params:
            value = params["initial_balance"]
            if not _is_number(value) or value < 0:
                errors.append(ValidationError(
                    field="initial_balance",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "max_positions" in params:
            value = params["max_positions"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="max_positions",
                    message="Must be a positive integer",
                    value=value
                ))

        if "quantity_precision" in params:
            value = params["quantity_precision"]
            if not _is_int(value) or value < 0 or value > 12:
                errors.append(ValidationError(
                    field="quantity_precision",
                    message="Must be an integer between 0 and 12",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_market_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate instrument universe parameters."""
        errors = []

        if "quote_currency" in params:
            value = params["quote_currency"]
            if not isinstance(value, str) or not value or value != value.upper():
                errors.append(ValidationError(
                    field="quote_currency",
                    message="Must be a non-empty upper-case string",
                    value=value
                ))

        if "static_tokens" in params:
            value = params["static_tokens"]
            if not isinstance(value, (list, tuple)) or not all(isinstance(t, str) and t for t in value):
                errors.append(ValidationError(
                    field="static_tokens",
                    message="Must be a list of token symbols",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_movers_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate top-mover parameters."""
        errors = []

        if "count" in params:
            value = params["count"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="count",
                    message="Must be a positive integer",
                    value=value
                ))

        if "window" in params:
            value = params["window"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="window",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "refresh_interval_seconds" in params:
            value = params["refresh_interval_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="refresh_interval_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_interval_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate loop timing parameters."""
        errors = []

        if "tick_seconds" in params:
            value = params["tick_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="tick_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "trading" in config:
            errors.extend(ConfigValidator.validate_trading_params(config["trading"]))

        if "market" in config:
            errors.extend(ConfigValidator.validate_market_params(config["market"]))

        if "movers" in config:
            errors.extend(ConfigValidator.validate_movers_params(config["movers"]))

        if "intervals" in config:
            errors.extend(ConfigValidator.validate_interval_params(config["intervals"]))

        return errors
