"""
Configuration resolver.

Turns whatever retry configuration a caller attached to a request (nothing,
a mapping, or a partial RetryPolicy) into a complete, independent
RetryPolicy. Never raises: fields that do not validate fall back to their
defaults and are reported in the logs.
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from http_retry.config import Settings, settings as default_settings
from http_retry.models.policy import RetryPolicy

logger = structlog.get_logger(__name__)

SuppliedPolicy = Union[RetryPolicy, Mapping[str, Any], None]


def _explicit_fields(supplied: SuppliedPolicy) -> dict[str, Any]:
    """Fields the caller actually set, keyed by RetryPolicy field name."""
    if isinstance(supplied, RetryPolicy):
        return {name: getattr(supplied, name) for name in supplied.model_fields_set}
    if isinstance(supplied, Mapping):
        return {
            key: value
            for key, value in supplied.items()
            if key in RetryPolicy.model_fields and value is not None
        }
    if supplied is not None:
        logger.warning(
            "Ignoring unsupported retry configuration",
            supplied_type=type(supplied).__name__,
        )
    return {}


def resolve_policy(
    supplied: SuppliedPolicy = None, settings: Optional[Settings] = None
) -> RetryPolicy:
    """
    Merge caller-supplied retry options with the defaults.

    Args:
        supplied: Partial policy attached to the request, if any
        settings: Source of the defaults (global settings if None)

    Returns:
        A new RetryPolicy. The supplied object is never mutated or aliased;
        error_history is always a fresh list.
    """
    settings = settings or default_settings
    defaults = settings.policy_defaults()

    values: dict[str, Any] = dict(defaults)
    values.update(_explicit_fields(supplied))
    values["error_history"] = list(values.get("error_history") or [])

    while True:
        try:
            return RetryPolicy.model_validate(values)
        except ValidationError as exc:
            invalid = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
            invalid &= set(values)
            if not invalid:
                logger.warning("Retry configuration rejected, using defaults", errors=exc.errors())
                return RetryPolicy()

            logger.warning(
                "Invalid retry configuration fields, falling back to defaults",
                fields=sorted(invalid),
            )
            for field in invalid:
                if field in defaults and values[field] is not defaults[field]:
                    values[field] = defaults[field]
                else:
                    # A bad default from the environment: use the model's own
                    values.pop(field)
