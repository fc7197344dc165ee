"""Build the configured predictor."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tokenrank.exceptions import ConfigValidationError
from tokenrank.predictor.registry import PredictorRegistry

if TYPE_CHECKING:
    from tokenrank.config import TokenRankConfig
    from tokenrank.predictor.base import Predictor

logger = logging.getLogger("tokenrank")


def build_predictor(config: TokenRankConfig, **kwargs: Any) -> Predictor:
    """Instantiate the predictor named by ``config.predictor_type``.

    Args:
        config: Configuration selecting and parameterizing the backend.
        **kwargs: Backend-specific constructor arguments (e.g. ``logits_fn``
            for the ``'logits'`` predictor, ``model`` for ``'transformers'``,
            ``vocab_size`` for ``'mock'``).

    Returns:
        A ready predictor.

    Raises:
        ConfigValidationError: If ``predictor_type`` is not registered, or
            the backend is missing required arguments.
    """
    try:
        predictor_cls = PredictorRegistry.get(config.predictor_type)
    except KeyError as exc:
        raise ConfigValidationError(str(exc.args[0])) from None

    predictor = predictor_cls.from_config(config, **kwargs)
    logger.info(
        "Predictor ready: type=%s name=%s vocab_size=%d",
        config.predictor_type,
        predictor.name,
        predictor.vocab_size,
    )
    return predictor
