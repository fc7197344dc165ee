"""Predictor subsystem for tokenrank.

Re-exports the ABC, registry, factory and built-in predictors::

    from tokenrank.predictor import Predictor, MockPredictor, build_predictor
"""

from tokenrank.predictor.base import Predictor
from tokenrank.predictor.factory import build_predictor
from tokenrank.predictor.huggingface import TransformersPredictor
from tokenrank.predictor.logits import LogitsPredictor
from tokenrank.predictor.mock import MockPredictor
from tokenrank.predictor.registry import PredictorRegistry, register_predictor

__all__ = [
    "LogitsPredictor",
    "MockPredictor",
    "Predictor",
    "PredictorRegistry",
    "TransformersPredictor",
    "build_predictor",
    "register_predictor",
]
