"""Name-to-class map of predictor backends.

Each built-in predictor module registers its class with
``@register_predictor("<name>")`` when imported; importing
:mod:`tokenrank.predictor` imports them all. ``config.predictor_type`` is
resolved against this map by :func:`tokenrank.predictor.factory.build_predictor`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from tokenrank.predictor.base import Predictor

if TYPE_CHECKING:
    from collections.abc import Callable


class PredictorRegistry:
    """Registry of predictor classes keyed by ``predictor_type``.

    Registration is checked eagerly so a mistake surfaces at import time
    rather than when a run is configured: only :class:`Predictor`
    subclasses are accepted, and a name cannot be rebound to a different
    class.
    """

    _registry: ClassVar[dict[str, type[Predictor]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Predictor]], type[Predictor]]:
        """Decorator registering a predictor class under *name*.

        Registering the same class twice under one name is a no-op.

        Raises:
            TypeError: If the decorated object is not a Predictor subclass.
            ValueError: If *name* is already bound to another class.
        """

        def decorator(predictor_cls: type[Predictor]) -> type[Predictor]:
            if not (isinstance(predictor_cls, type) and issubclass(predictor_cls, Predictor)):
                raise TypeError(
                    f"Cannot register {predictor_cls!r} as predictor {name!r}: "
                    "not a Predictor subclass"
                )
            existing = cls._registry.get(name)
            if existing is not None and existing is not predictor_cls:
                raise ValueError(
                    f"Predictor name {name!r} is already registered to {existing.__qualname__}"
                )
            cls._registry[name] = predictor_cls
            return predictor_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[Predictor]:
        """Return the class registered under *name*.

        Raises:
            KeyError: If nothing is registered under *name*. The message
                lists the available names.
        """
        try:
            return cls._registry[name]
        except KeyError:
            available = ", ".join(cls.list_available()) or "(none)"
            raise KeyError(f"Unknown predictor: {name!r}. Available: {available}") from None

    @classmethod
    def list_available(cls) -> list[str]:
        """Return registered names, sorted."""
        return sorted(cls._registry)


register_predictor = PredictorRegistry.register
