from __future__ import annotations

import math
from typing import Union, get_args

from pydantic import BaseModel, Field, StrictFloat, StrictInt, model_validator

from sortlab.core.config.settings import AlgorithmName, settings

Algorithm = AlgorithmName

ALGORITHMS: tuple[str, ...] = get_args(Algorithm)

# Distribution sorts index count arrays by value
NON_NEGATIVE_INT_ALGORITHMS: frozenset[str] = frozenset({"radix", "counting"})


class SortRequest(BaseModel):
    """
    Validated input for one sort run.

    - algorithm: one of ALGORITHMS
    - sequence: the data to sort (copied by the engine)
    - delay_ms: pause after each snapshot
    - step_mode: gate every checkpoint on an explicit release
    """

    algorithm: Algorithm = Field(default_factory=lambda: settings.default_algorithm)
    # Strict: "3" or True are rejected, never coerced
    sequence: list[Union[StrictInt, StrictFloat]] = Field(default_factory=list)
    delay_ms: float = Field(default_factory=lambda: settings.default_delay_ms, ge=0)
    step_mode: bool = False

    @model_validator(mode="after")
    def _validate_preconditions(self) -> "SortRequest":
        for idx, v in enumerate(self.sequence):
            if isinstance(v, float) and not math.isfinite(v):
                raise ValueError(f"element {idx} is not finite: {v!r}")
            if self.algorithm in NON_NEGATIVE_INT_ALGORITHMS and (not isinstance(v, int) or v < 0):
                raise ValueError(
                    f"{self.algorithm} sort requires non-negative integers; element {idx} is {v!r}"
                )
        return self

    def effective_delay_ms(self) -> float:
        # Step mode is paced by the embedder, not by a timer
        return 0.0 if self.step_mode else self.delay_ms
