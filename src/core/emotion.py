"""Emotion sampling from an external expression-score source (core domain).

The vision side (camera, face detection, expression model) lives outside
this package. It only has to hand us a ``{label: score}`` map now and then.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Mapping, Optional, Union

from core.config import SamplerConfig

LOGGER = logging.getLogger(__name__)

ScoreMap = Mapping[str, float]
ScoreSource = Callable[[], Union[Optional[ScoreMap], Awaitable[Optional[ScoreMap]]]]


def dominant_label(scores: Optional[ScoreMap]) -> Optional[str]:
    """Return the arg-max label; on a tie the first inserted label wins."""

    best_label: Optional[str] = None
    best_score: Optional[float] = None
    for label, score in (scores or {}).items():
        if best_score is None or score > best_score:
            best_label, best_score = label, score
    return best_label


class EmotionSampler:
    """Holds the latest dominant expression label.

    The sampler is the only writer of ``current_label``; readers get whatever
    snapshot was last written.
    """

    def __init__(self, config: Optional[SamplerConfig] = None) -> None:
        self._config = config or SamplerConfig()
        self._current_label: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def current_label(self) -> Optional[str]:
        return self._current_label

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def update(self, scores: Optional[ScoreMap]) -> Optional[str]:
        """Fold one score map in. Empty maps (no face in frame) keep the last label."""

        label = dominant_label(scores)
        if label is not None:
            self._current_label = label
        return self._current_label

    async def _sample_once(self, source: ScoreSource) -> None:
        try:
            scores = source()
            if inspect.isawaitable(scores):
                scores = await scores
            self.update(scores)
        except Exception:
            LOGGER.exception("Error during expression sampling")

    async def run(self, source: ScoreSource, period: Optional[float] = None) -> None:
        """Poll ``source`` every ``period`` seconds until cancelled."""

        period = self._config.period_seconds if period is None else period
        while True:
            await self._sample_once(source)
            await asyncio.sleep(period)

    def start(self, source: ScoreSource, period: Optional[float] = None) -> asyncio.Task:
        """Start sampling on the running loop; restarting replaces the old task."""

        self.stop()
        self._task = asyncio.get_running_loop().create_task(self.run(source, period))
        return self._task

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
