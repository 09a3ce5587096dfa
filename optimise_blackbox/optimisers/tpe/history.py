from __future__ import annotations

from bisect import bisect_right
from typing import Dict, List

from ...errors import UnknownObservationError
from ...observation import Obs, ObsId


class SortedHistory:
    """Evaluated observations kept sorted by value (best first).

    Telling an observation with a known id replaces the old one.
    """

    def __init__(self) -> None:
        self._obss: List[Obs] = []
        self._ids: Dict[ObsId, Obs] = {}

    def __len__(self) -> int:
        return len(self._obss)

    def __iter__(self):
        return iter(self._obss)

    def insert(self, obs: Obs) -> None:
        if obs.id in self._ids:
            self.remove(obs.id)
        i = bisect_right([o.value for o in self._obss], obs.value)
        self._obss.insert(i, obs)
        self._ids[obs.id] = obs

    def remove(self, obs_id: ObsId) -> None:
        if obs_id not in self._ids:
            raise UnknownObservationError(obs_id)
        del self._ids[obs_id]
        self._obss = [o for o in self._obss if o.id != obs_id]

    def split(self, gamma: int) -> tuple[List[Obs], List[Obs]]:
        return self._obss[:gamma], self._obss[gamma:]
