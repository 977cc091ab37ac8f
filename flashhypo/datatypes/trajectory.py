from __future__ import annotations

import copy

import numpy as np
import torch

from flashhypo.datatypes.hypothesis import DTYPE


class Trajectory:
    """
    An ordered sequence of 3D positions (cm) along a particle path.
    """

    def __init__(self, pts_v):
        self._pts_v = torch.as_tensor(pts_v, dtype=DTYPE)
        if self._pts_v.numel() == 0:
            self._pts_v = self._pts_v.reshape(0, 3)
        if not (len(self._pts_v.shape) == 2 and self._pts_v.shape[1] == 3):
            raise ValueError(f'pts_v must have shape (N,3), got {tuple(self._pts_v.shape)}')

    def __len__(self):
        return len(self._pts_v)

    def to(self, device):
        self._pts_v = self._pts_v.to(device)
        return self

    @property
    def positions(self):
        return self._pts_v

    def copy(self):
        return copy.deepcopy(self)

    def segments(self):
        """
        Returns
          a pair of (T-1,3) tensors, start and end points of every segment
        """
        return self._pts_v[:-1], self._pts_v[1:]

    # total length of the trajectory
    def length(self):
        if len(self) < 2:
            return 0.
        pt1, pt2 = self.segments()
        return torch.linalg.norm(pt2 - pt1, dim=-1).sum().item()


class RecoTrack(Trajectory):
    """A reconstructed track"""

    def __init__(self, pts_v, idx=2**31-1, time=np.inf):
        super().__init__(pts_v)
        self._idx = idx     # index from the reconstructed track collection
        self._time = time   # assumed time w.r.t trigger for reconstruction

    @property
    def idx(self):
        return self._idx

    @property
    def time(self):
        return self._time


class MCTrack(Trajectory):
    """
    A simulated (truth) trajectory. Each step is a 4-vector (x,y,z,t).
    """

    def __init__(self, step_v, track_id=-1, pdg=0):
        step_v = torch.as_tensor(step_v, dtype=DTYPE)
        if not (len(step_v.shape) == 2 and step_v.shape[1] == 4):
            raise ValueError(f'step_v must have shape (N,4), got {tuple(step_v.shape)}')
        super().__init__(step_v[:, :3].contiguous())
        self._time_v = step_v[:, 3]
        self._track_id = track_id
        self._pdg = pdg

    def to(self, device):
        super().to(device)
        self._time_v = self._time_v.to(device)
        return self

    @property
    def time_v(self):
        return self._time_v

    @property
    def track_id(self):
        return self._track_id

    @property
    def pdg(self):
        return self._pdg


def as_trajectory(obj) -> Trajectory:
    """
    Adapt a reconstructed track, a truth trajectory or a raw list of points
    into a Trajectory.
    """
    if isinstance(obj, Trajectory):
        return obj
    return Trajectory(obj)
