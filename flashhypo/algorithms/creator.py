from __future__ import annotations

import torch

from flashhypo.algorithms.calculator import PhotonYieldCalculator
from flashhypo.algorithms.visibility import VisibilityTable, PhotonLibVisibility
from flashhypo.datatypes import FlashHypothesis, FlashHypothesisCollection, as_trajectory
from flashhypo.datatypes.hypothesis import DTYPE
from flashhypo.errors import ConfigurationError, InputShapeError


class FlashHypothesisCreator():
    """
    Builds the prompt/late/total flash hypothesis of a trajectory.

    The trajectory is split into straight segments between consecutive points.
    Each segment emits LightYield * ScintYieldRatio * dE/dx * length prompt photons,
    seen by every optical detector with the visibility at the segment midpoint
    and the detector quantum efficiency. Segments with a midpoint outside of the
    visibility table do not contribute.
    """

    def __init__(self, cfg: dict = dict(), detector_specs: dict = dict(), vis=None):

        algo_cfg = cfg.get('FlashHypothesisCreator', dict())
        self._x_offset = float(algo_cfg.get('XOffset', 0.))
        self._max_segment_length = float(algo_cfg.get('MaxSegmentLength', 0.))
        self._verbose = bool(algo_cfg.get('Verbose', False))
        self._calc = PhotonYieldCalculator(int(algo_cfg.get('DriftAxis', 0)))

        self._light_yield = float(detector_specs.get('LightYield', 24000.))
        self._prompt_fraction = float(detector_specs.get('ScintYieldRatio', 0.23))
        self._dEdxMIP = float(detector_specs.get('MIPdEdx', 2.1))
        self._qe = detector_specs.get('QE', 0.01)
        self._n_opdets = detector_specs.get('NOpDets')

        if self._light_yield < 0.:
            raise ConfigurationError(f'LightYield must be non-negative, got {self._light_yield}')
        if not (0. < self._prompt_fraction <= 1.):
            raise ConfigurationError(f'ScintYieldRatio must be in (0,1], got {self._prompt_fraction}')

        self._vis = None if vis is None else self._as_visibility(vis)

    @property
    def calculator(self):
        return self._calc

    @property
    def x_offset(self):
        return self._x_offset

    @property
    def max_segment_length(self):
        return self._max_segment_length

    @property
    def light_yield(self):
        return self._light_yield

    @property
    def prompt_fraction(self):
        return self._prompt_fraction

    @property
    def fast_yield(self):
        return self._light_yield * self._prompt_fraction

    @property
    def dEdxMIP(self):
        return self._dEdxMIP

    @property
    def vis(self):
        return self._vis

    @staticmethod
    def _as_visibility(vis) -> VisibilityTable:
        if isinstance(vis, VisibilityTable):
            return vis
        return PhotonLibVisibility(vis)

    def _resolve_visibility(self, vis) -> VisibilityTable:
        if vis is not None:
            return self._as_visibility(vis)
        if self._vis is None:
            raise ValueError('No visibility table given to FlashHypothesisCreator')
        return self._vis

    def n_opdets(self, vis: VisibilityTable) -> int:
        if self._n_opdets is not None:
            return int(self._n_opdets)
        return int(vis.n_pmts)

    def qe_vector(self, n: int) -> torch.Tensor:
        """
        Quantum efficiency per detector. A scalar QE is broadcast to all n detectors.
        """
        qe_v = torch.as_tensor(self._qe, dtype=DTYPE)
        if (qe_v < 0.).any():
            raise ConfigurationError('QE must be non-negative')
        if qe_v.dim() == 0:
            return qe_v.expand(n).clone()
        if qe_v.shape != (n,):
            raise ConfigurationError(f'QE vector has shape {tuple(qe_v.shape)}, expected ({n},)')
        return qe_v

    def segment_dedx(self, n_points: int, dedx_v=None) -> torch.Tensor:
        """
        Average dE/dx of every segment of a trajectory with n_points points.
        ---------
        Arguments
          n_points: number of trajectory points T
          dedx_v: dE/dx per point (length T, averaged over the two end points)
                  or per segment (length T-1). If None, MIPdEdx is used for all segments.
        -------
        Returns
          (T-1,) tensor of dE/dx in MeV/cm
        """
        n_seg = max(n_points - 1, 0)
        if dedx_v is None:
            return torch.full((n_seg,), self._dEdxMIP, dtype=DTYPE)

        dedx_v = torch.as_tensor(dedx_v, dtype=DTYPE).reshape(-1)
        if (dedx_v < 0.).any():
            raise ValueError('dE/dx must be non-negative')
        if len(dedx_v) == n_points:
            return 0.5 * (dedx_v[1:] + dedx_v[:-1])
        elif len(dedx_v) + 1 == n_points:
            return dedx_v
        raise InputShapeError(f'dEdx vector size {len(dedx_v)} not compatible with trajectory size {n_points}')

    def subdivide(self, pt1, pt2, dedx):
        """
        Split segments longer than MaxSegmentLength into equal sub-segments.
        """
        if self._max_segment_length <= 0. or len(pt1) == 0:
            return pt1, pt2, dedx

        length = self._calc.segment_length(pt1, pt2)
        num_div = torch.ceil(length / self._max_segment_length).clamp(min=1).long()
        seg_idx = torch.repeat_interleave(torch.arange(len(pt1), device=pt1.device), num_div)
        start = torch.repeat_interleave(torch.cumsum(num_div, 0) - num_div, num_div)
        sub_idx = torch.arange(len(seg_idx), device=pt1.device) - start

        num_div = num_div[seg_idx].to(DTYPE)
        direct = (pt2 - pt1)[seg_idx]
        origin = pt1[seg_idx]
        sub_pt1 = origin + direct * (sub_idx / num_div).unsqueeze(-1)
        sub_pt2 = origin + direct * ((sub_idx + 1) / num_div).unsqueeze(-1)
        return sub_pt1, sub_pt2, dedx[seg_idx]

    def prompt_hypothesis(self, pt1, pt2, dedx, vis: VisibilityTable, x_offset: float) -> FlashHypothesis:
        """
        Sum of the prompt light from a batch of segments
        ---------
        Arguments
          pt1, pt2: (S,3) segment end points
          dedx: (S,) average dE/dx per segment
          vis: visibility table
          x_offset: shift of the drift coordinate before the visibility lookup
        -------
        Returns
          FlashHypothesis of the prompt light
        """
        n = self.n_opdets(vis)
        qe_v = self.qe_vector(n)

        pt1, pt2, dedx = self.subdivide(pt1, pt2, dedx)
        mid_v = self._calc.segment_midpoint(pt1, pt2, x_offset)
        vis_v, valid = vis.batch_lookup(mid_v)
        if vis_v.shape[-1] != n:
            valid = torch.zeros_like(valid)
            vis_v = torch.zeros(len(mid_v), n, dtype=DTYPE)

        if self._verbose:
            print(f'[FlashHypothesisCreator] {int(valid.sum())}/{len(valid)} segments inside the visibility table')

        vis_v = vis_v.to(device=pt1.device, dtype=DTYPE)
        valid = valid.to(pt1.device)
        pe_v = self._calc.prompt_pe(self.fast_yield, dedx, pt1, pt2, qe_v.to(pt1.device), vis_v)
        prompt_v = torch.zeros(n, dtype=DTYPE, device=pt1.device)
        for seg_pe in pe_v[valid]:
            prompt_v += seg_pe
        return FlashHypothesis(prompt_v)

    def create(self, trajectory, dedx_v=None, vis=None, x_offset=None) -> FlashHypothesisCollection:
        """
        Flash hypothesis of a full trajectory
        ---------
        Arguments
          trajectory: RecoTrack, MCTrack, Trajectory or (T,3) array of points
          dedx_v: dE/dx per point (length T) or per segment (length T-1)
          vis: visibility table, defaults to the one given at construction
          x_offset: drift coordinate shift, defaults to XOffset in the config
        -------
        Returns
          finalized FlashHypothesisCollection
        """
        try:
            traj = as_trajectory(trajectory)
        except ValueError as e:
            raise InputShapeError(str(e)) from e

        vis = self._resolve_visibility(vis)
        x_offset = self._x_offset if x_offset is None else x_offset

        dedx = self.segment_dedx(len(traj), dedx_v).to(traj.positions.device)
        pt1, pt2 = traj.segments()

        prompt = self.prompt_hypothesis(pt1, pt2, dedx, vis, x_offset)
        fhc = FlashHypothesisCollection.empty(len(prompt), device=prompt.pe_v.device)
        return fhc.finalize(prompt, self._prompt_fraction)

    def create_from_segment(self, pt1, pt2, dedx, vis=None, x_offset=None) -> FlashHypothesisCollection:
        """
        Flash hypothesis of a single straight segment with a constant dE/dx
        """
        pt1 = torch.as_tensor(pt1, dtype=DTYPE).reshape(1, 3)
        pt2 = torch.as_tensor(pt2, dtype=DTYPE, device=pt1.device).reshape(1, 3)
        dedx = torch.as_tensor(dedx, dtype=DTYPE, device=pt1.device).reshape(1)
        if (dedx < 0.).any():
            raise ValueError(f'dE/dx must be non-negative, got {dedx.item()}')

        vis = self._resolve_visibility(vis)
        x_offset = self._x_offset if x_offset is None else x_offset

        prompt = self.prompt_hypothesis(pt1, pt2, dedx, vis, x_offset)
        fhc = FlashHypothesisCollection.empty(len(prompt), device=prompt.pe_v.device)
        return fhc.finalize(prompt, self._prompt_fraction)

    def __call__(self, trajectory, dedx_v=None, vis=None, x_offset=None):
        return self.create(trajectory, dedx_v, vis, x_offset)
