from __future__ import annotations

import torch

from flashhypo.datatypes import FlashHypothesis
from flashhypo.datatypes.hypothesis import DTYPE


class PhotonYieldCalculator:
    """
    Expected prompt light on each optical detector from straight segments.
    All methods broadcast over a leading batch dimension of segments.
    """

    def __init__(self, drift_axis: int = 0):
        self._drift_axis = drift_axis

    @property
    def drift_axis(self):
        return self._drift_axis

    def segment_midpoint(self, pt1, pt2, offset=0.) -> torch.Tensor:
        """
        Midpoint of a segment, with the drift coordinate shifted by offset
        ---------
        Arguments
          pt1, pt2: (3,) or (S,3) segment end points
          offset: shift applied to the drift coordinate
        -------
        Returns
          (3,) or (S,3) sampling points for the visibility lookup
        """
        pt1 = torch.as_tensor(pt1, dtype=DTYPE)
        pt2 = torch.as_tensor(pt2, dtype=DTYPE, device=pt1.device)
        mid = (pt1 + pt2) / 2.
        mid[..., self._drift_axis] += offset
        return mid

    @staticmethod
    def segment_length(pt1, pt2) -> torch.Tensor:
        pt1 = torch.as_tensor(pt1, dtype=DTYPE)
        pt2 = torch.as_tensor(pt2, dtype=DTYPE, device=pt1.device)
        return torch.linalg.norm(pt2 - pt1, dim=-1)

    def prompt_pe(self, fast_yield, dedx, pt1, pt2, qe_v, vis_v) -> torch.Tensor:
        """
        Expected prompt p.e. per detector, shape (N,) or (S,N)
        ---------
        Arguments
          fast_yield: prompt photons per MeV (LightYield * ScintYieldRatio)
          dedx: average dE/dx of the segment(s) in MeV/cm, scalar or (S,)
          pt1, pt2: (3,) or (S,3) segment end points
          qe_v: (N,) quantum efficiency per detector
          vis_v: (N,) or (S,N) visibility at the segment midpoint(s)
        """
        length = self.segment_length(pt1, pt2)
        dedx = torch.as_tensor(dedx, dtype=DTYPE, device=length.device)
        qe_v = torch.as_tensor(qe_v, dtype=DTYPE, device=length.device)
        vis_v = torch.as_tensor(vis_v, dtype=DTYPE, device=length.device)
        if fast_yield < 0. or (dedx < 0.).any() or (qe_v < 0.).any() or (vis_v < 0.).any():
            raise ValueError('Light yield, dE/dx, QE and visibility must be non-negative')
        light = fast_yield * dedx * length
        return light.unsqueeze(-1) * qe_v * vis_v

    def fill_prompt_hypothesis(self, fast_yield, dedx, pt1, pt2, qe_v, vis_v, hyp=None) -> FlashHypothesis:
        """
        Fill a prompt light FlashHypothesis for one segment. Use prompt_pe for a
        batch of segments.
        If hyp is given, its values are overwritten; a new one is returned otherwise.
        """
        pe_v = self.prompt_pe(fast_yield, dedx, pt1, pt2, qe_v, vis_v)
        if pe_v.dim() != 1:
            raise ValueError(f'Expected a single segment, got prompt p.e. of shape {tuple(pe_v.shape)}')
        if hyp is None:
            return FlashHypothesis(pe_v)
        if len(hyp) != len(pe_v):
            raise ValueError(f'Hypothesis length {len(hyp)} != number of detectors {len(pe_v)}')
        hyp.pe_v.copy_(pe_v)
        hyp.pe_err_v.copy_(torch.sqrt(pe_v.clamp(min=0.)))
        return hyp
