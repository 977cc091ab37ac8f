from __future__ import annotations

import torch
from photonlib import PhotonLib, MultiLib
from slar.nets import SirenVis, MultiVis


class VisibilityTable:
    """
    Read-only mapping from a 3D position to the visibility of every optical detector.

    Subclasses implement ``lookup``, returning an (N,) tensor for a position inside
    the valid domain and an empty tensor otherwise.
    """

    @property
    def n_pmts(self):
        raise NotImplementedError

    def lookup(self, pos) -> torch.Tensor:
        raise NotImplementedError

    def batch_lookup(self, pos_v):
        """
        Visibilities for a batch of positions.
        ---------
        Arguments
          pos_v: (S,3) positions
        -------
        Returns
          vis_v: (S,N) visibilities, rows of out-of-domain positions are zero
          valid: (S,) bool, False where the lookup did not return N values
        """
        n = self.n_pmts
        vis_v = torch.zeros(len(pos_v), n, dtype=torch.float64)
        valid = torch.zeros(len(pos_v), dtype=torch.bool)
        for i, pos in enumerate(pos_v):
            vis = torch.as_tensor(self.lookup(pos), dtype=torch.float64).reshape(-1)
            if len(vis) != n:
                continue
            vis_v[i] = vis
            valid[i] = True
        return vis_v, valid


class PhotonLibVisibility(VisibilityTable):
    """
    Visibility lookup backed by a photon library (LUT) or a SIREN model.
    Positions outside of the library volume are out of domain.
    """

    def __init__(self, plib: PhotonLib | MultiLib | SirenVis | MultiVis):
        if not isinstance(plib, (PhotonLib, MultiLib, SirenVis, MultiVis)):
            raise TypeError('Unsupported type(vis_mod)', type(plib))
        self._plib = plib

    @property
    def plib(self):
        return self._plib

    @property
    def n_pmts(self):
        n_out = self._plib.n_pmts
        if n_out is None:
            raise AttributeError('No method to get n_pmts from', type(self._plib))
        return n_out

    def contains(self, pos_v):
        pos_v = torch.as_tensor(pos_v)
        ranges = torch.as_tensor(self._plib.meta.ranges, dtype=pos_v.dtype, device=pos_v.device)
        return ((pos_v >= ranges[:, 0]) & (pos_v <= ranges[:, 1])).all(dim=-1)

    def lookup(self, pos):
        pos = torch.as_tensor(pos, dtype=torch.float32).reshape(1, 3)
        if not self.contains(pos).item():
            return torch.empty(0)
        with torch.no_grad():
            return self._plib.visibility(pos).reshape(-1)

    def batch_lookup(self, pos_v):
        pos_v = torch.as_tensor(pos_v, dtype=torch.float32).reshape(-1, 3)
        valid = self.contains(pos_v)
        vis_v = torch.zeros(len(pos_v), self.n_pmts, dtype=torch.float64)
        if valid.any():
            with torch.no_grad():
                vis = self._plib.visibility(pos_v[valid])
            vis_v[valid] = vis.to(device='cpu', dtype=torch.float64).reshape(int(valid.sum()), -1)
        return vis_v, valid.cpu()
