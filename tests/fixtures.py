import os
from tempfile import NamedTemporaryFile

import h5py
import numpy as np
import pytest
import torch

from flashhypo.algorithms import VisibilityTable
from photonlib import PhotonLib


class BoxVisibility(VisibilityTable):
    """
    Visibility table with a fixed visibility vector inside an axis aligned box.
    Positions outside of the box return an empty vector.
    """
    def __init__(self, vis_v, vmin=(-np.inf,)*3, vmax=(np.inf,)*3):
        self.vis_v = torch.as_tensor(vis_v, dtype=torch.float64)
        self.vmin = torch.as_tensor(vmin, dtype=torch.float64)
        self.vmax = torch.as_tensor(vmax, dtype=torch.float64)
        self.queries = []

    @property
    def n_pmts(self):
        return len(self.vis_v)

    def lookup(self, pos):
        pos = torch.as_tensor(pos, dtype=torch.float64)
        self.queries.append(pos.clone())
        if torch.all(pos >= self.vmin) and torch.all(pos <= self.vmax):
            return self.vis_v
        return torch.empty(0)


class LinearVisibility(VisibilityTable):
    """Visibility that changes linearly with z, different for every detector"""
    def __init__(self, n, slope=1e-5, base=1e-3):
        self.n = n
        self.slope = slope
        self.base = base

    @property
    def n_pmts(self):
        return self.n

    def lookup(self, pos):
        scale = torch.arange(1, self.n+1, dtype=torch.float64)
        return (self.base + self.slope * abs(float(pos[2]))) * scale


def writable_temp_file(suffix=None):
    return NamedTemporaryFile('w', suffix=suffix, delete=False).name

@pytest.fixture
def rng(GLOBAL_SEED):
    return np.random.default_rng(GLOBAL_SEED)

@pytest.fixture
def num_pmt():
    return 180

@pytest.fixture
def detector_specs():
    return {'LightYield': 24000., 'ScintYieldRatio': 0.23, 'QE': 0.02, 'MIPdEdx': 2.1}

@pytest.fixture
def fake_photon_library(rng, num_pmt):
    """
    h5 file has the following structure:
       - numvox: number of voxels in each dimension with shape (3,)
       - vis: 3D array of visibility values with shape (numvox, Npmt)
       - min: minimum coordinate of the active volume with shape (3,)
       - max: maximum coordinate of the active volume with shape (3,)
    """
    fake_h5 = writable_temp_file(suffix='.h5')
    with h5py.File(fake_h5, 'w') as f:
        f.create_dataset('numvox', shape=(3,), data=[10, 10, 10])
        total_numvox = np.prod(f['numvox'][:])

        # fake vis data -- random numbers uniformly distributed from 10^-7 to 10^-3
        vis = 10**rng.uniform(low=-7, high=-3, size=(total_numvox, num_pmt))
        f.create_dataset('vis', shape=(total_numvox, num_pmt), data=vis)

        # fake min/max data
        f.create_dataset('min', shape=(3,), data=[-400, -200, -1000])
        f.create_dataset('max', shape=(3,), data=[-35, 170, 1000])
    yield fake_h5
    os.remove(fake_h5)

@pytest.fixture
def plib(fake_photon_library):
    return PhotonLib.load(fake_photon_library)
