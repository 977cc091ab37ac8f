from __future__ import annotations

import torch

from flashhypo.errors import ConfigurationError

DTYPE = torch.float64


class FlashHypothesis:
    """
    Expected photo-electrons per optical detector for one light component.
    pe_v and pe_err_v both have shape (N,) for N optical detectors.
    """

    def __init__(self, pe_v, pe_err_v=None):

        self._pe_v = torch.as_tensor(pe_v, dtype=DTYPE)
        if self._pe_v.dim() != 1:
            raise ValueError(f'pe_v must have shape (N,), got {tuple(self._pe_v.shape)}')

        if pe_err_v is None:
            pe_err_v = torch.sqrt(self._pe_v.clamp(min=0.))
        self._pe_err_v = torch.as_tensor(pe_err_v, dtype=DTYPE, device=self._pe_v.device)
        if self._pe_err_v.shape != self._pe_v.shape:
            raise ValueError(f'pe_err_v shape {tuple(self._pe_err_v.shape)} != pe_v shape {tuple(self._pe_v.shape)}')

    @classmethod
    def empty(cls, n, device=None):
        return cls(torch.zeros(n, dtype=DTYPE, device=device),
                   torch.zeros(n, dtype=DTYPE, device=device))

    def __len__(self):
        return len(self.pe_v)

    def __add__(self, other):
        if len(self) != len(other):
            raise ValueError(f'Cannot add hypotheses of different length ({len(self)} vs {len(other)})')
        return FlashHypothesis(self.pe_v + other.pe_v,
                               torch.sqrt(self.pe_err_v**2 + other.pe_err_v**2))

    def __repr__(self):
        return f'FlashHypothesis(n_opdets={len(self)}, sum={self.sum():.4g})'

    def scale(self, factor):
        return FlashHypothesis(self.pe_v * factor, self.pe_err_v * abs(factor))

    def sum(self):
        if len(self.pe_v) == 0:
            return 0
        return torch.sum(self.pe_v).item()

    def to(self, device):
        self._pe_v = self._pe_v.to(device)
        self._pe_err_v = self._pe_err_v.to(device)
        return self

    @property
    def pe_v(self):
        return self._pe_v

    @property
    def pe_err_v(self):
        return self._pe_err_v


class FlashHypothesisCollection:
    """
    Prompt, late and total light hypotheses of one trajectory.

    A collection is created empty, accumulates prompt light by addition and is
    finalized once with the prompt fraction of the scintillation light. After
    ``finalize`` the total light equals prompt + late for every detector.
    """

    def __init__(self, n_opdets, device=None):
        self._prompt = FlashHypothesis.empty(n_opdets, device)
        self._late = FlashHypothesis.empty(n_opdets, device)
        self._total = FlashHypothesis.empty(n_opdets, device)
        self._finalized = False

    @classmethod
    def empty(cls, n_opdets, device=None):
        return cls(n_opdets, device)

    @classmethod
    def add(cls, a, b):
        return a + b

    def __len__(self):
        return len(self._total)

    def __add__(self, other):
        if len(self) != len(other):
            raise ValueError(f'Cannot add collections with different number of detectors ({len(self)} vs {len(other)})')
        res = FlashHypothesisCollection.__new__(FlashHypothesisCollection)
        res._prompt = self._prompt + other._prompt
        res._late = self._late + other._late
        res._total = self._total + other._total
        res._finalized = self._finalized and other._finalized
        return res

    def __repr__(self):
        return (f'FlashHypothesisCollection(n_opdets={len(self)}, prompt={self._prompt.sum():.4g}, '
                f'late={self._late.sum():.4g}, total={self._total.sum():.4g})')

    def finalize(self, prompt: FlashHypothesis, prompt_fraction: float):
        """
        Set the prompt light hypothesis and derive the total and late light.
        ---------
        Arguments
          prompt: FlashHypothesis of the prompt (fast) light, length N
          prompt_fraction: fraction of the scintillation light emitted promptly, in (0,1]
        -------
        Returns
          self
        """
        if self._finalized:
            raise RuntimeError('FlashHypothesisCollection is already finalized')
        if not (0. < prompt_fraction <= 1.):
            raise ConfigurationError(f'Prompt fraction must be in (0,1], got {prompt_fraction}')
        if len(prompt) != len(self):
            raise ValueError(f'Prompt hypothesis length {len(prompt)} != number of detectors {len(self)}')

        self._prompt = FlashHypothesis(prompt.pe_v.clone(), prompt.pe_err_v.clone())
        self._total = self._prompt.scale(1. / prompt_fraction)
        late_v = self._total.pe_v - self._prompt.pe_v
        self._late = FlashHypothesis(late_v)
        self._finalized = True
        return self

    def sum(self):
        return self._total.sum()

    def to(self, device):
        for hyp in (self._prompt, self._late, self._total):
            hyp.to(device)
        return self

    @property
    def n_opdets(self):
        return len(self)

    @property
    def finalized(self):
        return self._finalized

    @property
    def prompt(self):
        return self._prompt

    @property
    def late(self):
        return self._late

    @property
    def total(self):
        return self._total
