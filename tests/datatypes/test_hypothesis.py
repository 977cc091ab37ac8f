import numpy as np
import pytest
import torch

from flashhypo.datatypes import FlashHypothesis, FlashHypothesisCollection
from flashhypo.errors import ConfigurationError

# import pytest fixtures; do not remove
from tests.fixtures import rng, num_pmt

def random_collection(rng, n, fraction=0.3):
    prompt = FlashHypothesis(rng.random(size=(n,))*100)
    return FlashHypothesisCollection.empty(n).finalize(prompt, fraction)

def test_hypothesis_fill(rng):

    # numpy array
    pe_v = rng.random(size=(180,))
    hyp = FlashHypothesis(pe_v)
    assert np.allclose(pe_v, hyp.pe_v.cpu().numpy())
    assert np.allclose(np.sqrt(pe_v), hyp.pe_err_v.cpu().numpy())

    # list
    hyp = FlashHypothesis(pe_v.tolist())
    assert np.allclose(pe_v, hyp.pe_v.cpu().numpy())

    # Tensor
    hyp = FlashHypothesis(torch.as_tensor(pe_v), torch.zeros(180))
    assert torch.all(hyp.pe_err_v == 0)

    with pytest.raises(ValueError):
        FlashHypothesis(rng.random(size=(2,3)))
    with pytest.raises(ValueError):
        FlashHypothesis(pe_v, pe_v[:10])

def test_hypothesis_len_sum(rng):
    hyp = FlashHypothesis([])
    assert len(hyp) == 0
    assert hyp.sum() == 0

    pe_v = rng.random(size=(180,))
    hyp = FlashHypothesis(pe_v)
    assert len(hyp) == 180
    assert np.allclose(hyp.sum(), np.sum(pe_v))

def test_hypothesis_add(rng):
    a = FlashHypothesis(rng.random(size=(10,)))
    b = FlashHypothesis(rng.random(size=(10,)))
    c = a + b
    assert torch.allclose(c.pe_v, a.pe_v + b.pe_v)
    # errors in quadrature
    assert torch.allclose(c.pe_err_v, torch.sqrt(a.pe_v + b.pe_v))

    with pytest.raises(ValueError):
        a + FlashHypothesis(rng.random(size=(11,)))

def test_collection_empty(num_pmt):
    fhc = FlashHypothesisCollection.empty(num_pmt)
    assert len(fhc) == num_pmt
    assert fhc.n_opdets == num_pmt
    assert not fhc.finalized
    for hyp in (fhc.prompt, fhc.late, fhc.total):
        assert len(hyp) == num_pmt
        assert torch.all(hyp.pe_v == 0)

    assert len(FlashHypothesisCollection.empty(0)) == 0

def test_collection_finalize(rng, num_pmt):
    fraction = rng.uniform(0.05, 1.)
    prompt = FlashHypothesis(rng.random(size=(num_pmt,))*1000)
    fhc = FlashHypothesisCollection.empty(num_pmt).finalize(prompt, fraction)

    assert fhc.finalized
    assert torch.allclose(fhc.prompt.pe_v, prompt.pe_v)
    assert torch.allclose(fhc.total.pe_v, prompt.pe_v / fraction)
    assert torch.allclose(fhc.total.pe_v, fhc.prompt.pe_v + fhc.late.pe_v, rtol=1e-6)
    assert torch.all(fhc.late.pe_v >= 0)
    assert np.isclose(fhc.sum(), fhc.total.sum())

    # finalize only once
    with pytest.raises(RuntimeError):
        fhc.finalize(prompt, fraction)

def test_collection_finalize_bad_fraction(rng):
    prompt = FlashHypothesis(rng.random(size=(5,)))
    for fraction in (0., -0.2, 1.5):
        with pytest.raises(ConfigurationError):
            FlashHypothesisCollection.empty(5).finalize(prompt, fraction)

    # prompt fraction of 1: no late light
    fhc = FlashHypothesisCollection.empty(5).finalize(prompt, 1.)
    assert torch.all(fhc.late.pe_v == 0)

    with pytest.raises(ValueError):
        FlashHypothesisCollection.empty(6).finalize(prompt, 0.5)

def test_collection_add(rng):
    n = 20
    a = random_collection(rng, n)
    b = random_collection(rng, n)
    c = random_collection(rng, n)

    # commutative
    ab, ba = a + b, b + a
    for comp in ('prompt', 'late', 'total'):
        assert torch.allclose(getattr(ab, comp).pe_v, getattr(ba, comp).pe_v)

    # associative
    left, right = (a + b) + c, a + (b + c)
    for comp in ('prompt', 'late', 'total'):
        assert torch.allclose(getattr(left, comp).pe_v, getattr(right, comp).pe_v)

    # identity
    ae = FlashHypothesisCollection.add(a, FlashHypothesisCollection.empty(n))
    for comp in ('prompt', 'late', 'total'):
        assert torch.equal(getattr(ae, comp).pe_v, getattr(a, comp).pe_v)

    # sum of finalized collections keeps total = prompt + late
    assert ab.finalized
    assert torch.allclose(ab.total.pe_v, ab.prompt.pe_v + ab.late.pe_v, rtol=1e-6)
    assert not ae.finalized

    with pytest.raises(ValueError):
        a + FlashHypothesisCollection.empty(n+1)

def test_collection_finalize_owns_prompt(rng):
    buf = FlashHypothesis(rng.random(size=(4,))*10)
    fhc = FlashHypothesisCollection.empty(4).finalize(buf, 0.23)
    prompt_v = fhc.prompt.pe_v.clone()

    # the caller's hypothesis is reused and overwritten
    buf.pe_v.mul_(5.)
    buf.pe_err_v.fill_(0.)
    assert torch.equal(fhc.prompt.pe_v, prompt_v)
    assert torch.allclose(fhc.total.pe_v, fhc.prompt.pe_v + fhc.late.pe_v, rtol=1e-6)
