import warnings

import numpy as np
import pytest
from fuzzyseq import DependencyWarning
from fuzzyseq.utils.resources import Resources, RESOURCES, jit


class TestResources:
    def test_has_module(self):
        assert Resources.has_module('numpy')
        assert not Resources.has_module('surely_not_an_installed_module')

    def test_optional_packages_filtered(self):
        resources = Resources('numpy', 'surely_not_an_installed_module')
        assert resources.optional_packages == frozenset({'numpy'})
        assert resources.package == 'fuzzyseq'

    def test_require_present(self):
        with warnings.catch_warnings():
            warnings.simplefilter('error')
            assert Resources('numpy').require('numpy')

    def test_require_missing(self):
        with pytest.warns(DependencyWarning, match="surely_not_an_installed_module") as record:
            assert not Resources().require('surely_not_an_installed_module')
        # Attributed to the caller, not to the resources module
        assert record[0].filename == __file__

    def test_rng_is_cached(self):
        assert isinstance(RESOURCES.rng, np.random.Generator)
        assert RESOURCES.rng is RESOURCES.rng


class TestJit:
    def test_bare(self):
        @jit
        def add(a, b): return a + b
        assert add(2, 3) == 5

    def test_configured(self):
        @jit(nopython=True, cache=False, nogil=True)
        def total(values):
            result = 0
            for value in values: result += value
            return result
        assert total(np.arange(5)) == 10
