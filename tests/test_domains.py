import numpy as np
import pytest

from domains import INDICES, REAL_LINE, DomainSection1D, FiniteSubDomain


def test_domain_sentinels():
    assert REAL_LINE.first() == -np.inf
    assert REAL_LINE.last() == np.inf
    assert REAL_LINE.zero() == 0.0
    assert INDICES.first() == np.iinfo(np.int32).min
    assert INDICES.last() == np.iinfo(np.int32).max
    assert INDICES.zero() == 0


def test_section_iterates_half_open():
    pts = DomainSection1D(0.0, 1.0, 0.25).points()
    np.testing.assert_allclose(pts, [0.0, 0.25, 0.5, 0.75])
    assert pts.dtype == np.float32
    assert list(DomainSection1D(0.0, 1.0, 0.25)) == list(pts)


def test_section_fine_step_count():
    pts = DomainSection1D(0.0, 1.0, 0.001).points()
    assert pts.size == 1000
    assert np.all(pts < 1.0)


def test_section_contains_is_closed():
    d = DomainSection1D(-1.0, 1.0, 0.1)
    assert d.contains(-1.0) and d.contains(1.0) and d.contains(0.3)
    assert not d.contains(1.01)
    np.testing.assert_array_equal(d.contains(np.array([-2.0, 0.0, 1.0, 2.0])), [False, True, True, False])


def test_empty_and_degenerate_sections():
    assert DomainSection1D(2.0, 1.0, 0.1).points().size == 0
    assert DomainSection1D.none().points().size == 0


def test_unbounded_section_cannot_be_sampled():
    with pytest.raises(ValueError):
        DomainSection1D.all().points()


def test_step_must_be_positive():
    with pytest.raises(ValueError):
        DomainSection1D(0.0, 1.0, 0.0)


@pytest.mark.parametrize(
    "a,b",
    [
        ((0.0, 1.0, 0.1), (0.5, 2.0, 0.05)),
        ((-3.0, -1.0, 0.2), (2.0, 3.0, 0.5)),
        ((0.0, 4.0, 0.01), (1.0, 2.0, 0.1)),
    ],
)
def test_union_and_intersection(a, b):
    A, B = DomainSection1D(*a), DomainSection1D(*b)
    union, inter = A + B, A * B
    assert union.step_size() == min(A.step_size(), B.step_size())
    assert inter.step_size() == min(A.step_size(), B.step_size())
    for x in np.linspace(-4.0, 5.0, 91):
        if A.contains(x) or B.contains(x):
            assert union.contains(x)
        assert bool(inter.contains(x)) == bool(A.contains(x) and B.contains(x))


def test_translate_keeps_step():
    d = DomainSection1D(0.0, 1.0, 0.1).translate(2.5)
    assert d.lower == pytest.approx(2.5)
    assert d.upper == pytest.approx(3.5)
    assert d.step_size() == pytest.approx(0.1)


def test_with_step_size():
    d = DomainSection1D(0.0, 1.0, 0.1).with_step_size(0.5)
    np.testing.assert_allclose(d.points(), [0.0, 0.5])


def test_combining_different_subdomain_types_fails():
    with pytest.raises(TypeError):
        DomainSection1D(0.0, 1.0, 0.1) + FiniteSubDomain(0, 1)


def test_finite_subdomain_is_closed():
    d = FiniteSubDomain(0, 1)
    np.testing.assert_array_equal(d.points(), [0, 1])
    assert d.step_size() == 1
    assert d.contains(1) and not d.contains(2)
    assert FiniteSubDomain.none().points().tolist() == [0]


def test_finite_union_intersection_translate():
    a, b = FiniteSubDomain(0, 3), FiniteSubDomain(2, 5)
    assert (a + b) == FiniteSubDomain(0, 5)
    assert (a * b) == FiniteSubDomain(2, 3)
    assert a.translate(2) == FiniteSubDomain(2, 5)
    assert a.with_step_size(7) == a


def test_finite_all_cannot_be_sampled():
    with pytest.raises(ValueError):
        FiniteSubDomain.all().points()
