import numpy as np

from hictable.matrix import to_matrix
from hictable.synth import make_synthetic_table


def test_synthetic_table_shape():
    t = make_synthetic_table(32, resolution=1000, chrom="chr3", seed=0, bandwidth=4)
    assert t.chroms() == ["chr3"]
    assert t.resolution == 1000
    assert all(r.pos1 <= r.pos2 for r in t.records)
    assert all(r.pos2 - r.pos1 <= 4 * 1000 for r in t.records)

    mat, pos = to_matrix(t, full_matrix=True)
    assert mat.shape[0] == pos.shape[0] <= 32
    assert np.array_equal(mat, mat.T, equal_nan=True)


def test_synthetic_table_is_reproducible():
    a = make_synthetic_table(16, seed=7)
    b = make_synthetic_table(16, seed=7)
    assert a.to_dataframe().equals(b.to_dataframe())
