import numpy as np
import pytest
from scipy.sparse import csr_matrix

from hictable.builder import build_table
from hictable.errors import ValidationError
from hictable.matrix import matrix_to_table, to_matrix, to_records, to_sparse
from hictable.table import DataType


def _random_cis_table(n, *, resolution=1000, n_bins=200, offset_bins=0, seed=0):
    rng = np.random.default_rng(seed)
    pairs = set()
    while len(pairs) < n:
        i, j = sorted(int(x) for x in rng.integers(0, n_bins, size=2))
        pairs.add((i + offset_bins, j + offset_bins))
    rows = [("chr1", i * resolution, "chr1", j * resolution, float(rng.random()) + 0.5) for i, j in pairs]
    return build_table(rows, resolution=resolution), rows


def test_two_bin_matrix_from_reversed_pair():
    t = build_table([("1", 0, "1", 10000, 5.0), ("1", 10000, "1", 0, 5.0)], resolution=10000)
    mat, pos = to_matrix(t, "1", missing_score=-1.0)

    assert mat.shape == (2, 2)
    assert mat[0, 1] == mat[1, 0] == 5.0
    assert mat[0, 0] == mat[1, 1] == -1.0
    assert pos.tolist() == [0, 10000]


def test_default_missing_score_is_nan():
    t = build_table([("1", 0, "1", 10000, 5.0)], resolution=10000)
    mat, _ = to_matrix(t)
    assert np.isnan(mat[0, 0]) and np.isnan(mat[1, 1])


@pytest.mark.parametrize("n", [1, 2, 50, 400, 1000])
def test_matrix_roundtrip(n):
    t, rows = _random_cis_table(n, seed=n, offset_bins=7)
    mat, pos = to_matrix(t, "chr1")
    recs = to_records(mat, pos, "chr1", t.resolution)

    assert {(r.pos1, r.pos2, r.score) for r in recs} == {(r[1], r[3], r[4]) for r in rows}
    assert len(recs) == n


def test_to_records_order_is_canonical():
    t, _ = _random_cis_table(300, seed=3)
    mat, pos = to_matrix(t)
    recs = to_records(mat, pos, "chr1", t.resolution)
    keys = [r.key for r in recs]
    assert keys == sorted(keys)


@pytest.mark.parametrize("seed", [0, 1])
def test_matrix_is_symmetric(seed):
    t, _ = _random_cis_table(500, seed=seed)
    mat, _ = to_matrix(t)
    assert np.array_equal(mat, mat.T, equal_nan=True)


def test_lower_triangle_records_are_mirrored():
    t = build_table([("chr1", 3000, "chr1", 1000, 2.0)], resolution=1000)
    mat, pos = to_matrix(t)
    assert pos.tolist() == [1000, 2000, 3000]
    assert mat[0, 2] == mat[2, 0] == 2.0


def test_full_matrix_vs_windowed_dimensions():
    resolution = 1000
    rows = [("chr1", 5000, "chr1", 9000, 1.0), ("chr1", 6000, "chr1", 6000, 2.0)]
    t = build_table(rows, resolution=resolution)

    windowed, wpos = to_matrix(t, full_matrix=False)
    full, fpos = to_matrix(t, full_matrix=True)

    assert windowed.shape == ((9000 - 5000) // resolution + 1,) * 2
    assert full.shape == (9000 // resolution + 1,) * 2
    assert wpos[0] == 5000 and fpos[0] == 0
    assert full[5, 9] == windowed[0, 4] == 1.0
    assert full[6, 6] == windowed[1, 1] == 2.0


def test_full_and_windowed_coincide_when_data_starts_at_zero():
    t = build_table([("chr1", 0, "chr1", 4000, 1.0)], resolution=1000)
    a, _ = to_matrix(t, full_matrix=False)
    b, _ = to_matrix(t, full_matrix=True)
    assert np.array_equal(a, b, equal_nan=True)


def test_only_cis_records_of_chrom_are_used():
    rows = [
        ("chr1", 0, "chr1", 1000, 1.0),
        ("chr1", 0, "chr2", 1000, 9.0),
        ("chr2", 0, "chr2", 5000, 3.0),
    ]
    t = build_table(rows, resolution=1000)
    mat, pos = to_matrix(t, "chr1")
    assert mat.shape == (2, 2)
    assert mat[0, 1] == 1.0


def test_chrom_inference_requires_single_chrom():
    rows = [("chr1", 0, "chr1", 1000, 1.0), ("chr2", 0, "chr2", 1000, 1.0)]
    t = build_table(rows, resolution=1000)
    with pytest.raises(ValidationError, match="infer chromosome"):
        to_matrix(t)


def test_empty_subset_raises():
    t = build_table([("chr1", 0, "chr1", 1000, 1.0)], resolution=1000)
    with pytest.raises(ValidationError, match="chr9"):
        to_matrix(t, "chr9")
    with pytest.raises(ValidationError):
        to_matrix(build_table([], resolution=1000), "chr1")


def test_conflicting_mirrored_records_rejected():
    rows = [("chr1", 0, "chr1", 1000, 1.0), ("chr1", 1000, "chr1", 0, 2.0)]
    t = build_table(rows, resolution=1000)
    with pytest.raises(ValidationError, match="Conflicting"):
        to_matrix(t)
    with pytest.raises(ValidationError, match="Conflicting"):
        to_sparse(t)


def test_to_records_skips_missing_sentinel():
    mat = np.array([[0.0, 2.0], [2.0, 0.0]])
    recs = to_records(mat, [0, 500], "2", 500, missing_score=0.0)
    assert [(r.pos1, r.pos2, r.score) for r in recs] == [(0, 500, 2.0)]


def test_to_records_reads_upper_triangle_only():
    mat = np.array([[1.0, 2.0], [7.0, np.nan]])
    recs = to_records(mat, [0, 10], "1", 10)
    assert [(r.pos1, r.pos2, r.score) for r in recs] == [(0, 0, 1.0), (0, 10, 2.0)]


@pytest.mark.parametrize(
    "matrix, positions, resolution",
    [
        (np.zeros((2, 3)), [0, 10], 10),  # not square
        (np.zeros((0, 0)), [], 10),  # empty
        (np.zeros((2, 2)), [0, 10, 20], 10),  # label count
        (np.zeros((3, 3)), [0, 10, 30], 10),  # label spacing
        (np.zeros((2, 2)), [0, 10], 0),  # resolution
    ],
)
def test_to_records_rejects_bad_input(matrix, positions, resolution):
    with pytest.raises(ValidationError):
        to_records(matrix, positions, "1", resolution)


def test_matrix_to_table_roundtrip():
    t, _ = _random_cis_table(100, resolution=5000, seed=11)
    mat, pos = to_matrix(t)
    t2 = matrix_to_table(mat, pos, "chr1", 5000, type="oe", genome="hg38")

    assert t2.type is DataType.OE
    assert t2.genome == "hg38"
    assert t2.keys() == t.keys()
    assert [r.score for r in t2.records] == [r.score for r in t.records]


def test_to_sparse_matches_dense():
    t, _ = _random_cis_table(200, seed=5)
    dense, pos = to_matrix(t, missing_score=0.0)
    A, spos = to_sparse(t)

    assert isinstance(A, csr_matrix)
    assert np.array_equal(pos, spos)
    assert np.allclose(A.toarray(), dense)
    assert (A != A.T).nnz == 0


def test_to_sparse_does_not_double_diagonal():
    t = build_table([("1", 0, "1", 0, 3.0), ("1", 0, "1", 1000, 1.0)], resolution=1000)
    A, _ = to_sparse(t)
    assert A[0, 0] == 3.0
    assert A[0, 1] == A[1, 0] == 1.0


def test_conversion_leaves_table_untouched():
    t, _ = _random_cis_table(50, seed=2)
    before = t.to_dataframe()
    to_matrix(t, full_matrix=True)
    assert t.to_dataframe().equals(before)
