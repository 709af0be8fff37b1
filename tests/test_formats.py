import pytest

from hictable.errors import FormatError
from hictable.formats import ALLOWED_RESOLUTIONS, HicFormat, candidate_resolutions, guess_format


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.hic", HicFormat.JUICER_HIC),
        ("dir/a.bed", HicFormat.GENBED),
        ("a.bed.gz", HicFormat.GENBED),
        ("a.short", HicFormat.JUICER_SHORT),
        ("a.short.gz", HicFormat.JUICER_SHORT),
        ("A.COOL", HicFormat.COOL),
    ],
)
def test_guess_format(name, expected):
    assert guess_format(name) is expected


@pytest.mark.parametrize("name", ["a.mcool", "a.txt", "hic", "a.hic.bak"])
def test_guess_format_unknown(name):
    with pytest.raises(FormatError, match="Unknown input format"):
        guess_format(name)


def test_candidate_resolutions():
    assert candidate_resolutions(25000) == [2500000, 2000000, 1000000, 250000, 200000, 100000, 25000]
    assert candidate_resolutions(5000) == [r for r in ALLOWED_RESOLUTIONS if r >= 10000]
    assert candidate_resolutions(1) == list(ALLOWED_RESOLUTIONS)
    assert candidate_resolutions(5_000_000) == []
