import json

import numpy as np

from hictable.cli import main
from hictable.readers import load_hic


def test_cli_smoke(tmp_path, capsys):
    bed = tmp_path / "synth.bed"
    main(["synth", "--output", str(bed), "--n_bins", "24", "--resolution", "1000", "--genome", "hg38"])
    table = load_hic(bed)
    assert table.resolution == 1000
    assert table.genome == "hg38"

    info = tmp_path / "info.json"
    main(["info", "--input", str(bed), "--json", str(info)])
    desc = json.loads(info.read_text())
    assert desc["n_records"] == len(table)
    assert desc["chroms"] == ["chr1"]
    assert "Resolution: 1000" in capsys.readouterr().out

    short = tmp_path / "synth.short"
    main(["convert", "--input", str(bed), "--output", str(short)])
    assert load_hic(short, resolution=1000).keys() == table.keys()

    tsv = tmp_path / "matrix.tsv"
    main(["matrix", "--input", str(bed), "--output", str(tsv), "--chrom", "chr1"])
    lines = tsv.read_text().splitlines()
    n = len(lines) - 1
    assert n <= 24
    assert all(len(line.split("\t")) == n + 1 for line in lines)
    values = np.array([line.split("\t")[1:] for line in lines[1:]])
    assert (values == values.T).all()


def test_cli_reports_errors(tmp_path):
    bad = tmp_path / "x.txt"
    bad.write_text("")
    try:
        main(["info", "--input", str(bad)])
    except SystemExit as e:
        assert "Unknown input format" in str(e.code)
    else:
        raise AssertionError("expected SystemExit")


def test_cli_hic_input_requires_resolution(tmp_path):
    hic = tmp_path / "x.hic"
    hic.write_bytes(b"")
    try:
        main(["info", "--input", str(hic)])
    except SystemExit as e:
        assert "--resolution is required" in str(e.code)
    else:
        raise AssertionError("expected SystemExit")
