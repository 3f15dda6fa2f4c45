import csv

import pytest

import experiments
from experiments import MetricRow, generate_dataset, group_summary, run_one, write_csv


@pytest.mark.parametrize("name", sorted(experiments.GENERATOR_REGISTRY))
def test_generators_are_deterministic(name):
    a = generate_dataset(name, 512, seed=4)
    assert len(a) == 512
    assert a == generate_dataset(name, 512, seed=4)


def test_unknown_generator():
    with pytest.raises(ValueError):
        generate_dataset("nope", 10, 0)


def test_english_like_alphabet():
    data = generate_dataset("english_like", 2000, seed=1)
    assert set(data) <= set(b" etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n")


@pytest.mark.parametrize("wire_format", ["ascii", "packed"])
def test_run_one(wire_format):
    data = generate_dataset("zipf128", 4096, seed=2)
    row = run_one(data, 4, wire_format)
    assert row.correctness_ok == 1
    assert row.workers == 4
    assert row.file_size_bytes == 4096
    assert row.compressed_bytes > 0


def test_run_one_rejects_format():
    with pytest.raises(ValueError):
        run_one(b"abc", 1, "hex")


def test_csv_outputs(tmp_path):
    rows = []
    for run_id in (1, 2):
        row = run_one(generate_dataset("repetitive90", 1024, run_id), 2, "ascii")
        row.dataset_name = "repetitive90"
        row.run_id = run_id
        rows.append(row)

    write_csv(tmp_path / "metrics.csv", rows)
    group_summary(rows, tmp_path / "summary.csv")

    with (tmp_path / "metrics.csv").open(encoding="utf-8") as f:
        raw = list(csv.DictReader(f))
    assert len(raw) == 2
    assert list(raw[0]) == list(MetricRow.__dataclass_fields__)

    with (tmp_path / "summary.csv").open(encoding="utf-8") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == 1
    assert summary[0]["n_runs"] == "2"
    assert float(summary[0]["correctness_ok_rate"]) == 1.0


def test_main_writes_results(tmp_path, capsys):
    code = experiments.main([
        "--outdir", str(tmp_path), "--runs", "1", "--size_kb", "1",
        "--workers", "1,2", "--generators", "uniform256,single_symbol",
    ])
    assert code == 0
    assert (tmp_path / "metrics.csv").exists()
    assert (tmp_path / "summary.csv").exists()
    assert (tmp_path / "count_speedup.png").exists()
    assert (tmp_path / "compression_ratio.png").exists()
    assert "Correctness rate across all runs: 1.000" in capsys.readouterr().out
