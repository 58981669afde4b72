from fleet_finance.cli import main

CSV = (
    "Contract Number,Total Capital,Interest Type,Total Interest,Base Rate,Margin,"
    "Total Instalments,First Instalment Date,Vehicle Registration,Vehicle Make,"
    "Vehicle Model,Vehicle Status,Settled Date\n"
    "CON001,12000,fixed,600,,,12,01/01/2024,AB12CDE,Ford,Transit,,\n"
    "POOL01,40000,variable,,5,2,10,01/01/2024,AA11AAA,Mercedes,Sprinter,,\n"
    "POOL01,40000,variable,,5,2,10,01/01/2024,BB22BBB,Mercedes,Sprinter,,\n"
)


def write_csv(tmp_path, text=CSV):
    path = tmp_path / "contracts.csv"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestCli:
    def test_schedule(self, tmp_path, capsys):
        assert main(["schedule", write_csv(tmp_path), "--contract", "con001"]) == 0
        out = capsys.readouterr().out
        assert "Schedule: CON001 (FIXED)" in out
        assert "Total interest:   £600.00" in out
        assert "Periods:      31d x7, 30d x4, 29d x1" in out

    def test_quote(self, tmp_path, capsys):
        args = ["quote", write_csv(tmp_path), "--contract", "POOL01", "--reg", "AA11AAA", "--date", "10/05/2024"]
        assert main(args) == 0
        assert "Settlement figure:    £10,041.42" in capsys.readouterr().out

    def test_statement_to_file(self, tmp_path):
        out = tmp_path / "statement.csv"
        assert main(["statement", write_csv(tmp_path), "--contract", "CON001", "--out", str(out)]) == 0
        assert out.read_text(encoding="utf-8").startswith("Date,Type,Description,Debit,Credit,Balance")

    def test_portfolio(self, tmp_path, capsys):
        assert main(["portfolio", write_csv(tmp_path), "--as-of", "2024-03-15"]) == 0
        assert "2 active, 0 settled" in capsys.readouterr().out

    def test_bad_file_reports_errors(self, tmp_path, capsys):
        path = write_csv(tmp_path, CSV.replace("Ford", ""))
        assert main(["schedule", path]) == 1
        assert "Row 2: Vehicle make is required" in capsys.readouterr().err

    def test_unknown_contract(self, tmp_path, capsys):
        assert main(["schedule", write_csv(tmp_path), "--contract", "NOPE"]) == 1
        assert "NOPE" in capsys.readouterr().err
