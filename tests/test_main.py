"""
Tests for the command line entry point.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from main import main


class TestMain:
    """Tests for main()."""

    def test_prints_round_one(self, tmp_path, capsys):
        setup = tmp_path / "tournament.yaml"
        setup.write_text("name: Club Night\ntype: Single Knockout 4\nplayers: [A, B, C, D]\n")
        assert main([str(setup)]) == 0
        out = capsys.readouterr().out
        assert 'Club Night (Single Elimination, Race to 1)' in out
        assert 'Semifinal:' in out
        assert 'se-r1-m1: A vs D' in out
        assert 'se-r1-m2: B vs C' in out

    def test_bye_printed(self, tmp_path, capsys):
        setup = tmp_path / "tournament.yaml"
        setup.write_text("type: single_elimination\nplayers: [A, B, C]\n")
        main([str(setup)])
        assert 'se-r1-m2: C vs BYE' in capsys.readouterr().out

    def test_invalid_setup(self, tmp_path, capsys):
        setup = tmp_path / "tournament.yaml"
        setup.write_text("type: Double Elimination\nplayers: [A, B]\n")
        assert main([str(setup)]) == 1
        assert 'Error:' in capsys.readouterr().out

    def test_default_setup_file(self, capsys):
        assert main([]) == 0
        assert 'wb-r1-m1' in capsys.readouterr().out
