"""Tests for the command line interface."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from choreo import __version__
from choreo.cli import app
from choreo.models import StoryboardSnapshot

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_ingest_appends_to_storyboard(tmp_path):
    path = tmp_path / "fight.yaml"

    first = runner.invoke(app, ["ingest", "@Joey punches @Bill kicks", "-o", str(path)])
    second = runner.invoke(app, ["ingest", "@Eve dodges", "-o", str(path), "-s", "scene-2"])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    snapshot = StoryboardSnapshot.from_yaml(path)
    assert snapshot.project_name == "fight"
    assert list(snapshot.scenes) == ["scene-1", "scene-2"]
    assert [n.action for n in snapshot.scenes["scene-1"]] == ["punches", "kicks"]


def test_ingest_without_mentions_fails(tmp_path):
    path = tmp_path / "fight.yaml"

    result = runner.invoke(app, ["ingest", "no mentions here", "-o", str(path)])

    assert result.exit_code == 1
    assert not path.exists()


def test_show(tmp_path):
    path = tmp_path / "fight.yaml"
    runner.invoke(app, ["ingest", "@Joey punches", "-o", str(path)])

    result = runner.invoke(app, ["show", "-s", str(path)])

    assert result.exit_code == 0
    assert "Joey: punches (Static, Daylight, 2.0s)" in result.output


def test_render_requires_credentials(tmp_path, unconfigured):
    path = tmp_path / "fight.yaml"
    runner.invoke(app, ["ingest", "@Joey punches", "-o", str(path)])

    with patch("choreo.studio.default_config", unconfigured):
        result = runner.invoke(app, ["render", "scene-1", "-s", str(path)])

    assert result.exit_code == 1
    assert "RUNCOMFY_API_KEY" in result.output


@pytest.mark.parametrize("content", ["scenes: [unclosed\n", "- a\n- b\n"])
@pytest.mark.parametrize("args", [["show", "-s"], ["ingest", "@Joey punches", "-o"]])
def test_unreadable_storyboard(tmp_path, content, args):
    path = tmp_path / "fight.yaml"
    path.write_text(content)

    result = runner.invoke(app, [*args, str(path)])

    assert result.exit_code == 1
    assert "Error loading storyboard" in result.output
    assert path.read_text() == content
