import pytest
from click.testing import CliRunner

from pystitch.cli.main import cli


@pytest.fixture
def project(tmp_path, monkeypatch):
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "site"\n')
    components = tmp_path / "components"
    components.mkdir()
    (components / "app-example.html").write_text("<button><slot></slot> 1</button>")
    (components / "app-static.html").write_text("<button>1</button>")
    (tmp_path / "page.html").write_text("<div><app-example>Mario</app-example></div>")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_compose_to_stdout(project):
    result = CliRunner().invoke(cli, ["compose", "page.html", "--components", "components"])

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == (
        "<div><app-example><button><slot>Mario</slot> 1</button></app-example></div>"
    )


def test_compose_from_stdin(project):
    result = CliRunner().invoke(
        cli,
        ["compose", "-", "--components", "components"],
        input="<app-static>Mario</app-static>",
    )

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "<app-static><button>1</button></app-static>"


def test_compose_to_file(project):
    result = CliRunner().invoke(
        cli, ["compose", "page.html", "--components", "components", "-o", "out.html"]
    )

    assert result.exit_code == 0, result.output
    assert (project / "out.html").read_text() == (
        "<div><app-example><button><slot>Mario</slot> 1</button></app-example></div>"
    )


def test_compose_uses_pyproject_settings(project):
    (project / "pyproject.toml").write_text(
        '[tool.pystitch]\ncomponents-dir = "components"\nparser = "html"\n'
    )
    (project / "page.html").write_text("<div><app-example>Mario</app-example><br></div>")

    result = CliRunner().invoke(cli, ["compose", "page.html"])

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == (
        "<div><app-example><button><slot>Mario</slot> 1</button></app-example><br></div>"
    )


def test_compose_bad_fragment_fails(project):
    (project / "components" / "app-broken.html").write_text("<button><slot></button>")
    (project / "page.html").write_text("<div><app-broken>x</app-broken></div>")

    result = CliRunner().invoke(cli, ["compose", "page.html", "--components", "components"])

    assert result.exit_code == 1
    assert "<div>" not in result.stdout


def test_compose_bad_input_fails(project):
    (project / "page.html").write_text("<div><p></div>")

    result = CliRunner().invoke(cli, ["compose", "page.html"])

    assert result.exit_code == 1


def test_compose_bad_config_is_usage_error(project):
    (project / "pyproject.toml").write_text('[tool.pystitch]\nparser = "yaml"\n')

    result = CliRunner().invoke(cli, ["compose", "page.html"])

    assert result.exit_code == 2


def test_components_lists_tags(project):
    result = CliRunner().invoke(cli, ["components", "--components", "components"])

    assert result.exit_code == 0, result.output
    assert "<app-example>" in result.stdout
    assert "<app-static>" in result.stdout


def test_components_empty(project):
    result = CliRunner().invoke(cli, ["components"])

    assert result.exit_code == 0
    assert "No components registered" in result.stdout


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
