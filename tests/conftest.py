import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


# Stand-ins for the external tools.  Each writes the files the real tool
# would produce, so the pipeline can be exercised without a TeX install.
FAKE_TOOLS = {
    "pdflatex": """
        outdir = next(a.split('=', 1)[1] for a in args if a.startswith('-output-directory='))
        stem = pathlib.Path(args[-1]).stem
        out = pathlib.Path(outdir)
        out.mkdir(parents=True, exist_ok=True)
        for suffix in ['.pdf', '.aux', '.log', '.out']:
            (out / (stem + suffix)).write_text('fake ' + suffix)
        print('This is fake pdfTeX')
    """,
    "latex": """
        outdir = next(a.split('=', 1)[1] for a in args if a.startswith('-output-directory='))
        stem = pathlib.Path(args[-1]).stem
        out = pathlib.Path(outdir)
        for suffix in ['.dvi', '.aux', '.log']:
            (out / (stem + suffix)).write_text('fake ' + suffix)
    """,
    "dvisvgm": """
        out = next(a.split('=', 1)[1] for a in args if a.startswith('--output='))
        pathlib.Path(out).write_text('<svg/>')
    """,
    "pdf2svg": """
        pathlib.Path(args[1]).write_text('<svg/>')
    """,
    "inkscape": """
        out = next(a.split('=', 1)[1] for a in args if a.startswith('--export-filename='))
        pathlib.Path(out).write_text('<svg/>')
    """,
    "failing": """
        sys.exit(1)
    """,
}


def write_tool(bin_dir, name, body, log_file=None):
    """Write an executable python script called ``name`` into ``bin_dir``."""
    script = bin_dir / name
    lines = [
        f"#!{sys.executable}",
        "import pathlib, sys",
        "args = sys.argv[1:]",
    ]
    if log_file is not None:
        lines.append(
            f"with open({str(log_file)!r}, 'a') as fp:\n"
            f"    fp.write({name!r} + ' ' + ' '.join(args) + '\\n')"
        )
    lines.append(textwrap.dedent(body))
    script.write_text("\n".join(lines) + "\n")
    script.chmod(0o755)
    return script


class FakeBin:
    def __init__(self, path):
        self.path = path
        self.log = path / "calls.log"

    def add(self, name, body=None):
        if body is None:
            body = FAKE_TOOLS[name]
        return write_tool(self.path, name, body, self.log)

    def fail(self, name):
        return write_tool(self.path, name, FAKE_TOOLS["failing"], self.log)

    def calls(self):
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()

    def called(self, name):
        return [j for j in self.calls() if j.split(" ", 1)[0] == name]


@pytest.fixture
def fake_bin(tmp_path, monkeypatch):
    """A PATH holding only the fake tools a test chooses to install."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))
    return FakeBin(bin_dir)


@pytest.fixture
def project(tmp_path, monkeypatch):
    root = tmp_path / "site"
    root.mkdir()
    monkeypatch.chdir(root)
    monkeypatch.delenv("PYSITETOOLS_CONFIG", raising=False)
    return root
